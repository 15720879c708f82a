from __future__ import annotations

import pytest

from split_planner.topology import DEFAULT_RACK, TopologyRegistry, normalize_path


def test_resolve_interns_same_path():
    registry = TopologyRegistry()
    first = registry.resolve("/rack-a/host-1")
    second = registry.resolve("rack-a/host-1")
    assert first is second
    assert first.path == "/rack-a/host-1"


def test_parent_is_shared_rack_node():
    registry = TopologyRegistry()
    h1 = registry.resolve("/rack-a/h1")
    h2 = registry.resolve("/rack-a/h2")
    h3 = registry.resolve("/rack-b/h3")
    assert registry.parent_of(h1) is registry.parent_of(h2)
    assert registry.parent_of(h1) is not registry.parent_of(h3)
    assert registry.parent_of(h1).path == "/rack-a"
    assert registry.parent_of(registry.parent_of(h1)) is None
    # two racks + three hosts
    assert len(registry) == 5


def test_bare_host_lands_on_default_rack():
    registry = TopologyRegistry()
    node = registry.resolve("lonely")
    assert node.location == DEFAULT_RACK
    assert f"{DEFAULT_RACK}/lonely" in registry


def test_port_suffix_kept_in_name_but_stripped_for_host_name():
    registry = TopologyRegistry()
    node = registry.resolve("/rack-a/h1:50010")
    assert node.name == "h1:50010"
    assert node.host_name == "h1"


def test_normalize_rejects_empty_paths():
    with pytest.raises(ValueError):
        normalize_path("  /  ")
    assert normalize_path("/dc/rack/h1") == ("/dc/rack", "h1")

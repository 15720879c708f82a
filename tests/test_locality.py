from __future__ import annotations

import pytest

from split_planner.config import PlannerConfig
from split_planner.errors import BlockOffsetError, InvalidTopologyError
from split_planner.models import BlockLocation
from split_planner.services.locality_service import AggregationEntry, LocalityAggregator
from split_planner.telemetry import TelemetryCollector
from split_planner.topology import TopologyNode, TopologyRegistry


def _aggregator() -> LocalityAggregator:
    cfg = PlannerConfig.default()
    return LocalityAggregator(config=cfg, telemetry=TelemetryCollector(cfg.observability))


def _block(offset: int, length: int, topology=(), hosts=None) -> BlockLocation:
    if hosts is None:
        hosts = [path.rsplit("/", 1)[-1] for path in topology]
    return BlockLocation(offset=offset, length=length, hosts=hosts, topology_paths=topology)


def test_single_block_returns_hosts_in_original_order():
    blocks = [_block(0, 100, hosts=["h3", "h1", "h2"]), _block(100, 100, hosts=["h9"])]
    assert _aggregator().rank_hosts(blocks, 10, 50) == ["h3", "h1", "h2"]
    # exactly filling the remainder of the block still takes the fast path
    assert _aggregator().rank_hosts(blocks, 10, 90) == ["h3", "h1", "h2"]


def test_heaviest_rack_hosts_come_first():
    blocks = [
        _block(0, 100, ["/r1/h1", "/r1/h2", "/r2/h3"]),
        _block(100, 100, ["/r2/h3", "/r2/h4", "/r2/h5"]),
    ]
    # r1 holds 50 bytes, r2 holds 120; h4/h5 tie at 70 and sort by name
    assert _aggregator().rank_hosts(blocks, 50, 120) == ["h3", "h4", "h5"]


def test_partial_last_block_counts_only_covered_bytes():
    blocks = [
        _block(0, 100, ["/r1/h1"]),
        _block(100, 100, ["/r2/h2"]),
        _block(200, 100, ["/r1/h3"]),
    ]
    # r1 gets 10 + 85 = 95 bytes, r2 gets the full middle block
    assert _aggregator().rank_hosts(blocks, 90, 195) == ["h2"]
    # r1 gets 10 + 95 = 105 bytes
    assert _aggregator().rank_hosts(blocks, 90, 205) == ["h3"]


def test_duplicate_topology_entry_counts_block_once():
    blocks = [
        _block(0, 100, ["/r1/h1", "/r1/h1"]),
        _block(100, 100, ["/r2/h2", "/r2/h3"]),
    ]
    # double counting would give h1 120 bytes and push r1 ahead of r2
    assert _aggregator().rank_hosts(blocks, 40, 140) == ["h2", "h3"]


def test_equivalent_path_spellings_aggregate_together():
    blocks = [
        _block(0, 100, ["/r1/h1", "r1/h1"]),
        _block(100, 100, ["/r2/h2", "/r2/h3"]),
    ]
    assert _aggregator().rank_hosts(blocks, 40, 140) == ["h2", "h3"]


def test_blocks_without_topology_use_default_rack():
    blocks = [_block(0, 100, hosts=["h1", "h2"]), _block(100, 100, hosts=["h2", "h3"])]
    registry = TopologyRegistry()
    hosts = _aggregator().rank_hosts(blocks, 50, 100, registry)
    assert hosts == ["h2", "h1"]
    assert "/default-rack/h1" in registry
    assert "/default-rack/h3" in registry


def test_replication_factor_follows_last_spanned_block():
    blocks = [
        _block(0, 100, ["/r1/h1", "/r1/h2", "/r2/h3"]),
        _block(100, 100, ["/r2/h3"]),
    ]
    assert _aggregator().rank_hosts(blocks, 0, 150) == ["h3"]


def test_fewer_hosts_than_replication_returns_short_list():
    blocks = [
        _block(0, 100, ["/r1/h1"]),
        _block(100, 100, ["/r1/h1", "/r1/h1", "/r1/h1"]),
    ]
    assert _aggregator().rank_hosts(blocks, 50, 100) == ["h1"]


def test_port_suffix_is_stripped():
    blocks = [
        _block(0, 100, ["/r1/h1:50010"], hosts=["h1:50010"]),
        _block(100, 100, ["/r1/h1:50010"], hosts=["h1:50010"]),
    ]
    assert _aggregator().rank_hosts(blocks, 50, 100) == ["h1"]


def test_ties_break_on_name_every_run():
    blocks = [
        _block(0, 100, ["/r1/hb", "/r1/ha"]),
        _block(100, 100, ["/r1/hb", "/r1/ha"]),
    ]
    results = {tuple(_aggregator().rank_hosts(blocks, 50, 100)) for _ in range(20)}
    assert results == {("ha", "hb")}


def test_block_index_uses_half_open_ranges():
    blocks = [_block(0, 100, hosts=["a"]), _block(100, 50, hosts=["b"])]
    assert LocalityAggregator.get_block_index(blocks, 0) == 0
    assert LocalityAggregator.get_block_index(blocks, 99) == 0
    assert LocalityAggregator.get_block_index(blocks, 100) == 1
    with pytest.raises(BlockOffsetError, match=r"0\.\.149"):
        LocalityAggregator.get_block_index(blocks, 150)
    with pytest.raises(BlockOffsetError):
        LocalityAggregator.get_block_index([], 0)


def test_split_past_last_block_is_rejected():
    blocks = [_block(0, 100, hosts=["a"]), _block(100, 100, hosts=["b"])]
    with pytest.raises(BlockOffsetError):
        _aggregator().rank_hosts(blocks, 150, 100)


def test_topology_path_without_host_is_rejected():
    blocks = [_block(0, 100, ["/"], hosts=["h1"]), _block(100, 100, ["/r1/h2"])]
    with pytest.raises(InvalidTopologyError):
        _aggregator().rank_hosts(blocks, 50, 100)


def test_same_machine_under_two_paths_fills_two_slots():
    paths = ["/r1/h1:50010", "/r1/h1"]
    blocks = [_block(0, 100, paths, hosts=["h1"]), _block(100, 100, paths, hosts=["h1"])]
    assert _aggregator().rank_hosts(blocks, 50, 100) == ["h1", "h1"]


def test_aggregation_entry_counts_each_block_once():
    entry = AggregationEntry(TopologyNode(name="h1", location="/r1"))
    assert entry.add_value(0, 64)
    assert not entry.add_value(0, 64)
    assert entry.add_value(1, 10)
    assert entry.value == 74
    assert entry.block_ids == {0, 1}

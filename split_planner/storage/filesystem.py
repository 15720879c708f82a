"""File-system backends supplying file listings and block locations."""

from __future__ import annotations

import fnmatch
import logging
import posixpath
import shutil
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..models import BlockLocation, FileStatus, layout_blocks

logger = logging.getLogger(__name__)

PathFilter = Callable[[str], bool]
GLOB_CHARS = set("*?[{")


def has_glob(pattern: str) -> bool:
    return any(char in GLOB_CHARS for char in pattern)


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternation, nested groups included."""
    start = pattern.find("{")
    if start < 0:
        return [pattern]
    depth = 0
    options: List[str] = []
    piece_start = start + 1
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                options.append(pattern[piece_start:index])
                head, tail = pattern[:start], pattern[index + 1:]
                expanded: List[str] = []
                for option in options:
                    expanded.extend(expand_braces(head + option + tail))
                return expanded
        elif char == "," and depth == 1:
            options.append(pattern[piece_start:index])
            piece_start = index + 1
    raise ValueError(f"Unbalanced braces in glob pattern {pattern!r}")


def normalize(path: str) -> str:
    return posixpath.normpath("/" + path.strip().lstrip("/"))


def _accepts(path_filter: Optional[PathFilter], path: str) -> bool:
    return path_filter is None or path_filter(path)


class FileSystem:
    """Listing and block-location contract consumed by the planner."""

    def glob_status(self, pattern: str, path_filter: Optional[PathFilter] = None) -> Optional[List[FileStatus]]:
        raise NotImplementedError

    def list_status(self, path: str, path_filter: Optional[PathFilter] = None) -> List[FileStatus]:
        raise NotImplementedError

    def get_file_block_locations(self, status: FileStatus, start: int, length: int) -> List[BlockLocation]:
        raise NotImplementedError

    def delete(self, path: str, recursive: bool = True) -> bool:
        raise NotImplementedError


class InMemoryFileSystem(FileSystem):
    """Block catalog holding explicit replica and topology placement per file."""

    def __init__(self, default_block_size: int = 64 * 1024 * 1024) -> None:
        self.default_block_size = default_block_size
        self._files: Dict[str, FileStatus] = {}
        self._blocks: Dict[str, List[BlockLocation]] = {}
        self._dirs: set[str] = {"/"}
        self._lock = threading.RLock()

    def add_file(
        self,
        path: str,
        length: int,
        *,
        block_size: Optional[int] = None,
        hosts: Sequence[Iterable[str]] | None = None,
        topology: Sequence[Iterable[str]] | None = None,
        blocks: Optional[Sequence[BlockLocation]] = None,
        splittable: bool = True,
    ) -> FileStatus:
        path = normalize(path)
        size = block_size or self.default_block_size
        if blocks is None:
            blocks = layout_blocks(length, size, hosts, topology=topology)
        status = FileStatus(path=path, length=length, block_size=size, splittable=splittable)
        with self._lock:
            if path in self._dirs:
                raise ValueError(f"{path} is a directory")
            self._add_parents(path)
            self._files[path] = status
            self._blocks[path] = list(blocks)
        return status

    def add_directory(self, path: str) -> FileStatus:
        path = normalize(path)
        with self._lock:
            if path in self._files:
                raise ValueError(f"{path} is a file")
            self._add_parents(path)
            self._dirs.add(path)
        return FileStatus(path=path, is_dir=True)

    def exists(self, path: str) -> bool:
        path = normalize(path)
        with self._lock:
            return path in self._files or path in self._dirs

    def glob_status(self, pattern: str, path_filter: Optional[PathFilter] = None) -> Optional[List[FileStatus]]:
        if not has_glob(pattern):
            status = self._status(normalize(pattern))
            if status is None:
                return None
            return [status] if _accepts(path_filter, status.path) else []
        matches: Dict[str, FileStatus] = {}
        for candidate in expand_braces(pattern):
            parts = normalize(candidate).strip("/").split("/")
            with self._lock:
                entries = list(self._files) + [d for d in self._dirs if d != "/"]
            for entry in entries:
                entry_parts = entry.strip("/").split("/")
                if len(entry_parts) != len(parts):
                    continue
                if all(fnmatch.fnmatchcase(name, part) for name, part in zip(entry_parts, parts)):
                    status = self._status(entry)
                    if status is not None and _accepts(path_filter, entry):
                        matches[entry] = status
        return [matches[key] for key in sorted(matches)]

    def list_status(self, path: str, path_filter: Optional[PathFilter] = None) -> List[FileStatus]:
        path = normalize(path)
        status = self._status(path)
        if status is None:
            raise FileNotFoundError(path)
        if not status.is_dir:
            return [status] if _accepts(path_filter, path) else []
        with self._lock:
            entries = list(self._files) + list(self._dirs)
        children = [entry for entry in entries if entry != path and posixpath.dirname(entry) == path]
        listed = [self._status(child) for child in sorted(children) if _accepts(path_filter, child)]
        return [entry for entry in listed if entry is not None]

    def get_file_block_locations(self, status: FileStatus, start: int, length: int) -> List[BlockLocation]:
        with self._lock:
            blocks = self._blocks.get(normalize(status.path))
        if blocks is None:
            raise FileNotFoundError(status.path)
        end = start + length
        return [block for block in blocks if block.offset < end and block.end > start]

    def delete(self, path: str, recursive: bool = True) -> bool:
        path = normalize(path)
        with self._lock:
            if path in self._files:
                del self._files[path]
                self._blocks.pop(path, None)
                return True
            if path not in self._dirs or path == "/":
                return False
            prefix = path + "/"
            nested = [entry for entry in list(self._files) + list(self._dirs) if entry.startswith(prefix)]
            if nested and not recursive:
                return False
            for entry in nested:
                self._files.pop(entry, None)
                self._blocks.pop(entry, None)
                self._dirs.discard(entry)
            self._dirs.discard(path)
            return True

    def _status(self, path: str) -> Optional[FileStatus]:
        with self._lock:
            if path in self._files:
                return self._files[path]
            if path in self._dirs:
                return FileStatus(path=path, is_dir=True)
        return None

    def _add_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent not in self._dirs:
            if parent in self._files:
                raise ValueError(f"{parent} is a file")
            self._dirs.add(parent)
            parent = posixpath.dirname(parent)


class LocalFileSystem(FileSystem):
    """Local disk backend; each file is laid out in single-host blocks."""

    def __init__(self, root: Optional[str] = None, block_size: int = 32 * 1024 * 1024, hostname: str = "localhost") -> None:
        self.root = Path(root).expanduser().resolve() if root else None
        self.block_size = block_size
        self.hostname = hostname

    def _resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if self.root is not None and not candidate.is_absolute():
            candidate = self.root / candidate
        return candidate

    def _to_status(self, path: Path) -> FileStatus:
        if path.is_dir():
            return FileStatus(path=str(path), is_dir=True)
        return FileStatus(path=str(path), length=path.stat().st_size, block_size=self.block_size)

    def glob_status(self, pattern: str, path_filter: Optional[PathFilter] = None) -> Optional[List[FileStatus]]:
        if not has_glob(pattern):
            target = self._resolve(pattern)
            if not target.exists():
                return None
            return [self._to_status(target)] if _accepts(path_filter, str(target)) else []
        found: Dict[str, Path] = {}
        for candidate in expand_braces(pattern):
            target = self._resolve(candidate)
            anchor = Path(target.anchor) if target.is_absolute() else Path(".")
            relative = target.relative_to(anchor) if target.is_absolute() else target
            for match in anchor.glob(str(relative)):
                if _accepts(path_filter, str(match)):
                    found[str(match)] = match
        return [self._to_status(found[key]) for key in sorted(found)]

    def list_status(self, path: str, path_filter: Optional[PathFilter] = None) -> List[FileStatus]:
        target = self._resolve(path)
        if not target.exists():
            raise FileNotFoundError(str(target))
        if not target.is_dir():
            return [self._to_status(target)] if _accepts(path_filter, str(target)) else []
        children = sorted(target.iterdir(), key=lambda child: child.name)
        return [self._to_status(child) for child in children if _accepts(path_filter, str(child))]

    def get_file_block_locations(self, status: FileStatus, start: int, length: int) -> List[BlockLocation]:
        blocks = layout_blocks(status.length, status.block_size or self.block_size, [[self.hostname]])
        end = start + length
        return [block for block in blocks if block.offset < end and block.end > start]

    def delete(self, path: str, recursive: bool = True) -> bool:
        target = self._resolve(path)
        try:
            if target.is_dir():
                if recursive:
                    shutil.rmtree(target)
                else:
                    target.rmdir()
            else:
                target.unlink()
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", target, exc)
            return False
        return True


def build_filesystem(backend: str, **kwargs) -> FileSystem:
    if backend == "in-memory":
        return InMemoryFileSystem()
    if backend == "local":
        return LocalFileSystem(**kwargs)
    raise NotImplementedError(f"Unsupported storage backend '{backend}'")

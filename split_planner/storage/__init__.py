"""Storage backends that list files and report block locations."""

from .filesystem import FileSystem, InMemoryFileSystem, LocalFileSystem  # noqa: F401

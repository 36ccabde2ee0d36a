"""File store used to read and write model and migration sources."""

import fnmatch
from pathlib import Path

import structlog


class FileStore:
    """Reads and writes UTF-8 source files on the local filesystem."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger(__name__)

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read(self, path: Path) -> str:
        """Read a file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        return path.read_text(encoding="utf-8")

    def write(self, path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")
        self._logger.debug("file_written", path=str(path), size=len(content))

    def list_matching(self, directory: Path, pattern: str) -> list[Path]:
        """Files directly under ``directory`` matching a glob pattern, sorted by name."""
        if not directory.is_dir():
            return []
        return sorted(path for path in directory.glob(pattern) if path.is_file())

    def make_directories(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)


class InMemoryFileStore(FileStore):
    """Dictionary-backed store for tests; nothing touches disk."""

    def __init__(
        self,
        files: dict[Path, str] | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        super().__init__(logger=logger)
        self.files: dict[Path, str] = dict(files or {})
        self.directories: set[Path] = set()

    def exists(self, path: Path) -> bool:
        return path in self.files

    def read(self, path: Path) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(f"File not found: {path}") from None

    def write(self, path: Path, content: str) -> None:
        self.files[path] = content

    def list_matching(self, directory: Path, pattern: str) -> list[Path]:
        return sorted(
            path for path in self.files if path.parent == directory and fnmatch.fnmatch(path.name, pattern)
        )

    def make_directories(self, path: Path) -> None:
        self.directories.add(path)

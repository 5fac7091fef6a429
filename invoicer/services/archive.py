from __future__ import annotations

import threading
import zipfile
from pathlib import Path
from typing import Any

"""Output containers for rendered invoices.

An archive accepts completed PDF byte buffers one entry at a time; writes are
serialized with a lock so several renderers may share one archive. Entry
names are chosen (and made unique) by the caller.
"""

__all__ = [
    "Archive",
    "DirectoryArchive",
    "ZipArchive",
]

# fixed entry timestamp keeps zip output reproducible
ZIP_ENTRY_DATE = (1980, 1, 1, 0, 0, 0)


class Archive:
    """Base class: subclasses implement _write()."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.names: list[str] = []

    def add(self, name: str, data: bytes) -> None:
        with self._lock:
            self._write(name, data)
            self.names.append(name)

    def _write(self, name: str, data: bytes) -> None:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> Path:  # pragma: no cover
        raise NotImplementedError

    def __enter__(self) -> Archive:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class DirectoryArchive(Archive):
    """Writes each entry as a file inside a directory."""

    def __init__(self, directory: Path) -> None:
        super().__init__()
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)

    def _write(self, name: str, data: bytes) -> None:
        (self.directory / name).write_bytes(data)

    def close(self) -> Path:
        return self.directory


class ZipArchive(Archive):
    """Collects entries into one zip file."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._zip: zipfile.ZipFile | None = zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED)

    def _write(self, name: str, data: bytes) -> None:
        if self._zip is None:
            raise ValueError(f"archive already closed: {self.path}")
        info = zipfile.ZipInfo(name, date_time=ZIP_ENTRY_DATE)
        info.compress_type = zipfile.ZIP_DEFLATED
        self._zip.writestr(info, data)

    def close(self) -> Path:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
        return self.path

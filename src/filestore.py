"""
File stores used by the archive codec, the byte patcher and the backup guard.

LocalFileStore works on disk relative to a root directory (normally the game
directory). MemoryFileStore keeps everything in a dict and exists so that a
whole patch catalog can be exercised without touching the filesystem.

Invariants:
    - write_bytes either replaces the whole file or leaves it untouched
    - paths are interpreted relative to the store root
"""

import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Dict, List


def is_plain_filename(name) -> bool:
    """True if name is a single path component: no separators, not "." or "..", not empty."""
    name = str(name)
    return bool(name) and name not in ('.', '..') and '/' not in name and '\\' not in name


class FileStore(ABC):
    """Minimal filesystem surface needed by the patcher."""

    @abstractmethod
    def read_bytes(self, path) -> bytes:
        ...

    @abstractmethod
    def write_bytes(self, path, data: bytes) -> None:
        ...

    @abstractmethod
    def exists(self, path) -> bool:
        ...

    @abstractmethod
    def is_dir(self, path) -> bool:
        ...

    @abstractmethod
    def makedirs(self, path) -> None:
        ...

    @abstractmethod
    def listdir(self, path) -> List[str]:
        ...

    @abstractmethod
    def copy(self, src, dst) -> None:
        ...

    @abstractmethod
    def move(self, src, dst) -> None:
        ...


class LocalFileStore(FileStore):
    """Disk-backed store rooted at a directory."""

    def __init__(self, root="."):
        self.root = Path(root)

    def resolve(self, path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def read_bytes(self, path) -> bytes:
        return self.resolve(path).read_bytes()

    def write_bytes(self, path, data: bytes) -> None:
        """Write data via a temp file in the same directory, then rename over path."""
        target = self.resolve(path)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def exists(self, path) -> bool:
        return self.resolve(path).exists()

    def is_dir(self, path) -> bool:
        return self.resolve(path).is_dir()

    def makedirs(self, path) -> None:
        self.resolve(path).mkdir(parents=True, exist_ok=True)

    def listdir(self, path) -> List[str]:
        return sorted(p.name for p in self.resolve(path).iterdir() if p.is_file())

    def copy(self, src, dst) -> None:
        shutil.copyfile(self.resolve(src), self.resolve(dst))

    def move(self, src, dst) -> None:
        os.replace(self.resolve(src), self.resolve(dst))


class MemoryFileStore(FileStore):
    """In-memory store for tests.

    Directories are implicit: a directory exists if it was created with
    makedirs or if any file lives beneath it.
    """

    def __init__(self, files: Dict[str, bytes] = None):
        self.files: Dict[str, bytes] = {}
        self.dirs = set()
        for path, data in (files or {}).items():
            self.files[self._key(path)] = bytes(data)

    @staticmethod
    def _key(path) -> str:
        return str(PurePosixPath(str(path).replace('\\', '/')))

    def read_bytes(self, path) -> bytes:
        key = self._key(path)
        if key not in self.files:
            raise FileNotFoundError(key)
        return self.files[key]

    def write_bytes(self, path, data: bytes) -> None:
        self.files[self._key(path)] = bytes(data)

    def exists(self, path) -> bool:
        key = self._key(path)
        return key in self.files or self.is_dir(key)

    def is_dir(self, path) -> bool:
        key = self._key(path)
        if key in self.dirs:
            return True
        prefix = key.rstrip('/') + '/'
        return any(name.startswith(prefix) for name in self.files)

    def makedirs(self, path) -> None:
        self.dirs.add(self._key(path))

    def listdir(self, path) -> List[str]:
        parent = PurePosixPath(self._key(path))
        return sorted(
            PurePosixPath(name).name
            for name in self.files
            if PurePosixPath(name).parent == parent
        )

    def copy(self, src, dst) -> None:
        self.files[self._key(dst)] = self.read_bytes(src)

    def move(self, src, dst) -> None:
        data = self.read_bytes(src)
        del self.files[self._key(src)]
        self.files[self._key(dst)] = data

"""
Disk abstractions used as build source and destination.

Paths handed to a Disk are disk-absolute POSIX strings ("/posts/a.md"). A
LocalDisk maps them below a real directory; a MemoryDisk keeps everything in a
dict and is what the test-suite builds against.
"""

import hashlib
import os
import posixpath
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Tuple, Union

Content = Union[bytes, str]


def normalize_disk_path(path: str) -> str:
    """Collapse a path to canonical disk-absolute form ("/a/b")."""
    path = str(path).replace('\\', '/')
    normalized = posixpath.normpath('/' + path.lstrip('/'))
    # normpath keeps a leading "//" on POSIX
    return '/' + normalized.lstrip('/')


def _to_bytes(content: Content) -> bytes:
    if isinstance(content, str):
        return content.encode('utf-8')
    return bytes(content)


class Disk(ABC):
    """Minimal file store contract consumed by the build pipeline."""

    @property
    @abstractmethod
    def guid(self) -> str:
        """Stable identifier recorded alongside completed builds."""

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        ...

    @abstractmethod
    def write_file(self, path: str, content: Content) -> None:
        ...

    @abstractmethod
    def mkdir_recursive(self, path: str) -> None:
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def walk(self, root: str = '/') -> Iterable[Tuple[str, str]]:
        """Yield ``(path, kind)`` for every node below ``root``.

        ``kind`` is ``"file"`` or ``"dir"``. Raises FileNotFoundError when
        ``root`` does not exist.
        """

    def read_text(self, path: str) -> str:
        return self.read_file(path).decode('utf-8')


class LocalDisk(Disk):
    """A Disk backed by a directory on the local filesystem."""

    def __init__(self, base_dir: str):
        self.base_dir = os.path.abspath(os.path.expanduser(base_dir))

    @property
    def guid(self) -> str:
        return hashlib.md5(self.base_dir.encode('utf-8')).hexdigest()

    def real_path(self, path: str) -> str:
        """Translate a disk path into a filesystem path under base_dir."""
        relative = normalize_disk_path(path).lstrip('/')
        if not relative:
            return self.base_dir
        return os.path.join(self.base_dir, *relative.split('/'))

    def read_file(self, path: str) -> bytes:
        with open(self.real_path(path), 'rb') as f:
            return f.read()

    def write_file(self, path: str, content: Content) -> None:
        with open(self.real_path(path), 'wb') as f:
            f.write(_to_bytes(content))

    def mkdir_recursive(self, path: str) -> None:
        os.makedirs(self.real_path(path), exist_ok=True)

    def exists(self, path: str) -> bool:
        return os.path.exists(self.real_path(path))

    def walk(self, root: str = '/'):
        root = normalize_disk_path(root)
        real_root = self.real_path(root)
        if not os.path.isdir(real_root):
            raise FileNotFoundError(f"Source directory not found: {real_root}")

        def on_error(error):
            raise error

        for dirpath, dirnames, filenames in os.walk(real_root, onerror=on_error):
            rel_dir = os.path.relpath(dirpath, self.base_dir).replace(os.sep, '/')
            disk_dir = normalize_disk_path('' if rel_dir == '.' else rel_dir)
            for name in dirnames:
                yield posixpath.join(disk_dir, name), 'dir'
            for name in filenames:
                yield posixpath.join(disk_dir, name), 'file'

    def __repr__(self):
        return f"LocalDisk({self.base_dir!r})"


class MemoryDisk(Disk):
    """A dict-backed Disk."""

    def __init__(self, files: Optional[Dict[str, Content]] = None, guid: Optional[str] = None):
        self._guid = guid or uuid.uuid4().hex
        self.files: Dict[str, bytes] = {}
        self.dirs = {'/'}
        for path, content in (files or {}).items():
            path = normalize_disk_path(path)
            self.mkdir_recursive(posixpath.dirname(path))
            self.files[path] = _to_bytes(content)

    @property
    def guid(self) -> str:
        return self._guid

    def read_file(self, path: str) -> bytes:
        path = normalize_disk_path(path)
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(f"No such file: {path}") from None

    def write_file(self, path: str, content: Content) -> None:
        path = normalize_disk_path(path)
        parent = posixpath.dirname(path)
        if parent not in self.dirs:
            raise FileNotFoundError(f"Parent directory does not exist: {parent}")
        self.files[path] = _to_bytes(content)

    def mkdir_recursive(self, path: str) -> None:
        path = normalize_disk_path(path)
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def exists(self, path: str) -> bool:
        path = normalize_disk_path(path)
        return path in self.files or path in self.dirs

    def walk(self, root: str = '/'):
        root = normalize_disk_path(root)
        if root not in self.dirs:
            raise FileNotFoundError(f"Source directory not found: {root}")
        prefix = root.rstrip('/') + '/'
        for path in sorted(self.dirs):
            if path != root and path.startswith(prefix):
                yield path, 'dir'
        for path in sorted(self.files):
            if path.startswith(prefix):
                yield path, 'file'

    def listing(self, root: str = '/') -> Dict[str, bytes]:
        """Files below ``root`` keyed by their path relative to it."""
        root = normalize_disk_path(root)
        prefix = root.rstrip('/') + '/'
        return {path[len(prefix):]: data for path, data in self.files.items() if path.startswith(prefix)}

    def __repr__(self):
        return f"MemoryDisk({len(self.files)} files)"

"""Durable key/value storage backing the virtual file buffers.

The emulated disk is a flat namespace: every file is a single entry keyed by
its name, holding the raw bytes last flushed by ``CLOSE``.  Stores namespace
their keys with a prefix (``vfs/`` by default) and percent-encode the name so
any printable DOS filename round-trips, commas and slashes included.
"""
from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, Optional
from urllib.parse import quote, unquote

from .errors import DOSError, DOSErrorCode


LOGGER = logging.getLogger(__name__)

DEFAULT_PREFIX = "vfs/"


def storage_key(name: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Return the namespaced key under which ``name`` is persisted."""

    return prefix + quote(name, safe="")


def name_from_key(key: str, prefix: str = DEFAULT_PREFIX) -> Optional[str]:
    """Invert :func:`storage_key`, returning ``None`` for foreign keys."""

    if not key.startswith(prefix):
        return None
    return unquote(key[len(prefix) :])


class DurableStore(ABC):
    """Abstract persistence used by :class:`~applesoft_dos.buffers.BufferManager`.

    ``get`` distinguishes a miss (``None``) from an empty file (``b""``).
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self.prefix = prefix

    def key(self, name: str) -> str:
        return storage_key(name, self.prefix)

    def get(self, name: str) -> Optional[bytes]:
        return self._get(self.key(name))

    def set(self, name: str, payload: bytes) -> None:
        LOGGER.debug("store set %r (%d bytes)", name, len(payload))
        self._set(self.key(name), bytes(payload))

    def remove(self, name: str) -> None:
        LOGGER.debug("store remove %r", name)
        self._remove(self.key(name))

    def names(self) -> Iterator[str]:
        """Yield the filenames currently held under this store's prefix."""

        for key in self._keys():
            name = name_from_key(key, self.prefix)
            if name is not None:
                yield name

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    @abstractmethod
    def _get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    @abstractmethod
    def _set(self, key: str, payload: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def _remove(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def _keys(self) -> Iterator[str]:
        raise NotImplementedError


class MemoryStore(DurableStore):
    """Store that keeps entries in a dictionary for the life of the process."""

    def __init__(
        self,
        prefix: str = DEFAULT_PREFIX,
        *,
        entries: Optional[Dict[str, bytes]] = None,
    ) -> None:
        super().__init__(prefix)
        self._entries: Dict[str, bytes] = {}
        for name, payload in (entries or {}).items():
            self._entries[self.key(name)] = bytes(payload)

    def _get(self, key: str) -> Optional[bytes]:
        return self._entries.get(key)

    def _set(self, key: str, payload: bytes) -> None:
        self._entries[key] = payload

    def _remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def _keys(self) -> Iterator[str]:
        return iter(list(self._entries))


class DirectoryStore(DurableStore):
    """Store that persists each entry as one file inside ``root``.

    Keys are percent-encoded a second time to produce flat host filenames, so
    the prefix separator never creates subdirectories.
    """

    def __init__(self, root: Path, prefix: str = DEFAULT_PREFIX) -> None:
        super().__init__(prefix)
        root.mkdir(parents=True, exist_ok=True)
        self.root = root

    def _path_for_key(self, key: str) -> Path:
        return self.root / quote(key, safe="")

    def _get(self, key: str) -> Optional[bytes]:
        path = self._path_for_key(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _set(self, key: str, payload: bytes) -> None:
        path = self._path_for_key(key)
        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=str(self.root),
                prefix=path.name,
                suffix=".tmp",
                delete=False,
            ) as stream:
                temp_path = Path(stream.name)
                stream.write(payload)
                stream.flush()
                os.fsync(stream.fileno())
            os.replace(temp_path, path)
        except Exception:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            raise

    def _remove(self, key: str) -> None:
        self._path_for_key(key).unlink(missing_ok=True)

    def _keys(self) -> Iterator[str]:
        for path in sorted(self.root.iterdir()):
            if path.is_file() and not path.name.endswith(".tmp"):
                yield unquote(path.name)


class DirectoryContentSource:
    """Fetch-once loader for initial file contents shipped alongside the host.

    ``DATA.FILE`` is looked up as ``DATA_FILE.txt``; host line endings are
    folded to carriage returns, the Apple II line terminator.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, name: str) -> Path:
        return self.root / (quote(name.replace(".", "_"), safe="") + ".txt")

    def fetch(self, name: str) -> Optional[bytes]:
        """Return the initial contents for ``name`` or ``None`` when absent."""

        path = self.path_for(name)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            LOGGER.debug("no initial content for %r at %s", name, path)
            return None
        except OSError as exc:
            LOGGER.warning("failed to fetch %r from %s: %s", name, path, exc)
            raise DOSError(DOSErrorCode.IO_ERROR) from exc
        LOGGER.debug("fetched %r from %s", name, path)
        return payload.replace(b"\r\n", b"\r")


__all__ = [
    "DEFAULT_PREFIX",
    "DirectoryContentSource",
    "DirectoryStore",
    "DurableStore",
    "MemoryStore",
    "name_from_key",
    "storage_key",
]

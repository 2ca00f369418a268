"""Virtual file buffers with DOS 3.3 record semantics.

Each open file is held in memory as a :class:`FileBuffer`.  Record numbers
and byte offsets supplied by ``READ``/``WRITE``/``POSITION`` are folded into a
single byte cursor, ``file_pointer``; everything below the command layer
reads and writes at that cursor only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .errors import DOSError, DOSErrorCode
from .session import AccessMode, DOSSession
from .store import DirectoryContentSource, DurableStore


LOGGER = logging.getLogger(__name__)

CHARACTER_ENCODING = "latin-1"
LINE_TERMINATORS = frozenset(b"\r\n\x00")


def encode_character(character: str) -> int:
    """Map a single terminal character onto the byte stored in a buffer."""

    if len(character) != 1:
        raise ValueError(f"expected a single character, got {character!r}")
    return character.encode(CHARACTER_ENCODING, errors="replace")[0]


def decode_byte(value: int) -> str:
    return bytes((value,)).decode(CHARACTER_ENCODING)


@dataclass(eq=False)
class FileBuffer:
    """In-memory image of one open file.

    ``content`` is ``None`` when the file exists neither in the store nor in
    the content source; ``WRITE`` creates it, ``READ`` refuses it.
    """

    name: str
    content: Optional[bytearray] = None
    record_length: int = 1
    record_number: int = 0
    file_pointer: int = 0

    @property
    def exists(self) -> bool:
        return self.content is not None

    @property
    def at_end(self) -> bool:
        return self.content is None or self.file_pointer >= len(self.content)

    def write_character(self, character: str) -> None:
        """Store ``character`` at the cursor, zero-filling any gap before it."""

        content = self._require_content()
        value = encode_character(character)
        gap = self.file_pointer - len(content)
        if gap > 0:
            content.extend(bytes(gap))
        if self.file_pointer == len(content):
            content.append(value)
        else:
            content[self.file_pointer] = value
        self.file_pointer += 1

    def read_character(self) -> str:
        if self.at_end:
            raise DOSError(DOSErrorCode.END_OF_DATA)
        content = self._require_content()
        character = decode_byte(content[self.file_pointer])
        self.file_pointer += 1
        return character

    def read_line(self) -> str:
        """Return text up to the next CR, LF or NUL, consuming the terminator."""

        if self.at_end:
            raise DOSError(DOSErrorCode.END_OF_DATA)
        content = self._require_content()
        start = pointer = self.file_pointer
        end = len(content)
        while pointer < end and content[pointer] not in LINE_TERMINATORS:
            pointer += 1
        line = content[start:pointer].decode(CHARACTER_ENCODING)
        if pointer < end:
            pointer += 1
        self.file_pointer = pointer
        return line

    def snapshot(self) -> Optional[bytes]:
        return None if self.content is None else bytes(self.content)

    def _require_content(self) -> bytearray:
        if self.content is None:
            raise DOSError(DOSErrorCode.FILE_NOT_FOUND)
        return self.content


@dataclass
class BufferManager:
    """Open, position and flush :class:`FileBuffer` objects for a session."""

    session: DOSSession
    store: DurableStore
    source: Optional[DirectoryContentSource] = field(default=None)

    def get(self, name: str) -> Optional[FileBuffer]:
        return self.session.buffers.get(name)

    def open(self, name: str, record_length: int = 0) -> FileBuffer:
        """Open (or create in memory) the buffer for ``name``.

        A record length of zero selects sequential access, stored as 1.
        Reopening a name replaces the previous buffer; unflushed writes are lost.
        """

        if record_length == 0:
            record_length = 1
        previous = self.session.buffers.get(name)
        if previous is not None and previous is self.session.active:
            self.session.deactivate()
        content = self._load(name)
        buffer = FileBuffer(
            name=name,
            content=None if content is None else bytearray(content),
            record_length=record_length,
        )
        self.session.buffers[name] = buffer
        LOGGER.debug(
            "opened %r (record length %d, %s)",
            name,
            record_length,
            "existing" if buffer.exists else "new",
        )
        return buffer

    def append(self, name: str, record_length: int = 0) -> FileBuffer:
        buffer = self.open(name, record_length)
        if buffer.content is None:
            raise DOSError(DOSErrorCode.FILE_NOT_FOUND)
        buffer.file_pointer = len(buffer.content)
        buffer.record_number = buffer.file_pointer // buffer.record_length
        return buffer

    def close(self, name: Optional[str] = None) -> None:
        """Flush and forget ``name``, or every open buffer when omitted."""

        if not name:
            for open_name in tuple(self.session.buffers):
                self.close(open_name)
            return
        buffer = self.session.buffers.pop(name, None)
        if buffer is None:
            return
        self._flush(buffer)
        if buffer is self.session.active:
            self.session.deactivate()
        LOGGER.debug("closed %r", name)

    def position(self, name: str, records: int) -> FileBuffer:
        buffer = self.session.buffers.get(name) or self.open(name, 0)
        buffer.record_number += records
        buffer.file_pointer += buffer.record_length * records
        return buffer

    def read(self, name: str, record_number: int = 0, byte_offset: int = 0) -> FileBuffer:
        buffer = self.session.buffers.get(name) or self.open(name, 0)
        if buffer.content is None:
            raise DOSError(DOSErrorCode.FILE_NOT_FOUND)
        buffer.record_number = record_number
        buffer.file_pointer = buffer.record_length * record_number + byte_offset
        self.session.activate(buffer, AccessMode.READ)
        LOGGER.debug("reading %r at %d", name, buffer.file_pointer)
        return buffer

    def write(self, name: str, record_number: int = 0, byte_offset: int = 0) -> FileBuffer:
        buffer = self.session.buffers.get(name)
        if buffer is None:
            raise DOSError(DOSErrorCode.FILE_NOT_FOUND)
        if buffer.content is None:
            self._store_set(name, b"")
            buffer.content = bytearray()
        buffer.record_number = record_number
        # Sequential files keep their running pointer; only the byte offset applies.
        if buffer.record_length > 1:
            buffer.file_pointer = buffer.record_length * record_number
        buffer.file_pointer += byte_offset
        self.session.activate(buffer, AccessMode.WRITE)
        LOGGER.debug("writing %r at %d", name, buffer.file_pointer)
        return buffer

    def delete(self, name: str) -> None:
        if self._store_get(name) is None:
            raise DOSError(DOSErrorCode.FILE_NOT_FOUND)
        self._store_remove(name)

    def rename(self, old_name: str, new_name: str) -> None:
        payload = self._store_get(old_name)
        if payload is None:
            raise DOSError(DOSErrorCode.FILE_NOT_FOUND)
        self._store_remove(old_name)
        self._store_set(new_name, payload)

    def _flush(self, buffer: FileBuffer) -> None:
        payload = buffer.snapshot()
        if payload is not None:
            self._store_set(buffer.name, payload)

    def _store_get(self, name: str) -> Optional[bytes]:
        try:
            return self.store.get(name)
        except OSError as exc:
            raise DOSError(DOSErrorCode.IO_ERROR) from exc

    def _store_set(self, name: str, payload: bytes) -> None:
        try:
            self.store.set(name, payload)
        except OSError as exc:
            raise DOSError(DOSErrorCode.IO_ERROR) from exc

    def _store_remove(self, name: str) -> None:
        try:
            self.store.remove(name)
        except OSError as exc:
            raise DOSError(DOSErrorCode.IO_ERROR) from exc

    def _load(self, name: str) -> Optional[bytes]:
        payload = self._store_get(name)
        if payload is not None or self.source is None:
            return payload
        payload = self.source.fetch(name)
        if payload is not None:
            self._store_set(name, payload)
        return payload


__all__ = [
    "BufferManager",
    "CHARACTER_ENCODING",
    "FileBuffer",
    "LINE_TERMINATORS",
    "decode_byte",
    "encode_character",
]

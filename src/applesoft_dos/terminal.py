"""Terminal collaborator contract and an in-memory host terminal."""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, List, Optional, Protocol, Tuple


class Terminal(Protocol):
    """Character channel the interpreter drives and the DOS intercepts."""

    def write_character(self, character: str) -> None:
        """Render ``character``."""

    def read_character(self) -> Awaitable[str]:
        """Resolve with the next typed character."""

    def read_line(self, prompt: str = "") -> Awaitable[str]:
        """Resolve with the next entered line, without its terminator."""


@dataclass(frozen=True)
class TerminalPassthrough:
    """The terminal's own operations, captured before interception.

    Anything the DOS itself prints (traces, echoes) goes through these so it
    is never redirected back into a file buffer.
    """

    write_character: Callable[[str], None]
    read_character: Callable[[], Awaitable[str]]
    read_line: Callable[..., Awaitable[str]]
    set_firmware_active: Optional[Callable[[bool], None]] = None

    @classmethod
    def capture(cls, terminal: object) -> "TerminalPassthrough":
        firmware = getattr(terminal, "set_firmware_active", None)
        return cls(
            write_character=getattr(terminal, "write_character"),
            read_character=getattr(terminal, "read_character"),
            read_line=getattr(terminal, "read_line"),
            set_firmware_active=firmware if callable(firmware) else None,
        )

    def write_string(self, text: str) -> None:
        for character in text:
            self.write_character(character)


class TranscriptTerminal:
    """Terminal that records output and serves input queued by the host.

    Reads resolve on a later loop iteration even when input is already
    queued, matching the non-blocking delivery of a real console.
    """

    def __init__(self) -> None:
        self.output: List[str] = []
        self.firmware_active = False
        self._pending_input: Deque[str] = deque()
        self._waiters: Deque[Tuple[str, asyncio.Future[str]]] = deque()

    @property
    def transcript(self) -> str:
        return "".join(self.output)

    def clear(self) -> None:
        self.output.clear()

    def write_character(self, character: str) -> None:
        self.output.append(character)

    def write_string(self, text: str) -> None:
        for character in text:
            self.write_character(character)

    def set_firmware_active(self, active: bool) -> None:
        self.firmware_active = bool(active)

    def feed(self, text: str) -> None:
        """Queue ``text`` as typed input and wake pending readers."""

        self._pending_input.extend(text)
        self._serve_waiters()

    def read_character(self) -> Awaitable[str]:
        return self._enqueue("char")

    def read_line(self, prompt: str = "") -> Awaitable[str]:
        # The prompt is rendered directly, never through an installed hook.
        self.output.extend(prompt)
        return self._enqueue("line")

    def _enqueue(self, kind: str) -> "asyncio.Future[str]":
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._waiters.append((kind, future))
        self._serve_waiters()
        return future

    def _serve_waiters(self) -> None:
        while self._waiters:
            kind, future = self._waiters[0]
            if kind == "char":
                if not self._pending_input:
                    return
                result = self._pending_input.popleft()
            else:
                if "\r" not in self._pending_input:
                    return
                characters: List[str] = []
                while True:
                    character = self._pending_input.popleft()
                    if character == "\r":
                        break
                    characters.append(character)
                result = "".join(characters)
            self._waiters.popleft()
            if not future.cancelled():
                future.get_loop().call_soon(_resolve, future, result)


def _resolve(future: "asyncio.Future[str]", result: str) -> None:
    if not future.done():
        future.set_result(result)


__all__ = ["Terminal", "TerminalPassthrough", "TranscriptTerminal"]

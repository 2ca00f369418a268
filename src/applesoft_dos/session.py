"""Mutable state shared by the interceptor, dispatcher and buffer manager."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from .buffers import FileBuffer


class AccessMode(Enum):
    """Redirection applied to terminal character traffic."""

    NONE = "none"
    READ = "read"
    WRITE = "write"


class MonitorFlags(IntFlag):
    """Trace toggles managed by ``MON`` and ``NOMON``."""

    NONE = 0
    INPUT = 1
    COMMANDS = 2
    OUTPUT = 4


@dataclass
class DOSSession:
    """Open buffers, the active redirection cursor and channel state."""

    buffers: Dict[str, "FileBuffer"] = field(default_factory=dict)
    active: Optional["FileBuffer"] = None
    mode: AccessMode = AccessMode.NONE
    command_mode: bool = False
    command_buffer: List[str] = field(default_factory=list)
    monitor: MonitorFlags = MonitorFlags.NONE

    def activate(self, buffer: "FileBuffer", mode: AccessMode) -> None:
        self.active = buffer
        self.mode = mode

    def deactivate(self) -> None:
        self.active = None
        self.mode = AccessMode.NONE

    def is_redirected(self, mode: AccessMode) -> bool:
        return self.active is not None and self.mode is mode

    def monitoring(self, flag: MonitorFlags) -> bool:
        return bool(self.monitor & flag)

    def reset(self) -> None:
        """Drop every open buffer without flushing and clear channel state."""

        self.buffers = {}
        self.deactivate()
        self.command_mode = False
        self.command_buffer = []
        self.monitor = MonitorFlags.NONE


__all__ = ["AccessMode", "DOSSession", "MonitorFlags"]

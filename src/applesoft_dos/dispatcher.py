"""Dispatch parsed DOS command lines to buffer and monitor operations."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping

from .buffers import BufferManager
from .errors import DOSError, DOSErrorCode
from .grammar import NULL_COMMAND, CommandInvocation, parse_command
from .session import DOSSession, MonitorFlags
from .terminal import TerminalPassthrough


LOGGER = logging.getLogger(__name__)

LINE_TERMINATOR = "\r"

CommandHandler = Callable[[CommandInvocation], None]

_MONITOR_LETTERS: Mapping[str, MonitorFlags] = {
    "I": MonitorFlags.INPUT,
    "C": MonitorFlags.COMMANDS,
    "O": MonitorFlags.OUTPUT,
}


class CommandDispatcher:
    """Execute one command line against the session's buffers."""

    def __init__(
        self,
        session: DOSSession,
        buffers: BufferManager,
        terminal: TerminalPassthrough,
    ) -> None:
        self.session = session
        self.buffers = buffers
        self.terminal = terminal
        self.handlers: Dict[str, CommandHandler] = {
            "MON": self._monitor_on,
            "NOMON": self._monitor_off,
            "OPEN": self._open,
            "APPEND": self._append,
            "CLOSE": self._close,
            "POSITION": self._position,
            "READ": self._read,
            "WRITE": self._write,
            "DELETE": self._delete,
            "RENAME": self._rename,
            "PR#": self._select_slot,
            NULL_COMMAND: self._end_transfer,
        }

    def execute(self, command_line: str) -> None:
        """Parse ``command_line`` and run its handler; faults propagate."""

        if self.session.monitoring(MonitorFlags.COMMANDS):
            self.terminal.write_string(command_line + LINE_TERMINATOR)
        invocation = parse_command(command_line)
        LOGGER.debug("dispatching %r", invocation.name or "<null>")
        self.handlers[invocation.name](invocation)

    def _monitor_on(self, invocation: CommandInvocation) -> None:
        for letter, flag in _MONITOR_LETTERS.items():
            if invocation.arguments.has_flag(letter):
                self.session.monitor |= flag

    def _monitor_off(self, invocation: CommandInvocation) -> None:
        for letter, flag in _MONITOR_LETTERS.items():
            if invocation.arguments.has_flag(letter):
                self.session.monitor &= ~flag

    def _open(self, invocation: CommandInvocation) -> None:
        self.buffers.open(invocation.filename, invocation.arguments.length)

    def _append(self, invocation: CommandInvocation) -> None:
        self.buffers.append(invocation.filename, invocation.arguments.length)

    def _close(self, invocation: CommandInvocation) -> None:
        self.buffers.close(invocation.filename)

    def _position(self, invocation: CommandInvocation) -> None:
        self.buffers.position(invocation.filename, invocation.arguments.record)

    def _read(self, invocation: CommandInvocation) -> None:
        arguments = invocation.arguments
        self.buffers.read(invocation.filename, arguments.record, arguments.byte)

    def _write(self, invocation: CommandInvocation) -> None:
        arguments = invocation.arguments
        self.buffers.write(invocation.filename, arguments.record, arguments.byte)

    def _delete(self, invocation: CommandInvocation) -> None:
        self.buffers.delete(invocation.filename)

    def _rename(self, invocation: CommandInvocation) -> None:
        self.buffers.rename(invocation.filename, invocation.filename2)

    def _select_slot(self, invocation: CommandInvocation) -> None:
        text = (invocation.filename or "").strip()
        slot = int(text) if text.isdigit() else None
        if slot == 0:
            active = False
        elif slot == 3:
            active = True
        else:
            raise DOSError(DOSErrorCode.RANGE_ERROR)
        if self.terminal.set_firmware_active is not None:
            self.terminal.set_firmware_active(active)

    def _end_transfer(self, invocation: CommandInvocation) -> None:
        # Ends a READ/WRITE run; the buffer stays open with its record length.
        self.session.deactivate()


__all__ = ["CommandDispatcher", "CommandHandler", "LINE_TERMINATOR"]

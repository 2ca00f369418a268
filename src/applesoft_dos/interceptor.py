"""Channel interceptor layering the DOS over a terminal's character I/O.

Two independent axes decide what a character means:

* the channel state, idle or accumulating a command after ``Ctrl-D``;
* the redirection mode of the session (none, read or write).

Only the escape character and the carriage return move the first axis; the
dispatcher's commands move the second.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, FrozenSet, Optional

from .dispatcher import LINE_TERMINATOR, CommandDispatcher
from .session import AccessMode, DOSSession, MonitorFlags
from .terminal import TerminalPassthrough


LOGGER = logging.getLogger(__name__)

COMMAND_ESCAPE = "\x04"

_HOOKED_OPERATIONS = ("write_character", "read_character", "read_line")


def _deliver_soon(result: str) -> "asyncio.Future[str]":
    """Return a future resolved after the current step of the running loop."""

    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()
    loop.call_soon(_resolve, future, result)
    return future


def _resolve(future: "asyncio.Future[str]", result: str) -> None:
    if not future.done():
        future.set_result(result)


class ChannelInterceptor:
    """Replacement ``write_character``/``read_character``/``read_line``."""

    def __init__(
        self,
        session: DOSSession,
        dispatcher: CommandDispatcher,
        terminal: TerminalPassthrough,
    ) -> None:
        self.session = session
        self.dispatcher = dispatcher
        self.terminal = terminal
        self._installed_on: Optional[object] = None
        self._shadowed: FrozenSet[str] = frozenset()

    # Installation -------------------------------------------------------

    def install(self, host: object) -> None:
        """Shadow ``host``'s three I/O operations with the intercepted ones."""

        if self._installed_on is not None:
            raise RuntimeError("interceptor already installed")
        own = vars(host) if hasattr(host, "__dict__") else {}
        self._shadowed = frozenset(name for name in _HOOKED_OPERATIONS if name in own)
        for operation in _HOOKED_OPERATIONS:
            setattr(host, operation, getattr(self, operation))
        self._installed_on = host

    def uninstall(self) -> None:
        host = self._installed_on
        if host is None:
            return
        # Instance-level operations are put back; class-level ones are unshadowed.
        for operation in _HOOKED_OPERATIONS:
            if operation in self._shadowed:
                setattr(host, operation, getattr(self.terminal, operation))
            else:
                delattr(host, operation)
        self._installed_on = None
        self._shadowed = frozenset()

    # Intercepted operations --------------------------------------------

    def write_character(self, character: str) -> None:
        session = self.session
        if session.command_mode:
            if character == LINE_TERMINATOR:
                command_line = "".join(session.command_buffer)
                session.command_mode = False
                session.command_buffer = []
                LOGGER.debug("command line %r", command_line)
                self.dispatcher.execute(command_line)
            else:
                session.command_buffer.append(character)
            return
        if character == COMMAND_ESCAPE:
            session.command_buffer = []
            session.command_mode = True
            return

        if session.is_redirected(AccessMode.WRITE):
            if session.monitoring(MonitorFlags.OUTPUT):
                self.terminal.write_character(character)
            session.active.write_character(character)
        else:
            self.terminal.write_character(character)

    def read_character(self) -> Awaitable[str]:
        session = self.session
        if not session.is_redirected(AccessMode.READ):
            return self.terminal.read_character()
        character = session.active.read_character()
        if session.monitoring(MonitorFlags.INPUT):
            self.terminal.write_character(character)
        return _deliver_soon(character)

    def read_line(self, prompt: str = "") -> Awaitable[str]:
        session = self.session
        if not session.is_redirected(AccessMode.READ):
            return self.terminal.read_line(prompt)
        line = session.active.read_line()
        if session.monitoring(MonitorFlags.INPUT):
            self.terminal.write_string(prompt + line + LINE_TERMINATOR)
        return _deliver_soon(line)


__all__ = ["COMMAND_ESCAPE", "ChannelInterceptor"]

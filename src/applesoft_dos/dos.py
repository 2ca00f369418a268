"""Wire the DOS layer onto a host terminal.

Usage::

    terminal = TranscriptTerminal()
    dos = bootstrap_dos(terminal)     # hooks the terminal's character I/O
    dos.reset()                       # abandon every open buffer
"""
from __future__ import annotations

import logging
from typing import Optional

from .buffers import BufferManager
from .config import DOSConfig
from .dispatcher import CommandDispatcher
from .interceptor import ChannelInterceptor
from .session import DOSSession
from .store import DirectoryContentSource, DirectoryStore, DurableStore, MemoryStore
from .terminal import TerminalPassthrough


LOGGER = logging.getLogger(__name__)


class DiskOperatingSystem:
    """One DOS session installed on ``terminal``."""

    def __init__(
        self,
        terminal: object,
        store: Optional[DurableStore] = None,
        *,
        source: Optional[DirectoryContentSource] = None,
    ) -> None:
        self.session = DOSSession()
        self.store = store if store is not None else MemoryStore()
        self.terminal = terminal
        self.passthrough = TerminalPassthrough.capture(terminal)
        self.buffers = BufferManager(self.session, self.store, source)
        self.dispatcher = CommandDispatcher(self.session, self.buffers, self.passthrough)
        self.interceptor = ChannelInterceptor(
            self.session, self.dispatcher, self.passthrough
        )
        self.interceptor.install(terminal)

    def execute(self, command_line: str) -> None:
        """Run ``command_line`` as if it followed a ``Ctrl-D`` on the channel."""

        self.dispatcher.execute(command_line)

    def reset(self) -> None:
        """Close every buffer abruptly; unflushed content is discarded."""

        LOGGER.debug("reset with %d open buffer(s)", len(self.session.buffers))
        self.session.reset()

    def uninstall(self) -> None:
        self.interceptor.uninstall()


def bootstrap_dos(terminal: object, config: Optional[DOSConfig] = None) -> DiskOperatingSystem:
    """Build the stores described by ``config`` and install a DOS on ``terminal``."""

    config = config or DOSConfig.default()
    store: DurableStore
    if config.storage_path is not None:
        store = DirectoryStore(config.storage_path, prefix=config.storage_prefix)
    else:
        store = MemoryStore(prefix=config.storage_prefix)
    source = DirectoryContentSource(config.fetch_path) if config.fetch_path else None
    dos = DiskOperatingSystem(terminal, store, source=source)
    dos.session.monitor = config.monitor
    return dos


__all__ = ["DiskOperatingSystem", "bootstrap_dos"]

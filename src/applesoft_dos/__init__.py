"""Apple II DOS 3.3 text-file layer for a character terminal."""
from __future__ import annotations

from .buffers import BufferManager, FileBuffer
from .config import DOSConfig, load_dos_config
from .dispatcher import CommandDispatcher
from .dos import DiskOperatingSystem, bootstrap_dos
from .errors import DOSConfigError, DOSError, DOSErrorCode
from .grammar import ArgumentRecord, CommandInvocation, parse_arguments, parse_command
from .interceptor import COMMAND_ESCAPE, ChannelInterceptor
from .session import AccessMode, DOSSession, MonitorFlags
from .store import (
    DirectoryContentSource,
    DirectoryStore,
    DurableStore,
    MemoryStore,
    storage_key,
)
from .terminal import Terminal, TerminalPassthrough, TranscriptTerminal

__all__ = [
    "AccessMode",
    "ArgumentRecord",
    "BufferManager",
    "COMMAND_ESCAPE",
    "ChannelInterceptor",
    "CommandDispatcher",
    "CommandInvocation",
    "DOSConfig",
    "DOSConfigError",
    "DOSError",
    "DOSErrorCode",
    "DOSSession",
    "DirectoryContentSource",
    "DirectoryStore",
    "DiskOperatingSystem",
    "DurableStore",
    "FileBuffer",
    "MemoryStore",
    "MonitorFlags",
    "Terminal",
    "TerminalPassthrough",
    "TranscriptTerminal",
    "bootstrap_dos",
    "load_dos_config",
    "parse_arguments",
    "parse_command",
    "storage_key",
]

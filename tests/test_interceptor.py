from __future__ import annotations

import asyncio
from pathlib import Path
from types import SimpleNamespace

import pytest

from applesoft_dos.config import DOSConfig
from applesoft_dos.dos import DiskOperatingSystem, bootstrap_dos
from applesoft_dos.errors import DOSError, DOSErrorCode
from applesoft_dos.interceptor import COMMAND_ESCAPE
from applesoft_dos.session import AccessMode, MonitorFlags
from applesoft_dos.store import MemoryStore
from applesoft_dos.terminal import TranscriptTerminal


def _bootstrap(entries: dict[str, bytes] | None = None) -> tuple[DiskOperatingSystem, TranscriptTerminal]:
    terminal = TranscriptTerminal()
    dos = DiskOperatingSystem(terminal, MemoryStore(entries=entries))
    return dos, terminal


def _print(terminal: TranscriptTerminal, text: str) -> None:
    """Emit ``text`` the way the interpreter's PRINT would, through the hooks."""

    for character in text:
        terminal.write_character(character)


def _command(terminal: TranscriptTerminal, line: str) -> None:
    _print(terminal, COMMAND_ESCAPE + line + "\r")


def test_plain_output_passes_through() -> None:
    _, terminal = _bootstrap()

    _print(terminal, "HELLO\r")

    assert terminal.transcript == "HELLO\r"


def test_command_text_is_not_echoed_and_dispatches_on_return() -> None:
    dos, terminal = _bootstrap()

    _print(terminal, COMMAND_ESCAPE + "OPEN A,L5")
    assert dos.session.command_mode
    assert dos.buffers.get("A") is None

    _print(terminal, "\r")

    assert not dos.session.command_mode
    assert dos.session.command_buffer == []
    assert dos.buffers.get("A").record_length == 5
    assert terminal.transcript == ""


def test_write_then_read_line_scenario() -> None:
    dos, terminal = _bootstrap()

    _command(terminal, "OPEN A,L5")
    _command(terminal, "WRITE A,R0,B0")
    _print(terminal, "HELLO")
    _command(terminal, "")
    _command(terminal, "READ A,R0,B0")

    async def _exercise() -> str:
        return await terminal.read_line()

    assert asyncio.run(_exercise()) == "HELLO"
    assert terminal.transcript == ""
    assert dos.store.get("A") == b""

    _command(terminal, "CLOSE")
    assert dos.store.get("A") == b"HELLO"


def test_read_character_returns_exact_characters() -> None:
    _, terminal = _bootstrap({"DATA": b"AB\rC"})
    _command(terminal, "OPEN DATA")
    _command(terminal, "READ DATA")

    async def _exercise() -> list[str]:
        return [await terminal.read_character() for _ in range(4)]

    assert asyncio.run(_exercise()) == ["A", "B", "\r", "C"]


def test_read_past_end_fails_synchronously() -> None:
    dos, terminal = _bootstrap({"DATA": b"X\r"})
    _command(terminal, "OPEN DATA")
    _command(terminal, "READ DATA")

    async def _exercise() -> None:
        assert await terminal.read_line() == "X"
        with pytest.raises(DOSError) as excinfo:
            terminal.read_line()
        assert excinfo.value.error is DOSErrorCode.END_OF_DATA
        with pytest.raises(DOSError):
            terminal.read_character()

    asyncio.run(_exercise())
    assert dos.session.mode is AccessMode.READ


def test_redirected_read_resolves_after_current_step() -> None:
    _, terminal = _bootstrap({"DATA": b"Z"})
    _command(terminal, "OPEN DATA")
    _command(terminal, "READ DATA")

    async def _exercise() -> tuple[str, list[bool]]:
        seen: list[bool] = []
        loop = asyncio.get_running_loop()
        future = terminal.read_character()
        assert not future.done()
        loop.call_soon(lambda: seen.append(future.done()))
        result = await future
        return result, seen

    assert asyncio.run(_exercise()) == ("Z", [True])


def test_reads_delegate_to_terminal_when_not_redirected() -> None:
    _, terminal = _bootstrap()

    async def _exercise() -> tuple[str, str]:
        terminal.feed("Q")
        character = await terminal.read_character()
        terminal.feed("TYPED LINE\r")
        line = await terminal.read_line("? ")
        return character, line

    assert asyncio.run(_exercise()) == ("Q", "TYPED LINE")
    assert terminal.transcript == "? "


def test_monitor_input_echoes_read_data() -> None:
    dos, terminal = _bootstrap({"DATA": b"ONE\rTWO\r"})
    _command(terminal, "MON,I")
    _command(terminal, "OPEN DATA")
    _command(terminal, "READ DATA")

    async def _exercise(prompt: str) -> str:
        return await terminal.read_line(prompt)

    assert asyncio.run(_exercise("?")) == "ONE"
    assert terminal.transcript == "?ONE\r"

    terminal.clear()
    _command(terminal, "NOMON,I")
    _command(terminal, "READ DATA")
    assert asyncio.run(_exercise("?")) == "ONE"
    assert terminal.transcript == ""


def test_monitor_output_echoes_written_data() -> None:
    dos, terminal = _bootstrap()
    _command(terminal, "MON,O")
    _command(terminal, "OPEN OUT")
    _command(terminal, "WRITE OUT")

    _print(terminal, "HI")

    assert terminal.transcript == "HI"
    assert dos.buffers.get("OUT").content == bytearray(b"HI")


def test_command_trace_is_not_redirected_into_file() -> None:
    dos, terminal = _bootstrap()
    _command(terminal, "OPEN OUT")
    _command(terminal, "WRITE OUT")
    _command(terminal, "MON,C")

    _command(terminal, "")

    assert terminal.transcript == "\r"
    assert dos.buffers.get("OUT").content == bytearray()


def test_escape_inside_write_run_starts_command() -> None:
    dos, terminal = _bootstrap()
    _command(terminal, "OPEN OUT")
    _command(terminal, "WRITE OUT")

    _print(terminal, "AB" + COMMAND_ESCAPE + "CLOSE OUT\r" + "CD")

    assert dos.store.get("OUT") == b"AB"
    assert terminal.transcript == "CD"


def test_zero_fill_through_channel() -> None:
    dos, terminal = _bootstrap()
    _command(terminal, "OPEN R,L4")
    _command(terminal, "WRITE R,R2,B1")
    _print(terminal, "X")
    _command(terminal, "CLOSE R")

    assert dos.store.get("R") == b"\x00" * 9 + b"X"


def test_faulting_command_leaves_command_mode() -> None:
    dos, terminal = _bootstrap()

    with pytest.raises(DOSError):
        _command(terminal, "BOGUS")

    assert not dos.session.command_mode
    _print(terminal, "OK")
    assert terminal.transcript == "OK"


def test_reset_discards_unflushed_buffers() -> None:
    dos, terminal = _bootstrap()
    _command(terminal, "MON,O")
    _command(terminal, "OPEN OUT")
    _command(terminal, "WRITE OUT")
    _print(terminal, COMMAND_ESCAPE + "PARTIAL")

    dos.reset()

    assert dos.session.buffers == {}
    assert dos.session.mode is AccessMode.NONE
    assert not dos.session.command_mode
    assert dos.session.monitor == MonitorFlags.NONE
    _command(terminal, "CLOSE")
    assert dos.store.get("OUT") == b""


def test_uninstall_restores_terminal_operations() -> None:
    dos, terminal = _bootstrap()
    dos.uninstall()

    _print(terminal, COMMAND_ESCAPE + "X")

    assert terminal.transcript == COMMAND_ESCAPE + "X"
    assert not dos.session.command_mode


def test_uninstall_restores_instance_level_operations() -> None:
    written: list[str] = []

    def read_character() -> str:
        return "K"

    def read_line(prompt: str = "") -> str:
        return prompt + "LINE"

    host = SimpleNamespace(
        write_character=written.append,
        read_character=read_character,
        read_line=read_line,
    )
    dos = DiskOperatingSystem(host, MemoryStore())
    host.write_character(COMMAND_ESCAPE)
    assert dos.session.command_mode
    dos.session.command_mode = False

    dos.uninstall()

    host.write_character("Z")
    assert written == ["Z"]
    assert host.read_character() == "K"
    assert host.read_line("? ") == "? LINE"


def test_bootstrap_applies_configured_monitor_and_storage(tmp_path: Path) -> None:
    terminal = TranscriptTerminal()
    config = DOSConfig(storage_path=tmp_path / "disk", monitor=MonitorFlags.COMMANDS)
    dos = bootstrap_dos(terminal, config)

    _command(terminal, "OPEN NOTES")
    _command(terminal, "WRITE NOTES")
    _print(terminal, "SAVED")
    _command(terminal, "CLOSE")

    assert terminal.transcript == "OPEN NOTES\rWRITE NOTES\rCLOSE\r"
    reloaded = bootstrap_dos(TranscriptTerminal(), DOSConfig(storage_path=tmp_path / "disk"))
    assert reloaded.store.get("NOTES") == b"SAVED"
    assert dos.store.get("NOTES") == b"SAVED"

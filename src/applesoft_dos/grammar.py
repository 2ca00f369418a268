"""Tokenizer for DOS command lines such as ``READ DATA,R3,B12``.

Every recognised command form is an independent pattern tried against the
whole line; a form contributes the keyword, up to two filename fields and the
argument tail, which :func:`parse_arguments` cracks into an
:class:`ArgumentRecord`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Pattern, Tuple

from .errors import DOSError, DOSErrorCode


# Printable ASCII minus the comma that separates filenames from options.
_FILENAME = r"[\x20-\x2B\x2D-\x7E]"
_TAIL = r"(?P<tail>,[\x20-\x7E]*)?"

_ARGUMENT_TOKEN = re.compile(
    r",?\s*(?P<letter>[VDSLRBACIO])\s*(?P<value>[0-9]+|\$[0-9A-Fa-f]+)?\s*"
)

NUMERIC_LETTERS: Mapping[str, str] = {
    "V": "volume",
    "D": "drive",
    "S": "slot",
    "L": "length",
    "R": "record",
    "B": "byte",
    "A": "address",
}
FLAG_LETTERS: Mapping[str, str] = {
    "C": "echo_commands",
    "I": "echo_input",
    "O": "echo_output",
}


@dataclass(frozen=True)
class ArgumentRecord:
    """Keyword arguments of one command, one slot per option letter.

    Numeric letters default to ``0``; flag letters are ``None`` unless they
    appear on the line, in which case they hold the (usually absent, so zero)
    value that followed them.
    """

    volume: int = 0
    drive: int = 0
    slot: int = 0
    length: int = 0
    record: int = 0
    byte: int = 0
    address: int = 0
    echo_commands: Optional[int] = None
    echo_input: Optional[int] = None
    echo_output: Optional[int] = None

    def has_flag(self, letter: str) -> bool:
        return getattr(self, FLAG_LETTERS[letter]) is not None


def _parse_value(text: Optional[str]) -> int:
    if not text:
        return 0
    if text.startswith("$"):
        return int(text[1:], 16)
    return int(text, 10)


def parse_arguments(tail: Optional[str], allowed: str = "") -> ArgumentRecord:
    """Crack a ``,L5,R2``-style ``tail`` into an :class:`ArgumentRecord`.

    ``allowed`` lists the option letters the current command accepts.  Any
    other letter, or trailing text the tokens do not consume, is an invalid
    option.  A repeated letter keeps its last value.
    """

    text = tail or ""
    values: Dict[str, Optional[int]] = {}
    index = 0
    length = len(text)
    while index < length:
        match = _ARGUMENT_TOKEN.match(text, index)
        if match is None:
            break
        letter = match.group("letter")
        if letter not in allowed:
            raise DOSError(DOSErrorCode.INVALID_OPTION)
        attribute = NUMERIC_LETTERS.get(letter) or FLAG_LETTERS[letter]
        values[attribute] = _parse_value(match.group("value"))
        index = match.end()
    if index < length:
        raise DOSError(DOSErrorCode.INVALID_OPTION)
    return ArgumentRecord(**values)


@dataclass(frozen=True)
class CommandForm:
    """Structural pattern for one DOS command keyword."""

    name: str
    pattern: Pattern[str]
    allowed: str = ""

    def match(self, line: str) -> Optional[re.Match[str]]:
        return self.pattern.fullmatch(line)


def _form(name: str, body: str, allowed: str = "") -> CommandForm:
    return CommandForm(name=name, pattern=re.compile(body), allowed=allowed)


NULL_COMMAND = ""

COMMAND_FORMS: Tuple[CommandForm, ...] = (
    _form("MON", r"MON(?P<tail>[\x20-\x7E]*)", "ICO"),
    _form("NOMON", r"NOMON(?P<tail>[\x20-\x7E]*)", "ICO"),
    _form("OPEN", rf"OPEN\s*(?P<filename>{_FILENAME}+){_TAIL}", "L"),
    _form("APPEND", rf"APPEND\s*(?P<filename>{_FILENAME}+){_TAIL}", "L"),
    _form("CLOSE", rf"CLOSE\s*(?P<filename>{_FILENAME}+)?{_TAIL}"),
    _form("POSITION", rf"POSITION\s*(?P<filename>{_FILENAME}+){_TAIL}", "R"),
    _form("READ", rf"READ\s*(?P<filename>{_FILENAME}+){_TAIL}", "RB"),
    _form("WRITE", rf"WRITE\s*(?P<filename>{_FILENAME}+){_TAIL}", "RB"),
    _form("DELETE", rf"DELETE\s*(?P<filename>{_FILENAME}+){_TAIL}"),
    _form(
        "RENAME",
        rf"RENAME\s*(?P<filename>{_FILENAME}+),\s*(?P<filename2>{_FILENAME}+){_TAIL}",
    ),
    _form("PR#", rf"PR#\s*(?P<filename>{_FILENAME}+){_TAIL}"),
    _form(NULL_COMMAND, r""),
)


@dataclass(frozen=True)
class CommandInvocation:
    """Parsed command line handed to a single dispatcher handler."""

    name: str
    filename: Optional[str] = None
    filename2: Optional[str] = None
    arguments: ArgumentRecord = field(default_factory=ArgumentRecord)
    line: str = ""


def parse_command(line: str) -> CommandInvocation:
    """Match ``line`` against :data:`COMMAND_FORMS` and crack its arguments."""

    for form in COMMAND_FORMS:
        match = form.match(line)
        if match is None:
            continue
        groups = match.groupdict()
        arguments = parse_arguments(groups.get("tail"), form.allowed)
        return CommandInvocation(
            name=form.name,
            filename=groups.get("filename"),
            filename2=groups.get("filename2"),
            arguments=arguments,
            line=line,
        )
    raise DOSError(DOSErrorCode.INVALID_OPTION)


__all__ = [
    "ArgumentRecord",
    "COMMAND_FORMS",
    "CommandForm",
    "CommandInvocation",
    "FLAG_LETTERS",
    "NULL_COMMAND",
    "NUMERIC_LETTERS",
    "parse_arguments",
    "parse_command",
]

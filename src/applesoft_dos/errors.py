"""DOS error taxonomy surfaced to the host interpreter."""
from __future__ import annotations

from enum import Enum


class DOSErrorCode(Enum):
    """Numbered DOS 3.3 error conditions and their printed messages."""

    LANGUAGE_NOT_AVAILABLE = (1, "Language not available")
    RANGE_ERROR = (2, "Range error")
    WRITE_PROTECTED = (4, "Write protected")
    END_OF_DATA = (5, "End of data")
    FILE_NOT_FOUND = (6, "File not found")
    VOLUME_MISMATCH = (7, "Volume mismatch")
    IO_ERROR = (8, "I/O error")
    DISK_FULL = (9, "Disk full")
    FILE_LOCKED = (10, "File locked")
    INVALID_OPTION = (11, "Invalid option")
    NO_BUFFERS_AVAILABLE = (12, "No buffers available")
    FILE_TYPE_MISMATCH = (13, "File type mismatch")
    PROGRAM_TOO_LARGE = (14, "Program too large")
    NOT_DIRECT_COMMAND = (15, "Not direct command")

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]

    @classmethod
    def from_code(cls, code: int) -> "DOSErrorCode":
        """Return the member registered for numeric ``code``."""

        for member in cls:
            if member.code == code:
                return member
        raise ValueError(f"unknown DOS error code: {code}")


class DOSError(RuntimeError):
    """Runtime fault raised into the host interpreter.

    Carries the numeric ``code`` the interpreter reports (``ONERR`` handlers
    read it back) alongside the message printed for unhandled faults.
    """

    def __init__(self, error: DOSErrorCode) -> None:
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> int:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    def __repr__(self) -> str:
        return f"DOSError({self.error.name}, code={self.code})"


class DOSConfigError(ValueError):
    """Raised when a DOS configuration file fails validation."""


__all__ = ["DOSConfigError", "DOSError", "DOSErrorCode"]

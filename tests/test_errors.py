from __future__ import annotations

import pytest

from applesoft_dos.errors import DOSError, DOSErrorCode


def test_error_table_codes() -> None:
    assert [member.code for member in DOSErrorCode] == [
        1, 2, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15,
    ]
    assert DOSErrorCode.FILE_NOT_FOUND.message == "File not found"


def test_from_code_lookup() -> None:
    assert DOSErrorCode.from_code(11) is DOSErrorCode.INVALID_OPTION
    with pytest.raises(ValueError):
        DOSErrorCode.from_code(3)


def test_dos_error_carries_code_and_message() -> None:
    error = DOSError(DOSErrorCode.END_OF_DATA)

    assert isinstance(error, RuntimeError)
    assert error.code == 5
    assert error.message == "End of data"
    assert str(error) == "End of data"
    assert repr(error) == "DOSError(END_OF_DATA, code=5)"

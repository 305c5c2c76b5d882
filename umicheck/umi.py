"""Extraction of the UMI carried in a read header."""

from __future__ import annotations

import re

__all__ = ["UmiLengthError", "extract_umi_from_header"]

_SEPARATORS = re.compile(r"[:_]")


class UmiLengthError(ValueError):
    """Raised when the UMI found in a header has an unexpected length."""

    def __init__(self, expected: int, found: int) -> None:
        super().__init__(
            "UMI length does not match expected length: "
            f"expected {expected}, found {found}"
        )
        self.expected = expected
        self.found = found


def extract_umi_from_header(header: bytes | str, expected_length: int) -> bytes | None:
    """Return the upper-cased UMI from a ``READ_ID:UMI`` or ``READ_ID_UMI`` header.

    Only the first whitespace-separated token is considered; the UMI is the
    text after its last ``:`` or ``_``. Returns ``None`` when the header is
    not valid UTF-8 or holds no token. Raises :class:`UmiLengthError` when a
    UMI is found whose length differs from ``expected_length``.
    """
    if isinstance(header, str):
        text = header
    else:
        try:
            text = bytes(header).decode("utf-8")
        except UnicodeDecodeError:
            return None

    tokens = text.split()
    if not tokens:
        return None

    umi = _SEPARATORS.split(tokens[0])[-1].encode("utf-8")
    if len(umi) != expected_length:
        raise UmiLengthError(expected_length, len(umi))

    return umi.upper()
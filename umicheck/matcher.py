"""Approximate search of a UMI inside a read sequence."""

from __future__ import annotations

__all__ = ["hamming_distance", "is_umi_in_read"]

_N = ord("N")


def hamming_distance(seq1: bytes, seq2: bytes) -> int:
    """Return the number of differing positions between two equal-length sequences.

    A position holding ``N`` in either sequence always counts as a mismatch.
    Raises ``ValueError`` if the lengths differ.
    """
    if len(seq1) != len(seq2):
        raise ValueError(
            f"sequences must have equal length: {len(seq1)} != {len(seq2)}"
        )
    return sum(1 for a, b in zip(seq1, seq2) if a != b or a == _N or b == _N)


def _windows(read: bytes, size: int):
    return (read[start:start + size] for start in range(len(read) - size + 1))


def is_umi_in_read(umi: bytes, read: bytes, max_mismatches: int) -> bool:
    """Return True if some window of ``read`` is within ``max_mismatches`` of ``umi``.

    With no mismatches allowed this is an exact substring search. Otherwise
    the UMI is split into ``max_mismatches + 1`` chunks; a window is only
    scored when at least one chunk matches it exactly.
    """
    umi = bytes(umi)
    read = bytes(read)
    umi_len = len(umi)

    if len(read) < umi_len:
        return False
    if umi_len == 0:
        raise ValueError("UMI must not be empty")

    if max_mismatches == 0:
        return umi in read

    num_chunks = max_mismatches + 1
    if umi_len < num_chunks:
        return any(
            hamming_distance(umi, window) <= max_mismatches
            for window in _windows(read, umi_len)
        )

    chunk_size = umi_len // num_chunks
    bounds = [
        (i * chunk_size, umi_len if i == num_chunks - 1 else (i + 1) * chunk_size)
        for i in range(num_chunks)
    ]

    def has_matching_chunk(window: bytes) -> bool:
        return any(umi[start:end] == window[start:end] for start, end in bounds)

    return any(
        has_matching_chunk(window) and hamming_distance(umi, window) <= max_mismatches
        for window in _windows(read, umi_len)
    )
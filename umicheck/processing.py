"""Routing reads by whether their header UMI appears in the sequence."""

from __future__ import annotations

import gzip
import os
from contextlib import ExitStack
from itertools import islice
from pathlib import Path
from typing import Iterable, Iterator

from umicheck.alignment import AlignmentReader
from umicheck.matcher import is_umi_in_read
from umicheck.umi import extract_umi_from_header
from umicheck.writers import (
    BamRecord,
    FastqRecord,
    NullWriter,
    create_bam_writer,
    create_fastq_writer,
)

__all__ = ["read_fastq", "process_batch", "process_fastq", "process_bam"]

BATCH_SIZE = 10_000


def _open_maybe_gzip(path: Path):
    with open(path, "rb") as probe:
        magic = probe.read(2)
    return gzip.open(path, "rb") if magic == b"\x1f\x8b" else open(path, "rb")


def read_fastq(path) -> Iterator[FastqRecord]:
    """Yield the records of a plain or gzipped FASTQ file."""
    with _open_maybe_gzip(Path(path)) as handle:
        lines = (line.rstrip(b"\r\n") for line in handle)
        for head in lines:
            if not head:
                continue
            if not head.startswith(b"@"):
                raise ValueError(f"expected '@' at start of FASTQ record: {head!r}")
            seq = next(lines, None)
            plus = next(lines, None)
            qual = next(lines, None)
            if qual is None or not plus.startswith(b"+"):
                raise ValueError(f"truncated FASTQ record: {head!r}")
            if len(qual) != len(seq):
                raise ValueError(f"quality and sequence lengths differ: {head!r}")
            yield FastqRecord(head[1:], seq, qual)


def _matches(record, max_mismatches: int, umi_len: int) -> bool:
    umi = extract_umi_from_header(record.header, umi_len)
    return umi is not None and is_umi_in_read(umi, record.seq, max_mismatches)


def process_batch(batch, kept_writer, removed_writer, max_mismatches: int,
                  umi_len: int) -> tuple[int, int]:
    """Route a batch of records; return ``(removed, kept)`` counts."""
    flags = [_matches(record, max_mismatches, umi_len) for record in batch]
    removed = kept = 0
    for record, matched in zip(batch, flags):
        if matched:
            removed += 1
            record.write_to(removed_writer)
        else:
            kept += 1
            record.write_to(kept_writer)
    return removed, kept


def _route(records: Iterable, kept_writer, removed_writer, max_mismatches: int,
           umi_len: int) -> tuple[int, int, int]:
    total = removed = kept = 0
    iterator = iter(records)
    while batch := list(islice(iterator, BATCH_SIZE)):
        total += len(batch)
        r_inc, k_inc = process_batch(batch, kept_writer, removed_writer,
                                     max_mismatches, umi_len)
        removed += r_inc
        kept += k_inc
    return total, removed, kept


def process_fastq(input_path, kept_out, removed_out, max_mismatches: int,
                  umi_len: int) -> tuple[int, int, int]:
    """Split a FASTQ file; return ``(total, removed, kept)``.

    Reads whose header UMI is found in the sequence go to ``removed_out``,
    the rest to ``kept_out``. Either output may be ``None``.
    """
    if os.path.getsize(input_path) == 0:
        if kept_out is not None:
            create_fastq_writer(kept_out).close()
        return 0, 0, 0
    with ExitStack() as stack:
        kept_w = stack.enter_context(
            create_fastq_writer(kept_out) if kept_out is not None else NullWriter())
        rem_w = stack.enter_context(
            create_fastq_writer(removed_out) if removed_out is not None else NullWriter())
        return _route(read_fastq(input_path), kept_w, rem_w, max_mismatches, umi_len)


def process_bam(input_path, kept_out, removed_out, max_mismatches: int,
                umi_len: int) -> tuple[int, int, int]:
    """Split a BAM or SAM file into BAM outputs; return ``(total, removed, kept)``."""
    with ExitStack() as stack:
        reader = stack.enter_context(AlignmentReader(input_path))
        header = reader.header
        kept_w = stack.enter_context(
            create_bam_writer(kept_out, header) if kept_out is not None else NullWriter())
        rem_w = stack.enter_context(
            create_bam_writer(removed_out, header) if removed_out is not None
            else NullWriter())
        records = (BamRecord(rec) for rec in reader)
        return _route(records, kept_w, rem_w, max_mismatches, umi_len)
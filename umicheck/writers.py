"""Output sinks for FASTQ and BAM records, and the records that go into them."""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from umicheck.alignment import AlignmentHeader, AlignmentRecord, BamWriter

__all__ = [
    "FastqRecord",
    "BamRecord",
    "FastqWriter",
    "AlignmentWriter",
    "NullWriter",
    "create_fastq_writer",
    "create_bam_writer",
]


@dataclass
class FastqRecord:
    """A FASTQ read held in memory."""

    head: bytes
    seq: bytes
    qual: bytes | None = None

    @property
    def header(self) -> bytes:
        return self.head

    def write_to(self, writer) -> None:
        writer.write_fastq(self.head, self.seq, self.qual)


@dataclass
class BamRecord:
    """An alignment record routed as a read."""

    rec: AlignmentRecord

    @property
    def header(self) -> bytes:
        return self.rec.qname

    @property
    def seq(self) -> bytes:
        return self.rec.seq

    def write_to(self, writer) -> None:
        writer.write_bam(self.rec)


class _Closing:
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args) -> None:
        self.close()


class FastqWriter(_Closing):
    """Writes FASTQ entries to a binary stream; alignment records are ignored."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write_fastq(self, head: bytes, seq: bytes, qual: bytes | None) -> None:
        self._stream.write(b"@" + head + b"\n" + seq + b"\n+\n" + (qual or b"") + b"\n")

    def write_bam(self, record: AlignmentRecord) -> None:
        pass

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> FastqWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class AlignmentWriter(_Closing):
    """Writes alignment records to a BAM writer; FASTQ entries are ignored."""

    def __init__(self, writer: BamWriter) -> None:
        self._writer = writer

    def write_fastq(self, head: bytes, seq: bytes, qual: bytes | None) -> None:
        pass

    def write_bam(self, record: AlignmentRecord) -> None:
        self._writer.write(record)

    def close(self) -> None:
        self._writer.close()

    def __enter__(self) -> AlignmentWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class NullWriter(_Closing):
    """Discards everything written to it."""

    def write_fastq(self, head: bytes, seq: bytes, qual: bytes | None) -> None:
        pass

    def write_bam(self, record: AlignmentRecord) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> NullWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def create_fastq_writer(path) -> FastqWriter:
    """Open a FASTQ writer at ``path``, gzip-compressed when it ends in ``.gz``."""
    path = Path(path)
    if path.suffix == ".gz":
        return FastqWriter(gzip.open(path, "wb"))
    return FastqWriter(open(path, "wb"))


def create_bam_writer(path, header: AlignmentHeader) -> AlignmentWriter:
    """Open a BAM writer at ``path`` using ``header``."""
    return AlignmentWriter(BamWriter(path, header))
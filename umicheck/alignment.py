"""Reading SAM/BAM alignment files and writing BAM files."""

from __future__ import annotations

import gzip
import re
import struct
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator

__all__ = [
    "AlignmentHeader",
    "AlignmentRecord",
    "AlignmentReader",
    "BamWriter",
    "parse_sam_line",
    "decode_bam_record",
    "encode_bam_record",
]

BAM_MAGIC = b"BAM\x01"
BGZF_EOF = bytes.fromhex("1f8b08040000000000ff0600424302001b0003000000000000000000")

_SEQ_CODES = b"=ACMGRSVTWYHKDBN"
_SEQ_LOOKUP = {code: index for index, code in enumerate(_SEQ_CODES)}
_CIGAR_OPS = "MIDNSHP=X"
_REF_CONSUMING = {0, 2, 3, 7, 8}
_CIGAR_RE = re.compile(r"(\d+)([MIDNSHP=X])")
_CORE = struct.Struct("<iiBBHHHIiii")
_BLOCK_INPUT = 0xFF00
_INT_TYPES = (
    ("c", -(2**7), 2**7 - 1, "b"),
    ("C", 0, 2**8 - 1, "B"),
    ("s", -(2**15), 2**15 - 1, "h"),
    ("S", 0, 2**16 - 1, "H"),
    ("i", -(2**31), 2**31 - 1, "i"),
    ("I", 0, 2**32 - 1, "I"),
)
_ARRAY_FORMATS = {"c": "b", "C": "B", "s": "h", "S": "H", "i": "i", "I": "I", "f": "f"}


@dataclass
class AlignmentHeader:
    """Header text and reference sequences of an alignment file."""

    text: str = ""
    references: list[tuple[str, int]] = field(default_factory=list)


@dataclass
class AlignmentRecord:
    """One alignment; ``tags`` holds the auxiliary fields in BAM binary form."""

    qname: bytes
    flag: int = 4
    ref_id: int = -1
    pos: int = -1
    mapq: int = 255
    cigar: list[tuple[int, int]] = field(default_factory=list)
    next_ref_id: int = -1
    next_pos: int = -1
    tlen: int = 0
    seq: bytes = b""
    qual: bytes | None = None
    tags: bytes = b""


def _references_from_text(text: str) -> list[tuple[str, int]]:
    references = []
    for line in text.splitlines():
        if not line.startswith("@SQ"):
            continue
        fields = dict(
            item.split(":", 1) for item in line.split("\t")[1:] if ":" in item
        )
        if "SN" not in fields or "LN" not in fields:
            raise ValueError(f"malformed @SQ header line: {line!r}")
        references.append((fields["SN"], int(fields["LN"])))
    return references


def _reference_index(header: AlignmentHeader, name: str) -> int:
    if name == "*":
        return -1
    for index, (ref_name, _length) in enumerate(header.references):
        if ref_name == name:
            return index
    raise ValueError(f"unknown reference sequence: {name!r}")


def _encode_int(value: int) -> bytes:
    for kind, low, high, fmt in _INT_TYPES:
        if low <= value <= high:
            return kind.encode() + struct.pack("<" + fmt, value)
    raise ValueError(f"integer tag value out of range: {value}")


def _encode_tag(text: str) -> bytes:
    parts = text.split(":", 2)
    if len(parts) != 3 or len(parts[0]) != 2:
        raise ValueError(f"malformed tag: {text!r}")
    tag, kind, value = parts
    key = tag.encode("ascii")
    if kind == "A":
        if len(value) != 1:
            raise ValueError(f"character tag must hold one character: {text!r}")
        return key + b"A" + value.encode("ascii")
    if kind == "i":
        return key + _encode_int(int(value))
    if kind == "f":
        return key + b"f" + struct.pack("<f", float(value))
    if kind in ("Z", "H"):
        return key + kind.encode() + value.encode("utf-8") + b"\0"
    if kind == "B":
        subtype, *items = value.split(",")
        fmt = _ARRAY_FORMATS.get(subtype)
        if fmt is None:
            raise ValueError(f"unknown array subtype in tag: {text!r}")
        convert = float if subtype == "f" else int
        numbers = [convert(item) for item in items]
        return (
            key
            + b"B"
            + subtype.encode()
            + struct.pack("<I", len(numbers))
            + struct.pack("<" + fmt * len(numbers), *numbers)
        )
    raise ValueError(f"unknown tag type: {text!r}")


def _parse_cigar(text: str) -> list[tuple[int, int]]:
    if text == "*":
        return []
    ops = _CIGAR_RE.findall(text)
    if "".join(n + op for n, op in ops) != text:
        raise ValueError(f"malformed CIGAR: {text!r}")
    return [(_CIGAR_OPS.index(op), int(n)) for n, op in ops]


def parse_sam_line(line: str | bytes, header: AlignmentHeader) -> AlignmentRecord:
    """Parse one SAM alignment line, resolving reference names through ``header``."""
    if isinstance(line, bytes):
        line = line.decode("utf-8")
    fields = line.rstrip("\r\n").split("\t")
    if len(fields) < 11:
        raise ValueError(f"SAM line has {len(fields)} fields, expected at least 11")
    qname, flag, rname, pos, mapq, cigar, rnext, pnext, tlen, seq, qual = fields[:11]
    try:
        ref_id = _reference_index(header, rname)
        if rnext == "=":
            next_ref_id = ref_id
        else:
            next_ref_id = _reference_index(header, rnext)
        return AlignmentRecord(
            qname=qname.encode("utf-8"),
            flag=int(flag),
            ref_id=ref_id,
            pos=int(pos) - 1,
            mapq=int(mapq),
            cigar=_parse_cigar(cigar),
            next_ref_id=next_ref_id,
            next_pos=int(pnext) - 1,
            tlen=int(tlen),
            seq=b"" if seq == "*" else seq.encode("ascii"),
            qual=None if qual == "*" else bytes(c - 33 for c in qual.encode("ascii")),
            tags=b"".join(_encode_tag(tag) for tag in fields[11:] if tag),
        )
    except (TypeError, UnicodeEncodeError) as exc:
        raise ValueError(f"malformed SAM line: {line!r}") from exc


def _reg2bin(beg: int, end: int) -> int:
    end -= 1
    for shift, offset in ((14, 4681), (17, 585), (20, 73), (23, 9), (26, 1)):
        if beg >> shift == end >> shift:
            return offset + (beg >> shift)
    return 0


def encode_bam_record(record: AlignmentRecord) -> bytes:
    """Encode a record in BAM binary form, without the leading block size."""
    name = record.qname + b"\0"
    if len(name) > 255:
        raise ValueError("read name is too long for BAM")
    l_seq = len(record.seq)
    qual = record.qual if record.qual is not None else b"\xff" * l_seq
    if len(qual) != l_seq:
        raise ValueError("quality length does not match sequence length")
    ref_len = sum(length for op, length in record.cigar if op in _REF_CONSUMING)
    bin_ = _reg2bin(record.pos, record.pos + max(ref_len, 1))
    codes = [_SEQ_LOOKUP.get(base, 15) for base in record.seq.upper()]
    if len(codes) % 2:
        codes.append(0)
    packed = bytes(high << 4 | low for high, low in zip(codes[0::2], codes[1::2]))
    cigar = b"".join(struct.pack("<I", length << 4 | op) for op, length in record.cigar)
    core = _CORE.pack(
        record.ref_id,
        record.pos,
        len(name),
        record.mapq,
        bin_,
        len(record.cigar),
        record.flag,
        l_seq,
        record.next_ref_id,
        record.next_pos,
        record.tlen,
    )
    return core + name + cigar + packed + bytes(qual) + record.tags


def decode_bam_record(data: bytes) -> AlignmentRecord:
    """Decode a BAM record given without its leading block size."""
    data = bytes(data)
    if len(data) < _CORE.size:
        raise ValueError("BAM record is truncated")
    (ref_id, pos, l_name, mapq, _bin, n_cigar, flag, l_seq,
     next_ref_id, next_pos, tlen) = _CORE.unpack_from(data, 0)
    offset = _CORE.size
    n_packed = (l_seq + 1) // 2
    if len(data) < offset + l_name + 4 * n_cigar + n_packed + l_seq:
        raise ValueError("BAM record is truncated")
    qname = data[offset:offset + l_name - 1]
    offset += l_name
    cigar = [
        (value & 0xF, value >> 4)
        for (value,) in struct.iter_unpack("<I", data[offset:offset + 4 * n_cigar])
    ]
    offset += 4 * n_cigar
    bases = bytearray()
    for byte in data[offset:offset + n_packed]:
        bases.append(_SEQ_CODES[byte >> 4])
        bases.append(_SEQ_CODES[byte & 0xF])
    offset += n_packed
    qual = data[offset:offset + l_seq]
    offset += l_seq
    return AlignmentRecord(
        qname=qname,
        flag=flag,
        ref_id=ref_id,
        pos=pos,
        mapq=mapq,
        cigar=cigar,
        next_ref_id=next_ref_id,
        next_pos=next_pos,
        tlen=tlen,
        seq=bytes(bases[:l_seq]),
        qual=None if not qual or qual[0] == 0xFF else qual,
        tags=data[offset:],
    )


class AlignmentReader:
    """Iterates the records of a SAM or BAM file; the format is detected from content."""

    def __init__(self, path) -> None:
        self.path = Path(path)
        with open(self.path, "rb") as probe:
            magic = probe.read(2)
        self._pending: bytes | None = None
        self._binary = magic == b"\x1f\x8b"
        self._stream: BinaryIO
        if self._binary:
            self._stream = gzip.open(self.path, "rb")
            try:
                self.header = self._read_bam_header()
            except BaseException:
                self._stream.close()
                raise
        else:
            self._stream = open(self.path, "rb")
            self.header = self._read_sam_header()

    def _read_exact(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) != size:
            raise ValueError(f"unexpected end of BAM file {self.path}")
        return data

    def _read_bam_header(self) -> AlignmentHeader:
        if self._stream.read(4) != BAM_MAGIC:
            raise ValueError(f"not a BAM file: {self.path}")
        (l_text,) = struct.unpack("<i", self._read_exact(4))
        text = self._read_exact(l_text).rstrip(b"\0").decode("utf-8")
        (n_ref,) = struct.unpack("<i", self._read_exact(4))
        references = []
        for _ in range(n_ref):
            (l_name,) = struct.unpack("<i", self._read_exact(4))
            name = self._read_exact(l_name).rstrip(b"\0").decode("utf-8")
            (length,) = struct.unpack("<i", self._read_exact(4))
            references.append((name, length))
        return AlignmentHeader(text, references)

    def _read_sam_header(self) -> AlignmentHeader:
        lines = []
        for line in self._stream:
            if line.startswith(b"@"):
                lines.append(line.decode("utf-8"))
            else:
                self._pending = line
                break
        text = "".join(lines)
        return AlignmentHeader(text, _references_from_text(text))

    def __iter__(self) -> Iterator[AlignmentRecord]:
        if self._binary:
            while True:
                prefix = self._stream.read(4)
                if not prefix:
                    return
                if len(prefix) != 4:
                    raise ValueError(f"unexpected end of BAM file {self.path}")
                (size,) = struct.unpack("<i", prefix)
                yield decode_bam_record(self._read_exact(size))
        else:
            if self._pending is not None:
                pending, self._pending = self._pending, None
                if pending.strip():
                    yield parse_sam_line(pending, self.header)
            for line in self._stream:
                if line.strip():
                    yield parse_sam_line(line, self.header)

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> AlignmentReader:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class BamWriter:
    """Writes records to a BGZF-compressed BAM file."""

    def __init__(self, path, header: AlignmentHeader) -> None:
        self._file = open(path, "wb")
        self._buffer = bytearray()
        self._closed = False
        text = header.text.encode("utf-8")
        parts = [BAM_MAGIC, struct.pack("<i", len(text)), text,
                 struct.pack("<i", len(header.references))]
        for name, length in header.references:
            encoded = name.encode("utf-8") + b"\0"
            parts += [struct.pack("<i", len(encoded)), encoded, struct.pack("<i", length)]
        self._write(b"".join(parts))

    def _write(self, data: bytes) -> None:
        self._buffer.extend(data)
        while len(self._buffer) >= _BLOCK_INPUT:
            block = bytes(self._buffer[:_BLOCK_INPUT])
            del self._buffer[:_BLOCK_INPUT]
            self._write_block(block)

    def _write_block(self, data: bytes) -> None:
        compressor = zlib.compressobj(6, zlib.DEFLATED, -15)
        cdata = compressor.compress(data) + compressor.flush()
        bsize = 18 + len(cdata) + 8 - 1
        head = struct.pack("<4BIBBHBBHH", 0x1F, 0x8B, 8, 4, 0, 0, 0xFF, 6, 66, 67, 2, bsize)
        tail = struct.pack("<II", zlib.crc32(data) & 0xFFFFFFFF, len(data))
        self._file.write(head + cdata + tail)

    def write(self, record: AlignmentRecord) -> None:
        if self._closed:
            raise ValueError("write to a closed BAM writer")
        data = encode_bam_record(record)
        self._write(struct.pack("<i", len(data)) + data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._buffer:
            self._write_block(bytes(self._buffer))
            self._buffer.clear()
        self._file.write(BGZF_EOF)
        self._file.close()

    def __enter__(self) -> BamWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()
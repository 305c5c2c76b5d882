# umicheck

`umicheck` looks for sequencing reads whose UMI has leaked into the read
sequence. It takes each read's UMI from the read header and searches for it
in the sequence. Reads whose sequence contains the UMI are counted as
"with UMI". The rest are counted as "without UMI".

The UMI is the text after the last `:` or `_` in the first whitespace-separated
word of the header, for example `READ_12345:ACGTACGTACGT`. The UMI is
upper-cased before the search. The read sequence is compared as it stands.
An `N` in either the UMI or the read always counts as a mismatch.

## Supported inputs

The input type is chosen from the file name. Case does not matter.

- FASTQ: `.fq`, `.fastq`
- gzipped FASTQ: `.fq.gz`, `.fastq.gz`
- BAM: `.bam`
- SAM: `.sam`

FASTQ files are read as plain or gzipped text, whichever the content turns
out to be. SAM and BAM files are told apart by their content in the same way.

## Installation

```
pip install .
```

## Command-line usage

```
umicheck -i reads.fastq.gz -m 1 -l 12 -o filtered
```

| Option | Meaning | Default |
| --- | --- | --- |
| `-i`, `--input` | Input file (FASTQ, FASTQ.gz, BAM or SAM) | required |
| `-m`, `--mismatches` | Mismatches allowed when finding the UMI in the read (0 to 3) | 0 |
| `-l`, `--umi-length` | UMI length in base pairs | 12 |
| `-o`, `--output` | Output file prefix. Without it, no files are written | none |
| `-t`, `--threads` | Accepted for compatibility. Processing always runs in one thread | 4 |
| `-v`, `--verbose` | Also print the elapsed time | off |
| `-V`, `--version` | Print the version and exit | |

A mismatch count outside 0 to 3 is rejected when the arguments are parsed.
An unsupported file name, an unreadable file, malformed input, or a header
UMI of the wrong length makes the command print `Error: ...` to standard
error and exit with status 1.

### Output files

With `-o PREFIX`, two files are written:

- `PREFIX.<ext>` holds the reads whose sequence does **not** contain the UMI.
- `PREFIX.removed.<ext>` holds the reads whose sequence **does** contain the UMI.

The extension follows the input type: `fq`, `fq.gz`, `bam` or `sam`. If the
prefix already ends with a matching extension, that extension is removed
first. For example, `-o out.fastq` gives `out.fq` and `out.removed.fq`.
FASTQ outputs whose name ends in `.gz` are gzip-compressed.

For SAM and BAM inputs, both outputs are always written in BAM format, using
the input's header. A SAM input therefore gives BAM content in files named
`.sam`.

An empty FASTQ input produces only an empty `PREFIX.<ext>` file.

### Summary line

The command prints one tab-separated line to standard output. The columns are:

```
<input file name>  <total>  <with UMI>  <% with>  <without UMI>  <% without>
```

The percentages have two decimal places. With `--verbose`, a second line
follows: `Elapsed: <seconds>s`.

## Library usage

```python
from umicheck.umi import extract_umi_from_header
from umicheck.matcher import hamming_distance, is_umi_in_read
from umicheck.processing import process_fastq, process_bam

umi = extract_umi_from_header(b"READ_12345:ACGTACGTACGT", 12)
assert is_umi_in_read(umi, b"GGGGACGTACGAACGTGGGG", 1)
assert hamming_distance(b"ACGT", b"ACGA") == 1

total, with_umi, without_umi = process_fastq("reads.fastq", None, None, 1, 12)
```

- `umicheck.umi.extract_umi_from_header(header, expected_length)` returns the
  upper-cased UMI as bytes. It returns `None` when the header is not valid
  UTF-8 or is empty. It raises `UmiLengthError`, a `ValueError`, when the UMI
  has a different length.
- `umicheck.matcher.hamming_distance(seq1, seq2)` counts differing positions
  of two equal-length sequences. It raises `ValueError` if their lengths differ.
- `umicheck.matcher.is_umi_in_read(umi, read, max_mismatches)` reports whether
  some window of the read is within `max_mismatches` of the UMI.
- `umicheck.processing.process_fastq(...)` and `process_bam(...)` take the
  input path, the kept and removed output paths (either may be `None`), the
  mismatch count and the UMI length. Each returns
  `(total, with_umi, without_umi)`.
- `umicheck.processing.read_fastq(path)` yields `FastqRecord` objects.
- `umicheck.alignment` has `AlignmentReader` for iterating the records of a
  SAM or BAM file and `BamWriter` for writing BGZF-compressed BAM files.
- `umicheck.cli.run(Args(...))` returns the summary line without printing it.

## Limitations

- All processing runs in a single thread. `--threads` has no effect.
- SAM output is not written. Alignment inputs always produce BAM output.
- BAM files are read and written sequentially. No index (`.bai`) is read or
  created.
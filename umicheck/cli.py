"""Command-line entry point: report how many reads carry their header UMI in the sequence."""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from umicheck.processing import process_bam, process_fastq

__all__ = ["FileType", "Args", "build_parser", "run", "main"]

MAX_MISMATCHES = 3


class FileType(Enum):
    """Input formats recognised by file name suffix."""

    FASTQ = "fastq"
    FASTQ_GZ = "fastq.gz"
    BAM = "bam"
    SAM = "sam"

    @classmethod
    def from_path(cls, path) -> FileType:
        """Determine the file type from the suffix of ``path``'s file name.

        Raises ``ValueError`` for names without a recognised suffix.
        """
        name = Path(path).name
        if name in ("", ".", ".."):
            raise ValueError("Invalid file name")
        fname = name.lower()
        if fname.endswith((".fq.gz", ".fastq.gz")):
            return cls.FASTQ_GZ
        if fname.endswith((".fq", ".fastq")):
            return cls.FASTQ
        if fname.endswith(".bam"):
            return cls.BAM
        if fname.endswith(".sam"):
            return cls.SAM
        raise ValueError(f"Unsupported file type: {fname}")

    def suffix_info(self) -> tuple[str, tuple[str, ...]]:
        """Return the canonical suffix and the accepted suffix variants."""
        return _SUFFIXES[self]

    def build_output_paths(self, out_prefix) -> tuple[Path, Path]:
        """Return ``(matched_path, removed_path)`` derived from ``out_prefix``."""
        suffix, candidates = self.suffix_info()
        base = str(out_prefix)
        found = next((c for c in candidates if base.endswith(c)), None)
        if found is not None:
            while base.endswith(found):
                base = base[: -len(found)]
        return Path(f"{base}.{suffix}"), Path(f"{base}.removed.{suffix}")


_SUFFIXES = {
    FileType.FASTQ: ("fq", (".fq", ".fastq")),
    FileType.FASTQ_GZ: ("fq.gz", (".fq.gz", ".fastq.gz")),
    FileType.BAM: ("bam", (".bam",)),
    FileType.SAM: ("sam", (".sam",)),
}


@dataclass
class Args:
    """Options of one run."""

    input: Path
    mismatches: int = 0
    umi_length: int = 12
    output: Path | None = None
    threads: int = 4
    verbose: bool = False


def _mismatch_count(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from exc
    if not 0 <= value <= MAX_MISMATCHES:
        raise argparse.ArgumentTypeError(
            f"{value} is not in 0..={MAX_MISMATCHES}"
        )
    return value


def _program_version() -> str:
    try:
        return version("umicheck")
    except PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="umicheck",
        description="UMI presence validator - checks if UMI from header exists in read",
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {_program_version()}"
    )
    parser.add_argument(
        "-i", "--input", type=Path, required=True,
        help="Input file (FASTQ, FASTQ.gz, BAM, or SAM)",
    )
    parser.add_argument(
        "-m", "--mismatches", type=_mismatch_count, default=0,
        help="Maximum number of mismatches allowed when finding UMI in read (<=3)",
    )
    parser.add_argument(
        "-l", "--umi-length", type=int, default=12,
        help="UMI length in base pairs",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Optional output file prefix (suffix will be derived from the input). "
             "If not provided, no output files will be written.",
    )
    parser.add_argument(
        "-t", "--threads", type=int, default=4,
        help="Number of threads for parallel processing",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Verbose output (show elapsed time)",
    )
    return parser


def _percent(part: int, total: int) -> float:
    return part / total * 100.0 if total > 0 else 0.0


def run(args: Args) -> str:
    """Process the input described by ``args`` and return the summary line."""
    if args.mismatches > MAX_MISMATCHES:
        raise ValueError(f"Maximum allowed mismatches is {MAX_MISMATCHES}")

    input_path = Path(args.input)
    file_type = FileType.from_path(input_path)

    if args.output is not None:
        clean_output, removed_output = file_type.build_output_paths(args.output)
    else:
        clean_output = removed_output = None

    start = time.perf_counter()
    process = (
        process_fastq
        if file_type in (FileType.FASTQ, FileType.FASTQ_GZ)
        else process_bam
    )
    total, with_umi, without_umi = process(
        input_path, clean_output, removed_output, args.mismatches, args.umi_length
    )
    elapsed = time.perf_counter() - start

    fname = input_path.name or str(input_path)
    output = (
        f"{fname}\t{total}\t{with_umi}\t{_percent(with_umi, total):.2f}"
        f"\t{without_umi}\t{_percent(without_umi, total):.2f}"
    )
    if args.verbose:
        output += f"\nElapsed: {elapsed:.3f}s"
    return output


def main(argv=None) -> int:
    """Parse ``argv``, run, print the summary; return the exit status."""
    namespace = build_parser().parse_args(argv)
    args = Args(
        input=namespace.input,
        mismatches=namespace.mismatches,
        umi_length=namespace.umi_length,
        output=namespace.output,
        threads=namespace.threads,
        verbose=namespace.verbose,
    )
    try:
        output = run(args)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
"""
Per-file scan orchestrator for asciify.

Coordinates input acquisition and scanning for one file, and sums the
results of many files.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Iterable, List, Optional

from asciify.scanner import ScanOptions, ScanResult, scan
from asciify.sources import InputUnavailable, read_file, read_pdf_streams

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit codes."""
    OK = 0             # Every selected file was scanned
    INPUT_ERROR = 1    # At least one file could not be read
    USAGE_ERROR = 2    # Bad arguments or nothing to scan


@dataclass
class BufferResult:
    """Scan result for one buffer of a file."""
    label: str
    result: ScanResult


@dataclass
class FileResult:
    """Result of scanning one file."""
    path: Path
    buffers: List[BufferResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.INPUT_ERROR if self.error else ExitCode.OK

    @property
    def errored(self) -> bool:
        """Return True if the file could not be read."""
        return self.error is not None

    @property
    def narrow_count(self) -> int:
        return sum(b.result.narrow_count for b in self.buffers)

    @property
    def wide_count(self) -> int:
        return sum(b.result.wide_count for b in self.buffers)


@dataclass
class Totals:
    """Counters summed over many files."""
    files: int = 0
    errors: int = 0
    narrow_runs: int = 0
    wide_runs: int = 0

    @classmethod
    def of(cls, results: Iterable[FileResult]) -> "Totals":
        totals = cls()
        for r in results:
            totals.files += 1
            if r.errored:
                totals.errors += 1
            totals.narrow_runs += r.narrow_count
            totals.wide_runs += r.wide_count
        return totals


def process_file(
    path: Path,
    options: ScanOptions,
    pdf_streams: bool = False,
) -> FileResult:
    """
    Read and scan one file.

    Args:
        path: File to scan.
        options: Scan configuration.
        pdf_streams: Scan each decoded PDF stream instead of the raw bytes.

    Returns:
        FileResult with one BufferResult per scanned buffer, or with
        ``error`` set when the input could not be read.
    """
    try:
        if pdf_streams:
            inputs = read_pdf_streams(path)
        else:
            inputs = [read_file(path)]
    except InputUnavailable as e:
        logger.debug("Skipping %s: %s", path, e)
        return FileResult(path=path, error=str(e))

    result = FileResult(path=path)
    for buf in inputs:
        result.buffers.append(BufferResult(label=buf.label, result=scan(buf.data, options)))

    logger.debug(
        "%s: %d narrow, %d wide runs",
        path, result.narrow_count, result.wide_count,
    )
    return result


def worst_exit_code(results: Iterable[FileResult]) -> ExitCode:
    """Return the most severe exit code among *results*."""
    worst = ExitCode.OK
    for r in results:
        if r.exit_code.value > worst.value:
            worst = r.exit_code
    return worst

"""
Output for asciify.

Writes per-file run text to the console or to files, and generates the
JSON report and the debug summary.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from asciify.core import FileResult, Totals
from asciify.scanner import format_lines
from asciify.selection import Selection, SelectedFile

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = ".txt"


# ANSI color codes
class Colors:
    """ANSI escape codes for terminal colors."""
    GREEN = "\033[92m"
    RED = "\033[91m"
    RESET = "\033[0m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        # Disable if NO_COLOR env var is set or not a TTY
        if os.environ.get("NO_COLOR"):
            return False
        if not sys.stdout.isatty():
            return False
        # Enable ANSI on Windows 10+
        if sys.platform == "win32":
            os.system("")
        return True


def render_text(result: FileResult, annotate_offsets: bool = False) -> str:
    """Render all runs of a file, one per line, each newline-terminated."""
    return "".join(format_lines(b.result.runs, annotate_offsets) for b in result.buffers)


class ConsoleSink:
    """Writes run text to a stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def write(self, selected: SelectedFile, text: str) -> None:
        self.stream.write(text)


class BesideFileSink:
    """Writes run text to <file>.txt next to the input."""

    def target(self, selected: SelectedFile) -> Path:
        return selected.folder / (selected.name + OUTPUT_SUFFIX)

    def write(self, selected: SelectedFile, text: str) -> None:
        target = self.target(selected)
        target.write_text(text, encoding="utf-8")
        logger.debug("Wrote %s", target)


class FlattenedSink:
    """
    Writes run text into one directory with flattened names.

    A file found at <start>/dir1/dir2/name is written as
    <write_dir>/dir1-dir2-name.txt.
    """

    def __init__(self, start_folder: Path, write_dir: Path) -> None:
        self.start_folder = start_folder
        self.write_dir = write_dir

    def flattened_name(self, selected: SelectedFile) -> str:
        try:
            parts = list(selected.folder.relative_to(self.start_folder).parts)
        except ValueError:
            parts = []
        return "-".join(parts + [selected.name]) + OUTPUT_SUFFIX

    def target(self, selected: SelectedFile) -> Path:
        return self.write_dir / self.flattened_name(selected)

    def write(self, selected: SelectedFile, text: str) -> None:
        target = self.target(selected)
        logger.debug("Writing %s to %s", selected.path, target)
        target.write_text(text, encoding="utf-8")


def format_json(results: Sequence[FileResult]) -> str:
    """
    Format scan results as JSON. Run offsets are always included.

    Args:
        results: FileResults in selection order.

    Returns:
        JSON string representation.
    """
    totals = Totals.of(results)
    output = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "summary": {
            "files": totals.files,
            "errors": totals.errors,
            "narrow_runs": totals.narrow_runs,
            "wide_runs": totals.wide_runs,
        },
        "files": [],
    }

    for result in results:
        file_report = {
            "path": str(result.path),
            "status": "error" if result.errored else "ok",
        }

        if result.error:
            file_report["error"] = result.error

        file_report["buffers"] = [
            {
                "label": b.label,
                "runs": [
                    {
                        "offset": r.start_offset,
                        "kind": r.kind.value,
                        "text": r.text,
                    }
                    for r in b.result.runs
                ],
            }
            for b in result.buffers
        ]

        output["files"].append(file_report)

    return json.dumps(output, indent=2, ensure_ascii=False)


def format_summary(selection: Selection, results: Sequence[FileResult]) -> str:
    """
    Format the debug summary: included and excluded files, run counts.

    Args:
        selection: Files chosen and skipped by the selection step.
        results: FileResults of the scanned files.

    Returns:
        Text string representation.
    """
    lines: List[str] = []
    use_color = Colors.enabled()
    totals = Totals.of(results)

    lines.append(
        f"Processed {totals.files} files in {selection.directories} directories:"
    )
    for result in results:
        if result.errored:
            marker = f"{Colors.RED}[ERROR]{Colors.RESET}" if use_color else "[ERROR]"
            lines.append(f"{marker} {result.path}")
        else:
            lines.append(str(result.path))

    lines.append("Excluded Files:")
    for path in selection.excluded:
        lines.append(str(path))

    if use_color:
        lines.append(
            f"Found {Colors.GREEN}{totals.narrow_runs}{Colors.RESET} ASCII/UTF-8 strings "
            f"and {Colors.GREEN}{totals.wide_runs}{Colors.RESET} UTF-16 strings."
        )
    else:
        lines.append(
            f"Found {totals.narrow_runs} ASCII/UTF-8 strings "
            f"and {totals.wide_runs} UTF-16 strings."
        )

    return "\n".join(lines)

"""
Command-line interface for asciify.

Handles argument parsing, file selection, and orchestrates scanning and
output.
"""

import argparse
import logging
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional

from asciify import __version__
from asciify.core import ExitCode, FileResult, process_file, worst_exit_code
from asciify.report import (
    BesideFileSink,
    ConsoleSink,
    FlattenedSink,
    format_json,
    format_summary,
    render_text,
)
from asciify.scanner import DEFAULT_MIN_LENGTH, ScanOptions
from asciify.selection import resolve_input, select_files
from asciify.vetting import load_terms

logger = logging.getLogger(__name__)

DESCRIPTION = """\
Extracts text from binary, including optionally UTF-8/16, with controls and
output options.

ASCII mode grabs lower-bit characters: tab, line feed and 0x20 - 0x7E.
UTF-8 mode accepts those and also recognizes valid UTF-8 characters.
UTF-16 mode finds big-endian double-byte strings of ASCII characters.

Simple usage: asciify -i <input file>
This extracts standard ASCII, six characters or longer, to the console.
"""


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="asciify",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Exit codes: 0=ok, 1=some inputs unreadable, 2=usage error",
    )

    parser.add_argument(
        "-i",
        dest="input",
        required=True,
        metavar="PATH",
        help="File name or mask to scan. A directory part replaces the current directory.",
    )

    parser.add_argument(
        "--min-len",
        type=int,
        default=DEFAULT_MIN_LENGTH,
        metavar="N",
        help=f"Minimum run length in characters (default: {DEFAULT_MIN_LENGTH}).",
    )

    parser.add_argument(
        "--utf8",
        action="store_true",
        help="Include valid UTF-8 characters. Lots of junk looks like UTF-8.",
    )

    parser.add_argument(
        "--utf16",
        action="store_true",
        help="Look for UTF-16 (BE) strings. Only handles ASCII-ish ones.",
    )

    parser.add_argument(
        "--alpha-ratio",
        type=int,
        default=0,
        metavar="N",
        help="Required percentage of alphanumerics, space, comma and period (default: 0, off). 80 reduces noise.",
    )

    parser.add_argument(
        "--suppress",
        action="append",
        dest="suppress_terms",
        metavar="TEXT",
        help="Drop runs exactly matching TEXT, case-insensitive (repeatable).",
    )

    parser.add_argument(
        "--suppress-file",
        type=Path,
        metavar="PATH",
        help="File of suppress terms, one per line.",
    )

    parser.add_argument(
        "--include",
        action="append",
        dest="include_terms",
        metavar="TEXT",
        help="Only keep runs containing TEXT, case-insensitive (repeatable).",
    )

    parser.add_argument(
        "--include-file",
        type=Path,
        metavar="PATH",
        help="File of include terms, one per line.",
    )

    parser.add_argument(
        "--offsets",
        action="store_true",
        help="Prefix each run with its starting byte offset in hex.",
    )

    parser.add_argument(
        "-r",
        dest="recurse",
        action="store_true",
        help="Recurse into subdirectories.",
    )

    parser.add_argument(
        "--skip-older-match",
        default="",
        metavar="TEXT",
        help=(
            "For files with dates or counters in their names, only scan the newest of "
            "those whose names agree up to TEXT (case-sensitive, per directory)."
        ),
    )

    parser.add_argument(
        "-o",
        dest="write_files",
        action="store_true",
        help="Write <file>.txt next to each input.",
    )

    parser.add_argument(
        "-p",
        dest="write_path",
        type=Path,
        metavar="DIR",
        help="Write output files to DIR, flattening dir1/dir2/file to dir1-dir2-file.txt. Implies -o.",
    )

    parser.add_argument(
        "-v",
        dest="verbose",
        action="store_true",
        help="Also write runs to stdout when writing files.",
    )

    parser.add_argument(
        "-d",
        dest="debug",
        action="store_true",
        help="Debug: log directories and file names, and print statistics.",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output a JSON report to stdout.",
    )

    parser.add_argument(
        "--pdf-streams",
        action="store_true",
        help="Treat inputs as PDFs and scan each decoded stream and embedded file.",
    )

    parser.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=1,
        metavar="N",
        help="Number of parallel workers (default: 1).",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_options(args: argparse.Namespace) -> ScanOptions:
    """Build scan options from parsed arguments."""
    return ScanOptions(
        min_length=args.min_len,
        enable_wide_unicode=args.utf8,
        enable_wide_run_detection=args.utf16,
        min_alpha_ratio_percent=args.alpha_ratio,
        suppress_terms=load_terms(args.suppress_terms, args.suppress_file),
        include_terms=load_terms(args.include_terms, args.include_file),
        annotate_offsets=args.offsets,
    )


def scan_files(
    paths: List[Path],
    options: ScanOptions,
    pdf_streams: bool,
    jobs: int,
) -> List[FileResult]:
    """Scan files, in parallel when jobs > 1, returning results in input order."""
    if jobs > 1 and len(paths) > 1:
        results: List[Optional[FileResult]] = [None] * len(paths)
        with ProcessPoolExecutor(max_workers=jobs) as executor:
            futures = {
                executor.submit(process_file, p, options, pdf_streams): i
                for i, p in enumerate(paths)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return results

    return [process_file(p, options, pdf_streams) for p in paths]


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    try:
        options = build_options(args)
        folder, mask = resolve_input(args.input)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.USAGE_ERROR.value

    if not folder.is_dir():
        print(f"Error: Folder not found: {folder}", file=sys.stderr)
        return ExitCode.USAGE_ERROR.value

    selection = select_files(
        folder,
        mask=mask,
        recurse=args.recurse,
        skip_older_match=args.skip_older_match,
    )
    if not selection.files:
        print(f"Error: No files matching {mask or '*'} found in {folder}.", file=sys.stderr)
        return ExitCode.USAGE_ERROR.value

    write_files = args.write_files or args.write_path is not None
    if args.write_path is not None and not args.write_path.is_dir():
        print(f"Error: Output folder not found: {args.write_path}", file=sys.stderr)
        return ExitCode.USAGE_ERROR.value

    results = scan_files(
        [f.path for f in selection.files],
        options,
        pdf_streams=args.pdf_streams,
        jobs=args.jobs,
    )

    if args.json_output:
        print(format_json(results))
    else:
        console = ConsoleSink()
        if args.write_path is not None:
            file_sink = FlattenedSink(folder, args.write_path)
        else:
            file_sink = BesideFileSink()

        for selected, result in zip(selection.files, results):
            if result.errored:
                print(f"Error: {result.error}", file=sys.stderr)
                continue
            logger.debug("File: %s in Folder: %s", selected.name, selected.folder)
            text = render_text(result, options.annotate_offsets)
            if not write_files or args.verbose:
                console.write(selected, text)
            if write_files:
                try:
                    file_sink.write(selected, text)
                except OSError as e:
                    logger.error("Write failed for %s: %s", selected.path, e)
                    print(f"Error: File write error for {selected.path}: {e}", file=sys.stderr)

    if args.debug:
        # Keep stdout a single JSON document.
        summary_stream = sys.stderr if args.json_output else sys.stdout
        print(format_summary(selection, results), file=summary_stream)

    return worst_exit_code(results).value


if __name__ == "__main__":
    sys.exit(main())

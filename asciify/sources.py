"""
Input acquisition for asciify.

Reads whole files into memory for scanning. In PDF mode, each decoded
stream and each embedded file of the document becomes its own buffer, so
text hidden behind Flate or other filters is visible to the scanner.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Set

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


class InputUnavailable(Exception):
    """Raised when an input's bytes cannot be obtained."""
    pass


@dataclass
class InputBuffer:
    """One buffer to scan, with a label naming where it came from."""
    label: str
    data: bytes


def read_file(path: Path) -> InputBuffer:
    """
    Read a file fully into memory.

    Raises:
        InputUnavailable: If the file cannot be read.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise InputUnavailable(f"Failed to read {path}: {e}") from e
    return InputBuffer(label=path.name, data=data)


def read_pdf_streams(path: Path) -> List[InputBuffer]:
    """
    Decode every stream and embedded file of a PDF.

    Args:
        path: Path to the PDF file.

    Returns:
        One buffer per non-empty stream, labelled "xref:N", followed by one
        per embedded file not already seen as a stream, labelled
        "embfile:NAME".

    Raises:
        InputUnavailable: If the document cannot be opened.
    """
    try:
        doc = fitz.open(str(path))
    except Exception as e:
        raise InputUnavailable(f"Failed to open PDF {path}: {e}") from e

    buffers: List[InputBuffer] = []
    try:
        seen: Set[bytes] = set()
        _collect_streams(doc, buffers, seen)
        _collect_embedded(doc, buffers, seen)
    finally:
        doc.close()

    logger.debug("%s: %d decoded streams", path, len(buffers))
    return buffers


def _collect_streams(doc: fitz.Document, buffers: List[InputBuffer], seen: Set[bytes]) -> None:
    """Decode all xref streams in object order."""
    for xref in range(1, doc.xref_length()):
        try:
            if not doc.xref_is_stream(xref):
                continue
            stream = doc.xref_stream(xref)
        except Exception as e:
            # A broken filter on one object should not hide the others.
            logger.debug("xref %d: stream not decodable: %s", xref, e)
            continue
        if stream:
            seen.add(stream)
            buffers.append(InputBuffer(label=f"xref:{xref}", data=stream))


def _collect_embedded(doc: fitz.Document, buffers: List[InputBuffer], seen: Set[bytes]) -> None:
    """Add embedded files whose contents were not already collected."""
    for i in range(doc.embfile_count()):
        try:
            info = doc.embfile_info(i)
            content = doc.embfile_get(i)
        except Exception as e:
            logger.debug("embedded file %d not readable: %s", i, e)
            continue
        if content and content not in seen:
            seen.add(content)
            name = info.get("name") or str(i)
            buffers.append(InputBuffer(label=f"embfile:{name}", data=content))

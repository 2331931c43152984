"""
asciify: extract human-readable text runs from binary files.

Finds plain low-bit ASCII, valid UTF-8, and big-endian double-byte
(UTF-16-like) strings, filtered by length, readability, and optional
suppress/include terms.

Inspired by the 1985-86 ASCII.exe program from System Enhancement
Associates.
"""

__version__ = "0.1.0"

from asciify.scanner import AcceptedRun, EncodingKind, ScanOptions, ScanResult, iter_runs, scan

__all__ = [
    "AcceptedRun",
    "EncodingKind",
    "ScanOptions",
    "ScanResult",
    "iter_runs",
    "scan",
    "__version__",
]

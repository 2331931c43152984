"""
Run assembly for asciify.

Drives the narrow decoder and the wide run detector over one buffer,
collecting decoded units into runs and handing each closed run to the
vetting policy. Wide detection takes priority at every position: a narrow
decoder reading the interior zero bytes of a wide run would split it into
one-character fragments.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import FrozenSet, Iterable, Iterator, List, Optional

from asciify.decoder import decode_narrow, decode_wide_run
from asciify.vetting import normalize_terms, passes_structure, vet

logger = logging.getLogger(__name__)

DEFAULT_MIN_LENGTH = 6
ADJACENT_MIN_LENGTH = 3
RUN_SEPARATOR = "\n"


class EncodingKind(Enum):
    """How the characters of a run were encoded."""
    NARROW = "narrow"
    WIDE = "wide"


class State(IntEnum):
    """Run assembler states."""
    IDLE = 0
    IN_RUN = 1


@dataclass
class ScanOptions:
    """Configuration for scanning one buffer."""
    min_length: int = DEFAULT_MIN_LENGTH
    enable_wide_unicode: bool = False
    enable_wide_run_detection: bool = False
    min_alpha_ratio_percent: int = 0
    suppress_terms: FrozenSet[str] = field(default_factory=frozenset)
    include_terms: FrozenSet[str] = field(default_factory=frozenset)
    annotate_offsets: bool = False

    def __post_init__(self) -> None:
        # One-character runs are never useful; fall back to the default.
        if self.min_length <= 1:
            self.min_length = DEFAULT_MIN_LENGTH
        if not 0 <= self.min_alpha_ratio_percent <= 100:
            raise ValueError(
                f"Alpha ratio must be between 0 and 100, got {self.min_alpha_ratio_percent}"
            )
        self.suppress_terms = normalize_terms(self.suppress_terms)
        self.include_terms = normalize_terms(self.include_terms)


@dataclass(frozen=True)
class AcceptedRun:
    """A run that passed vetting."""
    start_offset: int
    text: str
    kind: EncodingKind = EncodingKind.NARROW

    def to_line(self, annotate_offsets: bool = False) -> str:
        """Render the run as one output line, without the trailing newline."""
        if annotate_offsets:
            return f"{self.start_offset:08X}: {self.text}"
        return self.text

    def __str__(self) -> str:
        return self.text


@dataclass
class ScanResult:
    """All accepted runs from one buffer."""
    runs: List[AcceptedRun] = field(default_factory=list)

    @property
    def narrow_count(self) -> int:
        return sum(1 for r in self.runs if r.kind is EncodingKind.NARROW)

    @property
    def wide_count(self) -> int:
        return sum(1 for r in self.runs if r.kind is EncodingKind.WIDE)


@dataclass
class _Run:
    """Open run accumulator."""
    start_offset: Optional[int] = None
    parts: List[str] = field(default_factory=list)
    contains_wide_unit: bool = False

    @property
    def text(self) -> str:
        return "".join(self.parts)


class RunAssembler:
    """
    Two-state machine (IDLE / IN_RUN) over one buffer.

    At each cursor position the wide run detector is tried first (when
    enabled); if it declines, the narrow decoder decides. A wide run always
    closes the current run. An accepted narrow unit extends or opens a run,
    a rejected one closes it.
    """

    def __init__(self, buffer: bytes, options: ScanOptions) -> None:
        self.buffer = buffer
        self.options = options
        self.state = State.IDLE
        self.cursor = 0
        self._run = _Run()

    def __iter__(self) -> Iterator[AcceptedRun]:
        opts = self.options
        size = len(self.buffer)

        while self.cursor < size:
            if opts.enable_wide_run_detection:
                wide = decode_wide_run(self.buffer, self.cursor, opts.min_length)
                if wide.accepted:
                    accepted = self._absorb_wide(wide.text)
                    self.cursor = wide.cursor
                    if accepted is not None:
                        yield accepted
                    continue

            start = self.cursor
            unit = decode_narrow(self.buffer, start, opts.enable_wide_unicode)
            self.cursor = unit.cursor
            if unit.accepted:
                if self.state is State.IDLE:
                    self._run.start_offset = start
                    self.state = State.IN_RUN
                self._run.parts.append(unit.text)
            else:
                accepted = self._close()
                if accepted is not None:
                    yield accepted

        accepted = self._close()
        if accepted is not None:
            yield accepted

    def _absorb_wide(self, wide_text: str) -> Optional[AcceptedRun]:
        """Close the current run with a wide unit appended."""
        opts = self.options
        run = self._run
        narrow_text = run.text.strip()

        if self.state is State.IN_RUN and passes_structure(
            narrow_text,
            min(ADJACENT_MIN_LENGTH, opts.min_length),
            opts.min_alpha_ratio_percent,
        ):
            logger.warning(
                "Wide run at offset 0x%08X follows narrow text at 0x%08X: %r / %r",
                self.cursor, run.start_offset, narrow_text, wide_text,
            )
            run.parts = [narrow_text, RUN_SEPARATOR, wide_text]
        else:
            run.start_offset = self.cursor
            run.parts = [wide_text]

        run.contains_wide_unit = True
        self.state = State.IN_RUN
        return self._close()

    def _close(self) -> Optional[AcceptedRun]:
        """Close the current run, returning it if vetting accepts it."""
        run = self._run
        self._run = _Run()
        self.state = State.IDLE

        text = run.text
        if not text:
            return None

        opts = self.options
        if not vet(
            text,
            opts.min_length,
            opts.min_alpha_ratio_percent,
            opts.suppress_terms,
            opts.include_terms,
        ):
            return None

        kind = EncodingKind.WIDE if run.contains_wide_unit else EncodingKind.NARROW
        return AcceptedRun(start_offset=run.start_offset, text=text, kind=kind)


def iter_runs(buffer: bytes, options: Optional[ScanOptions] = None) -> Iterator[AcceptedRun]:
    """
    Lazily yield accepted runs from *buffer*.

    Each call starts a fresh scan; nothing is shared between calls.
    """
    if options is None:
        options = ScanOptions()
    return iter(RunAssembler(buffer, options))


def scan(buffer: bytes, options: Optional[ScanOptions] = None) -> ScanResult:
    """Scan *buffer* and collect every accepted run."""
    return ScanResult(runs=list(iter_runs(buffer, options)))


def format_lines(runs: Iterable[AcceptedRun], annotate_offsets: bool = False) -> str:
    """Join runs into newline-terminated output text."""
    return "".join(r.to_line(annotate_offsets) + RUN_SEPARATOR for r in runs)

"""
Tests for asciify.scanner
=========================
Run with:  pytest tests/test_scanner.py -v
"""

import logging

import pytest

from asciify.scanner import (
    AcceptedRun,
    EncodingKind,
    RunAssembler,
    ScanOptions,
    format_lines,
    iter_runs,
    scan,
)


def _wide(text: str, terminated: bool = True) -> bytes:
    data = b"".join(bytes([ord(c), 0]) for c in text)
    return data + (b"\x00\x00" if terminated else b"")


def _texts(buffer: bytes, **kwargs):
    return [r.text for r in iter_runs(buffer, ScanOptions(**kwargs))]


# ---------------------------------------------------------------------------
# ScanOptions
# ---------------------------------------------------------------------------

class TestScanOptions:
    def test_defaults(self):
        opts = ScanOptions()
        assert opts.min_length == 6
        assert not opts.enable_wide_unicode
        assert not opts.enable_wide_run_detection
        assert opts.min_alpha_ratio_percent == 0

    @pytest.mark.parametrize("value", [1, 0, -3])
    def test_small_min_length_falls_back(self, value):
        assert ScanOptions(min_length=value).min_length == 6

    def test_min_length_two_kept(self):
        assert ScanOptions(min_length=2).min_length == 2

    @pytest.mark.parametrize("value", [-1, 101])
    def test_ratio_out_of_range(self, value):
        with pytest.raises(ValueError):
            ScanOptions(min_alpha_ratio_percent=value)

    def test_terms_lowercased(self):
        opts = ScanOptions(suppress_terms=["ABC"], include_terms={"Def"})
        assert opts.suppress_terms == frozenset({"abc"})
        assert opts.include_terms == frozenset({"def"})


# ---------------------------------------------------------------------------
# Narrow runs
# ---------------------------------------------------------------------------

class TestNarrowRuns:
    def test_whole_buffer_is_one_run(self):
        runs = list(iter_runs(b"abcdef", ScanOptions(min_length=6)))
        assert len(runs) == 1
        assert runs[0].text == "abcdef"
        assert runs[0].start_offset == 0
        assert runs[0].kind is EncodingKind.NARROW

    def test_short_buffer_yields_nothing(self):
        assert _texts(b"abcde", min_length=6) == []

    def test_empty_buffer(self):
        assert _texts(b"") == []

    def test_hello_world(self):
        text = "Hello, World! This is ASCII text."
        assert _texts(text.encode("ascii")) == [text]

    def test_short_run_dropped_before_long_one(self):
        data = b"\x00\x01OK\x02abcdef"
        runs = list(iter_runs(data, ScanOptions(min_length=5)))
        assert [r.text for r in runs] == ["abcdef"]
        assert runs[0].start_offset == 5

    def test_run_ending_at_buffer_end(self):
        runs = list(iter_runs(b"\x00\x00abcdef", ScanOptions()))
        assert [(r.start_offset, r.text) for r in runs] == [(2, "abcdef")]

    def test_multiple_runs_with_offsets(self):
        data = b"first run\x00\xffsecond run\x01"
        runs = list(iter_runs(data, ScanOptions()))
        assert [(r.start_offset, r.text) for r in runs] == [
            (0, "first run"),
            (11, "second run"),
        ]

    def test_tabs_and_newlines_stay_in_run(self):
        assert _texts(b"line one\n\tline two") == ["line one\n\tline two"]

    def test_carriage_return_splits(self):
        assert _texts(b"line one\r\nline two") == ["line one", "\nline two"]


# ---------------------------------------------------------------------------
# UTF-8 runs
# ---------------------------------------------------------------------------

class TestUtf8Runs:
    @pytest.mark.parametrize("ch", ["é", "€", "😀"])
    def test_multibyte_joins_surrounding_text(self, ch):
        data = b"ab" + ch.encode("utf-8") + b"cd"
        runs = list(iter_runs(data, ScanOptions(min_length=5, enable_wide_unicode=True)))
        assert len(runs) == 1
        assert runs[0].text == "ab" + ch + "cd"
        assert len(runs[0].text) == 5

    def test_disabled_splits_run(self):
        data = b"ab" + "é".encode("utf-8") + b"cd"
        assert _texts(data, min_length=2) == ["ab", "cd"]

    def test_invalid_sequence_skips_one_byte(self):
        data = b"abc\xe2\x82def"
        runs = list(iter_runs(data, ScanOptions(min_length=3, enable_wide_unicode=True)))
        assert [(r.start_offset, r.text) for r in runs] == [(0, "abc"), (5, "def")]

    def test_truncated_sequence_at_end(self):
        data = b"abcdef\xe2\x82"
        assert _texts(data, enable_wide_unicode=True) == ["abcdef"]

    def test_excluded_category_splits_run(self):
        data = b"abcdef" + "\u200b".encode("utf-8") + b"ghijkl"
        assert _texts(data, enable_wide_unicode=True) == ["abcdef", "ghijkl"]


# ---------------------------------------------------------------------------
# Wide runs
# ---------------------------------------------------------------------------

class TestWideRuns:
    def test_hi(self):
        runs = list(iter_runs(b"H\x00i\x00\x00\x00", ScanOptions(
            min_length=2, enable_wide_run_detection=True,
        )))
        assert len(runs) == 1
        assert runs[0].text == "Hi"
        assert runs[0].kind is EncodingKind.WIDE
        assert runs[0].start_offset == 0

    def test_disabled_finds_nothing(self):
        assert _texts(b"H\x00i\x00\x00\x00", min_length=2) == []

    def test_too_short_for_min_length(self):
        assert _texts(b"H\x00i\x00\x00\x00", min_length=3, enable_wide_run_detection=True) == []

    def test_wide_run_after_binary(self):
        data = b"\x01\x02" + _wide("Widestring")
        runs = list(iter_runs(data, ScanOptions(enable_wide_run_detection=True)))
        assert [(r.start_offset, r.text, r.kind) for r in runs] == [
            (2, "Widestring", EncodingKind.WIDE),
        ]

    def test_truncated_terminator_yields_nothing(self):
        data = _wide("Hello", terminated=False) + b"\x00"
        assert _texts(data, min_length=2, enable_wide_run_detection=True) == []

    def test_unterminated_at_end_of_buffer(self):
        data = _wide("Hello", terminated=False)
        assert _texts(data, min_length=2, enable_wide_run_detection=True) == []

    def test_narrow_and_wide_in_one_buffer(self):
        data = b"narrow text\x00\x01" + _wide("wide text") + b"more narrow"
        runs = list(iter_runs(data, ScanOptions(enable_wide_run_detection=True)))
        assert [(r.text, r.kind) for r in runs] == [
            ("narrow text", EncodingKind.NARROW),
            ("wide text", EncodingKind.WIDE),
            ("more narrow", EncodingKind.NARROW),
        ]

    def test_adjacent_narrow_text_is_joined(self, caplog):
        data = b"\x01abcd" + _wide("Hello")
        opts = ScanOptions(min_length=5, enable_wide_run_detection=True)
        with caplog.at_level(logging.WARNING, logger="asciify.scanner"):
            runs = list(iter_runs(data, opts))
        assert len(runs) == 1
        assert runs[0].text == "abcd\nHello"
        assert runs[0].start_offset == 1
        assert runs[0].kind is EncodingKind.WIDE
        assert "follows narrow text" in caplog.text

    def test_short_adjacent_narrow_text_is_dropped(self):
        data = b"\x01ab" + _wide("Hello")
        runs = list(iter_runs(data, ScanOptions(min_length=5, enable_wide_run_detection=True)))
        assert [(r.start_offset, r.text) for r in runs] == [(3, "Hello")]

    def test_wide_run_vetted_with_filters(self):
        data = _wide("Hello World")
        opts = ScanOptions(enable_wide_run_detection=True, suppress_terms={"hello world"})
        assert list(iter_runs(data, opts)) == []


# ---------------------------------------------------------------------------
# Filters through the scanner
# ---------------------------------------------------------------------------

class TestFilters:
    def test_alpha_ratio(self):
        data = b"readable text\x00(){}[]<>+=\x00"
        assert _texts(data, min_alpha_ratio_percent=80) == ["readable text"]

    def test_include(self):
        data = b"alpha bravo\x00charlie delta\x00"
        assert _texts(data, include_terms={"DELTA"}) == ["charlie delta"]

    def test_suppress_wins_over_include(self):
        data = b"alpha bravo\x00charlie delta\x00"
        texts = _texts(data, include_terms={"a"}, suppress_terms={"Alpha Bravo"})
        assert texts == ["charlie delta"]


# ---------------------------------------------------------------------------
# Termination and laziness
# ---------------------------------------------------------------------------

class TestScanProperties:
    def test_every_byte_value_terminates(self):
        data = bytes(range(256)) * 4
        opts = ScanOptions(
            min_length=2,
            enable_wide_unicode=True,
            enable_wide_run_detection=True,
        )
        runs = list(iter_runs(data, opts))
        offsets = [r.start_offset for r in runs]
        assert offsets == sorted(offsets)
        assert all(0 <= o < len(data) for o in offsets)

    def test_cursor_reaches_end(self):
        assembler = RunAssembler(b"\xff\xfe\x80abc\xc3", ScanOptions(enable_wide_unicode=True))
        list(assembler)
        assert assembler.cursor == 7

    def test_iter_runs_is_lazy(self):
        gen = iter_runs(b"abcdef\x00ghijkl", ScanOptions())
        assert next(gen).text == "abcdef"
        assert next(gen).text == "ghijkl"
        with pytest.raises(StopIteration):
            next(gen)

    def test_each_call_restarts(self):
        data = b"abcdef\x00ghijkl"
        assert list(iter_runs(data)) == list(iter_runs(data))

    def test_default_options(self):
        assert [r.text for r in iter_runs(b"abcdef")] == ["abcdef"]


# ---------------------------------------------------------------------------
# Results and formatting
# ---------------------------------------------------------------------------

class TestResults:
    def test_counts(self):
        data = b"narrow text\x00\x01" + _wide("wide text") + b"more narrow"
        result = scan(data, ScanOptions(enable_wide_run_detection=True))
        assert result.narrow_count == 2
        assert result.wide_count == 1

    def test_offset_line(self):
        run = AcceptedRun(start_offset=0x1A, text="hello")
        assert run.to_line(True) == "0000001A: hello"
        assert run.to_line(False) == "hello"
        assert str(run) == "hello"

    def test_offset_line_uppercase_hex(self):
        run = AcceptedRun(start_offset=0xABCDEF, text="x")
        assert run.to_line(True) == "00ABCDEF: x"

    def test_format_lines(self):
        runs = [AcceptedRun(0, "one"), AcceptedRun(16, "two")]
        assert format_lines(runs) == "one\ntwo\n"
        assert format_lines(runs, annotate_offsets=True) == "00000000: one\n00000010: two\n"

    def test_format_result_runs(self):
        result = scan(b"abcdef\x00ghijkl", ScanOptions())
        assert format_lines(result.runs, True) == "00000000: abcdef\n00000007: ghijkl\n"

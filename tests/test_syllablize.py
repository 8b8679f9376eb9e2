"""Tests for the romaji syllablizer and lyric normalization."""

from __future__ import annotations

import pytest

from karaoke_timer.lyrics.syllablize import (
    DEFAULT_DICTIONARY,
    prepare_lyrics,
    strip_cr,
    syllablize,
    unmacron,
)


SAMPLES = [
    "tokyou",
    "kitte",
    "ippai",
    "kidzuite",
    "sora (kaze)",
    '"hikari" no naka',
    "ai ai",
    "KYOU mo ashita mo",
    "nanika\nkokoro ni",
    '("hoshi")',
    '""sora',
    'fj("ho',
]


class TestLevelZero:
    @pytest.mark.parametrize("text", SAMPLES + ["", "ka|mi", "  spaced  "])
    def test_identity(self, text):
        assert syllablize(text, 0) == text


class TestLevelOne:
    def test_boundary_before_digraph(self):
        assert syllablize("tokyou", 1) == "to|kyou"

    def test_leading_marker_stripped(self):
        assert syllablize("kyou", 1) == "kyou"

    def test_geminate_prefix_kept_with_syllable(self):
        assert syllablize("kitte", 1) == "ki|tte"

    def test_doubled_p_merged(self):
        assert syllablize("ippai", 1) == "i|ppai"

    def test_dzu_merged(self):
        assert syllablize("kidzuite", 1) == "ki|dzui|te"

    def test_marker_moved_before_parenthesis(self):
        assert syllablize("sora (kaze)", 1) == "so|ra |(ka|ze)"

    def test_marker_moved_before_quote(self):
        assert syllablize('"hikari"', 1) == '"hi|ka|ri"'

    def test_marker_moved_before_bracket_quote_run(self):
        assert syllablize('("hoshi")', 1) == '("ho|shi")'
        assert syllablize('fj("ho', 1) == 'fj|("ho'

    def test_marker_moved_before_double_quote_run(self):
        assert syllablize('""sora', 1) == '""so|ra'
        assert syllablize('w""pen', 1) == 'w|""pen'

    def test_boundary_after_space(self):
        assert syllablize("ai ai", 1) == "ai |ai"

    def test_case_insensitive(self):
        assert syllablize("ToKyou", 1) == "To|Kyou"

    def test_lines_processed_separately(self):
        assert syllablize("kana\nsora", 1) == "ka|na\nso|ra"

    def test_custom_dictionary(self):
        assert syllablize("abab", 1, dictionary=["ab"]) == "ab|ab"

    def test_dictionary_has_digraphs(self):
        for entry in ("kyo", "sha", "chi", "tsu", "pyo"):
            assert entry in DEFAULT_DICTIONARY


class TestLevelTwo:
    def test_vowel_pair_split(self):
        assert syllablize("kyou", 2) == "kyo|u"

    def test_consecutive_vowels_all_split(self):
        assert syllablize("aoi", 2) == "a|o|i"

    def test_syllabic_n(self):
        assert syllablize("kanji", 2) == "ka|n|ji"

    def test_geminate_then_vowel(self):
        assert syllablize("ippai", 2) == "i|ppa|i"


class TestIdempotence:
    @pytest.mark.parametrize("level", [1, 2])
    @pytest.mark.parametrize("text", SAMPLES)
    def test_second_pass_is_stable(self, text, level):
        once = syllablize(text, level)
        assert syllablize(once, level) == once


class TestNormalization:
    def test_unmacron_vowels(self):
        assert unmacron("tōkyō īē āū") == "toukyou iiee aauu"

    def test_unmacron_punctuation(self):
        assert unmacron("“hi”…") == '"hi"...'

    def test_unmacron_drops_markers(self):
        assert unmacron("ka|mi\nso|ra") == "kami\nsora"

    def test_strip_cr(self):
        assert strip_cr("a\r\nb\r\n") == "a\nb\n"

    def test_prepare_lyrics_resyllablizes_from_scratch(self):
        assert prepare_lyrics("Tōkyō\r\n", 1) == "Tou|kyou\n"
        assert prepare_lyrics("t|oky|ou", 1) == "to|kyou"

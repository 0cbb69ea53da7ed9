"""Tests for sentence-aware text segmentation."""

import pytest

from translator.segmenter import Segment, segment, segment_texts, split_into_pieces


def _strip_whitespace(text: str) -> str:
    return "".join(text.split())


@pytest.mark.unit
class TestSplitIntoPieces:
    """Test splitting at sentence boundaries."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Hi. Bye!", ["Hi", ".", " Bye", "!"]),
            ("What?! Really...", ["What", "?!", " Really", "..."]),
            ("你好。世界！", ["你好", "。", "世界", "！"]),
            ("one\n\ntwo", ["one", "\n\n", "two"]),
            ("no boundary", ["no boundary"]),
            ("", []),
        ],
    )
    def test_split_into_pieces(self, text, expected):
        """Test that punctuation runs are kept as their own pieces."""
        assert split_into_pieces(text) == expected

    def test_pieces_concatenate_to_input(self):
        """Test that splitting loses no characters."""
        text = "First sentence. Second one!\nThird?  Fourth。第五！"

        assert "".join(split_into_pieces(text)) == text


@pytest.mark.unit
class TestSegment:
    """Test greedy chunking of text into segments."""

    def test_sentences_are_sealed_when_limit_is_reached(self):
        """Test the canonical three-sentence example."""
        segments = segment("Hello. World! Bye?", 10)

        assert segment_texts(segments) == ["Hello.", "World!", "Bye?"]
        assert [s.ordinal for s in segments] == [0, 1, 2]

    def test_short_text_is_a_single_segment(self):
        """Test that text within the limit is not split."""
        segments = segment("  Hello. World! Bye?  ", 500)

        assert segment_texts(segments) == ["Hello. World! Bye?"]

    def test_sentences_are_packed_greedily(self):
        """Test that several sentences share a chunk while they fit."""
        segments = segment("A. B. C. D.", 6)

        assert segment_texts(segments) == ["A. B.", "C. D."]

    def test_cjk_punctuation_is_a_boundary(self):
        """Test splitting on full-width punctuation."""
        segments = segment("你好。世界！", 3)

        assert segment_texts(segments) == ["你好。", "世界！"]

    def test_newlines_are_boundaries(self):
        """Test splitting on paragraph breaks."""
        segments = segment("Line one\n\nLine two", 10)

        assert segment_texts(segments) == ["Line one", "Line two"]

    def test_oversized_sentence_is_kept_whole(self):
        """Test that a single piece longer than the limit is never cut."""
        long_sentence = "a" * 30
        segments = segment(f"{long_sentence}. Short.", 10)

        assert segments[0].text == long_sentence
        assert all(len(s) <= 10 for s in segments[1:])

    @pytest.mark.parametrize("text", ["", "   ", "\n\n\n", " \t "])
    def test_blank_text_yields_no_segments(self, text):
        """Test that empty chunks are dropped."""
        assert segment(text, 10) == []

    def test_punctuation_only_text(self):
        """Test text made of a single punctuation run."""
        assert segment_texts(segment("...!!!", 10)) == ["...!!!"]

    @pytest.mark.parametrize("max_length", [0, -1])
    def test_non_positive_limit_is_rejected(self, max_length):
        """Test max_length validation."""
        with pytest.raises(ValueError):
            segment("Hello.", max_length)

    @pytest.mark.parametrize("max_length", [1, 7, 20, 64, 500])
    def test_segments_preserve_all_visible_characters(self, max_length):
        """Test that only whitespace at chunk edges is ever removed."""
        text = (
            "The quick brown fox jumps over the lazy dog. " * 5
            + "这是一个测试。它应该被正确分割！\n\n"
            + "Is it? Yes!"
        )

        segments = segment(text, max_length)

        assert _strip_whitespace("".join(segment_texts(segments))) == _strip_whitespace(text)
        assert [s.ordinal for s in segments] == list(range(len(segments)))
        assert all(s.text == s.text.strip() and s.text for s in segments)

    def test_chunks_respect_limit_when_sentences_fit(self):
        """Test that no chunk exceeds the limit unless one sentence does."""
        text = " ".join(f"Sentence number {i}." for i in range(40))

        segments = segment(text, 50)

        assert len(segments) > 1
        assert all(len(s) <= 50 for s in segments)


@pytest.mark.unit
class TestSegmentTexts:
    """Test ordered extraction of segment texts."""

    def test_texts_follow_ordinal_order(self):
        """Test that texts are returned by ordinal, not list position."""
        segments = [
            Segment(ordinal=2, text="c"),
            Segment(ordinal=0, text="a"),
            Segment(ordinal=1, text="b"),
        ]

        assert segment_texts(segments) == ["a", "b", "c"]

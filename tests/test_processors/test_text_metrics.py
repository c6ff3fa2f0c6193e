"""
Unit tests for word counting and text metrics.

The streaming tests check the central property of the counter: however a
document is split into chunks (inside a tag, inside a word, inside a
multi-byte character), the streamed count equals the whole-buffer count.

Python Learning Notes:
    - pytest.mark.parametrize runs one test body over many inputs
    - Splitting at every byte offset covers every possible boundary
"""

import pytest

from ecfranalyzer.processors.text_metrics import (
    StreamingWordCounter,
    analyze_text,
    compare_versions,
    strip_tags,
    word_count,
    word_count_streaming,
)

DOCUMENTS = [
    "",
    "plain words only",
    "<A>hello</A> <B>world</B>",
    '<SECTION N="1.1"><SUBJECT>§ 1.1 Definitions.</SUBJECT><P>As used in this part—</P></SECTION>',
    "<P>Hello</P>world<BR/>again",
    "a<>b",
    "x<<a>y",
    "text then <UNCLOSED attr=1",
    "trailing lone <",
    "< spaced > tokens",
    "Ünïcödé wörds — ελληνικά 日本語 done",
    "snake_case_word and don't",
    "<P>\n  multi\n  line\n</P>\n\n<P>body</P>",
]


def byte_chunks(data: bytes, size: int):
    return [data[i : i + size] for i in range(0, len(data), size)]


class TestWordCount:
    """Tests for whole-buffer word_count."""

    @pytest.mark.parametrize("markup", [None, "", b""])
    def test_empty_inputs_count_zero(self, markup):
        assert word_count(markup) == 0

    def test_tags_are_stripped(self):
        assert word_count("<A>hello</A> <B>world</B>") == 2

    def test_tags_act_as_separators(self):
        """Test that adjacent text around a tag counts as two words."""
        assert word_count("<P>Hello</P>world") == 2

    def test_unterminated_tag_strips_to_end(self):
        assert word_count("one two <TAG never closed words here") == 2

    def test_empty_angle_brackets_are_not_a_tag(self):
        assert strip_tags("a<>b") == "a<>b"
        assert word_count("a<>b") == 2

    def test_punctuation_splits_words(self):
        assert word_count("don't § 1.1") == 4

    def test_unicode_letters_are_word_characters(self):
        assert word_count("régulation ελληνικά") == 2

    def test_bytes_input_decoded_as_utf8(self):
        assert word_count("<P>café crème</P>".encode("utf-8")) == 2

    def test_invalid_bytes_are_replaced(self):
        assert word_count(b"good \xff\xfe bytes") == 2


class TestStreamingWordCounter:
    """Tests for chunk-by-chunk counting."""

    @pytest.mark.parametrize("document", DOCUMENTS)
    def test_every_two_way_split_matches(self, document):
        """Test every single split point of the UTF-8 encoding."""
        # Arrange
        data = document.encode("utf-8")
        expected = word_count(document)

        for split in range(len(data) + 1):
            # Act
            counter = StreamingWordCounter()
            counter.feed(data[:split])
            counter.feed(data[split:])

            # Assert
            assert counter.finish() == expected, f"split at byte {split}"

    @pytest.mark.parametrize("document", DOCUMENTS)
    @pytest.mark.parametrize("size", [1, 2, 3, 7])
    def test_fixed_size_chunks_match(self, document, size):
        data = document.encode("utf-8")
        counter = StreamingWordCounter()

        for chunk in byte_chunks(data, size):
            counter.feed(chunk)

        assert counter.finish() == word_count(document)

    def test_text_chunks_accepted(self):
        counter = StreamingWordCounter()
        for chunk in ["<P>Sec", "tion one</P", ">"]:
            counter.feed(chunk)

        assert counter.finish() == 2

    def test_finish_is_repeatable_and_feed_after_finish_fails(self):
        counter = StreamingWordCounter()
        counter.feed(b"one two")

        assert counter.finish() == 2
        assert counter.finish() == 2
        with pytest.raises(RuntimeError):
            counter.feed(b"three")

    def test_empty_chunks_ignored(self):
        counter = StreamingWordCounter()
        for chunk in [b"", None, b"word", b""]:
            counter.feed(chunk)

        assert counter.finish() == 1

    def test_large_document_in_chunks(self):
        """Test a document much larger than the chunk size."""
        # Arrange
        document = "<PART>" + "<P>Lorem ipsum dolor sit amet.</P>" * 5000 + "</PART>"
        data = document.encode("utf-8")

        # Act
        counter = StreamingWordCounter()
        for chunk in byte_chunks(data, 4093):
            counter.feed(chunk)

        # Assert
        assert counter.finish() == 25000 == word_count(document)


class TestWordCountStreaming:
    """Tests for the async helper."""

    @pytest.mark.asyncio
    async def test_async_iterable(self):
        # Arrange
        async def chunks():
            for piece in (b"<A>hel", b"lo</A> <B>wor", b"ld</B>"):
                yield piece

        # Act / Assert
        assert await word_count_streaming(chunks()) == 2

    @pytest.mark.asyncio
    async def test_plain_iterable(self):
        assert await word_count_streaming([b"one ", b"two"]) == 2

    @pytest.mark.asyncio
    async def test_none_counts_zero(self):
        assert await word_count_streaming(None) == 0


class TestAnalyzeText:
    """Tests for analyze_text."""

    def test_metrics(self):
        # Act
        analysis = analyze_text("The rule applies. The rule ends! Does it?")

        # Assert
        assert analysis.word_count == 8
        assert analysis.sentence_count == 3
        assert analysis.complexity == pytest.approx(8 / 3)
        assert analysis.word_frequency["the"] == 2
        assert analysis.word_frequency["rule"] == 2

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty(self, text):
        analysis = analyze_text(text)

        assert analysis.word_count == 0
        assert analysis.sentence_count == 0
        assert analysis.complexity == 0.0
        assert analysis.word_frequency == {}


class TestCompareVersions:
    """Tests for compare_versions."""

    def test_growth(self):
        result = compare_versions("<P>one two</P>", "<P>one two three four</P>")

        assert result.added == 2
        assert result.removed == 0
        assert result.net_change == 2
        assert result.percent_change == pytest.approx(100.0)

    def test_shrink(self):
        result = compare_versions("a b c d", "a b c")

        assert result.added == 0
        assert result.removed == 1
        assert result.net_change == -1
        assert result.percent_change == pytest.approx(-25.0)

    def test_from_empty_has_zero_percent(self):
        result = compare_versions(None, "new words")

        assert result.old_word_count == 0
        assert result.new_word_count == 2
        assert result.percent_change == 0.0

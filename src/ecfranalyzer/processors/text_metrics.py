"""
Word counting and simple text metrics for eCFR XML.

Title bodies arrive as XML. Their size is measured the same way everywhere in
ECFR Analyzer: replace every markup tag with a space, then count the runs of
word characters that remain.

Counting Rules:
    - A tag is "<" followed by at least one character up to the next ">".
      An unterminated tag ("<SECTION ..." with no closing ">") strips
      everything up to the end of the buffer.
    - A word is a maximal run of Unicode word characters (letters, digits and
      underscore in any script), so "don't" is two words and "§ 1.1" is two.
    - None, empty strings and empty byte strings count as 0.

Streaming:
    The largest titles are far too big to hold comfortably in memory several
    times over, so StreamingWordCounter counts chunk by chunk. A chunk boundary
    can fall inside a multi-byte character, inside a tag, or inside a word, so
    the counter keeps three carries between chunks:

        1. the incremental UTF-8 decoder's pending bytes,
        2. a raw-text carry holding an unterminated trailing tag (or a lone
           trailing "<" whose meaning depends on the next character),
        3. a word carry holding everything after the last confirmed separator.

    Only text before all three carries is counted, so for any split of a
    document into chunks the final count equals word_count() of the whole.

Python Learning Notes:
    - codecs.getincrementaldecoder() decodes bytes that may end mid-character
    - re.finditer() walks matches lazily, so counting never builds a token list
    - sum(1 for _ in iterator) counts items without materializing them
"""

import codecs
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Dict, Iterable, Optional, Union

TAG_PATTERN = re.compile(r"<[^>]+(?:>|\Z)")
WORD_PATTERN = re.compile(r"\w+")
WORD_CHAR = re.compile(r"\w")
SENTENCE_SPLIT = re.compile(r"[.!?]+")

Markup = Union[str, bytes, None]


def _to_text(markup: Markup) -> str:
    if markup is None:
        return ""
    if isinstance(markup, (bytes, bytearray)):
        return bytes(markup).decode("utf-8", errors="replace")
    return markup


def strip_tags(text: str) -> str:
    """Replace every tag (including an unterminated trailing one) with a space."""
    return TAG_PATTERN.sub(" ", text)


def count_words(text: str) -> int:
    """Count word-character runs in plain text."""
    return sum(1 for _ in WORD_PATTERN.finditer(text))


def word_count(markup: Markup) -> int:
    """
    Count the words in a markup document.

    Args:
        markup (Union[str, bytes, None]): XML/HTML text, or UTF-8 bytes.

    Returns:
        int: Number of words after stripping tags.

    Examples:
        >>> word_count("<A>hello</A> <B>world</B>")
        2
        >>> word_count(None)
        0
    """
    if not markup:
        return 0
    return count_words(strip_tags(_to_text(markup)))


class StreamingWordCounter:
    """
    Incremental word counter producing the same result as word_count().

    Feed chunks with feed() in order, then call finish() once to flush the
    carries and get the total. A counter is scoped to a single stream.

    Attributes:
        count (int): Words confirmed so far. Final only after finish().

    Example:
        counter = StreamingWordCounter()
        for chunk in (b"<P>Sec", b"tion one</P", b">"):
            counter.feed(chunk)
        counter.finish()  # 2
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._raw_carry = ""
        self._word_carry = ""
        self._finished = False
        self.count = 0

    def feed(self, chunk: Union[str, bytes, None]) -> None:
        """
        Consume one chunk.

        Args:
            chunk: Bytes (decoded incrementally) or already-decoded text.
                Do not mix the two within one stream.

        Raises:
            RuntimeError: If called after finish().
        """
        if self._finished:
            raise RuntimeError("StreamingWordCounter.feed() called after finish()")
        if not chunk:
            return

        if isinstance(chunk, (bytes, bytearray)):
            text = self._decoder.decode(bytes(chunk))
        else:
            text = chunk

        self._raw_carry += text
        cut = self._settled_length(self._raw_carry)
        if cut == 0:
            return

        settled = self._raw_carry[:cut]
        self._raw_carry = self._raw_carry[cut:]
        self._consume_plain(strip_tags(settled))

    def finish(self) -> int:
        """
        Flush every carry using whole-buffer rules and return the total.

        Calling finish() again returns the same total.
        """
        if self._finished:
            return self.count

        self._raw_carry += self._decoder.decode(b"", final=True)
        plain = strip_tags(self._raw_carry)
        self._raw_carry = ""
        self.count += count_words(self._word_carry + plain)
        self._word_carry = ""
        self._finished = True
        return self.count

    @staticmethod
    def _settled_length(text: str) -> int:
        """
        Length of the prefix of text whose tags are all closed.

        The remainder starts either at an unterminated tag or at a lone
        trailing "<" ("<>" is not a tag, so its meaning is still open).
        """
        last_match = None
        for last_match in TAG_PATTERN.finditer(text):
            pass
        if last_match is not None and not last_match.group().endswith(">"):
            return last_match.start()
        if text.endswith("<"):
            return len(text) - 1
        return len(text)

    def _consume_plain(self, plain: str) -> None:
        combined = self._word_carry + plain

        # Walk back over the trailing partial word
        boundary = len(combined)
        while boundary > 0 and WORD_CHAR.match(combined[boundary - 1]):
            boundary -= 1

        if boundary > 0:
            self.count += count_words(combined[:boundary])
        self._word_carry = combined[boundary:]


async def word_count_streaming(
    stream: Union[AsyncIterable[Any], Iterable[Any], None]
) -> int:
    """
    Count the words of a document delivered as a stream of chunks.

    Args:
        stream: An async iterable (e.g. a ContentStream) or a plain iterable
            of bytes or str chunks. None counts as 0.

    Returns:
        int: The same value word_count() returns for the concatenated stream.
    """
    if stream is None:
        return 0

    counter = StreamingWordCounter()
    if hasattr(stream, "__aiter__"):
        async for chunk in stream:
            counter.feed(chunk)
    else:
        for chunk in stream:
            counter.feed(chunk)
    return counter.finish()


@dataclass
class TextAnalysis:
    """Word, sentence and vocabulary metrics for one piece of plain text."""

    word_count: int = 0
    sentence_count: int = 0
    complexity: float = 0.0
    word_frequency: Dict[str, int] = field(default_factory=dict)


def analyze_text(text: Optional[str]) -> TextAnalysis:
    """
    Compute word count, sentence count, complexity and word frequencies.

    Complexity is the average number of words per sentence, where sentences
    are split on runs of ".", "!" and "?". Frequencies are keyed by the
    lower-cased word.

    Args:
        text (Optional[str]): Plain text; strip markup first if needed.

    Returns:
        TextAnalysis: All zeros for empty input.
    """
    if not text:
        return TextAnalysis()

    words = WORD_PATTERN.findall(text)
    sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
    sentence_count = len(sentences)

    return TextAnalysis(
        word_count=len(words),
        sentence_count=sentence_count,
        complexity=len(words) / sentence_count if sentence_count else 0.0,
        word_frequency=dict(Counter(word.lower() for word in words)),
    )


@dataclass
class VersionComparison:
    """Size change between two versions of a document."""

    added: int
    removed: int
    net_change: int
    old_word_count: int
    new_word_count: int
    percent_change: float


def compare_versions(old_markup: Markup, new_markup: Markup) -> VersionComparison:
    """
    Compare the word counts of two versions of a markup document.

    added and removed are the positive and negative parts of the net change;
    percent_change is relative to the old count and 0.0 when that is zero.
    """
    old_count = word_count(old_markup)
    new_count = word_count(new_markup)
    net = new_count - old_count

    return VersionComparison(
        added=max(0, net),
        removed=max(0, -net),
        net_change=net,
        old_word_count=old_count,
        new_word_count=new_count,
        percent_change=(net / old_count * 100) if old_count else 0.0,
    )

"""
Highlight rendering for matched spans.
"""

import html
from typing import Iterable, List, Tuple

from ..domain.entities import MatchSpan


def merge_spans(spans: Iterable[MatchSpan], text_length: int) -> List[Tuple[int, int]]:
    """
    Clip, sort and merge spans into disjoint ranges.

    Overlapping or touching spans are joined; ranges falling outside
    the text are dropped.

    Args:
        spans: Spans reported against the text
        text_length: Length of the text

    Returns:
        Ordered list of (start, end) ranges that never overlap
    """
    ranges = sorted(
        (span.start, min(span.end, text_length))
        for span in spans
        if span.start < text_length
    )
    merged: List[Tuple[int, int]] = []
    for start, end in ranges:
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


class Highlighter:
    """
    Wraps matched ranges of a text in a marker.

    Attributes:
        open_tag: Marker placed before each match
        close_tag: Marker placed after each match
        escape: HTML-escape the unmarked text and matched text
    """

    DEFAULT_OPEN_TAG = '<mark class="search-highlight">'
    DEFAULT_CLOSE_TAG = "</mark>"

    def __init__(
        self,
        open_tag: str = DEFAULT_OPEN_TAG,
        close_tag: str = DEFAULT_CLOSE_TAG,
        escape: bool = True,
    ):
        self.open_tag = open_tag
        self.close_tag = close_tag
        self.escape = escape

    def _text(self, value: str) -> str:
        return html.escape(value, quote=False) if self.escape else value

    def highlight(self, text: str, spans: Iterable[MatchSpan]) -> str:
        """
        Render text with every span wrapped in the marker.

        Args:
            text: Original field text
            spans: Spans within that text

        Returns:
            Marked-up text (the escaped text if nothing matched)
        """
        if not text:
            return ""

        parts = []
        last = 0
        for start, end in merge_spans(spans, len(text)):
            parts.append(self._text(text[last:start]))
            parts.append(self.open_tag + self._text(text[start:end]) + self.close_tag)
            last = end
        parts.append(self._text(text[last:]))
        return "".join(parts)

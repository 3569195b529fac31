"""
Search term highlighting for listing text.

`highlight` splits a text into segments, marking the parts that match any of
the whitespace separated search terms, so a client can render matches without
running its own matching. `rank_fields` orders several labelled texts (title,
description, ...) by how well they match the search.
"""

import re

from modmarket.schemas._modmarket import _MarketModel

EXACT_RELEVANCE = 1.0
PARTIAL_RELEVANCE = 0.7
WEAK_RELEVANCE = 0.5


class HighlightSegment(_MarketModel):
    text: str
    highlighted: bool = False
    relevance: float | None = None
    """only set on highlighted segments"""


class RankedField(_MarketModel):
    label: str
    text: str
    weight: float = 1.0
    relevance: float = 0
    matches: int = 0
    """number of search terms found in the text"""


def _search_terms(search_query: str | None) -> list[str]:
    return search_query.split() if search_query else []


def _relevance(matched: str, terms: list[str]) -> float:
    matched = matched.lower()
    lowered = [term.lower() for term in terms]

    if matched in lowered:
        return EXACT_RELEVANCE
    if any(matched in term or term in matched for term in lowered):
        return PARTIAL_RELEVANCE
    return WEAK_RELEVANCE


def _segments(text: str, terms: list[str], case_sensitive: bool, whole_word: bool) -> list[HighlightSegment]:
    boundary = r"\b" if whole_word else ""
    pattern = re.compile(
        f"{boundary}({'|'.join(re.escape(term) for term in terms)}){boundary}",
        0 if case_sensitive else re.IGNORECASE,
    )

    segments: list[HighlightSegment] = []
    last_index = 0

    for match in pattern.finditer(text):
        if match.start() > last_index:
            segments.append(HighlightSegment(text=text[last_index : match.start()]))

        segments.append(HighlightSegment(text=match.group(1), highlighted=True, relevance=_relevance(match.group(1), terms)))
        last_index = match.end()

    if last_index < len(text):
        segments.append(HighlightSegment(text=text[last_index:]))

    return segments


def _truncate(text: str, segments: list[HighlightSegment], max_length: int) -> tuple[int, list[HighlightSegment]]:
    """
    Returns where the visible window starts and the segments cut to
    `max_length`. Without highlights the window starts at the beginning.
    """
    first_highlight = next((i for i, segment in enumerate(segments) if segment.highlighted), None)

    if first_highlight is None:
        truncated: list[HighlightSegment] = []
        remaining = max_length
        for segment in segments:
            if remaining <= 0:
                break
            truncated.append(segment.model_copy(update={"text": segment.text[:remaining]}))
            remaining -= len(segment.text)
        return 0, truncated

    highlight_start = sum(len(segment.text) for segment in segments[:first_highlight])
    start = max(0, highlight_start - max_length // 2)

    # start on a word, never past the highlight
    if start > 0 and not text[start - 1].isspace():
        space = re.search(r"\s", text[start:highlight_start])
        if space:
            start += space.end()

    return start, []


def highlight(
    text: str,
    search_query: str | None,
    case_sensitive: bool = False,
    whole_word: bool = False,
    max_length: int | None = None,
) -> list[HighlightSegment]:
    """
    Splits `text` into highlighted and plain segments.

    Args:
        text (str): The text to highlight.
        search_query (str | None): Whitespace separated search terms; a match of any term is highlighted.
        case_sensitive (bool, optional): Match case exactly. Defaults to False.
        whole_word (bool, optional): Only match whole words. Defaults to False.
        max_length (int | None, optional): Longest text to return. Longer texts are cut to a
            window around the first highlight that starts on a word. Defaults to None.

    Returns:
        list[HighlightSegment]: Segments that concatenate to the (possibly truncated) text.
    """
    terms = _search_terms(search_query)
    if not terms or not text:
        segments = [HighlightSegment(text=text)]
    else:
        segments = _segments(text, terms, case_sensitive, whole_word)

    if not max_length or len(text) <= max_length:
        return segments

    start, truncated = _truncate(text, segments, max_length)
    if truncated:
        return truncated

    return highlight(text[start : start + max_length], search_query, case_sensitive, whole_word)


def rank_fields(fields: list[RankedField | dict], search_query: str | None) -> list[RankedField]:
    """
    Scores each field against the search and sorts the best matches first.

    Each search term found in a field scores 2 when it appears as a whole word
    and 1 otherwise. The total is divided by the number of terms and multiplied
    by the field's weight. Fields that score the same keep their order.
    """
    ranked = [field if isinstance(field, RankedField) else RankedField.model_validate(field) for field in fields]

    terms = _search_terms(search_query.lower() if search_query else None)
    if not terms:
        return [field.model_copy(update={"relevance": 0, "matches": 0}) for field in ranked]

    scored = []
    for field in ranked:
        text = field.text.lower()
        relevance = 0
        matches = 0

        for term in terms:
            if term not in text:
                continue

            matches += 1
            if re.search(rf"\b{re.escape(term)}\b", text):
                relevance += 2
            else:
                relevance += 1

        scored.append(field.model_copy(update={"relevance": relevance / len(terms) * field.weight, "matches": matches}))

    return sorted(scored, key=lambda field: -field.relevance)

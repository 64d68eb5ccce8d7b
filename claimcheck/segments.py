from typing import List, Sequence

from claimcheck.models import HighlightSegment, RawMatch


def resolve_segments(text: str, matches: Sequence[RawMatch]) -> List[HighlightSegment]:
    """
    Partition text into ordered plain/violation segments for highlighting.

    A match that starts inside an already accepted match is dropped whole,
    never trimmed or merged, so the earliest match by position wins.
    Concatenating the segment texts always yields the original text.
    """
    if not matches:
        return [HighlightSegment(start=0, end=len(text), text=text, kind="plain")]

    segments: List[HighlightSegment] = []
    cursor = 0

    # sorted() is stable, so matches sharing a start keep matcher order
    for m in sorted(matches, key=lambda item: item.start):
        if m.start < cursor:
            continue
        if m.start > cursor:
            segments.append(HighlightSegment(start=cursor, end=m.start, text=text[cursor:m.start], kind="plain"))
        segments.append(HighlightSegment(start=m.start, end=m.end, text=text[m.start:m.end], kind="violation", match=m))
        cursor = m.end

    if cursor < len(text):
        segments.append(HighlightSegment(start=cursor, end=len(text), text=text[cursor:], kind="plain"))

    return segments

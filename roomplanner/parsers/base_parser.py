"""Shared parser utilities: fragment decoding and time normalisation."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, List, Optional, Sequence, Union
from urllib.parse import unquote

RE_CLOCK_TIME = re.compile(r"(\d{1,2}):(\d{2})\s*([AP]M)?", re.I)

DAY_NAMES = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

WEEKDAY_ORDER = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


@dataclass(frozen=True)
class RawFragment:
    """A positioned text run as handed over by a document decoder.

    pdf2json percent-encodes its text payloads, so ``encoded`` defaults to
    ``True``; decoders that yield plain text set it to ``False``.
    """

    x: float
    y: float
    text: str
    encoded: bool = True


@dataclass(frozen=True)
class Token:
    x: float
    y: float
    text: str


FragmentLike = Union[RawFragment, Token]


def normalize_text(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (text or "").strip())


def normalize_fragment(fragment: FragmentLike) -> Token:
    """Decode and trim one fragment into a page token."""

    text = fragment.text or ""
    if isinstance(fragment, RawFragment) and fragment.encoded:
        text = unquote(text)
    return Token(x=float(fragment.x), y=float(fragment.y), text=text.strip())


def normalize_page(fragments: Iterable[FragmentLike]) -> List[Token]:
    tokens = []
    for fragment in fragments:
        token = normalize_fragment(fragment)
        if token.text:
            tokens.append(token)
    return tokens


def normalize_time(value: str) -> str:
    """Convert a free-form time into a zero-padded 24-hour ``HH:MM`` string.

    Without an AM/PM marker, hours 1-7 are read as afternoon (13-19): the
    timetables this parser targets never schedule classes before 8:00. A
    genuine early-morning time therefore needs an explicit ``AM``.

    Returns ``value`` unchanged when no time can be found.
    """

    if not value:
        return ""

    cleaned = normalize_text(value)
    match = RE_CLOCK_TIME.search(cleaned)
    if not match:
        return value

    hour = int(match.group(1))
    minutes = match.group(2)
    period = (match.group(3) or "").upper()

    if period:
        if period == "PM" and hour != 12:
            hour += 12
        if period == "AM" and hour == 12:
            hour = 0
    elif 1 <= hour <= 7:
        hour += 12

    return f"{hour:02d}:{minutes}"


def is_normalized_time(value: str) -> bool:
    return bool(re.fullmatch(r"\d{2}:\d{2}", value or ""))


def day_name(label: str) -> str:
    return DAY_NAMES.get(label, label)


def weekday_index(day: str) -> int:
    try:
        return WEEKDAY_ORDER.index(day)
    except ValueError:
        return len(WEEKDAY_ORDER)


def join_texts(tokens: Sequence[Token]) -> str:
    return " ".join(token.text for token in tokens)


def bottom_right_token(tokens: Sequence[Token], line_tolerance: float) -> Optional[Token]:
    """Right-most token on the lowest text line of ``tokens``."""

    if not tokens:
        return None
    bottom_y = max(token.y for token in tokens)
    bottom_line = [token for token in tokens if abs(token.y - bottom_y) < line_tolerance]
    return max(bottom_line, key=lambda token: token.x)


__all__ = [
    "DAY_NAMES",
    "WEEKDAY_ORDER",
    "FragmentLike",
    "RawFragment",
    "Token",
    "bottom_right_token",
    "day_name",
    "is_normalized_time",
    "join_texts",
    "normalize_fragment",
    "normalize_page",
    "normalize_text",
    "normalize_time",
    "weekday_index",
]

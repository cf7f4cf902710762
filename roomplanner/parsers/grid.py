"""Grid discovery for room timetable pages.

A page is a day-rows x time-slot-columns table with a ``Room-``/``Lab-``
header somewhere above it. Nothing about the grid is given: day rows are
anchored on the ``y`` of the day labels, slot columns on the ``x`` of the
``8:00 - 9:15`` style headers, and every other token is snapped to the
nearest (day, slot) pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .base_parser import Token, is_normalized_time, normalize_text, normalize_time
from .config import GridConfig

logger = logging.getLogger(__name__)

RE_LAB_ROOM = re.compile(r"Lab-(\d+)")
RE_ROOM = re.compile(r"Room-([^(]+)(\([^)]+\))?")
RE_TIME_RANGE = re.compile(r"\d{1,2}:\d{2}\s*-\s*\d{1,2}:\d{2}")
RE_CLOCK = re.compile(r"\d{1,2}:\d{2}")

ROOM_MARKERS = ("Room-", "Lab-")


@dataclass(frozen=True)
class RoomHeader:
    token: Token
    room_number: str


@dataclass(frozen=True)
class TimeSlotDef:
    x: float
    start: str
    end: str
    raw: str


@dataclass
class Cell:
    day: str
    slot_index: int
    tokens: List[Token] = field(default_factory=list)


@dataclass
class Grid:
    day_rows: Dict[str, float]
    slots: List[TimeSlotDef]

    def next_slot(self, slot_index: int) -> Optional[TimeSlotDef]:
        if slot_index + 1 < len(self.slots):
            return self.slots[slot_index + 1]
        return None


CellKey = Tuple[str, str]


def room_number_from_header(text: str) -> str:
    lab_match = RE_LAB_ROOM.search(text)
    if lab_match:
        return f"Lab-{lab_match.group(1)}"
    room_match = RE_ROOM.search(text)
    if room_match:
        number = room_match.group(1).strip()
        if room_match.group(2):
            number = f"{number} {room_match.group(2)}"
        return normalize_text(number)
    return normalize_text(text)


def detect_room_header(tokens: Sequence[Token]) -> Optional[RoomHeader]:
    """Find the room/lab header of a page, if it has one."""

    for token in tokens:
        if any(marker in token.text for marker in ROOM_MARKERS):
            return RoomHeader(token=token, room_number=room_number_from_header(token.text))
    return None


def is_lab_room(room_number: str) -> bool:
    return bool(re.fullmatch(r"Lab-\d+", room_number, re.I))


def _parse_slot(token: Token) -> Optional[TimeSlotDef]:
    parts = token.text.split("-")
    if len(parts) != 2:
        return None
    start = normalize_time(parts[0])
    end = normalize_time(parts[1])
    if not (is_normalized_time(start) and is_normalized_time(end)):
        return None
    return TimeSlotDef(x=token.x, start=start, end=end, raw=token.text)


def find_time_slots(tokens: Sequence[Token]) -> List[TimeSlotDef]:
    headers = sorted(
        (token for token in tokens if RE_TIME_RANGE.search(token.text)),
        key=lambda token: token.x,
    )
    slots: List[TimeSlotDef] = []
    for token in headers:
        slot = _parse_slot(token)
        if slot is None:
            logger.debug("Ignoring unparsable slot header %r", token.text)
            continue
        if slot.start >= slot.end:
            logger.debug("Ignoring slot header %r: start not before end", token.text)
            continue
        if slots and slot.x <= slots[-1].x:
            logger.debug("Ignoring slot header %r: shares column with %r", token.text, slots[-1].raw)
            continue
        slots.append(slot)
    return slots


def find_day_rows(tokens: Sequence[Token], config: GridConfig) -> Dict[str, float]:
    rows: Dict[str, float] = {}
    for day in config.day_labels:
        label = next((token for token in tokens if token.text == day), None)
        if label is not None:
            rows[day] = label.y
    return rows


def calibrate_grid(tokens: Sequence[Token], config: GridConfig) -> Grid:
    return Grid(day_rows=find_day_rows(tokens, config), slots=find_time_slots(tokens))


def _is_header_token(token: Token, header: Optional[RoomHeader], config: GridConfig) -> bool:
    if token.text in config.day_labels:
        return True
    if header is not None and token is header.token:
        return True
    if "Room-" in token.text:
        return True
    return bool(RE_CLOCK.search(token.text))


def _match_day(token: Token, grid: Grid, config: GridConfig) -> Optional[str]:
    for day in config.day_labels:
        anchor = grid.day_rows.get(day)
        if anchor is not None and abs(token.y - anchor) < config.y_tolerance:
            return day
    return None


def _match_slot(token: Token, grid: Grid, config: GridConfig) -> Optional[int]:
    best_index: Optional[int] = None
    best_distance = float("inf")
    for index, slot in enumerate(grid.slots):
        distance = abs(token.x - slot.x)
        if distance < best_distance:
            best_distance = distance
            best_index = index
    if best_distance > config.slot_noise_threshold:
        return None
    return best_index


def assign_cells(
    tokens: Sequence[Token],
    grid: Grid,
    config: GridConfig,
    header: Optional[RoomHeader] = None,
) -> Dict[CellKey, Cell]:
    """Group content tokens into cells keyed by ``(day label, slot start)``."""

    cells: Dict[CellKey, Cell] = {}
    dropped = 0
    for token in tokens:
        if _is_header_token(token, header, config):
            continue
        day = _match_day(token, grid, config)
        if day is None:
            dropped += 1
            continue
        slot_index = _match_slot(token, grid, config)
        if slot_index is None:
            dropped += 1
            continue
        key = (day, grid.slots[slot_index].start)
        cell = cells.get(key)
        if cell is None:
            cell = cells[key] = Cell(day=day, slot_index=slot_index)
        cell.tokens.append(token)
    if dropped:
        logger.debug("Dropped %d token(s) outside the grid", dropped)
    return cells


__all__ = [
    "Cell",
    "CellKey",
    "Grid",
    "RoomHeader",
    "TimeSlotDef",
    "assign_cells",
    "calibrate_grid",
    "detect_room_header",
    "find_day_rows",
    "find_time_slots",
    "is_lab_room",
    "room_number_from_header",
]

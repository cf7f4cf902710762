"""Turn assigned grid cells into schedule records.

Every decision here is an ordered rule cascade evaluated first-match-wins:
whether a cell spans into the next slot, which course and batch it holds, and
whether the result is reliable enough to skip human review. The rule tables
are kept as plain tuples so each rule can be tested on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..models import ScheduleRecord, TimeRange
from .base_parser import Token, bottom_right_token, day_name, join_texts
from .config import GridConfig
from .grid import Cell, CellKey, Grid, TimeSlotDef, is_lab_room

logger = logging.getLogger(__name__)

RE_COURSE_CODE = re.compile(r"([A-Za-z]{2,5})\s*(\d{4})", re.I)
RE_DURATION = re.compile(r"\b(100\s*mins?|mins?)\b", re.I)
RE_LAB_MARKER = re.compile(r"\bL-[1-6]\b", re.I)
RE_BATCH_LIKE = re.compile(r"\b([A-Z]{1,4}\d+[A-Z]?\d*)\b", re.I)
RE_SPECIAL_ONLY = re.compile(r"^[^a-zA-Z0-9]+$")
RE_CODE_TYPO = re.compile(r"^CS([SB])(\d+)$")

# Shapes stripped from a cell before reading what is left as a course title.
RE_NON_COURSE = re.compile(r"\b(C\d+S\d+|SW\d+|CSE\s*\d{2}|MSc|PhD|R-\d+|[A-Z]{2,4}\s*$)\b", re.I)
RE_LEADING_DEPT = re.compile(r"^[A-Z]{2,4}\s+")
RE_TRAILING_ROOM = re.compile(r"\s+R-\d+.*$")

POSTGRAD_BATCH = "MSc(CSE)"
DEFAULT_BATCH = "All"


@dataclass(frozen=True)
class BatchRule:
    name: str
    pattern: "re.Pattern[str]"
    # "batch_text" searches the narrowed batch text, "content" the whole cell
    source: str = "batch_text"
    value: Optional[str] = None


@dataclass
class CellView:
    """Everything the rule cascades need to know about one cell."""

    cell: Cell
    tokens: List[Token]
    content: str
    room_number: str
    slot: TimeSlotDef
    next_slot: Optional[TimeSlotDef]
    next_cell: Optional[Cell]

    @property
    def next_content(self) -> str:
        if self.next_cell is None:
            return ""
        return join_texts(self.next_cell.tokens)

    @property
    def next_has_lab_marker(self) -> bool:
        return bool(RE_LAB_MARKER.search(self.next_content))


def build_batch_rules(config: GridConfig) -> Tuple[BatchRule, ...]:
    prefixes = "|".join(re.escape(prefix) for prefix in config.batch_prefixes)
    standard = rf"\b(SW\d+|C\d+[SB]\d+|(?:{prefixes})\d+[SB]\d+|CS[SB]\d+)\b"
    return (
        BatchRule("department_year_section", re.compile(standard, re.I)),
        BatchRule("section", re.compile(r"\b([SB]\d+)\b", re.I)),
        BatchRule("postgraduate", re.compile(r"MSc|PhD"), source="content", value=POSTGRAD_BATCH),
    )


def find_course_codes(content: str) -> List[str]:
    return [match.group(0) for match in RE_COURSE_CODE.finditer(content)]


def is_biweekly(content: str) -> bool:
    codes = find_course_codes(content)
    return len(codes) >= 2 and codes[0].upper() == codes[1].upper()


def extract_course(content: str) -> str:
    match = RE_COURSE_CODE.search(content)
    if match:
        return match.group(0)

    cleaned = RE_NON_COURSE.sub("", content).strip()
    cleaned = RE_LEADING_DEPT.sub("", cleaned).strip()
    cleaned = RE_TRAILING_ROOM.sub("", cleaned).strip()
    return cleaned if len(cleaned) > 2 else ""


def fix_batch_typo(code: str) -> str:
    # "CSS1" is how C5S1 comes out of the PDF more often than not
    return RE_CODE_TYPO.sub(r"C5\1\2", code)


class CellInterpreter:
    def __init__(self, config: GridConfig) -> None:
        self.config = config
        self.batch_rules = build_batch_rules(config)
        prefixes = "|".join(re.escape(prefix) for prefix in config.batch_prefixes)
        self._misassigned_course = re.compile(rf"^({prefixes})\d", re.I)
        self.merge_rules: Tuple[Tuple[str, Callable[[CellView], bool]], ...] = (
            ("duration_keyword", self._has_duration_keyword),
            ("lab_marker", self._next_is_lab_marker),
            ("lab_room", self._lab_spans_two_slots),
            ("overflow", self._overflows_column),
        )

    # merge rules -------------------------------------------------------

    @staticmethod
    def _has_duration_keyword(view: CellView) -> bool:
        return bool(RE_DURATION.search(view.content))

    @staticmethod
    def _next_is_lab_marker(view: CellView) -> bool:
        return view.next_has_lab_marker

    def _lab_policy_applies(self, view: CellView) -> bool:
        return self.config.lab_rooms_span_two_slots and is_lab_room(view.room_number)

    def _lab_spans_two_slots(self, view: CellView) -> bool:
        if not self._lab_policy_applies(view) or view.next_slot is None:
            return False
        if view.next_cell is None or not view.next_cell.tokens:
            return True
        # a course code of its own in the next slot means a separate class
        return not RE_COURSE_CODE.search(view.next_content) or view.next_has_lab_marker

    def _overflows_column(self, view: CellView) -> bool:
        if self._lab_policy_applies(view) or view.next_slot is None or not view.tokens:
            return False
        width = view.next_slot.x - view.slot.x
        threshold = view.slot.x + width * self.config.overflow_fraction
        return max(token.x for token in view.tokens) >= threshold

    def merge_reason(self, view: CellView) -> Optional[str]:
        for name, predicate in self.merge_rules:
            if predicate(view):
                return name
        return None

    # batch -------------------------------------------------------------

    def _batch_text_merged(self, view: CellView) -> str:
        tolerance = self.config.same_line_tolerance
        if view.next_cell is not None and view.next_cell.tokens:
            token = bottom_right_token(view.next_cell.tokens, tolerance)
            return token.text if token else view.next_content

        if view.next_slot is None:
            return view.content
        boundary = view.next_slot.x - self.config.next_column_margin
        in_next_column = [token for token in view.tokens if token.x >= boundary]
        token = bottom_right_token(in_next_column, tolerance)
        return token.text if token else view.content

    def _batch_text_single(self, view: CellView) -> str:
        if RE_BATCH_LIKE.search(view.content) or not view.tokens:
            return view.content

        max_x = max(token.x for token in view.tokens)
        right_column = [
            token for token in view.tokens
            if abs(token.x - max_x) < self.config.right_column_tolerance
        ]
        text = join_texts(right_column)
        if RE_BATCH_LIKE.search(text):
            return text

        token = bottom_right_token(view.tokens, self.config.same_line_tolerance)
        return token.text if token else view.content

    def batch_text(self, view: CellView, merged: bool) -> str:
        if merged and view.next_slot is not None:
            return self._batch_text_merged(view)
        return self._batch_text_single(view)

    def extract_batch(self, batch_text: str, content: str) -> str:
        for rule in self.batch_rules:
            haystack = content if rule.source == "content" else batch_text
            match = rule.pattern.search(haystack)
            if not match:
                continue
            if rule.value is not None:
                return rule.value
            return fix_batch_typo(match.group(1).upper())
        return DEFAULT_BATCH

    # review ------------------------------------------------------------

    def needs_review(self, course: str, batch: str) -> bool:
        return (
            batch == DEFAULT_BATCH
            or not course
            or len(course) < 3
            or bool(RE_SPECIAL_ONLY.match(course))
            or bool(self._misassigned_course.match(course))
        )

    # cells -------------------------------------------------------------

    def _view(
        self,
        cell: Cell,
        cells: Dict[CellKey, Cell],
        grid: Grid,
        room_number: str,
    ) -> CellView:
        tokens = sorted(cell.tokens, key=lambda token: (token.y, token.x))
        next_slot = grid.next_slot(cell.slot_index)
        next_cell = cells.get((cell.day, next_slot.start)) if next_slot else None
        return CellView(
            cell=cell,
            tokens=tokens,
            content=join_texts(tokens),
            room_number=room_number,
            slot=grid.slots[cell.slot_index],
            next_slot=next_slot,
            next_cell=next_cell,
        )

    def interpret_cell(
        self,
        cell: Cell,
        cells: Dict[CellKey, Cell],
        grid: Grid,
        room_number: str,
        consumed: Set[CellKey],
    ) -> Optional[ScheduleRecord]:
        view = self._view(cell, cells, grid, room_number)

        if view.next_cell is not None and view.next_has_lab_marker:
            consumed.add((view.next_cell.day, view.next_slot.start))  # type: ignore[union-attr]

        if len(view.content) <= 2:
            return None

        reason = self.merge_reason(view)
        merged = reason is not None and view.next_slot is not None
        end = view.next_slot.end if merged else view.slot.end  # type: ignore[union-attr]

        course = extract_course(view.content)
        batch = self.extract_batch(self.batch_text(view, merged), view.content)

        if merged:
            logger.debug(
                "%s %s %s spans into %s (%s)",
                room_number, cell.day, view.slot.start, end, reason,
            )

        return ScheduleRecord(
            roomNumber=room_number,
            day=day_name(cell.day),
            timeSlot=TimeRange(start=view.slot.start, end=end),
            course=course,
            batch=batch,
            teacher="",
            isBiWeekly=is_biweekly(view.content),
            needsReview=self.needs_review(course, batch),
            rawContent=view.content,
        )

    def interpret_page(
        self,
        cells: Dict[CellKey, Cell],
        grid: Grid,
        room_number: str,
    ) -> List[ScheduleRecord]:
        day_order = {day: idx for idx, day in enumerate(self.config.day_labels)}
        ordered: Iterable[Tuple[CellKey, Cell]] = sorted(
            cells.items(),
            key=lambda item: (day_order.get(item[1].day, len(day_order)), item[1].slot_index),
        )

        consumed: Set[CellKey] = set()
        records: List[ScheduleRecord] = []
        for key, cell in ordered:
            if key in consumed:
                continue
            record = self.interpret_cell(cell, cells, grid, room_number, consumed)
            if record is not None:
                records.append(record)
        return records


__all__ = [
    "BatchRule",
    "CellInterpreter",
    "CellView",
    "DEFAULT_BATCH",
    "POSTGRAD_BATCH",
    "build_batch_rules",
    "extract_course",
    "find_course_codes",
    "fix_batch_typo",
    "is_biweekly",
]

"""Room timetable extraction across all pages of a document."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, List, Optional, Sequence

from ..models import ScheduleExtraction, ScheduleRecord
from .base_parser import FragmentLike, normalize_page, weekday_index
from .cell_interpreter import CellInterpreter
from .config import GridConfig, get_grid_config
from .grid import assign_cells, calibrate_grid, detect_room_header

logger = logging.getLogger(__name__)


@dataclass
class PageResult:
    schedules: List[ScheduleRecord] = field(default_factory=list)
    room: Optional[str] = None


def process_page(
    fragments: Iterable[FragmentLike],
    config: GridConfig,
    interpreter: Optional[CellInterpreter] = None,
) -> PageResult:
    """Extract the raw (unmerged) schedule records of a single page."""

    tokens = normalize_page(fragments)
    header = detect_room_header(tokens)
    if header is None:
        return PageResult()

    grid = calibrate_grid(tokens, config)
    if not grid.day_rows or not grid.slots:
        logger.info(
            "Room %s: grid incomplete (%d day rows, %d slots)",
            header.room_number, len(grid.day_rows), len(grid.slots),
        )
        return PageResult(room=header.room_number)

    cells = assign_cells(tokens, grid, config, header)
    interpreter = interpreter or CellInterpreter(config)
    schedules = interpreter.interpret_page(cells, grid, header.room_number)
    return PageResult(schedules=schedules, room=header.room_number)


def aggregate_pages(
    pages: Iterable[Iterable[FragmentLike]],
    config: Optional[GridConfig] = None,
) -> ScheduleExtraction:
    config = config or get_grid_config()
    interpreter = CellInterpreter(config)
    results = [process_page(page, config, interpreter) for page in pages]

    schedules: List[ScheduleRecord] = []
    rooms: List[str] = []
    for result in results:
        schedules.extend(result.schedules)
        if result.room is not None and result.room not in rooms:
            rooms.append(result.room)
    return ScheduleExtraction(schedules=schedules, rooms=rooms)


def _sort_key(record: ScheduleRecord):
    return (weekday_index(record.day), record.roomNumber, record.timeSlot.start)


def _can_merge(last: ScheduleRecord, current: ScheduleRecord) -> bool:
    if last.roomNumber != current.roomNumber or last.day != current.day:
        return False
    if last.timeSlot.end != current.timeSlot.start:
        return False
    same_course = bool(last.course) and last.course == current.course
    continuation = bool(last.course) and not current.course
    return same_course or continuation


def merge_schedules(records: Sequence[ScheduleRecord]) -> List[ScheduleRecord]:
    """Join records of one class that the grid split over adjacent slots.

    Runs over the combined records of every page. The input records are left
    untouched; merged records are copies.
    """

    merged: List[ScheduleRecord] = []
    for record in sorted(records, key=_sort_key):
        current = record.model_copy(deep=True)
        if merged and _can_merge(merged[-1], current):
            last = merged[-1]
            last.timeSlot.end = current.timeSlot.end
            if current.course and not last.course:
                last.course = current.course
            last.rawContent = f"{last.rawContent} / {current.rawContent}"
            continue
        merged.append(current)
    return merged


def extract_schedules(
    pages: Iterable[Iterable[FragmentLike]],
    config: Optional[GridConfig] = None,
) -> ScheduleExtraction:
    """Decoded pages in, merged room schedules out."""

    raw = aggregate_pages(pages, config)
    schedules = merge_schedules(raw.schedules)
    logger.info(
        "Extracted %d schedule(s) (%d before merging) for %d room(s)",
        len(schedules), len(raw.schedules), len(raw.rooms),
    )
    return ScheduleExtraction(schedules=schedules, rooms=raw.rooms)


__all__ = [
    "PageResult",
    "aggregate_pages",
    "extract_schedules",
    "merge_schedules",
    "process_page",
]

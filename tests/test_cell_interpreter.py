from dataclasses import replace

from roomplanner.parsers.base_parser import RawFragment, Token
from roomplanner.parsers.cell_interpreter import (
    CellInterpreter,
    CellView,
    extract_course,
    fix_batch_typo,
    is_biweekly,
)
from roomplanner.parsers.config import GridConfig
from roomplanner.parsers.grid import Cell, TimeSlotDef
from roomplanner.parsers.schedule import process_page


CONFIG = GridConfig()


def page(room: str, *content: Token):
    return [
        Token(2.0, 1.0, room),
        Token(1.0, 10.0, "Mon"),
        Token(1.0, 20.0, "Tue"),
        Token(5.0, 5.0, "8:00 - 9:15"),
        Token(20.0, 5.0, "9:15 - 10:30"),
        Token(35.0, 5.0, "10:30 - 11:45"),
        *content,
    ]


def test_duration_keyword_spans_two_slots() -> None:
    fragments = [
        RawFragment(2.0, 1.0, "Room-205"),
        RawFragment(1.0, 10.0, "Mon"),
        RawFragment(5.0, 5.0, "8%3A00%20-%209%3A15"),
        RawFragment(20.0, 5.0, "9%3A15%20-%2010%3A30"),
        RawFragment(6.0, 11.0, "CSE%204510%20100%20mins%20C1S1"),
    ]
    result = process_page(fragments, CONFIG)

    assert result.room == "205"
    assert len(result.schedules) == 1
    record = result.schedules[0]
    assert record.roomNumber == "205"
    assert record.day == "Monday"
    assert (record.timeSlot.start, record.timeSlot.end) == ("08:00", "10:30")
    assert record.course == "CSE 4510"
    assert record.batch == "C1S1"
    assert record.teacher == ""
    assert record.isBiWeekly is False
    assert record.needsReview is False
    assert record.rawContent == "CSE 4510 100 mins C1S1"


def test_single_slot_class_keeps_own_end() -> None:
    result = process_page(page("Room-205", Token(6.0, 10.5, "EEE 4483 C5S2")), CONFIG)
    record = result.schedules[0]
    assert (record.timeSlot.start, record.timeSlot.end) == ("08:00", "09:15")
    assert record.course == "EEE 4483"
    assert record.batch == "C5S2"


def test_unrecognised_batch_needs_review() -> None:
    result = process_page(page("Room-205", Token(6.0, 11.0, "ME 3S1")), CONFIG)
    record = result.schedules[0]
    assert record.batch == "All"
    assert record.needsReview is True


def test_lab_marker_consumes_next_cell() -> None:
    result = process_page(
        page(
            "Room-301",
            Token(6.0, 10.2, "CSE 4302"),
            Token(21.0, 10.5, "L-2"),
            Token(24.0, 11.0, "C6S1"),
        ),
        CONFIG,
    )
    assert len(result.schedules) == 1
    record = result.schedules[0]
    assert (record.timeSlot.start, record.timeSlot.end) == ("08:00", "10:30")
    assert record.course == "CSE 4302"
    assert record.batch == "C6S1"


def test_lab_room_spans_into_empty_next_slot() -> None:
    result = process_page(
        page("Lab-3", Token(6.0, 10.5, "CSE 4512"), Token(12.0, 11.0, "C5S2")),
        CONFIG,
    )
    assert result.room == "Lab-3"
    record = result.schedules[0]
    assert (record.timeSlot.start, record.timeSlot.end) == ("08:00", "10:30")
    assert record.batch == "C5S2"
    assert record.needsReview is False


def test_lab_room_does_not_swallow_next_class() -> None:
    result = process_page(
        page(
            "Lab-3",
            Token(6.0, 10.5, "CSE 4512 C5S2"),
            Token(21.0, 10.5, "EEE 4483 C5S1"),
        ),
        CONFIG,
    )
    assert [(r.timeSlot.start, r.timeSlot.end, r.course) for r in result.schedules] == [
        ("08:00", "09:15", "CSE 4512"),
        ("09:15", "11:45", "EEE 4483"),
    ]


def test_lab_policy_can_be_switched_off() -> None:
    config = replace(CONFIG, lab_rooms_span_two_slots=False)
    result = process_page(
        page("Lab-3", Token(6.0, 10.5, "CSE 4512"), Token(12.0, 11.0, "C5S2")),
        config,
    )
    assert result.schedules[0].timeSlot.end == "09:15"


def test_overflow_into_next_column() -> None:
    slot = TimeSlotDef(x=5.0, start="08:00", end="09:15", raw="8:00 - 9:15")
    next_slot = TimeSlotDef(x=20.0, start="09:15", end="10:30", raw="9:15 - 10:30")
    tokens = [Token(6.0, 10.0, "Math 4141"), Token(15.0, 10.5, "SW3")]
    view = CellView(
        cell=Cell(day="Mon", slot_index=0, tokens=list(tokens)),
        tokens=tokens,
        content="Math 4141 SW3",
        room_number="205",
        slot=slot,
        next_slot=next_slot,
        next_cell=None,
    )
    interpreter = CellInterpreter(CONFIG)
    assert interpreter.merge_reason(view) == "overflow"

    narrow = replace(view, tokens=tokens[:1], content="Math 4141")
    assert interpreter.merge_reason(narrow) is None


def test_biweekly_cells() -> None:
    assert is_biweekly("1A CSE 4510 CSS1 1B CSE 4510 CSS1")
    assert not is_biweekly("CSE 4510 EEE 4483")
    assert not is_biweekly("CSE 4510 C1S1")


def test_batch_typo_and_postgraduate() -> None:
    interpreter = CellInterpreter(CONFIG)
    assert fix_batch_typo("CSB2") == "C5B2"
    assert fix_batch_typo("C1S1") == "C1S1"
    assert interpreter.extract_batch("CSS1", "CSE 4510 CSS1") == "C5S1"
    assert interpreter.extract_batch("x", "CSE 6101 MSc") == "MSc(CSE)"
    assert interpreter.extract_batch("sw2", "Project sw2") == "SW2"
    assert interpreter.extract_batch("S2", "CSE 4510 S2") == "S2"
    assert interpreter.extract_batch("nothing", "nothing") == "All"


def test_extract_course_fallback() -> None:
    assert extract_course("Software Development Lab SW3") == "Software Development Lab"
    assert extract_course("C1S1") == ""
    assert extract_course("cse4510 C2S1") == "cse4510"


def test_needs_review_rules() -> None:
    interpreter = CellInterpreter(CONFIG)
    assert interpreter.needs_review("CSE 4510", "C1S1") is False
    assert interpreter.needs_review("CSE 4510", "All") is True
    assert interpreter.needs_review("", "C1S1") is True
    assert interpreter.needs_review("AB", "C1S1") is True
    assert interpreter.needs_review("---", "C1S1") is True
    assert interpreter.needs_review("ME3101", "C1S1") is True


def test_short_cells_produce_no_record() -> None:
    result = process_page(page("Room-205", Token(6.0, 10.5, "ab")), CONFIG)
    assert result.schedules == []


def test_short_cells_skip_course_and_batch_extraction(monkeypatch) -> None:
    interpreter = CellInterpreter(CONFIG)

    def fail(*args):
        raise AssertionError("batch extracted for a noise cell")

    monkeypatch.setattr(interpreter, "extract_batch", fail)
    result = process_page(
        page("Room-205", Token(6.0, 10.5, "ab"), Token(21.0, 10.5, "L-2")),
        CONFIG,
        interpreter,
    )
    # the L-marker cell is still consumed by its short neighbour
    assert result.schedules == []


def test_cells_are_visited_in_day_and_slot_order() -> None:
    result = process_page(
        page(
            "Room-205",
            Token(36.0, 20.0, "CSE 4803 C4S1"),
            Token(6.0, 20.0, "CSE 4801 C4S1"),
            Token(21.0, 10.0, "CSE 4501 C2S1"),
        ),
        CONFIG,
    )
    assert [(r.day, r.timeSlot.start) for r in result.schedules] == [
        ("Monday", "09:15"),
        ("Tuesday", "08:00"),
        ("Tuesday", "10:30"),
    ]


def test_page_without_grid_reports_room_only() -> None:
    result = process_page([Token(2.0, 1.0, "Room-110"), Token(5.0, 5.0, "8:00 - 9:15")], CONFIG)
    assert result.room == "110"
    assert result.schedules == []

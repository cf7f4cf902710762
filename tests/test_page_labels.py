from roomplanner.parsers.base_parser import RawFragment, Token
from roomplanner.parsers.config import GridConfig
from roomplanner.parsers.page_labels import PageLabelClassifier, classify_pages


def classifier() -> PageLabelClassifier:
    return PageLabelClassifier(GridConfig())


def filler(count: int):
    return [Token(30.0 + i, 25.0, f"Slot {i}") for i in range(count)]


def test_label_found_anywhere_on_page() -> None:
    tokens = filler(12) + [Token(25.0, 30.0, "BSc CSE 3rd-Section 2")]
    label = classifier().classify_page(tokens, 1)

    assert label.pageNumber == 1
    assert label.fullText == "BSc CSE 3rd-Section 2"
    assert label.batch == "BSc CSE"
    assert label.semester == "3rd"
    assert label.section == "2"
    assert label.rawText == ""


def test_top_left_tokens_are_read_in_line_order() -> None:
    tokens = [
        Token(5.0, 1.3, "CSE"),
        Token(8.0, 1.2, "3rd-Section 2"),
        Token(1.0, 1.0, "BSc"),
    ]
    label = classifier().classify_page(tokens, 2)
    assert label.fullText == "BSc CSE 3rd-Section 2"
    assert label.rawText == "BSc CSE 3rd-Section 2"


def test_top_left_window_wins_over_full_page() -> None:
    tokens = [
        Token(1.0, 1.0, "4th Year"),
        Token(20.0, 30.0, "BSc CSE 7th Semester Section 2"),
    ]
    label = classifier().classify_page(tokens, 1)
    assert label.fullText == "4th Year"
    assert label.semester == "4th Year"
    assert label.batch == ""


def test_rule_order_within_a_window() -> None:
    match = classifier().match_text
    assert match("BSc CSE 7th - Section 2").rule == "bsc_ordinal_spaced_hyphen_section"
    assert match("BSc EEE 5th Semester Section 1").full_text == "BSc EEE 5th Semester Section 1"
    assert match("BSc SWE 1st").rule == "bsc_ordinal"
    assert match("MSc / PhD CSE").full_text == "MSc / PhD CSE"
    assert match("MSc(CSE) Class Routine").full_text == "MSc(CSE)"
    assert match("Class Routine") is None


def test_percent_encoded_fragments_are_decoded() -> None:
    fragments = [RawFragment(1.0, 1.0, "BSc%20CSE%203rd-Section%201")]
    label = classifier().classify_page(fragments, 1)
    assert label.fullText == "BSc CSE 3rd-Section 1"


def test_unlabelled_page_falls_back_to_page_number() -> None:
    mapping = classify_pages(
        [
            [Token(1.0, 1.0, "BSc CSE 1st-Section 1")],
            [Token(1.0, 1.0, "BSc CSE 1st-Section 2")],
            [Token(1.0, 1.0, "Class Routine")],
        ],
        GridConfig(),
    )
    assert mapping.totalPages == 3
    assert [label.fullText for label in mapping.pageMapping] == [
        "BSc CSE 1st-Section 1",
        "BSc CSE 1st-Section 2",
        "Page 3",
    ]
    assert mapping.pageMapping[2].batch == ""
    assert mapping.pageMapping[2].rawText == "Class Routine"

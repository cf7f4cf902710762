"""Batch/section/semester labels for semester-wise timetable PDFs.

Each page of such a PDF belongs to one cohort whose name is printed in the
page header, usually in the top-left corner. The header is searched in
widening windows (top-left corner, top band, first tokens, whole page) and
the first window that yields any match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models import PageLabel, PageMapping
from .base_parser import FragmentLike, Token, join_texts, normalize_page, normalize_text
from .config import GridConfig, get_grid_config

logger = logging.getLogger(__name__)

ORDINAL = r"\d+(?:st|nd|rd|th)"


@dataclass(frozen=True)
class LabelRule:
    name: str
    pattern: "re.Pattern[str]"


@dataclass(frozen=True)
class LabelMatch:
    rule: str
    full_text: str
    batch: str = ""
    section: str = ""
    semester: str = ""


def build_label_rules(departments: Sequence[str]) -> Tuple[LabelRule, ...]:
    dept = "(?P<department>" + "|".join(re.escape(d) for d in departments) + ")"
    bsc = rf"(?P<degree>BSc)\s+{dept}\s+"
    specs = (
        ("msc_phd", rf"(?P<degree>MSc\s*/?\s*PhD)\s+{dept}"),
        ("msc", rf"(?P<degree>MSc)\s*\(?\s*{dept}\s*\)?"),
        ("bsc_ordinal_hyphen_section", rf"{bsc}(?P<ordinal>{ORDINAL})-Section\s+(?P<section>\d+)"),
        (
            "bsc_ordinal_spaced_hyphen_section",
            rf"{bsc}(?P<ordinal>{ORDINAL})\s+-\s+Section\s+(?P<section>\d+)",
        ),
        (
            "bsc_semester_section",
            rf"{bsc}(?P<ordinal>\d+(?:st|nd|rd|th)?)\s+Semester\s+Section\s+(?P<section>\d+)",
        ),
        ("bsc_ordinal", rf"{bsc}(?P<ordinal>{ORDINAL})"),
        ("bsc_ordinal_semester", rf"{bsc}(?P<ordinal>{ORDINAL})\s+Semester"),
        ("semester_section", rf"(?P<ordinal>{ORDINAL})\s+Semester\s+Section\s+(?P<section>\d+)"),
        ("year", rf"(?P<ordinal>{ORDINAL})\s+(?P<year>Year)(?:\s+Section\s+(?P<section>\d+))?"),
    )
    return tuple(LabelRule(name, re.compile(pattern, re.I)) for name, pattern in specs)


def _label_from_match(rule: LabelRule, match: "re.Match[str]") -> LabelMatch:
    groups: Dict[str, Optional[str]] = match.groupdict()
    batch = " ".join(part for part in (groups.get("degree"), groups.get("department")) if part)
    semester = groups.get("ordinal") or ""
    if semester and groups.get("year"):
        semester = f"{semester} {groups['year']}"
    return LabelMatch(
        rule=rule.name,
        full_text=normalize_text(match.group(0)),
        batch=normalize_text(batch),
        section=groups.get("section") or "",
        semester=normalize_text(semester),
    )


class PageLabelClassifier:
    def __init__(self, config: Optional[GridConfig] = None) -> None:
        self.config = config or get_grid_config()
        self.rules = build_label_rules(self.config.departments)

    def match_text(self, text: str) -> Optional[LabelMatch]:
        for rule in self.rules:
            match = rule.pattern.search(text)
            if match:
                return _label_from_match(rule, match)
        return None

    def _reading_order(self, tokens: List[Token]) -> List[Token]:
        tolerance = self.config.reading_order_tolerance

        def compare(a: Token, b: Token) -> float:
            if abs(a.y - b.y) < tolerance:
                return a.x - b.x
            return a.y - b.y

        return sorted(tokens, key=cmp_to_key(compare))

    def windows(self, tokens: List[Token]) -> List[Tuple[str, str]]:
        ordered = self._reading_order(tokens)
        (top_y, top_x) = self.config.top_left_window
        (area_y, area_x) = self.config.top_area_window
        return [
            ("top_left", join_texts([t for t in ordered if t.y < top_y and t.x < top_x])),
            ("top_area", join_texts([t for t in ordered if t.y < area_y and t.x < area_x])),
            ("leading_tokens", join_texts(ordered[: self.config.leading_token_count])),
            ("full_page", join_texts(ordered)),
        ]

    def classify_page(self, fragments: Iterable[FragmentLike], page_number: int) -> PageLabel:
        tokens = normalize_page(fragments)
        windows = self.windows(tokens)
        raw_text = windows[0][1][: self.config.raw_text_limit]

        for window_name, text in windows:
            logger.debug("Page %d %s: %r", page_number, window_name, text[:300])
            found = self.match_text(text)
            if found is None:
                continue
            logger.debug("Page %d matched %s in %s", page_number, found.rule, window_name)
            return PageLabel(
                pageNumber=page_number,
                batch=found.batch,
                section=found.section,
                semester=found.semester,
                fullText=found.full_text,
                rawText=raw_text,
            )

        logger.debug("Page %d: no label pattern matched", page_number)
        return PageLabel(pageNumber=page_number, fullText=f"Page {page_number}", rawText=raw_text)

    def classify_pages(self, pages: Sequence[Iterable[FragmentLike]]) -> PageMapping:
        labels = [
            self.classify_page(page, page_number)
            for page_number, page in enumerate(pages, start=1)
        ]
        for label in labels:
            logger.info("Page %d: %s", label.pageNumber, label.fullText)
        return PageMapping(totalPages=len(pages), pageMapping=labels)


def classify_pages(
    pages: Sequence[Iterable[FragmentLike]],
    config: Optional[GridConfig] = None,
) -> PageMapping:
    return PageLabelClassifier(config).classify_pages(pages)


__all__ = [
    "LabelMatch",
    "LabelRule",
    "PageLabelClassifier",
    "build_label_rules",
    "classify_pages",
]

"""Document decoding.

PDFs are read with `pdfplumber`. Word positions come out in PDF points and
are divided by ``GridConfig.unit_scale`` so they land in the page units of
pdf2json, which the grid tolerances are calibrated for. JSON dumps produced
by pdf2json itself are accepted as well; their text runs are percent-encoded
and get decoded by :func:`normalize_fragment` later on.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pdfplumber

from ..models import PageMapping, ScheduleExtraction
from .base_parser import RawFragment
from .config import GridConfig, get_grid_config
from .page_labels import classify_pages
from .schedule import extract_schedules

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".pdf", ".json"}

# keep "8:00 - 9:15" and "CSE 4510" together as single fragments
PDF_WORD_SETTINGS = {
    "keep_blank_chars": True,
    "use_text_flow": True,
    "x_tolerance": 1.5,
    "y_tolerance": 2,
}

Page = List[RawFragment]


class DocumentDecodeError(RuntimeError):
    """The document could not be turned into positioned text fragments."""


def load_pdf_pages(path: Union[str, Path], config: Optional[GridConfig] = None) -> List[Page]:
    config = config or get_grid_config()
    scale = config.unit_scale or 1.0
    pages: List[Page] = []
    try:
        with pdfplumber.open(str(path)) as pdf:
            for page in pdf.pages:
                words = page.extract_words(**PDF_WORD_SETTINGS)
                pages.append(
                    [
                        RawFragment(
                            x=float(word["x0"]) / scale,
                            y=float(word["top"]) / scale,
                            text=word["text"],
                            encoded=False,
                        )
                        for word in words
                    ]
                )
    except Exception as exc:  # pdfminer raises a zoo of exception types
        raise DocumentDecodeError(f"Could not read PDF {path}: {exc}") from exc
    logger.debug("Decoded %d page(s) from %s", len(pages), path)
    return pages


def _pdf2json_text(item: Dict[str, Any]) -> str:
    runs = item.get("R") or []
    return "".join(str(run.get("T", "")) for run in runs if isinstance(run, dict))


def pages_from_pdf2json(data: Dict[str, Any]) -> List[Page]:
    """Convert a parsed pdf2json document into raw fragment pages."""

    if not isinstance(data, dict):
        raise DocumentDecodeError("pdf2json document must be a JSON object")
    # pdf2json < 2 nests everything under "formImage"
    root = data.get("formImage", data)
    raw_pages = root.get("Pages") if isinstance(root, dict) else None
    if not isinstance(raw_pages, list):
        raise DocumentDecodeError("pdf2json document has no 'Pages' list")

    pages: List[Page] = []
    for raw_page in raw_pages:
        fragments: Page = []
        for item in (raw_page or {}).get("Texts") or []:
            try:
                fragments.append(
                    RawFragment(x=float(item["x"]), y=float(item["y"]), text=_pdf2json_text(item))
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise DocumentDecodeError(f"Malformed pdf2json text item: {item!r}") from exc
        pages.append(fragments)
    return pages


def load_pdf2json_pages(path: Union[str, Path]) -> List[Page]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise DocumentDecodeError(f"Could not read pdf2json dump {path}: {exc}") from exc
    return pages_from_pdf2json(data)


def load_document_pages(path: Union[str, Path], config: Optional[GridConfig] = None) -> List[Page]:
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return load_pdf2json_pages(path)
    if suffix == ".pdf":
        return load_pdf_pages(path, config)
    raise DocumentDecodeError(
        f"Unsupported file type {suffix or '(none)'} (use {', '.join(sorted(SUPPORTED_SUFFIXES))})"
    )


def extract_schedules_from_file(
    path: Union[str, Path], config: Optional[GridConfig] = None
) -> ScheduleExtraction:
    config = config or get_grid_config()
    return extract_schedules(load_document_pages(path, config), config)


def extract_page_labels_from_file(
    path: Union[str, Path], config: Optional[GridConfig] = None
) -> PageMapping:
    config = config or get_grid_config()
    return classify_pages(load_document_pages(path, config), config)


__all__ = [
    "DocumentDecodeError",
    "SUPPORTED_SUFFIXES",
    "extract_page_labels_from_file",
    "extract_schedules_from_file",
    "load_document_pages",
    "load_pdf2json_pages",
    "load_pdf_pages",
    "pages_from_pdf2json",
]

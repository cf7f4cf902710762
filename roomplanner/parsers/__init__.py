# re-export of the public parser entry points
from .base_parser import RawFragment, Token, normalize_page, normalize_time
from .cell_interpreter import CellInterpreter
from .config import GridConfig, get_grid_config
from .grid import assign_cells, calibrate_grid, detect_room_header
from .page_labels import PageLabelClassifier, classify_pages
from .parser_pdf import (
    DocumentDecodeError,
    extract_page_labels_from_file,
    extract_schedules_from_file,
    load_document_pages,
)
from .schedule import aggregate_pages, extract_schedules, merge_schedules, process_page

__all__ = [
    "CellInterpreter",
    "DocumentDecodeError",
    "GridConfig",
    "PageLabelClassifier",
    "RawFragment",
    "Token",
    "aggregate_pages",
    "assign_cells",
    "calibrate_grid",
    "classify_pages",
    "detect_room_header",
    "extract_page_labels_from_file",
    "extract_schedules",
    "extract_schedules_from_file",
    "get_grid_config",
    "load_document_pages",
    "merge_schedules",
    "normalize_page",
    "normalize_time",
    "process_page",
]

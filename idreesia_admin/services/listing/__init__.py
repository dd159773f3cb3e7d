from .controller import DUPLICATE_RULES, DuplicateRule, ListViewController, duplicate_draft, entity_to_dict
from .debounce import Debouncer
from .pagination import MAX_PAGE_BUTTONS, PageSummary, PageWindow, page_window
from .sorting import SortState, sort_rows

__all__ = [
    "DUPLICATE_RULES",
    "Debouncer",
    "DuplicateRule",
    "ListViewController",
    "MAX_PAGE_BUTTONS",
    "PageSummary",
    "PageWindow",
    "SortState",
    "duplicate_draft",
    "entity_to_dict",
    "page_window",
    "sort_rows",
]

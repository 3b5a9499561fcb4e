from playbill.imposition.core import (
    BLANK_PAGE,
    PAGES_PER_SHEET,
    BookletPage,
    BookletSpread,
    blank_filler,
    build_booklet_spreads,
    pad_to_multiple_of_four,
    sheet_count,
    spread_page_numbers,
)

__all__ = [
    "BLANK_PAGE",
    "PAGES_PER_SHEET",
    "BookletPage",
    "BookletSpread",
    "blank_filler",
    "build_booklet_spreads",
    "pad_to_multiple_of_four",
    "sheet_count",
    "spread_page_numbers",
]

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Literal, Sequence, TypeAlias, TypeVar

T = TypeVar("T")

BlankPageToken: TypeAlias = str
PageToken: TypeAlias = int | BlankPageToken
SheetSide = Literal["front", "back"]

BLANK_PAGE: BlankPageToken = "__BLANK_PAGE__"
PAGES_PER_SHEET = 4


@dataclass(frozen=True)
class BookletPage(Generic[T]):
    page_number: int
    content: T


@dataclass(frozen=True)
class BookletSpread(Generic[T]):
    sheet: int
    side: SheetSide
    left: BookletPage[T]
    right: BookletPage[T]


def pad_to_multiple_of_four(
    pages: Sequence[T],
    make_filler: Callable[[int], T],
) -> Sequence[T]:
    """Append fillers until the page count is a multiple of four.

    ``make_filler`` receives the filler's 0-based position among the fillers.
    When no padding is needed ``pages`` is returned as-is and the factory is
    never called.
    """
    remainder = len(pages) % PAGES_PER_SHEET
    if remainder == 0:
        return pages

    needed = PAGES_PER_SHEET - remainder
    padded = list(pages)
    padded.extend(make_filler(index) for index in range(needed))
    return padded


def blank_filler(_index: int) -> BlankPageToken:
    return BLANK_PAGE


def sheet_count(page_count: int) -> int:
    if page_count < 0:
        raise ValueError("page_count must be >= 0")
    if page_count % PAGES_PER_SHEET != 0:
        raise ValueError(f"pages must be padded to a multiple of 4, got {page_count}")
    return page_count // PAGES_PER_SHEET


def _booklet_page(pages: Sequence[T], page_number: int) -> BookletPage[T]:
    return BookletPage(page_number=page_number, content=pages[page_number - 1])


def build_booklet_spreads(pages: Sequence[T]) -> list[BookletSpread[T]]:
    """Map a padded page sequence onto saddle-stitch sheet sides.

    Sheets are emitted in ascending order, front side first. Stacking the
    printed sheets and folding them once reads pages 1..N in order.
    """
    total = len(pages)
    sheets = sheet_count(total)
    spreads: list[BookletSpread[T]] = []

    for sheet_index in range(sheets):
        offset = 2 * sheet_index
        spreads.append(
            BookletSpread(
                sheet=sheet_index + 1,
                side="front",
                left=_booklet_page(pages, total - offset),
                right=_booklet_page(pages, 1 + offset),
            )
        )
        spreads.append(
            BookletSpread(
                sheet=sheet_index + 1,
                side="back",
                left=_booklet_page(pages, 2 + offset),
                right=_booklet_page(pages, total - (offset + 1)),
            )
        )

    return spreads


def spread_page_numbers(spreads: Sequence[BookletSpread[T]]) -> list[int]:
    numbers: list[int] = []
    for spread in spreads:
        numbers.extend((spread.left.page_number, spread.right.page_number))
    return numbers

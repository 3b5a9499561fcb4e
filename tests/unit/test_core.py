from __future__ import annotations

import pytest

from playbill.imposition.core import (
    BLANK_PAGE,
    BookletPage,
    BookletSpread,
    blank_filler,
    build_booklet_spreads,
    pad_to_multiple_of_four,
    sheet_count,
    spread_page_numbers,
)

pytestmark = pytest.mark.unit


class _RecordingFiller:
    def __init__(self) -> None:
        self.calls: list[int] = []

    def __call__(self, index: int) -> str:
        self.calls.append(index)
        return f"FILLER-{index}"


@pytest.mark.parametrize("length", range(0, 14))
def test_padding_always_reaches_a_multiple_of_four(length: int) -> None:
    padded = pad_to_multiple_of_four([f"P{n}" for n in range(length)], lambda index: f"FILLER-{index}")
    assert len(padded) % 4 == 0
    assert len(padded) - length < 4


@pytest.mark.parametrize("length", [0, 4, 8, 12])
def test_padding_returns_same_sequence_without_calling_factory(length: int) -> None:
    pages = [f"P{n}" for n in range(length)]
    filler = _RecordingFiller()

    padded = pad_to_multiple_of_four(pages, filler)

    assert padded is pages
    assert filler.calls == []


def test_padding_returns_tuples_unchanged() -> None:
    pages = ("a", "b", "c", "d")
    assert pad_to_multiple_of_four(pages, blank_filler) is pages


def test_padding_five_pages_appends_three_indexed_fillers() -> None:
    pages = [f"P{n}" for n in range(1, 6)]
    filler = _RecordingFiller()

    padded = pad_to_multiple_of_four(pages, filler)

    assert len(padded) == 8
    assert list(padded[:5]) == pages
    assert list(padded[-3:]) == ["FILLER-0", "FILLER-1", "FILLER-2"]
    assert filler.calls == [0, 1, 2]


def test_padding_does_not_mutate_input() -> None:
    pages = ["P1", "P2", "P3"]
    padded = pad_to_multiple_of_four(pages, blank_filler)

    assert pages == ["P1", "P2", "P3"]
    assert padded == ["P1", "P2", "P3", BLANK_PAGE]
    assert padded is not pages


def test_padding_propagates_factory_failure_after_first_filler() -> None:
    seen: list[int] = []

    def failing_filler(index: int) -> str:
        seen.append(index)
        if index == 1:
            raise RuntimeError("filler unavailable")
        return f"FILLER-{index}"

    with pytest.raises(RuntimeError, match="filler unavailable"):
        pad_to_multiple_of_four([f"P{n}" for n in range(6)], failing_filler)

    assert seen == [0, 1]


def test_spreads_for_empty_booklet() -> None:
    assert build_booklet_spreads([]) == []


def test_four_page_booklet_reads_through_the_fold() -> None:
    spreads = build_booklet_spreads(["P1", "P2", "P3", "P4"])
    assert spread_page_numbers(spreads) == [4, 1, 2, 3]


def test_eight_page_booklet_layout() -> None:
    pages = [f"P{n}" for n in range(1, 9)]

    assert build_booklet_spreads(pages) == [
        BookletSpread(1, "front", BookletPage(8, "P8"), BookletPage(1, "P1")),
        BookletSpread(1, "back", BookletPage(2, "P2"), BookletPage(7, "P7")),
        BookletSpread(2, "front", BookletPage(6, "P6"), BookletPage(3, "P3")),
        BookletSpread(2, "back", BookletPage(4, "P4"), BookletPage(5, "P5")),
    ]


@pytest.mark.parametrize("sheets", [1, 2, 3, 5, 10])
def test_spreads_cover_every_page_exactly_once(sheets: int) -> None:
    total = sheets * 4
    pages = list(range(total))

    spreads = build_booklet_spreads(pages)

    assert len(spreads) == 2 * sheets
    assert [spread.side for spread in spreads] == ["front", "back"] * sheets
    assert [spread.sheet for spread in spreads[::2]] == list(range(1, sheets + 1))
    assert [spread.sheet for spread in spreads[1::2]] == list(range(1, sheets + 1))
    assert sorted(spread_page_numbers(spreads)) == list(range(1, total + 1))
    for spread in spreads:
        for slot in (spread.left, spread.right):
            assert slot.content == pages[slot.page_number - 1]


@pytest.mark.parametrize("sheets", [1, 2, 4])
def test_folded_stack_reads_in_ascending_order(sheets: int) -> None:
    total = sheets * 4
    spreads = build_booklet_spreads(list(range(1, total + 1)))
    fronts = spreads[0::2]
    backs = spreads[1::2]

    # The first half of the booklet runs down the front-right then back-left
    # slots; the second half comes back up through back-right and front-left.
    first_half: list[int] = []
    for front, back in zip(fronts, backs):
        first_half.extend((front.right.page_number, back.left.page_number))
    second_half: list[int] = []
    for front, back in reversed(list(zip(fronts, backs))):
        second_half.extend((back.right.page_number, front.left.page_number))

    assert first_half + second_half == list(range(1, total + 1))


@pytest.mark.parametrize("length", [1, 2, 3, 5, 6, 7, 9])
def test_spreads_reject_unpadded_input(length: int) -> None:
    with pytest.raises(ValueError, match="multiple of 4"):
        build_booklet_spreads(list(range(length)))


def test_spreads_do_not_mutate_input() -> None:
    pages = ["P1", "P2", "P3", "P4"]
    build_booklet_spreads(pages)
    assert pages == ["P1", "P2", "P3", "P4"]


def test_sheet_count_validates_padding() -> None:
    assert sheet_count(0) == 0
    assert sheet_count(12) == 3
    with pytest.raises(ValueError, match="multiple of 4"):
        sheet_count(10)
    with pytest.raises(ValueError, match=">= 0"):
        sheet_count(-4)


def test_pad_then_build_with_blank_tokens() -> None:
    padded = pad_to_multiple_of_four(list(range(9)), blank_filler)
    spreads = build_booklet_spreads(padded)

    assert len(padded) == 12
    assert [(spread.left.content, spread.right.content) for spread in spreads] == [
        (BLANK_PAGE, 0),
        (1, BLANK_PAGE),
        (BLANK_PAGE, 2),
        (3, 8),
        (7, 4),
        (5, 6),
    ]

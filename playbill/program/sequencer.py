from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Sequence, cast
from urllib.parse import urlparse

from playbill.constants import (
    FALLBACK_PAGE_BODY,
    FALLBACK_PAGE_TITLE,
    FILLER_PAGE_BODY,
    FILLER_PAGE_TITLE,
)
from playbill.imposition.core import BookletSpread, build_booklet_spreads, pad_to_multiple_of_four
from playbill.program.models import (
    LAYOUT_TOKENS,
    CustomPage,
    CustomPageKind,
    LayoutToken,
    Person,
    ProgramContent,
    ProgramPage,
)

_TAG_PATTERN = re.compile(r"<[^>]+>")
_NBSP_PATTERN = re.compile(r"&nbsp;", re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\s+")
_CUSTOM_PAGE_KINDS: tuple[CustomPageKind, ...] = ("text", "image", "photos")

# Text sections: token -> (page id, page title, ProgramContent attribute).
_TEXT_SECTIONS: dict[str, tuple[str, str, str]] = {
    "director_note": ("director-note", "Director's Note", "director_notes"),
    "dramaturgical_note": ("dramaturgical-note", "Dramaturgical Note", "dramaturgical_note"),
    "billing": ("billing", "Billing", "billing_page"),
    "acts_songs": ("acts-songs", "Acts & Songs", "acts_songs"),
    "department_info": ("department-info", "Department Information", "department_info"),
    "acknowledgements": ("acknowledgements", "Acknowledgements", "acknowledgements"),
    "season_calendar": ("season-calendar", "Season Calendar", "season_calendar"),
}


@dataclass(frozen=True)
class ProgramBooklet:
    page_sequence: list[ProgramPage]
    padded_pages: Sequence[ProgramPage]
    spreads: list[BookletSpread[ProgramPage]]

    @property
    def sheets(self) -> int:
        return len(self.spreads) // 2


def has_rich_text_content(markup: str | None) -> bool:
    if not markup:
        return False

    text_only = _TAG_PATTERN.sub(" ", markup)
    text_only = _NBSP_PATTERN.sub(" ", text_only)
    return bool(_WHITESPACE_PATTERN.sub(" ", text_only).strip())


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def non_blank_lines(text: str | None) -> list[str]:
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_layout_order(text: str | None) -> tuple[LayoutToken, ...]:
    tokens: list[LayoutToken] = []
    for line in non_blank_lines(text):
        if line not in LAYOUT_TOKENS:
            valid = ", ".join(LAYOUT_TOKENS)
            raise ValueError(f"unsupported layout token '{line}', expected one of: {valid}")
        tokens.append(cast(LayoutToken, line))

    return tuple(tokens) if tokens else LAYOUT_TOKENS


def parse_production_photos(text: str | None) -> tuple[str, ...]:
    return tuple(line for line in non_blank_lines(text) if is_http_url(line))


def _split_photo_urls(body: str) -> list[str]:
    return [item.strip() for item in body.split(",") if item.strip()]


def parse_custom_pages(text: str | None) -> tuple[CustomPage, ...]:
    """Parse ``Title | kind | body`` lines into custom pages."""
    pages: list[CustomPage] = []
    for line in non_blank_lines(text):
        parts = [part.strip() for part in line.split("|")]
        title = parts[0]
        normalized_kind = parts[1].lower() if len(parts) > 1 else ""
        body_parts = parts[2:]
        if not title or not body_parts:
            raise ValueError(f"invalid custom page line: {line}")
        if normalized_kind not in _CUSTOM_PAGE_KINDS:
            raise ValueError(f"invalid custom page type in line: {line}")

        body = " | ".join(body_parts)
        if normalized_kind == "image" and not is_http_url(body):
            raise ValueError(f"custom page image URL is invalid in line: {line}")
        if normalized_kind == "photos" and not all(is_http_url(url) for url in _split_photo_urls(body)):
            raise ValueError(f"custom page photo URL is invalid in line: {line}")

        pages.append(CustomPage(title=title, kind=cast(CustomPageKind, normalized_kind), body=body))

    return tuple(pages)


def generate_auto_billing(people: Sequence[Person]) -> str:
    def section(title: str, rows: list[Person]) -> str:
        if not rows:
            return ""
        items = "".join(
            f"<li><strong>{html.escape(row.role_title)}</strong>: {html.escape(row.full_name)}</li>"
            for row in rows
        )
        return f"<h3>{html.escape(title)}</h3><ul>{items}</ul>"

    def ordered(team_type: str) -> list[Person]:
        return sorted(
            (person for person in people if person.team_type == team_type),
            key=lambda person: (person.role_title.casefold(), person.full_name.casefold()),
        )

    return section("Cast", ordered("cast")) + section("Production Team", ordered("production"))


def _custom_page(page: CustomPage, index: int) -> ProgramPage:
    if page.kind == "text":
        return ProgramPage(id=f"custom-text-{index}", type="text", title=page.title, body=page.body)
    if page.kind == "image":
        return ProgramPage(id=f"custom-image-{index}", type="image", title=page.title, image_url=page.body)
    return ProgramPage(
        id=f"custom-photos-{index}",
        type="photo_grid",
        title=page.title,
        photos=tuple(_split_photo_urls(page.body)),
    )


def _section_page(
    token: LayoutToken,
    program: ProgramContent,
    cast_people: Sequence[Person],
    production_people: Sequence[Person],
) -> ProgramPage | None:
    if token == "poster":
        if not program.poster_image_url.strip():
            return None
        return ProgramPage(
            id="poster",
            type="poster",
            title=program.title,
            subtitle=f"{program.theatre_name} | {program.show_dates}",
            image_url=program.poster_image_url,
        )
    if token == "cast_bios":
        if not cast_people:
            return None
        return ProgramPage(id="cast-bios", type="bios", title="Who's Who in the Cast", people=tuple(cast_people))
    if token == "team_bios":
        if not production_people:
            return None
        return ProgramPage(
            id="team-bios",
            type="bios",
            title="Who's Who in the Production Team",
            people=tuple(production_people),
        )
    if token == "actf_ad":
        if not program.actf_ad_image_url:
            return None
        return ProgramPage(id="actf-ad", type="image", title="ACTF", image_url=program.actf_ad_image_url)

    page_id, title, attribute = _TEXT_SECTIONS[token]
    body = getattr(program, attribute)
    if not has_rich_text_content(body):
        return None
    return ProgramPage(id=page_id, type="text", title=title, body=body)


def build_program_pages(
    program: ProgramContent,
    cast_people: Sequence[Person] = (),
    production_people: Sequence[Person] = (),
) -> list[ProgramPage]:
    """Resolve the layout order into the reading-order page sequence.

    Sections without content are skipped. A program with no content at all
    still yields a single placeholder page.
    """
    pages: list[ProgramPage] = []

    for token in program.layout_order:
        if token == "custom_pages":
            pages.extend(_custom_page(page, index) for index, page in enumerate(program.custom_pages))
            continue

        if token == "production_photos":
            if program.production_photo_urls:
                pages.append(
                    ProgramPage(
                        id="production-photos",
                        type="photo_grid",
                        title="Production Photos",
                        photos=tuple(program.production_photo_urls),
                    )
                )
            continue

        page = _section_page(token, program, cast_people, production_people)
        if page is not None:
            pages.append(page)

    if not pages:
        pages.append(
            ProgramPage(id="fallback-info", type="filler", title=FALLBACK_PAGE_TITLE, body=FALLBACK_PAGE_BODY)
        )

    return pages


def make_filler_page(index: int) -> ProgramPage:
    return ProgramPage(id=f"filler-{index}", type="filler", title=FILLER_PAGE_TITLE, body=FILLER_PAGE_BODY)


def paginate_program(
    program: ProgramContent,
    cast_people: Sequence[Person] = (),
    production_people: Sequence[Person] = (),
) -> ProgramBooklet:
    page_sequence = build_program_pages(program, cast_people, production_people)
    padded_pages = pad_to_multiple_of_four(page_sequence, make_filler_page)
    return ProgramBooklet(
        page_sequence=page_sequence,
        padded_pages=padded_pages,
        spreads=build_booklet_spreads(padded_pages),
    )

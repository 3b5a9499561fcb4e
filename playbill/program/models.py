from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

LayoutToken = Literal[
    "poster",
    "director_note",
    "dramaturgical_note",
    "billing",
    "acts_songs",
    "cast_bios",
    "team_bios",
    "department_info",
    "actf_ad",
    "acknowledgements",
    "season_calendar",
    "production_photos",
    "custom_pages",
]
LAYOUT_TOKENS: Final[tuple[LayoutToken, ...]] = (
    "poster",
    "director_note",
    "dramaturgical_note",
    "billing",
    "acts_songs",
    "cast_bios",
    "team_bios",
    "department_info",
    "actf_ad",
    "acknowledgements",
    "season_calendar",
    "production_photos",
    "custom_pages",
)

TeamType = Literal["cast", "production"]
CustomPageKind = Literal["text", "image", "photos"]
PageType = Literal["poster", "text", "bios", "image", "photo_grid", "filler"]


@dataclass(frozen=True)
class Person:
    full_name: str
    role_title: str
    team_type: TeamType
    bio: str = ""
    headshot_url: str = ""
    email: str = ""


@dataclass(frozen=True)
class CustomPage:
    title: str
    kind: CustomPageKind
    body: str


@dataclass(frozen=True)
class ProgramContent:
    title: str
    theatre_name: str = ""
    show_dates: str = ""
    poster_image_url: str = ""
    director_notes: str = ""
    dramaturgical_note: str = ""
    billing_page: str = ""
    acts_songs: str = ""
    department_info: str = ""
    actf_ad_image_url: str = ""
    acknowledgements: str = ""
    season_calendar: str = ""
    production_photo_urls: tuple[str, ...] = ()
    custom_pages: tuple[CustomPage, ...] = ()
    layout_order: tuple[LayoutToken, ...] = LAYOUT_TOKENS


@dataclass(frozen=True)
class ProgramPage:
    """One logical page of a playbill.

    Every page type shares this shape so renderers can treat filler pages
    exactly like content pages.
    """

    id: str
    type: PageType
    title: str
    body: str = ""
    subtitle: str = ""
    image_url: str = ""
    people: tuple[Person, ...] = ()
    photos: tuple[str, ...] = ()

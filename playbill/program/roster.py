from __future__ import annotations

import re
from typing import Iterable, Sequence, cast

from playbill.program.models import Person, TeamType
from playbill.program.sequencer import has_rich_text_content, non_blank_lines

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_TEAM_TYPES: tuple[TeamType, ...] = ("cast", "production")


def _normalize(value: str) -> str:
    return " ".join(value.split()).lower()


def person_key(person: Person) -> tuple[str, str, str]:
    return _normalize(person.full_name), _normalize(person.role_title), person.team_type


def _split_line(line: str, width: int) -> list[str]:
    parts = [part.strip() for part in line.split("|")]
    return (parts + [""] * width)[:width]


def parse_roster_lines(text: str | None) -> list[Person]:
    """Parse ``Name | Role | cast|production | email`` lines.

    The team column defaults to production; the email column is optional.
    """
    people: list[Person] = []
    for line in non_blank_lines(text):
        name, role, team, email = _split_line(line, 4)
        team_type = (team or "production").lower()
        if not name or not role or team_type not in _TEAM_TYPES:
            raise ValueError(f"invalid roster line: {line}")

        if email and not _EMAIL_PATTERN.match(email):
            raise ValueError(f"invalid roster email: {line}")

        people.append(Person(full_name=name, role_title=role, team_type=cast(TeamType, team_type), email=email))

    return people


def parse_people_lines(text: str | None, team_type: TeamType) -> list[Person]:
    """Parse ``Name | Role | bio | headshot URL`` lines for one team."""
    people: list[Person] = []
    for line in non_blank_lines(text):
        name, role, bio, headshot_url = _split_line(line, 4)
        if not name or not role:
            raise ValueError(f"invalid people line: {line}")
        people.append(
            Person(full_name=name, role_title=role, team_type=team_type, bio=bio, headshot_url=headshot_url)
        )

    return people


def merge_people(people: Iterable[Person]) -> list[Person]:
    """Collapse entries for the same name, role and team.

    Later entries win field by field; empty fields fall back to what an
    earlier entry supplied. The first occurrence fixes the position.
    """
    merged: dict[tuple[str, str, str], Person] = {}
    for person in people:
        key = person_key(person)
        existing = merged.get(key)
        if existing is None:
            merged[key] = person
            continue

        merged[key] = Person(
            full_name=person.full_name,
            role_title=person.role_title,
            team_type=person.team_type,
            bio=person.bio if has_rich_text_content(person.bio) else existing.bio,
            headshot_url=person.headshot_url or existing.headshot_url,
            email=person.email or existing.email,
        )

    return list(merged.values())


def split_teams(people: Sequence[Person]) -> tuple[list[Person], list[Person]]:
    def ordered(team_type: TeamType) -> list[Person]:
        return sorted(
            (person for person in people if person.team_type == team_type),
            key=lambda person: person.full_name.casefold(),
        )

    return ordered("cast"), ordered("production")

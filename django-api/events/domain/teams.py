"""Team grouping for team-based NORMAL events.

A team is the set of seat-holding registrations whose team names match
case-insensitively after whitespace is collapsed.
"""

from collections.abc import Iterable

from events.domain.models import TeamOption


def normalize_team_name(value: object) -> str:
    return " ".join(str(value or "").split())


def team_key(value: object) -> str:
    return normalize_team_name(value).lower()


def build_team_options(team_names: Iterable[str], max_team_size: int) -> tuple[TeamOption, ...]:
    """Group registration team names into options; the first spelling seen names the team."""
    display: dict[str, str] = {}
    counts: dict[str, int] = {}
    for raw in team_names:
        name = normalize_team_name(raw)
        if not name:
            continue
        key = name.lower()
        display.setdefault(key, name)
        counts[key] = counts.get(key, 0) + 1

    options = [
        TeamOption(
            team_key=key,
            team_name=display[key],
            member_count=count,
            available_spots=max(0, max_team_size - count),
            is_full=count >= max_team_size,
        )
        for key, count in counts.items()
    ]
    return tuple(sorted(options, key=lambda option: option.team_name.lower()))

import random
from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .constants import TEAM_COUNT, TEAM_SIZE, GENDERS, canonical_gender


class OpenSlot:
    """Filler entry for a team with fewer real players than TEAM_SIZE."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'OPEN_SLOT'

    def to_dict(self) -> dict:
        return {'open_slot': True}


OPEN_SLOT = OpenSlot()


def is_open_slot(entry: Any) -> bool:
    return entry is OPEN_SLOT


def gender_of(participant: Any) -> str:
    """Gender used for balancing. Legacy aliases are mapped, missing values count as the default."""
    if isinstance(participant, dict):
        gender = participant.get('gender')
    else:
        gender = getattr(participant, 'gender', None)
    return canonical_gender(gender)


def group_by_gender(participants: Iterable[Any]) -> Dict[str, List[Any]]:
    """
    Split participants by gender, keeping input order inside each group.

    Groups come back in tie-break order: the known genders first (female,
    then male), any other value after them in order of first appearance.
    """
    groups = {gender: [] for gender in GENDERS}
    for p in participants:
        groups.setdefault(gender_of(p), []).append(p)
    return groups


def interleave(groups: Sequence[List[Any]]) -> List[Any]:
    """
    Merge groups by always taking from the one with the most left.

    On a tie the group listed first wins. Order inside each group is kept.
    """
    queues = [deque(g) for g in groups]
    combined = []
    while any(queues):
        # max() returns the first maximal queue, which is the tie-break rule
        queue = max(queues, key=len)
        combined.append(queue.popleft())
    return combined


def deal_round_robin(players: Sequence[Any], team_count: int = TEAM_COUNT) -> List[List[Any]]:
    teams = [[] for _ in range(team_count)]
    for i, player in enumerate(players):
        teams[i % team_count].append(player)
    return teams


def draw_teams(
    confirmed: Iterable[Any],
    seed: Optional[int] = None,
    team_count: int = TEAM_COUNT,
    team_size: int = TEAM_SIZE
) -> List[List[Any]]:
    """
    Split the confirmed players into balanced, randomized teams.

    Args:
        confirmed: Players in confirmation order. Anything beyond
            team_count * team_size is ignored. Items may be model objects or
            dicts; only their gender is read.
        seed: Seed for the shuffle. None draws fresh entropy on every call.

    Returns:
        team_count lists of exactly team_size entries, each entry either one
        of the input players or OPEN_SLOT.
    """
    capacity = team_count * team_size
    players = list(confirmed)[:capacity]
    rng = random.Random(seed)

    groups = list(group_by_gender(players).values())
    for group in groups:
        rng.shuffle(group)

    teams = deal_round_robin(interleave(groups), team_count)

    for team in teams:
        while len(team) < team_size:
            team.append(OPEN_SLOT)

    return teams


def team_to_dicts(team: List[Any]) -> List[dict]:
    return [entry.to_dict() if hasattr(entry, 'to_dict') else dict(entry) for entry in team]


def teams_to_dicts(teams: List[List[Any]]) -> List[dict]:
    return [
        {
            'team': i + 1,
            'players': team_to_dicts(team),
            'real_count': sum(1 for entry in team if not is_open_slot(entry)),
        }
        for i, team in enumerate(teams)
    ]

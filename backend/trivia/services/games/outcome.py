from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from trivia.models import Player
from .leaderboard import ranked

SOLE_SURVIVOR = 'sole survivor'
TIE_AMONG_ELIMINATED = 'tie among eliminated players at top score'
TOP_ELIMINATED = 'highest score among eliminated'
HIGHEST_FINAL_SCORE = 'highest final score'
TOP_SURVIVOR = 'highest score among survivors'
TIE_AMONG_SURVIVORS = 'tie among survivors'
NO_PARTICIPANTS = 'no participants'


@dataclass(frozen=True)
class Outcome:
    winner: Optional[str]
    reason: str
    final_leaderboard: List[Dict] = field(default_factory=list)

    def to_dict(self):
        return {
            'winner': self.winner,
            'finalLeaderboard': self.final_leaderboard,
            'reason': self.reason,
        }


def _unique_top(players: List[Player]) -> Optional[Player]:
    top = max(p.score for p in players)
    leaders = [p for p in players if p.score == top]
    return leaders[0] if len(leaders) == 1 else None


def resolve_outcome(players: Iterable[Player]) -> Outcome:
    """Decide the winner of a finished room.

    Branches are evaluated in a fixed order:

    1. exactly one player still active wins outright;
    2. nobody active and everyone eliminated: unique top score wins, a shared
       top score means no winner;
    3. nobody active but not everyone flagged eliminated (inconsistent state):
       highest scorer overall;
    4. several players still active (questions ran out): unique top score
       among them wins, otherwise no winner;
    5. no players at all.
    """
    players = list(players)
    # Lives are checked too so a player left at zero lives without the flag is not active
    active = [p for p in players if not p.eliminated and p.lives > 0]
    final_leaderboard = [
        {
            'displayName': p.display_name,
            'score': p.score,
            'finalLives': p.lives,
            'eliminated': p.eliminated,
        }
        for p in ranked(players)
    ]

    if len(active) == 1:
        return Outcome(active[0].display_name, SOLE_SURVIVOR, final_leaderboard)

    if not active and players and all(p.eliminated for p in players):
        top = _unique_top(players)
        if top is None:
            return Outcome(None, TIE_AMONG_ELIMINATED, final_leaderboard)
        return Outcome(top.display_name, TOP_ELIMINATED, final_leaderboard)

    if not active and players:
        return Outcome(ranked(players)[0].display_name, HIGHEST_FINAL_SCORE, final_leaderboard)

    if len(active) > 1:
        top = _unique_top(active)
        if top is None:
            return Outcome(None, TIE_AMONG_SURVIVORS, final_leaderboard)
        return Outcome(top.display_name, TOP_SURVIVOR, final_leaderboard)

    return Outcome(None, NO_PARTICIPANTS, final_leaderboard)

from typing import Dict, Iterable, List, Optional

from trivia.models import Player


def ranked(players: Iterable[Player]) -> List[Player]:
    """Score descending; ties keep join order."""
    return sorted(players, key=lambda p: (-p.score, p.join_seq))


def project_leaderboard(players: Iterable[Player], correct_answerer: Optional[str] = None) -> List[Dict]:
    """Build the ranked view broadcast after every state change.

    Pure: reads the players, never mutates them.
    """
    return [
        {
            'displayName': p.display_name,
            'score': p.score,
            'isCurrentRoundCorrect': correct_answerer is not None and p.identity == correct_answerer,
            'lives': p.lives,
            'eliminated': p.eliminated,
        }
        for p in ranked(players)
    ]

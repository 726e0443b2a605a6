from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from trivia.services.games.question_bank import Question


@dataclass
class Player:
    identity: str
    display_name: str
    join_seq: int
    lives: int = 3
    score: int = 0
    eliminated: bool = False
    answered_this_round: bool = False
    # A wrong answer already cost a life this round; timeout skips the player
    penalized_this_round: bool = False

    def lose_life(self) -> bool:
        """Take one life. Returns True when this call eliminated the player."""
        self.lives -= 1
        if self.lives <= 0 and not self.eliminated:
            self.eliminated = True
            return True
        return False

    def reset_round(self) -> None:
        self.answered_this_round = False
        self.penalized_this_round = False


@dataclass
class Room:
    room_id: str
    players: Dict[str, Player] = field(default_factory=dict)
    phase: str = 'lobby'  # lobby, in_progress, finished
    current_question: Optional[Question] = None
    question_started_at: Optional[float] = None
    correct_answerer: Optional[str] = None
    used_prompts: Set[str] = field(default_factory=set)
    round_number: int = 0
    round_open: bool = False
    ending: bool = False
    countdown: Optional[Any] = None
    tasks: List[Any] = field(default_factory=list)
    last_outcome: Optional[Dict[str, Any]] = None
    next_join_seq: int = 0

    def has_name(self, display_name: str) -> bool:
        wanted = display_name.lower()
        return any(p.display_name.lower() == wanted for p in self.players.values())

    def add_player(self, identity: str, display_name: str, lives: int) -> Player:
        player = Player(identity=identity, display_name=display_name, join_seq=self.next_join_seq, lives=lives)
        self.next_join_seq += 1
        self.players[identity] = player
        return player

    def active_players(self) -> List[Player]:
        return [p for p in self.players.values() if not p.eliminated]

    def to_dict(self):
        return {
            'room': self.room_id,
            'phase': self.phase,
            'players': len(self.players),
            'activePlayers': len(self.active_players()),
            'questionsUsed': len(self.used_prompts),
        }

"""Socket.IO message shapes.

Every event the server accepts or emits has exactly one class here. Outbound
classes know their event name and how to render their payload; inbound classes
validate raw client data and return ``None`` when it is unusable.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional


class Outbound:
    event: ClassVar[str]

    def payload(self) -> Any:
        return None


# ---- inbound ----

@dataclass(frozen=True)
class JoinGame:
    username: str
    room: str

    @classmethod
    def parse(cls, data) -> Optional['JoinGame']:
        if not isinstance(data, dict):
            return None
        username = data.get('username')
        room = data.get('room')
        if not isinstance(username, str) or not isinstance(room, str):
            return None
        username, room = username.strip(), room.strip()
        if not username or not room:
            return None
        return cls(username=username, room=room)


@dataclass(frozen=True)
class AnswerQuestion:
    answer: str

    @classmethod
    def parse(cls, data) -> Optional['AnswerQuestion']:
        if isinstance(data, dict):
            data = data.get('answer')
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            data = str(data)
        if not isinstance(data, str):
            return None
        return cls(answer=data)


# ---- outbound ----

@dataclass(frozen=True)
class PlayerJoined(Outbound):
    event: ClassVar[str] = 'playerJoined'
    name: str

    def payload(self):
        return self.name


@dataclass(frozen=True)
class PlayerLeft(Outbound):
    event: ClassVar[str] = 'playerLeft'
    name: str

    def payload(self):
        return self.name


@dataclass(frozen=True)
class UsernameTaken(Outbound):
    event: ClassVar[str] = 'usernameTaken'


@dataclass(frozen=True)
class JoinGameSuccess(Outbound):
    event: ClassVar[str] = 'joinGameSuccess'
    username: str
    room: str

    def payload(self):
        return {'username': self.username, 'room': self.room}


@dataclass(frozen=True)
class NewQuestion(Outbound):
    event: ClassVar[str] = 'newQuestion'
    prompt: str
    time_limit: int

    def payload(self):
        return {'prompt': self.prompt, 'timeLimit': self.time_limit}


@dataclass(frozen=True)
class TimerUpdate(Outbound):
    event: ClassVar[str] = 'timerUpdate'
    seconds_left: int

    def payload(self):
        return self.seconds_left


@dataclass(frozen=True)
class CorrectAnswer(Outbound):
    event: ClassVar[str] = 'correctAnswer'
    answer: str

    def payload(self):
        return self.answer


@dataclass(frozen=True)
class IncorrectAnswer(Outbound):
    event: ClassVar[str] = 'incorrectAnswer'


@dataclass(frozen=True)
class AllowRetry(Outbound):
    event: ClassVar[str] = 'allowRetry'


@dataclass(frozen=True)
class TimeOut(Outbound):
    event: ClassVar[str] = 'timeOut'


@dataclass(frozen=True)
class YouAreEliminated(Outbound):
    event: ClassVar[str] = 'youAreEliminated'


@dataclass(frozen=True)
class PlayerEliminated(Outbound):
    event: ClassVar[str] = 'playerEliminated'
    name: str

    def payload(self):
        return self.name


@dataclass(frozen=True)
class LeaderboardUpdate(Outbound):
    event: ClassVar[str] = 'leaderboardUpdate'
    entries: List[Dict] = field(default_factory=list)

    def payload(self):
        return list(self.entries)


@dataclass(frozen=True)
class NextQuestionAnnouncement(Outbound):
    event: ClassVar[str] = 'nextQuestionAnnouncement'
    count: int

    def payload(self):
        return self.count


@dataclass(frozen=True)
class GameOver(Outbound):
    event: ClassVar[str] = 'gameOver'
    winner: Optional[str]
    final_leaderboard: List[Dict]
    reason: str

    def payload(self):
        return {
            'winner': self.winner,
            'finalLeaderboard': list(self.final_leaderboard),
            'reason': self.reason,
            # Reserved; nothing detects simultaneous eliminations yet
            'simultaneousElimination': False,
            'lastEliminatedUsernames': [],
        }


@dataclass(frozen=True)
class Message(Outbound):
    event: ClassVar[str] = 'message'
    text: str

    def payload(self):
        return self.text


@dataclass(frozen=True)
class Error(Outbound):
    event: ClassVar[str] = 'error'
    message: str

    def payload(self):
        return {'message': self.message}


WAITING_FOR_PLAYERS = 'Waiting for more players...'
TIMES_UP = "Time's up!"

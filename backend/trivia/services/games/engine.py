import logging
import math
import random
import threading
from dataclasses import dataclass
from typing import Optional

from trivia.messages import (
    AllowRetry, CorrectAnswer, GameOver, IncorrectAnswer, JoinGameSuccess,
    LeaderboardUpdate, Message, NewQuestion, NextQuestionAnnouncement,
    PlayerEliminated, PlayerJoined, PlayerLeft, TimeOut, TimerUpdate,
    UsernameTaken, YouAreEliminated, TIMES_UP, WAITING_FOR_PLAYERS,
)
from trivia.models import Player, Room
from .leaderboard import project_leaderboard
from .outcome import resolve_outcome
from .question_bank import QuestionBank

NO_MORE_QUESTIONS = 'no more questions'


@dataclass(frozen=True)
class GameSettings:
    time_limit: int = 30
    tick: float = 1.0
    starting_lives: int = 3
    min_players: int = 2
    round_end_pause: float = 1.0
    next_question_countdown: int = 3
    next_question_delay: float = 2.0
    game_end_delay: float = 1.0

    @classmethod
    def from_config(cls, config) -> 'GameSettings':
        return cls(
            time_limit=int(config.get('QUESTION_TIME_LIMIT_SEC', 30)),
            tick=float(config.get('TIMER_TICK_SEC', 1)),
            starting_lives=int(config.get('STARTING_LIVES', 3)),
            min_players=int(config.get('MIN_PLAYERS', 2)),
            round_end_pause=float(config.get('ROUND_END_PAUSE_SEC', 1)),
            next_question_countdown=int(config.get('NEXT_QUESTION_COUNTDOWN', 3)),
            next_question_delay=float(config.get('NEXT_QUESTION_DELAY_SEC', 2)),
            game_end_delay=float(config.get('GAME_END_DELAY_SEC', 1)),
        )


class RoomGameEngine:
    """State machine for a single room.

    Every public method and every scheduled callback takes ``self.lock``
    before touching the room, so joins, answers, ticks and timeouts for one
    room never interleave. Scheduled callbacks carry the round number they
    were created for and do nothing once that round is over or the engine
    has been closed.
    """

    def __init__(self, room_id: str, bank: QuestionBank, notifier, scheduler,
                 settings: Optional[GameSettings] = None,
                 logger: Optional[logging.Logger] = None,
                 rng: Optional[random.Random] = None):
        self.room = Room(room_id=room_id)
        self.bank = bank
        self.notifier = notifier
        self.scheduler = scheduler
        self.settings = settings or GameSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.rng = rng or random.Random()
        self.lock = threading.RLock()
        self.closed = False

    @property
    def room_id(self) -> str:
        return self.room.room_id

    def is_empty(self) -> bool:
        with self.lock:
            return not self.room.players

    def snapshot(self):
        with self.lock:
            return self.room.to_dict()

    # ---- inbound operations ----

    def can_join(self, identity: str, display_name: str) -> bool:
        """True if 'join' would seat this connection under this name."""
        with self.lock:
            room = self.room
            return not (self.closed or identity in room.players or room.has_name(display_name))

    def join(self, identity: str, display_name: str) -> bool:
        with self.lock:
            room = self.room
            if self.closed or identity in room.players:
                return False
            if room.has_name(display_name):
                self.notifier.send(identity, UsernameTaken())
                self.logger.info(f"[join-rejected] room={room.room_id} name={display_name!r} taken")
                return False

            room.add_player(identity, display_name, self.settings.starting_lives)
            self.notifier.enter(identity, room.room_id)
            self.notifier.broadcast(room.room_id, PlayerJoined(display_name))
            self._refresh_leaderboard()
            self.notifier.send(identity, JoinGameSuccess(display_name, room.room_id))
            self.logger.info(f"[join] room={room.room_id} name={display_name!r} players={len(room.players)}")

            if room.phase == 'lobby':
                if len(room.active_players()) >= self.settings.min_players:
                    self.start_game()
                else:
                    self.notifier.send(identity, Message(WAITING_FOR_PLAYERS))
            elif room.phase == 'in_progress' and room.round_open:
                self.notifier.send(identity, NewQuestion(room.current_question.prompt, self.settings.time_limit))
                self.notifier.send(identity, TimerUpdate(max(0, self._seconds_left())))
            elif room.phase == 'finished' and room.last_outcome is not None:
                self.notifier.send(identity, room.last_outcome)
            return True

    def submit_answer(self, identity: str, raw_answer: str) -> None:
        with self.lock:
            room = self.room
            if self.closed or room.phase != 'in_progress' or not room.round_open:
                return
            if room.correct_answerer is not None:
                return
            player = room.players.get(identity)
            if player is None or player.answered_this_round or player.eliminated:
                return

            question = room.current_question
            if question.matches(raw_answer):
                player.score += 1
                player.answered_this_round = True
                room.correct_answerer = identity
                room.round_open = False
                self._cancel_countdown()
                self.notifier.send(identity, CorrectAnswer(question.expected_answer))
                self._refresh_leaderboard()
                self.logger.info(
                    f"[answer-correct] room={room.room_id} round={room.round_number} name={player.display_name!r} score={player.score}"
                )
                self._schedule(self.settings.round_end_pause, self._announce_next_question,
                               room.round_number, name='announce')
                return

            player.penalized_this_round = True
            eliminated = player.lose_life()
            self.notifier.send(identity, IncorrectAnswer())
            self.logger.info(
                f"[answer-wrong] room={room.room_id} round={room.round_number} name={player.display_name!r} lives={player.lives}"
            )
            if eliminated:
                self._eliminate(player)
            else:
                self.notifier.send(identity, AllowRetry())
                self._refresh_leaderboard()

    def leave(self, identity: str) -> Optional[Player]:
        with self.lock:
            room = self.room
            player = room.players.pop(identity, None)
            if player is None:
                return None
            self.notifier.leave(identity, room.room_id)
            self.logger.info(f"[leave] room={room.room_id} name={player.display_name!r} players={len(room.players)}")
            if not room.players:
                return player
            self.notifier.broadcast(room.room_id, PlayerLeft(player.display_name))
            self._refresh_leaderboard()
            if not player.eliminated and room.phase == 'in_progress':
                self._check_game_end()
            return player

    def close(self) -> None:
        """Cancel everything outstanding. Later callbacks become no-ops."""
        with self.lock:
            self.closed = True
            self._cancel_tasks()

    # ---- game lifecycle ----

    def start_game(self) -> bool:
        with self.lock:
            room = self.room
            if self.closed or room.phase != 'lobby':
                return False
            if len(room.active_players()) < self.settings.min_players:
                self.notifier.broadcast(room.room_id, Message(WAITING_FOR_PLAYERS))
                return False
            room.phase = 'in_progress'
            room.correct_answerer = None
            self.logger.info(f"[game-start] room={room.room_id} players={len(room.players)}")
            self.advance_question()
            return True

    def advance_question(self) -> None:
        with self.lock:
            room = self.room
            if self.closed or room.phase != 'in_progress' or room.ending:
                return
            question = self.bank.pick_unused(room.used_prompts, self.rng)
            if question is None:
                self.logger.info(f"[questions-exhausted] room={room.room_id} used={len(room.used_prompts)}")
                self.end_game(cause=NO_MORE_QUESTIONS)
                return

            self._cancel_countdown()
            room.round_number += 1
            room.current_question = question
            room.used_prompts.add(question.prompt)
            room.correct_answerer = None
            for player in room.players.values():
                player.reset_round()
            room.question_started_at = self.scheduler.now()
            room.round_open = True
            self.notifier.broadcast(room.room_id, NewQuestion(question.prompt, self.settings.time_limit))
            self.logger.info(f"[round-start] room={room.room_id} round={room.round_number} prompt={question.prompt!r}")
            room.countdown = self._schedule(self.settings.tick, self._tick, room.round_number, name='countdown')

    def resolve_timeout(self, round_number: int) -> None:
        with self.lock:
            room = self.room
            if not self._round_is_current(round_number):
                return
            if room.correct_answerer is not None or not room.round_open:
                return
            room.round_open = False
            self._cancel_countdown()
            self.logger.info(f"[timer-fire] room={room.room_id} round={round_number}")
            self.notifier.broadcast(room.room_id, Message(TIMES_UP))

            for player in list(room.players.values()):
                # A wrong answer already cost a life this round; one round charges
                # at most one life, so the timeout skips that player
                if player.answered_this_round or player.eliminated or player.penalized_this_round:
                    continue
                eliminated = player.lose_life()
                self.notifier.send(player.identity, TimeOut())
                if eliminated:
                    self._eliminate(player)

            self._refresh_leaderboard()
            if not room.ending:
                self._schedule(self.settings.round_end_pause, self._announce_next_question,
                               round_number, name='announce')

    def end_game(self, cause: Optional[str] = None) -> None:
        with self.lock:
            room = self.room
            if self.closed or room.phase != 'in_progress':
                return
            outcome = resolve_outcome(room.players.values())
            reason = f"{cause}: {outcome.reason}" if cause else outcome.reason
            room.phase = 'finished'
            room.round_open = False
            room.ending = False
            self._cancel_tasks()
            room.last_outcome = GameOver(outcome.winner, outcome.final_leaderboard, reason)
            self.notifier.broadcast(room.room_id, room.last_outcome)
            self.logger.info(f"[game-over] room={room.room_id} winner={outcome.winner!r} reason={reason!r}")

    # ---- internals (caller holds the lock) ----

    def _tick(self, round_number: int) -> None:
        with self.lock:
            room = self.room
            if not self._round_is_current(round_number) or not room.round_open:
                return
            seconds_left = self._seconds_left()
            self.notifier.broadcast(room.room_id, TimerUpdate(max(0, seconds_left)))
            if seconds_left <= 0:
                room.countdown = None
                self.resolve_timeout(round_number)
            else:
                room.countdown = self._schedule(self.settings.tick, self._tick, round_number, name='countdown')

    def _eliminate(self, player: Player) -> bool:
        """Announce an elimination; returns True if it ended the game."""
        room = self.room
        self.notifier.send(player.identity, YouAreEliminated())
        self.notifier.broadcast(room.room_id, PlayerEliminated(player.display_name))
        self._refresh_leaderboard()
        self.logger.info(f"[eliminated] room={room.room_id} round={room.round_number} name={player.display_name!r}")
        if len(room.active_players()) <= 1:
            self._schedule_game_end()
            return True
        return False

    def _check_game_end(self) -> None:
        if self.room.ending:
            return
        if len(self.room.active_players()) <= 1:
            self._schedule_game_end()

    def _schedule_game_end(self, cause: Optional[str] = None) -> None:
        room = self.room
        if room.ending:
            return
        room.ending = True
        room.round_open = False
        self._cancel_countdown()
        self._schedule(self.settings.game_end_delay, self._finish_pending_game, cause, name='game-end')

    def _finish_pending_game(self, cause: Optional[str]) -> None:
        with self.lock:
            if self.closed or not self.room.ending:
                return
            self.end_game(cause)

    def _announce_next_question(self, round_number: int) -> None:
        with self.lock:
            if not self._round_is_current(round_number) or self.room.ending:
                return
            self.notifier.broadcast(self.room.room_id, NextQuestionAnnouncement(self.settings.next_question_countdown))
            self._schedule(self.settings.next_question_delay, self._advance_from_round,
                           round_number, name='advance')

    def _advance_from_round(self, round_number: int) -> None:
        with self.lock:
            if not self._round_is_current(round_number):
                return
            self.advance_question()

    def _round_is_current(self, round_number: int) -> bool:
        return (
            not self.closed
            and self.room.phase == 'in_progress'
            and self.room.round_number == round_number
        )

    def _seconds_left(self) -> int:
        elapsed = self.scheduler.now() - (self.room.question_started_at or 0)
        return self.settings.time_limit - math.floor(elapsed)

    def _refresh_leaderboard(self) -> None:
        entries = project_leaderboard(self.room.players.values(), self.room.correct_answerer)
        self.notifier.broadcast(self.room.room_id, LeaderboardUpdate(entries))

    def _schedule(self, delay: float, callback, *args, name: str):
        room = self.room
        room.tasks = [t for t in room.tasks if t.pending]
        task = self.scheduler.call_later(delay, callback, *args, name=f"{name}:{room.room_id}")
        room.tasks.append(task)
        return task

    def _cancel_countdown(self) -> None:
        if self.room.countdown is not None:
            self.room.countdown.cancel()
            self.room.countdown = None

    def _cancel_tasks(self) -> None:
        for task in self.room.tasks:
            task.cancel()
        self.room.tasks = []
        self.room.countdown = None

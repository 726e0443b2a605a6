import heapq
import itertools
import os
import random
import sys
from collections import defaultdict

import pytest

# Ensure the backend root (containing the `trivia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from trivia import create_app, socketio
from trivia.services.games.engine import GameSettings
from trivia.services.games.question_bank import Question, QuestionBank
from trivia.services.games.registry import RoomRegistry
from trivia.services.games.scheduler import ScheduledTask


class TestConfig:
    __test__ = False
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    QUESTIONS_PATH = os.path.join(BACKEND_ROOT, 'questions.json')
    CORS_ORIGINS = '*'
    QUESTION_TIME_LIMIT_SEC = 30
    TIMER_TICK_SEC = 1
    ROUND_END_PAUSE_SEC = 1
    NEXT_QUESTION_COUNTDOWN = 3
    NEXT_QUESTION_DELAY_SEC = 2
    GAME_END_DELAY_SEC = 1
    STARTING_LIVES = 3
    MIN_PLAYERS = 2


QUESTIONS = [
    Question('What is the capital of France?', 'Paris'),
    Question('What planet is known as the Red Planet?', 'Mars'),
    Question('What is the chemical symbol for gold?', 'Au'),
    Question('How many sides does a hexagon have?', '6'),
    Question('What is the largest ocean on Earth?', 'Pacific'),
    Question('What is the square root of 81?', '9'),
]
ANSWERS = {q.prompt: q.expected_answer for q in QUESTIONS}


class ManualScheduler:
    """Virtual clock: callbacks only run when a test calls ``advance``."""

    def __init__(self):
        self.clock = 0.0
        self._queue = []
        self._seq = itertools.count()

    def now(self):
        return self.clock

    def call_later(self, delay, callback, *args, name='task'):
        task = ScheduledTask(name, self.clock + delay)
        heapq.heappush(self._queue, (task.due, next(self._seq), task, callback, args))
        return task

    def advance(self, seconds):
        target = self.clock + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, task, callback, args = heapq.heappop(self._queue)
            self.clock = max(self.clock, due)
            if task.cancelled:
                continue
            task.done = True
            callback(*args)
        self.clock = target

    def pending(self):
        return [entry[2] for entry in self._queue if entry[2].pending]


class RecordingNotifier:
    """Collects (target, event, payload) triples instead of emitting."""

    def __init__(self):
        self.sent = []
        self.members = defaultdict(set)

    def enter(self, identity, room_id):
        self.members[room_id].add(identity)

    def leave(self, identity, room_id):
        self.members[room_id].discard(identity)

    def broadcast(self, room_id, message):
        self.sent.append((f'room:{room_id}', message.event, message.payload()))

    def send(self, identity, message):
        self.sent.append((identity, message.event, message.payload()))

    def events(self, event, target=None):
        return [p for t, e, p in self.sent if e == event and (target is None or t == target)]

    def last(self, event, target=None):
        found = self.events(event, target)
        return found[-1] if found else None

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def bank():
    return QuestionBank(QUESTIONS)


@pytest.fixture()
def answers():
    return dict(ANSWERS)


@pytest.fixture()
def settings():
    return GameSettings()


@pytest.fixture()
def registry(bank, notifier, scheduler, settings):
    return RoomRegistry(bank, notifier, scheduler, settings=settings, rng=random.Random(7))


@pytest.fixture()
def flask_app(scheduler, bank):
    application = create_app(TestConfig, scheduler=scheduler, question_bank=bank)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect_player(flask_app):
    """Factory for Socket.IO test clients on /ws; all are disconnected at teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except RuntimeError:
            pass


@pytest.fixture()
def sio_client(connect_player):
    return connect_player()

import logging
import random
import threading
from typing import Dict, List, Optional

from .engine import GameSettings, RoomGameEngine
from .question_bank import QuestionBank


class RoomRegistry:
    """Owns every live room and which room each connection belongs to.

    Rooms are created on the first join and destroyed (timers cancelled)
    as soon as their last player leaves. Membership changes hold the
    registry lock; answers only hold the target room's lock.
    """

    def __init__(self, bank: QuestionBank, notifier, scheduler,
                 settings: Optional[GameSettings] = None,
                 logger: Optional[logging.Logger] = None,
                 rng: Optional[random.Random] = None):
        self.bank = bank
        self.notifier = notifier
        self.scheduler = scheduler
        self.settings = settings or GameSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.rng = rng
        self._rooms: Dict[str, RoomGameEngine] = {}
        self._memberships: Dict[str, str] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def get(self, room_id: str) -> Optional[RoomGameEngine]:
        return self._rooms.get(room_id)

    def room_of(self, identity: str) -> Optional[str]:
        return self._memberships.get(identity)

    def join(self, identity: str, display_name: str, room_id: str) -> bool:
        with self._lock:
            engine = self._rooms.get(room_id)
            if engine is None:
                engine = RoomGameEngine(
                    room_id, self.bank, self.notifier, self.scheduler,
                    settings=self.settings, logger=self.logger,
                    rng=self.rng if self.rng is not None else random.Random(),
                )
                self._rooms[room_id] = engine
                self.logger.info(f"[room-created] room={room_id}")

            # Only give up the previous seat once this join is certain to succeed
            current = self._memberships.get(identity)
            if current is not None and current != room_id and engine.can_join(identity, display_name):
                self._leave_locked(identity)

            joined = engine.join(identity, display_name)
            if joined:
                self._memberships[identity] = room_id
            elif engine.is_empty():
                self._destroy(room_id)
            return joined

    def submit_answer(self, identity: str, raw_answer: str) -> None:
        with self._lock:
            room_id = self._memberships.get(identity)
            engine = self._rooms.get(room_id) if room_id is not None else None
        if engine is None:
            return
        engine.submit_answer(identity, raw_answer)

    def leave(self, identity: str) -> Optional[str]:
        """Remove the connection from its room. Returns the room id it left."""
        with self._lock:
            return self._leave_locked(identity)

    def snapshot(self) -> List[dict]:
        with self._lock:
            engines = list(self._rooms.values())
        return [e.snapshot() for e in engines]

    def _leave_locked(self, identity: str) -> Optional[str]:
        room_id = self._memberships.pop(identity, None)
        engine = self._rooms.get(room_id) if room_id is not None else None
        if engine is None:
            return None
        engine.leave(identity)
        if engine.is_empty():
            self._destroy(room_id)
        return room_id

    def _destroy(self, room_id: str) -> None:
        engine = self._rooms.pop(room_id, None)
        if engine is None:
            return
        engine.close()
        self.logger.info(f"[room-destroyed] room={room_id}")

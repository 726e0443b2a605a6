import logging
import time
from typing import Callable, Optional


class ScheduledTask:
    """Handle for a delayed callback. Cancelling is idempotent."""

    def __init__(self, name: str, due: float):
        self.name = name
        self.due = due
        self.cancelled = False
        self.done = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.done)

    def __repr__(self):
        return f"<ScheduledTask {self.name} due={self.due:.2f} cancelled={self.cancelled} done={self.done}>"


class SocketIOScheduler:
    """Runs delayed callbacks as Socket.IO background tasks.

    Uses ``socketio.sleep`` so the wait cooperates with whichever async mode
    (threading, eventlet, gevent) the server was started with.
    """

    def __init__(self, socketio, logger: Optional[logging.Logger] = None):
        self.socketio = socketio
        self.logger = logger or logging.getLogger(__name__)

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable, *args, name: str = 'task') -> ScheduledTask:
        task = ScheduledTask(name, self.now() + delay)
        self.socketio.start_background_task(self._run, task, delay, callback, args)
        return task

    def _run(self, task: ScheduledTask, delay: float, callback: Callable, args) -> None:
        if delay > 0:
            self.socketio.sleep(delay)
        if task.cancelled:
            return
        task.done = True
        try:
            callback(*args)
        except Exception:
            self.logger.exception(f"[timer-error] task={task.name}")

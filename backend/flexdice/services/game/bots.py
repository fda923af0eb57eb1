import threading
import time
from typing import Set


class BotScheduler:
    """Rolls for AI players when the cursor reaches them.

    - Runs inline with no delay in TESTING mode
    - Otherwise sleeps BOT_TURN_DELAY_SEC in a Socket.IO background task
    - Keeps a single pending worker per room
    - Chains while consecutive seats are bots
    """

    def __init__(self, app, socketio, controller):
        self.app = app
        self.socketio = socketio
        self.controller = controller
        self._pending: Set[str] = set()
        self._guard = threading.Lock()

    def __call__(self, room: str) -> None:
        if not self.controller.bot_to_move(room):
            return

        if self.app.config.get('TESTING') and not self.app.config.get('ENABLE_BOT_DELAY_IN_TESTS'):
            while self.controller.play_bot_turn(room):
                pass
            return

        with self._guard:
            if room in self._pending:
                self.app.logger.info(f"[bot-skip] room={room} already scheduled")
                return
            self._pending.add(room)

        delay = float(self.app.config.get('BOT_TURN_DELAY_SEC', 1.0))
        self.app.logger.info(f"[bot-set] room={room} delay={delay}s")
        self.socketio.start_background_task(self._worker, room, delay)

    def _worker(self, room: str, delay: float) -> None:
        if delay > 0:
            time.sleep(delay)
        with self._guard:
            self._pending.discard(room)
        with self.app.app_context():
            if self.controller.play_bot_turn(room):
                self(room)

"""Session controller: the single entry point for room and game requests.

The controller owns the authoritative ``GameSession`` of every room it has
touched. Each request runs under the room's mutex from the first read to the
last broadcast. Mutations are applied to a draft copy which only replaces
the live session after the store has accepted it, so a rejected request or a
failed write leaves no trace.
"""
import logging
import threading
from typing import Callable, Dict, List, Optional, Set, Tuple

from . import players, turns
from .dice import RollResolver
from .errors import GameError, InvalidRequest, InvalidState, NotFound, PersistenceFailure
from .registry import RoomRegistry, clean_room_name
from .state import GameSession, Player, Status


class SessionController:

    def __init__(self, registry: RoomRegistry, store, transport, resolver: RollResolver,
                 logger: Optional[logging.Logger] = None, starting_chips: int = 3,
                 min_players: int = 2, write_retries: int = 1):
        self.registry = registry
        self.store = store
        self.transport = transport
        self.resolver = resolver
        self.logger = logger or logging.getLogger(__name__)
        self.starting_chips = starting_chips
        self.min_players = min_players
        self.write_retries = write_retries
        # Called with a room name once a request has released the room lock
        self.bot_scheduler: Optional[Callable[[str], None]] = None
        self._sessions: Dict[str, GameSession] = {}
        self._connections: Dict[str, Set[Tuple[str, str]]] = {}
        self._conn_guard = threading.Lock()

    @classmethod
    def from_config(cls, config, store, transport, logger=None) -> 'SessionController':
        return cls(
            RoomRegistry(store),
            store,
            transport,
            RollResolver.from_config(config),
            logger=logger,
            starting_chips=int(config.get('STARTING_CHIPS', 3)),
            min_players=int(config.get('MIN_PLAYERS', 2)),
            write_retries=int(config.get('PERSIST_WRITE_RETRIES', 1)),
        )

    # ---- rooms ----

    def list_rooms(self) -> List[str]:
        return self.registry.list_rooms()

    def create_room(self, name) -> List[str]:
        name = clean_room_name(name)
        with self.registry.locked(name):
            self.registry.create_room(name)
            self._sessions[name] = GameSession(room=name)
        self.logger.info(f"[room-create] room={name}")
        rooms = self.registry.list_rooms()
        self.transport.broadcast_all('availableRooms', rooms)
        return rooms

    def remove_room(self, name) -> List[str]:
        name = clean_room_name(name)
        with self.registry.locked(name):
            self.registry.remove_room(name)
            abandoned = self._sessions.pop(name, None)
            with self._conn_guard:
                for seats in self._connections.values():
                    seats.difference_update({s for s in seats if s[0] == name})
            self.transport.broadcast(name, 'roomRemoved', {'room': name})
            self.transport.close(name)
        self.registry.forget(name)
        unfinished = abandoned is not None and abandoned.winner is None and bool(abandoned.players)
        self.logger.info(f"[room-remove] room={name} abandoned_game={unfinished}")
        rooms = self.registry.list_rooms()
        self.transport.broadcast_all('availableRooms', rooms)
        return rooms

    # ---- membership ----

    def join(self, room, player_name, sid: Optional[str] = None, is_ai: bool = False) -> dict:
        room = clean_room_name(room)
        with self.registry.locked(room):
            created_room = room not in self._sessions and not self.registry.exists(room)
            # A new room is written together with its first seat
            session = GameSession(room=room) if created_room else self._session(room)
            draft = session.clone()
            player, created = players.join(draft, player_name, self.starting_chips, is_ai=is_ai)
            turns.seat_cursor(draft)
            history = self.store.message_history(room) if sid and not created_room else []
            self._commit(draft)
            if sid:
                self.transport.join(sid, room)
                if not player.is_ai:
                    with self._conn_guard:
                        self._connections.setdefault(sid, set()).add((room, player.name))
                self.transport.emit_to(sid, 'messageHistory', history)
            self.transport.broadcast(room, 'user_joined', f"{player.name} joined the room", skip_sid=sid)
            self._publish(draft)
            self.logger.info(
                f"[join] room={room} player={player.name} new_seat={created} ai={player.is_ai} chips={player.chips}")
        if created_room:
            self.transport.broadcast_all('availableRooms', self.registry.list_rooms())
        self._wake_bots(room)
        return player.to_dict(draft.seat_of(player.name))

    def leave(self, room, player_name, sid: Optional[str] = None) -> None:
        room = clean_room_name(room)
        with self.registry.locked(room):
            session = self._session(room)
            draft = session.clone()
            player = players.leave(draft, player_name)
            self._commit(draft)
            if sid:
                with self._conn_guard:
                    self._connections.get(sid, set()).discard((room, player.name))
                self.transport.leave(sid, room)
            self.transport.broadcast(room, 'user_left', f"{player.name} left the room")
            self._publish(draft)
            self.logger.info(f"[leave] room={room} player={player.name} status={self._status(draft).value}")

    def disconnect(self, sid: str) -> None:
        """Release every seat held only by ``sid``."""
        with self._conn_guard:
            seats = self._connections.pop(sid, set())
            still_held = set().union(*self._connections.values())
        for room, name in sorted(seats - still_held):
            try:
                self.leave(room, name)
            except GameError as exc:
                self.logger.warning(f"[disconnect] sid={sid} room={room} player={name} not released: {exc.message}")

    def members(self, room) -> List[str]:
        room = clean_room_name(room)
        with self.registry.locked(room):
            session = self._session(room)
            return [p.name for p in session.players if p.connected]

    # ---- game ----

    def snapshot(self, room) -> dict:
        room = clean_room_name(room)
        with self.registry.locked(room):
            session = self._session(room)
            return session.to_dict(self._status(session))

    def roll(self, room, player_id=None, player_name=None, roll_results=None) -> dict:
        """Resolve a roll for the player at the cursor.

        Dice are always rolled here; ``roll_results`` from a client is
        ignored.
        """
        room = clean_room_name(room)
        if roll_results is not None:
            self.logger.warning(f"[roll] room={room} ignoring client supplied rollResults={roll_results!r}")
        with self.registry.locked(room):
            session = self._session(room)
            status = self._status(session)
            if status == Status.FINISHED:
                raise InvalidState(f"Game in room '{room}' is finished; winner is {session.winner}")
            if status == Status.WAITING_FOR_PLAYERS:
                raise InvalidState(f"Room '{room}' is waiting for players")
            player = self._find_player(session, player_id, player_name)
            turns.ensure_turn(session, player)
            outcome = self._roll_locked(session, player)
        self._wake_bots(room)
        return outcome

    def skip_turn(self, room) -> dict:
        """Pass over a current player who has dropped off."""
        room = clean_room_name(room)
        with self.registry.locked(room):
            session = self._session(room)
            if self._status(session) == Status.FINISHED:
                raise InvalidState(f"Game in room '{room}' is finished")
            current = session.current_player
            if current is None or turns.can_take_turn(current):
                raise InvalidState(f"Current player in room '{room}' is present and can roll")
            draft = session.clone()
            turns.advance(draft)
            self._commit(draft)
            self.logger.info(f"[skip] room={room} skipped={current.name} next={draft.current_player.name}")
            self._publish(draft)
            result = draft.to_dict(self._status(draft))
        self._wake_bots(room)
        return result

    def restart(self, room) -> dict:
        room = clean_room_name(room)
        with self.registry.locked(room):
            session = self._session(room)
            if self._status(session) != Status.FINISHED:
                raise InvalidState(f"Game in room '{room}' is not finished")
            draft = session.clone()
            players.reset_chips(draft, self.starting_chips)
            draft.cursor = None
            turns.advance(draft)
            self._commit(draft)
            self.logger.info(f"[restart] room={room} players={len(draft.players)}")
            self._publish(draft)
            result = draft.to_dict(self._status(draft))
        self._wake_bots(room)
        return result

    # ---- chat ----

    def post_message(self, room, sender, message, sid: Optional[str] = None) -> dict:
        room = clean_room_name(room)
        if not sender or not isinstance(message, str) or not message.strip():
            raise InvalidRequest('sender and message are required')
        with self.registry.locked(room):
            saved = self.store.append_message(room, sender, message)
            self.transport.broadcast(room, 'message', saved, skip_sid=sid)
        return saved

    def messages(self, room) -> List[dict]:
        return self.store.message_history(clean_room_name(room))

    # ---- bots ----

    def bot_to_move(self, room: str) -> bool:
        session = self._sessions.get(room)
        if session is None or self._status(session) != Status.IN_PROGRESS:
            return False
        current = session.current_player
        return bool(current and current.is_ai)

    def play_bot_turn(self, room: str) -> bool:
        """Roll for the current player if it is a bot. Returns True if it rolled."""
        with self.registry.locked(room):
            session = self._sessions.get(room)
            if session is None or self._status(session) != Status.IN_PROGRESS:
                return False
            current = session.current_player
            if current is None or not current.is_ai:
                return False
            try:
                self._roll_locked(session, current)
            except GameError as exc:
                self.logger.error(f"[bot] room={room} player={current.name} roll failed: {exc.message}")
                return False
        return True

    # ---- internals ----

    def _status(self, session: GameSession) -> Status:
        return turns.status(session, self.min_players)

    def _session(self, room: str) -> GameSession:
        session = self._sessions.get(room)
        if session is None:
            session = self.store.load_session(room)
            if session is None:
                raise NotFound(f"Room '{room}' not found")
            self._sessions[room] = session
        return session

    def _find_player(self, session: GameSession, player_id=None, player_name=None) -> Player:
        player = None
        if player_id is not None:
            try:
                player = session.find_by_id(int(player_id))
            except (TypeError, ValueError):
                player = session.find(str(player_id))
        elif player_name:
            player = session.find(player_name)
        else:
            raise InvalidRequest('playerId or playerName is required')
        if player is None:
            raise NotFound(f"Player '{player_id if player_id is not None else player_name}' "
                           f"is not in room '{session.room}'")
        return player

    def _roll_locked(self, session: GameSession, player: Player) -> dict:
        draft = session.clone()
        seat = draft.seat_of(player.name)
        outcome = self.resolver.resolve(draft, seat)
        winner = turns.settle(draft)
        self._commit(draft)
        self.logger.info(
            f"[roll] room={draft.room} player={player.name} dice={''.join(d.value for d in outcome.dice)} "
            f"deltas={outcome.chip_deltas} pot={draft.pot}")
        if winner:
            self.logger.info(f"[winner] room={draft.room} player={winner.name} pot={draft.pot}")
        self._publish(draft, winner)
        return outcome.to_dict()

    def _commit(self, draft: GameSession) -> None:
        attempts = self.write_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                self.store.save_session(draft)
                break
            except PersistenceFailure as exc:
                if attempt == attempts:
                    self.logger.error(f"[persist-fail] room={draft.room} change dropped: {exc.message}")
                    raise
                self.logger.warning(f"[persist-retry] room={draft.room} attempt={attempt}/{attempts}")
        self._sessions[draft.room] = draft

    def _publish(self, session: GameSession, winner: Optional[Player] = None) -> None:
        status = self._status(session)
        self.transport.broadcast(session.room, 'gameStateUpdated', session.to_dict(status))
        current = session.current_player
        if status == Status.IN_PROGRESS and current is not None:
            self.transport.broadcast(session.room, 'current-turn', f"It's {current.name}'s turn")
        if winner is not None:
            self.transport.broadcast(session.room, 'gameOver', {
                'room': session.room,
                'winnerId': winner.id,
                'winnerName': winner.name,
                'pot': session.pot,
            })

    def _wake_bots(self, room: str) -> None:
        if self.bot_scheduler is not None:
            self.bot_scheduler(room)

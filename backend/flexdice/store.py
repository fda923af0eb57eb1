"""SQLAlchemy-backed persistence for rooms, seats and chat.

Every write commits or rolls back as a unit; database errors surface as
``PersistenceFailure`` with the session already rolled back.
"""
from functools import wraps
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from flexdice import db
from flexdice.models import Message, Player, Room
from flexdice.services.game.errors import AlreadyExists, NotFound, PersistenceFailure
from flexdice.services.game.state import GameSession, Player as Seat


def _guarded(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceFailure(f"{fn.__name__} failed: {exc.__class__.__name__}") from exc
    return wrapper


class SqlStore:

    @_guarded
    def list_room_names(self) -> List[str]:
        return [name for (name,) in db.session.query(Room.name).order_by(Room.id).all()]

    @_guarded
    def room_exists(self, name: str) -> bool:
        return Room.query.filter_by(name=name).first() is not None

    def create_room(self, name: str) -> Room:
        try:
            if Room.query.filter_by(name=name).first():
                raise AlreadyExists(f"Room '{name}' already exists")
            room = Room(name=name, pot=0)
            db.session.add(room)
            db.session.commit()
            return room
        except IntegrityError as exc:
            # Lost a race against another process creating the same name
            db.session.rollback()
            raise AlreadyExists(f"Room '{name}' already exists") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceFailure(f"create_room failed: {exc.__class__.__name__}") from exc

    @_guarded
    def delete_room(self, name: str) -> None:
        room = Room.query.filter_by(name=name).first()
        if not room:
            raise NotFound(f"Room '{name}' not found")
        Message.query.filter_by(room_id=room.id).delete()
        db.session.delete(room)
        db.session.commit()

    @_guarded
    def load_session(self, name: str) -> Optional[GameSession]:
        room = Room.query.filter_by(name=name).first()
        if not room:
            return None
        # Live connections do not survive a restart; only bots count as present
        seats = [
            Seat(name=p.name, chips=p.chips, is_ai=p.is_ai, connected=p.is_ai, id=p.id)
            for p in room.players
        ]
        return GameSession(
            room=room.name,
            players=seats,
            cursor=room.cursor,
            pot=room.pot,
            winner=room.winner_name,
        )

    @_guarded
    def save_session(self, session: GameSession) -> None:
        """Write the whole session and assign ids to newly seated players.

        The room row is created on the first save, in the same commit as
        its first seat.
        """
        room = Room.query.filter_by(name=session.room).first()
        if not room:
            room = Room(name=session.room)
            db.session.add(room)
        room.pot = session.pot
        room.cursor = session.cursor
        room.winner_name = session.winner
        rows = {p.name: p for p in room.players}
        for seat, player in enumerate(session.players):
            row = rows.get(player.name)
            if row is None:
                row = Player(name=player.name, room=room)
                db.session.add(row)
                rows[player.name] = row
            row.seat = seat
            row.chips = player.chips
            row.is_ai = player.is_ai
            row.connected = player.connected
        db.session.commit()
        for player in session.players:
            player.id = rows[player.name].id

    @_guarded
    def append_message(self, room_name: str, sender: str, message: str) -> dict:
        room = Room.query.filter_by(name=room_name).first()
        if not room:
            raise NotFound(f"Room '{room_name}' not found")
        msg = Message(room_id=room.id, sender=sender, message=message)
        db.session.add(msg)
        db.session.commit()
        return msg.to_dict()

    @_guarded
    def message_history(self, room_name: str) -> List[dict]:
        room = Room.query.filter_by(name=room_name).first()
        if not room:
            raise NotFound(f"Room '{room_name}' not found")
        messages = room.messages.order_by(Message.timestamp.asc(), Message.id.asc()).all()
        return [m.to_dict() for m in messages]

from datetime import datetime, timezone

from flexdice import db


def _utcnow():
    return datetime.now(timezone.utc)


class Room(db.Model):
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False, index=True)
    pot = db.Column(db.Integer, default=0, nullable=False)
    cursor = db.Column(db.Integer, nullable=True)
    winner_name = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    players = db.relationship('Player', back_populates='room', order_by='Player.seat',
                              cascade='all, delete-orphan')
    messages = db.relationship('Message', backref='room', lazy='dynamic', passive_deletes=True)


class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (db.UniqueConstraint('room_id', 'name', name='uq_player_room_name'),)
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    seat = db.Column(db.Integer, nullable=False)
    chips = db.Column(db.Integer, default=3, nullable=False)
    is_ai = db.Column(db.Boolean, default=False, nullable=False)
    connected = db.Column(db.Boolean, default=False, nullable=False)
    room = db.relationship('Room', back_populates='players')


class Message(db.Model):
    __tablename__ = 'message'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False, index=True)
    sender = db.Column(db.String(64), nullable=False)
    message = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        return {
            'sender': self.sender,
            'message': self.message,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }

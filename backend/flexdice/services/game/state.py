import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Face(str, Enum):
    LEFT = 'L'
    RIGHT = 'R'
    CENTER = 'C'
    BLANK = '.'


class Status(str, Enum):
    WAITING_FOR_PLAYERS = 'waiting_for_players'
    IN_PROGRESS = 'in_progress'
    FINISHED = 'finished'


@dataclass
class Player:
    """A seat in a game session. ``name`` is unique within the room."""
    name: str
    chips: int = 3
    is_ai: bool = False
    connected: bool = True
    id: Optional[int] = None

    @property
    def is_eliminated(self) -> bool:
        return self.chips == 0

    def to_dict(self, seat: int) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'seat': seat,
            'chips': self.chips,
            'isAI': self.is_ai,
            'connected': self.connected,
            'isEliminated': self.is_eliminated,
        }


@dataclass
class Transfer:
    face: Face
    source: str
    # Player name, or None when the chip went to the pot
    target: Optional[str]

    def to_dict(self) -> dict:
        return {'face': self.face.value, 'from': self.source, 'to': self.target}


@dataclass
class RollOutcome:
    player: str
    dice: List[Face]
    transfers: List[Transfer] = field(default_factory=list)

    @property
    def chip_deltas(self) -> dict:
        deltas = {}
        for t in self.transfers:
            deltas[t.source] = deltas.get(t.source, 0) - 1
            if t.target is not None:
                deltas[t.target] = deltas.get(t.target, 0) + 1
        return deltas

    @property
    def pot_delta(self) -> int:
        return sum(1 for t in self.transfers if t.target is None)

    def to_dict(self) -> dict:
        return {
            'player': self.player,
            'dice': [d.value for d in self.dice],
            'transfers': [t.to_dict() for t in self.transfers],
            'deltas': self.chip_deltas,
            'potDelta': self.pot_delta,
        }


@dataclass
class GameSession:
    """Live game state for one room.

    ``players`` is the seating order: the predecessor of a seat is its left
    neighbour and the successor its right neighbour. ``cursor`` is the seat
    index of the player whose turn it is.
    """
    room: str
    players: List[Player] = field(default_factory=list)
    cursor: Optional[int] = None
    pot: int = 0
    winner: Optional[str] = None
    last_roll: Optional[RollOutcome] = None

    def clone(self) -> 'GameSession':
        return copy.deepcopy(self)

    def find(self, name: str) -> Optional[Player]:
        for p in self.players:
            if p.name == name:
                return p
        return None

    def find_by_id(self, player_id: int) -> Optional[Player]:
        for p in self.players:
            if p.id is not None and p.id == player_id:
                return p
        return None

    def seat_of(self, name: str) -> Optional[int]:
        for seat, p in enumerate(self.players):
            if p.name == name:
                return seat
        return None

    @property
    def current_player(self) -> Optional[Player]:
        if self.cursor is None or not self.players:
            return None
        return self.players[self.cursor]

    @property
    def total_chips(self) -> int:
        return sum(p.chips for p in self.players) + self.pot

    def to_dict(self, status: Status) -> dict:
        current = self.current_player
        winner = self.find(self.winner) if self.winner else None
        return {
            'room': self.room,
            'status': status.value,
            'players': [p.to_dict(seat) for seat, p in enumerate(self.players)],
            'pot': self.pot,
            'cursor': self.cursor,
            'currentPlayerId': current.id if current else None,
            'currentPlayerName': current.name if current else None,
            'winnerId': winner.id if winner else None,
            'winnerName': self.winner,
            'lastRoll': self.last_roll.to_dict() if self.last_roll else None,
        }

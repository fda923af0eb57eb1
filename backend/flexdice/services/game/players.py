from typing import Tuple

from .errors import InvalidRequest, NotFound
from .state import GameSession, Player


def join(session: GameSession, name: str, starting_chips: int = 3, is_ai: bool = False) -> Tuple[Player, bool]:
    """Seat ``name`` at the end of the table, or reconnect the existing seat.

    Returns the player and whether a new seat was created. Re-joining keeps
    the chip count.
    """
    name = (name or '').strip()
    if not name:
        raise InvalidRequest('playerName is required')
    player = session.find(name)
    if player is not None:
        player.connected = True
        return player, False
    player = Player(name=name, chips=starting_chips, is_ai=is_ai, connected=True)
    session.players.append(player)
    return player, True


def leave(session: GameSession, name: str) -> Player:
    """Mark a seat disconnected. Chips and seat are kept for reconnection."""
    player = session.find(name)
    if player is None:
        raise NotFound(f"Player '{name}' is not in room '{session.room}'")
    player.connected = False
    return player


def reset_chips(session: GameSession, starting_chips: int = 3) -> None:
    for p in session.players:
        p.chips = starting_chips
    session.pot = 0
    session.winner = None
    session.last_roll = None

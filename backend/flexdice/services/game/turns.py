"""Turn sequencing over the seating order.

A seat can take the turn when it holds chips and its player is connected.
Eliminated seats (0 chips) and disconnected seats are passed over but stay
at the table, so they can still receive chips from their neighbours.
"""
from typing import Optional, Tuple

from .errors import InvalidState, OutOfTurn
from .state import GameSession, Player, Status


def can_take_turn(player: Player) -> bool:
    return player.chips > 0 and player.connected


def status(session: GameSession, min_players: int = 2) -> Status:
    if session.winner is not None:
        return Status.FINISHED
    active = [p for p in session.players if can_take_turn(p)]
    if len(active) < min_players:
        return Status.WAITING_FOR_PLAYERS
    return Status.IN_PROGRESS


def neighbours(session: GameSession, seat: int) -> Tuple[int, int]:
    """(left, right) seat indexes: predecessor and successor, cyclically."""
    n = len(session.players)
    return (seat - 1) % n, (seat + 1) % n


def _next_seat(session: GameSession, start: int, eligible) -> Optional[int]:
    n = len(session.players)
    for step in range(1, n + 1):
        seat = (start + step) % n
        if eligible(session.players[seat]):
            return seat
    return None


def advance(session: GameSession) -> Optional[int]:
    """Move the cursor to the next seat that may roll.

    When every chip holder is disconnected the cursor stops on the next chip
    holder and the turn stays pending until they come back or are skipped.
    """
    if not session.players:
        session.cursor = None
        return None
    start = session.cursor if session.cursor is not None else -1
    seat = _next_seat(session, start, can_take_turn)
    if seat is None:
        seat = _next_seat(session, start, lambda p: p.chips > 0)
    if seat is not None:
        session.cursor = seat
    return session.cursor


def seat_cursor(session: GameSession) -> None:
    """Place the cursor after a seating change.

    The first player of a fresh session gets the cursor. A cursor resting on
    an eliminated seat moves on; a disconnected current player keeps the
    turn.
    """
    if not session.players or session.winner is not None:
        return
    if session.cursor is None:
        session.cursor = 0
    if session.players[session.cursor].chips == 0:
        advance(session)


def ensure_turn(session: GameSession, player: Player) -> None:
    current = session.current_player
    if current is None or current.name != player.name:
        expected = current.name if current else None
        raise OutOfTurn(f"It is not {player.name}'s turn (current: {expected})")


def settle(session: GameSession) -> Optional[Player]:
    """Evaluate the table after a roll: declare a winner or pass the turn.

    Returns the winner when the session just finished.
    """
    holders = [p for p in session.players if p.chips > 0]
    if not holders:
        raise InvalidState(f"No chips left on the table in room '{session.room}'")
    if len(holders) == 1:
        session.winner = holders[0].name
        return holders[0]
    advance(session)
    return None

import random

import pytest

from conftest import ScriptedDice
from flexdice.services.game import turns
from flexdice.services.game.dice import DICE_MODELS, RollResolver
from flexdice.services.game.state import Face, GameSession, Player


def _table(*chips):
    return GameSession(room='t', players=[Player(name=n, chips=c) for n, c in zip('ABCDE', chips)], cursor=0)


@pytest.mark.parametrize('chips,expected', [(0, 0), (1, 1), (2, 2), (3, 3), (7, 3)])
def test_dice_count_follows_chips(chips, expected):
    resolver = RollResolver(rng=random.Random(1))
    assert len(resolver.roll(chips)) == expected


def test_left_center_right_scenario():
    session = _table(3, 3, 3)
    resolver = RollResolver(rng=ScriptedDice('LCR'))
    outcome = resolver.resolve(session, 0)

    assert [p.chips for p in session.players] == [0, 4, 4]
    assert session.pot == 1
    assert session.total_chips == 9
    assert outcome.chip_deltas == {'A': -3, 'C': 1, 'B': 1}
    assert outcome.pot_delta == 1
    assert outcome.to_dict()['dice'] == ['L', 'C', 'R']

    turns.settle(session)
    assert session.current_player.name == 'B'
    turns.advance(session)
    assert session.current_player.name == 'C'
    turns.advance(session)
    assert session.current_player.name == 'B'


def test_blank_faces_move_nothing():
    session = _table(2, 3)
    outcome = RollResolver(rng=ScriptedDice('..')).resolve(session, 0)
    assert [p.chips for p in session.players] == [2, 3]
    assert outcome.transfers == []


def test_two_players_share_both_neighbours():
    session = _table(2, 3)
    RollResolver(rng=ScriptedDice('LR')).resolve(session, 0)
    assert [p.chips for p in session.players] == [0, 5]


def test_dice_fixed_by_chips_before_the_roll():
    # B holds one chip, rolls one die and gives it away; no extra dice follow
    session = _table(3, 1, 3)
    outcome = RollResolver(rng=ScriptedDice('R')).resolve(session, 1)
    assert len(outcome.dice) == 1
    assert [p.chips for p in session.players] == [3, 0, 4]


def test_from_config_selects_die_model():
    classic = RollResolver.from_config({'DICE_MODEL': 'classic'})
    uniform = RollResolver.from_config({'DICE_MODEL': 'uniform', 'DICE_SEED': '42'})
    assert classic.faces.count(Face.BLANK) == 3
    assert uniform.faces == DICE_MODELS['uniform']
    with pytest.raises(ValueError):
        RollResolver.from_config({'DICE_MODEL': 'loaded'})


def test_default_die_has_four_faces():
    from config import Config

    default = RollResolver.from_config({'DICE_MODEL': Config.DICE_MODEL})
    assert len(default.faces) == 4
    assert len(RollResolver.from_config({}).faces) == 4
    assert RollResolver().faces == (Face.LEFT, Face.RIGHT, Face.CENTER, Face.BLANK)


def test_seeded_play_conserves_chips_until_a_winner():
    session = _table(3, 3, 3, 3)
    resolver = RollResolver(rng=random.Random(2024))
    winner = None
    for _ in range(10000):
        resolver.resolve(session, session.cursor)
        assert session.total_chips == 12
        assert all(p.chips >= 0 for p in session.players)
        winner = turns.settle(session)
        if winner:
            break
        assert session.current_player.chips > 0
    assert winner is not None
    assert [p.name for p in session.players if p.chips > 0] == [winner.name]

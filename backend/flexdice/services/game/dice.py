import random
from typing import List, Sequence

from .state import Face, GameSession, RollOutcome, Transfer
from .turns import neighbours

# Rules die: L, R, C and one dot. A physical LRC die carries three dots.
DICE_MODELS = {
    'classic': (Face.LEFT, Face.RIGHT, Face.CENTER, Face.BLANK, Face.BLANK, Face.BLANK),
    'uniform': (Face.LEFT, Face.RIGHT, Face.CENTER, Face.BLANK),
}


class RollResolver:
    """Rolls the dice for the active seat and moves the chips they call for.

    ``rng`` only needs a ``choice`` method, so tests can script the faces.
    """

    def __init__(self, faces: Sequence[Face] = DICE_MODELS['uniform'], rng=None, max_dice: int = 3):
        self.faces = tuple(faces)
        self.rng = rng or random.Random()
        self.max_dice = max_dice

    @classmethod
    def from_config(cls, config) -> 'RollResolver':
        model = config.get('DICE_MODEL', 'uniform')
        if model not in DICE_MODELS:
            raise ValueError(f"Unknown DICE_MODEL '{model}', expected one of {sorted(DICE_MODELS)}")
        seed = config.get('DICE_SEED')
        return cls(
            faces=DICE_MODELS[model],
            rng=random.Random(seed) if seed is not None else None,
            max_dice=int(config.get('MAX_DICE', 3)),
        )

    def dice_count(self, chips: int) -> int:
        return max(0, min(chips, self.max_dice))

    def roll(self, chips: int) -> List[Face]:
        return [self.rng.choice(self.faces) for _ in range(self.dice_count(chips))]

    def resolve(self, session: GameSession, seat: int) -> RollOutcome:
        """Roll for ``seat`` and apply every die in order to ``session``.

        The number of dice is fixed by the chips held before the roll; all of
        them are applied even once the roller is down to zero.
        """
        player = session.players[seat]
        outcome = RollOutcome(player=player.name, dice=self.roll(player.chips))
        left, right = neighbours(session, seat)
        for face in outcome.dice:
            if face == Face.BLANK or player.chips == 0:
                continue
            player.chips -= 1
            if face == Face.CENTER:
                session.pot += 1
                outcome.transfers.append(Transfer(face, player.name, None))
                continue
            target = session.players[left if face == Face.LEFT else right]
            target.chips += 1
            outcome.transfers.append(Transfer(face, player.name, target.name))
        session.last_roll = outcome
        return outcome

import random


class RandomSource:
    """
    The single source of randomness for an allocation call.

    Wraps random.Random so callers can pass a seed for reproducible runs,
    or subclass it to script exact outcomes in tests.
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def pick(self, items):
        """Uniform pick from any non-empty collection (sets are sorted first)."""
        seq = _as_sequence(items)
        if not seq:
            raise ValueError("Cannot pick from an empty collection")
        return seq[self.rng.randrange(len(seq))]

    def pick_and_take(self, items: list):
        """Uniform pick that also removes the item from the given list."""
        if not items:
            raise ValueError("Cannot pick from an empty collection")
        return items.pop(self.rng.randrange(len(items)))

    def weighted_pick(self, items, weights):
        total = 0.0
        cum: list[float] = []
        for w in weights:
            try:
                ww = float(w)
            except (TypeError, ValueError):
                ww = 0.0
            if ww < 0:
                ww = 0.0
            total += ww
            cum.append(total)

        items = list(items)
        if not items:
            raise ValueError("Cannot pick from an empty collection")
        if total <= 0:
            return items[self.rng.randrange(len(items))]

        x = self.rng.random() * total
        for i, c in enumerate(cum):
            if x < c:
                return items[i]
        return items[-1]

    def shuffle(self, items: list) -> None:
        self.rng.shuffle(items)


def _as_sequence(items) -> list:
    if isinstance(items, (set, frozenset)):
        # Set iteration order varies between processes; sort for seeded runs.
        return sorted(items, key=str)
    return list(items)

"""Numbering for adversaries inserted into a note or canvas."""


class AdversaryCounter:
    """Tracks the number shown on the next inserted adversary card.

    Owned by the caller (one per browser or session) rather than held
    in module state. The value never drops below 1.
    """

    def __init__(self, start: int = 1):
        self._count = start if start > 0 else 1

    @property
    def value(self) -> int:
        return self._count

    def increment(self) -> int:
        self._count += 1
        return self._count

    def decrement(self) -> int:
        if self._count > 1:
            self._count -= 1
        return self._count

    def set(self, count: int) -> None:
        """Set the counter; values below 1 are ignored."""
        if count > 0:
            self._count = count

    def reset(self) -> None:
        self._count = 1

# human readable identifiers for orders and tickets
import itertools
import random
from datetime import datetime
from typing import Callable, Optional

SEQUENCE_SPACE = 1_000_000


class SequenceNumberGenerator:
    """
    Produces identifiers like ``AR-20251102-143015-000042``.

    The date/time part makes numbers readable; the counter keeps two numbers
    generated within the same second distinct. The counter starts at a random
    point so that separate processes writing to one database rarely draw the
    same suffix. A collision that still happens is reported by the store as a
    ConflictError and the services draw the next number.
    """

    def __init__(
        self,
        prefix: str,
        clock: Optional[Callable[[], datetime]] = None,
        start: Optional[int] = None,
    ):
        self.prefix = prefix
        self._clock = clock or datetime.now
        if start is None:
            start = random.randrange(SEQUENCE_SPACE)
        self._counter = itertools.count(start)

    def __call__(self, when: Optional[datetime] = None) -> str:
        when = when or self._clock()
        seq = next(self._counter) % SEQUENCE_SPACE
        return f"{self.prefix}-{when:%Y%m%d-%H%M%S}-{seq:06d}"

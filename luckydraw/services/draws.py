from __future__ import annotations

import random
from typing import List, Optional, Sequence

from ..errors import EmptyPoolError, InsufficientPoolError, InvalidCountError
from ..types import DrawResult, Participant


def check_draw_request(pool: Sequence[Participant], requested: int) -> None:
    """Validate a draw before it starts; the first failing rule wins."""
    if len(pool) == 0:
        raise EmptyPoolError()
    if isinstance(requested, bool) or not isinstance(requested, int) or requested < 1:
        raise InvalidCountError()
    if requested > len(pool):
        raise InsufficientPoolError()


def draw_winners(
    pool: Sequence[Participant],
    requested: int,
    rng: Optional[random.Random] = None,
) -> DrawResult:
    check_draw_request(pool, requested)
    rng = rng or random.Random()

    # random.shuffle is Fisher-Yates, so every ordering of the copy is equally likely
    shuffled: List[Participant] = list(pool)
    rng.shuffle(shuffled)
    return DrawResult(winners=tuple(shuffled[:requested]), pool_size=len(pool))

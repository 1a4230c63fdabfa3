import logging
import random

logger = logging.getLogger(__name__)

# gc probability is given in parts per million
PROBABILITY_SCALE = 1000000


class RetentionPolicy:
    """
    Keeps the auth log of a user bounded.

    When triggered, the row at offset ``limit`` (newest first) becomes the border
    and every row of that user dated at or before it is removed. Rows sharing
    the border date go too, so fewer than ``limit`` rows may remain.
    """

    def __init__(self, store, limit: int = 1000, probability: int = 100000, rng=None):
        self.store = store
        self.limit = limit
        self.probability = probability
        self.rng = rng if rng is not None else random.SystemRandom()

    def should_collect(self, force: bool = False) -> bool:
        if force:
            return True
        if self.probability <= 0:
            return False
        return self.rng.randrange(PROBABILITY_SCALE) < self.probability

    def collect(self, user_id, force: bool = False) -> int:
        """Returns the number of deleted rows."""
        if not self.should_collect(force):
            return 0

        border = self.store.find_one(user_id, offset=self.limit)
        if border is None:
            return 0

        # the commit in delete_through expires the border row, so keep its date
        border_date = border.date
        deleted = self.store.delete_through(user_id, border_date)
        logger.debug(
            "Auth log gc: removed %d rows of user %s dated <= %s",
            deleted, user_id, border_date,
        )
        return deleted

"""Stats service - Community highlights, cached in Redis"""

import logging

from sqlalchemy.orm import Session

from ...cache import get_community_stats_cached, set_community_stats_cached
from .repository import StatsRepository

logger = logging.getLogger(__name__)


class StatsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = StatsRepository()

    def get_community_highlights(self) -> dict:
        cached = get_community_stats_cached()
        if cached is not None:
            return cached

        average = self.repo.average_rating(self.db)
        stats = {
            "mostExchanged": self.repo.most_exchanged_skill(self.db) or "No exchanges yet",
            "activeMembers": self.repo.count_active_members(self.db),
            "topRated": round(average, 1) if average is not None else 0,
        }
        set_community_stats_cached(stats)
        logger.info(f"📊 Community stats computed: {stats}")
        return stats

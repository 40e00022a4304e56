"""Leaderboard: Best scores per user and the overall maximum."""

import logging

from academy_quiz.data_store import DataStore
from academy_quiz.exceptions import DataStoreError
from academy_quiz.models import LeaderboardData, LeaderboardEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_SCORE = 100
UNKNOWN_USER = "Unknown User"


class Leaderboard:
    """Reads and updates the leaderboard collection."""

    def __init__(self, store: DataStore):
        self.store = store

    def fetch_with_max_score(self, limit: int = 10) -> LeaderboardData:
        """Top ``limit`` entries by highest score, plus the best score overall."""
        rows = self.store.query("leaderboard", order_by="highest_score",
                                descending=True, limit=limit)
        user_ids = [r["user_id"] for r in rows]
        profiles = {
            p["id"]: p["username"]
            for p in self.store.query("profiles", {"id": user_ids})
        } if user_ids else {}

        top = self.store.query("leaderboard", columns=["highest_score"],
                               order_by="highest_score", descending=True, limit=1)
        max_score = top[0]["highest_score"] if top else DEFAULT_MAX_SCORE

        entries = [
            LeaderboardEntry(
                user_id=r["user_id"],
                username=profiles.get(r["user_id"]) or UNKNOWN_USER,
                highest_score=r["highest_score"],
                total_quizzes_taken=r["total_quizzes_taken"],
            )
            for r in rows
        ]
        return LeaderboardData(entries=entries, max_score=max_score)

    def record_attempt(self, user_id: str, percentage: int) -> dict:
        """Count one more attempt for the user and keep their best percentage."""
        existing = self.store.query("leaderboard", {"user_id": user_id}, limit=1)
        if not existing:
            return self.store.insert_batch("leaderboard", [{
                "user_id": user_id,
                "highest_score": percentage,
                "total_quizzes_taken": 1,
            }])[0]
        row = existing[0]
        return self.store.update_one("leaderboard", {"id": row["id"]}, {
            "highest_score": max(row["highest_score"] or 0, percentage),
            "total_quizzes_taken": (row["total_quizzes_taken"] or 0) + 1,
        })

    def ensure_profile(self, user_id: str, username: str):
        try:
            if not self.store.query("profiles", {"id": user_id}, limit=1):
                self.store.insert_batch("profiles", [{"id": user_id, "username": username}])
        except DataStoreError as e:
            logger.warning(f"Could not create profile for {user_id}: {e}")

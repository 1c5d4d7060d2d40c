from datetime import datetime, timedelta, timezone

from django.test import SimpleTestCase

from games.engine import ValidationError, best_of, page_meta, rank

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def attempt(score, time_taken, minutes=0, user_id=1, label=None):
    return {
        "score": score,
        "time_taken": time_taken,
        "created_at": T0 + timedelta(minutes=minutes),
        "user_id": user_id,
        "label": label,
    }


class RankTests(SimpleTestCase):
    def test_score_then_time_then_submission(self):
        attempts = [attempt(100, 30), attempt(100, 20), attempt(90, 10)]
        ranked = rank(attempts)["data"]
        self.assertEqual([(a["score"], a["time_taken"]) for a in ranked], [(100, 20), (100, 30), (90, 10)])

    def test_earlier_submission_wins_full_tie(self):
        attempts = [attempt(50, 10, minutes=5, label="late"), attempt(50, 10, minutes=1, label="early")]
        self.assertEqual([a["label"] for a in rank(attempts)["data"]], ["early", "late"])

    def test_pagination(self):
        attempts = [attempt(score, 10) for score in range(25)]
        page = rank(attempts, page=3, per_page=10)
        self.assertEqual([a["score"] for a in page["data"]], [4, 3, 2, 1, 0])
        self.assertEqual(
            page["meta"],
            {"total": 25, "current_page": 3, "per_page": 10, "last_page": 3, "prev": 2, "next": None},
        )

    def test_page_past_end_is_empty(self):
        page = rank([attempt(1, 1)], page=4, per_page=10)
        self.assertEqual(page["data"], [])
        self.assertEqual(page["meta"]["last_page"], 1)

    def test_empty(self):
        self.assertEqual(page_meta(0, 1, 10), {"total": 0, "current_page": 1, "per_page": 10, "last_page": 0, "prev": None, "next": None})

    def test_invalid_paging(self):
        with self.assertRaises(ValidationError):
            rank([], page=0)
        with self.assertRaises(ValidationError):
            rank([], per_page=0)


class BestOfTests(SimpleTestCase):
    def test_best_uses_leaderboard_ordering(self):
        attempts = [
            attempt(80, 5, user_id=1, label="a"),
            attempt(90, 40, user_id=1, label="b"),
            attempt(90, 30, user_id=1, label="c"),
            attempt(100, 1, user_id=2, label="other"),
        ]
        self.assertEqual(best_of(attempts, 1)["label"], "c")

    def test_none_without_attempts(self):
        self.assertIsNone(best_of([attempt(10, 10, user_id=2)], 1))

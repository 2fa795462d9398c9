"""
Tests for taste-vector match reports and on-demand comparison.
"""

import unittest

from sqlalchemy import select, func

from filmshare.models.taste_match_report import TasteMatchReport
from filmshare.models.taste_match_session import TasteMatchSession
from filmshare.models.user_taste_vector import UserTasteVector
from filmshare.models.watched_movie import WatchedMovie
from filmshare.services.errors import InvalidInputError
from filmshare.services.match_report_service import (
    calculate_taste_match,
    generate_match_report,
    get_match_report,
    report_to_dict,
)
from taste_fixtures import DatabaseTestCase, FakeCatalog, make_movie


class TestCalculateTasteMatch(DatabaseTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.user = await self.make_user()
        self.friend = await self.make_user()

    async def test_insufficient_when_either_side_short(self):
        await self.add_ratings(self.user.id, 20)
        await self.add_ratings(self.friend.id, 19)

        result = await calculate_taste_match(self.db, self.user.id, self.friend.id, None)
        self.assertEqual(result["status"], "insufficient_data")
        self.assertIsNone(result["match_percentage"])
        self.assertEqual(result["user1_ratings"], 20)
        self.assertEqual(result["user2_ratings"], 19)
        self.assertEqual(result["required"], 20)
        self.assertNotIn("similarity_score", result)

    async def test_success_from_callers_side(self):
        await self.add_ratings(self.user.id, 20, genres=["Action", "Comedy"])
        await self.add_ratings(self.friend.id, 25, genres=["Action"])
        await self.add_ratings(self.friend.id, 5, genres=["Comedy"], rating=-1, start_id=8000)

        result = await calculate_taste_match(self.db, self.user.id, self.friend.id, None)
        self.assertEqual(result["status"], "success")
        self.assertEqual(result["user1_ratings"], 20)
        self.assertEqual(result["user2_ratings"], 30)
        self.assertEqual(result["user1_genres"], 2)
        self.assertEqual(result["genre_compatibility"]["Action"], 100)
        self.assertEqual(result["genre_compatibility"]["Comedy"], 0)
        self.assertTrue(0 <= result["match_percentage"] <= 100)

    async def test_does_not_touch_sessions(self):
        await self.add_ratings(self.user.id, 20)
        await self.add_ratings(self.friend.id, 20)
        await calculate_taste_match(self.db, self.user.id, self.friend.id, None)

        sessions = (await self.db.execute(select(func.count(TasteMatchSession.id)))).scalar()
        self.assertEqual(sessions, 0)

    async def test_short_pair_never_builds_vectors(self):
        await self.add_ratings(self.user.id, 20)
        await self.add_ratings(self.friend.id, 5)
        self.db.add(WatchedMovie(user_id=self.user.id, tmdb_id=900))
        await self.db.flush()
        catalog = FakeCatalog(movies=[make_movie(900, genre_names=["Drama"])])

        result = await calculate_taste_match(self.db, self.user.id, self.friend.id, catalog)
        self.assertEqual(result["status"], "insufficient_data")
        self.assertEqual(catalog.lookups, [])
        cached = (await self.db.execute(select(func.count(UserTasteVector.id)))).scalar()
        self.assertEqual(cached, 0)

    async def test_reads_cached_vectors(self):
        await self.add_ratings(self.user.id, 20, genres=["Action"])
        await self.add_ratings(self.friend.id, 20, genres=["Action"])
        self.db.add(UserTasteVector(
            user_id=self.user.id, taste_vector={"Comedy": 1.0}, total_rated_movies=20, genres_count=1,
        ))
        await self.db.flush()

        result = await calculate_taste_match(self.db, self.user.id, self.friend.id, None)
        self.assertEqual(result["status"], "success")
        self.assertEqual(result["genre_compatibility"], {"Comedy": 50, "Action": 50})

        friend_cache = (await self.db.execute(
            select(UserTasteVector).where(UserTasteVector.user_id == self.friend.id)
        )).scalar_one()
        self.assertEqual(friend_cache.taste_vector, {"Action": 1.0})

    async def test_self_rejected(self):
        with self.assertRaises(InvalidInputError):
            await calculate_taste_match(self.db, self.user.id, self.user.id, None)


class TestGenerateMatchReport(DatabaseTestCase):

    async def test_idempotent(self):
        user = await self.make_user()
        friend = await self.make_user()
        await self.add_ratings(user.id, 20, genres=["Drama"])
        await self.add_ratings(friend.id, 20, genres=["Drama", "Horror"])

        first = report_to_dict(await generate_match_report(self.db, friend.id, user.id, None))
        second = report_to_dict(await generate_match_report(self.db, user.id, friend.id, None))

        for key in ("match_percentage", "similarity_score", "genre_compatibility", "summary",
                    "user_total_ratings", "friend_total_ratings"):
            self.assertEqual(first[key], second[key])
        count = (await self.db.execute(select(func.count(TasteMatchReport.id)))).scalar()
        self.assertEqual(count, 1)

    async def test_stored_under_ordered_pair(self):
        user = await self.make_user()
        friend = await self.make_user()
        await generate_match_report(self.db, friend.id, user.id, None)

        report = await get_match_report(self.db, friend.id, user.id)
        self.assertEqual(report.user_id, min(user.id, friend.id))
        self.assertEqual(report.friend_id, max(user.id, friend.id))
        self.assertEqual(report.match_percentage, 50)


if __name__ == '__main__':
    unittest.main()

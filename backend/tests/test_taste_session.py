"""
Tests for swipe voting sessions between two friends.
"""

import random
import unittest
from unittest.mock import patch

from sqlalchemy import select, func, update
from sqlalchemy.dialects import postgresql

from filmshare.models.taste_match_report import TasteMatchReport
from filmshare.models.taste_match_session import (
    TasteMatchSession,
    LEGACY_SESSION_BOTH_VOTED,
    SESSION_ONE_SIDE_COMPLETE,
    SESSION_REPORT_GENERATED,
    SESSION_VOTING,
)
from filmshare.models.watched_movie import WatchedMovie
from filmshare.services.errors import InvalidInputError
from filmshare.services.taste_session_service import (
    VOTES_REQUIRED,
    get_next_movie,
    get_session_state,
    record_rating,
    validate_rating_input,
)
from taste_fixtures import DatabaseTestCase, FakeCatalog, make_movie


class TestVotingSession(DatabaseTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.alice = await self.make_user("Alice")
        self.bob = await self.make_user("Bob")

    async def vote(self, user, friend, how_many, start_id, genres=("Action",), rating=1):
        result = None
        for offset in range(how_many):
            result = await record_rating(
                self.db, user.id, friend.id, start_id + offset, rating,
                movie_title=f"Movie {start_id + offset}", genres=list(genres), popularity=30.0,
            )
        return result

    async def report_count(self):
        return (await self.db.execute(select(func.count(TasteMatchReport.id)))).scalar()

    async def test_first_vote_starts_session(self):
        result = await self.vote(self.alice, self.bob, 1, 100)
        self.assertTrue(result["saved"])
        self.assertTrue(result["created"])
        self.assertEqual(result["session_status"], SESSION_VOTING)

        state = await get_session_state(self.db, self.bob.id, self.alice.id)
        self.assertEqual(state, {
            "status": "voting_in_progress",
            "votes_you": 0,
            "votes_friend": 1,
            "votes_required": VOTES_REQUIRED,
        })

    async def test_revote_updates_rating(self):
        await self.vote(self.alice, self.bob, 1, 100)
        result = await self.vote(self.alice, self.bob, 1, 100, rating=-1)
        self.assertFalse(result["created"])
        self.assertEqual(result["rating"]["rating"], -1)

        session = (await self.db.execute(select(TasteMatchSession))).scalar_one()
        self.assertEqual(session.user_votes_count, 1)

    async def test_one_side_complete_without_report(self):
        await self.vote(self.alice, self.bob, 20, 100)
        result = await self.vote(self.bob, self.alice, 19, 500)

        self.assertEqual(result["session_status"], SESSION_ONE_SIDE_COMPLETE)
        self.assertEqual(await self.report_count(), 0)

        waiting = await get_session_state(self.db, self.alice.id, self.bob.id)
        self.assertEqual(waiting["status"], "waiting_for_friend")
        self.assertEqual(waiting["your_votes"], 20)
        self.assertEqual(waiting["friend_votes"], 19)
        self.assertEqual(waiting["message"], "Waiting for friend to complete their votes...")

        behind = await get_session_state(self.db, self.bob.id, self.alice.id)
        self.assertEqual(behind["your_votes"], 19)
        self.assertIn("Complete your votes", behind["message"])

    async def test_twentieth_vote_generates_one_report(self):
        await self.vote(self.alice, self.bob, 20, 100)
        await self.vote(self.bob, self.alice, 19, 500)
        result = await self.vote(self.bob, self.alice, 1, 900)

        self.assertEqual(result["session_status"], SESSION_REPORT_GENERATED)
        self.assertEqual(await self.report_count(), 1)

        report = (await self.db.execute(select(TasteMatchReport))).scalar_one()
        low, high = sorted((self.alice.id, self.bob.id))
        self.assertEqual((report.user_id, report.friend_id), (low, high))
        self.assertEqual(report.match_percentage, 100)

        for viewer, other in ((self.alice, self.bob), (self.bob, self.alice)):
            state = await get_session_state(self.db, viewer.id, other.id)
            self.assertEqual(state["status"], "report_ready")
            self.assertEqual(state["report"]["match_percentage"], 100)

    async def test_completion_stamp_is_kept(self):
        await self.vote(self.alice, self.bob, 20, 100)
        session = (await self.db.execute(select(TasteMatchSession))).scalar_one()
        first_stamp = session.user_completed_at if session.user_id == self.alice.id else session.friend_completed_at

        await self.vote(self.alice, self.bob, 1, 300)
        await self.db.refresh(session)
        stamp = session.user_completed_at if session.user_id == self.alice.id else session.friend_completed_at
        self.assertEqual(stamp, first_stamp)

    async def test_report_follows_votes_after_completion(self):
        await self.vote(self.alice, self.bob, 20, 100)
        await self.vote(self.bob, self.alice, 20, 500)
        result = await self.vote(self.bob, self.alice, 40, 600, rating=-1)

        self.assertEqual(result["session_status"], SESSION_REPORT_GENERATED)
        self.assertEqual(await self.report_count(), 1)

        report = (await self.db.execute(select(TasteMatchReport))).scalar_one()
        bob_total = report.friend_total_ratings if report.friend_id == self.bob.id else report.user_total_ratings
        alice_total = report.user_total_ratings if report.user_id == self.alice.id else report.friend_total_ratings
        self.assertEqual(bob_total, 60)
        self.assertEqual(alice_total, 20)
        self.assertEqual(report.match_percentage, 0)
        self.assertEqual(report.genre_compatibility, {"Action": 0})

        state = await get_session_state(self.db, self.alice.id, self.bob.id)
        self.assertEqual(state["report"]["match_percentage"], 0)

    async def test_session_row_locked_while_counting_votes(self):
        statements = []
        execute = self.db.execute

        async def recording_execute(statement, *args, **kwargs):
            statements.append(statement)
            return await execute(statement, *args, **kwargs)

        with patch.object(self.db, "execute", recording_execute):
            await self.vote(self.alice, self.bob, 1, 100)
            await self.vote(self.bob, self.alice, 1, 500)

        session_sql = [
            sql for sql in (str(s.compile(dialect=postgresql.dialect())) for s in statements)
            if "taste_match_sessions" in sql
        ]
        locks = [i for i, sql in enumerate(session_sql) if sql.startswith("SELECT") and "FOR UPDATE" in sql]
        counts = [i for i, sql in enumerate(session_sql) if sql.startswith("UPDATE") and "count(movie_taste_ratings.id)" in sql]
        self.assertEqual(len(locks), 2)
        self.assertEqual(len(counts), 2)
        for lock, count_update in zip(locks, counts):
            self.assertLess(lock, count_update)

        session = (await self.db.execute(select(TasteMatchSession))).scalar_one()
        self.assertEqual((session.user_votes_count, session.friend_votes_count), (1, 1))

    async def test_legacy_status_reads_as_waiting(self):
        await self.vote(self.alice, self.bob, 1, 100)
        await self.db.execute(update(TasteMatchSession).values(session_status=LEGACY_SESSION_BOTH_VOTED))

        state = await get_session_state(self.db, self.alice.id, self.bob.id)
        self.assertEqual(state["status"], "waiting_for_friend")

    async def test_not_started(self):
        state = await get_session_state(self.db, self.alice.id, self.bob.id)
        self.assertEqual(state["status"], "not_started")

    async def test_invalid_input_writes_nothing(self):
        with self.assertRaises(InvalidInputError) as ctx:
            await record_rating(self.db, self.alice.id, self.bob.id, 100, 2)
        self.assertEqual(ctx.exception.reason, "Rating must be 1 (MY TYPE) or -1 (Nahhh)")
        self.assertIsNone((await self.db.execute(select(TasteMatchSession))).scalar_one_or_none())


class TestValidateRatingInput(unittest.TestCase):

    def test_reasons(self):
        cases = [
            ((1, 0, 5, 1), "Invalid friend ID"),
            ((1, -3, 5, 1), "Invalid friend ID"),
            ((1, 1, 5, 1), "Cannot start a taste match with yourself"),
            ((1, 2, None, 1), "Movie ID is required"),
            ((1, 2, 0, 1), "Movie ID is required"),
            ((1, 2, 5, 0), "Rating must be 1 (MY TYPE) or -1 (Nahhh)"),
            ((1, 2, 5, True), "Rating must be 1 (MY TYPE) or -1 (Nahhh)"),
        ]
        for args, reason in cases:
            with self.subTest(args=args):
                with self.assertRaises(InvalidInputError) as ctx:
                    validate_rating_input(*args)
                self.assertEqual(ctx.exception.reason, reason)

    def test_valid(self):
        validate_rating_input(1, 2, 5, -1)


class TestNextMovie(DatabaseTestCase):

    async def test_skips_seen_movies(self):
        user = await self.make_user()
        friend = await self.make_user()
        await self.add_ratings(user.id, 1, start_id=1)
        self.db.add(WatchedMovie(user_id=user.id, tmdb_id=2))
        await self.db.flush()

        catalog = FakeCatalog(discover=[make_movie(1), make_movie(2), make_movie(3)])
        movie = await get_next_movie(self.db, user.id, friend.id, catalog, rng=random.Random(7))
        self.assertEqual(movie.id, 3)
        self.assertEqual(catalog.discover_calls, [None])

    async def test_uses_friend_genres_once_ready(self):
        user = await self.make_user()
        friend = await self.make_user()
        await self.add_ratings(friend.id, 20, genres=["Romance"])

        catalog = FakeCatalog(discover=[make_movie(1, genre_ids=[28]), make_movie(2, genre_ids=[10749])])
        movie = await get_next_movie(self.db, user.id, friend.id, catalog, rng=random.Random(1))
        self.assertEqual(movie.id, 2)
        self.assertEqual(catalog.discover_calls[0], [10749])

    async def test_none_when_everything_seen(self):
        user = await self.make_user()
        friend = await self.make_user()
        await self.add_ratings(user.id, 1, start_id=1)

        catalog = FakeCatalog(discover=[make_movie(1)])
        self.assertIsNone(await get_next_movie(self.db, user.id, friend.id, catalog))


if __name__ == '__main__':
    unittest.main()

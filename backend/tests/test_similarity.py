"""
Unit tests for genre-vector similarity and match summaries.
"""

import unittest

from filmshare.services.similarity_service import (
    LOWEST_TIER_SUMMARY,
    compare_vectors,
    cosine_similarity,
    generate_summary,
    genre_compatibility,
    round_half_up,
    similarity_to_percentage,
)


class TestCosineSimilarity(unittest.TestCase):

    def test_vector_with_itself_is_one(self):
        for vector in ({"Action": 1.0}, {"Action": 0.3, "Drama": -0.7, "Horror": 1.0}):
            self.assertAlmostEqual(cosine_similarity(vector, vector), 1.0)

    def test_zero_vector_gives_zero(self):
        self.assertEqual(cosine_similarity({"Action": 1.0}, {"Action": 0.0}), 0.0)
        self.assertEqual(cosine_similarity({"Action": 1.0}, {}), 0.0)

    def test_absent_keys_count_as_zero(self):
        self.assertEqual(cosine_similarity({"Action": 1.0}, {"Drama": 1.0}), 0.0)

    def test_opposite_vectors(self):
        self.assertAlmostEqual(cosine_similarity({"Action": 1.0, "Drama": 0.5}, {"Action": -1.0, "Drama": -0.5}), -1.0)

    def test_symmetric(self):
        a = {"Action": 1.0, "Comedy": -0.2}
        b = {"Action": 0.4, "Drama": 0.9}
        self.assertAlmostEqual(cosine_similarity(a, b), cosine_similarity(b, a))


class TestPercentage(unittest.TestCase):

    def test_anchor_points(self):
        self.assertEqual(similarity_to_percentage(-1), 0)
        self.assertEqual(similarity_to_percentage(0), 50)
        self.assertEqual(similarity_to_percentage(1), 100)

    def test_monotonic(self):
        values = [similarity_to_percentage(x / 100) for x in range(-100, 101)]
        self.assertEqual(values, sorted(values))

    def test_half_rounds_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(0.125, 2), 0.13)
        self.assertIsInstance(round_half_up(7.2), int)


class TestGenreCompatibility(unittest.TestCase):

    def test_same_sign(self):
        self.assertEqual(genre_compatibility({"Action": 1}, {"Action": 1}), {"Action": 100})

    def test_opposite_sign(self):
        self.assertEqual(genre_compatibility({"Action": 1}, {"Action": -1}), {"Action": 0})

    def test_one_side_missing(self):
        result = genre_compatibility({"Action": 1, "Drama": 0.5}, {"Action": 0.2})
        self.assertEqual(result, {"Action": 100, "Drama": 50})


class TestSummary(unittest.TestCase):

    def test_tiers(self):
        self.assertEqual(generate_summary(80), "Excellent taste match! Very similar movie preferences.")
        self.assertEqual(generate_summary(79), "Great match! You enjoy similar types of movies.")
        self.assertEqual(generate_summary(60), "Good compatibility! Some shared taste in movies.")
        self.assertEqual(generate_summary(55), "Moderate match. Some overlapping preferences.")
        self.assertEqual(generate_summary(40), "Different tastes, but room for discovery.")
        self.assertEqual(generate_summary(39), LOWEST_TIER_SUMMARY)

    def test_compare_vectors_fields(self):
        result = compare_vectors({"Action": 1.0, "Romance": -0.5}, {"Action": 1.0, "Romance": -0.5})
        self.assertEqual(result["match_percentage"], 100)
        self.assertEqual(result["similarity_score"], 1.0)
        self.assertEqual(result["genre_compatibility"], {"Action": 100, "Romance": 100})
        self.assertTrue(result["summary"].startswith("Excellent"))


if __name__ == '__main__':
    unittest.main()

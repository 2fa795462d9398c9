"""Cosine similarity between genre taste vectors and the match summary tiers."""

import math

SUMMARY_TIERS = (
    (80, "Excellent taste match! Very similar movie preferences."),
    (70, "Great match! You enjoy similar types of movies."),
    (60, "Good compatibility! Some shared taste in movies."),
    (50, "Moderate match. Some overlapping preferences."),
    (40, "Different tastes, but room for discovery."),
)
LOWEST_TIER_SUMMARY = "Very different tastes. Chance to explore new genres!"


def round_half_up(value: float, digits: int = 0):
    """Round .5 away from zero for positives, like JavaScript's Math.round.

    Returns an int when ``digits`` is 0.
    """
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5)
    if digits == 0:
        return int(rounded)
    return rounded / factor


def cosine_similarity(vector_a: dict, vector_b: dict) -> float:
    """Cosine over the union of keys; absent keys count as 0.

    Returns 0.0 when either vector has no magnitude.
    """
    if not vector_a or not vector_b:
        return 0.0

    dot = 0.0
    magnitude_a = 0.0
    magnitude_b = 0.0
    for key in set(vector_a) | set(vector_b):
        a = vector_a.get(key, 0.0)
        b = vector_b.get(key, 0.0)
        dot += a * b
        magnitude_a += a * a
        magnitude_b += b * b

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    similarity = dot / (math.sqrt(magnitude_a) * math.sqrt(magnitude_b))
    return max(-1.0, min(1.0, similarity))


def similarity_to_percentage(similarity: float) -> int:
    """Map [-1, 1] onto [0, 100]: -1 -> 0, 0 -> 50, 1 -> 100."""
    return round_half_up((similarity + 1) / 2 * 100)


def genre_compatibility(vector_a: dict, vector_b: dict) -> dict[str, int]:
    """Per-genre alignment: same sign 100, opposite sign 0, either side zero 50."""
    if vector_a is None or vector_b is None:
        return {}

    compatibility = {}
    for genre in dict.fromkeys([*vector_a, *vector_b]):
        single = cosine_similarity({genre: vector_a.get(genre, 0.0)}, {genre: vector_b.get(genre, 0.0)})
        compatibility[genre] = similarity_to_percentage(single)
    return compatibility


def generate_summary(percentage: float) -> str:
    for threshold, summary in SUMMARY_TIERS:
        if percentage >= threshold:
            return summary
    return LOWEST_TIER_SUMMARY


def compare_vectors(vector_a: dict, vector_b: dict) -> dict:
    """Everything a match report stores, computed from two taste vectors."""
    similarity = cosine_similarity(vector_a, vector_b)
    percentage = similarity_to_percentage(similarity)
    return {
        "similarity_score": round_half_up(similarity, 3),
        "match_percentage": percentage,
        "genre_compatibility": genre_compatibility(vector_a, vector_b),
        "summary": generate_summary(percentage),
    }

"""Dense movie feature vectors and the taste profile aggregated from them."""

import math
from collections import Counter
from typing import Sequence

import numpy as np

from filmshare.services.tmdb_client import MovieRecord

# Standard TMDB movie genres, one vector slot each, in this order
DEFAULT_GENRE_IDS = (
    28,     # Action
    12,     # Adventure
    16,     # Animation
    35,     # Comedy
    80,     # Crime
    99,     # Documentary
    18,     # Drama
    10751,  # Family
    14,     # Fantasy
    36,     # History
    27,     # Horror
    10402,  # Music
    9648,   # Mystery
    10749,  # Romance
    878,    # Science Fiction
    10770,  # TV Movie
    53,     # Thriller
    10752,  # War
    37,     # Western
)

MIN_YEAR = 1900
MAX_YEAR = 2030
DEFAULT_YEAR = 2024

# Trailing scalar slots after the genre one-hot block
SCALAR_FEATURES = ("rating", "popularity", "year_normalized", "blockbuster")

TOP_N = 5


def parse_release_year(release_date: str | None) -> int:
    """Year from a TMDB ``YYYY-MM-DD`` date, DEFAULT_YEAR when unusable."""
    if not release_date:
        return DEFAULT_YEAR
    try:
        return int(str(release_date).split("-")[0])
    except ValueError:
        return DEFAULT_YEAR


def normalize_year(year: int) -> float:
    return max(0.0, min(1.0, (year - MIN_YEAR) / (MAX_YEAR - MIN_YEAR)))


class MovieFeatureVector:
    """Fixed-width numeric view of one movie.

    Layout: one-hot presence per known genre id, then rating, popularity,
    normalized release year and blockbuster score, all in [0, 1].
    """

    def __init__(self, movie: MovieRecord, known_genre_ids: Sequence[int] = DEFAULT_GENRE_IDS):
        self.movie_id = movie.id
        self.title = movie.title
        self.known_genre_ids = tuple(known_genre_ids)
        self.genre_ids = list(dict.fromkeys(movie.genre_ids or []))

        self.rating = max(0.0, min(1.0, (movie.vote_average or 0) / 10))
        self.popularity = max(0.0, min(1.0, (movie.popularity or 0) / 100))
        self.year = parse_release_year(movie.release_date)
        self.year_normalized = normalize_year(self.year)
        self.blockbuster_score = 0.6 * self.popularity + 0.4 * self.rating

        self.directors = list(movie.directors or [])
        self.cast = list(movie.cast or [])
        self.keywords = list(movie.keywords or [])

    @property
    def dimensions(self) -> int:
        return len(self.known_genre_ids) + len(SCALAR_FEATURES)

    def to_array(self) -> np.ndarray:
        slots = {genre_id: idx for idx, genre_id in enumerate(self.known_genre_ids)}
        genres = np.zeros(len(self.known_genre_ids))
        for genre_id in self.genre_ids:
            idx = slots.get(genre_id)
            if idx is not None:
                genres[idx] = 1.0

        scalars = np.array([self.rating, self.popularity, self.year_normalized, self.blockbuster_score])
        return np.concatenate([genres, scalars])

    def features(self) -> dict:
        return {
            "movie": self.title,
            "rating": self.rating,
            "popularity": self.popularity,
            "year": self.year,
            "blockbuster_score": self.blockbuster_score,
            "genre_count": len(self.genre_ids),
            "directors": len(self.directors),
            "cast": len(self.cast),
            "keywords": len(self.keywords),
        }


def _top_people(counter: Counter, movie_count: int) -> list[dict]:
    return [
        {"name": name, "count": count, "frequency": count / movie_count}
        for name, count in counter.most_common(TOP_N)
    ]


def genre_entropy(genre_frequency: dict) -> float:
    """Shannon entropy of the genre distribution, scaled to [0, 1].

    Divides by log2 of the number of distinct genres; a single genre (or
    none) is 0.
    """
    total = sum(genre_frequency.values())
    distinct = len(genre_frequency)
    if total == 0 or distinct < 2:
        return 0.0

    entropy = 0.0
    for count in genre_frequency.values():
        p = count / total
        if p > 0:
            entropy -= p * math.log2(p)
    return entropy / math.log2(distinct)


def classify_diversity(entropy: float) -> str:
    if entropy > 0.6:
        return "diverse"
    if entropy > 0.3:
        return "moderate"
    return "niche"


class TasteProfile:
    """Aggregate of the movies a user liked."""

    def __init__(self, movies: Sequence[MovieFeatureVector]):
        self.movies = list(movies)
        self.movie_count = len(self.movies)

        if self.movie_count == 0:
            self.vector = np.array([])
            self.avg_rating = 0.0
            self.avg_popularity = 0.0
            self.avg_year = DEFAULT_YEAR
            self.genre_frequency = {}
            self.top_genres = {}
            self.top_directors = []
            self.top_cast = []
            self.entropy = 0.0
            self.diversity = "unknown"
            self.blockbuster_bias = 0.0
            return

        self.vector = np.vstack([m.to_array() for m in self.movies]).mean(axis=0)
        self.avg_rating = sum(m.rating for m in self.movies) / self.movie_count
        self.avg_popularity = sum(m.popularity for m in self.movies) / self.movie_count
        self.avg_year = math.floor(sum(m.year for m in self.movies) / self.movie_count + 0.5)

        genre_counter = Counter(g for m in self.movies for g in m.genre_ids)
        self.genre_frequency = dict(genre_counter)
        self.top_genres = {
            genre_id: count / self.movie_count
            for genre_id, count in genre_counter.most_common(TOP_N)
        }
        self.top_directors = _top_people(Counter(d for m in self.movies for d in m.directors), self.movie_count)
        self.top_cast = _top_people(Counter(a for m in self.movies for a in m.cast), self.movie_count)

        self.entropy = genre_entropy(self.genre_frequency)
        self.diversity = classify_diversity(self.entropy)
        self.blockbuster_bias = sum(m.blockbuster_score for m in self.movies) / self.movie_count

    @property
    def genre_ids(self) -> set:
        """Every genre id seen across the profile's movies."""
        return set(self.genre_frequency)

    def summary(self) -> dict:
        return {
            "movie_count": self.movie_count,
            "avg_rating": self.avg_rating,
            "avg_popularity": self.avg_popularity,
            "avg_year": self.avg_year,
            "top_genres": self.top_genres,
            "top_directors": self.top_directors,
            "top_cast": self.top_cast,
            "entropy": self.entropy,
            "diversity": self.diversity,
            "blockbuster_bias": self.blockbuster_bias,
        }

"""Models package: import all models so Base.metadata and relationships resolve."""

from filmshare.models.user import User  # noqa: F401
from filmshare.models.movie_taste_rating import MovieTasteRating  # noqa: F401
from filmshare.models.watched_movie import WatchedMovie  # noqa: F401
from filmshare.models.user_taste_vector import UserTasteVector  # noqa: F401
from filmshare.models.user_movie_profile import UserMovieProfile  # noqa: F401
from filmshare.models.user_taste_profile import UserTasteProfile  # noqa: F401
from filmshare.models.taste_match_session import TasteMatchSession  # noqa: F401
from filmshare.models.taste_match_report import TasteMatchReport  # noqa: F401

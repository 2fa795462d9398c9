"""Error types raised by the taste services."""


class InvalidInputError(Exception):
    """Raised for malformed caller input, before any computation runs.

    The API layer maps this to HTTP 400 with ``reason`` as the detail.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ExternalLookupFailure(Exception):
    """Raised inside the catalog client when a TMDB lookup fails or times out."""
    pass

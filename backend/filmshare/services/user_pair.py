"""Canonical ordering for two-user keys (sessions and match reports)."""

from dataclasses import dataclass

from filmshare.services.errors import InvalidInputError


@dataclass(frozen=True)
class UserPair:
    low: int
    high: int

    @classmethod
    def of(cls, a: int, b: int) -> "UserPair":
        """Build the pair for two distinct users in either order."""
        if a == b:
            raise InvalidInputError("Cannot pair a user with themselves")
        return cls(low=min(a, b), high=max(a, b))

    def is_low(self, user_id: int) -> bool:
        return user_id == self.low

    def other(self, user_id: int) -> int:
        if user_id == self.low:
            return self.high
        if user_id == self.high:
            return self.low
        raise ValueError(f"User {user_id} is not part of {self}")

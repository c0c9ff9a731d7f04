from collections.abc import Iterable


class Allowlist:
    """Stateless sender allowlist.

    An empty or absent list lets every user through; that is the documented
    default for a freshly configured adapter, not an oversight.
    """

    def __init__(self, allowed_users: Iterable[str] | None = None):
        self._allowed: frozenset[str] = frozenset(allowed_users or ())

    @property
    def restricted(self) -> bool:
        return bool(self._allowed)

    def is_allowed(self, user_id: str) -> bool:
        if not self._allowed:
            return True
        return user_id in self._allowed

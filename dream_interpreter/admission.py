import logging
from typing import Dict, Optional

from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from .config import Settings
from .errors import AdmissionRejected

logger = logging.getLogger(__name__)

INTERPRET_SCOPE = "interpret"
DREAMS_SCOPE = "dreams"


class AdmissionController:
    """Fixed-window request budget per (scope, client)."""

    def __init__(self, limits: Dict[str, str], storage: Optional[MemoryStorage] = None):
        self.storage = storage or MemoryStorage()
        self.limiter = FixedWindowRateLimiter(self.storage)
        self.limits: Dict[str, RateLimitItem] = {
            scope: parse(expression) for scope, expression in limits.items()
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdmissionController":
        return cls({
            INTERPRET_SCOPE: settings.interpret_rate_limit,
            DREAMS_SCOPE: settings.dreams_rate_limit,
        })

    def check(self, scope: str, client_id: str) -> None:
        """Count one request, raising AdmissionRejected once the window is spent."""
        item = self.limits.get(scope)
        if item is None:
            return
        if not self.limiter.hit(item, scope, client_id):
            logger.warning("Rate limit exceeded for %s on scope '%s' (%s)", client_id, scope, item)
            raise AdmissionRejected(scope)

    def remaining(self, scope: str, client_id: str) -> Optional[int]:
        item = self.limits.get(scope)
        if item is None:
            return None
        return self.limiter.get_window_stats(item, scope, client_id).remaining

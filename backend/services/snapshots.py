# backend/services/snapshots.py
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from config import settings


@dataclass(frozen=True)
class SavedCartItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class SavedCartSnapshot:
    items: Tuple[SavedCartItem, ...]
    expires_at: datetime
    # Product that "buy now" put in the cart in place of the saved lines
    buy_now_product_id: Optional[int] = None

    def expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SavedCartStore:
    """Cart contents set aside by "buy now", keyed by user id.

    Entries expire after the ttl given to save(); expired entries behave as
    missing and are dropped on access.
    """

    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._entries: Dict[int, SavedCartSnapshot] = {}

    def save(
        self,
        user_id: int,
        items: List[SavedCartItem],
        ttl: timedelta,
        buy_now_product_id: Optional[int] = None,
    ) -> SavedCartSnapshot:
        snapshot = SavedCartSnapshot(
            items=tuple(items),
            expires_at=self._clock() + ttl,
            buy_now_product_id=buy_now_product_id,
        )
        with self._lock:
            self._entries[user_id] = snapshot
        return snapshot

    def get(self, user_id: int) -> Optional[SavedCartSnapshot]:
        with self._lock:
            snapshot = self._entries.get(user_id)
            if snapshot is None:
                return None
            if snapshot.expired(self._clock()):
                del self._entries[user_id]
                return None
            return snapshot

    def discard(self, user_id: int) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def __len__(self):
        with self._lock:
            return len(self._entries)


def default_ttl() -> timedelta:
    return timedelta(minutes=settings.SAVED_CART_TTL_MINUTES)


saved_cart_store = SavedCartStore()

# FastAPI dependency, overridden in tests
def get_saved_cart_store() -> SavedCartStore:
    return saved_cart_store

import logging
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from config import settings

logger = logging.getLogger(__name__)

class VerificationCodeStore:
    """Short-lived single-use codes keyed by e.g. an email address.

    Expired entries are dropped when touched and by ``sweep``, which the
    background job calls periodically.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic, digits: int = 6):
        self.ttl_seconds = ttl_seconds
        self.digits = digits
        self._clock = clock
        self._codes: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)

    def issue(self, key: str) -> str:
        code = f"{secrets.randbelow(10 ** self.digits):0{self.digits}d}"
        with self._lock:
            self._codes[key] = (code, self._clock() + self.ttl_seconds)
        return code

    def peek(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    def verify(self, key: str, code: str) -> bool:
        """Consumes the code on success."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or not secrets.compare_digest(entry[0], str(code)):
                return False
            del self._codes[key]
            return True

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._codes.items() if expires_at <= now]
            for key in expired:
                del self._codes[key]
        if expired:
            logger.debug("Swept %d expired verification code(s)", len(expired))
        return len(expired)

    def _live_entry(self, key: str) -> Optional[Tuple[str, float]]:
        entry = self._codes.get(key)
        if entry is not None and entry[1] <= self._clock():
            del self._codes[key]
            return None
        return entry

verification_codes = VerificationCodeStore(ttl_seconds=settings.CODE_TTL_MINUTES * 60)

import math
import threading
import time
from typing import Callable

from app.config import settings


class OtpCooldown:
    """Per-email resend cooldown held in process memory.

    Entries are never evicted and are not shared between workers.
    """

    def __init__(self, seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self._seconds = seconds
        self._clock = clock
        self._last_sent: dict[str, float] = {}
        self._lock = threading.Lock()

    def hit(self, email: str) -> int:
        """Record a send for ``email``.

        Returns 0 when the send may proceed, otherwise the whole seconds left
        to wait; a blocked attempt does not restart the window.
        """
        if self._seconds <= 0:
            return 0
        key = email.strip().lower()
        with self._lock:
            now = self._clock()
            last_sent = self._last_sent.get(key)
            if last_sent is not None and now - last_sent < self._seconds:
                return math.ceil(self._seconds - (now - last_sent))
            self._last_sent[key] = now
            return 0

    def reset(self) -> None:
        with self._lock:
            self._last_sent.clear()


otp_cooldown = OtpCooldown(settings.otp_cooldown_seconds)

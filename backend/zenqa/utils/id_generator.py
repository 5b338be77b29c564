"""Clock and record-ID source injected into every pipeline operation."""

import threading
from datetime import datetime, timezone


def file_stamp(moment: datetime) -> str:
    """Filesystem-safe ISO stamp like 2026-10-18T09-30-00-123Z."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


def iso_timestamp(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class SystemClock:
    """Wall clock whose record IDs are epoch milliseconds, strictly increasing."""

    def __init__(self):
        self._last_id = 0
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def next_id(self) -> int:
        with self._lock:
            candidate = int(self.now().timestamp() * 1000)
            # two submissions in the same millisecond still get distinct ids
            self._last_id = max(candidate, self._last_id + 1)
            return self._last_id


def generate_test_case_id(prefix: str, number: int) -> str:
    """Generate a catalog test case ID like TC_AUTH_001."""
    return f"{prefix}_{number:03d}"


def generate_step_id(test_case_id: str, step_number: int) -> str:
    """Generate a step ID like STEP_TC_AUTH_001_01."""
    return f"STEP_{test_case_id}_{step_number:02d}"

# tests/fixtures/clock.py

"""
⏱️ Controllable clock:
- `FakeClock` is a zero-arg callable (same shape as `utcnow`)
- `advance(**timedelta_kwargs)` moves time forward
"""

from datetime import datetime, timedelta, timezone

import pytest

T0 = datetime(2025, 3, 12, 10, 30, tzinfo=timezone.utc)  # a Wednesday


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, moment: datetime) -> datetime:
        self.now = moment
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


__all__ = ["FakeClock", "T0", "clock"]

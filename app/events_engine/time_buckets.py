"""Hour-granular time bucket keys used to partition the upstream event log.

A bucket key is the UTC hour formatted as ``YYYYMMDDHH0000``. The fixed width
and zero padding make lexicographic order equal to chronological order, so
keys are compared and sorted as plain strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

_BUCKET_FORMAT = "%Y%m%d%H0000"
_BUCKET_PATTERN = re.compile(r"^\d{10}0000$")


class InvalidTimeBucketError(ValueError):
    """Raised when a string is not a canonical time bucket key."""


@dataclass(frozen=True, order=True)
class TimeBucket:
    """A single hour of the event log, ordered chronologically."""

    key: str

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not _BUCKET_PATTERN.match(self.key):
            raise InvalidTimeBucketError(f"Invalid time bucket key: {self.key!r}")
        try:
            datetime.strptime(self.key, _BUCKET_FORMAT)
        except ValueError as exc:
            raise InvalidTimeBucketError(f"Invalid time bucket key: {self.key!r}") from exc

    def __str__(self) -> str:
        return self.key

    @classmethod
    def from_datetime(cls, moment: datetime) -> "TimeBucket":
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return cls(moment.astimezone(timezone.utc).strftime(_BUCKET_FORMAT))

    @classmethod
    def current(cls, now: Optional[datetime] = None) -> "TimeBucket":
        return cls.from_datetime(now or datetime.now(timezone.utc))

    @classmethod
    def parse(cls, value: str) -> Optional["TimeBucket"]:
        """Return the bucket for ``value`` or ``None`` when it is not a valid key."""

        try:
            return cls(value)
        except InvalidTimeBucketError:
            return None

    @property
    def start(self) -> datetime:
        return datetime.strptime(self.key, _BUCKET_FORMAT).replace(tzinfo=timezone.utc)

    def shift(self, hours: int) -> "TimeBucket":
        return TimeBucket.from_datetime(self.start + timedelta(hours=hours))

    def previous(self) -> "TimeBucket":
        return self.shift(-1)

    def next(self) -> "TimeBucket":
        return self.shift(1)


def previous_bucket(now: Optional[datetime] = None) -> TimeBucket:
    """Return the bucket one hour before the current one."""

    return TimeBucket.current(now).previous()


def iter_buckets(first: TimeBucket, last: TimeBucket) -> Iterator[TimeBucket]:
    """Yield every bucket from ``first`` to ``last`` inclusive, oldest first."""

    bucket = first
    while bucket <= last:
        yield bucket
        bucket = bucket.next()

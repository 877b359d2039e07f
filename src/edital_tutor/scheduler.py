"""Spaced-repetition review scheduling.

Every completed study session spawns three reviews of the studied topic, due
1, 7 and 30 days later. Reviews stay pending until explicitly completed; an
overdue review never expires on its own.
"""
import itertools
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta

from edital_tutor.models import Revision

REVIEW_OFFSETS = (1, 7, 30)

_sequence = itertools.count()


@dataclass
class ReviewBuckets:
    overdue: list[Revision] = field(default_factory=list)
    due_today: list[Revision] = field(default_factory=list)
    upcoming: list[Revision] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.overdue) + len(self.due_today) + len(self.upcoming)


def _day(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def _unique_token(anchor: datetime) -> str:
    return f"{int(anchor.timestamp() * 1000)}{next(_sequence)}"


def schedule_reviews(topic_id: str, anchor: datetime, token: str | None = None) -> list[Revision]:
    """Create the 1d/7d/30d reviews for a topic studied at ``anchor``."""
    token = token or _unique_token(anchor)
    return [
        Revision(
            id=f"rev-{topic_id}-{days}d-{token}",
            topic_id=topic_id,
            due_date=anchor + timedelta(days=days),
            completed=False,
            label=f"{days}d",
        )
        for days in REVIEW_OFFSETS
    ]


def classify(revisions: list[Revision], as_of) -> ReviewBuckets:
    """Split pending reviews into overdue / due today / upcoming by calendar day."""
    today = _day(as_of)
    pending = sorted((r for r in revisions if not r.completed), key=lambda r: r.due_date)
    buckets = ReviewBuckets()
    for rev in pending:
        due = _day(rev.due_date)
        if due < today:
            buckets.overdue.append(rev)
        elif due == today:
            buckets.due_today.append(rev)
        else:
            buckets.upcoming.append(rev)
    return buckets


def complete(revisions: list[Revision], revision_id: str) -> list[Revision]:
    """Mark one review completed. Unknown ids leave the list unchanged."""
    return [replace(r, completed=True) if r.id == revision_id else r for r in revisions]


def due_count(revisions: list[Revision], now: datetime) -> int:
    """Pending reviews whose due instant has passed."""
    return sum(1 for r in revisions if not r.completed and r.due_date <= now)

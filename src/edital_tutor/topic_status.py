"""Per-topic study status and syllabus progress."""
from dataclasses import replace
from typing import Iterable

from edital_tutor.models import MODALITIES, Discipline, Edital, TopicStatus

# Session types that don't map to a modality (law, review) still clear ``pending``.
SESSION_TYPE_MODALITY = {
    "theory": "pdf",
    "pdf": "pdf",
    "video": "video",
    "questions": "questions",
    "summary": "summary",
}


def default_status() -> TopicStatus:
    return TopicStatus()


def initial_topic_status(edital: Edital) -> dict[str, TopicStatus]:
    """Every topic of the syllabus, untouched."""
    return {t.id: default_status() for d in edital.disciplines for t in d.topics}


def modality_for_session_type(session_type: str) -> str | None:
    return SESSION_TYPE_MODALITY.get(session_type)


def record_study(
    topic_status: dict[str, TopicStatus],
    topic_id: str,
    modalities: Iterable[str] = (),
) -> dict[str, TopicStatus]:
    """Return a new status map with ``modalities`` set on ``topic_id``.

    Flags already set stay set and the topic is always marked non-pending,
    even when ``modalities`` is empty. The input map is left untouched.
    """
    current = topic_status.get(topic_id) or default_status()
    flags = {m: True for m in modalities if m in MODALITIES}
    updated = dict(topic_status)
    updated[topic_id] = replace(current, pending=False, **flags)
    return updated


def is_studied(topic_status: dict[str, TopicStatus], topic_id: str) -> bool:
    status = topic_status.get(topic_id)
    return status is not None and not status.pending


def completed_topic_count(topic_status: dict[str, TopicStatus]) -> int:
    return sum(1 for s in topic_status.values() if not s.pending)


def syllabus_progress(edital: Edital, topic_status: dict[str, TopicStatus]) -> float:
    """Percentage of the syllabus' topics that are no longer pending."""
    topic_ids = [t.id for d in edital.disciplines for t in d.topics]
    if not topic_ids:
        return 0.0
    done = sum(1 for tid in topic_ids if is_studied(topic_status, tid))
    return round(done / len(topic_ids) * 100, 1)


def discipline_progress(discipline: Discipline, topic_status: dict[str, TopicStatus]) -> tuple[int, int]:
    """(studied topics, total topics) for one discipline."""
    done = sum(1 for t in discipline.topics if is_studied(topic_status, t.id))
    return done, len(discipline.topics)

"""Syllabus lookups and copy-on-write editing."""
import re
from dataclasses import replace
from datetime import datetime
from typing import Callable

from edital_tutor.models import Discipline, Edital, Topic

_PRIMARY_SEPARATORS = re.compile(r"[;\n•]+")


def _stamp(clock: Callable[[], datetime]) -> int:
    return int(clock().timestamp() * 1000)


def topic_index(edital: Edital) -> dict[str, tuple[Topic, Discipline]]:
    return {t.id: (t, d) for d in edital.disciplines for t in d.topics}


def find_discipline(edital: Edital, discipline_id: str) -> Discipline | None:
    return next((d for d in edital.disciplines if d.id == discipline_id), None)


def find_topic(edital: Edital, topic_id: str) -> Topic | None:
    entry = topic_index(edital).get(topic_id)
    return entry[0] if entry else None


def _map_discipline(edital: Edital, discipline_id: str, fn) -> Edital:
    return replace(
        edital,
        disciplines=[fn(d) if d.id == discipline_id else d for d in edital.disciplines],
    )


def rename_discipline(edital: Edital, discipline_id: str, name: str) -> Edital:
    return _map_discipline(edital, discipline_id, lambda d: replace(d, name=name))


def add_discipline(
    edital: Edital, name: str = "New discipline", clock: Callable[[], datetime] = datetime.now
) -> Edital:
    stamp = _stamp(clock)
    discipline = Discipline(
        id=f"disc-new-{stamp}",
        name=name,
        topics=[Topic(id=f"topic-new-{stamp}", name="New topic")],
    )
    return replace(edital, disciplines=edital.disciplines + [discipline])


def delete_discipline(edital: Edital, discipline_id: str) -> Edital:
    return replace(edital, disciplines=[d for d in edital.disciplines if d.id != discipline_id])


def rename_topic(edital: Edital, discipline_id: str, topic_id: str, name: str) -> Edital:
    return _map_discipline(
        edital,
        discipline_id,
        lambda d: replace(d, topics=[replace(t, name=name) if t.id == topic_id else t for t in d.topics]),
    )


def add_topic(
    edital: Edital,
    discipline_id: str,
    name: str = "New topic",
    clock: Callable[[], datetime] = datetime.now,
) -> Edital:
    topic = Topic(id=f"topic-add-{_stamp(clock)}", name=name)
    return _map_discipline(edital, discipline_id, lambda d: replace(d, topics=d.topics + [topic]))


def delete_topic(edital: Edital, discipline_id: str, topic_id: str) -> Edital:
    return _map_discipline(
        edital, discipline_id, lambda d: replace(d, topics=[t for t in d.topics if t.id != topic_id])
    )


def split_topic_name(name: str) -> list[str]:
    parts = _PRIMARY_SEPARATORS.split(name)
    if len(parts) <= 1:
        parts = name.split(",")
    return [p.strip() for p in parts if len(p.strip()) > 2]


def explode_topic(
    edital: Edital,
    discipline_id: str,
    topic_id: str,
    clock: Callable[[], datetime] = datetime.now,
) -> Edital:
    """Replace a compound topic ("A; B; C") by one topic per item, in place."""
    discipline = find_discipline(edital, discipline_id)
    topic = next((t for t in discipline.topics if t.id == topic_id), None) if discipline else None
    if topic is None:
        raise ValueError(f"Topic {topic_id} not found in discipline {discipline_id}")
    parts = split_topic_name(topic.name)
    if len(parts) <= 1:
        raise ValueError(f"Cannot split topic '{topic.name}'; separate items with ';' or ','")
    stamp = _stamp(clock)
    new_topics = [
        Topic(id=f"topic-exploded-{topic_id}-{i}-{stamp}", name=part) for i, part in enumerate(parts)
    ]

    def _explode(d: Discipline) -> Discipline:
        topics = []
        for t in d.topics:
            topics.extend(new_topics if t.id == topic_id else [t])
        return replace(d, topics=topics)

    return _map_discipline(edital, discipline_id, _explode)

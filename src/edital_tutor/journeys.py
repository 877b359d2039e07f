"""Journey persistence and the study-data mutation pipeline.

A journey's StudyData and Edital are always written back whole; there are no
partial updates at the storage boundary and the last write wins.
"""
import json
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable

from loguru import logger

from edital_tutor.db import delete_setting, get_connection, get_setting, set_setting
from edital_tutor.models import Edital, Journey, QuestionLog, StudyData, StudySession
from edital_tutor.scheduler import complete, schedule_reviews
from edital_tutor.topic_status import initial_topic_status, modality_for_session_type, record_study

Clock = Callable[[], datetime]

ACTIVE_JOURNEY_KEY = "active_journey_id"


class JourneyNotFoundError(LookupError):
    pass


def _row_to_journey(row) -> Journey:
    return Journey(
        id=row["id"],
        edital=Edital.from_dict(json.loads(row["edital"])),
        study_data=StudyData.from_dict(json.loads(row["study_data"])),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def create_journey(db_path: str, edital: Edital, clock: Clock = datetime.now) -> Journey:
    """Start tracking a syllabus with every topic pending. The new journey becomes active."""
    now = clock()
    journey = Journey(
        id=f"journey-{int(now.timestamp() * 1000)}",
        edital=edital,
        study_data=StudyData(topic_status=initial_topic_status(edital)),
        created_at=now.isoformat(),
        updated_at=now.isoformat(),
    )
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO journeys (id, name, edital, study_data, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
        (
            journey.id,
            edital.name,
            json.dumps(edital.to_dict()),
            json.dumps(journey.study_data.to_dict()),
            journey.created_at,
            journey.updated_at,
        ),
    )
    conn.commit()
    conn.close()
    set_active_journey(db_path, journey.id)
    logger.info("Created journey {} for '{}'", journey.id, edital.name)
    return journey


def list_journeys(db_path: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT id, name, created_at, updated_at FROM journeys ORDER BY created_at"
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def load_journey(db_path: str, journey_id: str) -> Journey:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM journeys WHERE id = ?", (journey_id,)).fetchone()
    conn.close()
    if row is None:
        raise JourneyNotFoundError(journey_id)
    return _row_to_journey(row)


def delete_journey(db_path: str, journey_id: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM journeys WHERE id = ?", (journey_id,))
    conn.commit()
    conn.close()
    if get_active_journey_id(db_path) == journey_id:
        delete_setting(db_path, ACTIVE_JOURNEY_KEY)
    logger.info("Deleted journey {}", journey_id)


def get_active_journey_id(db_path: str) -> str | None:
    return get_setting(db_path, ACTIVE_JOURNEY_KEY)


def set_active_journey(db_path: str, journey_id: str) -> None:
    set_setting(db_path, ACTIVE_JOURNEY_KEY, journey_id)


def _update_column(db_path: str, journey_id: str, column: str, document: dict, clock: Clock) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute(
        f"UPDATE journeys SET {column} = ?, updated_at = ? WHERE id = ?",
        (json.dumps(document), clock().isoformat(), journey_id),
    )
    conn.commit()
    updated = cursor.rowcount
    conn.close()
    if updated == 0:
        raise JourneyNotFoundError(journey_id)
    logger.debug("Saved {} of journey {}", column, journey_id)


def save_study_data(db_path: str, journey_id: str, study_data: StudyData, clock: Clock = datetime.now) -> None:
    _update_column(db_path, journey_id, "study_data", study_data.to_dict(), clock)


def save_edital(db_path: str, journey_id: str, edital: Edital, clock: Clock = datetime.now) -> None:
    conn = get_connection(db_path)
    conn.execute("UPDATE journeys SET name = ? WHERE id = ?", (edital.name, journey_id))
    conn.commit()
    conn.close()
    _update_column(db_path, journey_id, "edital", edital.to_dict(), clock)


# --- Pure transitions -------------------------------------------------------


def apply_study_session(study_data: StudyData, session: StudySession, now: datetime) -> StudyData:
    """Log a finished timed session: mark the topic studied, then schedule its reviews."""
    if session.duration <= 0:
        return study_data
    modality = modality_for_session_type(session.type)
    topic_status = record_study(
        study_data.topic_status, session.topic_id, [modality] if modality else []
    )
    revisions = study_data.revisions + schedule_reviews(session.topic_id, now)
    return replace(
        study_data,
        sessions=study_data.sessions + [session],
        topic_status=topic_status,
        revisions=revisions,
    )


def apply_question_log(study_data: StudyData, log: QuestionLog) -> StudyData:
    return replace(study_data, questions=study_data.questions + [log])


# --- Persisted mutations ----------------------------------------------------


def add_study_session(
    db_path: str, journey_id: str, session: StudySession, clock: Clock = datetime.now
) -> StudyData:
    journey = load_journey(db_path, journey_id)
    if session.duration <= 0:
        logger.debug("Ignoring empty study session on topic {}", session.topic_id)
        return journey.study_data
    study_data = apply_study_session(journey.study_data, session, clock())
    save_study_data(db_path, journey_id, study_data, clock)
    logger.info(
        "Logged {}s of {} on topic {} in journey {}",
        session.duration, session.type, session.topic_id, journey_id,
    )
    return study_data


def add_question_log(
    db_path: str, journey_id: str, log: QuestionLog, clock: Clock = datetime.now
) -> StudyData:
    journey = load_journey(db_path, journey_id)
    study_data = apply_question_log(journey.study_data, log)
    save_study_data(db_path, journey_id, study_data, clock)
    logger.info("Logged {}/{} questions on topic {}", log.correct, log.total, log.topic_id)
    return study_data


def register_study(
    db_path: str,
    journey_id: str,
    topic_id: str,
    modalities: Iterable[str],
    clock: Clock = datetime.now,
) -> StudyData:
    """Manual status edit from the syllabus view; does not schedule reviews."""
    journey = load_journey(db_path, journey_id)
    study_data = replace(
        journey.study_data,
        topic_status=record_study(journey.study_data.topic_status, topic_id, modalities),
    )
    save_study_data(db_path, journey_id, study_data, clock)
    return study_data


def complete_revision(
    db_path: str, journey_id: str, revision_id: str, clock: Clock = datetime.now
) -> StudyData:
    journey = load_journey(db_path, journey_id)
    study_data = replace(
        journey.study_data, revisions=complete(journey.study_data.revisions, revision_id)
    )
    save_study_data(db_path, journey_id, study_data, clock)
    return study_data


def update_edital(db_path: str, journey_id: str, edital: Edital, clock: Clock = datetime.now) -> Journey:
    """Replace the syllabus. Status and reviews of removed topics are kept as-is."""
    save_edital(db_path, journey_id, edital, clock)
    return load_journey(db_path, journey_id)

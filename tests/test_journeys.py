# tests/test_journeys.py
import json
from datetime import datetime

import pytest

from edital_tutor.db import get_connection, init_db
from edital_tutor.journeys import (
    JourneyNotFoundError, add_question_log, add_study_session, apply_study_session,
    complete_revision, create_journey, delete_journey, get_active_journey_id,
    list_journeys, load_journey, register_study, save_study_data, set_active_journey,
    update_edital,
)
from edital_tutor.models import QuestionLog, StudyData, StudySession
from edital_tutor.scheduler import classify
from edital_tutor.syllabus import delete_topic

NOW = datetime(2024, 1, 1, 9, 0)


def clock():
    return NOW


def _session(topic_id="t1", duration=1800, type="theory"):
    return StudySession(id="s1", discipline_id="d1", topic_id=topic_id, duration=duration, date=NOW, type=type)


def test_create_journey(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    assert journey.id.startswith("journey-")
    assert get_active_journey_id(tmp_db) == journey.id
    loaded = load_journey(tmp_db, journey.id)
    assert loaded.edital == edital
    assert set(loaded.study_data.topic_status) == {"t1", "t2", "t3"}
    assert all(s.pending for s in loaded.study_data.topic_status.values())
    assert loaded.study_data.sessions == []


def test_list_and_switch_journeys(tmp_db, edital):
    init_db(tmp_db)
    first = create_journey(tmp_db, edital, clock=clock)
    second = create_journey(tmp_db, edital, clock=lambda: datetime(2024, 1, 2))
    assert [j["id"] for j in list_journeys(tmp_db)] == [first.id, second.id]
    set_active_journey(tmp_db, first.id)
    assert get_active_journey_id(tmp_db) == first.id


def test_load_missing_journey_raises(tmp_db):
    init_db(tmp_db)
    with pytest.raises(JourneyNotFoundError):
        load_journey(tmp_db, "nope")


def test_save_missing_journey_raises(tmp_db):
    init_db(tmp_db)
    with pytest.raises(JourneyNotFoundError):
        save_study_data(tmp_db, "nope", StudyData())


def test_delete_journey_clears_active(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    delete_journey(tmp_db, journey.id)
    assert list_journeys(tmp_db) == []
    assert get_active_journey_id(tmp_db) is None


def test_apply_study_session_pipeline(edital):
    data = StudyData()
    updated = apply_study_session(data, _session(), NOW)
    assert data.sessions == []
    assert len(updated.sessions) == 1
    assert updated.topic_status["t1"].pdf is True
    assert updated.topic_status["t1"].pending is False
    assert len(updated.revisions) == 3
    buckets = classify(updated.revisions, datetime(2024, 1, 2))
    assert len(buckets.due_today) == 1


def test_apply_study_session_law_only_clears_pending():
    updated = apply_study_session(StudyData(), _session(type="law"), NOW)
    assert updated.topic_status["t1"].pending is False
    assert updated.topic_status["t1"].completed_modalities() == set()
    assert len(updated.revisions) == 3


def test_apply_study_session_ignores_empty_session():
    data = StudyData()
    assert apply_study_session(data, _session(duration=0), NOW) is data


def test_add_study_session_persists_whole_aggregate(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    add_study_session(tmp_db, journey.id, _session(), clock=clock)
    conn = get_connection(tmp_db)
    row = conn.execute("SELECT study_data FROM journeys WHERE id = ?", (journey.id,)).fetchone()
    conn.close()
    doc = json.loads(row["study_data"])
    assert len(doc["sessions"]) == 1
    assert len(doc["revisions"]) == 3
    assert doc["topicStatus"]["t1"]["pending"] is False
    assert doc["topicStatus"]["t2"]["pending"] is True


def test_repeated_study_accumulates_reviews(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    add_study_session(tmp_db, journey.id, _session(), clock=clock)
    data = add_study_session(tmp_db, journey.id, _session(type="video"), clock=clock)
    assert len(data.revisions) == 6
    assert len({r.id for r in data.revisions}) == 6
    assert data.topic_status["t1"].completed_modalities() == {"pdf", "video"}


def test_add_question_log_does_not_schedule_reviews(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    log = QuestionLog(id="q1", discipline_id="d1", topic_id="t1", total=10, correct=7, date=NOW)
    data = add_question_log(tmp_db, journey.id, log, clock=clock)
    assert data.questions == [log]
    assert data.revisions == []
    assert data.topic_status["t1"].pending is True


def test_register_study_does_not_schedule_reviews(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    data = register_study(tmp_db, journey.id, "t2", ["law", "summary"], clock=clock)
    assert data.topic_status["t2"].completed_modalities() == {"law", "summary"}
    assert data.revisions == []
    assert load_journey(tmp_db, journey.id).study_data == data


def test_complete_revision(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    data = add_study_session(tmp_db, journey.id, _session(), clock=clock)
    target = data.revisions[0].id
    data = complete_revision(tmp_db, journey.id, target, clock=clock)
    assert [r.completed for r in data.revisions] == [True, False, False]
    data = complete_revision(tmp_db, journey.id, "missing", clock=clock)
    assert [r.completed for r in data.revisions] == [True, False, False]


def test_update_edital_orphans_but_keeps_study_data(tmp_db, edital):
    init_db(tmp_db)
    journey = create_journey(tmp_db, edital, clock=clock)
    add_study_session(tmp_db, journey.id, _session(), clock=clock)
    updated = update_edital(tmp_db, journey.id, delete_topic(edital, "d1", "t1"), clock=clock)
    assert [t.id for t in updated.edital.disciplines[0].topics] == ["t2"]
    assert "t1" in updated.study_data.topic_status
    assert len(updated.study_data.revisions) == 3

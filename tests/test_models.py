"""Tests for data model classes and their JSON documents."""
from datetime import datetime

import pytest

from edital_tutor.models import (
    Edital, GeneratedQuestion, QuestionLog, Revision, StudyData, StudySession,
    TopicStatus, parse_datetime,
)


def test_topic_status_defaults():
    st = TopicStatus()
    assert st.pending is True
    assert st.completed_modalities() == set()


def test_topic_status_completed_modalities():
    st = TopicStatus(pending=False, pdf=True, summary=True)
    assert st.completed_modalities() == {"pdf", "summary"}


def test_study_session_rejects_negative_duration():
    with pytest.raises(ValueError):
        StudySession(id="s1", discipline_id="d1", topic_id="t1", duration=-1, date=datetime.now())


def test_study_session_rejects_unknown_type():
    with pytest.raises(ValueError):
        StudySession(id="s1", discipline_id="d1", topic_id="t1", duration=60,
                     date=datetime.now(), type="podcast")


def test_question_log_correct_cannot_exceed_total():
    with pytest.raises(ValueError):
        QuestionLog(id="q1", discipline_id="d1", topic_id="t1", total=5, correct=6, date=datetime.now())


def test_question_log_allows_zero_total():
    log = QuestionLog(id="q1", discipline_id="d1", topic_id="t1", total=0, correct=0, date=datetime.now())
    assert log.total == 0


def test_edital_roundtrip(edital):
    assert Edital.from_dict(edital.to_dict()) == edital


def test_study_data_uses_camel_case_keys():
    data = StudyData(
        revisions=[Revision(id="r1", topic_id="t1", due_date=datetime(2024, 1, 2), label="1d")],
        topic_status={"t1": TopicStatus(pending=False, video=True)},
    )
    doc = data.to_dict()
    assert doc["revisions"][0]["topicId"] == "t1"
    assert doc["revisions"][0]["dueDate"] == "2024-01-02T00:00:00"
    assert doc["topicStatus"]["t1"]["video"] is True
    assert StudyData.from_dict(doc) == data


def test_study_data_from_partial_document():
    data = StudyData.from_dict({"sessions": [], "topicStatus": {"t1": {"pending": False}}})
    assert data.questions == []
    assert data.revisions == []
    assert data.topic_status["t1"] == TopicStatus(pending=False)


def test_parse_datetime_handles_utc_suffix():
    dt = parse_datetime("2024-01-01T12:00:00.000Z")
    assert dt.tzinfo is None
    assert isinstance(dt, datetime)


def test_generated_question_from_dict():
    q = GeneratedQuestion.from_dict({
        "question": "2+2?", "options": ["3", "4"], "correctAnswer": 1, "explanation": "Math",
    })
    assert q.correct_answer == 1
    assert q.options == ["3", "4"]

# tests/test_topic_status.py
from edital_tutor.models import MODALITIES, TopicStatus
from edital_tutor.topic_status import (
    completed_topic_count, discipline_progress, initial_topic_status,
    modality_for_session_type, record_study, syllabus_progress,
)


def test_record_study_on_unknown_topic_synthesizes_status():
    updated = record_study({}, "t1", ["video"])
    assert updated["t1"] == TopicStatus(pending=False, video=True)


def test_record_study_is_copy_on_write():
    original = {"t1": TopicStatus()}
    updated = record_study(original, "t1", ["pdf"])
    assert original["t1"].pending is True
    assert original["t1"].pdf is False
    assert updated is not original
    assert updated["t1"].pdf is True


def test_record_study_never_clears_flags():
    status = {"t1": TopicStatus(pending=False, pdf=True, law=True)}
    updated = record_study(status, "t1", ["summary"])
    assert updated["t1"].completed_modalities() == {"pdf", "law", "summary"}


def test_record_study_empty_set_clears_pending():
    updated = record_study({"t1": TopicStatus()}, "t1", [])
    assert updated["t1"].pending is False
    assert updated["t1"].completed_modalities() == set()


def test_record_study_monotonic_over_every_modality():
    status = {}
    seen = set()
    for m in MODALITIES:
        status = record_study(status, "t1", [m])
        seen.add(m)
        assert status["t1"].pending is False
        assert status["t1"].completed_modalities() == seen


def test_record_study_leaves_other_topics_alone():
    status = {"t1": TopicStatus(), "t2": TopicStatus()}
    updated = record_study(status, "t1", ["pdf"])
    assert updated["t2"] is status["t2"]


def test_modality_for_session_type():
    assert modality_for_session_type("theory") == "pdf"
    assert modality_for_session_type("pdf") == "pdf"
    assert modality_for_session_type("video") == "video"
    assert modality_for_session_type("questions") == "questions"
    assert modality_for_session_type("summary") == "summary"
    assert modality_for_session_type("law") is None
    assert modality_for_session_type("review") is None


def test_initial_topic_status(edital):
    status = initial_topic_status(edital)
    assert set(status) == {"t1", "t2", "t3"}
    assert all(s.pending for s in status.values())


def test_progress(edital):
    status = record_study(initial_topic_status(edital), "t1", ["pdf"])
    assert completed_topic_count(status) == 1
    assert syllabus_progress(edital, status) == 33.3
    assert discipline_progress(edital.disciplines[0], status) == (1, 2)
    assert discipline_progress(edital.disciplines[1], status) == (0, 1)


def test_progress_ignores_orphaned_status(edital):
    status = record_study({}, "deleted-topic", ["pdf"])
    assert syllabus_progress(edital, status) == 0.0

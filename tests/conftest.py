import pytest

from edital_tutor.models import Discipline, Edital, Topic


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def edital():
    """A small two-discipline syllabus."""
    return Edital(
        id="e1",
        name="Test Exam",
        disciplines=[
            Discipline(id="d1", name="Portuguese", topics=[
                Topic(id="t1", name="Spelling"),
                Topic(id="t2", name="Syntax"),
            ]),
            Discipline(id="d2", name="Law", topics=[
                Topic(id="t3", name="Penal principles"),
            ]),
        ],
    )

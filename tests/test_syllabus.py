# tests/test_syllabus.py
from datetime import datetime

import pytest

from edital_tutor.models import Topic
from edital_tutor.syllabus import (
    add_discipline, add_topic, delete_discipline, delete_topic, explode_topic,
    find_discipline, find_topic, rename_discipline, rename_topic, split_topic_name,
    topic_index,
)


def clock():
    return datetime(2024, 1, 1)


def test_topic_index(edital):
    index = topic_index(edital)
    topic, discipline = index["t3"]
    assert topic.name == "Penal principles"
    assert discipline.id == "d2"


def test_find_helpers(edital):
    assert find_discipline(edital, "d2").name == "Law"
    assert find_discipline(edital, "zz") is None
    assert find_topic(edital, "t2").name == "Syntax"
    assert find_topic(edital, "zz") is None


def test_rename_is_copy_on_write(edital):
    renamed = rename_discipline(edital, "d1", "Língua Portuguesa")
    assert renamed.disciplines[0].name == "Língua Portuguesa"
    assert edital.disciplines[0].name == "Portuguese"
    renamed = rename_topic(edital, "d1", "t2", "Sintaxe")
    assert renamed.disciplines[0].topics[1].name == "Sintaxe"


def test_add_and_delete(edital):
    bigger = add_discipline(edital, "Math", clock=clock)
    assert bigger.disciplines[-1].name == "Math"
    assert len(bigger.disciplines[-1].topics) == 1
    assert len(delete_discipline(bigger, bigger.disciplines[-1].id).disciplines) == 2
    with_topic = add_topic(edital, "d2", "Penalties", clock=clock)
    assert [t.name for t in with_topic.disciplines[1].topics] == ["Penal principles", "Penalties"]
    assert [t.id for t in delete_topic(edital, "d1", "t1").disciplines[0].topics] == ["t2"]


def test_split_topic_name():
    assert split_topic_name("Crase; Regência; Concordância") == ["Crase", "Regência", "Concordância"]
    assert split_topic_name("Hash, MD5, SHA") == ["Hash", "MD5", "SHA"]
    assert split_topic_name("Ortografia") == ["Ortografia"]
    assert split_topic_name("Lei A; xy") == ["Lei A"]


def test_explode_topic_replaces_in_place(edital):
    edital.disciplines[0].topics.insert(1, Topic(id="tx", name="Crase; Regência; Concordância"))
    exploded = explode_topic(edital, "d1", "tx", clock=clock)
    names = [t.name for t in exploded.disciplines[0].topics]
    assert names == ["Spelling", "Crase", "Regência", "Concordância", "Syntax"]
    assert exploded.disciplines[0].topics[1].id.startswith("topic-exploded-tx-0-")


def test_explode_topic_refuses_single_item(edital):
    with pytest.raises(ValueError):
        explode_topic(edital, "d1", "t1", clock=clock)


def test_explode_topic_unknown(edital):
    with pytest.raises(ValueError):
        explode_topic(edital, "d1", "t3", clock=clock)

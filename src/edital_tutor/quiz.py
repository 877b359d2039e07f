"""AI practice quizzes: free-tier daily quota, assembly and scoring."""
import json
import random
from dataclasses import dataclass
from datetime import date, datetime

from loguru import logger

from edital_tutor.ai import OFFLINE_MARKER, ContentAI
from edital_tutor.config import FREE_DAILY_QUESTION_LIMIT
from edital_tutor.models import Edital, GeneratedQuestion, QuestionLog
from edital_tutor.syllabus import find_discipline, topic_index

USAGE_KEY = "ai_questions_usage"
PREMIUM_KEY = "is_premium"


class QuotaExceededError(Exception):
    def __init__(self, requested: int, remaining: int):
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Free plan allows {FREE_DAILY_QUESTION_LIMIT} AI questions per day; "
            f"{remaining} left, {requested} requested"
        )


@dataclass
class UsageCounter:
    date: str
    count: int = 0


def load_usage(store, today: date) -> UsageCounter:
    """Today's counter; a counter stored for another day starts over at zero."""
    raw = store.get(USAGE_KEY)
    if raw:
        data = json.loads(raw)
        if data.get("date") == today.isoformat():
            return UsageCounter(date=data["date"], count=int(data.get("count", 0)))
    usage = UsageCounter(date=today.isoformat())
    store.set(USAGE_KEY, json.dumps({"date": usage.date, "count": 0}))
    return usage


def remaining(usage: UsageCounter, premium: bool = False) -> int | None:
    if premium:
        return None
    return max(0, FREE_DAILY_QUESTION_LIMIT - usage.count)


def check_quota(usage: UsageCounter, count: int, premium: bool = False) -> None:
    left = remaining(usage, premium)
    if left is not None and count > left:
        logger.info("Quota refused: {} requested, {} left", count, left)
        raise QuotaExceededError(count, left)


def record_usage(store, usage: UsageCounter, count: int, premium: bool = False) -> UsageCounter:
    if premium:
        return usage
    updated = UsageCounter(date=usage.date, count=usage.count + count)
    store.set(USAGE_KEY, json.dumps({"date": updated.date, "count": updated.count}))
    return updated


def is_premium(store) -> bool:
    return store.get(PREMIUM_KEY, "0") == "1"


def set_premium(store, premium: bool) -> None:
    store.set(PREMIUM_KEY, "1" if premium else "0")


def build_quiz(
    ai: ContentAI, edital: Edital, discipline_id: str, topic_id: str, count: int = 5
) -> list[GeneratedQuestion]:
    """Questions on a single topic."""
    entry = topic_index(edital).get(topic_id)
    if entry is None or entry[1].id != discipline_id:
        raise ValueError(f"Topic {topic_id} is not part of discipline {discipline_id}")
    topic, discipline = entry
    return ai.generate_practice_questions(topic.name, discipline.name, count)


def build_mock_exam(
    ai: ContentAI,
    edital: Edital,
    selections: dict[str, int],
    mode: str = "discipline",
    rng: random.Random | None = None,
) -> list[GeneratedQuestion]:
    """Mix questions from several disciplines (or topics) and shuffle them.

    ``selections`` maps a discipline id (or topic id in ``topic`` mode) to the
    number of questions wanted. Ids not in the syllabus are skipped.
    """
    if mode not in ("discipline", "topic"):
        raise ValueError(f"Unknown mock exam mode: {mode!r}")
    index = topic_index(edital)
    questions = []
    for item_id, count in selections.items():
        if count <= 0:
            continue
        if mode == "discipline":
            discipline = find_discipline(edital, item_id)
            if discipline:
                questions.extend(ai.generate_practice_questions(None, discipline.name, count))
        elif item_id in index:
            topic, discipline = index[item_id]
            questions.extend(ai.generate_practice_questions(topic.name, discipline.name, count))
    (rng or random).shuffle(questions)
    return questions


def is_offline(questions: list[GeneratedQuestion]) -> bool:
    return any(OFFLINE_MARKER in q.question for q in questions)


def score_quiz(questions: list[GeneratedQuestion], answers: list[int | None]) -> int:
    return sum(1 for q, a in zip(questions, answers) if a == q.correct_answer)


def quiz_to_question_log(
    edital: Edital,
    total: int,
    correct: int,
    now: datetime,
    discipline_id: str | None = None,
    topic_id: str | None = None,
) -> QuestionLog | None:
    """Turn a finished quiz into a log entry.

    Mixed exams have no single topic, so they are filed under the first topic
    of the first discipline; with an empty syllabus nothing is logged.
    """
    stamp = int(now.timestamp() * 1000)
    if discipline_id and topic_id:
        return QuestionLog(
            id=f"ai-single-{stamp}", discipline_id=discipline_id, topic_id=topic_id,
            total=total, correct=correct, date=now,
        )
    if not edital.disciplines or not edital.disciplines[0].topics:
        return None
    first = edital.disciplines[0]
    return QuestionLog(
        id=f"ai-sim-{stamp}", discipline_id=first.id, topic_id=first.topics[0].id,
        total=total, correct=correct, date=now,
    )

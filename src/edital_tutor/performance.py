"""Accuracy statistics, study totals and the XP/level score."""
import math
from datetime import datetime

from edital_tutor.models import Discipline, Edital, QuestionLog, StudyData
from edital_tutor.scheduler import due_count
from edital_tutor.topic_status import syllabus_progress

UNKNOWN_TOPIC = "Unknown topic"


def _pct(correct: int, total: int) -> int:
    # Half-up, so 44.5 -> 45 rather than banker's rounding.
    return int(math.floor(100 * correct / total + 0.5))


def accuracy_band(pct: float) -> str:
    if pct >= 80:
        return "green"
    elif pct >= 60:
        return "yellow"
    return "red"


def aggregate_by_discipline(disciplines: list[Discipline], logs: list[QuestionLog]) -> list[dict]:
    """Accuracy per discipline, best first. Disciplines without attempts are left out."""
    stats = {d.id: {"name": d.name, "correct": 0, "total": 0} for d in disciplines}
    for log in logs:
        acc = stats.get(log.discipline_id)
        if acc is None:
            continue
        acc["correct"] += log.correct
        acc["total"] += log.total
    results = [
        {
            "discipline_id": did,
            "name": s["name"],
            "correct": s["correct"],
            "total": s["total"],
            "accuracy_pct": _pct(s["correct"], s["total"]),
        }
        for did, s in stats.items()
        if s["total"] > 0
    ]
    return sorted(results, key=lambda r: r["accuracy_pct"], reverse=True)


def aggregate_by_topic(disciplines: list[Discipline], logs: list[QuestionLog]) -> list[dict]:
    """Accuracy per topic, worst first.

    Topics no longer in the syllabus keep their stats under a placeholder name.
    """
    names = {t.id: t.name for d in disciplines for t in d.topics}
    stats: dict[str, dict] = {}
    for log in logs:
        acc = stats.setdefault(
            log.topic_id, {"name": names.get(log.topic_id, UNKNOWN_TOPIC), "correct": 0, "total": 0}
        )
        acc["correct"] += log.correct
        acc["total"] += log.total
    results = [
        {
            "topic_id": tid,
            "name": s["name"],
            "accuracy_pct": _pct(s["correct"], s["total"]),
            "questions_attempted": s["total"],
        }
        for tid, s in stats.items()
        if s["total"] > 0
    ]
    return sorted(results, key=lambda r: r["accuracy_pct"])


def compute_xp_and_level(total_study_seconds: int, total_questions: int) -> dict:
    xp = (total_study_seconds // 3600) * 100 + total_questions * 10
    level = math.floor(math.sqrt(xp / 100)) + 1
    return {"xp": xp, "level": level}


def overall_accuracy(logs: list[QuestionLog], ndigits: int | None = 1) -> float:
    """Percentage of correct answers; ``ndigits=None`` keeps the exact ratio."""
    total = sum(q.total for q in logs)
    if total == 0:
        return 0.0
    correct = sum(q.correct for q in logs)
    pct = correct * 100 / total
    return pct if ndigits is None else round(pct, ndigits)


def study_totals(study_data: StudyData) -> dict:
    seconds = sum(s.duration for s in study_data.sessions)
    return {
        "seconds": seconds,
        "hours": round(seconds / 3600, 1),
        "questions": sum(q.total for q in study_data.questions),
        "correct": sum(q.correct for q in study_data.questions),
    }


def player_stats(study_data: StudyData) -> dict:
    totals = study_totals(study_data)
    score = compute_xp_and_level(totals["seconds"], totals["questions"])
    return {
        "total_hours": totals["seconds"] // 3600,
        "total_questions": totals["questions"],
        "accuracy": overall_accuracy(study_data.questions, ndigits=None),
        "xp": score["xp"],
        "level": score["level"],
    }


def achievements(stats: dict) -> list[dict]:
    return [
        {
            "name": "Beginner",
            "description": "Study for your first hour",
            "achieved": stats["total_hours"] >= 1,
        },
        {
            "name": "Marathoner",
            "description": "50 hours of study",
            "achieved": stats["total_hours"] >= 50,
        },
        {
            "name": "Sniper",
            "description": "80% accuracy over 50+ questions",
            "achieved": stats["total_questions"] >= 50 and stats["accuracy"] >= 80,
        },
        {
            "name": "Master",
            "description": "Reach level 10",
            "achieved": stats["level"] >= 10,
        },
    ]


def dashboard_summary(edital: Edital, study_data: StudyData, now: datetime) -> dict:
    totals = study_totals(study_data)
    return {
        "progress": syllabus_progress(edital, study_data.topic_status),
        "hours": totals["hours"],
        "questions": totals["questions"],
        "accuracy": overall_accuracy(study_data.questions),
        "due_reviews": due_count(study_data.revisions, now),
    }

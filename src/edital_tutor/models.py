"""Data classes for the syllabus and study-tracking model.

Documents are stored as JSON with camelCase keys and ISO-8601 datetimes.
"""
from dataclasses import dataclass, field
from datetime import datetime

MODALITIES = ("pdf", "video", "law", "questions", "summary")
SESSION_TYPES = ("theory", "pdf", "video", "questions", "law", "summary", "review")


def parse_datetime(value) -> datetime:
    """Parse an ISO timestamp into a naive local datetime."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


@dataclass
class Topic:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "Topic":
        return cls(id=str(data["id"]), name=data.get("name", ""))


@dataclass
class Discipline:
    id: str
    name: str
    topics: list[Topic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "topics": [t.to_dict() for t in self.topics]}

    @classmethod
    def from_dict(cls, data: dict) -> "Discipline":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            topics=[Topic.from_dict(t) for t in data.get("topics") or []],
        )


@dataclass
class Edital:
    id: str
    name: str
    disciplines: list[Discipline] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "disciplines": [d.to_dict() for d in self.disciplines],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Edital":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            disciplines=[Discipline.from_dict(d) for d in data.get("disciplines") or []],
        )


@dataclass
class TopicStatus:
    pending: bool = True
    pdf: bool = False
    video: bool = False
    law: bool = False
    questions: bool = False
    summary: bool = False

    def completed_modalities(self) -> set[str]:
        return {m for m in MODALITIES if getattr(self, m)}

    def to_dict(self) -> dict:
        return {
            "pending": self.pending,
            "pdf": self.pdf,
            "video": self.video,
            "law": self.law,
            "questions": self.questions,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TopicStatus":
        return cls(
            pending=bool(data.get("pending", True)),
            **{m: bool(data.get(m, False)) for m in MODALITIES},
        )


@dataclass
class StudySession:
    id: str
    discipline_id: str
    topic_id: str
    duration: int
    date: datetime
    type: str = "theory"

    def __post_init__(self):
        if self.duration < 0:
            raise ValueError(f"Session duration must be >= 0, got {self.duration}")
        if self.type not in SESSION_TYPES:
            raise ValueError(f"Unknown session type: {self.type!r}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "disciplineId": self.discipline_id,
            "topicId": self.topic_id,
            "duration": self.duration,
            "date": self.date.isoformat(),
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StudySession":
        return cls(
            id=str(data["id"]),
            discipline_id=str(data.get("disciplineId", "")),
            topic_id=str(data.get("topicId", "")),
            duration=int(data.get("duration", 0)),
            date=parse_datetime(data["date"]),
            type=data.get("type", "theory"),
        )


@dataclass
class QuestionLog:
    id: str
    discipline_id: str
    topic_id: str
    total: int
    correct: int
    date: datetime

    def __post_init__(self):
        if self.total < 0 or self.correct < 0:
            raise ValueError("Question counts must be >= 0")
        if self.correct > self.total:
            raise ValueError(f"correct ({self.correct}) cannot exceed total ({self.total})")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "disciplineId": self.discipline_id,
            "topicId": self.topic_id,
            "total": self.total,
            "correct": self.correct,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionLog":
        return cls(
            id=str(data["id"]),
            discipline_id=str(data.get("disciplineId", "")),
            topic_id=str(data.get("topicId", "")),
            total=int(data.get("total", 0)),
            correct=int(data.get("correct", 0)),
            date=parse_datetime(data["date"]),
        )


@dataclass
class Revision:
    id: str
    topic_id: str
    due_date: datetime
    completed: bool = False
    label: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "topicId": self.topic_id,
            "dueDate": self.due_date.isoformat(),
            "completed": self.completed,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Revision":
        return cls(
            id=str(data["id"]),
            topic_id=str(data.get("topicId", "")),
            due_date=parse_datetime(data["dueDate"]),
            completed=bool(data.get("completed", False)),
            label=data.get("label", ""),
        )


@dataclass
class StudyData:
    sessions: list[StudySession] = field(default_factory=list)
    questions: list[QuestionLog] = field(default_factory=list)
    revisions: list[Revision] = field(default_factory=list)
    topic_status: dict[str, TopicStatus] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "sessions": [s.to_dict() for s in self.sessions],
            "questions": [q.to_dict() for q in self.questions],
            "revisions": [r.to_dict() for r in self.revisions],
            "topicStatus": {k: v.to_dict() for k, v in self.topic_status.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StudyData":
        return cls(
            sessions=[StudySession.from_dict(s) for s in data.get("sessions") or []],
            questions=[QuestionLog.from_dict(q) for q in data.get("questions") or []],
            revisions=[Revision.from_dict(r) for r in data.get("revisions") or []],
            topic_status={
                str(k): TopicStatus.from_dict(v) for k, v in (data.get("topicStatus") or {}).items()
            },
        )


@dataclass
class Journey:
    id: str
    edital: Edital
    study_data: StudyData = field(default_factory=StudyData)
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def name(self) -> str:
        return self.edital.name


@dataclass
class GeneratedQuestion:
    question: str
    options: list[str]
    correct_answer: int
    explanation: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "GeneratedQuestion":
        return cls(
            question=str(data.get("question", "")),
            options=[str(o) for o in data.get("options") or []],
            correct_answer=int(data.get("correctAnswer", 0)),
            explanation=str(data.get("explanation", "")),
        )

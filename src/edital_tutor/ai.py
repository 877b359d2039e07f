"""Generative-AI content: syllabus extraction, practice questions and summaries.

Callers never see provider failures: question generation falls back to a fixed
offline set, syllabus calls return None and summaries return a message.
"""
import json
from datetime import datetime
from typing import Callable

from google import genai
from loguru import logger

from edital_tutor.config import GEMINI_MODEL, get_api_key
from edital_tutor.models import Discipline, Edital, GeneratedQuestion, Topic

OFFLINE_MARKER = "(Offline mode)"
MAX_OPTIONS = 8

OFFLINE_QUESTIONS = [
    GeneratedQuestion(
        question=(
            f"{OFFLINE_MARKER} The 1988 Federal Constitution, art. 5, states that everyone is equal "
            "before the law. About fundamental rights and guarantees, it is correct to say that:"
        ),
        options=[
            "Racism is a crime not subject to bail or statute of limitations.",
            "Expression of thought is free, anonymity included.",
            "The home is inviolable, except by police order at any time.",
            "Freedom of association is full, including paramilitary purposes.",
            "Property shall not serve a social function.",
        ],
        correct_answer=0,
        explanation="Art. 5, XLII: racism is a crime not subject to bail or statute of limitations.",
    ),
    GeneratedQuestion(
        question=(
            f"{OFFLINE_MARKER} The attribute of administrative acts that lets the Administration impose "
            "obligations on third parties regardless of their consent is called:"
        ),
        options=[
            "Presumption of legitimacy",
            "Imperativeness",
            "Self-enforceability",
            "Typicality",
            "Discretion",
        ],
        correct_answer=1,
        explanation="Imperativeness binds third parties regardless of their agreement.",
    ),
    GeneratedQuestion(
        question=f"{OFFLINE_MARKER} Which of these is an implicit principle of Public Administration?",
        options=[
            "Legality",
            "Impersonality",
            "Morality",
            "Efficiency",
            "Supremacy of the public interest",
        ],
        correct_answer=4,
        explanation=(
            "Legality, impersonality, morality, publicity and efficiency are explicit in art. 37; "
            "supremacy of the public interest is implicit."
        ),
    ),
]


def clean_and_repair_json(text: str) -> str:
    """Strip code fences and close truncated JSON as best we can."""
    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        json.loads(cleaned)
        return cleaned
    except json.JSONDecodeError:
        pass
    stack = []
    in_string = escaped = False
    for ch in cleaned:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]" and stack:
            stack.pop()
    if in_string:
        cleaned += '"'
    cleaned = cleaned.rstrip().rstrip(",")
    return cleaned + "".join(reversed(stack))


def _entry_name(entry, default: str) -> str:
    if isinstance(entry, str):
        return entry.strip() or default
    if isinstance(entry, dict):
        return str(entry.get("name") or default)
    raise ValueError(f"Expected a name or a mapping, got {type(entry).__name__}")


def edital_from_payload(payload: dict | list, clock: Callable[[], datetime] = datetime.now) -> Edital:
    """Build an Edital with fresh ids from a loosely structured document.

    ``payload`` is either a mapping with ``name`` and ``disciplines`` or a bare
    list of disciplines. A discipline (or topic) may be a plain string naming it.
    """
    if isinstance(payload, list):
        payload = {"disciplines": payload}
    if not isinstance(payload, dict):
        raise ValueError(f"Unsupported syllabus document: {type(payload).__name__}")
    raw_disciplines = payload.get("disciplines") or []
    if not isinstance(raw_disciplines, list):
        raise ValueError("'disciplines' must be a list")
    stamp = int(clock().timestamp() * 1000)
    disciplines = []
    for i, d in enumerate(raw_disciplines):
        topics = d.get("topics") if isinstance(d, dict) and isinstance(d.get("topics"), list) else []
        disciplines.append(Discipline(
            id=f"disc-{i}-{stamp}",
            name=_entry_name(d, "Discipline"),
            topics=[
                Topic(id=f"top-{i}-{j}-{stamp}", name=_entry_name(t, "Topic"))
                for j, t in enumerate(topics)
            ],
        ))
    return Edital(id=f"edital-{stamp}", name=payload.get("name") or "Imported syllabus", disciplines=disciplines)


class ContentAI:
    def __init__(self, client=None, api_key: str | None = None, model: str = GEMINI_MODEL):
        self.model = model
        self._client = client
        self._api_key = api_key if api_key is not None else get_api_key()

    @property
    def available(self) -> bool:
        return self._client is not None or bool(self._api_key)

    @property
    def client(self):
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def _generate(self, prompt: str, as_json: bool = False) -> str:
        config = {"response_mime_type": "application/json"} if as_json else None
        response = self.client.models.generate_content(model=self.model, contents=prompt, config=config)
        text = (response.text or "").strip()
        if not text:
            raise ValueError("Empty response from model")
        return text

    def generate_practice_questions(
        self, topic_name: str | None, discipline_name: str, count: int = 5
    ) -> list[GeneratedQuestion]:
        if not self.available:
            return OFFLINE_QUESTIONS[:count]
        prompt = (
            f"Write {count} hard multiple-choice questions about {topic_name or discipline_name} "
            f"({discipline_name}) in the style of Brazilian public service exams. Answer in JSON "
            'with a "questions" array whose items have question, options (array of strings), '
            "correctAnswer (index) and explanation."
        )
        try:
            parsed = json.loads(clean_and_repair_json(self._generate(prompt, as_json=True)))
            questions = [GeneratedQuestion.from_dict(q) for q in parsed.get("questions") or []]
            questions = [
                q for q in questions
                if 0 < len(q.options) <= MAX_OPTIONS and 0 <= q.correct_answer < len(q.options)
            ]
            if not questions:
                raise ValueError("No usable questions in response")
            return questions[:count]
        except Exception as e:
            logger.warning("Question generation failed, using offline set: {}", e)
            return OFFLINE_QUESTIONS[:count]

    def parse_edital(self, text: str, clock: Callable[[], datetime] = datetime.now) -> Edital | None:
        if not self.available:
            return None
        prompt = (
            "Extract the syllabus of this exam notice as JSON with a name and a disciplines array; "
            "each discipline has a name and a topics array of strings. Split topics into granular items.\n\n"
            + text
        )
        try:
            parsed = json.loads(clean_and_repair_json(self._generate(prompt, as_json=True)))
            return edital_from_payload(parsed, clock)
        except Exception as e:
            logger.warning("Syllabus extraction failed: {}", e)
            return None

    def update_edital(self, edital: Edital, instruction: str) -> Edital | None:
        if not self.available:
            return None
        prompt = (
            f"Instruction: {instruction}. Current syllabus: {json.dumps(edital.to_dict())}. "
            "Return only the updated JSON, keeping existing ids."
        )
        try:
            parsed = json.loads(clean_and_repair_json(self._generate(prompt, as_json=True)))
            return Edital.from_dict(parsed)
        except Exception as e:
            logger.warning("Syllabus update failed: {}", e)
            return None

    def generate_summary(self, topic_name: str, discipline_name: str) -> str:
        if not self.available:
            return "No API key configured."
        prompt = f"Write a didactic exam-prep summary of {topic_name} ({discipline_name}). Use Markdown."
        try:
            return self._generate(prompt)
        except Exception as e:
            logger.warning("Summary generation failed: {}", e)
            return "Could not generate a summary."

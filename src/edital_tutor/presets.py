"""Bundled sample syllabi offered when creating a journey."""
import json
from pathlib import Path

from edital_tutor.models import Edital

CONTENT_DIR = Path(__file__).parent / "content"


def load_presets() -> list[Edital]:
    """Read every syllabus from editais.json, in file order."""
    data = json.loads((CONTENT_DIR / "editais.json").read_text(encoding="utf-8"))
    return [Edital.from_dict(e) for e in data["editais"]]


def get_preset(edital_id: str) -> Edital | None:
    return next((e for e in load_presets() if e.id == edital_id), None)

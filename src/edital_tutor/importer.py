"""Import a syllabus from various file formats."""
import json
import re
from datetime import datetime
from pathlib import Path

from loguru import logger

from edital_tutor.ai import ContentAI, edital_from_payload
from edital_tutor.models import Discipline, Edital, Topic

STRUCTURED_SUFFIXES = (".json", ".yaml", ".yml")

_BULLET = re.compile(r"^(?:[-*•]+|\d+(?:\.\d+)*[.)]?)\s*")


def read_file_content(file_path: str) -> str:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in (".txt", ".md"):
        return path.read_text()
    elif suffix == ".json":
        data = json.loads(path.read_text())
        return json.dumps(data, indent=2)
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
        return str(data)
    elif suffix == ".pdf":
        from PyPDF2 import PdfReader
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    elif suffix == ".docx":
        from docx import Document
        doc = Document(file_path)
        return "\n".join(p.text for p in doc.paragraphs)
    elif suffix in (".html", ".htm"):
        from bs4 import BeautifulSoup
        html = path.read_text()
        return BeautifulSoup(html, "html.parser").get_text("\n")
    else:
        # Try reading as plain text
        return path.read_text()


def _is_heading(line: str) -> bool:
    if line.endswith(":"):
        return True
    letters = [c for c in line if c.isalpha()]
    return len(letters) > 1 and all(c.isupper() for c in letters)


def parse_outline(text: str, name: str = "Imported syllabus", clock=datetime.now) -> Edital:
    """Read an indented/bulleted outline: headings are disciplines, other lines topics."""
    payload = {"name": name, "disciplines": []}
    current = None
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if _is_heading(line):
            heading = line.rstrip(":").strip()
            current = {"name": heading.title() if heading.isupper() else heading, "topics": []}
            payload["disciplines"].append(current)
            continue
        topic = _BULLET.sub("", line).strip()
        if not topic:
            continue
        if current is None:
            current = {"name": "General", "topics": []}
            payload["disciplines"].append(current)
        current["topics"].append(topic)
    return edital_from_payload(payload, clock)


def _load_structured(path: Path) -> dict:
    if path.suffix.lower() == ".json":
        return json.loads(path.read_text())
    import yaml
    return yaml.safe_load(path.read_text())


def import_edital(file_path: str, ai: ContentAI | None = None, clock=datetime.now) -> Edital:
    """Build an Edital from a file.

    JSON/YAML files are read as structured syllabi (existing ids are kept when
    every entry has one). Anything else is extracted by the AI when available,
    otherwise parsed as an outline. Raises ValueError for a structured file
    that does not describe a syllabus.
    """
    path = Path(file_path)
    if path.suffix.lower() in STRUCTURED_SUFFIXES:
        data = _load_structured(path)
        try:
            return Edital.from_dict(data)
        except (KeyError, TypeError):
            return edital_from_payload(data, clock)
    content = read_file_content(file_path)
    if ai is not None and ai.available:
        edital = ai.parse_edital(content, clock)
        if edital is not None and edital.disciplines:
            return edital
        logger.info("AI extraction gave nothing for {}, parsing as outline", path.name)
    return parse_outline(content, name=path.stem, clock=clock)

# tests/test_config.py
from loguru import logger

from edital_tutor.config import configure_logging, get_api_key


def test_configure_logging_writes_to_file(tmp_path):
    log_path = tmp_path / "logs" / "tutor.log"
    configure_logging(log_path)
    logger.info("journey saved")
    logger.remove()
    assert "journey saved" in log_path.read_text()


def test_get_api_key_strips(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "  abc  ")
    assert get_api_key() == "abc"
    monkeypatch.delenv("GEMINI_API_KEY")
    assert get_api_key() == ""

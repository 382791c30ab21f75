import logging
from logging.handlers import RotatingFileHandler

import pytest
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).parent.parent))

from govdoc_ner.config import Config, NERBackendConfig, HUGGINGFACE_NER_URL
from govdoc_ner.utils.error_handler import (
    BackendUnavailableError,
    ErrorHandler,
    MalformedResponseError,
    NERBackendError,
)
from govdoc_ner.utils.log_utils import setup_logging


@pytest.fixture
def handler():
    """Create error handler with a small log"""
    return ErrorHandler(max_log_size=3)


def test_handle_backend_error(handler):
    error = BackendUnavailableError("primary", "returned 503", status_code=503)
    info = handler.handle_error(error, {"stage": "primary_backend"})

    assert info["error_type"] == "BackendUnavailableError"
    assert info["user_message"] == "개체명 인식 서버에 연결할 수 없습니다."
    assert info["retry_available"] is True
    assert "[primary] returned 503" in info["technical_message"]
    assert error.backend == "primary"
    assert error.status_code == 503


def test_malformed_response_is_not_retried(handler):
    info = handler.handle_error(MalformedResponseError("secondary", "response is not JSON"))
    assert info["retry_available"] is False
    assert isinstance(MalformedResponseError("x", "y"), NERBackendError)


def test_unknown_error_type_message(handler):
    assert handler.get_user_message("KeyError") == "일시적인 오류가 발생했습니다. 잠시 후 다시 시도해 주세요."
    assert handler.get_user_message("KeyError", default="기본") == "기본"


def test_error_log_is_bounded(handler):
    for i in range(5):
        handler.handle_error(BackendUnavailableError("primary", f"failure {i}"))

    stats = handler.get_error_stats()
    assert stats["total_errors"] == 3
    assert stats["recent_errors"][-1]["message"].endswith("failure 4")

    handler.clear_error_log()
    assert handler.get_error_stats() == {"total_errors": 0, "error_types": {}, "recent_errors": []}


# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------
def test_default_config_is_valid():
    assert Config.validate() is True


@pytest.mark.parametrize("name,value", [
    ("NAME_MATCH_THRESHOLD", 1.5),
    ("DATE_FUZZY_THRESHOLD", -0.1),
    ("NER_TIMEOUT_S", 0),
])
def test_invalid_config(monkeypatch, name, value):
    monkeypatch.setattr(Config, name, value)
    with pytest.raises(ValueError):
        Config.validate()


def test_backend_config_from_env(monkeypatch):
    monkeypatch.setattr(Config, "NER_PRIMARY_URL", "http://ner.test/extract")
    monkeypatch.setattr(Config, "HUGGINGFACE_API_KEY", None)

    backends = NERBackendConfig.from_env(Config())

    assert backends.has_primary
    assert not backends.has_secondary
    assert backends.primary_url == "http://ner.test/extract"


def test_backend_config_defaults():
    backends = NERBackendConfig()

    assert not backends.has_primary and not backends.has_secondary
    assert backends.secondary_url == HUGGINGFACE_NER_URL
    assert backends.timeout_s == 10.0
    assert backends.connect_timeout_s == 5.0
    assert backends.default_confidence == 0.5


# ----------------------------------------------------------------------
# Logging
# ----------------------------------------------------------------------
def test_setup_logging(tmp_path):
    logger = setup_logging("debug", tmp_path)
    try:
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 3
        assert sum(isinstance(h, RotatingFileHandler) for h in logger.handlers) == 2

        logger.getChild("grounding").error("grounding failed")
        for h in logger.handlers:
            h.flush()

        assert "grounding failed" in (tmp_path / "error.log").read_text(encoding="utf-8")
        assert "Logging initialized" in (tmp_path / "app.log").read_text(encoding="utf-8")

        # Re-running replaces handlers instead of stacking them
        assert len(setup_logging("INFO", tmp_path).handlers) == 3
    finally:
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

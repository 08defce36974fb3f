import logging
import os

import pytest

from app.core.config import settings
from app.core.logging_config import setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    access = logging.getLogger("uvicorn.access")
    access_handlers, access_propagate = access.handlers[:], access.propagate
    yield
    for handler in root.handlers + access.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    access.handlers[:] = access_handlers
    access.propagate = access_propagate


class TestSetupLogging:
    def test_creates_one_directory_per_stream(self, tmp_path, monkeypatch, restore_logging):
        monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path))

        setup_logging()

        assert sorted(os.listdir(tmp_path)) == ["access", "app", "error"]

    def test_access_log_kept_out_of_app_log(self, tmp_path, monkeypatch, restore_logging):
        monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path))

        setup_logging()

        access = logging.getLogger("uvicorn.access")
        assert access.propagate is False
        assert [os.path.dirname(h.baseFilename) for h in access.handlers] == [str(tmp_path / "access")]
        assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING

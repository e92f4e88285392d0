import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add the parent directory to sys.path so we can import main
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import Settings
from main import create_app


def make_settings(tmp_path, **overrides):
    values = {
        "port": 8080,
        "log_timestamp": False,
        "custom_html_head": "",
        "custom_html_body": "",
        "enable_xss_protection": False,
        "upload_dir": str(tmp_path / "uploads"),
        "log_file": str(tmp_path / "log.txt"),
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # Context manager runs the lifespan, which creates the upload directory
    with TestClient(app) as test_client:
        yield test_client

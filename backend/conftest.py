import io
from types import SimpleNamespace

import pytest
from PIL import Image

from app import create_app
from plant_analyzer import PlantAnalyzer


class FakeModel:
    """Stands in for genai.GenerativeModel; records calls."""

    def __init__(self, text="Species: Ficus lyrata. Health: good.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, contents, request_options=None):
        self.calls.append((contents, request_options))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def make_image(fmt="PNG", size=(40, 20), color="green") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "upload"


@pytest.fixture
def reports_dir(tmp_path):
    return tmp_path / "reports"


@pytest.fixture
def flask_app(fake_model, upload_dir, reports_dir):
    analyzer = PlantAnalyzer(fake_model, timeout=5, model_name="fake-model")
    app = create_app(analyzer=analyzer, UPLOAD_DIR=upload_dir, REPORTS_DIR=reports_dir)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()

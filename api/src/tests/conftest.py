import pytest
from docx import Document
from fastapi.testclient import TestClient

from api.index import app
from api.src.fieldtrip.models import NoticeFields
from api.src.fieldtrip.routes import get_template_path

# One paragraph per notice field, tagged with the field name.
ALL_FIELD_TAGS = [f"{{{{ {name} }}}}" for name in NoticeFields.field_names()]


@pytest.fixture
def make_template(tmp_path):
    """Build a .docx template with one paragraph per argument."""

    def _make(*paragraphs: str, name: str = "fieldtrip.docx"):
        doc = Document()
        for text in paragraphs:
            doc.add_paragraph(text)
        path = tmp_path / name
        doc.save(path)
        return path

    return _make


@pytest.fixture
def use_template():
    """Point the generation endpoint at a given template path."""

    def _use(path):
        app.dependency_overrides[get_template_path] = lambda: path

    yield _use
    app.dependency_overrides.pop(get_template_path, None)


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def full_template(make_template):
    """Template using every notice field exactly once, one paragraph each."""
    return make_template(*ALL_FIELD_TAGS)

"""
Endpoint tests for /api/letters/fieldtrip using FastAPI's TestClient.

The template path dependency is overridden per test so each case controls
exactly which tags the template contains.
"""
import io
import zipfile
from urllib.parse import quote

from api.src.fieldtrip.config import DOCX_MEDIA_TYPE
from api.src.fieldtrip.models import DEFAULT_TITLE, SAMPLE_NOTICE, NoticeFields
from api.src.fieldtrip.routes import GENERATION_ERROR, INVALID_INPUT_ERROR, TEMPLATE_MISSING_ERROR
from api.src.tests.docx_helpers import document_xml, text_runs

ENDPOINT = "/api/letters/fieldtrip"


class TestSmoke:
    """Verify the router is mounted on the app."""

    def test_routes_have_expected_paths(self):
        from api.index import app

        paths = app.openapi()["paths"]
        assert ENDPOINT in paths
        assert f"{ENDPOINT}/preview" in paths
        assert f"{ENDPOINT}/form" in paths

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestGenerate:
    def test_success_headers_and_body(self, client, full_template, use_template):
        use_template(full_template)

        response = client.post(ENDPOINT, json={"date": "2026年2月3日", "event_name": "遠足"})

        assert response.status_code == 200
        assert response.headers["content-type"] == DOCX_MEDIA_TYPE
        expected_name = quote("校外学習お便り_2026年2月3日.docx", safe="")
        assert response.headers["content-disposition"] == f"attachment; filename*=UTF-8''{expected_name}"
        assert zipfile.is_zipfile(io.BytesIO(response.content))
        assert "遠足" in text_runs(response.content)

    def test_empty_date_uses_placeholder_filename(self, client, full_template, use_template):
        use_template(full_template)

        response = client.post(ENDPOINT, json={})

        assert response.status_code == 200
        assert quote("日付未設定", safe="") in response.headers["content-disposition"]

    def test_all_fields_empty_renders_default_title_only(self, client, full_template, use_template):
        use_template(full_template)
        payload = {name: "" for name in NoticeFields.field_names() if name != "title"}

        response = client.post(ENDPOINT, json=payload)

        assert response.status_code == 200
        assert [t for t in text_runs(response.content) if t.strip()] == [DEFAULT_TITLE]

    def test_no_body_uses_defaults(self, client, full_template, use_template):
        use_template(full_template)

        response = client.post(ENDPOINT)

        assert response.status_code == 200
        assert DEFAULT_TITLE in text_runs(response.content)

    def test_crlf_items_become_separate_lines(self, client, full_template, use_template):
        use_template(full_template)

        response = client.post(ENDPOINT, json={"items": "A\r\nB\r\nC"})

        assert response.status_code == 200
        xml = document_xml(response.content)
        assert "<w:br/>" in xml
        assert "\\r\\n" not in xml
        runs = text_runs(response.content)
        start = runs.index("A")
        assert runs[start:start + 3] == ["A", "B", "C"]

    def test_sample_notice_round_trip(self, client, full_template, use_template):
        use_template(full_template)

        response = client.post(ENDPOINT, json=SAMPLE_NOTICE.model_dump())

        assert response.status_code == 200
        xml = document_xml(response.content)
        assert "{{" not in xml
        assert SAMPLE_NOTICE.destination in text_runs(response.content)

    def test_unknown_tag_returns_diagnostics(self, client, make_template, use_template):
        use_template(make_template("{{ title }}", "{{ principal_name }}"))

        response = client.post(ENDPOINT, json=SAMPLE_NOTICE.model_dump())

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == GENERATION_ERROR
        assert "principal_name" in body["detail"]
        assert body["multi"]
        assert "principal_name" in [d["tag"] for d in body["multi"]]
        assert body["multi"][0]["id"] == "undefined_tag"
        assert body["multi"][0]["part"] == "word/document.xml"
        assert body["multi"][0]["context"] == "{{ principal_name }}"

    def test_malformed_tag_returns_diagnostics(self, client, make_template, use_template):
        use_template(make_template("{{ title }", "{{ date }}"))

        response = client.post(ENDPOINT, json={})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == GENERATION_ERROR
        assert body["multi"][0]["id"] == "template_syntax_error"
        assert body["multi"][0]["name"] == "TemplateSyntaxError"

    def test_missing_template(self, client, tmp_path, use_template):
        missing = tmp_path / "templates" / "fieldtrip.docx"
        use_template(missing)

        response = client.post(ENDPOINT, json={})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == TEMPLATE_MISSING_ERROR
        assert body["template_path"] == str(missing)
        assert "multi" not in body

    def test_invalid_field_type(self, client, full_template, use_template):
        use_template(full_template)

        response = client.post(ENDPOINT, json={"grade": {"nested": True}})

        assert response.status_code == 422
        assert response.json()["error"] == INVALID_INPUT_ERROR

    def test_non_object_body_rejected(self, client, full_template, use_template):
        use_template(full_template)

        response = client.post(ENDPOINT, json=["not", "an", "object"])

        assert response.status_code == 422

    def test_shipped_template(self, client):
        response = client.post(ENDPOINT, json=SAMPLE_NOTICE.model_dump())

        assert response.status_code == 200
        runs = text_runs(response.content)
        assert SAMPLE_NOTICE.title in runs
        assert "お弁当" in runs


class TestPreviewAndForm:
    def test_preview_uses_defaults(self, client):
        response = client.post(f"{ENDPOINT}/preview", json={"event_name": "遠足"})

        assert response.status_code == 200
        preview = response.json()["preview"]
        assert preview.startswith(f"【{DEFAULT_TITLE}】")
        assert "■ 行事名\n遠足\n" in preview

    def test_preview_invalid_input(self, client):
        response = client.post(f"{ENDPOINT}/preview", json={"date": ["x"]})
        assert response.status_code == 422

    def test_form_schema(self, client):
        response = client.get(f"{ENDPOINT}/form")

        assert response.status_code == 200
        body = response.json()
        assert [f["name"] for f in body["fields"]] == NoticeFields.field_names()
        items = next(f for f in body["fields"] if f["name"] == "items")
        assert items["multiline"] is True
        assert items["label"] == "持ち物（改行で区切る）"
        assert items["sample"] == SAMPLE_NOTICE.items
        assert "{{...}}" in body["note"]

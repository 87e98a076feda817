"""Helpers for inspecting generated .docx bytes in tests."""
import io
import re
import zipfile

_TEXT_RE = re.compile(r"<w:t(?: [^>]*)?>([^<]*)</w:t>")


def document_xml(content: bytes) -> str:
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        return zf.read("word/document.xml").decode("utf-8")


def text_runs(content: bytes) -> list[str]:
    """All <w:t> texts of the main document part, in order."""
    return _TEXT_RE.findall(document_xml(content))

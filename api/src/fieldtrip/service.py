"""
Field-trip notice generation.

Fills templates/fieldtrip.docx with a NoticeFields record and returns the
rendered .docx bytes.

Template contract:
    - Tags use Jinja2's default delimiters: ``{{ event_name }}``.
    - Every tag must be a NoticeFields attribute; anything else is reported
      as an ``undefined_tag`` diagnostic instead of rendering blank.
    - A tag split across several Word runs still resolves (docxtpl merges
      the runs before parsing).
    - ``\\n`` inside a value becomes a real line break (``<w:br/>``).

Usage:
    from api.src.fieldtrip.service import generate_notice

    notice = generate_notice({"date": "2026年2月3日", "items": "水筒\\nお弁当"})
    notice.filename  # "校外学習お便り_2026年2月3日.docx"
    notice.content   # .docx bytes
"""

import io
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple
from urllib.parse import quote

import logfire
from docx import Document
from docx.text.paragraph import Paragraph
from docxtpl import DocxTemplate, Listing
from jinja2 import Environment, StrictUndefined, TemplateError, TemplateSyntaxError, UndefinedError

from api.src.fieldtrip import config
from api.src.fieldtrip.errors import TemplateNotFound, TemplateRenderError
from api.src.fieldtrip.models import LIST_FIELDS, NoticeFields, TemplateDiagnostic

_CRLF_RE = re.compile(r"\r+\n")
_UNDEFINED_RE = re.compile(r"'([^']+)' is undefined")
_NO_ATTRIBUTE_RE = re.compile(r"has no attribute '([^']+)'")


@dataclass(frozen=True)
class GeneratedNotice:
    content: bytes
    filename: str
    fields: NoticeFields


# =============================================================================
# Field Handling
# =============================================================================

def normalize_newlines(value: Optional[str]) -> str:
    """Convert CRLF (and any CR run before LF) to LF. Idempotent."""
    return _CRLF_RE.sub("\n", value or "")


def merge_notice_fields(raw_input: Optional[Mapping[str, Any]] = None) -> NoticeFields:
    """Merge client input over the defaults and normalize the list fields."""
    fields = NoticeFields.model_validate(dict(raw_input or {}))
    return fields.model_copy(
        update={name: normalize_newlines(getattr(fields, name)) for name in LIST_FIELDS}
    )


def build_filename(date: str) -> str:
    return f"{config.OUTPUT_FILENAME_PREFIX}_{date or config.MISSING_DATE_PLACEHOLDER}.docx"


def content_disposition(filename: str) -> str:
    """RFC 5987 attachment header; non-ASCII filenames are percent-encoded."""
    return f"attachment; filename*=UTF-8''{quote(filename, safe='')}"


# =============================================================================
# Template Loading
# =============================================================================

def load_template(template_path: Path) -> bytes:
    """Read the template bytes. Raises TemplateNotFound if the file is missing."""
    path = Path(template_path)
    if not path.is_file():
        raise TemplateNotFound(path)

    stat = path.stat()
    logfire.info(
        "Loading fieldtrip template",
        template_path=str(path),
        size=stat.st_size,
        mtime=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
    )
    return path.read_bytes()


# =============================================================================
# Engine Setup
# =============================================================================

def _jinja_env() -> Environment:
    return Environment(undefined=StrictUndefined)


def _template_context(fields: NoticeFields) -> Dict[str, Any]:
    """Values keyed by tag name; multi-line values become docxtpl Listings."""
    context: Dict[str, Any] = {}
    for name, value in fields.model_dump().items():
        context[name] = Listing(value) if "\n" in value else value
    return context


# =============================================================================
# Diagnostics
# =============================================================================

@dataclass(frozen=True)
class TagLocation:
    part: str
    offset: int
    context: str


def _iter_paragraphs(container) -> Iterator[Paragraph]:
    """Paragraphs in document order, descending into table cells."""
    for block in container.iter_inner_content():
        if isinstance(block, Paragraph):
            yield block
            continue
        for row in block.rows:
            for cell in row.cells:
                yield from _iter_paragraphs(cell)


def _iter_parts(document) -> Iterator[Tuple[str, Any]]:
    """(part name, container) for the body and each header/footer definition."""
    yield document.part.partname.lstrip("/"), document
    seen = set()
    for section in document.sections:
        for header_footer in (
            section.header,
            section.first_page_header,
            section.even_page_header,
            section.footer,
            section.first_page_footer,
            section.even_page_footer,
        ):
            # linked ones have no part of their own
            if header_footer.is_linked_to_previous:
                continue
            name = header_footer.part.partname.lstrip("/")
            if name not in seen:
                seen.add(name)
                yield name, header_footer


class TemplateLocator:
    """
    Finds where a tag lives in the template, by part and paragraph index.

    Paragraph text joins all runs, so a tag Word split across runs is still
    found. Only built when a diagnostic needs a location.
    """

    def __init__(self, template_bytes: bytes, context_width: int = 120):
        self._document = Document(io.BytesIO(template_bytes))
        self._context_width = context_width

    def find(self, predicate: Callable[[str], bool]) -> Optional[TagLocation]:
        for part, container in _iter_parts(self._document):
            for offset, paragraph in enumerate(_iter_paragraphs(container)):
                text = paragraph.text
                if predicate(text):
                    return TagLocation(part=part, offset=offset, context=text.strip()[: self._context_width])
        return None

    def find_tag(self, tag: str) -> Optional[TagLocation]:
        pattern = re.compile(r"\{[{%][^}]*?\b" + re.escape(tag) + r"\b")
        return self.find(lambda text: bool(pattern.search(text)))

    def find_malformed(self, jinja_env: Environment) -> Optional[TagLocation]:
        def malformed(text: str) -> bool:
            if "{" not in text:
                return False
            try:
                jinja_env.parse(text)
            except TemplateSyntaxError:
                return True
            return False

        return self.find(malformed)


def _location_fields(location: Optional[TagLocation]) -> Dict[str, Any]:
    if location is None:
        return {}
    return {"part": location.part, "offset": location.offset, "context": location.context}


def _where(location: Optional[TagLocation]) -> str:
    if location is None:
        return "in the template"
    return f"in {location.part} paragraph {location.offset}"


def _syntax_diagnostic(
    exc: TemplateSyntaxError, template_name: str, locator: TemplateLocator, jinja_env: Environment
) -> TemplateDiagnostic:
    location = locator.find_malformed(jinja_env)
    return TemplateDiagnostic(
        message=exc.message or str(exc),
        name=type(exc).__name__,
        explanation=f"Malformed tag syntax {_where(location)}: {exc.message}",
        file=template_name,
        id="template_syntax_error",
        **_location_fields(location),
    )


def _undefined_tag_diagnostic(tag: str, template_name: str, locator: TemplateLocator) -> TemplateDiagnostic:
    location = locator.find_tag(tag)
    return TemplateDiagnostic(
        message=f"The tag '{tag}' is not a notice field",
        name="UndefinedTag",
        explanation=(
            f"{{{{ {tag} }}}} appears {_where(location)} but is not one of: "
            f"{', '.join(NoticeFields.field_names())}"
        ),
        tag=tag,
        file=template_name,
        id="undefined_tag",
        xtag=f"{{{{ {tag} }}}}",
        **_location_fields(location),
    )


def _runtime_diagnostic(exc: TemplateError, template_name: str, locator: TemplateLocator) -> TemplateDiagnostic:
    message = exc.message or str(exc)
    match = _UNDEFINED_RE.search(message) or _NO_ATTRIBUTE_RE.search(message)
    tag = match.group(1) if match else None
    location = locator.find_tag(tag) if tag else None
    return TemplateDiagnostic(
        message=message,
        name=type(exc).__name__,
        explanation="Check that the template tags match the notice field names",
        tag=tag,
        file=template_name,
        id="undefined_tag" if isinstance(exc, UndefinedError) else "template_runtime_error",
        xtag=f"{{{{ {tag} }}}}" if tag else None,
        **_location_fields(location),
    )


# =============================================================================
# Rendering
# =============================================================================

def find_unknown_tags(template: DocxTemplate, jinja_env: Environment) -> List[str]:
    """Tags used in body/headers/footers that NoticeFields does not define."""
    declared = template.get_undeclared_template_variables(jinja_env)
    return sorted(set(declared) - set(NoticeFields.field_names()))


def render_notice(template_bytes: bytes, fields: NoticeFields, template_name: str = "fieldtrip.docx") -> bytes:
    """
    Fill the template with ``fields`` and return the new .docx bytes.

    Raises:
        TemplateRenderError: unknown tags or malformed tag syntax. Carries one
            TemplateDiagnostic per problem.
    """
    template = DocxTemplate(io.BytesIO(template_bytes))
    jinja_env = _jinja_env()

    try:
        unknown = find_unknown_tags(template, jinja_env)
    except TemplateSyntaxError as exc:
        raise TemplateRenderError(
            f"Template syntax error: {exc.message}",
            [_syntax_diagnostic(exc, template_name, TemplateLocator(template_bytes), jinja_env)],
        ) from exc

    if unknown:
        locator = TemplateLocator(template_bytes)
        raise TemplateRenderError(
            f"Template has tags with no matching field: {', '.join(unknown)}",
            [_undefined_tag_diagnostic(tag, template_name, locator) for tag in unknown],
        )

    try:
        template.render(_template_context(fields), jinja_env, autoescape=True)
    except TemplateSyntaxError as exc:
        raise TemplateRenderError(
            f"Template syntax error: {exc.message}",
            [_syntax_diagnostic(exc, template_name, TemplateLocator(template_bytes), jinja_env)],
        ) from exc
    except TemplateError as exc:
        raise TemplateRenderError(
            f"Template render error: {exc.message or exc}",
            [_runtime_diagnostic(exc, template_name, TemplateLocator(template_bytes))],
        ) from exc

    # python-docx writes the package with ZIP_DEFLATED
    out = io.BytesIO()
    template.save(out)
    return out.getvalue()


def generate_notice(
    raw_input: Optional[Mapping[str, Any]] = None,
    template_path: Path = config.TEMPLATE_PATH,
) -> GeneratedNotice:
    """Merge input, load the template, render, and name the output file."""
    fields = merge_notice_fields(raw_input)
    with logfire.span("generate fieldtrip notice", date=fields.date, event_name=fields.event_name):
        template_bytes = load_template(template_path)
        content = render_notice(template_bytes, fields, template_name=Path(template_path).name)
        filename = build_filename(fields.date)
        logfire.info("Generated fieldtrip notice", filename=filename, size=len(content))
    return GeneratedNotice(content=content, filename=filename, fields=fields)

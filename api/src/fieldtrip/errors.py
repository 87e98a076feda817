from pathlib import Path
from typing import List, Optional

from api.src.fieldtrip.models import TemplateDiagnostic


class NoticeGenerationError(Exception):
    """Base class for errors while building a notice document."""


class TemplateNotFound(NoticeGenerationError):
    """The configured template file does not exist (deployment problem)."""

    def __init__(self, template_path: Path):
        self.template_path = Path(template_path)
        super().__init__(f"Template not found: {self.template_path}")


class TemplateRenderError(NoticeGenerationError):
    """Template tags don't match NoticeFields, or the tag syntax is malformed."""

    def __init__(self, message: str, diagnostics: Optional[List[TemplateDiagnostic]] = None):
        self.message = message
        self.diagnostics = diagnostics or []
        super().__init__(message)

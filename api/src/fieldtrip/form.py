"""
Form-side state for the field-trip notice.

Mirrors what the browser form does: keeps the current NoticeFields (seeded
with SAMPLE_NOTICE), recomputes the preview on every read, and submits the
fields to POST /api/letters/fieldtrip, saving the returned .docx into a
download directory.

Usage:
    async with httpx.AsyncClient(base_url="http://localhost:8000") as client:
        form = NoticeForm(http_client=client)
        form.update("date", "2026年2月3日（火）")
        print(form.preview)
        path = await form.download_docx(Path("~/Downloads").expanduser())
        if path is None:
            print(form.error)
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx
import logfire

from api.src.fieldtrip import config
from api.src.fieldtrip.models import (
    MULTILINE_FIELDS,
    SAMPLE_NOTICE,
    FormField,
    FormSchema,
    NoticeFields,
)
from api.src.fieldtrip.preview import render_preview
from api.src.fieldtrip.service import build_filename

logger = logging.getLogger(__name__)

TEMPLATE_HINT = (
    f"※ {config.TEMPLATE_DISPLAY_PATH} の {{{{...}}}} タグ名と一致しないと生成でエラーになります。"
)


def update_field(fields: NoticeFields, name: str, value: str) -> NoticeFields:
    """Return a copy of ``fields`` with one field replaced."""
    if name not in NoticeFields.model_fields:
        raise KeyError(name)
    return fields.model_copy(update={name: value})


def form_schema(sample: NoticeFields = SAMPLE_NOTICE) -> FormSchema:
    """Ordered field list with labels so a frontend renders the same field set."""
    fields = [
        FormField(
            name=name,
            label=info.title or name,
            multiline=name in MULTILINE_FIELDS,
            sample=getattr(sample, name),
        )
        for name, info in NoticeFields.model_fields.items()
    ]
    return FormSchema(fields=fields, note=TEMPLATE_HINT)


def _error_from_response(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("detail") or body.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"


class NoticeForm:
    """One editing session of the notice form."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        fields: NoticeFields = SAMPLE_NOTICE,
    ):
        self.http_client = http_client
        self.fields = fields
        self.loading = False
        self.error = ""

    def update(self, name: str, value: str) -> NoticeFields:
        self.fields = update_field(self.fields, name, value)
        return self.fields

    @property
    def preview(self) -> str:
        return render_preview(self.fields)

    @property
    def download_filename(self) -> str:
        return build_filename(self.fields.date)

    async def _post(self, payload: dict) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.post(config.GENERATE_ENDPOINT, json=payload)
        async with httpx.AsyncClient(base_url=config.API_BASE_URL) as client:
            return await client.post(config.GENERATE_ENDPOINT, json=payload)

    async def download_docx(self, download_dir: Path) -> Optional[Path]:
        """
        Submit the current fields and save the returned document.

        Returns the saved path, or None on failure (message in ``self.error``).
        Ignored while a previous submission is still running. ``fields`` is
        never touched, so the user can fix input and resubmit.
        """
        if self.loading:
            logger.info("Submission already in progress; ignoring")
            return None

        self.loading = True
        self.error = ""
        try:
            response = await self._post(self.fields.model_dump())
            if not response.is_success:
                self.error = _error_from_response(response)
                logfire.warn("Notice generation failed", status_code=response.status_code, error=self.error)
                return None

            target = Path(download_dir) / self.download_filename
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(response.content)
            logfire.info("Saved notice", path=str(target), size=len(response.content))
            return target
        except Exception as e:
            self.error = str(e) or type(e).__name__
            logfire.exception("Notice submission error", error=self.error)
            return None
        finally:
            self.loading = False


if __name__ == "__main__":
    # Generate the sample notice against a running server (see config.API_BASE_URL).
    from api.src.utils.logfire_config import ensure_logfire_configured

    ensure_logfire_configured(mode="test")

    async def _main():
        form = NoticeForm()
        print(form.preview)
        saved = await form.download_docx(Path.cwd())
        print(saved or form.error)

    asyncio.run(_main())

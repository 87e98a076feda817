from pathlib import Path
from typing import Any, Dict, Optional

import logfire
from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from api.src.fieldtrip import config
from api.src.fieldtrip.errors import TemplateNotFound, TemplateRenderError
from api.src.fieldtrip.form import form_schema
from api.src.fieldtrip.models import FormSchema, NoticeErrorResponse
from api.src.fieldtrip.preview import render_preview
from api.src.fieldtrip.service import content_disposition, generate_notice, merge_notice_fields

router = APIRouter(prefix="/letters/fieldtrip", tags=["fieldtrip"])

GENERATION_ERROR = "docx生成でエラーが発生しました"
TEMPLATE_MISSING_ERROR = f"{config.TEMPLATE_DISPLAY_PATH} が見つかりません"
INVALID_INPUT_ERROR = "入力内容が正しくありません"


def get_template_path() -> Path:
    """Template location; overridden in tests via app.dependency_overrides."""
    return config.TEMPLATE_PATH


def _error_response(body: NoticeErrorResponse, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post(
    "",
    response_class=Response,
    responses={
        200: {"content": {config.DOCX_MEDIA_TYPE: {}}, "description": "Filled notice document"},
        500: {"model": NoticeErrorResponse},
    },
)
def generate_fieldtrip_notice(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    template_path: Path = Depends(get_template_path),
):
    """
    Fill templates/fieldtrip.docx with the posted fields and return it as a download.

    Any of the sixteen notice fields may be omitted; missing ones use defaults.
    Sync on purpose: FastAPI runs it in the threadpool since file/zip work blocks.
    """
    try:
        notice = generate_notice(payload, template_path=template_path)
    except ValidationError as e:
        logfire.warn("Invalid fieldtrip input: {detail}", detail=str(e))
        return _error_response(NoticeErrorResponse(error=INVALID_INPUT_ERROR, detail=str(e)), status_code=422)
    except TemplateNotFound as e:
        logfire.error("Fieldtrip template missing", template_path=str(e.template_path))
        return _error_response(
            NoticeErrorResponse(
                error=TEMPLATE_MISSING_ERROR,
                detail=str(e),
                template_path=str(e.template_path),
            )
        )
    except TemplateRenderError as e:
        logfire.error(
            "DOCX render error: {error_message}",
            error_message=e.message,
            multi=[d.model_dump(exclude_none=True) for d in e.diagnostics],
        )
        return _error_response(
            NoticeErrorResponse(error=GENERATION_ERROR, detail=e.message, multi=e.diagnostics)
        )
    except Exception as e:
        logfire.exception("DOCX generation error: {error}", error=str(e))
        return _error_response(NoticeErrorResponse(error=GENERATION_ERROR, detail=str(e) or type(e).__name__))

    return Response(
        content=notice.content,
        media_type=config.DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(notice.filename)},
    )


@router.post("/preview")
async def preview_fieldtrip_notice(payload: Optional[Dict[str, Any]] = Body(default=None)):
    """Plain-text preview of the posted fields (same defaults as generation)."""
    try:
        fields = merge_notice_fields(payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"preview": render_preview(fields)}


@router.get("/form", response_model=FormSchema)
async def get_fieldtrip_form():
    """Field names, labels and sample values for building the input form."""
    return form_schema()

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TITLE = "校外学習のお知らせ"

# Fields entered as newline-delimited lists (rendered as <textarea> by frontends).
LIST_FIELDS = ("items", "notes")
MULTILINE_FIELDS = ("purpose",) + LIST_FIELDS


class NoticeFields(BaseModel):
    """
    All values of a field-trip notice.

    Field names double as the template tag names: ``{{ event_name }}`` in
    templates/fieldtrip.docx is filled from ``event_name``. Missing or null
    keys fall back to the defaults below, so a validated instance never has
    an undefined field.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    title: str = Field(default=DEFAULT_TITLE, title="タイトル")
    grade: str = Field(default="", title="学年")
    class_name: str = Field(default="", title="学級")
    event_name: str = Field(default="", title="行事名")
    purpose: str = Field(default="", title="目的")
    date: str = Field(default="", title="日付")
    meet_time: str = Field(default="", title="集合時間")
    meet_place: str = Field(default="", title="集合場所")
    dismiss_time: str = Field(default="", title="解散時間")
    dismiss_place: str = Field(default="", title="解散場所")
    destination: str = Field(default="", title="行き先")
    clothes: str = Field(default="", title="服装")
    items: str = Field(default="", title="持ち物（改行で区切る）")
    notes: str = Field(default="", title="注意事項（改行で区切る）")
    issued_at: str = Field(default="", title="発行日")
    teacher_name: str = Field(default="", title="担任名")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # JSON null means "not provided", same as a missing key
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @classmethod
    def field_names(cls) -> List[str]:
        return list(cls.model_fields)


# Sample values the form starts with. Never used as a server-side fallback.
SAMPLE_NOTICE = NoticeFields(
    title=DEFAULT_TITLE,
    grade="3年",
    class_name="1組",
    event_name="姫路城・歴史学習",
    purpose="社会科の学習の一環として、地域の歴史や文化に触れ、学びを深めることを目的とします。",
    date="2026年2月3日（火）",
    meet_time="8:30",
    meet_place="学校運動場",
    dismiss_time="15:10",
    dismiss_place="学校",
    destination="姫路城（兵庫県姫路市本町68）",
    clothes="体操服、歩きやすい靴",
    items="筆記用具\nしおり\n水筒\nハンカチ・ティッシュ\nお弁当\n雨具",
    notes=(
        "雨天の場合も原則実施します。\n"
        "欠席される場合は当日朝までに連絡帳でご連絡ください。\n"
        "貴重品の持参はご遠慮ください。"
    ),
    issued_at="2026年1月10日",
    teacher_name="〇〇 〇〇",
)


class TemplateDiagnostic(BaseModel):
    """One problem found while filling the template (unknown tag, bad syntax, ...)."""

    message: Optional[str] = None
    name: Optional[str] = None
    explanation: Optional[str] = None
    tag: Optional[str] = None
    context: Optional[str] = None
    file: Optional[str] = None
    part: Optional[str] = None
    offset: Optional[int] = None
    id: Optional[str] = None
    xtag: Optional[str] = None


class NoticeErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    multi: Optional[List[TemplateDiagnostic]] = None
    template_path: Optional[str] = None


class FormField(BaseModel):
    name: str
    label: str
    multiline: bool = False
    sample: str = ""


class FormSchema(BaseModel):
    fields: List[FormField]
    note: str

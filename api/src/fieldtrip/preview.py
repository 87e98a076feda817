"""Plain-text preview of a notice, shown next to the form while editing."""

from api.src.fieldtrip.models import NoticeFields

IDEOGRAPHIC_SPACE = "　"


def render_preview(fields: NoticeFields) -> str:
    """Lay out the notice as plain text. Pure; call again after every change."""
    grade_class = " ".join(part for part in (fields.grade, fields.class_name) if part)
    sp = IDEOGRAPHIC_SPACE
    return f"""【{fields.title}】

保護者の皆様

このたび、{grade_class}では下記のとおり校外学習を実施いたします。

■ 行事名
{fields.event_name}

■ 目的
{fields.purpose}

■ 日時
{fields.date}

■ 集合
{fields.meet_time}{sp}{fields.meet_place}

■ 解散
{fields.dismiss_time}{sp}{fields.dismiss_place}

■ 行き先
{fields.destination}

■ 服装
{fields.clothes}

■ 持ち物
{fields.items}

■ 注意事項
{fields.notes}

{fields.issued_at}
担任{sp}{fields.teacher_name}
"""

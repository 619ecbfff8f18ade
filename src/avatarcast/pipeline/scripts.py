"""Canned progress scripts with ``{placeholder}`` fields."""

from __future__ import annotations

import string
from dataclasses import dataclass

from avatarcast.errors import ValidationError


@dataclass(frozen=True)
class ScriptTemplate:
    id: str
    title: str
    text: str

    @property
    def fields(self) -> list[str]:
        return sorted({name for _, name, _, _ in string.Formatter().parse(self.text) if name})


SCRIPT_TEMPLATES: tuple[ScriptTemplate, ...] = (
    ScriptTemplate(
        id="script1",
        title="After 10 lessons: CEFR Pre-A1",
        text=(
            "Hello mum! My name is {child_name}! I am {age} years old. "
            "I like football and singing. I go to the park and play football with my friends."
        ),
    ),
    ScriptTemplate(
        id="script2",
        title="After 50 lessons: CEFR A1",
        text=(
            "Hello mum! It's me, {child_name}. I love playing football with my friends. "
            "Yesterday, I played football and volleyball for 2 hours."
        ),
    ),
    ScriptTemplate(
        id="script3",
        title="After 100 lessons: CEFR A2",
        text=(
            "Hello mum! It's me, {child_name}. I am getting better at English, and my "
            "football is also getting better. Did you know that I love volleyball too? "
            "When I'm older, I want to become an English teacher, or a professional "
            "football player. Thank you for giving me English lessons to help me with my dream!"
        ),
    ),
)


def get_template(template_id: str) -> ScriptTemplate:
    for template in SCRIPT_TEMPLATES:
        if template.id == template_id:
            return template
    msg = f"unknown script template '{template_id}'"
    raise ValidationError(msg)


def render_script(template: ScriptTemplate | str, **values: object) -> str:
    """Fill a template's placeholders.

    Extra values are ignored; a missing or blank value for a placeholder the
    template uses raises ``ValidationError``.
    """
    tmpl = template if isinstance(template, ScriptTemplate) else get_template(template)
    missing = [f for f in tmpl.fields if not str(values.get(f, "")).strip()]
    if missing:
        msg = f"missing values for {', '.join(missing)}"
        raise ValidationError(msg)
    return tmpl.text.format_map({f: str(values[f]).strip() for f in tmpl.fields})

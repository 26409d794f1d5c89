"""Text cleanup for incoming questions and context."""

import re

from src.answer.models import AnswerContext, LocationContext, Part, Vehicle

MAX_QUESTION_CHARS = 400

# Pictographs, dingbats, regional indicators, variation selectors and ZWJ.
_EMOJI_RE = re.compile(
    "["
    "\U0001F000-\U0001FAFF"
    "\U00002600-\U000027BF"
    "\U00002B00-\U00002BFF"
    "\U0000FE0F"
    "\U0000200D"
    "]",
)
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_question(text: str) -> str:
    """Strip emoji, collapse whitespace, and cap the length."""
    cleaned = _WHITESPACE_RE.sub(" ", _EMOJI_RE.sub("", text)).strip()
    if len(cleaned) <= MAX_QUESTION_CHARS:
        return cleaned
    return cleaned[:MAX_QUESTION_CHARS].strip()


def _optional(value: str | None) -> str | None:
    if not value:
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_context(context: AnswerContext | None) -> AnswerContext | None:
    """Trim string fields; blank strings become None."""
    if context is None:
        return None

    vehicle = None
    if context.vehicle is not None:
        v = context.vehicle
        vehicle = Vehicle(
            year=v.year,
            make=_optional(v.make),
            model=_optional(v.model),
            trim=_optional(v.trim),
            engine=_optional(v.engine),
            vin=_optional(v.vin),
        )

    part = None
    if context.part is not None:
        part = Part(
            name=_optional(context.part.name),
            oem_part_number=_optional(context.part.oem_part_number),
        )

    location = None
    if context.location is not None:
        location = LocationContext(
            postal_code=_optional(context.location.postal_code),
            radius_miles=context.location.radius_miles,
        )

    return AnswerContext(vehicle=vehicle, part=part, location=location)

"""Required-field and confidence rules for extracted intents.

Rule IDs recorded in the trace:
  R01_INTENT_CLASSIFIED         always
  R02_MISSING_REQUIRED_FIELDS   any required field missing -> unknown
  R03_UNKNOWN_INTENT            intent could not be classified -> unknown
  R11_MISSING_DETAIL_CAP        combined intent without trim/engine/VIN -> medium
  R12_GUARANTEE_NEEDS_VIN       "guarantee" without VIN -> unknown
  R12_EXACT_FITMENT_NEEDS_VIN   "exact fitment" without VIN -> medium
  R10_CONFIDENCE_GATED          always, last
"""

from pydantic import BaseModel, Field

from src.answer.models import AnswerContext, ConfidenceLevel

_PART_FIELDS = ("part.name", "part.oem_part_number")
_LOCATION_FIELDS = ("location.postal_code",)
_VEHICLE_FIELDS = ("vehicle.year", "vehicle.make", "vehicle.model")

_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "PART_AVAILABILITY_LOCAL": _PART_FIELDS + _LOCATION_FIELDS,
    "PART_ELIGIBILITY": _PART_FIELDS + _VEHICLE_FIELDS,
    "PART_AVAILABILITY_AND_ELIGIBILITY": _PART_FIELDS + _LOCATION_FIELDS + _VEHICLE_FIELDS,
}


class ConfidenceResult(BaseModel):
    confidence: ConfidenceLevel
    missing_required_fields: list[str] = Field(default_factory=list)
    rules_applied: list[str] = Field(default_factory=list)


def _has_value(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _field_values(entities: AnswerContext | None) -> dict[str, object]:
    entities = entities or AnswerContext()
    part = entities.part
    vehicle = entities.vehicle
    location = entities.location
    return {
        "part.name": part.name if part else None,
        "part.oem_part_number": part.oem_part_number if part else None,
        "location.postal_code": location.postal_code if location else None,
        "vehicle.year": vehicle.year if vehicle else None,
        "vehicle.make": vehicle.make if vehicle else None,
        "vehicle.model": vehicle.model if vehicle else None,
    }


def compute_missing_required_fields(intent: str, entities: AnswerContext | None) -> list[str]:
    """List the dotted field names the intent needs but the entities lack.

    A part is identified by name OR OEM number, so either one satisfies both.
    """
    values = _field_values(entities)
    missing = [f for f in _REQUIRED_FIELDS.get(intent, ()) if not _has_value(values[f])]
    if any(_has_value(values[f]) for f in _PART_FIELDS):
        missing = [f for f in missing if f not in _PART_FIELDS]
    return missing


def evaluate_confidence(
    intent: str,
    entities: AnswerContext | None,
    question: str,
    missing_required_fields: list[str],
) -> ConfidenceResult:
    """Gate confidence by intent, missing fields, and VIN-dependent claims."""
    rules = ["R01_INTENT_CLASSIFIED"]

    if intent == "UNKNOWN_INTENT":
        rules += ["R03_UNKNOWN_INTENT", "R10_CONFIDENCE_GATED"]
        return ConfidenceResult(
            confidence="unknown",
            missing_required_fields=missing_required_fields,
            rules_applied=rules,
        )

    if missing_required_fields:
        rules += ["R02_MISSING_REQUIRED_FIELDS", "R10_CONFIDENCE_GATED"]
        return ConfidenceResult(
            confidence="unknown",
            missing_required_fields=missing_required_fields,
            rules_applied=rules,
        )

    confidence: ConfidenceLevel = "high"
    vehicle = entities.vehicle if entities else None

    if intent == "PART_AVAILABILITY_AND_ELIGIBILITY" and (
        vehicle is None or not (vehicle.trim and vehicle.engine and vehicle.vin)
    ):
        confidence = "medium"
        rules.append("R11_MISSING_DETAIL_CAP")

    if vehicle is None or not vehicle.vin:
        lowered = question.lower()
        if "guarantee" in lowered:
            confidence = "unknown"
            rules.append("R12_GUARANTEE_NEEDS_VIN")
        elif "exact fitment" in lowered:
            confidence = "medium"
            rules.append("R12_EXACT_FITMENT_NEEDS_VIN")

    rules.append("R10_CONFIDENCE_GATED")
    return ConfidenceResult(
        confidence=confidence,
        missing_required_fields=missing_required_fields,
        rules_applied=rules,
    )

"""Effective search location across conversation turns."""

import logging

from pydantic import BaseModel, ConfigDict

from src.core.schemas import EngineInput, EngineState

logger = logging.getLogger(__name__)


class LocationResolution(BaseModel):
    """Either a location to search near, or a request to ask the user for one.

    ``location`` is None with ``ask`` False when the user was already asked
    and never supplied a location.
    """

    model_config = ConfigDict(frozen=True)

    state: EngineState
    location: str | None = None
    ask: bool = False


def resolve_location(engine_input: EngineInput, state: EngineState) -> LocationResolution:
    """Pick the location for this turn.

    Precedence: an upstream-resolved city/ZIP, then free-text location typed
    this turn, then a one-time prompt, then the last known location.
    """
    location = engine_input.location
    if location is not None and location.status == "resolved" and location.city_zip:
        return LocationResolution(
            location=location.city_zip,
            state=state.model_copy(update={"last_location": location.city_zip}),
        )

    if engine_input.location_input:
        return LocationResolution(
            location=engine_input.location_input,
            state=state.model_copy(
                update={"location_asked": True, "last_location": engine_input.location_input},
            ),
        )

    if not state.location_asked:
        logger.debug("No location available - asking once")
        return LocationResolution(
            ask=True,
            state=state.model_copy(update={"location_asked": True}),
        )

    return LocationResolution(location=state.last_location, state=state)

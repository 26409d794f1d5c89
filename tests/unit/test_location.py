"""Tests for the location resolver."""

from src.core.schemas import EngineInput, EngineLocation, EngineState
from src.engine.location import resolve_location


def _input(**overrides: object) -> EngineInput:
    return EngineInput(**overrides)  # type: ignore[arg-type]


class TestResolveLocation:
    def test_resolved_location_used(self) -> None:
        engine_input = _input(location=EngineLocation(status="resolved", city_zip="80112"))
        result = resolve_location(engine_input, EngineState())
        assert result.ask is False
        assert result.location == "80112"
        assert result.state.last_location == "80112"
        assert result.state.mode == "local"
        assert result.state.location_asked is False

    def test_resolved_without_zip_falls_through(self) -> None:
        engine_input = _input(location=EngineLocation(status="resolved"))
        result = resolve_location(engine_input, EngineState())
        assert result.ask is True

    def test_denied_location_not_used(self) -> None:
        engine_input = _input(location=EngineLocation(status="denied", city_zip="80112"))
        result = resolve_location(engine_input, EngineState())
        assert result.ask is True

    def test_resolved_beats_free_text(self) -> None:
        engine_input = _input(
            location=EngineLocation(status="resolved", city_zip="80112"),
            location_input="Denver",
        )
        assert resolve_location(engine_input, EngineState()).location == "80112"

    def test_free_text_location(self) -> None:
        result = resolve_location(_input(location_input="Denver"), EngineState())
        assert result.location == "Denver"
        assert result.state.location_asked is True
        assert result.state.last_location == "Denver"

    def test_empty_free_text_ignored(self) -> None:
        result = resolve_location(_input(location_input=""), EngineState())
        assert result.ask is True

    def test_asks_once(self) -> None:
        result = resolve_location(_input(), EngineState())
        assert result.ask is True
        assert result.location is None
        assert result.state.location_asked is True

    def test_sticky_last_location(self) -> None:
        state = EngineState(location_asked=True, last_location="Boulder")
        result = resolve_location(_input(), state)
        assert result.ask is False
        assert result.location == "Boulder"
        assert result.state == state

    def test_asked_but_never_given(self) -> None:
        result = resolve_location(_input(), EngineState(location_asked=True))
        assert result.ask is False
        assert result.location is None

    def test_keeps_national_mode(self) -> None:
        state = EngineState(mode="national")
        engine_input = _input(location=EngineLocation(status="resolved", city_zip="10001"))
        assert resolve_location(engine_input, state).state.mode == "national"

    def test_prior_state_not_mutated(self) -> None:
        state = EngineState()
        resolve_location(_input(location_input="Denver"), state)
        assert state == EngineState()

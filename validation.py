# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Input validation for scoring API requests.

Each request body is parsed into a Pydantic model before anything touches
the engine or the store.  Validation errors are flattened into
:class:`ValidationErrorDetail` entries that name the parameter that failed
and what was expected.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from models import Base, PitchType, Player, RosterSide
from scoring import ACTIONS, CORRECTIONS


class ValidationErrorDetail:
    """Container for a structured validation error."""

    def __init__(self, parameter: str, expected: str, got: Any):
        self.parameter = parameter
        self.expected = expected
        self.got = got

    def to_dict(self) -> dict:
        return {
            "parameter": self.parameter,
            "expected": self.expected,
            "got": repr(self.got),
        }

    def __str__(self) -> str:
        return f"Parameter '{self.parameter}': expected {self.expected}, got {self.got!r}"


def error_details(exc: ValidationError) -> list[ValidationErrorDetail]:
    return [
        ValidationErrorDetail(
            parameter=".".join(str(p) for p in e.get("loc", ())) or "body",
            expected=e.get("msg", "valid value"),
            got=e.get("input"),
        )
        for e in exc.errors()
    ]


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="forbid")


class InitGameRequest(_Request):
    """Body of the init route."""
    home_team: str = Field(default="Home", min_length=1)
    away_team: str = Field(default="Away", min_length=1)


class PlayRequest(_Request):
    """Body of the play route: one scorer action plus its context."""
    action: str = Field(description="Action name, e.g. 'ball', 'hit', 'out'.")
    bases: Optional[int] = Field(default=None, ge=1, le=4, description="Bases for a hit (1-4).")
    description: Optional[str] = Field(default=None, min_length=1, description="Out description.")
    batter_id: Optional[str] = Field(default=None, min_length=1)
    pitcher_id: Optional[str] = Field(default=None, min_length=1)
    pitch_type: Optional[PitchType] = None

    @field_validator("action")
    @classmethod
    def validate_action(cls, v: str) -> str:
        if v not in ACTIONS:
            raise ValueError(f"action must be one of: {', '.join(ACTIONS)}")
        return v

    @model_validator(mode="after")
    def validate_bases(self) -> PlayRequest:
        if self.action == "hit" and self.bases is None:
            raise ValueError("bases is required for a hit")
        return self

    def action_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.action == "hit":
            options["bases"] = self.bases
        if self.action == "out" and self.description:
            options["description"] = self.description
        return options


class CorrectionRequest(_Request):
    """Body of the adjust route: one manual correction."""
    correction: str
    base: Optional[Base] = None
    side: Optional[RosterSide] = None
    delta: Optional[int] = Field(default=None, ge=-99, le=99)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @field_validator("correction")
    @classmethod
    def validate_correction(cls, v: str) -> str:
        if v not in CORRECTIONS:
            raise ValueError(f"correction must be one of: {', '.join(CORRECTIONS)}")
        return v

    def correction_options(self) -> dict[str, Any]:
        return {
            k: v for k, v in (("base", self.base), ("side", self.side),
                              ("delta", self.delta), ("name", self.name))
            if v is not None
        }


class RosterRequest(_Request):
    players: list[Player] = Field(default_factory=list)

    @field_validator("players")
    @classmethod
    def validate_unique_ids(cls, v: list[Player]) -> list[Player]:
        ids = [p.id for p in v]
        if len(ids) != len(set(ids)):
            raise ValueError("player ids must be unique")
        return v

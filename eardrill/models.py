from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .theory import note_to_midi


ExerciseType = Literal["Melody recognition", "Single note recognition", "Interval comparison"]
Rhythm = Literal["fixed", "random"]
ReferenceType = Literal["root", "arpeggio"]
IntervalDirection = Literal["ascending", "descending", "random"]
Direction = Literal["ascending", "descending"]

MELODY_RECOGNITION: ExerciseType = "Melody recognition"
SINGLE_NOTE_RECOGNITION: ExerciseType = "Single note recognition"
INTERVAL_COMPARISON: ExerciseType = "Interval comparison"


class DrillConfig(BaseModel):
	"""Everything that shapes the questions of one practice session."""

	model_config = ConfigDict(frozen=True)

	exercise_type: ExerciseType = Field(default=MELODY_RECOGNITION)
	selected_notes: Tuple[int, ...] = Field(default=(0, 2, 4, 5, 7, 9, 11))
	number_of_notes: int = Field(default=3, ge=1, le=10)
	play_extra_notes: int = Field(default=0, ge=0, le=5)
	# min/max distance between consecutive notes, inclusive
	consecutive_intervals: Tuple[int, int] = Field(default=(0, 11))
	question_note_range: Tuple[int, int] = Field(default=(0, 12))
	tempo: int = Field(default=200, ge=40, le=400)
	rhythm: Rhythm = Field(default="random")
	reference_type: ReferenceType = Field(default="root")
	root_note_pitch: str = Field(default="C4")
	target_intervals: Tuple[int, ...] = Field(default=(7,))
	interval_comparison_range: Tuple[int, int] = Field(default=(1, 12))
	include_target_in_comparison: bool = Field(default=False)
	interval_direction: IntervalDirection = Field(default="random")

	@field_validator("root_note_pitch")
	@classmethod
	def check_root_note_pitch(cls, value: str) -> str:
		note_to_midi(value)
		return value

	def to_query_params(self) -> Dict[str, str]:
		"""Encode the fields that differ from the defaults."""
		defaults = DrillConfig()
		params: Dict[str, str] = {}
		for name in type(self).model_fields:
			value = _serialize(name, getattr(self, name))
			if value != _serialize(name, getattr(defaults, name)):
				params[name] = value
		return params

	@classmethod
	def from_query_params(cls, params: Mapping[str, str]) -> "DrillConfig":
		"""Build a config from query parameters; absent or bad fields keep their defaults."""
		partial: Dict[str, Any] = {}
		for name in cls.model_fields:
			raw = params.get(name)
			if raw is None:
				continue
			try:
				partial[name] = _deserialize(name, raw)
			except ValueError as exc:
				logger.warning("Ignoring query parameter {}={!r}: {}", name, raw, exc)
		try:
			return cls(**partial)
		except ValidationError as exc:
			bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
			logger.warning("Ignoring invalid query parameters {}", sorted(bad))
			return cls(**{k: v for k, v in partial.items() if k not in bad})

	def same_as(self, other: "DrillConfig") -> bool:
		return all(
			_serialize(name, getattr(self, name)) == _serialize(name, getattr(other, name))
			for name in type(self).model_fields
		)


_LIST_FIELDS = {"selected_notes", "target_intervals"}
_PAIR_FIELDS = {"consecutive_intervals", "question_note_range", "interval_comparison_range"}
# Presentation-only fields left out of the settings-change summary
_OMIT_FROM_CHANGES = {"reference_type"}


def _serialize(name: str, value: Any) -> str:
	if name in _LIST_FIELDS:
		return ",".join(str(v) for v in sorted(value))
	if name in _PAIR_FIELDS:
		return f"{value[0]},{value[1]}"
	if isinstance(value, bool):
		return "true" if value else "false"
	return str(value)


def _deserialize(name: str, raw: str) -> Any:
	if name in _LIST_FIELDS:
		return tuple(int(p) for p in raw.split(","))
	if name in _PAIR_FIELDS:
		parts = [int(p) for p in raw.split(",")]
		if len(parts) != 2:
			raise ValueError("expected two comma-separated numbers")
		return parts[0], parts[1]
	default = DrillConfig.model_fields[name].default
	if isinstance(default, bool):
		if raw.lower() not in ("true", "false"):
			raise ValueError("expected true or false")
		return raw.lower() == "true"
	if isinstance(default, int):
		return int(raw)
	return raw


def settings_changes(current: Optional[DrillConfig], previous: Optional[DrillConfig]) -> List[str]:
	"""Human-readable list of fields that changed between two sessions."""
	if current is None or previous is None:
		return []
	changes = []
	for name in DrillConfig.model_fields:
		if name in _OMIT_FROM_CHANGES:
			continue
		old = _serialize(name, getattr(previous, name))
		new = _serialize(name, getattr(current, name))
		if old != new:
			changes.append(f"{name}: {old} -> {new}")
	return changes


class NoteQuestion(BaseModel):
	sequence: List[int]
	extra: List[int] = Field(default_factory=list)
	reasons: List[str] = Field(default_factory=list)


class ComparisonQuestion(BaseModel):
	sequence: List[int]
	intervals: List[int]
	target_index: int
	target_interval: int
	direction: Direction

	@property
	def signature(self) -> Tuple[str, Tuple[int, ...]]:
		return self.direction, tuple(self.intervals)


class AnswerResult(BaseModel):
	position: int
	expected: int
	chosen: int
	correct: bool
	severity_before: int = 0
	severity_after: int = 0
	complete: bool = False


class SequenceItem(BaseModel):
	offset: int
	duration: float
	gap_after: float


class SessionRecord(BaseModel):
	model_config = ConfigDict(frozen=True)

	session_date: datetime
	score: int
	total_attempts: int
	correct_attempts: int
	avg_secs_per_answer: float
	total_seconds: int
	needs_practice_count: int
	needs_practice_total_severity: int
	exercise_name: str
	settings: DrillConfig


class SavedConfig(BaseModel):
	id: str
	name: str
	settings: DrillConfig
	created_at: datetime

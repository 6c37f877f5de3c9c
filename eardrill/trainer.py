from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from loguru import logger

from .errors import ConfigurationError
from .models import INTERVAL_COMPARISON, SINGLE_NOTE_RECOGNITION, ComparisonQuestion, Direction, DrillConfig, NoteQuestion
from .randomness import RandomSource, choice
from .theory import OCTAVE, one_octave, semitones_to_solfege
from .tracking import WeightTable

NEEDS_PRACTICE = "needs-practice"
RANDOM = "random"

# Chance of trying the needs-practice table first; lower while it has few entries
BUSY_TABLE_PROBABILITY = 0.7
QUIET_TABLE_PROBABILITY = 0.4
QUIET_TABLE_SIZE = 2

MAX_REPEAT_ATTEMPTS = 20


def is_answer_correct(expected: int, chosen: int, period: int = OCTAVE) -> bool:
	return one_octave(expected, period) == one_octave(chosen, period)


def scored_length(config: DrillConfig) -> int:
	if config.exercise_type == SINGLE_NOTE_RECOGNITION:
		return 1
	if config.exercise_type == INTERVAL_COMPARISON:
		return 1
	return config.number_of_notes


def _solfege(notes: Sequence[int]) -> List[str]:
	return [semitones_to_solfege(n) for n in notes]


class SequenceGenerator:
	"""Builds note sequences, steering towards transitions that need practice."""

	def __init__(self, config: DrillConfig, pool: Sequence[int], weights: WeightTable, rng: RandomSource) -> None:
		if not pool:
			raise ConfigurationError("There are no notes that match both the selected notes and the note range")
		self.config = config
		self.pool = list(pool)
		self.weights = weights
		self.rng = rng
		self.last_opening: Optional[int] = None

	def next_question(self) -> NoteQuestion:
		sequence: List[int] = []
		reasons: List[str] = []
		for _ in range(self.config.number_of_notes):
			note, reason = self.pick_next(sequence)
			sequence.append(note)
			reasons.append(reason)
		extra = [choice(self.rng, self.pool) for _ in range(self.config.play_extra_notes)]
		self.last_opening = sequence[0]
		logger.info("Note sequence is {} due to {}", _solfege(sequence), ",".join(reasons))
		return NoteQuestion(sequence=sequence, extra=extra, reasons=reasons)

	def candidates(self, sequence: Sequence[int]) -> List[int]:
		pool = list(self.pool)
		if not sequence:
			# Avoid opening on the same note as the previous question
			if self.last_opening is not None and len(pool) > 1:
				pool = [n for n in pool if n != self.last_opening]
			return pool
		prev = sequence[-1]
		lo, hi = self.config.consecutive_intervals
		filtered = [n for n in pool if lo <= abs(n - prev) <= hi]
		if not filtered:
			logger.debug("No possible notes after {}, using the whole pool", semitones_to_solfege(prev))
			return pool
		return filtered

	def pick_next(self, sequence: Sequence[int]) -> Tuple[int, str]:
		pool = self.candidates(sequence)
		prev = sequence[-1] if sequence else None
		logger.debug("Next note pool after filtering: {}", pool)
		p = BUSY_TABLE_PROBABILITY if len(self.weights) > QUIET_TABLE_SIZE else QUIET_TABLE_PROBABILITY
		if self.rng.random() < p:
			practice = self.weights.sample_weighted(prev, pool, self.rng)
			if practice is not None:
				logger.debug("  picked from needs-practice: {}", semitones_to_solfege(practice))
				return practice, NEEDS_PRACTICE
		return choice(self.rng, pool), RANDOM


def comparison_intervals(config: DrillConfig) -> List[int]:
	lo, hi = config.interval_comparison_range
	return [
		i for i in range(lo, hi + 1)
		if i > 0 and (config.include_target_in_comparison or i not in config.target_intervals)
	]


class IntervalComparisonGenerator:
	"""Sequences where exactly one step is the target interval."""

	def __init__(self, config: DrillConfig, rng: RandomSource) -> None:
		if config.number_of_notes < 2:
			raise ConfigurationError("Interval comparison needs at least two notes")
		if not config.target_intervals:
			raise ConfigurationError("No target interval selected")
		self.others = comparison_intervals(config)
		if not self.others:
			raise ConfigurationError("No intervals to compare the target against")
		self.config = config
		self.rng = rng
		self.fixed_direction: Optional[Direction] = None
		if config.interval_direction != "random":
			self.fixed_direction = config.interval_direction
		self.last_signature: Optional[Tuple[str, Tuple[int, ...]]] = None

	def next_question(self) -> ComparisonQuestion:
		question = self._build()
		for _ in range(MAX_REPEAT_ATTEMPTS):
			if question.signature != self.last_signature:
				break
			question = self._build()
		self.last_signature = question.signature
		logger.info(
			"Comparison sequence {} {} with target {} at step {}",
			question.direction, question.intervals, question.target_interval, question.target_index,
		)
		return question

	def _build(self) -> ComparisonQuestion:
		length = self.config.number_of_notes
		direction = self.fixed_direction
		if direction is None:
			direction = "ascending" if self.rng.random() < 0.5 else "descending"
		target_index = 1 + self.rng.randrange(length - 1)
		target = choice(self.rng, self.config.target_intervals)
		step_sign = 1 if direction == "ascending" else -1
		current = 0 if direction == "ascending" else OCTAVE
		sequence = [current]
		intervals = []
		for i in range(1, length):
			size = target if i == target_index else choice(self.rng, self.others)
			intervals.append(size)
			current += step_sign * size
			sequence.append(current)
		return ComparisonQuestion(
			sequence=sequence,
			intervals=intervals,
			target_index=target_index,
			target_interval=target,
			direction=direction,
		)

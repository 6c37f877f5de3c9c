"""
Practice engine: one object owning everything a practice session mutates.

The caller asks for a question, reports each answer, and calls ``finish`` at
the end. Tables are written to the repository after every answer; a failed
write is logged and the in-memory tables stay authoritative.
"""
from __future__ import annotations

import time
from typing import Callable, List, Optional, Union

from loguru import logger

from .audio import note_duration, plan_playback, reference_items
from .errors import ConfigurationError
from .models import INTERVAL_COMPARISON, AnswerResult, ComparisonQuestion, DrillConfig, NoteQuestion, SequenceItem, SessionRecord
from .randomness import RandomSource, make_random
from .session import SessionAggregator
from .settings import EngineSettings, get_settings
from .storage import CONFUSED_PAIRS, WRONG_PAIRS, Repository, needs_practice_table
from .theory import build_pool, midi_to_note_name, note_to_midi, one_octave
from .tracking import ConfusionTable, PairKey, WeightTable, WrongPairTable
from .trainer import IntervalComparisonGenerator, SequenceGenerator, is_answer_correct, scored_length

Question = Union[NoteQuestion, ComparisonQuestion]

# Root is shifted by up to this many semitones each session
ROOT_SHIFT = 3


class PracticeEngine:
	def __init__(
		self,
		config: DrillConfig,
		weights: Optional[WeightTable] = None,
		confusion: Optional[ConfusionTable] = None,
		wrong_pairs: Optional[WrongPairTable] = None,
		repository: Optional[Repository] = None,
		rng: Optional[RandomSource] = None,
		clock: Optional[Callable[[], float]] = None,
		settings: Optional[EngineSettings] = None,
	) -> None:
		self.config = config
		self.settings = settings or get_settings()
		self.rng = rng or make_random()
		self.repository = repository
		self.weights = weights if weights is not None else WeightTable(cap=self.settings.needs_practice_cap)
		self.confusion = confusion if confusion is not None else ConfusionTable()
		self.wrong_pairs = wrong_pairs if wrong_pairs is not None else WrongPairTable()
		self.aggregator = SessionAggregator(
			self.weights,
			clock=clock or time.monotonic,
			stepped_away_seconds=self.settings.stepped_away_seconds,
		)

		self.pool: List[int] = []
		self.comparison: Optional[IntervalComparisonGenerator] = None
		self.generator: Optional[SequenceGenerator] = None
		if config.exercise_type == INTERVAL_COMPARISON:
			self.comparison = IntervalComparisonGenerator(config, self.rng)
		else:
			lo, hi = config.question_note_range
			self.pool = build_pool(config.selected_notes, lo, hi)
			if not self.pool:
				raise ConfigurationError(
					"There are no notes that match both the selected notes and the note range"
				)
			self.generator = SequenceGenerator(config, self.pool, self.weights, self.rng)

		# playback offsets are relative to this pitch
		self.root_midi = note_to_midi(config.root_note_pitch) + self.rng.randrange(2 * ROOT_SHIFT) - ROOT_SHIFT
		logger.debug("Session root is {}", midi_to_note_name(self.root_midi))
		self.question: Optional[Question] = None
		self.position = 0
		self.finished = False

	@classmethod
	def open(
		cls,
		config: DrillConfig,
		repository: Repository,
		rng: Optional[RandomSource] = None,
		clock: Optional[Callable[[], float]] = None,
		settings: Optional[EngineSettings] = None,
	) -> "PracticeEngine":
		"""Start a session with the tables stored in ``repository``."""
		settings = settings or get_settings()
		weights = WeightTable.from_rows(
			repository.load_table(needs_practice_table(config.exercise_type)),
			cap=settings.needs_practice_cap,
		)
		confusion = ConfusionTable.from_rows(repository.load_table(CONFUSED_PAIRS))
		wrong_pairs = WrongPairTable.from_rows(repository.load_table(WRONG_PAIRS))
		logger.info(
			"Opening {} session with {} needs-practice pairs",
			config.exercise_type, len(weights),
		)
		return cls(
			config,
			weights=weights,
			confusion=confusion,
			wrong_pairs=wrong_pairs,
			repository=repository,
			rng=rng,
			clock=clock,
			settings=settings,
		)

	@property
	def scored_length(self) -> int:
		return scored_length(self.config)

	@property
	def is_question_complete(self) -> bool:
		return self.question is not None and self.position >= self.scored_length

	def new_question(self) -> Question:
		if self.comparison is not None:
			self.question = self.comparison.next_question()
		else:
			assert self.generator is not None
			self.question = self.generator.next_question()
		self.position = 0
		# timed per question so long breaks can be dropped
		self.aggregator.on_question_started()
		return self.question

	def answer(self, chosen: int) -> Optional[AnswerResult]:
		"""Score a note pressed at the current position.

		Returns None when there is nothing left to score in this question.
		"""
		question = self.question
		if not isinstance(question, NoteQuestion) or self.is_question_complete:
			return None
		position = self.position
		expected = question.sequence[position]
		previous = question.sequence[position - 1] if position > 0 else None
		key = PairKey(previous, expected)
		correct = is_answer_correct(expected, chosen)
		before = self.weights.severity(key)

		self.aggregator.on_answer(correct)
		if correct:
			after = self.weights.record_success(key)
			self.position += 1
			if self.is_question_complete:
				self.aggregator.on_question_completed()
		else:
			self.wrong_pairs.record(key)
			self.confusion.record_confusion(expected, chosen)
			after = self.weights.record_failure(key, PairKey(previous, chosen))
		self.save_tables()
		return AnswerResult(
			position=position,
			expected=expected,
			chosen=chosen,
			correct=correct,
			severity_before=before,
			severity_after=after,
			complete=self.is_question_complete,
		)

	def choose_step(self, index: int) -> Optional[AnswerResult]:
		"""Score the user's pick of which note was reached by the target interval."""
		question = self.question
		if not isinstance(question, ComparisonQuestion) or self.is_question_complete:
			return None
		correct = index == question.target_index
		self.aggregator.on_answer(correct)
		if correct:
			self.position = 1
			self.aggregator.on_question_completed()
		return AnswerResult(
			position=0,
			expected=question.target_index,
			chosen=index,
			correct=correct,
			complete=self.is_question_complete,
		)

	def voiced_offset(self, chosen: int) -> int:
		"""Move ``chosen`` into the octave last heard for that pitch class."""
		result = chosen
		if not isinstance(self.question, NoteQuestion):
			return result
		for index, note in enumerate(self.question.sequence):
			if index > self.position:
				break
			if one_octave(note) == one_octave(chosen):
				result = note
		return result

	def playback_items(self) -> List[SequenceItem]:
		if self.question is None:
			return []
		offsets = list(self.question.sequence)
		if isinstance(self.question, NoteQuestion):
			offsets += self.question.extra
		return plan_playback(offsets, self.config, self.rng)

	def reference_items(self) -> List[SequenceItem]:
		return reference_items(self.config.reference_type, note_duration(self.config.tempo))

	def save_tables(self) -> None:
		if self.repository is None:
			return
		try:
			self.repository.save_table(needs_practice_table(self.config.exercise_type), self.weights.to_rows())
			self.repository.save_table(CONFUSED_PAIRS, self.confusion.to_rows())
			self.repository.save_table(WRONG_PAIRS, self.wrong_pairs.to_rows())
		except OSError as exc:
			logger.warning("Could not save practice tables: {}", exc)

	def finish(self) -> Optional[SessionRecord]:
		"""End the session, returning the record that was appended (if any).

		Only the first call records anything; later calls return None.
		"""
		if self.finished:
			return None
		self.finished = True
		record = self.aggregator.finalize(self.config.exercise_type, self.config)
		if self.repository is None:
			return record
		self.save_tables()
		try:
			self.repository.save_current_config(self.config)
			if record is not None:
				self.repository.append_session(record)
		except OSError as exc:
			logger.warning("Could not save the session: {}", exc)
		return record

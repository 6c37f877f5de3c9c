from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from loguru import logger

from .models import DrillConfig, SessionRecord
from .tracking import WeightTable

STEPPED_AWAY_SECONDS = 60.0


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class SessionAggregator:
	"""Running totals for one practice session.

	Question times longer than ``stepped_away_seconds`` are assumed to include
	a break and are left out of the time total and the per-answer average.
	"""

	def __init__(
		self,
		weights: WeightTable,
		clock: Callable[[], float] = time.monotonic,
		now: Callable[[], datetime] = _utcnow,
		stepped_away_seconds: float = STEPPED_AWAY_SECONDS,
	) -> None:
		self.weights = weights
		self.clock = clock
		self.now = now
		self.stepped_away_seconds = stepped_away_seconds
		self.correct_attempts = 0
		self.total_attempts = 0
		self.accumulated_seconds = 0
		self.questions_completed = 0
		self.timed_questions = 0
		self.question_started: Optional[float] = None

	def on_question_started(self) -> None:
		self.question_started = self.clock()

	def on_question_completed(self) -> None:
		self.questions_completed += 1
		if self.question_started is None:
			return
		elapsed = self.clock() - self.question_started
		self.question_started = None
		if elapsed > self.stepped_away_seconds:
			logger.info("Ignoring {:.0f}s spent on this question, user probably stepped away", elapsed)
			return
		self.accumulated_seconds += int(math.floor(elapsed))
		self.timed_questions += 1

	def on_answer(self, correct: bool) -> None:
		self.total_attempts += 1
		if correct:
			self.correct_attempts += 1

	@property
	def score(self) -> Optional[int]:
		if self.total_attempts == 0:
			return None
		# half up, not banker's rounding
		return int(math.floor(100.0 * self.correct_attempts / self.total_attempts + 0.5))

	@property
	def avg_secs_per_answer(self) -> float:
		if self.timed_questions == 0:
			return 0.0
		return self.accumulated_seconds / self.timed_questions

	def finalize(self, exercise_name: str, config: DrillConfig) -> Optional[SessionRecord]:
		score = self.score
		if self.questions_completed == 0 or score is None:
			logger.info("No completed questions, not recording the session")
			return None
		return SessionRecord(
			session_date=self.now(),
			score=score,
			total_attempts=self.total_attempts,
			correct_attempts=self.correct_attempts,
			avg_secs_per_answer=self.avg_secs_per_answer,
			total_seconds=self.accumulated_seconds,
			needs_practice_count=len(self.weights),
			needs_practice_total_severity=self.weights.total_severity(),
			exercise_name=exercise_name,
			settings=config,
		)

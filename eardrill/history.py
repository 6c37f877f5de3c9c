from __future__ import annotations

"""Data for the practice history view."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .models import ExerciseType, SessionRecord, settings_changes
from .settings import get_settings
from .storage import CONFUSED_PAIRS, WRONG_PAIRS, Repository, needs_practice_table
from .theory import semitones_to_solfege
from .tracking import ConfusionKey, ConfusionTable, PairKey, WeightTable, WrongPairTable

TOP_N = 10


def _pair_label(key: PairKey) -> str:
	start = "Start" if key.previous is None else semitones_to_solfege(key.previous)
	return f"{start} -> {semitones_to_solfege(key.current)}"


@dataclass
class HistorySummary:
	sessions: List[SessionRecord]
	confused: List[Tuple[ConfusionKey, int]] = field(default_factory=list)
	wrong: List[Tuple[PairKey, int]] = field(default_factory=list)
	needs_practice: List[Tuple[PairKey, int]] = field(default_factory=list)

	@classmethod
	def from_repository(cls, repo: Repository, exercise_type: Optional[ExerciseType] = None) -> "HistorySummary":
		sessions = repo.list_sessions()
		if exercise_type is None and sessions:
			exercise_type = sessions[-1].exercise_name  # type: ignore[assignment]
		confusion = ConfusionTable.from_rows(repo.load_table(CONFUSED_PAIRS))
		wrong = WrongPairTable.from_rows(repo.load_table(WRONG_PAIRS))
		cap = get_settings().needs_practice_cap
		needs = WeightTable(cap=cap)
		if exercise_type is not None:
			needs = WeightTable.from_rows(repo.load_table(needs_practice_table(exercise_type)), cap=cap)
		ranked = sorted(needs.items(), key=lambda kc: kc[1], reverse=True)
		return cls(
			sessions=sessions,
			confused=confusion.most_confused(TOP_N),
			wrong=wrong.top(TOP_N, min_count=2),
			needs_practice=ranked,
		)

	@property
	def recent(self) -> Optional[SessionRecord]:
		return self.sessions[-1] if self.sessions else None

	@property
	def exercise_names(self) -> List[str]:
		return sorted({s.exercise_name for s in self.sessions})

	def sessions_for(self, exercise_name: str) -> List[SessionRecord]:
		return [s for s in self.sessions if s.exercise_name == exercise_name]

	def changes_since_previous(self) -> List[str]:
		"""Settings changes between the two most recent sessions of the latest exercise."""
		recent = self.recent
		if recent is None:
			return []
		same = self.sessions_for(recent.exercise_name)
		if len(same) < 2:
			return []
		return settings_changes(same[-1].settings, same[-2].settings)

	def wrong_labels(self) -> List[Tuple[str, int]]:
		return [(_pair_label(k), c) for k, c in self.wrong]


def session_frame(records: Sequence[SessionRecord]) -> pd.DataFrame:
	columns = [
		"session_date", "exercise_name", "score", "correct_attempts", "total_attempts",
		"total_seconds", "avg_secs_per_answer", "needs_practice_count", "needs_practice_total_severity",
	]
	rows = [{c: getattr(r, c) for c in columns} for r in records]
	return pd.DataFrame(rows, columns=columns)


def exercise_summary(records: Sequence[SessionRecord]) -> pd.DataFrame:
	df = session_frame(records)
	if df.empty:
		return pd.DataFrame(columns=["exercise_name", "sessions", "mean_score", "total_seconds", "last_session"])
	grouped = df.groupby("exercise_name", sort=True)
	out = grouped.agg(
		sessions=("score", "size"),
		mean_score=("score", "mean"),
		total_seconds=("total_seconds", "sum"),
		last_session=("session_date", "max"),
	)
	return out.reset_index()


def confusion_frame(table: ConfusionTable) -> pd.DataFrame:
	# Long-form rows, one per confused pair
	data = []
	for key, count in table.most_confused(len(table)):
		data.append({
			"lo": key.lo,
			"hi": key.hi,
			"lo_name": semitones_to_solfege(key.lo),
			"hi_name": semitones_to_solfege(key.hi),
			"count": count,
		})
	return pd.DataFrame(data, columns=["lo", "hi", "lo_name", "hi_name", "count"])

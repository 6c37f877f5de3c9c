from datetime import datetime, timedelta, timezone

from eardrill.history import HistorySummary, confusion_frame, exercise_summary, session_frame
from eardrill.models import DrillConfig, SessionRecord
from eardrill.storage import MemoryRepository, needs_practice_table
from eardrill.tracking import ConfusionTable, PairKey

START = datetime(2024, 5, 1, tzinfo=timezone.utc)


def record(day, score, exercise="Melody recognition", **settings):
	return SessionRecord(
		session_date=START + timedelta(days=day),
		score=score,
		total_attempts=10,
		correct_attempts=score // 10,
		avg_secs_per_answer=3.0,
		total_seconds=30,
		needs_practice_count=1,
		needs_practice_total_severity=3,
		exercise_name=exercise,
		settings=DrillConfig(**settings),
	)


def test_summary_from_repository():
	repo = MemoryRepository()
	repo.append_session(record(0, 60, number_of_notes=3))
	repo.append_session(record(1, 80, exercise="Interval comparison", exercise_type="Interval comparison"))
	repo.append_session(record(2, 90, number_of_notes=4))
	repo.save_table("confused_pairs", [("4,5", 1), ("0,2", 4)])
	repo.save_table("wrong_pairs", [(",4", 1), ("0,4", 3)])
	repo.save_table(needs_practice_table("Melody recognition"), [(",0", 2), ("0,4", 7)])

	summary = HistorySummary.from_repository(repo)
	assert summary.recent.score == 90
	assert summary.exercise_names == ["Interval comparison", "Melody recognition"]
	assert [c for _, c in summary.confused] == [4, 1]
	assert summary.wrong == [(PairKey(0, 4), 3)]
	assert summary.wrong_labels() == [("Do -> Mi", 3)]
	assert summary.needs_practice == [(PairKey(0, 4), 7), (PairKey(None, 0), 2)]
	assert summary.changes_since_previous() == ["number_of_notes: 3 -> 4"]


def test_empty_history():
	summary = HistorySummary.from_repository(MemoryRepository())
	assert summary.recent is None
	assert summary.needs_practice == []
	assert summary.changes_since_previous() == []
	assert exercise_summary([]).empty


def test_frames():
	records = [record(0, 60), record(1, 80), record(2, 70, exercise="Interval comparison")]
	df = session_frame(records)
	assert list(df["score"]) == [60, 80, 70]
	summary = exercise_summary(records).set_index("exercise_name")
	assert summary.loc["Melody recognition", "sessions"] == 2
	assert summary.loc["Melody recognition", "mean_score"] == 70
	assert summary.loc["Interval comparison", "total_seconds"] == 30

	table = ConfusionTable()
	table.record_confusion(7, 5)
	frame = confusion_frame(table)
	assert frame.iloc[0].to_dict() == {"lo": 5, "hi": 7, "lo_name": "Fa", "hi_name": "Sol", "count": 1}

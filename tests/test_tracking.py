import random

import pytest

from eardrill.tracking import ConfusionKey, ConfusionTable, PairKey, WeightTable, WrongPairTable


class Scripted:
	"""Random source replaying fixed values."""

	def __init__(self, values):
		self.values = list(values)

	def random(self):
		return self.values.pop(0)

	def randrange(self, n):
		return int(self.values.pop(0) * n)


def test_pair_key_encoding():
	assert PairKey(None, 4).encode() == ",4"
	assert PairKey(-5, 7).encode() == "-5,7"
	assert PairKey.decode(",4") == PairKey(None, 4)
	assert PairKey.decode("-5,7") == PairKey(-5, 7)
	assert PairKey(None, 0) != PairKey(0, 0)
	with pytest.raises(ValueError):
		PairKey.decode("7")


def test_confusion_key_is_unordered():
	assert ConfusionKey.of(7, 2) == ConfusionKey.of(2, 7) == ConfusionKey(2, 7)
	assert ConfusionKey.decode("9,4").encode() == "4,9"


def test_failure_on_fresh_key_then_smaller_steps():
	table = WeightTable(cap=10)
	key = PairKey(None, 4)
	assert table.record_failure(key, PairKey(None, 5)) == 3
	assert table.record_failure(key, PairKey(None, 5)) == 4
	assert table.severity(PairKey(None, 5)) == 2


def test_failure_below_three_still_adds_three():
	table = WeightTable({PairKey(0, 2): 2}, cap=10)
	assert table.record_failure(PairKey(0, 2), PairKey(0, 3)) == 5


def test_failure_is_capped():
	table = WeightTable(cap=4)
	key = PairKey(0, 7)
	for _ in range(10):
		table.record_failure(key, PairKey(0, 5))
	assert table.severity(key) == 4
	assert table.severity(PairKey(0, 5)) == 4


def test_success_decrements_and_removes_at_zero():
	key = PairKey(2, 4)
	table = WeightTable({key: 2})
	assert table.record_success(key) == 1
	assert key in table
	assert table.record_success(key) == 0
	assert key not in table
	assert len(table) == 0
	# absent keys are left alone
	assert table.record_success(key) == 0
	assert len(table) == 0


def test_severity_stays_in_bounds_under_random_updates():
	rng = random.Random(11)
	table = WeightTable(cap=10)
	keys = [PairKey(p, c) for p in (None, 0, 4) for c in (0, 4, 7)]
	for _ in range(2000):
		key = rng.choice(keys)
		if rng.random() < 0.5:
			table.record_success(key)
		else:
			table.record_failure(key, rng.choice(keys))
		assert all(1 <= s <= 10 for _, s in table.items())


def test_sample_weighted_filters_previous_and_candidates():
	table = WeightTable({PairKey(None, 0): 5, PairKey(4, 7): 3, PairKey(4, 9): 2})
	rng = random.Random(0)
	assert table.sample_weighted(4, [0, 2], rng) is None
	assert table.sample_weighted(2, [7, 9], rng) is None
	for _ in range(50):
		assert table.sample_weighted(4, [7, 9], rng) in (7, 9)
		assert table.sample_weighted(4, [9], rng) == 9
		assert table.sample_weighted(None, [0, 7], rng) == 0


def test_sample_weighted_cumulative_draw():
	table = WeightTable({PairKey(0, 2): 1, PairKey(0, 4): 9})
	# r = 0.05 * 10 = 0.5 falls in the first bucket, 0.2 * 10 = 2 in the second
	assert table.sample_weighted(0, [2, 4], Scripted([0.05])) == 2
	assert table.sample_weighted(0, [2, 4], Scripted([0.2])) == 4
	assert table.sample_weighted(0, [2, 4], Scripted([0.999])) == 4


def test_sample_weighted_falls_back_to_last_candidate():
	table = WeightTable({PairKey(0, 2): 1, PairKey(0, 4): 1})
	# an out-of-range draw exhausts every bucket
	assert table.sample_weighted(0, [2, 4], Scripted([1.0])) == 4


def test_sample_weighted_is_proportional_to_severity():
	table = WeightTable({PairKey(None, 2): 1, PairKey(None, 4): 9})
	rng = random.Random(1234)
	draws = [table.sample_weighted(None, [2, 4], rng) for _ in range(5000)]
	share = draws.count(4) / len(draws)
	assert 0.87 < share < 0.93


def test_confusion_is_recorded_on_one_entry_either_way():
	table = ConfusionTable()
	table.record_confusion(4, 5)
	table.record_confusion(5, 4)
	assert table.get(ConfusionKey(4, 5)) == 2
	assert len(table) == 1
	assert table.most_confused(1) == [(ConfusionKey(4, 5), 2)]


def test_wrong_pairs_top_skips_single_mistakes():
	table = WrongPairTable()
	for _ in range(3):
		table.record(PairKey(0, 4))
	table.record(PairKey(0, 7))
	assert table.top() == [(PairKey(0, 4), 3)]


def test_rows_round_trip():
	table = WeightTable({PairKey(None, 0): 3, PairKey(7, 4): 1})
	assert sorted(table.to_rows()) == [(",0", 3), ("7,4", 1)]
	loaded = WeightTable.from_rows([list(r) for r in table.to_rows()])
	assert loaded.items() == table.items()


def test_from_rows_is_lenient():
	assert len(WeightTable.from_rows(None)) == 0
	assert len(WeightTable.from_rows("not a list")) == 0
	loaded = WeightTable.from_rows([["0,4", 2], ["bad", 1], ["1,2"], [",5", 0], ["x,5", 3], [",7", 40], 7], cap=10)
	assert loaded.items() == [(PairKey(0, 4), 2), (PairKey(None, 7), 10)]
	confusion = ConfusionTable.from_rows([["5,4", 2], ["4,5", 1]])
	assert confusion.items() == [(ConfusionKey(4, 5), 3)]

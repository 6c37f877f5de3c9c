import random

from eardrill.audio import note_duration, plan_playback, reference_items
from eardrill.models import DrillConfig


def test_note_duration():
	assert note_duration(60) == 1.0
	assert note_duration(240) == 0.25


def test_fixed_rhythm_uses_one_beat_per_note():
	config = DrillConfig(tempo=120, rhythm="fixed")
	items = plan_playback([0, 4, 7], config, random.Random(1))
	assert [i.offset for i in items] == [0, 4, 7]
	assert all(i.duration == 0.5 for i in items)
	assert all(abs(i.gap_after - 0.075) < 1e-9 for i in items)


def test_random_rhythm_picks_from_beat_multiples():
	config = DrillConfig(tempo=60, rhythm="random")
	items = plan_playback(list(range(50)), config, random.Random(2))
	assert {i.duration for i in items} <= {1.0, 1.5, 2.0}


def test_reference_items():
	assert [i.offset for i in reference_items("arpeggio", 0.3)] == [0, 4, 7, 12, 7, 4, 0]
	root = reference_items("root", 0.3)
	assert len(root) == 1 and root[0].duration == 2.0

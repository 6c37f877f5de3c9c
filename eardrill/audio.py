"""Playback plans handed to whatever produces the sound."""
from typing import List, Sequence

from .models import DrillConfig, SequenceItem
from .randomness import RandomSource, choice

GAP_FRACTION = 0.15
RHYTHM_FACTORS = (1.0, 1.5, 2.0)
ARPEGGIO = (0, 4, 7, 12, 7, 4, 0)


def note_duration(tempo: int) -> float:
	"""Seconds per beat at ``tempo`` BPM."""
	return 60.0 / tempo


def plan_playback(offsets: Sequence[int], config: DrillConfig, rng: RandomSource) -> List[SequenceItem]:
	"""Durations and gaps for each note; random rhythm mixes 1, 1.5 and 2 beat notes."""
	beat = note_duration(config.tempo)
	gap = beat * GAP_FRACTION
	items = []
	for offset in offsets:
		factor = 1.0 if config.rhythm == "fixed" else choice(rng, RHYTHM_FACTORS)
		items.append(SequenceItem(offset=offset, duration=beat * factor, gap_after=gap))
	return items


def reference_items(kind: str, beat: float) -> List[SequenceItem]:
	if kind == "arpeggio":
		return [SequenceItem(offset=o, duration=beat, gap_after=0.03) for o in ARPEGGIO]
	return [SequenceItem(offset=0, duration=2.0, gap_after=0.0)]

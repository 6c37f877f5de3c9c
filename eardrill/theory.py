from __future__ import annotations

import re
from typing import Iterable, List

OCTAVE = 12

SEMITONES = {
	"P1": 0,
	"m2": 1,
	"M2": 2,
	"m3": 3,
	"M3": 4,
	"P4": 5,
	"TT": 6,
	"P5": 7,
	"m6": 8,
	"M6": 9,
	"m7": 10,
	"M7": 11,
	"P8": 12,
}

INTERVAL_NAMES = {v: k for k, v in SEMITONES.items()}

# Movable do, sharps for the chromatic steps
SOLFEGE = ["Do", "Di", "Re", "Ri", "Mi", "Fa", "Fi", "Sol", "Si", "La", "Li", "Ti"]

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
_FLATS = {"Db": "C#", "Eb": "D#", "Gb": "F#", "Ab": "G#", "Bb": "A#"}
_NOTE_RE = re.compile(r"^([A-G](?:#|b)?)(-?\d+)$")


def note_to_midi(note: str) -> int:
	"""Convert a scientific pitch name such as "C4" or "Eb3" to a MIDI number."""
	match = _NOTE_RE.match(note.strip())
	if match is None:
		raise ValueError(f"Not a note name: {note!r}")
	name, octave = match.group(1), int(match.group(2))
	name = _FLATS.get(name, name)
	return (octave + 1) * 12 + NOTE_NAMES.index(name)


def midi_to_note_name(m: int) -> str:
	return f"{NOTE_NAMES[m % 12]}{m // 12 - 1}"


def one_octave(offset: int, period: int = OCTAVE) -> int:
	return offset % period


def semitones_to_solfege(offset: int) -> str:
	octaves, pc = divmod(offset, OCTAVE)
	mark = "'" * octaves if octaves > 0 else "," * -octaves
	return SOLFEGE[pc] + mark


def semitones_to_interval(semitones: int) -> str:
	d = abs(semitones)
	if d in INTERVAL_NAMES:
		return INTERVAL_NAMES[d]
	octaves, rest = divmod(d, OCTAVE)
	prefix = "P8" if octaves == 1 else f"{octaves}xP8"
	return prefix if rest == 0 else f"{prefix}+{INTERVAL_NAMES[rest]}"


def build_pool(base: Iterable[int], low: int, high: int, period: int = OCTAVE) -> List[int]:
	"""Expand each base element across [low, high] in steps of ``period``.

	Returns a sorted, duplicate-free list. An empty base or an inverted range
	gives an empty list; callers decide whether that is fatal.
	"""
	if period <= 0:
		raise ValueError("period must be positive")
	found = set()
	for element in base:
		current = element
		while current - period >= low:
			current -= period
		while current <= high:
			if current >= low:
				found.add(current)
			current += period
	return sorted(found)

from __future__ import annotations

"""Per-transition practice statistics: needs-practice weights, confusions and wrong answers."""

from dataclasses import dataclass
from typing import Any, Callable, Collection, Dict, Generic, Iterator, List, Mapping, Optional, Tuple, TypeVar

from loguru import logger

from .randomness import RandomSource

DEFAULT_CAP = 10

K = TypeVar("K")


@dataclass(frozen=True)
class PairKey:
	"""A (previous, current) transition; previous is None at the start of a sequence."""

	previous: Optional[int]
	current: int

	def encode(self) -> str:
		prev = "" if self.previous is None else str(self.previous)
		return f"{prev},{self.current}"

	@classmethod
	def decode(cls, text: str) -> "PairKey":
		prev, sep, cur = text.partition(",")
		if not sep:
			raise ValueError(f"Not a pair key: {text!r}")
		return cls(None if prev == "" else int(prev), int(cur))


@dataclass(frozen=True)
class ConfusionKey:
	lo: int
	hi: int

	@classmethod
	def of(cls, a: int, b: int) -> "ConfusionKey":
		return cls(min(a, b), max(a, b))

	def encode(self) -> str:
		return f"{self.lo},{self.hi}"

	@classmethod
	def decode(cls, text: str) -> "ConfusionKey":
		a, sep, b = text.partition(",")
		if not sep:
			raise ValueError(f"Not a confusion key: {text!r}")
		return cls.of(int(a), int(b))


def _parse_rows(obj: Any, decode: Callable[[str], K]) -> Iterator[Tuple[K, int]]:
	if not isinstance(obj, list):
		return
	for row in obj:
		try:
			text, count = row
			if not isinstance(text, str) or isinstance(count, bool) or not isinstance(count, int):
				raise ValueError("expected [str, int]")
			key = decode(text)
		except (TypeError, ValueError) as exc:
			logger.debug("Skipping stored row {!r}: {}", row, exc)
			continue
		if count > 0:
			yield key, count


class _CountTable(Generic[K]):
	def __init__(self, entries: Optional[Mapping[K, int]] = None) -> None:
		self._counts: Dict[K, int] = {}
		for key, count in (entries or {}).items():
			if count > 0:
				self._counts[key] = count

	def __len__(self) -> int:
		return len(self._counts)

	def __contains__(self, key: object) -> bool:
		return key in self._counts

	def get(self, key: K) -> int:
		return self._counts.get(key, 0)

	def items(self) -> List[Tuple[K, int]]:
		return list(self._counts.items())

	def total(self) -> int:
		return sum(self._counts.values())

	def clear(self) -> None:
		self._counts.clear()

	def to_rows(self) -> List[Tuple[str, int]]:
		return [(key.encode(), count) for key, count in self._counts.items()]  # type: ignore[attr-defined]

	def _increment(self, key: K, cap: Optional[int] = None) -> int:
		count = self._counts.get(key, 0) + 1
		if cap is not None:
			count = min(cap, count)
		self._counts[key] = count
		return count

	def _top(self, limit: int, min_count: int) -> List[Tuple[K, int]]:
		ranked = [(k, c) for k, c in self._counts.items() if c >= min_count]
		ranked.sort(key=lambda kc: kc[1], reverse=True)
		return ranked[:limit]


class WeightTable(_CountTable[PairKey]):
	"""Needs-practice severities per transition, each kept in [1, cap]."""

	def __init__(self, entries: Optional[Mapping[PairKey, int]] = None, cap: int = DEFAULT_CAP) -> None:
		if cap < 1:
			raise ValueError("cap must be at least 1")
		self.cap = cap
		super().__init__({k: min(cap, v) for k, v in (entries or {}).items()})

	@classmethod
	def from_rows(cls, obj: Any, cap: int = DEFAULT_CAP) -> "WeightTable":
		return cls(dict(_parse_rows(obj, PairKey.decode)), cap=cap)

	def severity(self, key: PairKey) -> int:
		return self.get(key)

	def total_severity(self) -> int:
		return self.total()

	def record_success(self, key: PairKey) -> int:
		s = self._counts.get(key, 0)
		if s <= 0:
			return 0
		s -= 1
		if s == 0:
			del self._counts[key]
		else:
			self._counts[key] = s
		logger.debug("Needs practice for {} decreased to {}", key.encode(), s)
		return s

	def record_failure(self, key: PairKey, incorrect_key: PairKey) -> int:
		s = self._counts.get(key, 0)
		new = min(self.cap, s + (3 if s < 3 else 1))
		self._counts[key] = new
		logger.debug("Needs practice for {} increased from {} to {}", key.encode(), s, new)
		# The pairing the user actually chose is escalated too, and nothing ever
		# decrements it except a later correct answer that happens to expect it.
		wrong = self._increment(incorrect_key, self.cap)
		logger.debug("Needs practice for {} increased to {}", incorrect_key.encode(), wrong)
		return new

	def sample_weighted(self, previous: Optional[int], candidates: Collection[int], rng: RandomSource) -> Optional[int]:
		"""Pick a candidate following ``previous``, proportionally to its severity."""
		valid = [(k.current, s) for k, s in self._counts.items() if k.previous == previous and k.current in candidates]
		if not valid:
			return None
		total = sum(s for _, s in valid)
		r = rng.random() * total
		running = 0.0
		for element, s in valid:
			running += s
			if running > r:
				return element
		return valid[-1][0]


class ConfusionTable(_CountTable[ConfusionKey]):
	"""How often two elements were mistaken for one another, in either direction."""

	@classmethod
	def from_rows(cls, obj: Any) -> "ConfusionTable":
		table = cls()
		for key, count in _parse_rows(obj, ConfusionKey.decode):
			table._counts[key] = table._counts.get(key, 0) + count
		return table

	def record_confusion(self, a: int, b: int) -> int:
		return self._increment(ConfusionKey.of(a, b))

	def most_confused(self, limit: int = 10) -> List[Tuple[ConfusionKey, int]]:
		return self._top(limit, 1)


class WrongPairTable(_CountTable[PairKey]):
	"""Transitions answered wrongly, counted per expected (previous, current) pair."""

	@classmethod
	def from_rows(cls, obj: Any) -> "WrongPairTable":
		return cls(dict(_parse_rows(obj, PairKey.decode)))

	def record(self, key: PairKey) -> int:
		return self._increment(key)

	def top(self, limit: int = 10, min_count: int = 2) -> List[Tuple[PairKey, int]]:
		return self._top(limit, min_count)

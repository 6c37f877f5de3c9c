from __future__ import annotations

"""Injectable random sources for question generation and weighted sampling."""

from typing import Optional, Protocol, Sequence, TypeVar

import numpy as np

from .settings import get_settings

T = TypeVar("T")


class RandomSource(Protocol):
	def random(self) -> float: ...

	def randrange(self, n: int) -> int: ...


class NumpyRandom:
	"""RandomSource backed by a numpy Generator."""

	def __init__(self, seed: Optional[int] = None) -> None:
		self._rng = np.random.default_rng(seed)

	def random(self) -> float:
		return float(self._rng.random())

	def randrange(self, n: int) -> int:
		if n <= 0:
			raise ValueError("randrange() needs a positive bound")
		return int(self._rng.integers(n))


def make_random(seed: Optional[int] = None) -> RandomSource:
	"""Seed explicitly, else from EARDRILL_SEED, else from OS entropy."""
	if seed is None:
		seed = get_settings().seed
	return NumpyRandom(seed)


def choice(rng: RandomSource, items: Sequence[T]) -> T:
	if not items:
		raise IndexError("cannot choose from an empty sequence")
	return items[rng.randrange(len(items))]

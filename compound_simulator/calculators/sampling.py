"""Seeded random numbers for the Monte Carlo engine.

Two small pieces, kept separate so either can be swapped:

* :class:`Mulberry32` - a 32-bit seeded generator producing uniform doubles in
  ``[0, 1)``.  Its state advances by a fixed increment per draw, so a block of
  ``n`` draws is computed in one vectorised pass and is identical to ``n``
  single draws.
* :class:`BoxMullerSampler` - turns any uniform source into standard normal
  variates, consuming two uniforms per variate in order.

Anything with a ``random(size)`` method returning uniforms works as a source,
including ``numpy.random.Generator``.

Example
-------

>>> a, b = Mulberry32(42), Mulberry32(42)
>>> [a.random() for _ in range(3)] == list(b.random(3))
True
"""

from __future__ import annotations

from typing import Optional, Protocol, Union

import numpy as np

_MASK = np.uint64(0xFFFFFFFF)
_INCREMENT = 0x6D2B79F5
_TWO_32 = 4294967296.0
# guards log(0) when a uniform draw is exactly zero
_MIN_UNIFORM = 1e-10


class UniformSource(Protocol):
    def random(self, size=None): ...


class Mulberry32:
    """Mulberry32 generator: tiny state, good enough statistics for simulation."""

    def __init__(self, seed: int = 42):
        self._state = int(seed) & 0xFFFFFFFF

    @property
    def state(self) -> int:
        return self._state

    def random(self, size: Optional[int] = None) -> Union[float, np.ndarray]:
        if size is None:
            return float(self.random(1)[0])
        n = int(size)
        steps = np.arange(1, n + 1, dtype=np.uint64)
        s = (np.uint64(self._state) + steps * np.uint64(_INCREMENT)) & _MASK
        self._state = (self._state + n * _INCREMENT) & 0xFFFFFFFF

        # all products stay below 2**64 because both factors are < 2**32
        t = ((s ^ (s >> np.uint64(15))) * (s | np.uint64(1))) & _MASK
        mixed = ((t ^ (t >> np.uint64(7))) * (t | np.uint64(61))) & _MASK
        t = ((t + mixed) & _MASK) ^ t
        t = (t ^ (t >> np.uint64(14))) & _MASK
        return t.astype(np.float64) / _TWO_32


class BoxMullerSampler:
    """Standard normal variates from a uniform source (Box-Muller, cosine branch)."""

    def __init__(self, source: UniformSource):
        self.source = source

    def standard_normal(self, size: int) -> np.ndarray:
        u = np.asarray(self.source.random(2 * size), dtype=np.float64).reshape(size, 2)
        u1 = np.where(u[:, 0] == 0.0, _MIN_UNIFORM, u[:, 0])
        return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u[:, 1])

    def next(self) -> float:
        return float(self.standard_normal(1)[0])


__all__ = ["UniformSource", "Mulberry32", "BoxMullerSampler"]

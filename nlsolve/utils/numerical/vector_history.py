"""
Fixed-capacity history of solution vectors.

Backed by a preallocated ``(capacity, dim)`` array used as a ring buffer.
Logical index 0 is always the oldest stored vector; pushing into a full
history evicts it without moving the surviving rows.
"""

from __future__ import annotations

import numbers
from typing import TYPE_CHECKING

import numpy as np

from nlsolve.utils.exceptions import validate_array_dimensions, validate_parameter_value

if TYPE_CHECKING:
    from numpy.typing import NDArray


class VectorHistory:
    """
    Ordered window of the most recent vectors.

    Args:
        capacity: Maximum number of stored vectors (at least 2)
        dim: Vector length; inferred from the first push when omitted
        dtype: Initial buffer dtype, promoted when a complex vector arrives
    """

    def __init__(self, capacity: int, dim: int | None = None, dtype=np.float64):
        validate_parameter_value(
            capacity, "num_last_vectors_used", numbers.Integral, (2, float("inf")), solver_name="VectorHistory"
        )
        self.capacity = int(capacity)
        self._dtype = np.dtype(dtype)
        self._buffer: NDArray | None = None
        self._start = 0
        self._size = 0
        if dim is not None:
            self._allocate(dim)

    def _allocate(self, dim: int) -> None:
        self._buffer = np.zeros((self.capacity, dim), dtype=self._dtype)

    @property
    def dim(self) -> int | None:
        return None if self._buffer is None else self._buffer.shape[1]

    def push(self, vector: NDArray) -> None:
        """Append a copy of ``vector``, evicting the oldest entry when full."""
        v = np.asarray(vector).ravel()
        if self._buffer is None:
            self._dtype = np.result_type(self._dtype, v.dtype)
            self._allocate(v.shape[0])
        else:
            validate_array_dimensions(v, (self._buffer.shape[1],), "vector", solver_name="VectorHistory")

        promoted = np.result_type(self._buffer.dtype, v.dtype)
        if promoted != self._buffer.dtype:
            self._buffer = self._buffer.astype(promoted)
            self._dtype = promoted

        if self._size < self.capacity:
            slot = (self._start + self._size) % self.capacity
            self._size += 1
        else:
            slot = self._start
            self._start = (self._start + 1) % self.capacity
        self._buffer[slot] = v

    def is_full(self) -> bool:
        return self._size == self.capacity

    def entry(self, index: int) -> NDArray:
        """Return a view of the vector at logical position ``index`` (0 = oldest)."""
        if not 0 <= index < self._size:
            raise IndexError(f"history index {index} out of range for {self._size} stored vectors")
        return self._buffer[(self._start + index) % self.capacity]

    def __getitem__(self, index: int) -> NDArray:
        if index < 0:
            index += self._size
        return self.entry(index)

    def __len__(self) -> int:
        return self._size

    def as_array(self) -> NDArray:
        """Stored vectors stacked oldest first, shape ``(len(self), dim)``."""
        if self._buffer is None or self._size == 0:
            return np.empty((0, self.dim or 0), dtype=self._dtype)
        order = (self._start + np.arange(self._size)) % self.capacity
        return self._buffer[order]

    def clear(self) -> None:
        """Forget all stored vectors, keeping the allocation."""
        self._start = 0
        self._size = 0

    def __repr__(self) -> str:
        return f"VectorHistory(capacity={self.capacity}, size={self._size}, dim={self.dim})"

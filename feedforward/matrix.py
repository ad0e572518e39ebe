"""
Dense Matrix
============

A small 2-D matrix type backed by a NumPy float64 array.

Every vector in the library is a column vector, i.e. a matrix with a single
column. Operations never resize a matrix implicitly: shape mismatches raise
DimensionMismatchError with both shapes in the message.

Elementwise operations (sum, subtract, hadamard, scale, map) come in two
flavours:
- default: return a new Matrix
- in_place=True: write the result into this matrix's buffer and return self

The in-place flavour is what gradient accumulation and optimizer updates use,
so that a training loop does not allocate a new buffer per operation.
"""

import numpy as np

from .exceptions import DimensionMismatchError


class Matrix:
    """
    M x N dense matrix of floats.

    Args:
        values: 2-D array-like. Copied into a float64 buffer.

    Example:
        >>> a = Matrix.from_arrays([[1, 2], [3, 4]])
        >>> a.multiply(Matrix.from_list([1, 1])).to_arrays()
        [[3.0], [7.0]]
    """

    def __init__(self, values):
        values = np.array(values, dtype=np.float64)
        if values.ndim != 2:
            raise DimensionMismatchError(
                f"Matrix needs 2-D values, got {values.ndim}-D array")
        self.values = values

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def _wrap(cls, values):
        """Wrap an existing float64 array without copying it."""
        matrix = cls.__new__(cls)
        matrix.values = values
        return matrix

    @classmethod
    def from_arrays(cls, items):
        """Build a matrix from a list of rows."""
        return cls(items)

    @classmethod
    def from_list(cls, items, vertical=True):
        """
        Build a vector from a flat list.

        Args:
            items: Flat sequence of numbers
            vertical: Column vector (default) or row vector
        """
        flat = np.array(items, dtype=np.float64).reshape(-1)
        if vertical:
            return cls._wrap(flat.reshape(-1, 1))
        return cls._wrap(flat.reshape(1, -1))

    @classmethod
    def zeros(cls, rows, cols):
        return cls._wrap(np.zeros((rows, cols), dtype=np.float64))

    @classmethod
    def zeros_like(cls, other):
        """All-zero matrix with the same shape as `other` (identity under sum)."""
        return cls.zeros(other.rows, other.cols)

    # ------------------------------------------------------------------
    # Shape and element access
    # ------------------------------------------------------------------

    @property
    def rows(self):
        return self.values.shape[0]

    @property
    def cols(self):
        return self.values.shape[1]

    @property
    def shape(self):
        return self.values.shape

    def get(self, i, j):
        return float(self.values[i, j])

    def set(self, i, j, value):
        self.values[i, j] = value

    def copy(self):
        return Matrix._wrap(self.values.copy())

    def to_arrays(self):
        """Return the matrix as a plain list of rows. Use for logging/debugging."""
        return self.values.tolist()

    def _format_shape(self):
        return f"{self.rows}x{self.cols}"

    def _check_same_shape(self, matrix):
        if self.shape != matrix.shape:
            raise DimensionMismatchError(
                f"Dimension mismatch. Got {self._format_shape()} and {matrix._format_shape()}")

    # ------------------------------------------------------------------
    # Linear algebra
    # ------------------------------------------------------------------

    def multiply(self, matrix):
        """
        Matrix product self @ matrix.

        Requires self.cols == matrix.rows. Result shape is self.rows x matrix.cols.
        """
        if self.cols != matrix.rows:
            raise DimensionMismatchError(
                f"Dimension mismatch. Got {self._format_shape()} and {matrix._format_shape()}")
        return Matrix._wrap(self.values @ matrix.values)

    def transpose(self):
        return Matrix._wrap(self.values.T.copy())

    def omit(self, col):
        """
        Return a copy without column `col`.

        Layers use omit(0) to drop the bias column before transposing the
        weights for the previous layer's backward pass.
        """
        if not 0 <= col < self.cols:
            raise DimensionMismatchError(
                f"Cannot omit column {col} from a {self._format_shape()} matrix")
        return Matrix._wrap(np.delete(self.values, col, axis=1))

    # ------------------------------------------------------------------
    # Elementwise operations
    # ------------------------------------------------------------------

    def _elementwise(self, ufunc, matrix, in_place):
        self._check_same_shape(matrix)
        if in_place:
            ufunc(self.values, matrix.values, out=self.values)
            return self
        return Matrix._wrap(ufunc(self.values, matrix.values))

    def sum(self, matrix, in_place=False):
        return self._elementwise(np.add, matrix, in_place)

    def subtract(self, matrix, in_place=False):
        return self._elementwise(np.subtract, matrix, in_place)

    def hadamard(self, matrix, in_place=False):
        """Elementwise (Hadamard) product."""
        return self._elementwise(np.multiply, matrix, in_place)

    def scale(self, value, in_place=False):
        if in_place:
            np.multiply(self.values, value, out=self.values)
            return self
        return Matrix._wrap(self.values * value)

    def map(self, mapper, in_place=False):
        """
        Apply mapper(value, row, col) to every element.

        This is a plain Python loop. Vectorised code paths (activations,
        optimizers) work on `values` directly instead.
        """
        result = self.values if in_place else np.empty_like(self.values)
        for i in range(self.rows):
            for j in range(self.cols):
                result[i, j] = mapper(float(self.values[i, j]), i, j)
        return self if in_place else Matrix._wrap(result)

    # ------------------------------------------------------------------
    # Column vectors
    # ------------------------------------------------------------------

    def unshift(self, value):
        """
        Prepend `value` to a column vector, growing it by one row.

        Used to append the constant bias input (1.0) to activations.
        """
        if self.cols != 1:
            raise DimensionMismatchError(
                f"Can only unshift column vectors, got {self._format_shape()}")
        return Matrix._wrap(np.vstack(([[value]], self.values)))

    def iterate(self):
        """Yield (index, value) pairs of a column vector. Read-only."""
        if self.cols != 1:
            raise DimensionMismatchError(
                f"Can only iterate column vectors, got {self._format_shape()}")
        for i in range(self.rows):
            yield i, float(self.values[i, 0])

    def argmax(self):
        """Index of the largest element of a column vector (first one on ties)."""
        return int(np.argmax(self.values[:, 0]))

    def __repr__(self):
        return f"Matrix({self._format_shape()})"

"""
Fixed 2x2 operators and small helpers for 2x2 complex matrices.

Matrices are row-major ``[[m00, m01], [m10, m11]]``; any sequence of four
complex numbers in that order is accepted wherever a matrix is expected.
"""

import numpy as np
from scipy import linalg


IDENTITY = np.array([[1, 0], [0, 1]], dtype=np.complex128)

PAULI_X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
PAULI_Z = np.array([[1, 0], [0, -1]], dtype=np.complex128)

HADAMARD = np.array([[1, 1], [1, -1]], dtype=np.complex128) / np.sqrt(2)

# Square root of X. Acting on the |01>, |10> pair it gives the square root of swap.
SQRT_X = np.array([
    [0.5 + 0.5j, 0.5 - 0.5j],
    [0.5 - 0.5j, 0.5 + 0.5j],
], dtype=np.complex128)

# Inverse of SQRT_X
ISQRT_X = np.array([
    [0.5 - 0.5j, 0.5 + 0.5j],
    [0.5 + 0.5j, 0.5 - 0.5j],
], dtype=np.complex128)


def as_matrix(mtrx) -> np.ndarray:
    """
    Coerce four row-major complex numbers or a 2x2 array to a 2x2 complex array.

    Raises:
        ValueError: If ``mtrx`` does not hold exactly four entries
    """
    arr = np.asarray(mtrx, dtype=np.complex128)
    if arr.size != 4:
        raise ValueError(f"Expected a 2x2 matrix (4 entries), got shape {arr.shape}")
    return arr.reshape(2, 2)


def mul2x2(left, right) -> np.ndarray:
    """Matrix product ``left @ right``."""
    return as_matrix(left) @ as_matrix(right)


def adjoint2x2(mtrx) -> np.ndarray:
    """Conjugate transpose."""
    return as_matrix(mtrx).conj().T


def exp2x2(mtrx) -> np.ndarray:
    """Matrix exponential."""
    return linalg.expm(as_matrix(mtrx))


def log2x2(mtrx) -> np.ndarray:
    """Principal matrix logarithm."""
    return linalg.logm(as_matrix(mtrx))


def is_unitary2x2(mtrx, atol: float = 1e-10) -> bool:
    """True if ``mtrx @ mtrx^dagger`` is the identity within ``atol``."""
    m = as_matrix(mtrx)
    return bool(np.allclose(m @ m.conj().T, IDENTITY, atol=atol))

"""
Bit powers, masks and reduced-index enumeration.

An operation touching k of n qubits runs over the 2^(n-k) "reduced" indices
that have those k bit positions removed. ``push_apart_bits`` maps a reduced
index back to a full permutation index with zeros in the removed positions,
so the fixed bits of each operation can then be OR-ed in. This keeps the work
per pass proportional to the number of amplitudes, for any (non-contiguous)
choice of qubits.

All helpers accept Python ints; ``push_apart_bits`` and ``expand_pattern``
also accept numpy int64 arrays and operate elementwise.
"""

from typing import Iterable, List
import numpy as np


def bit_power(qubit: int) -> int:
    """``1 << qubit``: the mask isolating one qubit."""
    return 1 << qubit


def bit_powers(qubits: Iterable[int]) -> List[int]:
    """Bit powers of ``qubits`` in the given order."""
    return [1 << q for q in qubits]


def sorted_powers(qubits: Iterable[int]) -> List[int]:
    """Bit powers of ``qubits`` sorted ascending."""
    return sorted(bit_powers(qubits))


def mask_of(qubits: Iterable[int]) -> int:
    """Union of the bit powers of ``qubits``."""
    mask = 0
    for q in qubits:
        mask |= 1 << q
    return mask


def popcount(mask: int) -> int:
    """Number of set bits in ``mask``."""
    return bin(mask).count("1")


def mask_powers(mask: int) -> List[int]:
    """Ascending bit powers set in ``mask``."""
    powers = []
    v = mask
    while v:
        low = v & -v
        powers.append(low)
        v ^= low
    return powers


def skip_powers(mask: int) -> List[int]:
    """
    Ascending powers of the bits *unset* in ``mask`` below its highest set bit.

    Pushing an enumeration index apart at these powers deposits its bits,
    lowest first, onto the set bits of ``mask``.
    """
    powers = []
    power = 1
    while power < mask:
        if not mask & power:
            powers.append(power)
        power <<= 1
    return powers


def push_apart_bits(index, powers_sorted: List[int]):
    """
    Open a zero gap in ``index`` at every power in ``powers_sorted``.

    For each power (ascending) the running index is split into the bits below
    the power and the bits at or above it; the high part is shifted left by
    one. The result has a 0 at each listed position and the original bits, in
    order, everywhere else.

    Args:
        index: Reduced index (int or int64 array)
        powers_sorted: Bit powers sorted ascending

    Returns:
        Full permutation index (same type as ``index``)
    """
    for power in powers_sorted:
        low = index & (power - 1)
        index = ((index ^ low) << 1) | low
    return index


def expand_pattern(lcv, powers_sorted: List[int]):
    """Map bit p of an enumeration index onto ``powers_sorted[p]``."""
    if isinstance(lcv, np.ndarray):
        result = np.zeros_like(lcv)
        for p, power in enumerate(powers_sorted):
            result |= np.where((lcv >> p) & 1, power, 0).astype(lcv.dtype)
        return result
    result = 0
    for p, power in enumerate(powers_sorted):
        if (lcv >> p) & 1:
            result |= power
    return result


def reduced_indices(begin: int, end: int, powers_sorted: List[int]) -> np.ndarray:
    """Full permutation indices (gaps zeroed) for reduced indices in [begin, end)."""
    return push_apart_bits(np.arange(begin, end, dtype=np.int64), powers_sorted)

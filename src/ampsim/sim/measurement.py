"""
Outcome distributions and sampling for projective measurement.

``prob_mask_all`` and ``prob_reg_all`` build the full distribution over the
outcomes of a set of qubits; ``sample_cumulative`` draws one outcome from it.
Collapse itself lives in ``ampsim.sim.kernel.apply_mask_collapse``.
"""

import logging
from typing import Optional, Tuple
import numpy as np

from ampsim.sim.backend import StateVector
from ampsim.sim.kernel import prob_patterns
from ampsim.sim.masks import popcount, push_apart_bits, skip_powers
from ampsim.sim.parallel import ParallelFor

logger = logging.getLogger(__name__)


def prob_mask_all(
    state: StateVector,
    mask: int,
    out: Optional[np.ndarray] = None,
    parallel: Optional[ParallelFor] = None,
) -> np.ndarray:
    """
    Probability of every pattern of the qubits in ``mask``.

    Slot ``lcv`` holds the probability that the masked bits, read lowest
    first, spell ``lcv``. Each slot's permutation pattern is recovered by
    pushing ``lcv`` apart at the unset bits of ``mask``.

    Args:
        state: Amplitude container
        mask: Union of the bit powers of the measured qubits
        out: Optional output buffer of length 2^popcount(mask)
        parallel: Dispatcher; serial if None

    Returns:
        Probability array (``out`` if given)
    """
    length_power = 1 << popcount(mask)
    if out is None:
        out = np.zeros(length_power, dtype=state.real_dtype)
    elif out.shape != (length_power,):
        raise ValueError(f"Output shape {out.shape} does not match ({length_power},)")

    skips = skip_powers(mask)
    if state.is_sparse():
        patterns = [push_apart_bits(lcv, skips) for lcv in range(length_power)]
    else:
        patterns = push_apart_bits(np.arange(length_power, dtype=np.int64), skips)
    prob_patterns(state, mask, patterns, out, parallel)
    return out


def prob_reg_all(
    state: StateVector,
    start: int,
    length: int,
    out: Optional[np.ndarray] = None,
    parallel: Optional[ParallelFor] = None,
) -> np.ndarray:
    """
    Probability of every value of the contiguous register [start, start + length).

    Returns:
        Array of length 2^length indexed by register value
    """
    length_power = 1 << length
    if out is None:
        out = np.zeros(length_power, dtype=state.real_dtype)
    elif out.shape != (length_power,):
        raise ValueError(f"Output shape {out.shape} does not match ({length_power},)")

    reg_mask = (length_power - 1) << start
    if state.is_sparse():
        patterns = [lcv << start for lcv in range(length_power)]
    else:
        patterns = np.arange(length_power, dtype=np.int64) << start
    prob_patterns(state, reg_mask, patterns, out, parallel)
    return out


def sample_cumulative(probs: np.ndarray, threshold: float) -> Tuple[int, float]:
    """
    Pick the first outcome whose cumulative probability exceeds ``threshold``.

    If rounding leaves the total below the threshold, the walk never crosses
    it; the highest-probability outcome (the last one on ties) is returned
    instead. That fallback is an approximation: it slightly over-weights the
    most likely outcome by the missing probability mass.

    Args:
        probs: Outcome probabilities
        threshold: Uniform draw in [0, 1)

    Returns:
        (outcome index, its probability)
    """
    probs = np.asarray(probs)
    cumulative = np.cumsum(probs)
    lcv = int(np.searchsorted(cumulative, threshold, side="right"))
    if lcv < len(probs):
        return lcv, float(probs[lcv])

    fallback = len(probs) - 1 - int(np.argmax(probs[::-1]))
    logger.debug(
        f"Cumulative probability {float(cumulative[-1]):.17g} never exceeded "
        f"threshold {threshold:.17g}; falling back to outcome {fallback}"
    )
    return fallback, float(probs[fallback])

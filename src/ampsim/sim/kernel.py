"""
Amplitude kernels: 2x2 application, collapse, scaling and norm.

``apply_2x2`` is the single path through which every unitary gate passes.
For each reduced index ``base`` (the participating bit positions removed and
zero-filled by ``push_apart_bits``) it transforms the amplitude pair

    i0 = base | offset1,   i1 = base | offset2

with ``out0 = m00*a0 + m01*a1`` and ``out1 = m10*a0 + m11*a1``. The offsets
carry the fixed bits of the operation:

- single target t:           offset1 = 0,            offset2 = t
- controls C (must be 1):    offset1 = C,            offset2 = C | t
- anti-controls (must be 0): offset1 = 0,            offset2 = t
- swap of q1, q2:            offset1 = q1,           offset2 = q2

Indices whose participating bits match neither offset are never visited, so
the gate acts as the identity on them.

Each kernel has a dense variant (vectorised over spans of the reduced index
space) and a sparse variant (visits only pairs holding a nonzero amplitude).
The dispatch on the container type happens once per pass, never per element.
"""

import logging
from typing import List, Optional
import numpy as np

from ampsim.sim.backend import StateVector
from ampsim.sim.gates import as_matrix
from ampsim.sim.masks import mask_powers, reduced_indices
from ampsim.sim.parallel import ParallelFor

logger = logging.getLogger(__name__)

_SERIAL = ParallelFor(n_workers=1)


def _sq_mag(a: np.ndarray) -> np.ndarray:
    return a.real ** 2 + a.imag ** 2


def apply_2x2(
    state: StateVector,
    offset1: int,
    offset2: int,
    mtrx,
    powers_sorted: List[int],
    calc_norm: bool = False,
    min_norm: float = 0.0,
    parallel: Optional[ParallelFor] = None,
) -> Optional[float]:
    """
    Apply a 2x2 matrix to every amplitude pair selected by the offsets.

    Args:
        state: Amplitude container
        offset1: Bits OR-ed into the reduced index for the "0" branch
        offset2: Bits OR-ed into the reduced index for the "1" branch
        mtrx: 2x2 matrix (or four row-major complex numbers)
        powers_sorted: Ascending bit powers of every participating qubit
        calc_norm: Zero amplitudes below ``min_norm`` and return the summed
            squared magnitude of all written amplitudes
        min_norm: Squared-magnitude floor used when ``calc_norm`` is set
        parallel: Dispatcher; serial if None

    Returns:
        Running norm of the touched amplitudes if ``calc_norm``, else None
    """
    m = as_matrix(mtrx)
    parallel = parallel or _SERIAL

    if state.is_sparse():
        total = _apply_2x2_sparse(state, offset1, offset2, m, powers_sorted,
                                  calc_norm, min_norm, parallel)
    else:
        total = _apply_2x2_dense(state.amplitudes, offset1, offset2, m, powers_sorted,
                                 calc_norm, min_norm, parallel)
    return total if calc_norm else None


def _apply_2x2_dense(amps, offset1, offset2, m, powers_sorted, calc_norm, min_norm, parallel):
    m00, m01, m10, m11 = (complex(v) for v in m.ravel())
    count = len(amps) >> len(powers_sorted)

    def span(begin: int, end: int) -> float:
        base = reduced_indices(begin, end, powers_sorted)
        i0 = base | offset1
        i1 = base | offset2
        a0 = amps[i0]
        a1 = amps[i1]
        out0 = m00 * a0 + m01 * a1
        out1 = m10 * a0 + m11 * a1
        partial = 0.0
        if calc_norm:
            n0 = _sq_mag(out0)
            n1 = _sq_mag(out1)
            out0[n0 < min_norm] = 0
            out1[n1 < min_norm] = 0
            partial = float(n0[n0 >= min_norm].sum() + n1[n1 >= min_norm].sum())
        amps[i0] = out0
        amps[i1] = out1
        return partial

    return parallel.par_sum(count, span)


def _apply_2x2_sparse(state, offset1, offset2, m, powers_sorted, calc_norm, min_norm, parallel):
    m00, m01, m10, m11 = (complex(v) for v in m.ravel())
    full_mask = sum(powers_sorted)

    # Only pairs containing a stored amplitude can change
    bases = set()
    for i in state.nonzero_indices():
        fixed = i & full_mask
        if fixed == offset1 or fixed == offset2:
            bases.add(i & ~full_mask)
    bases = sorted(bases)

    def span(begin: int, end: int) -> float:
        partial = 0.0
        for base in bases[begin:end]:
            i0 = base | offset1
            i1 = base | offset2
            a0 = state.read(i0)
            a1 = state.read(i1)
            out0 = m00 * a0 + m01 * a1
            out1 = m10 * a0 + m11 * a1
            if calc_norm:
                n0 = out0.real ** 2 + out0.imag ** 2
                n1 = out1.real ** 2 + out1.imag ** 2
                if n0 < min_norm:
                    out0, n0 = 0j, 0.0
                if n1 < min_norm:
                    out1, n1 = 0j, 0.0
                partial += n0 + n1
            state.write2(i0, out0, i1, out1)
        return partial

    return parallel.par_sum(len(bases), span)


def state_norm(state: StateVector, parallel: Optional[ParallelFor] = None) -> float:
    """Sum of squared magnitudes of all amplitudes."""
    parallel = parallel or _SERIAL
    if state.is_sparse():
        return float(sum(c.real ** 2 + c.imag ** 2 for _, c in state.nonzero_items()))

    amps = state.amplitudes
    return parallel.par_sum(
        len(amps), lambda begin, end: float(_sq_mag(amps[begin:end]).sum())
    )


def apply_mask_collapse(
    state: StateVector,
    mask: int,
    pattern: int,
    nrm: complex,
    parallel: Optional[ParallelFor] = None,
) -> None:
    """
    Collapse onto ``pattern`` under ``mask``.

    Amplitudes whose masked bits differ from ``pattern`` are zeroed; the
    survivors are multiplied by ``nrm``.
    """
    parallel = parallel or _SERIAL
    if state.is_sparse():
        for i, c in state.nonzero_items():
            if (i & mask) == pattern:
                state.write(i, c * nrm)
            else:
                state.discard(i)
        return

    amps = state.amplitudes

    def span(begin: int, end: int) -> None:
        idx = np.arange(begin, end, dtype=np.int64)
        keep = (idx & mask) == pattern
        chunk = amps[begin:end]
        chunk[~keep] = 0
        chunk[keep] *= nrm

    parallel.run(len(amps), span)


def scale_state(
    state: StateVector,
    nrm: float,
    min_norm: float = 0.0,
    parallel: Optional[ParallelFor] = None,
) -> None:
    """Multiply every amplitude by ``nrm``, zeroing those that fall below ``min_norm``."""
    parallel = parallel or _SERIAL
    if state.is_sparse():
        for i, c in state.nonzero_items():
            c = c * nrm
            if c.real ** 2 + c.imag ** 2 < min_norm:
                state.discard(i)
            else:
                state.write(i, c)
        return

    amps = state.amplitudes

    def span(begin: int, end: int) -> None:
        chunk = amps[begin:end]
        chunk *= nrm
        chunk[_sq_mag(chunk) < min_norm] = 0

    parallel.run(len(amps), span)


def prob_mask(
    state: StateVector,
    mask: int,
    pattern: int,
    parallel: Optional[ParallelFor] = None,
) -> float:
    """Summed squared magnitude of amplitudes whose bits under ``mask`` equal ``pattern``."""
    parallel = parallel or _SERIAL
    if state.is_sparse():
        return float(sum(
            c.real ** 2 + c.imag ** 2
            for i, c in state.nonzero_items()
            if (i & mask) == pattern
        ))

    powers = mask_powers(mask)
    count = state.capacity >> len(powers)
    return parallel.par_sum(count, _prob_span(state.amplitudes, powers, pattern))


def _prob_span(amps: np.ndarray, powers: List[int], pattern: int):
    def span(begin: int, end: int) -> float:
        idx = reduced_indices(begin, end, powers) | pattern
        return float(_sq_mag(amps[idx]).sum())
    return span


def prob_patterns(
    state: StateVector,
    mask: int,
    patterns: np.ndarray,
    out: np.ndarray,
    parallel: Optional[ParallelFor] = None,
) -> None:
    """
    ``out[k] = prob_mask(state, mask, patterns[k])`` for every k.

    Each output slot is written by exactly one work item, so the fill needs
    no reduction step.
    """
    parallel = parallel or _SERIAL

    if state.is_sparse():
        # One scan of the stored entries, bucketed by masked pattern
        slot = {int(p): k for k, p in enumerate(patterns)}
        out.fill(0)
        for i, c in state.nonzero_items():
            k = slot.get(i & mask)
            if k is not None:
                out[k] += c.real ** 2 + c.imag ** 2
        return

    powers = mask_powers(mask)
    reduced = state.capacity >> len(powers)
    amps = state.amplitudes
    patterns = np.asarray(patterns, dtype=np.int64)

    if reduced >= parallel.chunk_size:
        # Few large rows: split each row across the workers instead
        for k, pattern in enumerate(patterns):
            out[k] = parallel.par_sum(reduced, _prob_span(amps, powers, int(pattern)))
        return

    base = reduced_indices(0, reduced, powers)

    def span(begin: int, end: int) -> None:
        idx = patterns[begin:end, None] | base[None, :]
        out[begin:end] = _sq_mag(amps[idx]).sum(axis=1)

    # Roughly chunk_size amplitudes per work item
    per_item = max(1, parallel.chunk_size // reduced)
    parallel.run(len(patterns), span, chunk_size=per_item)

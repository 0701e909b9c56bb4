"""
State-vector engine: gates, probabilities and projective measurement.

``QEngine`` owns one amplitude container for an n-qubit register and exposes
the numeric API: 2x2 unitaries on single qubits (optionally controlled or
anti-controlled), the swap family, probability queries over qubits, masks and
contiguous registers, and forced or sampled measurement with collapse.

Every unitary is funnelled through ``apply_2x2``, which derives nothing
itself: callers supply the two offsets and the sorted bit powers of all
participating qubits (see ``ampsim.sim.kernel``).

Lazy normalization: with ``do_normalize`` enabled the engine tracks the
running norm of the state. Any pass that leaves it different from 1 sets the
``needs_normalize`` flag; probability queries and measurements call
``normalize_if_needed`` before reading amplitudes.
"""

import logging
from typing import List, Optional, Sequence
import numpy as np

from ampsim.config import EngineConfig
from ampsim.sim import kernel
from ampsim.sim.gates import (
    HADAMARD,
    ISQRT_X,
    PAULI_X,
    PAULI_Y,
    PAULI_Z,
    SQRT_X,
    as_matrix,
)
from ampsim.sim.masks import bit_powers, expand_pattern, mask_of, sorted_powers
from ampsim.sim.measurement import prob_mask_all, prob_reg_all, sample_cumulative
from ampsim.sim.parallel import ParallelFor
from ampsim.sim.statevector import create_state_vector
from ampsim.utils.rng import UniformSampler

logger = logging.getLogger(__name__)


class QEngine:
    """
    Exact simulator of an n-qubit register.

    Qubit q corresponds to bit q (value ``1 << q``) of the permutation index.

    Example:
        >>> engine = QEngine(2, EngineConfig(seed=1))
        >>> engine.h(0)
        >>> engine.prob(0)
        0.5
    """

    def __init__(
        self,
        n_qubits: int,
        config: Optional[EngineConfig] = None,
        sampler: Optional[UniformSampler] = None,
        init_perm: int = 0,
    ):
        """
        Args:
            n_qubits: Number of qubits
            config: Engine configuration (defaults if None)
            sampler: Uniform [0, 1) sampler; seeded from ``config.seed`` if None
            init_perm: Initial basis state
        """
        if n_qubits < 1:
            raise ValueError(f"n_qubits must be positive, got {n_qubits}")

        self.config = config or EngineConfig()
        self.n_qubits = n_qubits
        self.max_q_power = 1 << n_qubits
        self.sampler = sampler or UniformSampler(self.config.seed)
        self.parallel = ParallelFor(self.config.n_workers, self.config.chunk_size)
        self.state = create_state_vector(self.max_q_power, self.config)

        self._running_norm = 1.0
        self._needs_normalize = False

        self.set_permutation(init_perm)
        logger.debug(
            f"QEngine created: n_qubits={n_qubits}, storage={self.config.storage}, "
            f"precision={self.config.precision}, n_workers={self.config.n_workers}"
        )

    # ------------------------------------------------------------------
    # Argument checks

    def _check_qubit(self, qubit: int) -> None:
        if not 0 <= qubit < self.n_qubits:
            raise ValueError(f"Qubit {qubit} out of range [0, {self.n_qubits})")

    def _check_qubits(self, qubits: Sequence[int]) -> None:
        for q in qubits:
            self._check_qubit(q)

    def _check_register(self, start: int, length: int) -> None:
        if length < 1 or start < 0 or start + length > self.n_qubits:
            raise ValueError(
                f"Register [{start}, {start + length}) out of range [0, {self.n_qubits})"
            )

    def _check_perm(self, perm: int, limit: Optional[int] = None) -> None:
        limit = self.max_q_power if limit is None else limit
        if not 0 <= perm < limit:
            raise ValueError(f"Permutation {perm} out of range [0, {limit})")

    def _check_mask(self, mask: int, pattern: int) -> None:
        if not 0 < mask < self.max_q_power:
            raise ValueError(f"Mask {mask:#x} out of range for {self.n_qubits} qubits")
        if pattern & ~mask:
            raise ValueError(f"Pattern {pattern:#x} has bits outside mask {mask:#x}")

    # ------------------------------------------------------------------
    # State management

    def set_permutation(self, perm: int, phase: Optional[complex] = None) -> None:
        """Reset to the basis state ``perm`` with amplitude ``phase`` (default 1)."""
        self._check_perm(perm)
        if phase is None:
            phase = self.get_nonunitary_phase()
        self.state.clear()
        self.state.write(perm, phase)
        self._set_running_norm(1.0)

    def set_quantum_state(self, amplitudes: np.ndarray) -> None:
        """Load a full amplitude vector of length 2^n."""
        amplitudes = np.asarray(amplitudes)
        if amplitudes.shape != (self.max_q_power,):
            raise ValueError(
                f"State shape {amplitudes.shape} does not match "
                f"expected (2^{self.n_qubits},) = ({self.max_q_power},)"
            )
        self.state.copy_in(amplitudes.astype(self.config.complex_dtype, copy=False))
        self.update_running_norm()

    def get_quantum_state(self) -> np.ndarray:
        """Copy of the full amplitude vector."""
        out = np.empty(self.max_q_power, dtype=self.config.complex_dtype)
        self.state.copy_out(out)
        return out

    def get_amplitude(self, perm: int) -> complex:
        self._check_perm(perm)
        return self.state.read(perm)

    def set_amplitude(self, perm: int, amp: complex) -> None:
        """Overwrite one amplitude; the running norm is adjusted incrementally."""
        self._check_perm(perm)
        old = self.state.read(perm)
        self.state.write(perm, amp)
        delta = abs(amp) ** 2 - abs(old) ** 2
        self._set_running_norm(self._running_norm + delta)

    def get_probs(self) -> np.ndarray:
        """Squared magnitude of every amplitude, in permutation order."""
        self.normalize_if_needed()
        out = np.empty(self.max_q_power, dtype=self.config.real_dtype)
        self.state.get_probs(out)
        return out

    def is_sparse(self) -> bool:
        return self.state.is_sparse()

    def clone(self) -> "QEngine":
        """
        Independent copy with the same configuration and a child sampler.

        The child generator is spawned from the parent's seed sequence, so
        cloning does not consume draws from the parent.
        """
        child = self.sampler.generator.spawn(1)[0]
        other = QEngine(self.n_qubits, self.config, UniformSampler(generator=child))
        other.state.copy(self.state)
        other._running_norm = self._running_norm
        other._needs_normalize = self._needs_normalize
        return other

    def close(self) -> None:
        """Release worker threads."""
        self.parallel.close()

    def __enter__(self) -> "QEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(n_qubits={self.n_qubits}, "
            f"storage={self.config.storage}, precision={self.config.precision})"
        )

    # ------------------------------------------------------------------
    # Normalization

    @property
    def running_norm(self) -> float:
        return self._running_norm

    @property
    def needs_normalize(self) -> bool:
        """True while a pass has left the tracked norm different from 1."""
        return self._needs_normalize

    def _set_running_norm(self, value: float) -> None:
        self._running_norm = float(value)
        self._needs_normalize = self.config.do_normalize and self._running_norm != 1.0

    def update_running_norm(self) -> float:
        """Recompute the norm from the amplitudes."""
        self._set_running_norm(kernel.state_norm(self.state, self.parallel))
        return self._running_norm

    def normalize_state(self, nrm: Optional[float] = None) -> None:
        """
        Rescale so total probability is 1 and clear the dirty flag.

        Args:
            nrm: Current squared norm. Defaults to the tracked running norm
                (or a fresh computation when tracking is disabled).
        """
        if nrm is None:
            nrm = self._running_norm if self.config.do_normalize else kernel.state_norm(
                self.state, self.parallel
            )
        if nrm <= 0:
            logger.warning("normalize_state called on a zero-norm state; leaving it unchanged")
        elif nrm != 1.0:
            kernel.scale_state(
                self.state, 1.0 / np.sqrt(nrm), self.config.min_norm, self.parallel
            )
            logger.debug(f"Normalized state (norm was {nrm:.17g})")
        self._running_norm = 1.0
        self._needs_normalize = False

    def normalize_if_needed(self) -> bool:
        """Normalize if the dirty flag is set. Returns whether a pass ran."""
        if not self._needs_normalize:
            return False
        self.normalize_state()
        return True

    def get_nonunitary_phase(self) -> complex:
        """Reference phase for collapse: 1, or random if ``random_global_phase``."""
        if self.config.random_global_phase:
            return complex(np.exp(2j * np.pi * self.rand()))
        return 1 + 0j

    def rand(self) -> float:
        return self.sampler()

    # ------------------------------------------------------------------
    # Unitary application

    def apply_2x2(
        self,
        offset1: int,
        offset2: int,
        mtrx,
        powers_sorted: List[int],
        do_calc_norm: bool = False,
    ) -> None:
        """
        Apply ``mtrx`` to every amplitude pair (base | offset1, base | offset2).

        ``do_calc_norm`` must only be set when the pass touches every
        amplitude (no controls); any pending normalization is then folded into
        the matrix and the resulting norm becomes the running norm.
        """
        mtrx = as_matrix(mtrx)
        do_calc_norm = do_calc_norm and self.config.do_normalize
        if do_calc_norm and self._needs_normalize and self._running_norm > 0:
            mtrx = mtrx / np.sqrt(self._running_norm)

        norm = kernel.apply_2x2(
            self.state,
            offset1,
            offset2,
            mtrx,
            powers_sorted,
            calc_norm=do_calc_norm,
            min_norm=self.config.min_norm,
            parallel=self.parallel,
        )
        if do_calc_norm:
            self._set_running_norm(norm)

    def apply_single_bit(self, mtrx, qubit: int, do_calc_norm: bool = True) -> None:
        """Apply a 2x2 unitary to one qubit."""
        self._check_qubit(qubit)
        power = 1 << qubit
        self.apply_2x2(0, power, mtrx, [power], do_calc_norm)

    def apply_controlled_single_bit(
        self, controls: Sequence[int], target: int, mtrx
    ) -> None:
        """Apply ``mtrx`` to ``target`` where every control qubit is 1."""
        if not controls:
            self.apply_single_bit(mtrx, target, True)
            return
        self.apply_controlled_2x2(controls, target, mtrx)
        if self.config.do_normalize:
            self.update_running_norm()

    def apply_anti_controlled_single_bit(
        self, controls: Sequence[int], target: int, mtrx
    ) -> None:
        """Apply ``mtrx`` to ``target`` where every control qubit is 0."""
        if not controls:
            self.apply_single_bit(mtrx, target, True)
            return
        self.apply_anti_controlled_2x2(controls, target, mtrx)
        if self.config.do_normalize:
            self.update_running_norm()

    def apply_controlled_2x2(self, controls: Sequence[int], target: int, mtrx) -> None:
        """Raw controlled pass, without running-norm bookkeeping."""
        self._check_qubits(controls)
        self._check_qubit(target)
        control_mask = mask_of(controls)
        target_power = 1 << target
        powers = sorted(bit_powers(controls) + [target_power])
        self.apply_2x2(control_mask, control_mask | target_power, mtrx, powers)

    def apply_anti_controlled_2x2(self, controls: Sequence[int], target: int, mtrx) -> None:
        """Raw anti-controlled pass, without running-norm bookkeeping."""
        self._check_qubits(controls)
        self._check_qubit(target)
        target_power = 1 << target
        powers = sorted(bit_powers(controls) + [target_power])
        self.apply_2x2(0, target_power, mtrx, powers)

    # ------------------------------------------------------------------
    # Named gates

    def x(self, qubit: int) -> None:
        self.apply_single_bit(PAULI_X, qubit)

    def y(self, qubit: int) -> None:
        self.apply_single_bit(PAULI_Y, qubit)

    def z(self, qubit: int) -> None:
        self.apply_single_bit(PAULI_Z, qubit)

    def h(self, qubit: int) -> None:
        self.apply_single_bit(HADAMARD, qubit)

    def cnot(self, control: int, target: int) -> None:
        self.apply_controlled_single_bit([control], target, PAULI_X)

    def anti_cnot(self, control: int, target: int) -> None:
        self.apply_anti_controlled_single_bit([control], target, PAULI_X)

    def _apply_pair(
        self,
        mtrx: np.ndarray,
        controls: Sequence[int],
        qubit1: int,
        qubit2: int,
        anti: bool,
    ) -> None:
        # The matrix acts on the |q1=1,q2=0>, |q1=0,q2=1> pair. Controls join the
        # skipped powers; only non-anti controls are also required to be 1.
        power1 = 1 << qubit1
        power2 = 1 << qubit2
        control_mask = 0 if anti else mask_of(controls)
        powers = sorted(bit_powers(controls) + [power1, power2])
        self.apply_2x2(control_mask | power1, control_mask | power2, mtrx, powers)

    def _swap_like(self, mtrx, controls, qubit1, qubit2, anti=False) -> None:
        self._check_qubits(controls)
        self._check_qubit(qubit1)
        self._check_qubit(qubit2)
        if qubit1 == qubit2:
            return
        self._apply_pair(mtrx, controls, qubit1, qubit2, anti)

    def swap(self, qubit1: int, qubit2: int) -> None:
        """Exchange the states of two qubits."""
        self._swap_like(PAULI_X, (), qubit1, qubit2)

    def sqrt_swap(self, qubit1: int, qubit2: int) -> None:
        """Square root of swap."""
        self._swap_like(SQRT_X, (), qubit1, qubit2)

    def isqrt_swap(self, qubit1: int, qubit2: int) -> None:
        """Inverse of the square root of swap."""
        self._swap_like(ISQRT_X, (), qubit1, qubit2)

    def cswap(self, controls: Sequence[int], qubit1: int, qubit2: int) -> None:
        """Swap where every control qubit is 1."""
        if not controls:
            self.swap(qubit1, qubit2)
            return
        self._swap_like(PAULI_X, controls, qubit1, qubit2)

    def anti_cswap(self, controls: Sequence[int], qubit1: int, qubit2: int) -> None:
        """Swap where every control qubit is 0."""
        if not controls:
            self.swap(qubit1, qubit2)
            return
        self._swap_like(PAULI_X, controls, qubit1, qubit2, anti=True)

    def csqrt_swap(self, controls: Sequence[int], qubit1: int, qubit2: int) -> None:
        if not controls:
            self.sqrt_swap(qubit1, qubit2)
            return
        self._swap_like(SQRT_X, controls, qubit1, qubit2)

    def anti_csqrt_swap(self, controls: Sequence[int], qubit1: int, qubit2: int) -> None:
        if not controls:
            self.sqrt_swap(qubit1, qubit2)
            return
        self._swap_like(SQRT_X, controls, qubit1, qubit2, anti=True)

    def cisqrt_swap(self, controls: Sequence[int], qubit1: int, qubit2: int) -> None:
        if not controls:
            self.isqrt_swap(qubit1, qubit2)
            return
        self._swap_like(ISQRT_X, controls, qubit1, qubit2)

    def anti_cisqrt_swap(self, controls: Sequence[int], qubit1: int, qubit2: int) -> None:
        if not controls:
            self.isqrt_swap(qubit1, qubit2)
            return
        self._swap_like(ISQRT_X, controls, qubit1, qubit2, anti=True)

    # ------------------------------------------------------------------
    # Probabilities

    def prob(self, qubit: int) -> float:
        """Probability that ``qubit`` measures 1."""
        self._check_qubit(qubit)
        power = 1 << qubit
        return self.prob_mask(power, power)

    def prob_all(self, perm: int) -> float:
        """Probability of the full basis state ``perm``."""
        self._check_perm(perm)
        self.normalize_if_needed()
        amp = self.state.read(perm)
        return amp.real ** 2 + amp.imag ** 2

    def prob_reg(self, start: int, length: int, perm: int) -> float:
        """Probability that register [start, start + length) holds ``perm``."""
        self._check_register(start, length)
        self._check_perm(perm, 1 << length)
        reg_mask = ((1 << length) - 1) << start
        return self.prob_mask(reg_mask, perm << start)

    def prob_mask(self, mask: int, pattern: int) -> float:
        """Probability that the bits of the state under ``mask`` equal ``pattern``."""
        self._check_mask(mask, pattern)
        self.normalize_if_needed()
        return kernel.prob_mask(self.state, mask, pattern, self.parallel)

    def prob_mask_all(self, mask: int) -> np.ndarray:
        """Probabilities of all 2^popcount(mask) patterns of the masked qubits."""
        self._check_mask(mask, 0)
        self.normalize_if_needed()
        return prob_mask_all(self.state, mask, parallel=self.parallel)

    def prob_reg_all(self, start: int, length: int) -> np.ndarray:
        """Probabilities of all 2^length values of a contiguous register."""
        self._check_register(start, length)
        self.normalize_if_needed()
        return prob_reg_all(self.state, start, length, parallel=self.parallel)

    # ------------------------------------------------------------------
    # Measurement

    def apply_m(self, mask: int, pattern: int, nrm: complex) -> None:
        """Zero amplitudes inconsistent with ``pattern`` and scale survivors by ``nrm``."""
        kernel.apply_mask_collapse(self.state, mask, pattern, nrm, self.parallel)
        self._running_norm = 1.0
        self._needs_normalize = False

    def _collapse(self, mask: int, pattern: int, nrmlzr: float) -> None:
        if nrmlzr <= 0:
            raise ValueError(
                f"Cannot collapse onto pattern {pattern:#x} under mask {mask:#x}: "
                f"outcome has zero probability"
            )
        nrm = self.get_nonunitary_phase() / np.sqrt(nrmlzr)
        self.apply_m(mask, pattern, nrm)

    def force_m(self, qubit: int, result: bool, do_force: bool = True) -> bool:
        """
        Measure one qubit, optionally forcing the outcome.

        Args:
            qubit: Qubit index
            result: Outcome to force (ignored unless ``do_force``)
            do_force: Use ``result`` instead of sampling

        Returns:
            Measured outcome
        """
        self._check_qubit(qubit)
        self.normalize_if_needed()

        one_chance = self.prob(qubit)
        if not do_force:
            result = (self.rand() < one_chance) and one_chance > 0
        result = bool(result)

        nrmlzr = one_chance if result else 1.0 - one_chance
        power = 1 << qubit
        self._collapse(power, power if result else 0, nrmlzr)
        logger.debug(f"Measured qubit {qubit} -> {int(result)} (p1={one_chance:.6g})")
        return result

    def m(self, qubit: int) -> bool:
        """Sampled measurement of one qubit."""
        return self.force_m(qubit, False, False)

    def force_m_bits(
        self, bits: Sequence[int], values: Optional[Sequence[bool]] = None
    ) -> int:
        """
        Measure several (not necessarily contiguous) qubits.

        Args:
            bits: Qubit indices
            values: Outcome per qubit to force; sampled jointly if None

        Returns:
            Outcome as a permutation pattern: bit ``1 << bits[i]`` set iff
            qubit ``bits[i]`` measured 1
        """
        bits = list(bits)
        self._check_qubits(bits)
        if len(set(bits)) != len(bits):
            raise ValueError(f"Duplicate qubits in {bits}")
        if values is not None and len(values) != len(bits):
            raise ValueError(f"Got {len(values)} values for {len(bits)} qubits")
        if not bits:
            return 0

        if len(bits) == 1:
            if values is None:
                outcome = self.m(bits[0])
            else:
                outcome = self.force_m(bits[0], values[0])
            return (1 << bits[0]) if outcome else 0

        self.normalize_if_needed()
        reg_mask = mask_of(bits)

        if values is not None:
            result = 0
            for bit, value in zip(bits, values):
                if value:
                    result |= 1 << bit
            nrmlzr = kernel.prob_mask(self.state, reg_mask, result, self.parallel)
            self._collapse(reg_mask, result, nrmlzr)
            return result

        threshold = self.rand()
        probs = prob_mask_all(self.state, reg_mask, parallel=self.parallel)
        lcv, nrmlzr = sample_cumulative(probs, threshold)
        result = expand_pattern(lcv, sorted_powers(bits))
        self._collapse(reg_mask, result, nrmlzr)
        logger.debug(f"Measured qubits {bits} -> pattern {result:#x}")
        return result

    def m_bits(self, bits: Sequence[int]) -> int:
        """Sampled joint measurement of several qubits."""
        return self.force_m_bits(bits, None)

    def force_m_reg(
        self, start: int, length: int, result: int = 0, do_force: bool = True
    ) -> int:
        """
        Measure the contiguous register [start, start + length).

        Returns:
            Register value (bit 0 = qubit ``start``)
        """
        self._check_register(start, length)
        if do_force:
            self._check_perm(result, 1 << length)
        if length == 1:
            return 1 if self.force_m(start, bool(result & 1), do_force) else 0

        self.normalize_if_needed()
        length_power = 1 << length
        reg_mask = (length_power - 1) << start

        if do_force:
            nrmlzr = kernel.prob_mask(self.state, reg_mask, result << start, self.parallel)
        else:
            threshold = self.rand()
            probs = prob_reg_all(self.state, start, length, parallel=self.parallel)
            result, nrmlzr = sample_cumulative(probs, threshold)

        self._collapse(reg_mask, result << start, nrmlzr)
        logger.debug(f"Measured register [{start}, {start + length}) -> {result}")
        return result

    def m_reg(self, start: int, length: int) -> int:
        """Sampled measurement of a contiguous register."""
        return self.force_m_reg(start, length, 0, False)

    def m_all(self) -> int:
        """Sampled measurement of every qubit; returns the collapsed permutation."""
        return self.m_reg(0, self.n_qubits)

"""Shared fixtures: seeded generators, random states and unitaries."""

import numpy as np
import pytest


def make_random_state(rng: np.random.Generator, n_qubits: int) -> np.ndarray:
    """Normalized random amplitude vector of length 2^n."""
    size = 1 << n_qubits
    v = rng.normal(size=size) + 1j * rng.normal(size=size)
    return v / np.linalg.norm(v)


def make_random_unitary(rng: np.random.Generator) -> np.ndarray:
    """Random 2x2 unitary from U3 angles and a global phase."""
    theta, phi, lam, gamma = rng.uniform(0, 2 * np.pi, size=4)
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.exp(1j * gamma) * np.array([
        [c, -np.exp(1j * lam) * s],
        [np.exp(1j * phi) * s, np.exp(1j * (phi + lam)) * c],
    ], dtype=np.complex128)


def _reference_controlled(state, n_qubits, controls, target, m, anti=False):
    """Index-by-index (anti-)controlled 2x2 application, for cross-checking."""
    out = state.copy()
    target_power = 1 << target
    for i in range(1 << n_qubits):
        if i & target_power:
            continue
        bits = [(i >> c) & 1 for c in controls]
        if anti and any(bits):
            continue
        if not anti and not all(bits):
            continue
        j = i | target_power
        out[i] = m[0, 0] * state[i] + m[0, 1] * state[j]
        out[j] = m[1, 0] * state[i] + m[1, 1] * state[j]
    return out


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_state(rng):
    return lambda n_qubits: make_random_state(rng, n_qubits)


@pytest.fixture
def random_unitary(rng):
    return lambda: make_random_unitary(rng)


@pytest.fixture
def reference_controlled():
    return _reference_controlled

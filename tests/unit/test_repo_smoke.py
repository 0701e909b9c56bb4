"""
Smoke tests for package structure and basic functionality.

Tests that package imports work and default configuration is in place.
"""

import pytest


def test_package_import():
    """Test that ampsim package can be imported."""
    import ampsim
    assert ampsim.__version__ == "0.1.0"
    assert hasattr(ampsim, "config")
    assert hasattr(ampsim, "utils")
    assert hasattr(ampsim, "sim")


def test_top_level_exports():
    """Test that the main entry points are re-exported."""
    from ampsim import EngineConfig, QEngine
    
    engine = QEngine(2, EngineConfig(seed=0))
    assert engine.n_qubits == 2
    assert engine.max_q_power == 4


def test_sim_subpackage_import():
    """Test that sim subpackage exports are importable."""
    from ampsim.sim import (
        StateVector,
        DenseStateVector,
        SparseStateVector,
        create_state_vector,
        ParallelFor,
        QEngine,
    )
    
    assert issubclass(DenseStateVector, StateVector)
    assert issubclass(SparseStateVector, StateVector)


def test_utils_subpackage_import():
    """Test that utils subpackage imports work."""
    from ampsim.utils import setup_logger, get_logger, UniformSampler
    
    assert setup_logger is not None
    assert get_logger is not None
    assert 0.0 <= UniformSampler(seed=1)() < 1.0


def test_logger_file_output(tmp_path):
    """Test that setup_logger writes to a log file."""
    import logging
    from ampsim.utils import setup_logger
    
    log_file = tmp_path / "logs" / "engine.log"
    logger = setup_logger("ampsim.test_file_output", level=logging.DEBUG, log_file=log_file)
    logger.info("hello from the engine")
    for handler in logger.handlers:
        handler.flush()
    
    assert log_file.exists()
    assert "hello from the engine" in log_file.read_text()


def test_json_formatter():
    """Test that the structured formatter emits parseable JSON."""
    import json
    import logging
    from ampsim.utils.logging_setup import StructuredFormatter
    
    record = logging.LogRecord(
        name="ampsim", level=logging.INFO, pathname=__file__, lineno=1,
        msg="measured %d", args=(3,), exc_info=None,
    )
    record.engine = {"n_qubits": 4}
    data = json.loads(StructuredFormatter().format(record))
    
    assert data["message"] == "measured 3"
    assert data["level"] == "INFO"
    assert data["engine"] == {"n_qubits": 4}


def test_default_engine_config():
    """Test that EngineConfig can be instantiated with defaults."""
    from ampsim.config import EngineConfig
    import numpy as np
    
    config = EngineConfig()
    
    assert config.precision == "double"
    assert config.storage == "dense"
    assert config.n_workers == 1
    assert config.do_normalize is True
    assert config.random_global_phase is False
    assert config.seed is None
    assert config.complex_dtype == np.complex128
    assert config.real_dtype == np.float64
    assert config.min_norm == pytest.approx(1e-30)

"""
Unit tests for configuration validation.

Tests that invalid configuration values are rejected and that YAML
round-trips preserve every field.
"""

import numpy as np
import pytest
from pydantic import ValidationError

from ampsim.config import EngineConfig


class TestEngineConfigValidation:
    """Tests for EngineConfig validation."""
    
    def test_precision_choices(self):
        """Test that only single and double precision are accepted."""
        assert EngineConfig(precision="single").precision == "single"
        assert EngineConfig(precision="DOUBLE").precision == "double"
        
        with pytest.raises(ValidationError, match="precision must be one of"):
            EngineConfig(precision="quad")
    
    def test_storage_choices(self):
        """Test that only dense and sparse storage are accepted."""
        assert EngineConfig(storage="sparse").storage == "sparse"
        
        with pytest.raises(ValidationError, match="storage must be one of"):
            EngineConfig(storage="gpu")
    
    def test_workers_and_chunk_must_be_positive(self):
        """Test n_workers >= 1 and chunk_size >= 1."""
        with pytest.raises(ValidationError, match="greater than or equal to 1"):
            EngineConfig(n_workers=0)
        
        with pytest.raises(ValidationError, match="greater than or equal to 1"):
            EngineConfig(chunk_size=0)
    
    def test_seed_must_be_non_negative(self):
        """Test that negative seeds are rejected."""
        assert EngineConfig(seed=0).seed == 0
        
        with pytest.raises(ValidationError, match="non-negative"):
            EngineConfig(seed=-5)


class TestDerivedProperties:
    """Tests for dtype and tolerance properties."""
    
    def test_single_precision_dtypes(self):
        config = EngineConfig(precision="single")
        
        assert config.complex_dtype == np.complex64
        assert config.real_dtype == np.float32
        assert config.min_norm == pytest.approx(1e-14)
        assert config.epsilon == pytest.approx(float(np.finfo(np.float32).eps))
    
    def test_double_precision_dtypes(self):
        config = EngineConfig(precision="double")
        
        assert config.complex_dtype == np.complex128
        assert config.real_dtype == np.float64
        assert config.epsilon == pytest.approx(float(np.finfo(np.float64).eps))


class TestYamlRoundTrip:
    """Tests for YAML persistence."""
    
    def test_round_trip(self, tmp_path):
        """Test that to_yaml followed by from_yaml preserves the config."""
        config = EngineConfig(
            precision="single",
            storage="sparse",
            n_workers=3,
            chunk_size=256,
            do_normalize=False,
            random_global_phase=True,
            seed=99,
        )
        path = tmp_path / "engine.yaml"
        config.to_yaml(path)
        
        loaded = EngineConfig.from_yaml(path)
        assert loaded == config
    
    def test_bare_mapping(self, tmp_path):
        """Test loading a file without the top-level 'engine' key."""
        path = tmp_path / "bare.yaml"
        path.write_text("storage: sparse\nseed: 7\n")
        
        loaded = EngineConfig.from_yaml(path)
        assert loaded.storage == "sparse"
        assert loaded.seed == 7
        assert loaded.precision == "double"
    
    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        
        assert EngineConfig.from_yaml(path) == EngineConfig()
    
    def test_invalid_yaml_value(self, tmp_path):
        """Test that validation applies to file contents too."""
        path = tmp_path / "bad.yaml"
        path.write_text("engine:\n  n_workers: 0\n")
        
        with pytest.raises(ValidationError):
            EngineConfig.from_yaml(path)

"""
Pydantic schemas for engine configuration.

Numeric precision, amplitude storage variant, parallelism and normalization
behaviour are selected here once, at engine construction, instead of being
branched on throughout the engine.
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, field_validator
import numpy as np
import yaml


_MIN_NORM = {
    "single": 1e-14,
    "double": 1e-30,
}


class EngineConfig(BaseModel):
    """Engine parameters (precision, storage backend, workers, normalization)."""
    
    precision: str = Field(
        default="double",
        description="Floating-point precision of amplitudes (single or double)"
    )
    storage: str = Field(
        default="dense",
        description="Amplitude container variant (dense or sparse)"
    )
    
    # Parallel passes
    n_workers: int = Field(
        default=1,
        ge=1,
        description="Number of worker threads used for a parallel pass"
    )
    chunk_size: int = Field(
        default=16384,
        ge=1,
        description="Reduced-index span handled by a single work item"
    )
    
    # Normalization and phase
    do_normalize: bool = Field(
        default=True,
        description="Track the running norm and normalize lazily before measurement"
    )
    random_global_phase: bool = Field(
        default=False,
        description="Draw a random reference phase for collapse instead of 1"
    )
    
    seed: Optional[int] = Field(
        default=None,
        description="Seed of the engine's uniform sampler (None = system entropy)"
    )
    
    @field_validator("precision")
    @classmethod
    def validate_precision(cls, v: str) -> str:
        """Ensure precision is supported."""
        v = v.lower()
        if v not in _MIN_NORM:
            raise ValueError(f"precision must be one of {sorted(_MIN_NORM)}, got '{v}'")
        return v
    
    @field_validator("storage")
    @classmethod
    def validate_storage(cls, v: str) -> str:
        """Ensure storage variant is supported."""
        allowed = {"dense", "sparse"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"storage must be one of {sorted(allowed)}, got '{v}'")
        return v
    
    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v: Optional[int]) -> Optional[int]:
        """Ensure seed is non-negative (numpy requirement)."""
        if v is not None and v < 0:
            raise ValueError("seed must be a non-negative integer")
        return v
    
    @property
    def complex_dtype(self) -> np.dtype:
        """Amplitude dtype."""
        return np.dtype(np.complex64 if self.precision == "single" else np.complex128)
    
    @property
    def real_dtype(self) -> np.dtype:
        """Probability dtype."""
        return np.dtype(np.float32 if self.precision == "single" else np.float64)
    
    @property
    def min_norm(self) -> float:
        """Squared magnitude below which an amplitude is treated as zero."""
        return _MIN_NORM[self.precision]
    
    @property
    def epsilon(self) -> float:
        """Machine epsilon of the probability dtype."""
        return float(np.finfo(self.real_dtype).eps)
    
    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "EngineConfig":
        """Load configuration from YAML file."""
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}
        # Accept either a bare mapping or one nested under "engine"
        if "engine" in data:
            data = data["engine"]
        return cls(**data)
    
    def to_yaml(self, yaml_path: Path) -> None:
        """Save configuration to YAML file."""
        with open(yaml_path, "w") as f:
            yaml.safe_dump(
                {"engine": self.model_dump()}, f, default_flow_style=False, sort_keys=False
            )

"""
Configuration management for ampsim.

Provides Pydantic-validated engine configuration and YAML loading utilities.
"""

from .schemas import EngineConfig

__all__ = ["EngineConfig"]

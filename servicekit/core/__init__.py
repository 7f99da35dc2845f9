"""Core utilities and shared application primitives.

Modules in this package should be framework-agnostic where possible and
focused on configuration, parsing, and small reusable helpers.
"""

from .config import Configuration, ConfigurationError
from .parsing import split_delimited

__all__ = ["Configuration", "ConfigurationError", "split_delimited"]

"""Exception types raised by pore_path."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """A mandatory parameter is missing or has an invalid value."""


class ConvergenceError(RuntimeError):
    """An iterative procedure did not converge within its step budget."""

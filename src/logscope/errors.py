"""Exceptions raised by logscope."""

from __future__ import annotations


class LogScopeError(Exception):
    """Base class for logscope errors."""


class ConfigurationError(LogScopeError, ValueError):
    """A configuration value was rejected (bad pattern, unknown color, ...)."""


class InvariantViolation(LogScopeError, RuntimeError):
    """An internal structural invariant was broken. Indicates a bug, not a recoverable condition."""

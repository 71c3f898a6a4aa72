"""Drivers for evaluating contexts over bar streams."""

from .runner import BarSnapshot, SweepResult, parameter_sweep, run_context

__all__ = ["BarSnapshot", "SweepResult", "run_context", "parameter_sweep"]

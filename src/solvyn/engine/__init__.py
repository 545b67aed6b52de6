# src/solvyn/engine/__init__.py
"""Resolution engine: pipeline, local evaluator, lifecycle events, factory."""

from solvyn.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from solvyn.engine.evaluator import (
    ArithmeticEvaluator,
    EvaluationError,
    EvaluationSecurityError,
    EvaluationSyntaxError,
    format_value,
)
from solvyn.engine.events import ListenerRegistry
from solvyn.engine.factory import build_engine, create_solvyn
from solvyn.engine.resolver import SolvynEngine

__all__ = [
    "DEFAULT_CLOCK",
    "ArithmeticEvaluator",
    "Clock",
    "EvaluationError",
    "EvaluationSecurityError",
    "EvaluationSyntaxError",
    "ListenerRegistry",
    "MockClock",
    "SolvynEngine",
    "SystemClock",
    "build_engine",
    "create_solvyn",
    "format_value",
]

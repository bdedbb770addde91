"""The seam to the expression engine.

Expression properties hold a condition string. The engine itself lives
outside this package; anything matching ExpressionRunner can be plugged in
with settings.set_expression_runner_factory().
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from surveymodel import settings


class ExpressionRunner(Protocol):
    expression: str
    on_run_complete: Callable[[Any], None] | None

    def run(self, values: dict, properties: dict) -> Any:
        """Evaluate the expression and report the result through on_run_complete."""
        ...


def create_expression_runner(expression: str) -> ExpressionRunner | None:
    """Build a runner with the configured factory; None when no engine is configured."""
    if settings.expression_runner_factory is None:
        return None
    return settings.expression_runner_factory(expression)

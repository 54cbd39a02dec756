"""Structural performance score for a strategy's output.

The score only looks at the shape of the results (were steps recorded, is a
synthesis present). It says nothing about the quality of the generated text.
"""
from __future__ import annotations

from ..models.coordination import CoordinationPattern, CoordinationResults

BASE_SCORE = 0.5
STEPS_BONUS = 0.2
HIERARCHICAL_SYNTHESIS_BONUS = 0.2
PARALLEL_SYNTHESIS_BONUS = 0.1


def calculate_performance_score(results: CoordinationResults) -> float:
    score = BASE_SCORE
    if results.steps:
        score += STEPS_BONUS
    if results.pattern is CoordinationPattern.HIERARCHICAL and results.final_synthesis:
        score += HIERARCHICAL_SYNTHESIS_BONUS
    if results.pattern is CoordinationPattern.PARALLEL and results.synthesis:
        score += PARALLEL_SYNTHESIS_BONUS
    return round(min(max(score, 0.0), 1.0), 4)

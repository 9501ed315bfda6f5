"""Evaluation helpers for comparing Qataar policies."""

from .match import EvaluationResult, evaluate_policies
from .policies import Policy, RandomPolicy, SearchPolicy

__all__ = ["EvaluationResult", "evaluate_policies", "Policy", "RandomPolicy", "SearchPolicy"]

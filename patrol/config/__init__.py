"""
Configuration module for Patrol.
"""
from patrol.config.logging import setup_logging
from patrol.config.defaults import (
    POLICY_DEFAULTS,
    EVALUATOR_DEFAULTS,
    PolicyDefaults,
    EvaluatorDefaults,
)

__all__ = [
    "setup_logging",
    "POLICY_DEFAULTS",
    "EVALUATOR_DEFAULTS",
    "PolicyDefaults",
    "EvaluatorDefaults",
]

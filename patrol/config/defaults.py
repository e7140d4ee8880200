"""
Centralized configuration defaults for Patrol.

This module provides a single source of truth for the default values used by
policies, sandboxes and the evaluator.
"""
import os
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PolicyDefaults:
    """Default capability policy bounds."""
    range_max: int = 1000


@dataclass(frozen=True)
class EvaluatorDefaults:
    """Default sandbox and worker configuration."""
    timeout: float = 5.0  # seconds
    discard_path: str = os.devnull
    internal_prefixes: Tuple[str, ...] = ("builtins.",)
    join_grace: float = 1.0  # seconds to reap a killed worker
    fragment_filename: str = "<patrol>"


# Global default instances
POLICY_DEFAULTS = PolicyDefaults()
EVALUATOR_DEFAULTS = EvaluatorDefaults()

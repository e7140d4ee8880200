"""
Factories for policies, sandboxes and reusable evaluators.
"""
import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from patrol.exceptions import ConfigurationError
from patrol.executor.base import Sandbox
from patrol.executor.evaluator import Evaluator
from patrol.policy.rules import Policy
from patrol.schemas import PolicySpec, SandboxSpec

logger = logging.getLogger(__name__)


def make_policy(spec: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Policy:
    """Build a policy from ``allowed_local``, ``allowed_remote`` and ``range_max``.

    Raises:
        ConfigurationError: If the input does not describe a valid policy.
    """
    data = dict(spec or {}, **kwargs)
    try:
        return PolicySpec.model_validate(data).to_policy()
    except ValidationError as e:
        raise ConfigurationError("Invalid policy", {"errors": e.errors(include_url=False)}) from e


def make_config(spec: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Sandbox:
    """Build a sandbox from ``policy`` and optional execution settings.

    Raises:
        ConfigurationError: If the input does not describe a valid sandbox.
    """
    data = dict(spec or {}, **kwargs)
    try:
        sandbox = SandboxSpec.model_validate(data).to_sandbox()
    except ValidationError as e:
        raise ConfigurationError("Invalid sandbox", {"errors": e.errors(include_url=False)}) from e
    logger.debug(f"Sandbox configured: timeout={sandbox.timeout}s")
    return sandbox


def create_evaluator(config: Optional[Sandbox] = None) -> Evaluator:
    if isinstance(config, Mapping):
        config = make_config(config)
    return Evaluator(config)

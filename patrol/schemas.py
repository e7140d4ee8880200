"""
Pydantic models for policy and sandbox construction input.
"""
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from patrol.config.defaults import EVALUATOR_DEFAULTS, POLICY_DEFAULTS
from patrol.executor.base import OutputSink, Sandbox
from patrol.policy.rules import ALL, AllExcept, OnlyThese, Policy, _AllRule


def to_rule(value: Any):
    """Coerce the accepted rule spellings into a rule value.

    ``"all"`` -> ALL, ``{"except": [...]}`` -> AllExcept,
    ``[...]`` or ``{"only": [...]}`` -> OnlyThese.
    """
    if isinstance(value, (_AllRule, AllExcept, OnlyThese)):
        return value
    if isinstance(value, str):
        if value.lower() == "all":
            return ALL
        raise ValueError(f"Unknown rule: {value!r}")
    if isinstance(value, Mapping):
        if set(value) == {"except"}:
            return AllExcept(value["except"])
        if set(value) == {"only"}:
            return OnlyThese(value["only"])
        raise ValueError(f"Rule mapping must have a single 'except' or 'only' key, got {sorted(value)}")
    if isinstance(value, (list, tuple, set, frozenset)):
        return OnlyThese(value)
    raise ValueError(f"Unknown rule: {value!r}")


class PolicySpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    allowed_local: FrozenSet[str] = Field(default_factory=frozenset)
    allowed_remote: Dict[str, Any] = Field(default_factory=dict)
    range_max: Optional[int] = Field(default=POLICY_DEFAULTS.range_max, ge=0)

    @field_validator("allowed_remote", mode="before")
    @classmethod
    def _coerce_rules(cls, value: Any) -> Dict[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ValueError("allowed_remote must map namespaces to rules")
        return {str(namespace): to_rule(rule) for namespace, rule in value.items()}

    def to_policy(self) -> Policy:
        return Policy(
            allowed_local=self.allowed_local,
            allowed_remote=self.allowed_remote,
            range_max=self.range_max,
        )


class SandboxSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    policy: Any
    timeout: float = Field(default=EVALUATOR_DEFAULTS.timeout, gt=0)
    output_sink: Any = OutputSink.DISCARD
    context: Dict[str, Any] = Field(default_factory=dict)
    transform: Optional[Callable[[Any], Any]] = None
    discard_path: str = EVALUATOR_DEFAULTS.discard_path
    start_method: Optional[str] = None

    @field_validator("policy", mode="before")
    @classmethod
    def _coerce_policy(cls, value: Any) -> Policy:
        if isinstance(value, Policy):
            return value
        if isinstance(value, Mapping):
            return PolicySpec.model_validate(dict(value)).to_policy()
        raise ValueError("policy must be a Policy or a mapping")

    @field_validator("timeout", mode="before")
    @classmethod
    def _default_timeout(cls, value: Any) -> Any:
        return EVALUATOR_DEFAULTS.timeout if value is None else value

    def to_sandbox(self) -> Sandbox:
        return Sandbox(
            policy=self.policy,
            timeout=self.timeout,
            output_sink=self.output_sink,
            context=self.context,
            transform=self.transform,
            discard_path=self.discard_path,
            start_method=self.start_method,
        )

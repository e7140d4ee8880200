"""
Capability policy: which calls and ranges a code fragment may use.

A policy is default-deny. A bare call is permitted only when its name is in
``allowed_local``; a qualified call only when its namespace has a rule in
``allowed_remote`` and that rule admits the function name.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from patrol.config.defaults import POLICY_DEFAULTS


class _AllRule:
    """Every function of the namespace is allowed."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __reduce__(self):
        return (_AllRule, ())

    def __repr__(self) -> str:
        return "ALL"


ALL = _AllRule()


@dataclass(frozen=True)
class AllExcept:
    """Every function of the namespace except ``excluded``."""
    excluded: frozenset = frozenset()

    def __init__(self, excluded: Iterable[str] = ()):
        object.__setattr__(self, "excluded", frozenset(excluded))


@dataclass(frozen=True)
class OnlyThese:
    """Only the functions in ``allowed``."""
    allowed: frozenset = frozenset()

    def __init__(self, allowed: Iterable[str] = ()):
        object.__setattr__(self, "allowed", frozenset(allowed))


Rule = Union[_AllRule, AllExcept, OnlyThese]


# Builtins that compute over their arguments without touching the host.
SAFE_LOCALS = frozenset({
    "abs", "all", "any", "bin", "bool", "chr", "dict", "divmod", "enumerate",
    "filter", "float", "format", "frozenset", "hex", "int", "isinstance",
    "len", "list", "map", "max", "min", "oct", "ord", "pow", "print", "repr",
    "reversed", "round", "set", "slice", "sorted", "str", "sum", "tuple",
    "zip",
})


@dataclass(frozen=True)
class Policy:
    allowed_local: frozenset = frozenset()
    allowed_remote: Mapping[str, Rule] = field(default_factory=dict)
    range_max: Optional[int] = POLICY_DEFAULTS.range_max  # None: ranges are unbounded
    allow_any_local: bool = False
    default_rule: Optional[Rule] = None

    def __post_init__(self):
        object.__setattr__(self, "allowed_local", frozenset(self.allowed_local))
        object.__setattr__(self, "allowed_remote", MappingProxyType(dict(self.allowed_remote)))

    def __reduce__(self):
        return (
            Policy,
            (
                self.allowed_local,
                dict(self.allowed_remote),
                self.range_max,
                self.allow_any_local,
                self.default_rule,
            ),
        )

    def allows_local(self, name: str) -> bool:
        return self.allow_any_local or name in self.allowed_local

    def rule_for(self, namespace: Optional[str]) -> Optional[Rule]:
        """Return the rule governing ``namespace``, or None to deny it.

        ``namespace`` is None for receivers that are not dotted names; only a
        ``default_rule`` can admit those.
        """
        if namespace is None:
            return self.default_rule
        rule = self.allowed_remote.get(namespace)
        if rule is None:
            return self.default_rule
        return rule

    @classmethod
    def permissive(cls) -> "Policy":
        """A policy that allows every call and any range."""
        return cls(allow_any_local=True, default_rule=ALL, range_max=None)

    @classmethod
    def conservative(cls) -> "Policy":
        """Pure builtins and the math module, nothing else."""
        return cls(allowed_local=SAFE_LOCALS, allowed_remote={"math": ALL})

"""
Capability policies and the safety checker that enforces them.
"""
from patrol.policy.rules import (
    ALL,
    AllExcept,
    OnlyThese,
    Rule,
    Policy,
    SAFE_LOCALS,
)
from patrol.policy.shapes import (
    LocalCall,
    RemoteCall,
    AnonymousCall,
    RangeLiteral,
    Other,
    classify,
    collect_aliases,
)
from patrol.policy.checker import (
    Verdict,
    SafetyChecker,
    check,
    is_safe,
    render,
)

__all__ = [
    "ALL",
    "AllExcept",
    "OnlyThese",
    "Rule",
    "Policy",
    "SAFE_LOCALS",
    "LocalCall",
    "RemoteCall",
    "AnonymousCall",
    "RangeLiteral",
    "Other",
    "classify",
    "collect_aliases",
    "Verdict",
    "SafetyChecker",
    "check",
    "is_safe",
    "render",
]

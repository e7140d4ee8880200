"""
Patrol - policy-gated, time-bounded evaluation of untrusted Python code.

Usage:
    from patrol import make_policy, make_config, create_evaluator

    policy = make_policy({"allowed_local": ["len"], "allowed_remote": {"math": "all"}})
    evaluator = create_evaluator(make_config({"policy": policy, "timeout": 2}))
    evaluator("math.sqrt(len('abcd'))")   # Ok(value=2.0)
    evaluator("open('/etc/passwd')")       # Error(kind=PERMISSION, ...)
"""
from patrol.config import setup_logging
from patrol.exceptions import (
    PatrolError,
    ConfigurationError,
    SupervisorError,
    WorkerExited,
    ParseError,
    CompileError,
    UndefinedFunctionError,
    EvaluationError,
    PermissionDeniedError,
    SyntaxFailure,
    UndefinedLocalError,
    UndefinedRemoteError,
    EvaluationTimeout,
    EvaluationFailed,
)
from patrol.policy import ALL, AllExcept, OnlyThese, Policy, check, is_safe
from patrol.executor import (
    ErrorKind,
    Ok,
    Error,
    Outcome,
    OutputSink,
    Sandbox,
    Evaluator,
    evaluate,
    format_undefined,
)
from patrol.executor.factory import make_policy, make_config, create_evaluator

__version__ = "0.1.0"

__all__ = [
    "make_policy",
    "make_config",
    "create_evaluator",
    "evaluate",
    "Evaluator",
    "Policy",
    "ALL",
    "AllExcept",
    "OnlyThese",
    "Sandbox",
    "OutputSink",
    "Ok",
    "Error",
    "ErrorKind",
    "Outcome",
    "check",
    "is_safe",
    "format_undefined",
    "setup_logging",
    "PatrolError",
    "ConfigurationError",
    "SupervisorError",
    "WorkerExited",
    "ParseError",
    "CompileError",
    "UndefinedFunctionError",
    "EvaluationError",
    "PermissionDeniedError",
    "SyntaxFailure",
    "UndefinedLocalError",
    "UndefinedRemoteError",
    "EvaluationTimeout",
    "EvaluationFailed",
]

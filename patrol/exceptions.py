"""
Custom exception hierarchy for Patrol.
"""
from typing import Optional, Dict, Any, Sequence


class PatrolError(Exception):
    """Base exception for all Patrol errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(PatrolError):
    """Raised for an invalid policy, sandbox or output sink."""
    pass


class SupervisorError(PatrolError):
    """Raised when a worker is driven out of order."""
    pass


class WorkerExited(PatrolError):
    """The worker stopped with a plain exit instead of returning a value.

    This is raised out of ``evaluate`` rather than returned, so the exit
    cascades to the caller the same way it ended the worker.
    """

    def __init__(self, ref: str, reason: str):
        super().__init__(f"Worker exited: {reason}", {"ref": ref, "reason": reason})
        self.ref = ref
        self.reason = reason


# Engine payloads


class EngineError(PatrolError):
    """Base exception for failures reported by the evaluation engine."""
    pass


class ParseError(EngineError):
    def __init__(self, line: Optional[int], message: str, token: str = ""):
        super().__init__(
            f"line {line}: {message}",
            {"line": line, "message": message, "token": token},
        )
        self.line = line
        self.description = message
        self.token = token


class CompileError(EngineError):
    def __init__(self, description: str):
        super().__init__(description)
        self.description = description


class UndefinedFunctionError(EngineError):
    """A remote call named an attribute its namespace does not have.

    ``frames`` holds ``(namespace, name, args)`` call sites, innermost first.
    """

    def __init__(self, namespace: str, name: str, args: Sequence[Any]):
        args = list(args)
        super().__init__(
            f"undefined function {namespace}.{name}/{len(args)}",
            {"namespace": namespace, "name": name, "arity": len(args)},
        )
        self.frames = [(namespace, name, args)]


# Raised by Outcome.unwrap()


class EvaluationError(PatrolError):
    """Base exception for unwrapped evaluation errors."""
    pass


class PermissionDeniedError(EvaluationError):
    def __init__(self, code: str):
        super().__init__(f"You tripped the alarm! {code} is not allowed", {"code": code})
        self.code = code


class SyntaxFailure(EvaluationError):
    pass


class UndefinedLocalError(EvaluationError):
    pass


class UndefinedRemoteError(EvaluationError):
    pass


class EvaluationTimeout(EvaluationError):
    pass


class EvaluationFailed(EvaluationError):
    pass

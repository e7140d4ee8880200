"""
Base types and configuration for isolated evaluation.

This module provides the sandbox configuration, the typed outcome of an
evaluation and the messages exchanged between the caller and its worker.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from patrol.config.defaults import EVALUATOR_DEFAULTS
from patrol.exceptions import (
    ConfigurationError,
    EvaluationFailed,
    EvaluationTimeout,
    PermissionDeniedError,
    SyntaxFailure,
    UndefinedLocalError,
    UndefinedRemoteError,
)
from patrol.policy.rules import Policy


class ErrorKind(str, Enum):
    PERMISSION = "permission"
    SYNTAX = "syntax"
    UNDEFINED_LOCAL = "undefined_local"
    UNDEFINED_REMOTE = "undefined_remote"
    TIMEOUT = "timeout"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class Ok:
    value: Any

    ok = True

    def unwrap(self) -> Any:
        return self.value


_UNWRAP_ERRORS = {
    ErrorKind.SYNTAX: SyntaxFailure,
    ErrorKind.UNDEFINED_LOCAL: UndefinedLocalError,
    ErrorKind.UNDEFINED_REMOTE: UndefinedRemoteError,
    ErrorKind.TIMEOUT: EvaluationTimeout,
    ErrorKind.OPAQUE: EvaluationFailed,
}


@dataclass(frozen=True)
class Error:
    kind: ErrorKind
    detail: Any = None

    ok = False

    def unwrap(self) -> Any:
        """Raise the exception matching this error."""
        if self.kind == ErrorKind.PERMISSION:
            raise PermissionDeniedError(self.detail)
        exc_type = _UNWRAP_ERRORS[self.kind]
        if isinstance(self.detail, dict):
            raise exc_type(f"Evaluation failed: {self.kind.value}", self.detail)
        raise exc_type(f"Evaluation failed: {self.kind.value} - {self.detail}")


Outcome = Union[Ok, Error]


class OutputSink(str, Enum):
    """Markers for where the worker's stdout goes.

    Any other value with a ``write`` method is treated as a live handle that
    receives the worker's output.
    """
    AMBIENT = "ambient"
    DISCARD = "discard"


def _freeze_context(context: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(context or {}))


@dataclass(frozen=True)
class Sandbox:
    """Immutable evaluation configuration, reusable across invocations."""
    policy: Policy = field(default_factory=Policy.permissive)
    timeout: float = EVALUATOR_DEFAULTS.timeout
    output_sink: Any = OutputSink.DISCARD
    context: Mapping[str, Any] = field(default_factory=dict)
    transform: Optional[Callable[[Any], Any]] = None
    discard_path: str = EVALUATOR_DEFAULTS.discard_path
    start_method: Optional[str] = None

    def __post_init__(self):
        if self.timeout is None:
            object.__setattr__(self, "timeout", EVALUATOR_DEFAULTS.timeout)
        if self.timeout <= 0:
            raise ConfigurationError("Sandbox timeout must be positive", {"timeout": self.timeout})
        if self.output_sink is None:
            object.__setattr__(self, "output_sink", OutputSink.DISCARD)
        object.__setattr__(self, "context", _freeze_context(self.context))

    def live_handle(self) -> Optional[Any]:
        """The externally supplied output handle, if one was configured."""
        if isinstance(self.output_sink, OutputSink):
            return None
        if hasattr(self.output_sink, "write"):
            return self.output_sink
        return None


def handle_is_alive(handle: Any) -> bool:
    return not getattr(handle, "closed", False)


def describe_sink(sandbox: Sandbox) -> Tuple[Any, ...]:
    """Reduce the configured output sink to a picklable descriptor."""
    sink = sandbox.output_sink
    if sink == OutputSink.AMBIENT:
        return ("ambient",)
    if sink == OutputSink.DISCARD:
        return ("discard", sandbox.discard_path)
    if hasattr(sink, "write"):
        return ("live", handle_is_alive(sink))
    return ("invalid", repr(sink))


class MessageType(Enum):
    RESULT = "result"
    OUTPUT = "output"
    EXIT = "exit"


@dataclass
class Message:
    message_type: MessageType
    ref: str
    data: Dict[str, Any]


@dataclass
class WorkerJob:
    """Everything the worker needs, shipped to it with cloudpickle."""
    tree: Any
    context: Dict[str, Any]
    sink: Tuple[Any, ...]

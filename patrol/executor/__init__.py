"""
Isolated, time-bounded evaluation of policy-checked code.

Accepted code runs in a worker process that the caller supervises through a
pipe armed before the worker starts. The worker is hard-killed when it
finishes or when the sandbox timeout expires, whichever comes first.

Note: ``patrol.executor.factory`` is imported from the top-level package, not
here, because it depends on ``patrol.schemas`` which depends on this package.
"""

from patrol.executor.base import (
    ErrorKind,
    Ok,
    Error,
    Outcome,
    OutputSink,
    Sandbox,
    Message,
    MessageType,
    WorkerJob,
    describe_sink,
)
from patrol.executor.formatting import format_undefined, display_namespace
from patrol.executor.supervisor import Supervisor, exit_payload
from patrol.executor.worker import run_worker
from patrol.executor.evaluator import Evaluator, evaluate, classify_exit

__all__ = [
    "ErrorKind",
    "Ok",
    "Error",
    "Outcome",
    "OutputSink",
    "Sandbox",
    "Message",
    "MessageType",
    "WorkerJob",
    "describe_sink",
    "format_undefined",
    "display_namespace",
    "Supervisor",
    "exit_payload",
    "run_worker",
    "Evaluator",
    "evaluate",
    "classify_exit",
]

"""
Isolated evaluator: policy check, supervised worker, deadline and outcome
classification.
"""
import ast
import logging
import time
import uuid
from typing import Any, Optional, Union

import cloudpickle

from patrol.engine.parser import as_module, parse
from patrol.exceptions import ConfigurationError, ParseError, WorkerExited
from patrol.executor.base import (
    Error,
    ErrorKind,
    Message,
    MessageType,
    Ok,
    Outcome,
    Sandbox,
    WorkerJob,
    describe_sink,
    handle_is_alive,
)
from patrol.executor.formatting import format_undefined
from patrol.executor.supervisor import Supervisor
from patrol.executor.worker import run_worker
from patrol.policy.checker import check, render

logger = logging.getLogger(__name__)

Code = Union[str, ast.AST]


def classify_exit(message: Message) -> Outcome:
    """Turn a worker termination into an outcome.

    Raises:
        WorkerExited: the worker stopped with a plain exit.
    """
    payload = message.data
    reason = payload.get("reason")

    if reason == "compile_error":
        return Error(ErrorKind.UNDEFINED_LOCAL, payload["description"])
    if reason == "undef":
        frames = cloudpickle.loads(payload["frames"])
        if frames:
            namespace, name, args = frames[0]
            return Error(ErrorKind.UNDEFINED_REMOTE, format_undefined(namespace, name, args))
    if reason in ("normal", "killed"):
        raise WorkerExited(message.ref, reason)

    logger.warning(f"Worker {message.ref} terminated: {payload.get('error_type', reason)}")
    return Error(ErrorKind.OPAQUE, dict(payload))


def _relay_output(handle: Any, text: str) -> None:
    if handle is None:
        return
    if not handle_is_alive(handle):
        logger.debug("Output handle closed, dropping worker output")
        return
    handle.write(text)


def _await_outcome(supervisor: Supervisor, config: Sandbox) -> Outcome:
    handle = config.live_handle()
    deadline = time.monotonic() + config.timeout

    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            supervisor.kill()
            logger.warning(f"Worker {supervisor.ref} timed out after {config.timeout}s")
            return Error(ErrorKind.TIMEOUT, {})

        message = supervisor.receive(remaining)
        if message is None:
            continue
        if message.ref != supervisor.ref:
            logger.debug(f"Ignoring message for {message.ref} on worker {supervisor.ref}")
            continue

        if message.message_type == MessageType.OUTPUT:
            _relay_output(handle, message.data["text"])
            continue
        if message.message_type == MessageType.RESULT:
            supervisor.kill()
            logger.debug(f"Worker {supervisor.ref} returned a result")
            value = cloudpickle.loads(message.data["value"])
            if config.transform is not None:
                value = config.transform(value)
            return Ok(value)
        return classify_exit(message)


def _serialize_job(tree: ast.Module, config: Sandbox) -> bytes:
    job = WorkerJob(tree=tree, context=dict(config.context), sink=describe_sink(config))
    try:
        return cloudpickle.dumps(job)
    except Exception as exc:
        raise ConfigurationError(
            "Sandbox context cannot be sent to the worker",
            {"error": str(exc)},
        ) from exc


def evaluate(code: Code, config: Optional[Sandbox] = None) -> Outcome:
    """Evaluate ``code`` inside a sandbox.

    Without ``config`` the code runs under a permissive policy; callers opt
    in to restriction by passing a :class:`Sandbox`.

    Args:
        code: Python source text or an ``ast`` tree.
        config: Policy, timeout, output sink, bindings and transform.

    Returns:
        ``Ok(value)`` or ``Error(kind, detail)``.

    Raises:
        WorkerExited: the worker stopped with a plain exit (``SystemExit(0)``
            or killed from outside) instead of returning.
    """
    config = config or Sandbox()

    if isinstance(code, str):
        try:
            tree = parse(code)
        except ParseError as exc:
            return Error(
                ErrorKind.SYNTAX,
                {"line": exc.line, "message": exc.description, "token": exc.token},
            )
    elif isinstance(code, ast.AST):
        tree = as_module(code)
    else:
        raise TypeError(f"Expected source text or an ast tree, got {type(code).__name__}")

    verdict = check(tree, config.policy)
    if not verdict:
        rendered = render(verdict.offending)
        logger.info(f"Rejected code: {rendered}")
        return Error(ErrorKind.PERMISSION, rendered)

    job_bytes = _serialize_job(tree, config)
    supervisor = Supervisor(uuid.uuid4().hex, config.start_method)
    try:
        supervisor.arm()
        supervisor.spawn(run_worker, job_bytes)
        return _await_outcome(supervisor, config)
    finally:
        supervisor.kill()
        supervisor.close()


class Evaluator:
    """A sandbox bound to a reusable evaluation entry point."""

    def __init__(self, config: Optional[Sandbox] = None):
        self.config = config or Sandbox()

    def __call__(self, code: Code) -> Outcome:
        return evaluate(code, self.config)

    def evaluate(self, code: Code) -> Outcome:
        return evaluate(code, self.config)

    def __repr__(self) -> str:
        return f"Evaluator(timeout={self.config.timeout}s)"

"""
Worker process entry point.

The worker decodes its job, points stdout at the configured sink, runs the
tree through the engine and reports exactly one RESULT or EXIT message back
over the supervision pipe. Stdout chunks sent to a live handle travel over the
same pipe as OUTPUT messages, ahead of the final report.
"""
import contextlib
import io
import logging
import traceback
from typing import Any, Dict, List, Tuple

import cloudpickle

from patrol.engine.runner import run
from patrol.exceptions import CompileError, ConfigurationError, UndefinedFunctionError
from patrol.executor.base import Message, MessageType, OutputSink

logger = logging.getLogger(__name__)


class ChannelWriter(io.TextIOBase):
    """Text stream that forwards every write to the supervising process."""

    def __init__(self, conn, ref: str):
        self._conn = conn
        self._ref = ref

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        if text:
            self._conn.send(Message(MessageType.OUTPUT, self._ref, {"text": text}))
        return len(text)


class ArgRepr:
    """Stand-in for a call argument that cannot be pickled."""

    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return self.text


def _portable(value: Any) -> Any:
    try:
        cloudpickle.dumps(value)
    except Exception:
        return ArgRepr(repr(value))
    return value


def _portable_frames(frames: List[Tuple[str, str, List[Any]]]) -> bytes:
    return cloudpickle.dumps([
        (namespace, name, [_portable(arg) for arg in args])
        for namespace, name, args in frames
    ])


def configure_output(sink: Tuple[Any, ...], conn, ref: str, stack: contextlib.ExitStack) -> None:
    kind = sink[0]
    if kind == "ambient":
        return
    if kind == "discard":
        stream = stack.enter_context(open(sink[1], "w"))
        stack.enter_context(contextlib.redirect_stdout(stream))
        return
    if kind == "live" and sink[1]:
        stack.enter_context(contextlib.redirect_stdout(ChannelWriter(conn, ref)))
        return
    if kind == "live":
        raise ConfigurationError("Expected a live process output handle, got a closed one")
    raise ConfigurationError(
        f"Expected a live handle, '{OutputSink.AMBIENT.value}' or "
        f"'{OutputSink.DISCARD.value}' as sandbox output sink, got {sink[-1]}"
    )


def termination_payload(exc: BaseException) -> Dict[str, Any]:
    if isinstance(exc, SystemExit) and exc.code in (None, 0):
        return {"reason": "normal"}
    if isinstance(exc, CompileError):
        return {"reason": "compile_error", "description": exc.description}
    if isinstance(exc, UndefinedFunctionError):
        return {"reason": "undef", "frames": _portable_frames(exc.frames)}
    if isinstance(exc, ConfigurationError):
        return {
            "reason": "config_error",
            "error": exc.message,
            "error_type": type(exc).__name__,
        }
    return {
        "reason": "exception",
        "error": str(exc),
        "error_type": type(exc).__name__,
        "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


def run_worker(conn, ref: str, job_bytes: bytes) -> None:
    try:
        try:
            job = cloudpickle.loads(job_bytes)
            with contextlib.ExitStack() as stack:
                configure_output(job.sink, conn, ref, stack)
                value, _bindings = run(job.tree, job.context)
            report = Message(MessageType.RESULT, ref, {"value": cloudpickle.dumps(value)})
        except BaseException as exc:  # noqa: BLE001
            report = Message(MessageType.EXIT, ref, termination_payload(exc))
        conn.send(report)
    except (BrokenPipeError, EOFError, OSError) as exc:
        logger.debug(f"Worker {ref} could not report to its supervisor: {exc}")
    finally:
        conn.close()

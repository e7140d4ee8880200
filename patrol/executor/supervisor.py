"""
Worker process supervision.

A :class:`Supervisor` owns one worker process and the pipe it reports
through. The pipe is the supervision link: it must exist before the worker
starts, otherwise a worker that dies immediately could not be observed.
"""
import logging
import multiprocessing
import signal
from multiprocessing.connection import wait
from typing import Any, Callable, Dict, Optional

from patrol.config.defaults import EVALUATOR_DEFAULTS
from patrol.exceptions import SupervisorError
from patrol.executor.base import Message, MessageType

logger = logging.getLogger(__name__)

_SIGKILL = getattr(signal, "SIGKILL", None)


def exit_payload(exitcode: Optional[int]) -> Dict[str, Any]:
    """Termination payload for a worker that died without reporting."""
    if exitcode == 0:
        return {"reason": "normal", "exitcode": exitcode}
    if _SIGKILL is not None and exitcode == -_SIGKILL:
        return {"reason": "killed", "exitcode": exitcode}
    return {"reason": "exitcode", "exitcode": exitcode}


class Supervisor:
    def __init__(self, ref: str, start_method: Optional[str] = None):
        self.ref = ref
        self._context = multiprocessing.get_context(start_method)
        self._reader = None
        self._writer = None
        self._process = None
        self._closed = False

    @property
    def armed(self) -> bool:
        return self._reader is not None

    @property
    def process(self):
        return self._process

    def arm(self):
        """Open the report channel and return the worker's end of it."""
        if self._process is not None:
            raise SupervisorError(
                "Supervision must be armed before the worker starts",
                {"ref": self.ref},
            )
        if self._reader is None:
            self._reader, self._writer = self._context.Pipe(duplex=False)
        return self._writer

    def spawn(self, target: Callable[..., None], *args: Any):
        """Start ``target(writer, ref, *args)`` in a worker process."""
        if not self.armed:
            raise SupervisorError(
                "Worker spawned before supervision was armed",
                {"ref": self.ref},
            )
        if self._process is not None:
            raise SupervisorError("Worker already spawned", {"ref": self.ref})

        self._process = self._context.Process(
            target=target,
            args=(self._writer, self.ref) + args,
            name=f"patrol-worker-{self.ref[:8]}",
            daemon=True,
        )
        self._process.start()
        # Keep only the read end so the worker's exit shows up as EOF.
        self._writer.close()
        logger.debug(f"Worker {self.ref} started with pid={self._process.pid}")
        return self._process

    def receive(self, timeout: float) -> Optional[Message]:
        """Wait up to ``timeout`` seconds for the worker's next message.

        Returns None if nothing arrived. A worker that exits without
        reporting yields a synthesized EXIT message.
        """
        if self._process is None:
            raise SupervisorError("No worker to receive from", {"ref": self.ref})

        ready = wait([self._reader, self._process.sentinel], timeout=max(timeout, 0))
        if not ready:
            return None
        if self._reader in ready or self._reader.poll():
            try:
                return self._reader.recv()
            except EOFError:
                pass
        return self._exit_message()

    def _exit_message(self) -> Message:
        self._process.join(EVALUATOR_DEFAULTS.join_grace)
        exitcode = self._process.exitcode
        logger.debug(f"Worker {self.ref} exited without reporting, exitcode={exitcode}")
        return Message(MessageType.EXIT, self.ref, exit_payload(exitcode))

    def is_alive(self) -> bool:
        if self._process is None or self._closed:
            return False
        return self._process.is_alive()

    def kill(self) -> None:
        """Hard-stop the worker. Safe to call on a finished worker."""
        process = self._process
        if process is None or self._closed:
            return
        if process.is_alive():
            process.kill()
            logger.debug(f"Worker {self.ref} killed")
        process.join(EVALUATOR_DEFAULTS.join_grace)

    def close(self) -> None:
        for conn in (self._reader, self._writer):
            if conn is not None:
                conn.close()
        if self._process is not None and not self._closed and self._process.exitcode is not None:
            self._process.close()
            self._closed = True

    def __enter__(self) -> "Supervisor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.kill()
        self.close()

"""
Unit tests for worker supervision.
"""
import multiprocessing
import os
import signal
import time

import pytest

from patrol.exceptions import SupervisorError
from patrol.executor.base import Message, MessageType
from patrol.executor.supervisor import Supervisor, exit_payload


def report(conn, ref, value):
    conn.send(Message(MessageType.RESULT, ref, {"value": value}))
    conn.close()


def exit_with(conn, ref, code):
    os._exit(code)


def sleep_forever(conn, ref):
    time.sleep(60)


@pytest.fixture
def supervisor():
    sup = Supervisor("0123456789abcdef", start_method="fork")
    yield sup
    sup.kill()
    sup.close()


class TestExitPayload:
    def test_clean_exit(self):
        assert exit_payload(0) == {"reason": "normal", "exitcode": 0}

    def test_killed(self):
        assert exit_payload(-signal.SIGKILL)["reason"] == "killed"

    def test_other_codes(self):
        assert exit_payload(3) == {"reason": "exitcode", "exitcode": 3}
        assert exit_payload(-signal.SIGTERM)["reason"] == "exitcode"


class TestOrdering:
    def test_spawn_requires_arm(self, supervisor):
        with pytest.raises(SupervisorError):
            supervisor.spawn(report, 1)
        assert supervisor.process is None

    def test_arm_after_spawn_rejected(self, supervisor):
        supervisor.arm()
        supervisor.spawn(report, 1)
        with pytest.raises(SupervisorError):
            supervisor.arm()

    def test_spawn_once(self, supervisor):
        supervisor.arm()
        supervisor.spawn(report, 1)
        with pytest.raises(SupervisorError):
            supervisor.spawn(report, 2)

    def test_arm_is_idempotent(self, supervisor):
        writer = supervisor.arm()
        assert supervisor.armed
        assert supervisor.arm() is writer

    def test_receive_without_worker(self, supervisor):
        with pytest.raises(SupervisorError):
            supervisor.receive(0.1)


class TestLifecycle:
    def test_worker_name_and_daemon(self, supervisor):
        supervisor.arm()
        process = supervisor.spawn(report, 1)
        assert process.name == "patrol-worker-01234567"
        assert process.daemon

    def test_receive_report(self, supervisor):
        supervisor.arm()
        supervisor.spawn(report, {"a": 1})
        message = supervisor.receive(10)
        assert message.message_type == MessageType.RESULT
        assert message.ref == supervisor.ref
        assert message.data == {"value": {"a": 1}}

    def test_exit_without_report(self, supervisor):
        supervisor.arm()
        supervisor.spawn(exit_with, 3)
        message = supervisor.receive(10)
        assert message.message_type == MessageType.EXIT
        assert message.data == {"reason": "exitcode", "exitcode": 3}

    def test_clean_exit_without_report(self, supervisor):
        supervisor.arm()
        supervisor.spawn(exit_with, 0)
        message = supervisor.receive(10)
        assert message.data["reason"] == "normal"

    def test_receive_timeout(self, supervisor):
        supervisor.arm()
        supervisor.spawn(sleep_forever)
        assert supervisor.receive(0.1) is None
        assert supervisor.is_alive()

    def test_kill(self, supervisor):
        supervisor.arm()
        process = supervisor.spawn(sleep_forever)
        supervisor.kill()
        assert not supervisor.is_alive()
        assert process.exitcode == -signal.SIGKILL

    def test_kill_is_idempotent(self, supervisor):
        supervisor.arm()
        supervisor.spawn(sleep_forever)
        supervisor.kill()
        supervisor.kill()
        supervisor.close()
        supervisor.kill()
        assert not supervisor.is_alive()

    def test_kill_before_spawn(self, supervisor):
        supervisor.kill()
        assert not supervisor.is_alive()

    def test_context_manager_kills(self):
        with Supervisor("feedface", start_method="fork") as sup:
            sup.arm()
            process = sup.spawn(sleep_forever)
        assert not sup.is_alive()
        assert process not in multiprocessing.active_children()

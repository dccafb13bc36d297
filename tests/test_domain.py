from __future__ import annotations

import pytest

from gptbridge.domain import Message, Run, RunStatus, Thread


def test_thread_identity_is_assigned_once() -> None:
    thread = Thread()
    thread.assign_id("t1")
    thread.assign_id("t1")
    assert thread.id == "t1"
    with pytest.raises(ValueError):
        thread.assign_id("t2")


def test_thread_keeps_message_order() -> None:
    thread = Thread(id="t1", messages=[Message.user("hi")])
    thread.append(Message(content="hello", role="assistant", id="m1"))
    assert [message.role for message in thread.messages] == ["user", "assistant"]
    assert thread.messages[0].id is None


def test_run_moves_strictly_forward() -> None:
    run = Run(id="run_1")
    assert run.advance(RunStatus.IN_PROGRESS) is True
    assert run.advance(RunStatus.QUEUED) is False
    assert run.advance(RunStatus.COMPLETED) is True
    assert run.status.is_terminal
    assert run.advance(RunStatus.FAILED) is False
    assert run.status is RunStatus.COMPLETED


def test_run_may_fail_straight_from_queued() -> None:
    run = Run()
    assert run.advance(RunStatus.FAILED) is True
    assert run.status is RunStatus.FAILED

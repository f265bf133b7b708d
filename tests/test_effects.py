"""Tests for effect chains in both side effect modes."""

import asyncio

import pytest

from src.complaints.application import EffectChain
from src.core import SideEffectException

from conftest import RecordingUnitOfWork


def _ok(value):
    async def action(*_):
        return value
    return action


def _boom(*_):
    async def action(*_):
        raise RuntimeError("store down")
    return action()


def test_best_effort_records_failures_and_continues():
    calls = []

    async def record(result):
        calls.append(result)

    uow = RecordingUnitOfWork()
    chain = EffectChain(mode="best_effort", isolate=uow.savepoint)
    chain.primary("write", _ok("saved"))
    chain.then("log", _boom)
    chain.then("notify", record)

    report = asyncio.run(chain.run())

    assert report.result == "saved"
    assert report.failed_steps == ["log"]
    assert not report.succeeded
    assert calls == ["saved"]
    assert uow.savepoints == 2
    assert uow.rolled_back == 1
    assert [o.step for o in report.outcomes] == ["write", "log", "notify"]


def test_transactional_raises_on_first_failure():
    calls = []

    async def record(result):
        calls.append(result)

    chain = EffectChain(mode="transactional")
    chain.primary("write", _ok("saved"))
    chain.then("log", _boom)
    chain.then("notify", record)

    with pytest.raises(SideEffectException) as exc_info:
        asyncio.run(chain.run())
    assert exc_info.value.step == "log"
    assert calls == []


def test_primary_failure_skips_everything():
    calls = []

    async def record(result):
        calls.append(result)

    chain = EffectChain()
    chain.primary("write", lambda: _boom())
    chain.then("log", record)

    with pytest.raises(RuntimeError):
        asyncio.run(chain.run())
    assert calls == []


def test_chain_requires_primary():
    with pytest.raises(ValueError):
        asyncio.run(EffectChain().run())


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        EffectChain(mode="eventually")


def test_step_names_in_order():
    chain = EffectChain().primary("write", _ok(1)).then("a", _boom).then("b", _boom)
    assert chain.step_names == ["write", "a", "b"]

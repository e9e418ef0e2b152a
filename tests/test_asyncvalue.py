import asyncio

import pulumi
import pytest

from eksa_metal.asyncvalue import AsyncValue
from eksa_metal.errors import ClusterValidationError, CompositionError


def _boom(_):
    raise RuntimeError("boom")


async def _expect_failure(value: AsyncValue, exc_type: type[BaseException]) -> None:
    with pytest.raises(exc_type):
        await value.output.future()


def _run(check) -> None:
    """
    Drive a coroutine on its own loop.

    Failing values are checked here rather than under pulumi.runtime.test,
    which re-raises every failed Output once the test body returns.
    """
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(check())
    finally:
        loop.close()


@pulumi.runtime.test
def test_map_applies_function(mocks):
    doubled = AsyncValue.of(21, label="n").map(lambda n: n * 2)

    def check(value):
        assert value == 42
        assert doubled.label == "n|map"

    return doubled.output.apply(check)


@pulumi.runtime.test
def test_map_runs_once_for_many_consumers(mocks):
    calls: list[int] = []

    def record(n):
        calls.append(n)
        return n + 1

    shared = AsyncValue.of(1, label="n").map(record)
    first = shared.map(lambda n: n * 10)
    second = shared.map(lambda n: n * 100)

    def check(values):
        assert values == (20, 200)
        assert calls == [1]

    return AsyncValue.join_all(first, second, shared).map(lambda xs: xs[:2]).output.apply(check)


@pulumi.runtime.test
def test_join_all_preserves_positions(mocks):
    joined = AsyncValue.join_all(
        AsyncValue.of("a", label="a"),
        AsyncValue.of(2, label="b").map(lambda n: n + 1),
        AsyncValue.of(["x"], label="c"),
    )

    def check(value):
        assert value == ("a", 3, ["x"])

    return joined.output.apply(check)


@pulumi.runtime.test
def test_sources_accumulate(mocks):
    a = AsyncValue(pulumi.Output.from_input(1), label="a", sources={"vlan"})
    b = AsyncValue(pulumi.Output.from_input(2), label="b", sources={"reserved-ip-block"})

    assert a.map(str).sources == {"vlan"}
    assert AsyncValue.join_all(a, b).sources == {"vlan", "reserved-ip-block"}


def test_join_all_needs_inputs():
    with pytest.raises(ValueError):
        AsyncValue.join_all()


def test_join_all_fails_when_any_input_fails(mocks):
    calls: list[tuple] = []

    async def check():
        joined = AsyncValue.join_all(
            AsyncValue.of(1, label="ok-1"),
            AsyncValue.of(2, label="bad").map(_boom, label="bad"),
            AsyncValue.of(3, label="ok-2"),
        )
        consumer = joined.map(lambda xs: calls.append(xs))

        await _expect_failure(joined, CompositionError)
        await _expect_failure(consumer, CompositionError)

    _run(check)
    assert calls == []


def test_map_wraps_failures_with_label(mocks):
    async def check():
        failed = AsyncValue.of("x", label="src").map(_boom, label="parse")
        with pytest.raises(CompositionError) as e:
            await failed.output.future()
        assert e.value.label == "parse"
        assert isinstance(e.value.cause, RuntimeError)

    _run(check)


def test_failure_propagates_without_reevaluation(mocks):
    calls: list[str] = []

    def fail_once(_):
        calls.append("called")
        raise RuntimeError("boom")

    async def check():
        root = AsyncValue.of(0, label="root").map(fail_once, label="root")
        downstream = root.map(lambda v: v).map(lambda v: v)

        await _expect_failure(downstream, CompositionError)
        await _expect_failure(root, CompositionError)

    _run(check)
    assert calls == ["called"]


def test_domain_errors_pass_through_unwrapped(mocks):
    def reject(_):
        raise ClusterValidationError("nope")

    async def check():
        await _expect_failure(AsyncValue.of(1, label="n").map(reject), ClusterValidationError)

    _run(check)

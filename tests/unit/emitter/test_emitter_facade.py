from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from good_emitter import (
    Emitter,
    EmitterConfig,
    InvalidArgumentError,
    SubscriptionGroup,
    TypedEvent,
)


def test_emit_returns_return_values_of_all_listeners(emitter: Emitter) -> None:
    emitter.subscribe("myEvent", lambda: 1)
    emitter.subscribe("myEvent", lambda: 2)
    emitter.subscribe("myEvent", lambda: True)

    assert emitter.emit("myEvent") == [1, 2, True]


def test_subscribe_emit_unsubscribe_roundtrip(emitter: Emitter) -> None:
    calls: list[str] = []
    unsubscribe = emitter.subscribe("event", calls.append)

    emitter.emit("event", "dummyArg")
    unsubscribe()
    emitter.emit("event", "dummyArg")

    assert calls == ["dummyArg"]


def test_explicit_unsubscribe_accepts_handles_and_groups(emitter: Emitter) -> None:
    single = emitter.subscribe("event", lambda: "single")
    group = emitter.subscribe_list({"event": lambda: "bulk", "other": lambda: "other"})

    assert isinstance(group, SubscriptionGroup)
    emitter.unsubscribe(single)
    emitter.unsubscribe(group)

    assert emitter.get_event_names() == []


def test_once_delegates(emitter: Emitter) -> None:
    calls: list[int] = []
    emitter.once("event", lambda: calls.append(1), 5)

    emitter.emit("event")
    emitter.emit("event")

    assert calls == [1]


def test_subscribe_with_delay_delegates(emitter: Emitter, scheduler) -> None:
    calls: list[str] = []
    emitter.subscribe_with_delay("event", calls.append, 1000)

    emitter.emit("event", "x")
    assert calls == []

    scheduler.advance_ms(1000)
    assert calls == ["x"]


def test_priority_scenario(emitter: Emitter) -> None:
    order: list[str] = []
    emitter.subscribe("event", lambda: order.append("zero"), 0)
    emitter.subscribe("event", lambda: order.append("ten"), 10)
    emitter.subscribe("event", lambda: order.append("minus-ten"), -10)

    emitter.emit("event")

    assert order == ["ten", "zero", "minus-ten"]


class TestMaxListeners:
    def test_set_max_listeners_returns_emitter(self, emitter: Emitter) -> None:
        assert emitter.set_max_listeners(15) is emitter
        assert emitter.get_max_listeners() == 15

    def test_negative_value_raises(self, emitter: Emitter) -> None:
        with pytest.raises(InvalidArgumentError, match="non-negative"):
            emitter.set_max_listeners(-1)

    def test_chained_calls(self, emitter: Emitter) -> None:
        emitter.subscribe("data", lambda: None)

        result = emitter.set_max_listeners(0).remove_all_listeners("data")

        assert result is emitter
        assert emitter.get_max_listeners() == 0
        assert emitter.listener_count("data") == 0

    def test_leak_advisory_goes_to_injected_logger(
        self, leak_logger: logging.Logger, caplog: pytest.LogCaptureFixture
    ) -> None:
        emitter = Emitter(max_listeners=3, logger=leak_logger)

        with caplog.at_level(logging.WARNING, logger=leak_logger.name):
            for _ in range(5):
                emitter.subscribe("data", lambda: None)

        records = [r for r in caplog.records if "Possible memory leak" in r.message]
        assert len(records) == 1
        assert '4 listeners added for event "data"' in records[0].message
        emitter.close()


class TestIntrospection:
    def test_listener_count_and_names(self, emitter: Emitter) -> None:
        emitter.subscribe("data", lambda: None)
        emitter.subscribe("update", lambda: None)

        assert emitter.listener_count("data") == 1
        assert sorted(emitter.get_event_names()) == ["data", "update"]

    def test_get_listeners(self, emitter: Emitter) -> None:
        def first() -> None: ...

        def second() -> None: ...

        emitter.subscribe("data", second)
        emitter.subscribe("data", first, priority=1)

        assert emitter.get_listeners("data") == [first, second]

    def test_remove_all_listeners(self, emitter: Emitter) -> None:
        for name in ("data", "update", "error"):
            emitter.subscribe(name, lambda: None)

        assert emitter.remove_all_listeners() is emitter
        assert emitter.get_event_names() == []


def test_typed_events_through_facade(emitter: Emitter) -> None:
    order_placed: TypedEvent[[str, int], str] = TypedEvent("order:placed")

    emitter.subscribe(order_placed, lambda sku, qty: f"{sku}x{qty}")

    assert emitter.emit(order_placed, "book", 2) == ["bookx2"]
    assert repr(order_placed) == "TypedEvent('order:placed')"
    assert order_placed == TypedEvent("order:placed")


class TestConfiguration:
    def test_defaults(self) -> None:
        emitter = Emitter()

        assert emitter.config == EmitterConfig()
        assert emitter.get_max_listeners() == 10
        assert not emitter.event_trace_enabled
        emitter.close()

    def test_keyword_overrides(self) -> None:
        emitter = Emitter(max_listeners=2, debug=True)

        assert emitter.config.max_listeners == 2
        assert emitter.config.debug is True
        assert emitter.get_max_listeners() == 2
        emitter.close()

    def test_config_object_with_overrides(self) -> None:
        base = EmitterConfig(max_listeners=4)
        emitter = Emitter(base, event_trace=True, trace_use_rich=False)

        assert emitter.config.max_listeners == 4
        assert emitter.event_trace_enabled
        assert base.event_trace is False
        emitter.close()

    def test_invalid_configuration_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Emitter(max_listeners=-1)

        with pytest.raises(ValidationError):
            Emitter(unknown_option=True)


class TestLifecycle:
    def test_context_manager_cancels_pending_timers(self, scheduler) -> None:
        calls: list[str] = []

        with Emitter(scheduler=scheduler) as emitter:
            emitter.subscribe_with_delay("event", calls.append, 100)
            emitter.emit("event", "never")

        scheduler.advance_ms(100)
        assert calls == []

    @pytest.mark.asyncio()
    async def test_async_context_manager_waits_for_async_listeners(self) -> None:
        done: list[str] = []

        async def handler(value: str) -> None:
            done.append(value)

        async with Emitter() as emitter:
            emitter.subscribe("event", handler)
            emitter.emit("event", "async")
            await emitter.join_async()

        assert done == ["async"]

    def test_join_waits_for_background_results(self) -> None:
        done: list[str] = []

        async def handler(value: str) -> None:
            done.append(value)

        emitter = Emitter()
        emitter.channel("bg").subscribe("event", handler)
        emitter.channel("bg").emit("event", "channel")
        emitter.join()
        emitter.close()

        assert done == ["channel"]

    def test_repr(self, emitter: Emitter) -> None:
        emitter.subscribe("data", lambda: None)
        emitter.channel("x")

        assert repr(emitter) == "<Emitter events=1 channels=1>"

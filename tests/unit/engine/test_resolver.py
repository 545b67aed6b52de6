"""Tests for SolvynEngine: stage ordering, escalation policy, events, history."""

from pathlib import Path
from typing import Any

import pytest

from solvyn.contracts import (
    AIResponse,
    EngineEvent,
    ErrorCode,
    FallbackNeeded,
    ResolutionFinished,
    ResolutionStarted,
    ResultSource,
    ResultStatus,
    SolvynError,
    StorageKind,
)
from solvyn.core.config import HistorySettings, SolvynSettings
from solvyn.core.history.storage import KeyValueFileStorage
from solvyn.engine.clock import MockClock
from solvyn.engine.resolver import SolvynEngine
from solvyn.plugins.providers import RateLimitError
from tests.doubles import FailingStorage, FakeProvider, PrefixPlugin, RecordingEvaluator


def _settings(**kwargs: Any) -> SolvynSettings:
    return SolvynSettings(**kwargs)


class TestLocalEvaluation:
    """Local evaluator stage."""

    @pytest.mark.asyncio
    async def test_simple_addition_resolves_locally(self, provider: FakeProvider) -> None:
        """'10 + 20' resolves to '30' from the local stage."""
        engine = SolvynEngine(ai=provider)

        result = await engine.solve("10 + 20")

        assert result.status == ResultStatus.SUCCESS
        assert result.source == ResultSource.LOCAL
        assert result.value == "30"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_local_hit_never_calls_provider(self, provider: FakeProvider) -> None:
        """A successful local evaluation never reaches escalation."""
        engine = SolvynEngine(_settings(escalation="auto"), ai=provider)

        await engine.solve("2 ^ 10")

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_value_formatted_to_precision(self) -> None:
        """Local values are formatted to the configured significant digits."""
        engine = SolvynEngine(_settings(precision=5))

        result = await engine.solve("1 / 3")

        assert result.value == "0.33333"

    @pytest.mark.asyncio
    async def test_caret_precedence_through_engine(self) -> None:
        engine = SolvynEngine(_settings(escalation="never"))

        assert (await engine.solve("2 * 3 ^ 2")).value == "18"
        assert (await engine.solve("-2 ^ 2")).value == "-4"

    @pytest.mark.asyncio
    async def test_complex_power_is_a_local_miss(self) -> None:
        engine = SolvynEngine(_settings(escalation="never"))

        result = await engine.solve("(-8) ^ (1 / 3)")

        assert result.status == ResultStatus.ERROR
        assert result.error is not None
        assert result.error.code == ErrorCode.UNSUPPORTED_INPUT

    @pytest.mark.asyncio
    async def test_evaluator_receives_sanitized_input(self) -> None:
        """Surrounding whitespace is trimmed before evaluation."""
        evaluator = RecordingEvaluator({"1 + 1": 2})
        engine = SolvynEngine(evaluator=evaluator)

        result = await engine.solve("   1 + 1 \n")

        assert evaluator.calls == ["1 + 1"]
        assert result.value == "2"

    @pytest.mark.asyncio
    async def test_none_value_is_a_miss(self, provider: FakeProvider) -> None:
        """An evaluator returning None falls through to escalation."""
        engine = SolvynEngine(evaluator=RecordingEvaluator({"x": None}), ai=provider)

        result = await engine.solve("x")

        assert result.source == ResultSource.AI
        assert provider.calls == ["x"]

    @pytest.mark.asyncio
    async def test_callable_value_is_a_miss(self) -> None:
        """A bare function name evaluates to a callable, which is a miss."""
        engine = SolvynEngine(_settings(escalation="manual"), ai=FakeProvider())

        result = await engine.solve("sqrt")

        assert result.status == ResultStatus.FALLBACK

    @pytest.mark.asyncio
    async def test_async_evaluator_is_awaited(self) -> None:
        """Evaluators may return an awaitable."""

        class AsyncEvaluator:
            async def evaluate(self, text: str) -> int:
                return 7

        engine = SolvynEngine(evaluator=AsyncEvaluator())

        result = await engine.solve("anything")

        assert result.value == "7"

    @pytest.mark.asyncio
    async def test_execution_time_measured_from_pipeline_entry(self, clock: MockClock) -> None:
        """execution_time_ms spans pipeline entry to result construction."""

        class SlowEvaluator:
            def evaluate(self, text: str) -> int:
                clock.advance(0.25)
                return 1

        engine = SolvynEngine(evaluator=SlowEvaluator(), clock=clock)

        result = await engine.solve("1")

        assert result.execution_time_ms == pytest.approx(250.0)


class TestSanitization:
    """Sanitizer stage."""

    @pytest.mark.asyncio
    async def test_over_length_input_is_rejected(self, provider: FakeProvider) -> None:
        """Input longer than max_input_length fails with INPUT_TOO_LONG."""
        evaluator = RecordingEvaluator()
        engine = SolvynEngine(_settings(max_input_length=10), evaluator=evaluator, ai=provider)

        result = await engine.solve("1 + 1 + 1 + 1 + 1")

        assert result.status == ResultStatus.ERROR
        assert result.error is not None
        assert result.error.code == ErrorCode.INPUT_TOO_LONG
        assert result.error.suggestion == "Shorten your expression."
        assert evaluator.calls == []
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_length_limit_applies_after_trimming(self) -> None:
        """Whitespace padding does not count toward the limit."""
        engine = SolvynEngine(_settings(max_input_length=5))

        result = await engine.solve("     1 + 2     ")

        assert result.status == ResultStatus.SUCCESS
        assert result.value == "3"


class TestEscalationPolicy:
    """Escalation precedence after a local miss."""

    @pytest.mark.asyncio
    async def test_strict_local_never_calls_provider(self, provider: FakeProvider) -> None:
        """strict-local mode turns a local miss into UNSUPPORTED_INPUT."""
        engine = SolvynEngine(_settings(mode="strict-local"), ai=provider)

        result = await engine.solve("integrate x^2")

        assert result.status == ResultStatus.ERROR
        assert result.error is not None
        assert result.error.code == ErrorCode.UNSUPPORTED_INPUT
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_offline_only_never_calls_provider(self, provider: FakeProvider) -> None:
        """offline_only wins over an auto escalation policy."""
        engine = SolvynEngine(_settings(offline_only=True, escalation="auto"), ai=provider)

        result = await engine.solve("integrate x^2")

        assert result.error is not None
        assert result.error.code == ErrorCode.UNSUPPORTED_INPUT
        assert result.error.message == "Unsupported query for offline mode."
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_never_policy_is_unsupported(self, provider: FakeProvider) -> None:
        engine = SolvynEngine(_settings(escalation="never"), ai=provider)

        result = await engine.solve("integrate x^2")

        assert result.error is not None
        assert result.error.code == ErrorCode.UNSUPPORTED_INPUT
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_provider_is_unsupported(self) -> None:
        """No provider configured means nothing to escalate to."""
        engine = SolvynEngine(_settings(escalation="auto"))

        result = await engine.solve("integrate x^2")

        assert result.error is not None
        assert result.error.code == ErrorCode.UNSUPPORTED_INPUT

    @pytest.mark.asyncio
    async def test_manual_policy_returns_fallback(self, provider: FakeProvider) -> None:
        """Manual escalation never invokes the provider."""
        engine = SolvynEngine(_settings(escalation="manual"), ai=provider)

        result = await engine.solve("integrate x^2")

        assert result.status == ResultStatus.FALLBACK
        assert result.value is None
        assert result.error is None
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_auto_policy_calls_provider_once(self, provider: FakeProvider) -> None:
        """Auto escalation calls the provider once with the sanitized input."""
        engine = SolvynEngine(_settings(escalation="auto"), ai=provider)

        result = await engine.solve("  integrate x^2  ")

        assert provider.calls == ["integrate x^2"]
        assert result.status == ResultStatus.SUCCESS
        assert result.source == ResultSource.AI
        assert result.value == "42"
        assert result.steps == ("thought hard",)
        assert result.confidence == 0.9

    @pytest.mark.asyncio
    async def test_provider_failure_is_invalid_expression_without_retry(self) -> None:
        """Provider errors become INVALID_EXPRESSION with the message preserved."""
        provider = FakeProvider(error=RateLimitError("openai request failed (429): Too Many Requests"))
        engine = SolvynEngine(ai=provider)

        result = await engine.solve("integrate x^2")

        assert result.status == ResultStatus.ERROR
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_EXPRESSION
        assert "429" in result.error.message
        assert provider.calls == ["integrate x^2"]


class TestPlugins:
    """Plugin stage."""

    @pytest.mark.asyncio
    async def test_plugin_override_skips_evaluator_and_provider(self, provider: FakeProvider) -> None:
        """A matching plugin's output is final."""
        evaluator = RecordingEvaluator({"calc: 1 + 1": 2})
        plugin = PrefixPlugin("calc", "calc:")
        engine = SolvynEngine(evaluator=evaluator, ai=provider, plugins=[plugin])

        result = await engine.solve("calc: 1 + 1")

        assert result.status == ResultStatus.SUCCESS
        assert result.source == ResultSource.PLUGIN
        assert result.value == "1 + 1"
        assert result.steps == ("handled by calc",)
        assert evaluator.calls == []
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_first_matching_plugin_wins(self) -> None:
        """Plugins are tried in registration order."""
        first = PrefixPlugin("first", "x")
        second = PrefixPlugin("second", "x")
        engine = SolvynEngine(plugins=[first])
        engine.use(second)

        await engine.solve("x marks the spot")

        assert first.solved == ["x marks the spot"]
        assert second.solved == []

    @pytest.mark.asyncio
    async def test_non_matching_plugins_fall_through(self) -> None:
        engine = SolvynEngine(plugins=[PrefixPlugin("calc", "calc:")])

        result = await engine.solve("3 * 3")

        assert result.source == ResultSource.LOCAL
        assert result.value == "9"

    @pytest.mark.asyncio
    async def test_async_plugin_solve_is_awaited(self) -> None:
        engine = SolvynEngine(plugins=[PrefixPlugin("later", "later:", is_async=True)])

        result = await engine.solve("later: done")

        assert result.value == "done"

    @pytest.mark.asyncio
    async def test_plugin_exception_becomes_error_result(self) -> None:
        """Plugin failures are not retried and do not fall through."""

        class BrokenPlugin:
            name = "broken"

            def match(self, text: str) -> bool:
                return True

            def solve(self, text: str) -> Any:
                raise RuntimeError("plugin exploded")

        evaluator = RecordingEvaluator({"1": 1})
        engine = SolvynEngine(evaluator=evaluator, plugins=[BrokenPlugin()])

        result = await engine.solve("1")

        assert result.status == ResultStatus.ERROR
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_EXPRESSION
        assert result.error.message == "plugin exploded"
        assert evaluator.calls == []

    @pytest.mark.asyncio
    async def test_plugin_error_code_is_preserved(self) -> None:
        """A SolvynError raised by a plugin keeps its own code."""

        class StrictPlugin:
            name = "strict"

            def match(self, text: str) -> bool:
                return True

            def solve(self, text: str) -> Any:
                raise SolvynError("UNIT_MISMATCH", "Cannot add metres to seconds.", "Convert units first.")

        engine = SolvynEngine(plugins=[StrictPlugin()])

        result = await engine.solve("1 m + 1 s")

        assert result.error is not None
        assert result.error.code == "UNIT_MISMATCH"
        assert result.error.suggestion == "Convert units first."

    def test_duplicate_plugin_name_rejected(self) -> None:
        engine = SolvynEngine(plugins=[PrefixPlugin("calc", "a")])

        with pytest.raises(ValueError, match="already registered"):
            engine.use(PrefixPlugin("calc", "b"))


class TestLifecycleEvents:
    """Per-engine listener registry."""

    @pytest.mark.asyncio
    async def test_start_then_success(self) -> None:
        received: list[Any] = []
        engine = SolvynEngine()
        engine.on(EngineEvent.START, received.append)
        engine.on(EngineEvent.SUCCESS, received.append)
        engine.on(EngineEvent.ERROR, received.append)

        result = await engine.solve("1 + 1")

        assert [type(e) for e in received] == [ResolutionStarted, ResolutionFinished]
        assert received[0].input == "1 + 1"
        assert received[1].result is result
        assert received[1].event == EngineEvent.SUCCESS

    @pytest.mark.asyncio
    async def test_error_event_for_error_result(self) -> None:
        errors: list[ResolutionFinished] = []
        engine = SolvynEngine(_settings(max_input_length=1))
        engine.on("solve:error", errors.append)

        result = await engine.solve("1 + 1")

        assert len(errors) == 1
        assert errors[0].result is result

    @pytest.mark.asyncio
    async def test_fallback_event_carries_sanitized_input(self, provider: FakeProvider) -> None:
        """The manual branch emits only the fallback event."""
        events: list[tuple[str, Any]] = []
        engine = SolvynEngine(_settings(escalation="manual"), ai=provider)
        for name in (EngineEvent.SUCCESS, EngineEvent.ERROR, EngineEvent.FALLBACK):
            engine.on(name, lambda payload, name=name: events.append((name, payload)))

        await engine.solve("  integrate x^2 ")

        assert [name for name, _ in events] == [EngineEvent.FALLBACK]
        payload = events[0][1]
        assert isinstance(payload, FallbackNeeded)
        assert payload.input == "  integrate x^2 "
        assert payload.sanitized_input == "integrate x^2"

    @pytest.mark.asyncio
    async def test_listener_exception_does_not_abort_pipeline(self) -> None:
        """A failing listener is logged; later listeners and the result are unaffected."""
        calls: list[str] = []

        def broken(_: Any) -> None:
            raise RuntimeError("listener bug")

        engine = SolvynEngine()
        engine.on(EngineEvent.START, broken)
        engine.on(EngineEvent.START, lambda _: calls.append("start"))
        engine.on(EngineEvent.SUCCESS, broken)
        engine.on(EngineEvent.SUCCESS, lambda _: calls.append("success"))

        result = await engine.solve("2 * 21")

        assert result.value == "42"
        assert calls == ["start", "success"]

    @pytest.mark.asyncio
    async def test_listeners_are_per_engine(self) -> None:
        seen: list[Any] = []
        first = SolvynEngine()
        second = SolvynEngine()
        first.on(EngineEvent.SUCCESS, seen.append)

        await second.solve("1")

        assert seen == []

    def test_unknown_event_name_rejected(self) -> None:
        engine = SolvynEngine()

        with pytest.raises(ValueError):
            engine.on("solve:finished", lambda _: None)

    @pytest.mark.asyncio
    async def test_off_removes_listener(self) -> None:
        seen: list[Any] = []
        engine = SolvynEngine()
        engine.on(EngineEvent.SUCCESS, seen.append)

        assert engine.off(EngineEvent.SUCCESS, seen.append) is True
        await engine.solve("1")

        assert seen == []


class TestHistoryRecording:
    """History handoff after terminal results."""

    @pytest.mark.asyncio
    async def test_history_records_raw_input(self, clock: MockClock) -> None:
        """History reflects what the caller typed, not the sanitized text."""
        engine = SolvynEngine(clock=clock)

        result = await engine.solve("  10 + 20  ")

        assert engine.history is not None
        items = engine.history.get()
        assert len(items) == 1
        assert items[0].input == "  10 + 20  "
        assert items[0].result is result
        assert items[0].timestamp == 1_700_000_000_000

    @pytest.mark.asyncio
    async def test_every_terminal_status_is_recorded(self, provider: FakeProvider) -> None:
        engine = SolvynEngine(_settings(escalation="manual", max_input_length=20), ai=provider)

        await engine.solve("1 + 1")
        await engine.solve("integrate x^2")
        await engine.solve("x" * 21)

        assert engine.history is not None
        statuses = [item.result.status for item in engine.history.get()]
        assert statuses == [ResultStatus.SUCCESS, ResultStatus.FALLBACK, ResultStatus.ERROR]

    @pytest.mark.asyncio
    async def test_item_ids_are_unique(self) -> None:
        engine = SolvynEngine()

        for _ in range(5):
            await engine.solve("1")

        assert engine.history is not None
        ids = [item.id for item in engine.history.get()]
        assert len(set(ids)) == 5

    @pytest.mark.asyncio
    async def test_history_disabled(self) -> None:
        engine = SolvynEngine(_settings(history=HistorySettings(enabled=False)))

        result = await engine.solve("1 + 1")

        assert engine.history is None
        assert result.value == "2"

    @pytest.mark.asyncio
    async def test_history_bound_from_settings(self) -> None:
        engine = SolvynEngine(_settings(history=HistorySettings(max_items=2)))

        for expression in ("1", "2", "3"):
            await engine.solve(expression)

        assert engine.history is not None
        assert [item.input for item in engine.history.get()] == ["2", "3"]

    @pytest.mark.asyncio
    async def test_storage_adapter_built_from_settings(self, tmp_path: Path) -> None:
        """Direct construction honors history.storage without an adapter argument."""
        settings = _settings(history=HistorySettings(storage=StorageKind.KEY_VALUE, key_value_dir=tmp_path, key="calc"))
        engine = SolvynEngine(settings)

        await engine.solve("1 + 1")

        assert engine.history is not None
        assert isinstance(engine.history.adapter, KeyValueFileStorage)
        assert (tmp_path / "calc.json").exists()

    def test_custom_storage_tag_requires_adapter(self) -> None:
        with pytest.raises(ValueError, match="no adapter instance"):
            SolvynEngine(_settings(history=HistorySettings(storage=StorageKind.CUSTOM)))

    @pytest.mark.asyncio
    async def test_storage_failure_never_fails_resolution(self) -> None:
        """Adapter exceptions are reported to the callback and swallowed."""
        reported: list[tuple[str, Exception]] = []
        engine = SolvynEngine(
            storage=FailingStorage(),
            on_storage_error=lambda operation, exc: reported.append((operation, exc)),
        )

        result = await engine.solve("6 * 7")

        assert result.status == ResultStatus.SUCCESS
        assert result.value == "42"
        assert [operation for operation, _ in reported] == ["load", "save"]
        assert all(isinstance(exc, OSError) for _, exc in reported)
        assert engine.history is not None
        assert len(engine.history.get()) == 1


class TestManualEscalation:
    """escalate(): the continuation after a fallback result."""

    @pytest.mark.asyncio
    async def test_fallback_then_escalate(self, provider: FakeProvider) -> None:
        """The caller resolves a fallback by calling escalate()."""
        engine = SolvynEngine(_settings(escalation="manual"), ai=provider)

        fallback = await engine.solve("integrate x^2")
        result = await engine.escalate("integrate x^2")

        assert fallback.status == ResultStatus.FALLBACK
        assert result.status == ResultStatus.SUCCESS
        assert result.source == ResultSource.AI
        assert provider.calls == ["integrate x^2"]
        assert engine.history is not None
        assert [item.result.status for item in engine.history.get()] == [ResultStatus.FALLBACK, ResultStatus.SUCCESS]

    @pytest.mark.asyncio
    async def test_escalate_skips_plugins_and_evaluator(self, provider: FakeProvider) -> None:
        evaluator = RecordingEvaluator({"1 + 1": 2})
        plugin = PrefixPlugin("all", "")
        engine = SolvynEngine(_settings(escalation="manual"), evaluator=evaluator, ai=provider, plugins=[plugin])

        result = await engine.escalate("1 + 1")

        assert result.source == ResultSource.AI
        assert evaluator.calls == []
        assert plugin.solved == []

    @pytest.mark.asyncio
    async def test_escalate_honours_policy_boundary(self, provider: FakeProvider) -> None:
        """strict-local still forbids provider contact."""
        engine = SolvynEngine(_settings(mode="strict-local", escalation="manual"), ai=provider)

        result = await engine.escalate("integrate x^2")

        assert result.error is not None
        assert result.error.code == ErrorCode.UNSUPPORTED_INPUT
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_escalate_sanitizes_input(self, provider: FakeProvider) -> None:
        engine = SolvynEngine(_settings(max_input_length=3), ai=provider)

        result = await engine.escalate("integrate x^2")

        assert result.error is not None
        assert result.error.code == ErrorCode.INPUT_TOO_LONG
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_escalate_emits_start_and_outcome(self) -> None:
        events: list[str] = []
        engine = SolvynEngine(ai=FakeProvider(response=AIResponse(value="x^3/3 + C")))
        engine.on(EngineEvent.START, lambda _: events.append("start"))
        engine.on(EngineEvent.SUCCESS, lambda _: events.append("success"))

        result = await engine.escalate("integrate x^2")

        assert result.value == "x^3/3 + C"
        assert events == ["start", "success"]

    @pytest.mark.asyncio
    async def test_resolve_again_with_manual_policy_is_fallback_again(self, provider: FakeProvider) -> None:
        engine = SolvynEngine(_settings(escalation="manual"), ai=provider)

        await engine.solve("integrate x^2")
        again = await engine.solve("integrate x^2")

        assert again.status == ResultStatus.FALLBACK
        assert provider.calls == []

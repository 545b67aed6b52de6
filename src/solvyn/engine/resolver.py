# src/solvyn/engine/resolver.py
"""SolvynEngine: the resolution pipeline.

Stage order for solve():
1. Sanitize the raw input
2. Plugins, in registration order; the first match wins
3. Local evaluator (a raise, None, or callable value is a miss)
4. Escalation policy: unsupported / manual fallback / one provider call

Every call produces exactly one Result and never raises. Terminal results
are recorded in history under the caller's raw input.
"""

from __future__ import annotations

import inspect
import uuid
from collections.abc import Iterable
from typing import Any

import structlog

from solvyn.contracts.enums import EngineEvent, EscalationPolicy, ResultSource, ResultStatus
from solvyn.contracts.errors import ErrorInfo, SolvynError, UnsupportedInputError
from solvyn.contracts.events import FallbackNeeded, ResolutionFinished, ResolutionStarted
from solvyn.contracts.history import HistoryItem
from solvyn.contracts.protocols import AIProvider, Evaluator, Plugin, StorageAdapter
from solvyn.contracts.results import PluginOutput, Result
from solvyn.core.config import SolvynSettings
from solvyn.core.history.manager import HistoryManager, StorageErrorCallback
from solvyn.core.history.storage import create_storage_adapter
from solvyn.core.sanitizer import sanitize_input
from solvyn.engine.clock import DEFAULT_CLOCK, Clock
from solvyn.engine.evaluator import ArithmeticEvaluator, format_value
from solvyn.engine.events import Listener, ListenerRegistry

logger = structlog.get_logger(__name__)


class SolvynEngine:
    """Resolves free-form input through plugins, local evaluation, and an AI provider.

    Example:
        engine = SolvynEngine(SolvynSettings(escalation="manual"), ai=provider)
        result = await engine.solve("10 + 20")          # success, source=local
        result = await engine.solve("integrate x^2")    # fallback
        result = await engine.escalate("integrate x^2") # success, source=ai
    """

    def __init__(
        self,
        settings: SolvynSettings | None = None,
        *,
        evaluator: Evaluator | None = None,
        ai: AIProvider | None = None,
        plugins: Iterable[Plugin] = (),
        history: HistoryManager | None = None,
        storage: StorageAdapter | None = None,
        on_storage_error: StorageErrorCallback | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Validated settings (defaults to SolvynSettings())
            evaluator: Local evaluator (defaults to ArithmeticEvaluator)
            ai: Provider used for escalation, if any
            plugins: Plugins in match priority order
            history: Pre-built history manager; overrides storage
            storage: Adapter for a history manager built from settings; when
                absent, the adapter named by settings.history.storage is built
            on_storage_error: Diagnostic callback for storage failures
            clock: Clock for execution times and timestamps

        Raises:
            ValueError: If history.storage is `custom` and no adapter was supplied
        """
        self._settings = settings if settings is not None else SolvynSettings()
        self._evaluator: Evaluator = evaluator if evaluator is not None else ArithmeticEvaluator()
        self._ai = ai
        self._plugins: list[Plugin] = []
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._listeners = ListenerRegistry()

        for plugin in plugins:
            self.use(plugin)

        if history is not None:
            self._history: HistoryManager | None = history
        elif self._settings.history.enabled:
            if storage is None:
                storage = create_storage_adapter(self._settings.history, timeout=self._settings.timeout_seconds)
            self._history = HistoryManager(
                storage,
                max_items=self._settings.history.max_items,
                on_storage_error=on_storage_error,
            )
        else:
            self._history = None

    # === Properties ===

    @property
    def settings(self) -> SolvynSettings:
        return self._settings

    @property
    def history(self) -> HistoryManager | None:
        """History manager, or None when history is disabled."""
        return self._history

    @property
    def plugins(self) -> list[Plugin]:
        return list(self._plugins)

    @property
    def ai(self) -> AIProvider | None:
        return self._ai

    # === Registration ===

    def use(self, plugin: Plugin) -> None:
        """Append a plugin to the match order.

        Raises:
            ValueError: If a plugin with the same name is already registered
        """
        if any(existing.name == plugin.name for existing in self._plugins):
            raise ValueError(f"Plugin '{plugin.name}' is already registered")
        self._plugins.append(plugin)

    def on(self, event: EngineEvent | str, listener: Listener) -> None:
        """Register a lifecycle listener on this engine."""
        self._listeners.on(event, listener)

    def off(self, event: EngineEvent | str, listener: Listener) -> bool:
        return self._listeners.off(event, listener)

    # === Resolution ===

    async def solve(self, text: str) -> Result:
        """Resolve text through the full pipeline. Never raises."""
        started = self._clock.monotonic()
        self._listeners.emit(EngineEvent.START, ResolutionStarted(input=text))

        try:
            safe = sanitize_input(text, self._settings.max_input_length)
        except SolvynError as e:
            return await self._complete(text, Result.failure(e.info, execution_time_ms=self._elapsed_ms(started)))

        try:
            result = await self._run_plugins(safe, started)
            if result is None:
                result = await self._run_evaluator(safe, started)
            if result is None:
                result = await self._run_escalation(safe, started, manual=True)
        except Exception as e:
            logger.debug("resolution_failed", error=str(e), error_type=type(e).__name__)
            result = Result.failure(ErrorInfo.from_exception(e), execution_time_ms=self._elapsed_ms(started))

        return await self._complete(text, result, safe)

    async def escalate(self, text: str) -> Result:
        """Continue a manual fallback: call the provider directly.

        Skips plugins and local evaluation. The hard policy boundary
        (offline_only, strict-local, never, no provider) still applies.
        Never raises.
        """
        started = self._clock.monotonic()
        self._listeners.emit(EngineEvent.START, ResolutionStarted(input=text))

        try:
            safe = sanitize_input(text, self._settings.max_input_length)
            result = await self._run_escalation(safe, started, manual=False)
        except Exception as e:
            result = Result.failure(ErrorInfo.from_exception(e), execution_time_ms=self._elapsed_ms(started))

        return await self._complete(text, result)

    # === Stages ===

    async def _run_plugins(self, safe: str, started: float) -> Result | None:
        for plugin in self._plugins:
            if not plugin.match(safe):
                continue
            output: Any = plugin.solve(safe)
            if inspect.isawaitable(output):
                output = await output
            if isinstance(output, str):
                output = PluginOutput(value=output)
            logger.debug("plugin_matched", plugin=plugin.name)
            return Result.success(
                str(output.value),
                ResultSource.PLUGIN,
                steps=tuple(output.steps),
                execution_time_ms=self._elapsed_ms(started),
            )
        return None

    async def _run_evaluator(self, safe: str, started: float) -> Result | None:
        try:
            value = self._evaluator.evaluate(safe)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            logger.debug("local_evaluation_miss", error=str(e), error_type=type(e).__name__)
            return None

        if value is None or callable(value):
            logger.debug("local_evaluation_miss", value_type=type(value).__name__)
            return None

        return Result.success(
            format_value(value, self._settings.precision),
            ResultSource.LOCAL,
            execution_time_ms=self._elapsed_ms(started),
        )

    async def _run_escalation(self, safe: str, started: float, *, manual: bool) -> Result:
        """Apply the escalation policy.

        Args:
            manual: Whether a manual policy short-circuits to a fallback result.
                escalate() passes False to perform the deferred provider call.

        Raises:
            UnsupportedInputError: If policy forbids contacting a provider
        """
        settings = self._settings
        if not settings.allows_escalation:
            raise UnsupportedInputError(settings.escalation_denied_reason)
        if self._ai is None:
            raise UnsupportedInputError("Input cannot be resolved locally and no AI provider is configured.")

        if manual and settings.escalation == EscalationPolicy.MANUAL:
            return Result.fallback(execution_time_ms=self._elapsed_ms(started))

        try:
            response = await self._ai.solve(safe)
        except Exception as e:
            logger.warning("provider_failed", provider=self._ai.name, error=str(e), error_type=type(e).__name__)
            raise

        return Result.success(
            str(response.value),
            ResultSource.AI,
            steps=tuple(response.steps),
            confidence=response.confidence,
            execution_time_ms=self._elapsed_ms(started),
        )

    # === Completion ===

    async def _complete(self, text: str, result: Result, safe: str | None = None) -> Result:
        """Emit the outcome event and record the result in history."""
        if result.status == ResultStatus.SUCCESS:
            self._listeners.emit(EngineEvent.SUCCESS, ResolutionFinished(input=text, result=result, event=EngineEvent.SUCCESS))
        elif result.status == ResultStatus.FALLBACK:
            payload = FallbackNeeded(input=text, sanitized_input=safe if safe is not None else text.strip(), result=result)
            self._listeners.emit(EngineEvent.FALLBACK, payload)
        else:
            self._listeners.emit(EngineEvent.ERROR, ResolutionFinished(input=text, result=result, event=EngineEvent.ERROR))

        if self._history is not None and result.status.is_terminal:
            item = HistoryItem(id=uuid.uuid4().hex, input=text, result=result, timestamp=self._clock.epoch_ms())
            await self._history.add(item)
        return result

    def _elapsed_ms(self, started: float) -> float:
        return (self._clock.monotonic() - started) * 1000.0

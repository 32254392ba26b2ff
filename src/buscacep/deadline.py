"""Per-call deadlines and cooperative cancellation of provider calls."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .models import Failed, ProviderOutcome
from .utils.logging_setup import setup_logger

if TYPE_CHECKING:
    from .providers.base import Provider

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("deadline")

DEFAULT_TIMEOUT: Final = 5.0
TIMEOUT_REASON: Final = "timeout"


class Deadline:
    """Wall-clock budget of a single provider call plus its cancellation signal.

    Adapters read :meth:`remaining` to bound their network operation and may
    register callbacks with :meth:`on_cancel` to abort it (e.g. closing the
    HTTP session). The controller calls :meth:`cancel` when the budget elapses
    or when the result is no longer wanted.
    """

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds
        self._cancelled = threading.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.cancelled or self.remaining() <= 0.0

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses; True when cancelled."""

        return self._cancelled.wait(timeout)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:  # noqa: BLE001
                LOGGER.debug("Callback de cancelamento falhou", exc_info=True)


@dataclass(frozen=True)
class Settled:
    outcome: ProviderOutcome
    elapsed_ms: int


def _elapsed_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)


def _invoke(provider: Provider, cep: str, deadline: Deadline, started_at: float) -> Settled:
    try:
        outcome = provider.call(cep, deadline)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Provedor %s levantou excecao inesperada", provider.name)
        outcome = Failed(f"erro inesperado: {exc}")
    if deadline.cancelled:
        outcome = Failed(TIMEOUT_REASON)
    return Settled(outcome, _elapsed_ms(started_at))


class PendingCall:
    """One in-flight provider call started by :class:`TimeoutController`."""

    def __init__(
        self,
        index: int,
        provider: Provider,
        deadline: Deadline,
        future: Future[Settled],
        started_at: float,
    ) -> None:
        self.index = index
        self.provider = provider
        self.deadline = deadline
        self.future = future
        self.started_at = started_at

    def settle(self) -> Settled:
        """Wait for the call, but never past its deadline."""

        try:
            return self.future.result(timeout=self.deadline.remaining())
        except FutureTimeoutError:
            LOGGER.warning(
                "Provedor %s excedeu o prazo de %.1fs", self.provider.name, self.deadline.seconds
            )
            self.abandon()
            return Settled(Failed(TIMEOUT_REASON), _elapsed_ms(self.started_at))

    def abandon(self) -> None:
        """Cancel the call; whatever it produces afterwards is ignored."""

        self.deadline.cancel()
        self.future.cancel()


class TimeoutController:
    """Starts provider calls on an executor, each bounded by its own deadline."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout deve ser positivo: {timeout}")
        self.timeout = float(timeout)

    def start(
        self,
        executor: ThreadPoolExecutor,
        provider: Provider,
        cep: str,
        index: int = 0,
    ) -> PendingCall:
        deadline = Deadline(self.timeout)
        started_at = time.monotonic()
        future = executor.submit(_invoke, provider, cep, deadline, started_at)
        return PendingCall(index, provider, deadline, future, started_at)


@contextmanager
def call_pool(size: int) -> Iterator[ThreadPoolExecutor]:
    """Request-scoped executor that never waits for abandoned calls on exit."""

    executor = ThreadPoolExecutor(max_workers=max(1, size), thread_name_prefix="buscacep")
    try:
        yield executor
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

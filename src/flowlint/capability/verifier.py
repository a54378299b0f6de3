"""Deep verification of capability implementations.

After the static passes succeed, each step's implementation unit is actually
loaded and checked for a callable matching the step's function name. This is
the only pass doing I/O, so it is also the only one that can fail for reasons
outside the document (missing file, syntax error in the implementation).
Such failures become diagnostics; nothing here raises for a bad unit.

Concurrency:
    - One load per distinct (category, module), each on its own daemon thread
    - Loads are independent; a failure is isolated to the steps using that unit
    - An optional timeout or cancel event stops waiting; steps whose unit was
      not loaded yet are reported as unverified, not failed
    - Load threads are daemons and are never joined, so a hung load does not
      keep the process alive once verification returns
    - No retries
"""

import asyncio
import threading
from collections.abc import Sequence
from typing import Any

import structlog

from flowlint.capability.loaders import (
    ImplementationLoader,
    exported_callables,
    resolve_function,
)
from flowlint.types import Diagnostic, DiagnosticKind, Step, VerificationReport

logger = structlog.get_logger(__name__)

UnitKey = tuple[str, str]


def _load_failed(step: Step, key: UnitKey, error: BaseException) -> Diagnostic:
    category, module = key
    return Diagnostic(
        location=f"/steps/{step.id}/capabilityPath",
        message=(
            f'Step "{step.id}": Failed to load implementation {category}/{module}: '
            f"{type(error).__name__}: {error}"
        ),
        kind=DiagnosticKind.MODULE_LOAD_FAILED,
        suggestion=(
            f"Check that the implementation for {category}.{module} exists and imports cleanly"
        ),
    )


def _malformed_path(step: Step) -> Diagnostic:
    return Diagnostic(
        location=f"/steps/{step.id}/capabilityPath",
        message=f'Step "{step.id}": Cannot locate an implementation for "{step.capability_path}"',
        kind=DiagnosticKind.MODULE_LOAD_FAILED,
        suggestion="Use format: category.module.function",
    )


def _function_missing(step: Step, key: UnitKey, function: str, unit: Any) -> Diagnostic:
    category, module = key
    available = exported_callables(unit)
    if available:
        suggestion = f"Available functions: {', '.join(available)}"
    else:
        suggestion = f"Implementation {category}/{module} exports no callables"
    return Diagnostic(
        location=f"/steps/{step.id}/capabilityPath",
        message=(
            f'Step "{step.id}": Function "{function}" not found '
            f"in implementation {category}/{module}"
        ),
        kind=DiagnosticKind.FUNCTION_NOT_FOUND,
        suggestion=suggestion + ". The catalog entry may be out of sync with the implementation",
    )


def _settle(future: asyncio.Future[Any], unit: Any, error: BaseException | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(unit)


def _start_load(
    loop: asyncio.AbstractEventLoop, loader: ImplementationLoader, key: UnitKey
) -> asyncio.Future[Any]:
    """Run ``loader.load`` on a daemon thread and return a future for its outcome.

    The future is settled on the loop thread. A load finishing after the loop
    has closed is discarded.
    """
    future = loop.create_future()

    def run() -> None:
        unit = None
        error: BaseException | None = None
        try:
            unit = loader.load(*key)
        except BaseException as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(_settle, future, unit, error)
        except RuntimeError:
            logger.debug("implementation_load_discarded", unit=f"{key[0]}.{key[1]}")

    threading.Thread(target=run, daemon=True, name=f"flowlint-load-{key[0]}.{key[1]}").start()
    return future


async def _wait_for_loads(
    futures: set[asyncio.Future[Any]],
    timeout: float | None,
    cancel_event: asyncio.Event | None,
) -> set[asyncio.Future[Any]]:
    """Wait until all loads finish, the deadline passes, or cancellation is requested.

    Returns:
        Futures still pending when waiting stopped (already cancelled)
    """
    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout
    stopper = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
    pending = set(futures)

    try:
        while pending:
            remaining = None if deadline is None else max(0.0, deadline - loop.time())
            waiters = (pending | {stopper}) if stopper is not None else pending
            done, _ = await asyncio.wait(
                waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            pending -= done
            if not done or (stopper is not None and stopper in done):
                break
    finally:
        for future in pending:
            future.cancel()
        if stopper is not None:
            stopper.cancel()

    return pending


async def verify_capability_implementations(
    steps: Sequence[Step],
    loader: ImplementationLoader,
    timeout: float | None = None,
    cancel_event: asyncio.Event | None = None,
) -> VerificationReport:
    """Load every step's implementation unit and check its function exists.

    Args:
        steps: Steps of a definition that passed the static passes
        loader: Resolves (category, module) to an implementation unit
        timeout: Seconds to wait for all loads; None waits indefinitely
        cancel_event: When set, stop waiting and report what finished

    Returns:
        VerificationReport with diagnostics in step order plus the ids of
        verified and unverified steps
    """
    units: dict[UnitKey, list[Step]] = {}
    for step in steps:
        segments = step.segments
        if segments is not None:
            units.setdefault((segments[0], segments[1]), []).append(step)

    futures: dict[UnitKey, asyncio.Future[Any]] = {}
    pending: set[asyncio.Future[Any]] = set()
    if units:
        loop = asyncio.get_running_loop()
        futures = {key: _start_load(loop, loader, key) for key in units}
        pending = await _wait_for_loads(set(futures.values()), timeout, cancel_event)

    outcomes: dict[str, Diagnostic | None] = {}
    for key, unit_steps in units.items():
        future = futures[key]
        if future in pending:
            logger.debug("implementation_unverified", unit=f"{key[0]}.{key[1]}")
            continue

        error = future.exception()
        if error is not None:
            logger.debug("implementation_load_failed", unit=f"{key[0]}.{key[1]}", error=str(error))
            for step in unit_steps:
                outcomes[step.id] = _load_failed(step, key, error)
            continue

        unit = future.result()
        for step in unit_steps:
            function = step.capability_path.split(".")[2]
            if resolve_function(unit, function) is None:
                logger.debug("implementation_function_missing", step_id=step.id, function=function)
                outcomes[step.id] = _function_missing(step, key, function, unit)
            else:
                outcomes[step.id] = None

    report = VerificationReport()
    for step in steps:
        if step.segments is None:
            report.verified.append(step.id)
            report.diagnostics.append(_malformed_path(step))
        elif step.id not in outcomes:
            report.unverified.append(step.id)
        else:
            report.verified.append(step.id)
            diagnostic = outcomes[step.id]
            if diagnostic is not None:
                report.diagnostics.append(diagnostic)

    logger.debug(
        "implementation_verification_complete",
        verified=len(report.verified),
        unverified=len(report.unverified),
        failures=len(report.diagnostics),
    )
    return report


def verify_capability_implementations_sync(
    steps: Sequence[Step],
    loader: ImplementationLoader,
    timeout: float | None = None,
) -> VerificationReport:
    """Synchronous wrapper around verify_capability_implementations.

    Must not be called from inside a running event loop.
    """
    return asyncio.run(verify_capability_implementations(steps, loader, timeout=timeout))

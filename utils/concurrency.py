"""Run independent store reads side by side inside the current app."""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List

from flask import current_app


def run_concurrently(*calls: Callable[[], Any]) -> List[Any]:
    """Invoke ``calls`` and return their results in order.

    Each call runs in its own thread with a fresh application context (and so
    its own database session) when ``PARALLEL_PROGRESS_READS`` is enabled.
    The first exception raised by any call propagates unchanged.
    """
    if len(calls) < 2 or not current_app.config.get("PARALLEL_PROGRESS_READS"):
        return [call() for call in calls]

    app = current_app._get_current_object()

    def _in_app_context(call: Callable[[], Any]) -> Any:
        with app.app_context():
            return call()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(_in_app_context, call) for call in calls]
        return [future.result() for future in futures]

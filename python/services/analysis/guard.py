"""
Execution Guard

Every external model call runs under a time ceiling. A breach cancels the
call and surfaces as AnalysisTimeoutError, never as an empty result.
"""

import asyncio
import time
from typing import Any, Awaitable, Dict, Optional

from core.exceptions import AppException, AnalysisTimeoutError, ModelServiceError
from core.logging import get_logger, log_model_call

logger = get_logger(__name__)


class ExecutionGuard:
    """
    Time budget and failure typing around model calls.

    One guard per gemstone run; `timings` holds elapsed ms per step.
    """

    def __init__(self, model_id: str = "unknown"):
        self.model_id = model_id
        self.timings: Dict[str, float] = {}

    async def run(
        self,
        awaitable: Awaitable[Any],
        step: str,
        gemstone_id: Optional[str],
        timeout: float,
        model: Optional[str] = None,
    ) -> Any:
        """
        Await `awaitable` with a ceiling of `timeout` seconds.
        `model` overrides the model id in the call log.

        Raises:
            AnalysisTimeoutError: ceiling breached, the call is cancelled
            AppException: typed failures pass through unchanged
            ModelServiceError: anything else raised by the model client
        """
        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            self._record(step, start)
            logger.warning(
                f"[Guard] {step} timed out after {timeout:.0f}s for gemstone {gemstone_id}"
            )
            raise AnalysisTimeoutError(step=step, timeout=timeout, gemstone_id=gemstone_id)
        except AppException as e:
            self._record(step, start)
            if gemstone_id and getattr(e, "gemstone_id", "") is None:
                e.gemstone_id = gemstone_id
                e.details["gemstone_id"] = gemstone_id
            raise
        except Exception as e:
            self._record(step, start)
            logger.error(f"[Guard] {step} failed for gemstone {gemstone_id}: {type(e).__name__}: {e}")
            raise ModelServiceError(f"{type(e).__name__}: {e}", step=step, gemstone_id=gemstone_id) from e

        duration_ms = self._record(step, start)
        log_model_call(logger, step, model or self.model_id, duration_ms, gemstone=gemstone_id)
        return result

    def _record(self, step: str, start: float) -> float:
        duration_ms = (time.perf_counter() - start) * 1000
        self.timings[step] = duration_ms
        return duration_ms

"""
Downstream forwarder.

Executes the single outbound call authorized by a usage gate Decision and
commits usage only after the call succeeded.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from src.core.usage.exceptions import DownstreamError, UpstreamUnreachable
from src.core.usage.schemas import ActionType, Decision
from src.utils.timer_utils import elapsed_ms

from .config import ForwardingConfig, get_forwarding_config

logger = logging.getLogger(__name__)


def _response_body(response: httpx.Response) -> Any:
    """Downstream body as JSON when parseable, else as text."""
    try:
        return response.json()
    except ValueError:
        return response.text


class DownstreamForwarder:
    """Single-attempt HTTP forwarder over one shared httpx.AsyncClient."""

    def __init__(
        self,
        config: Optional[ForwardingConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_forwarding_config()
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout_seconds)

    async def forward(
        self,
        decision: Decision,
        payload: Dict[str, Any],
        snapshot: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        POST the payload to the decision's target.

        Args:
            decision: Allow decision from the usage gate
            payload: JSON body sent downstream
            snapshot: What to record in the usage event (defaults to payload)

        Returns:
            Downstream JSON body (text body wrapped as {"response": text})

        Raises:
            DownstreamError: Downstream answered with a non-2xx status
            UpstreamUnreachable: Connection error, timeout or other transport failure
        """
        target = decision.target
        start_time = time.monotonic()

        try:
            response = await self._client.post(target.url, json=payload, headers=target.headers)
        except httpx.RequestError as e:
            logger.error(
                f"Downstream unreachable: {decision.action_type.value}={decision.target_id}, "
                f"url={target.url}, error={type(e).__name__}: {e}"
            )
            raise UpstreamUnreachable(target.url, str(e) or type(e).__name__) from e

        duration_ms = elapsed_ms(start_time)

        if not response.is_success:
            body = _response_body(response)
            logger.warning(
                f"Downstream error: {decision.action_type.value}={decision.target_id}, "
                f"status={response.status_code}, duration={duration_ms:.0f}ms"
            )
            message = (
                "Error from model provider"
                if decision.action_type is ActionType.CHAT
                else "Error from workflow engine"
            )
            raise DownstreamError(response.status_code, body, message=message)

        logger.info(
            f"Forwarded {decision.action_type.value}={decision.target_id} for "
            f"user={decision.account.user_id}: status={response.status_code}, "
            f"duration={duration_ms:.0f}ms, managed={decision.target.managed}"
        )

        result = _response_body(response)

        try:
            await decision.commit(snapshot if snapshot is not None else payload)
        except Exception:
            # A failed counter update does not fail the forwarded call
            logger.exception(
                f"Failed to commit usage for user={decision.account.user_id}, "
                f"{decision.action_type.value}={decision.target_id}"
            )

        if isinstance(result, str):
            return {"response": result}
        return result

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


# Process-wide forwarder
_forwarder: Optional[DownstreamForwarder] = None


def get_forwarder() -> DownstreamForwarder:
    """Get the process-wide forwarder, creating it on first use."""
    global _forwarder
    if _forwarder is None:
        _forwarder = DownstreamForwarder()
    return _forwarder


async def close_forwarder() -> None:
    """Close and drop the process-wide forwarder. Called at shutdown."""
    global _forwarder
    if _forwarder is not None:
        await _forwarder.aclose()
        _forwarder = None
        logger.info("Downstream forwarder closed")

"""
HTTP client for the LLM server.

Only two endpoints are used: ``GET /health`` and ``POST /api/v1/inference``.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

import httpx
from loguru import logger

from .exceptions import LLMClientError, LLMServerError, LLMConnectionError, LLMTimeoutError

HEALTH_PATH = "/health"
INFERENCE_PATH = "/api/v1/inference"


@dataclass
class InferenceResponse:
    """Text returned by the LLM server plus whatever metadata it reported."""

    content: str
    model_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "InferenceResponse":
        metadata = {
            key: payload.get(key)
            for key in ("processing_time", "tokens_generated", "finish_reason")
        }
        metadata.update(payload.get("metadata") or {})
        return cls(content=payload["content"], model_name=payload.get("model_name"), metadata=metadata)


def _describe_status_error(error: httpx.HTTPStatusError) -> str:
    status = error.response.status_code
    try:
        detail = error.response.json().get("detail", "no detail")
    except ValueError:
        detail = error.response.text or "no detail"
    return f"LLM server answered {status}: {detail}"


class LLMClient:
    """
    Async HTTP client for the LLM server.

    Connection failures and timeouts on inference are retried
    ``max_retries`` times; HTTP error statuses never are.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8765",
        timeout: float = 10.0,
        max_retries: int = 1,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Root URL of the LLM server, trailing slash optional
            timeout: Per-request timeout in seconds
            max_retries: Extra attempts after a connection failure or timeout
            retry_delay: Seconds to wait between attempts
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self.client.aclose()

    @property
    def is_connected(self) -> bool:
        return not self.client.is_closed

    async def health_check(self) -> Dict[str, Any]:
        """
        Return the server's health document.

        Raises:
            LLMConnectionError: The server could not be reached
            LLMServerError: The server answered with an error status
            LLMClientError: Anything else went wrong
        """
        try:
            return await self._send("GET", HEALTH_PATH, attempts=1)
        except LLMClientError:
            raise
        except Exception as e:
            raise LLMClientError(f"Health check failed: {e}") from e

    async def inference(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        model_name: Optional[str] = None,
    ) -> InferenceResponse:
        """
        Run a non-streaming completion for ``message``.

        Unset optional fields are left out of the request body.

        Raises:
            LLMConnectionError: Still unreachable after all attempts
            LLMTimeoutError: Still timing out after all attempts
            LLMServerError: The server answered with an error status
            LLMClientError: The response body was not an inference result
        """
        body: Dict[str, Any] = {"message": message}
        for key, value in (("context", context), ("config", config), ("model_name", model_name)):
            if value is not None:
                body[key] = value
        body["stream"] = False

        logger.debug(f"Inference request ({len(message)} chars) to {self.base_url}")
        payload = await self._send("POST", INFERENCE_PATH, json=body, attempts=self.max_retries + 1)

        try:
            result = InferenceResponse.from_payload(payload)
        except (KeyError, TypeError, AttributeError) as e:
            raise LLMClientError(f"Malformed inference response: {e!r}") from e

        logger.debug(f"Inference returned {len(result.content)} chars")
        return result

    async def _send(self, method: str, path: str, attempts: int, **kwargs) -> Dict[str, Any]:
        for attempt in range(1, attempts + 1):
            try:
                response = await self.client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                raise LLMServerError(_describe_status_error(e), e.response.status_code) from e

            except ValueError as e:
                raise LLMClientError(f"Malformed response from {path}: {e}") from e

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                if attempt < attempts:
                    logger.warning(f"{method} {path} attempt {attempt}/{attempts} failed ({e!r}); "
                                   f"retrying in {self.retry_delay}s")
                    await asyncio.sleep(self.retry_delay)
                    continue
                if isinstance(e, httpx.TimeoutException):
                    raise LLMTimeoutError(f"{method} {path} timed out after {attempts} attempt(s)") from e
                raise LLMConnectionError(
                    f"Cannot reach LLM server at {self.base_url} after {attempts} attempt(s): {e}"
                ) from e

        raise LLMClientError(f"{method} {path} was not attempted")

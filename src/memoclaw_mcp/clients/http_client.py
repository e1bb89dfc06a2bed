"""
Resilient MemoClaw request client

Turns "call this endpoint with this body" into a reliable exchange with the
MemoClaw backend:

- every attempt carries a freshly signed ``x-wallet-auth`` header (free tier)
- each attempt is bounded by the configured timeout and cancelled when it
  elapses
- a ``402 Payment Required`` answer is settled through the x402 payment
  handler and retried once, outside the retry budget
- transient statuses (408, 429, 502, 503, 504), timeouts and network errors
  are retried with exponential backoff until the budget is spent
- any other non-2xx status fails immediately

Retry decisions rely only on the ``retryable`` flag that each error sets
where it is raised.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..adapters.challenge import PaymentChallengeHandler
from ..adapters.evm.signatures import WalletSigner
from ..config import ClientConfig
from ..engine.backoff import backoff_delay
from ..engine.exceptions import (
    HttpError,
    MemoClawError,
    NetworkError,
    RequestTimeoutError,
    RetriesExhaustedError,
)
from ..schemas.https import WALLET_AUTH_HEADER

ALLOWED_METHODS = frozenset({"GET", "POST", "PATCH", "DELETE"})
JSON_CONTENT_TYPE = "application/json"
PAYMENT_REQUIRED_STATUS = 402


class MemoClawClient:
    """
    Request orchestrator for the MemoClaw API.

    One instance serves one backend origin and may be shared by concurrent
    callers; ``send`` keeps all per-call state local. Collaborators are
    injected at construction and reused for every call.

    Usage:
        ```python
        async with MemoClawClient(load_config()) as client:
            memory = await client.send("POST", "/v1/store", {"content": "hi"})
        ```

    Args:
        config: Immutable client settings.
        signer: Wallet signer; built from ``config.private_key`` when omitted.
        payment_handler: x402 handler; built for ``signer`` when omitted.
        http_client: ``httpx.AsyncClient`` to send through. A client passed in
            is not closed by ``aclose``.
        sleep: Awaitable used for backoff waits (seconds).
        backoff: Maps a zero-based retry index to a delay in milliseconds.

    Raises:
        SigningError: If the configured private key is unusable.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        signer: Optional[WalletSigner] = None,
        payment_handler: Optional[PaymentChallengeHandler] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        backoff: Callable[[int], float] = backoff_delay,
    ):
        self._config = config
        self._signer = signer or WalletSigner(config.private_key)
        self._payments = payment_handler or PaymentChallengeHandler.for_wallet(self._signer)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._sleep = sleep
        self._backoff = backoff

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def address(self) -> str:
        """Wallet address requests are authenticated as."""
        return self._signer.address

    async def __aenter__(self) -> "MemoClawClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # =========================================================================
    # Public API
    # =========================================================================

    async def send(self, method: str, path: str, body: Any = None) -> Any:
        """
        Perform one logical API call.

        Args:
            method: One of GET, POST, PATCH, DELETE.
            path: Absolute path, optionally with a pre-built query string.
            body: JSON-serializable request body, or ``None`` for no body.

        Returns:
            Parsed JSON body of the successful response (``None`` if empty).

        Raises:
            ValueError: On an unsupported method or a relative path.
            HttpError: Non-2xx final response.
            RequestTimeoutError: Last attempt exceeded the timeout.
            NetworkError: Last attempt failed at the transport level.
            PaymentChallengeError: The 402 challenge could not be paid.
            SigningError: The wallet could not sign the auth header.
            asyncio.CancelledError: The calling task was cancelled.
        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        if not path.startswith("/"):
            raise ValueError(f"Path must start with '/': {path!r}")

        url = f"{self._config.api_url}{path}"
        content = json.dumps(body) if body is not None else None

        attempt = 0
        last_error: Optional[MemoClawError] = None
        while attempt <= self._config.max_retries:
            if attempt > 0:
                await self._sleep(self._backoff(attempt - 1) / 1000)
            try:
                response = await self._attempt(method, url, content)
                if response.is_success:
                    return self._parse_json(response)
                raise HttpError(response.status_code, response.text)
            except MemoClawError as e:
                if not e.retryable or attempt >= self._config.max_retries:
                    raise
                last_error = e
                attempt += 1

        raise last_error or RetriesExhaustedError()

    # =========================================================================
    # Attempt mechanics
    # =========================================================================

    async def _attempt(self, method: str, url: str, content: Optional[str]) -> httpx.Response:
        """One budgeted attempt: the request plus, on 402, the paid retry."""
        headers = self._request_headers(has_body=content is not None)
        response = await self._exchange(method, url, headers, content)
        if response.status_code == PAYMENT_REQUIRED_STATUS:
            response = await self._pay_and_resend(method, url, headers, content, response)
        return response

    def _request_headers(self, has_body: bool) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if has_body:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        # Signed per attempt: the signature binds the current timestamp.
        headers[WALLET_AUTH_HEADER] = self._signer.auth_header().header_value()
        return headers

    async def _pay_and_resend(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        content: Optional[str],
        challenge: httpx.Response,
    ) -> httpx.Response:
        info = self._payments.build_challenge(challenge.headers.get, challenge.content)
        payload = await self._payments.create_payload(info)
        retry_headers = {**headers, **self._payments.encode_headers(payload)}
        if content is not None:
            retry_headers.setdefault("Content-Type", JSON_CONTENT_TYPE)
        return await self._exchange(method, url, retry_headers, content)

    async def _exchange(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        content: Optional[str],
    ) -> httpx.Response:
        """Single HTTP round-trip under the per-attempt deadline."""
        try:
            return await asyncio.wait_for(
                self._http.request(method, url, headers=headers, content=content),
                timeout=self._config.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise RequestTimeoutError(self._config.timeout_ms) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e}") from e

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MemoClawError(
                f"Invalid JSON in {response.status_code} response: {response.text[:200]}"
            ) from e

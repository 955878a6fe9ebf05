"""AirportDB.io async client with retry, error mapping and fallback delegation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx
from pydantic import ValidationError

from airfacts.contracts.airportdb import BatchItemError, RawAirport, RawBatchResponse
from airfacts.contracts.enums import SearchType
from airfacts.services.airportdb.errors import (
    AirportDBError,
    ApiError,
    InvalidRequestError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
)
from airfacts.services.airportdb.fallback_dataset import FallbackDataset
from airfacts.services.airportdb.numeric_parser import is_valid_icao, normalize_identifier
from airfacts.services.rate_limiter import RateLimitService

logger = logging.getLogger(__name__)

BASE_URL = "https://airportdb.io/api/v1"
USER_AGENT = "airfacts/0.1 (+https://airportdb.io)"
DEFAULT_TIMEOUT = 15.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_RETRY_AFTER = 60
BATCH_CHUNK_SIZE = 25
MAX_SEARCH_LIMIT = 100
HEALTH_PROBE_ICAO = "KJFK"


def validate_icao(icao: str) -> str:
    """Normalize and validate an ICAO identifier.

    Raises:
        InvalidRequestError: not four characters starting with a letter.
    """
    ident = normalize_identifier(icao)
    if not ident or not is_valid_icao(ident):
        raise InvalidRequestError(f"Invalid ICAO code: {icao!r}")
    return ident


def map_error_response(resp: httpx.Response) -> AirportDBError:
    """Translate a non-2xx response into the error taxonomy."""
    status = resp.status_code
    try:
        body = resp.json()
        detail = body.get("message") or body.get("error") if isinstance(body, dict) else None
    except ValueError:
        detail = None
    message = detail or resp.reason_phrase or f"HTTP {status}"

    if status == 400:
        return InvalidRequestError(f"Invalid request: {message}")
    if status == 404:
        return NotFoundError(f"Not found: {message}")
    if status == 429:
        retry_after = resp.headers.get("Retry-After", "")
        seconds = int(retry_after) if retry_after.isdigit() else DEFAULT_RETRY_AFTER
        return RateLimitedError(f"Upstream rate limit exceeded: {message}", retry_after=seconds)
    if status in (401, 403):
        return ApiError(f"Authentication failed: {message}", status_code=status)
    return ApiError(f"Upstream error {status}: {message}", status_code=status)


class AirportDBClient:
    """Async HTTP client for the AirportDB.io REST API.

    Every network call carries the ``apiToken`` query parameter, a timeout,
    and up to ``retry_attempts`` tries with exponential backoff. Invalid
    requests, not-found and rate-limited answers are never retried.

    When a ``rate_limiter`` is given, each logical request is admitted
    through it first; a local denial raises ``RateLimitedError``.
    """

    def __init__(
        self,
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
        *,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        fallback: FallbackDataset | None = None,
        rate_limiter: RateLimitService | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if not api_key:
            raise ValueError("AirportDB API key is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay = retry_delay
        self.fallback = fallback
        self.rate_limiter = rate_limiter
        self._sleep = sleep

    async def aclose(self) -> None:
        await self._client.aclose()

    # ============ Transport ============

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET *path* and return the decoded JSON body."""
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        query = {**(params or {}), "apiToken": self._api_key}
        url = f"{self._base_url}{path}"
        last_error: AirportDBError = NetworkError(f"No request sent to {path}")

        for attempt in range(1, self._retry_attempts + 1):
            try:
                resp = await self._client.get(
                    url,
                    params=query,
                    headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                    timeout=self._timeout,
                )
            except httpx.TimeoutException as exc:
                last_error = NetworkError(f"Request timed out after {self._timeout}s: {exc}")
            except httpx.TransportError as exc:
                last_error = NetworkError(f"Connection failed: {exc}")
            else:
                if resp.is_success:
                    try:
                        return resp.json()
                    except ValueError as exc:
                        last_error = ApiError(f"Malformed JSON from {path}: {exc}", status_code=resp.status_code)
                else:
                    last_error = map_error_response(resp)

            if not last_error.retryable:
                raise last_error
            if attempt < self._retry_attempts:
                delay = self._retry_delay * 2 ** (attempt - 1)
                logger.warning(
                    "AirportDB %s attempt %d/%d failed (%s), retrying in %.1fs",
                    path, attempt, self._retry_attempts, last_error, delay,
                )
                await self._sleep(delay)

        raise last_error

    # ============ Operations ============

    async def get_by_identifier(self, icao: str) -> RawAirport:
        """Fetch one airport, falling back to the static dataset on failure.

        Raises:
            InvalidRequestError: malformed identifier.
            RateLimitedError: the request was refused by a rate limit.
            AirportDBError: the provider failed and no fallback record exists.
        """
        ident = validate_icao(icao)
        try:
            body = await self._request(f"/airport/{ident}")
            return RawAirport.model_validate(body)
        except (InvalidRequestError, RateLimitedError):
            raise
        except AirportDBError as exc:
            return self._fallback_or_raise(ident, exc)
        except ValidationError as exc:
            logger.warning("Unexpected airport payload for %s: %s", ident, exc)
            return self._fallback_or_raise(ident, ApiError(f"Malformed airport payload for {ident}"))

    async def search(
        self,
        query: str,
        limit: int = 10,
        search_type: SearchType | str = SearchType.ALL,
    ) -> list[RawAirport]:
        """Free-text search. Failures yield fallback matches or ``[]``.

        Raises:
            InvalidRequestError: empty query.
        """
        text = (query or "").strip()
        if not text:
            raise InvalidRequestError("Search query cannot be empty")
        limit = max(1, min(MAX_SEARCH_LIMIT, int(limit)))
        try:
            search_type = SearchType(search_type)
        except ValueError:
            raise InvalidRequestError(f"Unsupported search type: {search_type!r}") from None

        try:
            body = await self._request(
                "/airport/search",
                {"q": text, "limit": limit, "type": search_type.value},
            )
        except InvalidRequestError:
            raise
        except NotFoundError:
            return []
        except AirportDBError as exc:
            logger.warning("Search for %r failed (%s), using fallback dataset", text, exc.code)
            return self.fallback.search(text, limit) if self.fallback else []

        items = body.get("airports", body.get("results", [])) if isinstance(body, dict) else body
        results: list[RawAirport] = []
        for item in items or []:
            try:
                results.append(RawAirport.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed search result: %r", item)
        return results[:limit]

    async def get_batch(self, icaos: list[str]) -> RawBatchResponse:
        """Fetch many airports in chunks of 25, one chunk at a time.

        Chunks run sequentially so the rate limiter counts accurately.
        Unresolved identifiers are retried once against the fallback dataset.
        """
        errors: list[BatchItemError] = []
        valid: list[str] = []
        for icao in icaos:
            try:
                ident = validate_icao(icao)
            except InvalidRequestError as exc:
                errors.append(BatchItemError(icao=str(icao), error=str(exc), code=exc.code.value))
                continue
            if ident not in valid:
                valid.append(ident)

        airports: dict[str, RawAirport] = {}
        rate_limited = False
        for start in range(0, len(valid), BATCH_CHUNK_SIZE):
            chunk = valid[start:start + BATCH_CHUNK_SIZE]
            try:
                body = await self._request("/airport/batch", {"icao_codes": ",".join(chunk)})
                response = RawBatchResponse.model_validate(body)
            except AirportDBError as exc:
                rate_limited = rate_limited or isinstance(exc, RateLimitedError)
                logger.warning("Batch chunk %s failed: %s", chunk, exc)
                errors.extend(BatchItemError(icao=i, error=str(exc), code=exc.code.value) for i in chunk)
                continue
            except ValidationError:
                logger.warning("Malformed batch payload for %s", chunk)
                errors.extend(BatchItemError(icao=i, error="Malformed batch payload", code="api_error") for i in chunk)
                continue
            for raw in response.airports:
                if raw.identifier:
                    airports[raw.identifier] = raw
            errors.extend(response.errors)

        unresolved = [i for i in valid if i not in airports]
        if unresolved and self.fallback is not None:
            recovered = self.fallback.get_batch(unresolved)
            for raw in recovered.airports:
                airports[raw.identifier] = raw
            errors.extend(recovered.errors)

        # Only report identifiers that nothing could resolve.
        reported: set[str] = set()
        final_errors: list[BatchItemError] = []
        for error in errors:
            key = normalize_identifier(error.icao) or error.icao
            if key in airports or key in reported:
                continue
            reported.add(key)
            final_errors.append(error)
        # The provider may drop an identifier without listing it in its errors.
        for ident in valid:
            if ident not in airports and ident not in reported:
                final_errors.append(BatchItemError(icao=ident, error=f"Airport {ident} not returned by provider"))

        return RawBatchResponse(
            airports=[airports[i] for i in valid if i in airports],
            errors=final_errors,
            rate_limited=rate_limited,
        )

    async def check_health(self) -> bool:
        """True when the provider answers (a not-found still proves it is up)."""
        try:
            await self._request(f"/airport/{HEALTH_PROBE_ICAO}")
        except NotFoundError:
            return True
        except AirportDBError as exc:
            logger.warning("AirportDB health probe failed: %s", exc)
            return False
        return True

    # ============ Helpers ============

    def _fallback_or_raise(self, ident: str, error: AirportDBError) -> RawAirport:
        if self.fallback is not None:
            raw = self.fallback.get(ident)
            if raw is not None:
                logger.info("Serving %s from fallback dataset after %s", ident, error.code.value)
                return raw
        raise error

"""Shared GET-and-decode path for Aplos endpoints, translating httpx and pydantic errors"""

import json
import logging
import time
from decimal import Decimal
from typing import Any, Mapping, Type, TypeVar

import httpx
from pydantic import ValidationError

from aplos.domain.exceptions import (
    AplosError,
    APIStatusError,
    DecodeError,
    NetworkError,
    RequestTimeoutError,
)
from aplos.infrastructure.clients.schemas import Envelope
from aplos.infrastructure.observability.logging import log_request
from aplos.infrastructure.observability.metrics import record_failure, request_duration_histogram

logger = logging.getLogger(__name__)

DataT = TypeVar("DataT")


async def get_envelope(
    http: httpx.AsyncClient,
    path: str,
    data_model: Type[DataT],
    *,
    operation: str,
    params: Mapping[str, str] | None = None,
    auth: httpx.Auth | None = None,
) -> DataT:
    """
    GET an endpoint and return the decoded `data` member of its envelope.

    Raises:
        RequestTimeoutError: On httpx timeouts
        APIStatusError: On non-2xx responses
        NetworkError: On any other transport failure
        DecodeError: If the body is not JSON or does not match data_model
    """
    try:
        return await _get_envelope(http, path, data_model, operation=operation, params=params, auth=auth)
    except AplosError as e:
        record_failure(operation, e)
        logger.warning(f"Aplos {operation} failed: {e}", extra={"operation": operation, "error_kind": type(e).__name__})
        raise


async def _get_envelope(
    http: httpx.AsyncClient,
    path: str,
    data_model: Type[DataT],
    *,
    operation: str,
    params: Mapping[str, str] | None,
    auth: httpx.Auth | None,
) -> DataT:
    start_time = time.perf_counter()
    status = "error"
    try:
        response = await http.get(path, params=params, auth=auth)
        status = str(response.status_code)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        raise RequestTimeoutError(f"Aplos {operation} timed out: {e!r}") from e
    except httpx.HTTPStatusError as e:
        raise APIStatusError(
            f"Aplos {operation} failed with HTTP {e.response.status_code}",
            e.response.status_code,
        ) from e
    except httpx.RequestError as e:
        raise NetworkError(f"Aplos {operation} request failed: {e!r}") from e
    finally:
        duration = time.perf_counter() - start_time
        request_duration_histogram.labels(operation=operation, status=status).observe(duration)

    log_request(operation, response.status_code, duration * 1000, path=response.request.url.path)

    try:
        payload: Any = response.json(parse_float=Decimal)
        envelope = Envelope[data_model].model_validate(payload)  # type: ignore[valid-type]
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Failed to decode {operation} response as JSON: {e}") from e
    except ValidationError as e:
        raise DecodeError(f"Unexpected {operation} response shape: {e}") from e

    return envelope.data

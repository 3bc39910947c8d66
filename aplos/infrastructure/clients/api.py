"""Aplos API HTTP client for reading accounts and transactions"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Mapping, Type, TypeVar

import httpx
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from aplos.config import ClientConfig, settings
from aplos.domain.exceptions import RequestTimeoutError
from aplos.domain.models import Account, Credential, Transaction
from aplos.infrastructure.clients.auth import BearerAuth, TokenProvider
from aplos.infrastructure.clients.base import get_envelope
from aplos.infrastructure.clients.schemas import (
    AccountFilter,
    AccountsData,
    TransactionData,
    TransactionFilter,
    TransactionsData,
)
from aplos.infrastructure.observability.metrics import record_failure
from aplos.infrastructure.security.keys import load_private_key_from_file

logger = logging.getLogger(__name__)

DataT = TypeVar("DataT")


class _UseConfigDeadline:
    def __repr__(self) -> str:
        return "USE_CONFIG_DEADLINE"


USE_CONFIG_DEADLINE = _UseConfigDeadline()
Deadline = float | None | _UseConfigDeadline


class AplosClient:
    """
    Authenticated, read-only client for the Aplos API.

    Build one with `await AplosClient.connect(...)`, which performs the first
    authentication handshake before returning. Every request re-checks the
    token and refreshes it if it has expired. Nothing is retried.

    Every operation accepts `timeout`, a deadline in seconds for the whole
    call including any token refresh; it defaults to
    `config.request_deadline_seconds`, and None disables it. Cancelling the
    awaiting task aborts the in-flight request.
    """

    def __init__(self, http: httpx.AsyncClient, tokens: TokenProvider, config: ClientConfig | None = None):
        self._http = http
        self.tokens = tokens
        self._auth = BearerAuth(tokens)
        self._config = config or settings

    @classmethod
    async def connect(
        cls,
        client_id: str,
        private_key: RSAPrivateKey,
        *,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "AplosClient":
        """
        Create a client and authenticate eagerly.

        Raises:
            AuthError: If the first handshake fails; the cause is chained
        """
        config = config or settings
        http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.http_timeout_seconds,
            headers={"User-Agent": config.user_agent, "Accept": "application/json"},
            transport=transport,
        )
        tokens = TokenProvider(Credential(client_id, private_key), http, config=config, clock=clock)
        try:
            await tokens.get_token()
        except BaseException:
            await http.aclose()
            raise

        return cls(http, tokens, config)

    @classmethod
    async def from_key_file(cls, client_id: str, key_path: str | Path, **kwargs) -> "AplosClient":
        """Load a downloaded Aplos key file, then connect with it"""
        return await cls.connect(client_id, load_private_key_from_file(key_path), **kwargs)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AplosClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def get_transaction(self, transaction_id: int, *, timeout: Deadline = USE_CONFIG_DEADLINE) -> Transaction:
        """Fetch one transaction, including its lines"""
        data = await self._get(
            f"/transactions/{int(transaction_id)}",
            TransactionData,
            operation="get_transaction",
            timeout=timeout,
        )
        return data.transaction

    async def list_accounts(
        self,
        filter: AccountFilter | None = None,
        *,
        timeout: Deadline = USE_CONFIG_DEADLINE,
    ) -> List[Account]:
        """List accounts, optionally filtered by name"""
        params = filter.to_params() if filter is not None else {}
        data = await self._get("/accounts", AccountsData, operation="list_accounts", params=params, timeout=timeout)
        return data.accounts

    async def list_transactions(
        self,
        filter: TransactionFilter | None = None,
        *,
        timeout: Deadline = USE_CONFIG_DEADLINE,
    ) -> List[Transaction]:
        """List transactions, optionally filtered by account number and date range; lines are not populated"""
        params = filter.to_params() if filter is not None else {}
        data = await self._get(
            "/transactions",
            TransactionsData,
            operation="list_transactions",
            params=params,
            timeout=timeout,
        )
        return data.transactions

    async def _get(
        self,
        path: str,
        data_model: Type[DataT],
        *,
        operation: str,
        params: Mapping[str, str] | None = None,
        timeout: Deadline = USE_CONFIG_DEADLINE,
    ) -> DataT:
        deadline = self._config.request_deadline_seconds if isinstance(timeout, _UseConfigDeadline) else timeout
        try:
            async with asyncio.timeout(deadline):
                return await get_envelope(
                    self._http,
                    path,
                    data_model,
                    operation=operation,
                    params=params,
                    auth=self._auth,
                )
        except TimeoutError as e:
            error = RequestTimeoutError(f"Aplos {operation} exceeded deadline of {deadline}s")
            record_failure(operation, error)
            logger.warning(f"Aplos {operation} exceeded deadline", extra={"deadline_seconds": deadline})
            raise error from e

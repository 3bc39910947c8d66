"""Pytest fixtures for testing"""

import base64
from typing import Any, AsyncGenerator, Dict, List

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI

from aplos.config import ClientConfig
from aplos.infrastructure.clients.api import AplosClient
from aplos_mock_server import BASE_URL, CLIENT_ID, create_mock_app


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    """RSA key pair standing in for a key downloaded from the Aplos UI"""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def pkcs8_b64(rsa_key: rsa.RSAPrivateKey) -> str:
    """The key in Aplos' download format: base64 text of DER PKCS8"""
    der = rsa_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(der).decode()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(base_url=BASE_URL, http_timeout_seconds=5.0)


@pytest.fixture
def sample_accounts() -> List[Dict[str, Any]]:
    """Accounts as returned by GET /accounts"""
    return [
        {
            "account_number": 1000,
            "name": "Checking",
            "category": "asset",
            "account_group": {"id": 11, "name": "Cash", "seq": 1},
            "is_enabled": True,
            "type": "asset",
            "activity": "none",
        },
        {
            "account_number": 6000,
            "name": "Salaries",
            "category": "expense",
            "account_group": None,
            "is_enabled": True,
            "type": "expense",
            "activity": "programs",
        },
    ]


@pytest.fixture
def sample_transactions() -> List[Dict[str, Any]]:
    """Transactions with lines, as returned by GET /transactions/{id}"""

    def line(line_id: int, amount: float, account_number: int, name: str) -> Dict[str, Any]:
        return {
            "id": line_id,
            "amount": amount,
            "account": {"account_number": account_number, "name": name},
            "fund": {"id": 1, "name": "General Fund"},
        }

    return [
        {
            "id": 501,
            "memo": "January payroll",
            "date": "2020-01-15",
            "id_number": 17,
            "created": "2020-01-15T09:30:00.250-0500",
            "amount": 2500.5,
            "in_closed_period": True,
            "lines": [line(1, 2500.5, 6000, "Salaries"), line(2, -2500.5, 1000, "Checking")],
        },
        {
            "id": 502,
            "memo": "Office supplies",
            "date": "2020-02-03",
            "id_number": 18,
            "created": "2020-02-03T14:00:00.000-0500",
            "amount": 120.25,
            "in_closed_period": False,
            "lines": [line(3, 120.25, 7000, "Supplies"), line(4, -120.25, 1000, "Checking")],
        },
    ]


@pytest.fixture
def mock_app(
    rsa_key: rsa.RSAPrivateKey,
    sample_accounts: List[Dict[str, Any]],
    sample_transactions: List[Dict[str, Any]],
) -> FastAPI:
    return create_mock_app(rsa_key.public_key(), CLIENT_ID, sample_accounts, sample_transactions)


@pytest.fixture
async def client(
    mock_app: FastAPI,
    rsa_key: rsa.RSAPrivateKey,
    config: ClientConfig,
) -> AsyncGenerator[AplosClient, None]:
    """Client authenticated against the mock Aplos server"""
    aplos_client = await AplosClient.connect(
        CLIENT_ID,
        rsa_key,
        config=config,
        transport=httpx.ASGITransport(app=mock_app),
    )
    try:
        yield aplos_client
    finally:
        await aplos_client.aclose()

"""Domain models - immutable values decoded from Aplos API responses"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Tuple

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from pydantic import BaseModel, ConfigDict, Field

from aplos.utils.date_utils import AplosDate, AplosTimestamp


class _Model(BaseModel):
    """Frozen base; unknown keys are ignored and missing scalars fall back to zero values"""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class AccountGroup(_Model):
    id: int = 0
    name: str = ""
    sequence: int = Field(default=0, alias="seq")


class Account(_Model):
    """Ledger account from the chart of accounts"""

    account_number: int = 0
    name: str = ""

    # Populated by the list accounts endpoint only
    category: str = ""
    account_group: AccountGroup | None = None
    is_enabled: bool = False
    type: str = ""
    activity: str = ""


class Fund(_Model):
    id: int = 0
    name: str = ""


class TransactionLine(_Model):
    """Single line in a larger transaction, like a journal entry"""

    id: int = 0
    amount: Decimal = Decimal(0)
    account: Account = Field(default_factory=Account)
    fund: Fund = Field(default_factory=Fund)


class Transaction(_Model):
    """Single transaction recorded in a register"""

    id: int = 0
    memo: str = ""
    date: AplosDate = None
    id_number: int = 0
    created: AplosTimestamp = None
    amount: Decimal = Decimal(0)
    in_closed_period: bool = False

    # Only populated by the transaction detail endpoint
    lines: Tuple[TransactionLine, ...] = ()


@dataclass(frozen=True)
class Credential:
    """API key credentials: the client ID and its matching RSA private key"""

    client_id: str
    private_key: RSAPrivateKey = field(repr=False)


@dataclass(frozen=True)
class BearerToken:
    """Decrypted access token and the moment it stops being accepted"""

    access_token: str = field(repr=False)
    expiry: datetime
    token_type: str = "Bearer"

    def expired(self, now: datetime, leeway: timedelta = timedelta(0)) -> bool:
        return now + leeway >= self.expiry

    @property
    def authorization(self) -> str:
        return f"{self.token_type} {self.access_token}"

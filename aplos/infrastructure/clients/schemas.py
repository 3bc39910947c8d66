"""Pydantic schemas for Aplos response envelopes and request filters"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict

from aplos.domain.models import Account, Transaction
from aplos.utils.date_utils import AplosDate, AplosTimestamp, format_date

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Wrapper present on every response: {version, status, data}"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    version: str = ""
    status: int = 0
    data: DataT


class AuthData(BaseModel):
    expires: AplosTimestamp
    token: str  # base64 of the RSA PKCS1v15 ciphertext


class TransactionData(BaseModel):
    transaction: Transaction


class AccountsData(BaseModel):
    accounts: List[Account]


class TransactionsData(BaseModel):
    transactions: List[Transaction]


class AccountFilter(BaseModel):
    """Filters for listing accounts; unset fields are not sent"""

    model_config = ConfigDict(frozen=True)

    name: str | None = None  # Matched server-side against the account name

    def to_params(self) -> dict[str, str]:
        params = {}
        if self.name is not None:
            params["f_name"] = self.name
        return params


class TransactionFilter(BaseModel):
    """Filters for listing transactions; unset fields are not sent"""

    model_config = ConfigDict(frozen=True)

    account_number: int | None = None  # Only transactions touching this account
    range_start: AplosDate = None  # Earliest transaction date, inclusive; accepts datetime.date
    range_end: AplosDate = None  # Latest transaction date, inclusive

    def to_params(self) -> dict[str, str]:
        params = {}
        if self.account_number is not None:
            params["f_accountnumber"] = str(self.account_number)
        if self.range_start is not None:
            params["f_rangestart"] = format_date(self.range_start)
        if self.range_end is not None:
            params["f_rangeend"] = format_date(self.range_end)
        return params

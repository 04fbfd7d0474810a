"""Chart of accounts models."""
from typing import Optional

from pydantic import field_validator

from yayasan_erp.models.base import BackendModel


class Account(BackendModel):
    id: str
    code: str
    name: str
    account_type: str = ""
    normal_balance: str = ""
    parent_id: Optional[str] = None
    level: int = 0
    is_header: bool = False
    is_active: bool = True
    balance: Optional[float] = None

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        if value is None:
            return value
        return str(value)

    @property
    def is_postable(self) -> bool:
        """Header (summary) accounts and inactive accounts cannot take journal lines."""
        return self.is_active and not self.is_header

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"

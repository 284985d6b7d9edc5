from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ContactId = Union[int, str]


class ContactBase(BaseModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""  # <- optional, "" when absent
    address: str = ""
    avatar: str = ""


class Contact(ContactBase):
    id: Optional[ContactId] = None

    # shared with subscribers; edit through model_copy(update=...)
    model_config = ConfigDict(from_attributes=True, frozen=True)


class ContactPayload(BaseModel):
    """Request body of the agenda API (no avatar on the remote side)."""
    name: str
    email: str
    phone: str = ""
    address: str = ""


class RemoteRecord(ContactPayload):
    id: ContactId


class OperationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    INVALID = "invalid"
    CANCELLED = "cancelled"
    BUSY = "busy"


class OperationResult(BaseModel):
    status: OperationStatus
    payload: Any = None
    error: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @classmethod
    def success(cls, payload: Any = None) -> "OperationResult":
        return cls(status=OperationStatus.SUCCESS, payload=payload)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(status=OperationStatus.FAILED, error=error)

    @classmethod
    def invalid(cls, field_errors: Dict[str, str]) -> "OperationResult":
        return cls(status=OperationStatus.INVALID, field_errors=field_errors)

    @classmethod
    def cancelled(cls) -> "OperationResult":
        return cls(status=OperationStatus.CANCELLED)

    @classmethod
    def busy(cls) -> "OperationResult":
        return cls(status=OperationStatus.BUSY, error="Another operation is already in progress.")


class StoreSnapshot(BaseModel):
    contacts: List[Contact] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None

"""
Contract model
"""
from typing import Optional
from datetime import date
from enum import Enum
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class ContractStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class Contract(TimestampMixin, IDMixin, table=True):
    """Contract table"""
    __tablename__ = "contracts"

    title: str = Field(..., max_length=150)
    description: Optional[str] = None
    responsible_person_id: str = Field(..., foreign_key="users.id", index=True)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    amount: Optional[float] = None
    status: str = Field(ContractStatus.ACTIVE.value, max_length=20)


class ContractCreate(SQLModelBase):
    title: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    responsible_person_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    amount: Optional[float] = Field(None, ge=0)
    status: ContractStatus = ContractStatus.ACTIVE


class ContractResponse(TimestampResponse):
    title: str
    description: Optional[str]
    responsible_person_id: str
    start_date: Optional[date]
    end_date: Optional[date]
    amount: Optional[float]
    status: str

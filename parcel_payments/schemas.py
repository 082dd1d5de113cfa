from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CheckoutRequest(CamelModel):
    parcel_id: str
    cost: Decimal = Field(gt=0)
    parcel_name: str
    sender_email: str


class CheckoutResponse(CamelModel):
    url: str


class UserIn(CamelModel):
    model_config = ConfigDict(extra="allow")

    email: str


class UserOut(CamelModel):
    id: str
    email: str
    role: str
    created_at: datetime


class ParcelIn(CamelModel):
    model_config = ConfigDict(extra="allow")

    parcel_name: str
    cost: Decimal = Field(gt=0)
    sender_email: str


class ParcelOut(CamelModel):
    id: str
    parcel_name: Optional[str] = None
    cost: Optional[float] = None
    sender_email: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    payment_status: Optional[str] = None
    tracking_id: Optional[str] = None


class PaymentRecordOut(CamelModel):
    id: int
    amount: float
    currency: str
    customer_email: Optional[str] = None
    parcel_id: Optional[str] = None
    transaction_id: str
    payment_status: str
    paid_at: datetime
    tracking_id: str


class ParcelUpdateResult(CamelModel):
    matched_count: int
    modified_count: int


class ReconciliationResult(CamelModel):
    success: Optional[bool] = None
    already_processed: Optional[bool] = None
    message: Optional[str] = None
    tracking_id: Optional[str] = None
    transaction_id: Optional[str] = None
    parcel_update_result: Optional[ParcelUpdateResult] = None
    payment_record: Optional[PaymentRecordOut] = None

"""AuditLog and Vendor records."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AuditLog(BaseModel):
    id: Optional[str] = None
    action: str
    table_name: str
    record_id: str
    user_id: str
    user_email: str
    old_data: Optional[Any] = None
    new_data: Optional[Any] = None
    details: Optional[Any] = None
    vendor_id: Optional[str] = None
    timestamp: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}


class Vendor(BaseModel):
    id: Optional[str] = None
    company_name: str
    contact_name: str
    email: str
    phone: Optional[str] = None
    services: Optional[str] = None
    notes: Optional[str] = None
    status: str = "pending"
    submitted_by_email: str
    approved_by_email: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

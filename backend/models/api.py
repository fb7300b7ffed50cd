"""API request/response models for the HTTP layer."""
from typing import List, Optional, Union
from pydantic import BaseModel, Field, field_validator


class MaterialModel(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: str = ""
    unit: str = ""


class OrderModel(BaseModel):
    """Order as exposed over HTTP."""
    id: Optional[Union[int, str]] = None
    phone_number: str
    site: str
    materials: List[MaterialModel]
    delivery_date: str
    delivery_time: str
    status: str
    completeness: float = 0.0
    created_at: Optional[str] = None


class ManualOrderRequest(BaseModel):
    """Request body for creating an order by hand."""
    phone_number: str = Field(..., min_length=1)
    site: str = Field(..., min_length=1)
    materials: List[MaterialModel] = Field(..., min_length=1)
    delivery_date: str = Field(..., min_length=1)
    delivery_time: str = Field(..., min_length=1)
    status: str = "pending"

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, value: str) -> str:
        if value not in ("confirmed", "pending", "delivered"):
            raise ValueError(f"Unknown order status: {value}")
        return value


class OrderListResponse(BaseModel):
    site: str
    orders: List[OrderModel]
    count: int


class SiteListResponse(BaseModel):
    sites: List[str]
    count: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    active_sessions: int

"""Data models for the site order assistant."""
from .conversation import ConversationTurn, Session, USER, ASSISTANT
from .order import Material, DeliveryInfo, ExtractionResult, ExtractionResponse, OrderRecord, OrderStatus
from .agent import ConversationalResult, HandlerReply
from .api import ManualOrderRequest, OrderModel, MaterialModel, OrderListResponse, SiteListResponse, HealthResponse

__all__ = [
    "ConversationTurn",
    "Session",
    "USER",
    "ASSISTANT",
    "Material",
    "DeliveryInfo",
    "ExtractionResult",
    "ExtractionResponse",
    "OrderRecord",
    "OrderStatus",
    "ConversationalResult",
    "HandlerReply",
    "ManualOrderRequest",
    "OrderModel",
    "MaterialModel",
    "OrderListResponse",
    "SiteListResponse",
    "HealthResponse",
]

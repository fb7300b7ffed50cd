"""Order data models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class OrderStatus:
    """Lifecycle states of a stored order."""
    CONFIRMED = "confirmed"
    PENDING = "pending"
    DELIVERED = "delivered"

    ALL = (CONFIRMED, PENDING, DELIVERED)


@dataclass
class Material:
    """One requested material line. Quantity and unit may be empty strings."""
    name: str
    quantity: str = ""
    unit: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "quantity": self.quantity, "unit": self.unit}


@dataclass
class DeliveryInfo:
    """When the materials are needed on site."""
    date: Optional[str] = None  # DD/MM/YYYY
    time: Optional[str] = None  # HH:MM


@dataclass
class ExtractionResult:
    """Structured order fields extracted from a conversation."""
    site: Optional[str] = None
    materials: List[Material] = field(default_factory=list)
    delivery: DeliveryInfo = field(default_factory=DeliveryInfo)
    completeness: float = 0.0  # 0.0 to 1.0
    confirmed: bool = False


@dataclass
class ExtractionResponse:
    """Extraction result plus validation bookkeeping."""
    data: ExtractionResult
    processing_time_ms: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @classmethod
    def empty(cls, error: str, processing_time_ms: int = 0) -> "ExtractionResponse":
        """Zero-completeness result carrying a single error."""
        return cls(data=ExtractionResult(), processing_time_ms=processing_time_ms, errors=[error])


@dataclass
class OrderRecord:
    """Validated order ready for persistence."""
    sender: str
    site: str
    materials: List[Material]
    delivery_date: str
    delivery_time: str
    status: str = OrderStatus.PENDING
    completeness: float = 0.0
    id: Optional[Any] = None
    created_at: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        """Convert to a datastore row (without server-generated columns)."""
        return {
            "phone_number": self.sender,
            "site": self.site,
            "materials": [material.to_dict() for material in self.materials],
            "delivery_date": self.delivery_date,
            "delivery_time": self.delivery_time,
            "status": self.status,
            "completeness": self.completeness,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OrderRecord":
        """Build an OrderRecord from a datastore row."""
        materials = [
            Material(
                name=str(item.get("name", "")),
                quantity=str(item.get("quantity") or ""),
                unit=str(item.get("unit") or "")
            )
            for item in row.get("materials") or []
        ]
        return cls(
            sender=row.get("phone_number", ""),
            site=row.get("site", ""),
            materials=materials,
            delivery_date=row.get("delivery_date", ""),
            delivery_time=row.get("delivery_time", ""),
            status=row.get("status", OrderStatus.PENDING),
            completeness=float(row.get("completeness") or 0.0),
            id=row.get("id"),
            created_at=row.get("created_at")
        )

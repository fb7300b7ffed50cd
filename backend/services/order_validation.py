"""Field validation, completeness scoring and order shaping."""
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from models.order import ExtractionResult, Material, OrderRecord, OrderStatus
from config import MIN_DELIVERY_YEAR, MAX_DELIVERY_YEAR

logger = logging.getLogger(__name__)

VALID_UNITS = {"m3", "kg", "m2", "tons", "bags", "pallets", "m", "cm", "l"}

UNIT_SYNONYMS = {
    "m³": "m3",
    "m^3": "m3",
    "m²": "m2",
    "m^2": "m2",
    "ton": "tons",
    "tonne": "tons",
    "tonnes": "tons",
    "t": "tons",
    "bag": "bags",
    "sac": "bags",
    "sacs": "bags",
    "pallet": "pallets",
    "palette": "pallets",
    "palettes": "pallets",
    "litre": "l",
    "litres": "l",
    "liter": "l",
    "liters": "l",
}

# Points awarded per present field; sums to 1.0
COMPLETENESS_WEIGHTS = {
    "site": 0.2,
    "material_named": 0.2,
    "all_quantities": 0.2,
    "all_units": 0.2,
    "date": 0.1,
    "time": 0.1,
}

DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def standardize_unit(unit: str) -> str:
    """Lowercase a unit and map known synonyms to their canonical token."""
    unit_lower = unit.strip().lower()
    return UNIT_SYNONYMS.get(unit_lower, unit_lower)


def is_valid_unit(unit: str) -> bool:
    return standardize_unit(unit) in VALID_UNITS


def validate_date(value: str) -> bool:
    """
    Check a DD/MM/YYYY date.

    The date must exist on the calendar and its year must fall within the
    accepted delivery range.
    """
    if not value:
        return False

    match = DATE_PATTERN.match(value.strip())
    if not match:
        return False

    day, month, year = (int(part) for part in match.groups())
    if not MIN_DELIVERY_YEAR <= year <= MAX_DELIVERY_YEAR:
        return False

    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def validate_time(value: str) -> bool:
    """Check a 24-hour HH:MM time."""
    if not value:
        return False

    match = TIME_PATTERN.match(value.strip())
    if not match:
        return False

    hours, minutes = (int(part) for part in match.groups())
    return 0 <= hours <= 23 and 0 <= minutes <= 59


def parse_quantity(value: Any) -> Optional[float]:
    """
    Parse a positive quantity, accepting a decimal comma.

    Returns:
        The numeric value, or None if it is not a positive finite number
    """
    if isinstance(value, bool) or value is None:
        return None

    text = str(value).strip().replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return None

    if number != number or number in (float("inf"), float("-inf")) or number <= 0:
        return None
    return number


def calculate_completeness(result: ExtractionResult) -> float:
    """
    Score how much of an order is known, from field presence alone.

    Returns:
        Score in [0, 1] rounded to 2 decimals
    """
    materials = result.materials
    score = 0.0

    if result.site:
        score += COMPLETENESS_WEIGHTS["site"]
    if any(material.name for material in materials):
        score += COMPLETENESS_WEIGHTS["material_named"]
    if materials and all(material.quantity for material in materials):
        score += COMPLETENESS_WEIGHTS["all_quantities"]
    if materials and all(material.unit for material in materials):
        score += COMPLETENESS_WEIGHTS["all_units"]
    if result.delivery.date:
        score += COMPLETENESS_WEIGHTS["date"]
    if result.delivery.time:
        score += COMPLETENESS_WEIGHTS["time"]

    return round(min(max(score, 0.0), 1.0), 2)


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _clean_material(raw: Any, errors: List[str]) -> Optional[Material]:
    if not isinstance(raw, dict):
        return None

    name = _first_present(raw, "name", "nom")
    if not isinstance(name, str) or not name.strip():
        return None

    material = Material(name=name.strip())

    quantity = _first_present(raw, "quantity", "quantite")
    if quantity not in (None, ""):
        if parse_quantity(quantity) is not None:
            material.quantity = str(quantity).strip()
        else:
            errors.append(f"Invalid quantity for {material.name}: {quantity}")

    unit = _first_present(raw, "unit", "unite")
    if isinstance(unit, str) and unit.strip():
        standardized = standardize_unit(unit)
        if standardized in VALID_UNITS:
            material.unit = standardized
        else:
            errors.append(f"Invalid unit for {material.name}: {unit}")

    return material


def clean_extraction_payload(data: Any) -> Tuple[ExtractionResult, List[str]]:
    """
    Validate an untrusted extraction payload field by field.

    Invalid fields are dropped and described in the returned error list; a bad
    field never invalidates the other fields. Both the English keys and the
    older French keys (chantier, materiaux, livraison, completude,
    confirmation) are accepted.

    Args:
        data: Decoded JSON from the extraction model

    Returns:
        Tuple of (cleaned ExtractionResult, list of validation errors)
    """
    errors: List[str] = []
    result = ExtractionResult()

    if not isinstance(data, dict):
        errors.append(f"Extraction payload is not an object: {type(data).__name__}")
        return result, errors

    site = _first_present(data, "site", "chantier")
    if isinstance(site, str) and site.strip():
        result.site = site.strip()

    materials = _first_present(data, "materials", "materiaux")
    if isinstance(materials, list):
        for raw_material in materials:
            material = _clean_material(raw_material, errors)
            if material is not None:
                result.materials.append(material)

    delivery = _first_present(data, "delivery", "livraison")
    if isinstance(delivery, dict):
        delivery_date = delivery.get("date")
        if delivery_date:
            if isinstance(delivery_date, str) and validate_date(delivery_date):
                result.delivery.date = delivery_date.strip()
            else:
                errors.append(f"Invalid date format: {delivery_date}")

        delivery_time = _first_present(delivery, "time", "heure")
        if delivery_time:
            if isinstance(delivery_time, str) and validate_time(delivery_time):
                result.delivery.time = delivery_time.strip()
            else:
                errors.append(f"Invalid time format: {delivery_time}")

    completeness = _first_present(data, "completeness", "completude")
    if isinstance(completeness, (int, float)) and not isinstance(completeness, bool) and 0 <= completeness <= 1:
        result.completeness = round(float(completeness), 2)
    else:
        result.completeness = calculate_completeness(result)

    confirmed = _first_present(data, "confirmed", "confirmation")
    result.confirmed = confirmed is True or (isinstance(confirmed, str) and confirmed.strip().lower() == "true")

    return result, errors


def shape_order(extraction: ExtractionResult, sender: str) -> Optional[OrderRecord]:
    """
    Turn an extraction into a storable order.

    Materials without a name are dropped; named materials missing a quantity
    or unit are kept with empty strings.

    Args:
        extraction: Validated extraction result
        sender: Sender identifier (phone number)

    Returns:
        OrderRecord, or None if site, date, time or every material name is missing
    """
    materials = [
        Material(name=material.name.strip(), quantity=material.quantity or "", unit=material.unit or "")
        for material in extraction.materials
        if material.name and material.name.strip()
    ]

    site = (extraction.site or "").strip()
    delivery_date = (extraction.delivery.date or "").strip()
    delivery_time = (extraction.delivery.time or "").strip()

    if not site or not delivery_date or not delivery_time or not materials:
        logger.debug(
            f"Cannot shape order for {sender}: site={bool(site)}, date={bool(delivery_date)}, "
            f"time={bool(delivery_time)}, materials={len(materials)}"
        )
        return None

    return OrderRecord(
        sender=sender,
        site=site,
        materials=materials,
        delivery_date=delivery_date,
        delivery_time=delivery_time,
        status=OrderStatus.CONFIRMED if extraction.confirmed else OrderStatus.PENDING,
        completeness=extraction.completeness
    )

"""Unit tests for field validation, completeness scoring and order shaping."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from models.order import DeliveryInfo, ExtractionResult, Material, OrderStatus
from services.order_validation import (
    calculate_completeness,
    clean_extraction_payload,
    parse_quantity,
    shape_order,
    standardize_unit,
    validate_date,
    validate_time,
)


def complete_extraction(**overrides) -> ExtractionResult:
    """A fully specified, confirmed extraction."""
    values = dict(
        site="Site A",
        materials=[Material(name="concrete", quantity="10", unit="m3")],
        delivery=DeliveryInfo(date="15/01/2025", time="14:00"),
        completeness=1.0,
        confirmed=True,
    )
    values.update(overrides)
    return ExtractionResult(**values)


class TestFieldValidation:
    """Test suite for individual field validators."""

    @pytest.mark.parametrize("value", ["15/01/2025", "1/2/2024", "31/12/2030", "29/02/2028"])
    def test_valid_dates(self, value):
        assert validate_date(value) is True

    @pytest.mark.parametrize("value", ["32/13/2025", "29/02/2025", "15/01/2023", "01/01/2031", "2025-01-15", "tomorrow", ""])
    def test_invalid_dates(self, value):
        assert validate_date(value) is False

    @pytest.mark.parametrize("value", ["14:00", "0:00", "23:59", "7:30"])
    def test_valid_times(self, value):
        assert validate_time(value) is True

    @pytest.mark.parametrize("value", ["25:99", "24:00", "12:60", "14h00", "noon", ""])
    def test_invalid_times(self, value):
        assert validate_time(value) is False

    def test_parse_quantity(self):
        """Test that positive numbers parse, with a decimal comma accepted."""
        assert parse_quantity("10") == 10.0
        assert parse_quantity("2,5") == 2.5
        assert parse_quantity(3) == 3.0

    @pytest.mark.parametrize("value", ["-5", "0", "ten", "", None, True, "nan", "inf"])
    def test_parse_quantity_rejects(self, value):
        assert parse_quantity(value) is None

    def test_standardize_unit_synonyms(self):
        """Test that synonyms map to canonical units."""
        assert standardize_unit("m³") == "m3"
        assert standardize_unit("ton") == "tons"
        assert standardize_unit("Tonnes") == "tons"
        assert standardize_unit(" Sacs ") == "bags"
        assert standardize_unit("litres") == "l"
        assert standardize_unit("kg") == "kg"


class TestCompleteness:
    """Test suite for completeness scoring."""

    def test_full_order_scores_one(self):
        assert calculate_completeness(complete_extraction()) == 1.0

    def test_empty_order_scores_zero(self):
        assert calculate_completeness(ExtractionResult()) == 0.0

    def test_partial_order(self):
        """Test site + named material without quantity or unit."""
        result = ExtractionResult(site="Site A", materials=[Material(name="sand")])
        assert calculate_completeness(result) == 0.4

    def test_missing_unit_on_one_material(self):
        """Test that all materials need a unit for the unit points."""
        result = complete_extraction(materials=[
            Material(name="concrete", quantity="10", unit="m3"),
            Material(name="sand", quantity="2", unit=""),
        ])
        assert calculate_completeness(result) == 0.8


class TestCleanExtractionPayload:
    """Test suite for clean_extraction_payload."""

    def test_clean_complete_payload(self):
        data = {
            "site": " Site A ",
            "materials": [{"name": "concrete", "quantity": "10", "unit": "m³"}],
            "delivery": {"date": "15/01/2025", "time": "14:00"},
            "completeness": 0.954,
            "confirmed": True,
        }

        result, errors = clean_extraction_payload(data)

        assert errors == []
        assert result.site == "Site A"
        assert result.materials == [Material(name="concrete", quantity="10", unit="m3")]
        assert result.delivery.date == "15/01/2025"
        assert result.delivery.time == "14:00"
        assert result.completeness == 0.95
        assert result.confirmed is True

    def test_out_of_range_completeness_is_recomputed(self):
        """Test that an impossible upstream score is replaced by the computed one."""
        data = {
            "site": "Site A",
            "materials": [{"name": "concrete", "quantity": "10", "unit": "m3"}],
            "delivery": {"date": "15/01/2025", "time": "14:00"},
            "completeness": 999,
            "confirmed": True,
        }

        result, errors = clean_extraction_payload(data)

        assert errors == []
        assert result.completeness == 1.0

    def test_missing_completeness_is_computed(self):
        result, _ = clean_extraction_payload({"site": "Site A"})
        assert result.completeness == 0.2

    def test_invalid_fields_are_dropped_and_recorded(self):
        """Test that each bad field is nulled with an error, not raised."""
        data = {
            "site": "Site A",
            "materials": [
                {"name": "gravel", "quantity": "-5", "unit": "bags-of-nothing"},
            ],
            "delivery": {"date": "32/13/2025", "time": "25:99"},
            "completeness": 0.5,
            "confirmed": False,
        }

        result, errors = clean_extraction_payload(data)

        assert len(errors) == 4
        assert any("quantity" in error for error in errors)
        assert any("unit" in error for error in errors)
        assert any("date" in error for error in errors)
        assert any("time" in error for error in errors)
        assert result.materials == [Material(name="gravel", quantity="", unit="")]
        assert result.delivery.date is None
        assert result.delivery.time is None
        assert result.site == "Site A"

    def test_materials_without_name_are_skipped(self):
        data = {"materials": [{"name": "", "quantity": "5", "unit": "kg"}, {"quantity": "1"}, "cement"]}

        result, errors = clean_extraction_payload(data)

        assert result.materials == []
        assert errors == []

    def test_legacy_french_keys(self):
        """Test that payloads from the older French prompt are understood."""
        data = {
            "chantier": "Chantier Nord",
            "materiaux": [{"nom": "ciment", "quantite": "20", "unite": "sacs"}],
            "livraison": {"date": "10/03/2025", "heure": "08:30"},
            "completude": 1.0,
            "confirmation": True,
        }

        result, errors = clean_extraction_payload(data)

        assert errors == []
        assert result.site == "Chantier Nord"
        assert result.materials == [Material(name="ciment", quantity="20", unit="bags")]
        assert result.delivery.time == "08:30"
        assert result.confirmed is True

    def test_non_object_payload(self):
        result, errors = clean_extraction_payload(["not", "an", "object"])

        assert len(errors) == 1
        assert result.completeness == 0.0
        assert result.confirmed is False

    def test_confirmation_must_be_true(self):
        """Test that truthy non-boolean values do not confirm an order."""
        result, _ = clean_extraction_payload({"confirmed": "yes"})
        assert result.confirmed is False


class TestShapeOrder:
    """Test suite for shape_order."""

    def test_complete_confirmed_order(self):
        order = shape_order(complete_extraction(), "+33600000000")

        assert order is not None
        assert order.status == OrderStatus.CONFIRMED
        assert order.sender == "+33600000000"
        assert order.site == "Site A"
        assert len(order.materials) == 1
        assert order.delivery_date == "15/01/2025"
        assert order.delivery_time == "14:00"
        assert order.completeness == 1.0

    def test_unconfirmed_order_is_pending(self):
        order = shape_order(complete_extraction(confirmed=False), "+33600000000")
        assert order.status == OrderStatus.PENDING

    def test_missing_site(self):
        assert shape_order(complete_extraction(site=None), "+33600000000") is None

    def test_missing_delivery_date(self):
        extraction = complete_extraction(delivery=DeliveryInfo(date=None, time="14:00"))
        assert shape_order(extraction, "+33600000000") is None

    def test_missing_delivery_time(self):
        extraction = complete_extraction(delivery=DeliveryInfo(date="15/01/2025", time=None))
        assert shape_order(extraction, "+33600000000") is None

    def test_no_named_material(self):
        extraction = complete_extraction(materials=[Material(name="", quantity="5", unit="kg")])
        assert shape_order(extraction, "+33600000000") is None

    def test_partial_materials_kept_once_named(self):
        """Test that a named material missing quantity/unit is still kept."""
        extraction = complete_extraction(materials=[
            Material(name="  sand ", quantity="", unit=""),
            Material(name="   ", quantity="3", unit="kg"),
        ])

        order = shape_order(extraction, "+33600000000")

        assert order.materials == [Material(name="sand", quantity="", unit="")]

    def test_to_row(self):
        row = shape_order(complete_extraction(), "+33600000000").to_row()

        assert row["phone_number"] == "+33600000000"
        assert row["materials"] == [{"name": "concrete", "quantity": "10", "unit": "m3"}]
        assert row["status"] == "confirmed"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

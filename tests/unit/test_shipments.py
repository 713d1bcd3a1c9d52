import pytest

from errors import InvalidParcel, MissingAddress
from schemas import ShipmentCreate
from shipments import normalize_shipment, resolve_parcel


def test_current_shape_is_used_and_mirrored_to_weight_kg(payload):
    record = normalize_shipment(payload)
    assert record.parcel.weight == 2.5
    assert (record.parcel.length, record.parcel.width, record.parcel.height) == (30, 20, 10)
    assert record.weightKg == 2.5


def test_current_shape_ignores_legacy_fields_entirely(payload):
    payload["weightKg"] = 99
    payload["dims"] = {"L": 1, "W": 2, "H": 3}
    record = normalize_shipment(payload)
    assert record.parcel.weight == 2.5
    assert (record.parcel.length, record.parcel.width, record.parcel.height) == (30, 20, 10)
    assert record.weightKg == 2.5


def test_legacy_shape_with_single_letter_dims(dubai, london):
    record = normalize_shipment({"from": dubai, "to": london, "weightKg": 4, "dims": {"L": 40, "W": 30, "H": 20}})
    assert record.parcel.weight == 4
    assert (record.parcel.length, record.parcel.width, record.parcel.height) == (40, 30, 20)
    assert record.weightKg == 4


def test_legacy_shape_prefers_spelled_out_dims(dubai, london):
    dims = {"L": 1, "W": 2, "H": 3, "length": 40, "width": 30, "height": 20}
    record = normalize_shipment({"from": dubai, "to": london, "weightKg": 4, "dims": dims})
    assert (record.parcel.length, record.parcel.width, record.parcel.height) == (40, 30, 20)


def test_incomplete_current_shape_falls_back_to_legacy_without_merging(dubai, london):
    body = {
        "from": dubai,
        "to": london,
        "parcel": {"weight": 9, "length": 50},
        "weightKg": 4,
        "dims": {"L": 40, "W": 30, "H": 20},
    }
    record = normalize_shipment(body)
    assert record.parcel.weight == 4
    assert record.parcel.length == 40


def test_incomplete_current_shape_without_legacy_is_invalid(dubai, london):
    with pytest.raises(InvalidParcel):
        normalize_shipment({"from": dubai, "to": london, "parcel": {"weight": 9, "length": 50}})


def test_legacy_dims_missing_a_side_is_invalid(dubai, london):
    with pytest.raises(InvalidParcel):
        normalize_shipment({"from": dubai, "to": london, "weightKg": 4, "dims": {"L": 40, "W": 30}})


def test_legacy_zero_length_is_not_replaced_by_single_letter(dubai, london):
    # length=0 is present, so L is never consulted and the parcel is rejected
    with pytest.raises(InvalidParcel):
        normalize_shipment({
            "from": dubai,
            "to": london,
            "weightKg": 4,
            "dims": {"length": 0, "L": 40, "W": 30, "H": 20},
        })


@pytest.mark.parametrize("field", ["weight", "length", "width", "height"])
def test_zero_parcel_value_is_treated_as_missing(payload, field):
    payload["parcel"][field] = 0
    with pytest.raises(InvalidParcel) as exc:
        normalize_shipment(payload)
    assert exc.value.status_code == 400
    assert "weight, length, width, height" in exc.value.message


def test_no_parcel_at_all_is_invalid(dubai, london):
    with pytest.raises(InvalidParcel):
        normalize_shipment({"from": dubai, "to": london})


@pytest.mark.parametrize("missing", ["from", "to"])
def test_missing_address_wins_over_parcel_checks(payload, missing):
    del payload[missing]
    with pytest.raises(MissingAddress) as exc:
        normalize_shipment(payload)
    assert exc.value.message == "Both from and to addresses are required."


def test_missing_address_reported_even_with_invalid_parcel(london):
    with pytest.raises(MissingAddress):
        normalize_shipment({"to": london, "parcel": {"weight": 0}})


def test_currency_defaults_to_aed(payload):
    assert normalize_shipment(payload).currency == "AED"
    payload["currency"] = ""
    assert normalize_shipment(payload).currency == "AED"


def test_currency_is_preserved(payload):
    payload["currency"] = "USD"
    assert normalize_shipment(payload).currency == "USD"


def test_metadata_passes_through_and_absent_values_are_not_persisted(payload):
    del payload["speed"]
    doc = normalize_shipment(payload).to_document()
    assert doc["carrier"] == "Aramex"
    assert doc["service"] == "Priority"
    assert doc["priceAED"] == 120
    assert "speed" not in doc
    assert doc["from"]["city"] == "Dubai"
    assert doc["to"]["postalCode"] == "SW1A 2AA"
    assert "line2" not in doc["to"]
    assert doc["weightKg"] == doc["parcel"]["weight"]


def test_resolve_parcel_accepts_model(dubai, london):
    body = ShipmentCreate.model_validate({"from": dubai, "to": london, "parcel": {"weight": 1, "length": 2, "width": 3, "height": 4}})
    parcel = resolve_parcel(body)
    assert parcel.model_dump() == {"weight": 1, "length": 2, "width": 3, "height": 4}


def test_customer_email_is_accepted_but_not_stored(payload):
    payload["customerEmail"] = "buyer@example.com"
    doc = normalize_shipment(payload).to_document()
    assert "customerEmail" not in doc

from __future__ import annotations

from listing_sync.config.settings import Settings
from listing_sync.forms import FieldCoercion, PathKeyDecoder


def _decoder() -> PathKeyDecoder:
    return PathKeyDecoder(Settings().field_coercion())


def test_decode_records_folds_bracket_paths_into_records():
    fields = {
        "packages[package_0][duration]": "Hourly",
        "packages[package_0][category]": "Deluxe",
        "packages[package_0][hourlyCharge]": "300",
        "packages[package_0][checkInCharge]": "200",
        "packages[package_0][breakfast]": "on",
    }

    records = _decoder().decode_records(fields, "packages")

    assert records == [
        {
            "duration": "Hourly",
            "category": "Deluxe",
            "hourlyCharge": 300,
            "checkInCharge": 200,
            "breakfast": True,
        }
    ]


def test_decode_records_keeps_first_seen_order_and_drops_empty_records():
    fields = {
        "overnightRooms[room_b][category]": "Suite",
        "overnightRooms[room_a][category]": "Deluxe",
        "overnightRooms[room_b][rate]": "1500",
        "overnightRooms[room_c][rate]": "",
    }

    records = _decoder().decode_records(fields, "overnightRooms")

    assert [record["category"] for record in records] == ["Suite", "Deluxe"]
    assert records[0]["rate"] == 1500


def test_decode_records_ignores_unrecognised_keys():
    fields = {
        "packages[package_0][category]": "Deluxe",
        "packages[package_0]": "dangling",
        "packages[package_0][nested][deeper][path]": "x",
        "packages": "bare",
        "unrelated": "value",
    }

    records = _decoder().decode_records(fields, "packages")

    assert records == [{"category": "Deluxe"}]


def test_boolean_markers_treat_anything_but_on_or_true_as_false():
    fields = {
        "packages[p][breakfast]": "off",
        "packages[p][spa]": "TRUE",
        "packages[p][candleDinner]": "",
    }

    record = _decoder().decode_records(fields, "packages")[0]

    assert record == {"breakfast": False, "spa": True, "candleDinner": False}


def test_unset_or_unparsable_numbers_are_absent_not_zero():
    fields = {
        "packages[p][category]": "Deluxe",
        "packages[p][hourlyCharge]": "",
        "packages[p][checkInCharge]": "abc",
        "packages[p][maxOccupancy]": "0",
    }

    record = _decoder().decode_records(fields, "packages")[0]

    assert "hourlyCharge" not in record
    assert "checkInCharge" not in record
    assert record["maxOccupancy"] == 0


def test_text_fields_are_never_coerced():
    fields = {
        "packages[p][ratePlan]": "Standard",
        "packages[p][category]": "Deluxe",
        "packages[p][dayRate]": "1200.5",
    }

    record = _decoder().decode_records(fields, "packages")[0]

    assert record["ratePlan"] == "Standard"
    assert record["dayRate"] == 1200.5


def test_nested_amenity_maps_and_arrays():
    fields = {
        "overnightRooms[room_0][category]": "Deluxe",
        "overnightRooms[room_0][roomAmenities][Deluxe][]": ["AC", "TV"],
        "overnightRooms[room_0][roomAmenities][Suite]": "Jacuzzi",
        "overnightRooms[room_0][bedTypes][]": ["King"],
    }

    record = _decoder().decode_records(fields, "overnightRooms")[0]

    assert record["roomAmenities"] == {"Deluxe": ["AC", "TV"], "Suite": "Jacuzzi"}
    assert record["bedTypes"] == ["King"]


def test_repeated_scalar_becomes_array():
    fields = {"hourlyRooms[r][tags]": ["quiet", "corner"]}

    record = _decoder().decode_records(fields, "hourlyRooms")[0]

    assert record["tags"] == ["quiet", "corner"]


def test_decode_array_accepts_both_key_styles_and_trims():
    fields = {
        "hotelAmenities[]": [" Pool ", "", "Gym"],
        "hotelAmenities": "Parking",
    }

    assert _decoder().decode_array(fields, "hotelAmenities") == ["Pool", "Gym", "Parking"]
    assert _decoder().decode_array(fields, "roomAmenities") == []


def test_decode_indexed_sorts_numerically():
    fields = {
        "placesOfInterest[10][name]": "Fort",
        "placesOfInterest[2][name]": "Lake",
        "placesOfInterest[2][distance]": "2 km",
        "placesOfInterest[x][name]": "Ignored",
    }

    records = _decoder().decode_indexed(fields, "placesOfInterest")

    assert records == [{"name": "Lake", "distance": "2 km"}, {"name": "Fort"}]


def test_default_decoder_applies_standard_markers():
    decoder = PathKeyDecoder()
    fields = {
        "packages[p][hourlyCharge]": "300",
        "packages[p][breakfast]": "on",
        "packages[p][ratePlan]": "Flexi",
    }

    record = decoder.decode_records(fields, "packages")[0]

    assert record == {"hourlyCharge": 300, "breakfast": True, "ratePlan": "Flexi"}
    assert decoder.coercion == FieldCoercion()
    assert decoder.coercion == Settings().field_coercion()


def test_empty_coercion_leaves_values_as_strings():
    decoder = PathKeyDecoder(FieldCoercion(boolean_markers=(), numeric_markers=(), text_fields=()))

    record = decoder.decode_records({"packages[p][hourlyCharge]": "300"}, "packages")[0]

    assert record == {"hourlyCharge": "300"}


def test_garbage_keys_do_not_change_the_result():
    fields = {
        "overnightRooms[room_0][category]": "Deluxe",
        "overnightRooms[room_0][roomAmenities][Deluxe][]": ["Wifi", "Ac"],
    }
    expected = [{"category": "Deluxe", "roomAmenities": {"Deluxe": ["Wifi", "Ac"]}}]

    assert _decoder().decode_records(fields, "overnightRooms") == expected
    assert _decoder().decode_records({**fields, "randomJunk": "x"}, "overnightRooms") == expected

from datetime import datetime, timedelta

import pytest

from nydmv.responses import (
    NEW_YORK,
    Appointment,
    Location,
    ResponseError,
    Service,
    appointments_from_location_dates,
    load_response,
    locations_from_counties,
    services_from_site_data,
)


def test_load_response_accepts_bytes_and_text():
    assert load_response(b'{"a": [1, 2]}') == {"a": [1, 2]}
    assert load_response('[{"b": null}]') == [{"b": None}]


def test_load_response_rejects_invalid_json():
    with pytest.raises(ResponseError):
        load_response(b"<html>down</html>")


def test_services_flatten_categories_in_order():
    payload = {
        "serviceTypes": [
            {
                "categoryDescription": "Permits",
                "serviceTypes": [
                    {"typeId": 201, "subTypeId": 0, "name": "Permit Test"},
                    {"typeId": 202, "subTypeId": 1, "name": "Permit Renewal"},
                ],
            },
            {
                "categoryDescription": "Road",
                "serviceTypes": [{"typeId": 301, "subTypeId": 0, "name": "Road Test"}],
            },
        ]
    }
    assert services_from_site_data(payload) == [
        Service(id=201, name="Permit Test"),
        Service(id=202, name="Permit Renewal"),
        Service(id=301, name="Road Test"),
    ]


def test_services_field_names_match_exactly_too():
    payload = {"ServiceTypes": [{"ServiceTypes": [{"TypeId": 7, "Name": "Plates"}]}]}
    assert services_from_site_data(payload) == [Service(id=7, name="Plates")]


def test_services_missing_or_null_is_empty():
    assert services_from_site_data({}) == []
    assert services_from_site_data(None) == []
    assert services_from_site_data({"serviceTypes": [{"serviceTypes": None}]}) == []


def test_services_wrong_types_raise():
    with pytest.raises(ResponseError):
        services_from_site_data([])
    with pytest.raises(ResponseError):
        services_from_site_data({"serviceTypes": [{"serviceTypes": [{"typeId": "x"}]}]})
    with pytest.raises(ResponseError):
        services_from_site_data({"serviceTypes": [{"serviceTypes": [{"typeId": 1.5}]}]})


def test_locations_flatten_counties():
    payload = [
        {"county": "Albany", "locations": [{"id": 1, "name": "Albany Office", "city": "Albany"}]},
        {
            "county": "Kings",
            "locations": [
                {"id": 2, "name": "Atlantic Center", "city": "Brooklyn"},
                {"id": 3, "name": "Coney Island"},
            ],
        },
    ]
    assert locations_from_counties(payload) == [
        Location(id=1, name="Albany Office", city="Albany"),
        Location(id=2, name="Atlantic Center", city="Brooklyn"),
        Location(id=3, name="Coney Island", city=""),
    ]


def test_locations_require_an_array():
    assert locations_from_counties(None) == []
    with pytest.raises(ResponseError):
        locations_from_counties({"county": "Albany"})


def _dates(*slots, location_id=12):
    return {
        "locationAvailabilityDates": [
            {"locationId": location_id, "availableTimeSlots": list(slots)}
        ],
        "firstAvailableDate": "2025-06-02T00:00:00",
    }


def test_appointments_are_in_new_york_time():
    payload = _dates(
        {"startDateTime": "2025-06-02T09:15:00", "duration": 15, "slotId": 345},
        {"startDateTime": "2025-01-10T14:30:00", "duration": 30, "slotId": 346},
    )
    appointments = appointments_from_location_dates(payload, 201)
    assert appointments == [
        Appointment(12, datetime(2025, 6, 2, 9, 15, tzinfo=NEW_YORK), 345, 15, 201),
        Appointment(12, datetime(2025, 1, 10, 14, 30, tzinfo=NEW_YORK), 346, 30, 201),
    ]
    assert appointments[0].date_time.utcoffset() == timedelta(hours=-4)
    assert appointments[1].date_time.utcoffset() == timedelta(hours=-5)


def test_appointments_accept_fractional_seconds():
    payload = _dates({"startDateTime": "2025-06-02T09:15:00.5", "duration": 15, "slotId": 1})
    (appointment,) = appointments_from_location_dates(payload, 9)
    assert appointment.date_time == datetime(2025, 6, 2, 9, 15, 0, 500000, tzinfo=NEW_YORK)
    assert appointment.service_id == 9


def test_appointments_empty_reply():
    assert appointments_from_location_dates({"locationAvailabilityDates": None}, 1) == []


@pytest.mark.parametrize("text", ["2025-06-02 09:15:00", "2025-13-02T09:15:00", "soon"])
def test_appointments_bad_time_raises(text):
    with pytest.raises(ResponseError):
        appointments_from_location_dates(_dates({"startDateTime": text}), 1)
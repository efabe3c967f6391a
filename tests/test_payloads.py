import io
import json
from datetime import datetime, timezone

from nydmv.payloads import Booking, write_payload
from nydmv.responses import NEW_YORK, Appointment

APPOINTMENT = Appointment(
    location_id=12,
    date_time=datetime(2025, 6, 2, 9, 15, tzinfo=NEW_YORK),
    slot_id=345,
    duration=15,
    service_id=201,
)


def test_from_appointment_copies_slot():
    booking = Booking.from_appointment(APPOINTMENT, "Ada", "Lovelace", "ada@example.com", "")
    assert booking.service_type_id == 201
    assert booking.site_id == 12
    assert booking.slot_id == 345
    assert booking.booking_duration == 15
    assert booking.send_sms is False
    assert datetime.fromisoformat(booking.booking_date_time) == APPOINTMENT.date_time


def test_send_sms_follows_cell_phone():
    booking = Booking.from_appointment(APPOINTMENT, "Ada", "Lovelace", "ada@example.com", "x")
    assert booking.send_sms is True
    assert booking.cell_phone == "x"


def test_to_json_wire_form():
    booking = Booking.from_appointment(APPOINTMENT, "Ada", "Lovelace", "ada@example.com", "")
    assert booking.to_json() == (
        '{"serviceTypeId":201,"bookingDateTime":"2025-06-02T09:15:00-04:00",'
        '"bookingDuration":15,"firstName":"Ada","lastName":"Lovelace",'
        '"email":"ada@example.com","cellPhone":"","sendSms":false,'
        '"siteId":12,"slotId":345}'
    )


def test_optional_fields_only_when_set():
    booking = Booking.from_appointment(APPOINTMENT, "Ada", "Lovelace", "ada@example.com", "")
    assert "serviceTypeId2" not in booking.to_dict()
    assert "dateOfBirth" not in booking.to_dict()
    full = Booking(**{**booking.__dict__, "service_type_id2": 4, "date_of_birth": "1990-01-01"})
    body = full.to_dict()
    assert body["serviceTypeId2"] == 4
    assert body["dateOfBirth"] == "1990-01-01"
    assert list(body)[:2] == ["serviceTypeId", "serviceTypeId2"]
    assert list(body)[-1] == "dateOfBirth"


def test_utc_times_use_z():
    appointment = Appointment(1, datetime(2025, 6, 2, 13, 15, 7, 999, tzinfo=timezone.utc), 2, 15, 3)
    booking = Booking.from_appointment(appointment, "A", "B", "a@example.com", "")
    assert booking.booking_date_time.endswith("Z")
    assert booking.booking_date_time.startswith("2025-06-02T13:15:07")


def test_html_characters_are_escaped():
    booking = Booking.from_appointment(APPOINTMENT, "<Ada>", "A&B", "ada@example.com", "")
    text = booking.to_json()
    assert "<" not in text and ">" not in text and "&" not in text
    assert "\\u003c" in text
    assert json.loads(text)["firstName"] == "<Ada>"
    assert json.loads(text)["lastName"] == "A&B"


def test_write_payload_round_trip():
    booking = Booking.from_appointment(APPOINTMENT, "Zoë", "Lovelace", "ada@example.com", "")
    stream = io.BytesIO()
    count = write_payload(booking, stream)
    assert count == len(stream.getvalue())
    assert json.loads(stream.getvalue()) == booking.to_dict()


def test_write_payload_plain_values():
    stream = io.BytesIO()
    count = write_payload({"a": [1, 2]}, stream)
    assert count > 0
    assert json.loads(stream.getvalue()) == {"a": [1, 2]}
"""Request bodies sent to the reservation API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, BinaryIO

from .responses import Appointment

_HTML_ESCAPES = {"&": "\\u0026", "<": "\\u003c", ">": "\\u003e",
                 "\u2028": "\\u2028", "\u2029": "\\u2029"}


def _rfc3339(moment: datetime) -> str:
    """Format a time to the second with its offset, using Z for UTC."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    moment = moment.replace(microsecond=0)
    text = moment.isoformat()
    return text[:-6] + "Z" if moment.utcoffset() == timedelta(0) else text


def _marshal(value: Any) -> str:
    """Compact JSON with HTML-sensitive characters escaped."""
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text


@dataclass(frozen=True)
class Booking:
    """The body of a booking request."""

    service_type_id: int
    booking_date_time: str
    booking_duration: int
    first_name: str
    last_name: str
    email: str
    cell_phone: str
    send_sms: bool
    site_id: int
    slot_id: int
    service_type_id2: int | None = None
    date_of_birth: str | None = None

    @classmethod
    def from_appointment(cls, appointment: Appointment, first_name: str, last_name: str,
                         email: str, cell_phone: str) -> Booking:
        """Build the request that books the given slot for a person."""
        return cls(
            service_type_id=appointment.service_id,
            booking_date_time=_rfc3339(appointment.date_time),
            booking_duration=appointment.duration,
            first_name=first_name,
            last_name=last_name,
            email=email,
            cell_phone=cell_phone,
            send_sms=cell_phone != "",
            site_id=appointment.location_id,
            slot_id=appointment.slot_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """The wire form, leaving out optional fields that are unset."""
        body = {
            "serviceTypeId": self.service_type_id,
            "serviceTypeId2": self.service_type_id2,
            "bookingDateTime": self.booking_date_time,
            "bookingDuration": self.booking_duration,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "cellPhone": self.cell_phone,
            "sendSms": self.send_sms,
            "siteId": self.site_id,
            "slotId": self.slot_id,
            "dateOfBirth": self.date_of_birth,
        }
        for optional in ("serviceTypeId2", "dateOfBirth"):
            if body[optional] is None:
                del body[optional]
        return body

    def to_json(self) -> str:
        """The wire form as compact JSON."""
        return _marshal(self.to_dict())


def write_payload(payload: Any, stream: BinaryIO) -> int:
    """Write a payload as JSON to a binary stream and return the bytes written."""
    text = payload.to_json() if isinstance(payload, Booking) else _marshal(payload)
    data = text.encode("utf-8")
    written = stream.write(data)
    return len(data) if written is None else written
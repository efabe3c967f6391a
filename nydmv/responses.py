"""Records returned by the reservation API and the decoding of its JSON replies."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

NEW_YORK = ZoneInfo("America/New_York")

_SLOT_TIME = re.compile(r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?")


class ResponseError(ValueError):
    """A reply from the API could not be decoded."""


@dataclass(frozen=True)
class Service:
    """A kind of appointment the offices offer."""

    id: int
    name: str


@dataclass(frozen=True)
class Location:
    """An office where appointments can be booked."""

    id: int
    name: str
    city: str


@dataclass(frozen=True)
class Appointment:
    """A free time slot at one office for one service."""

    location_id: int
    date_time: datetime
    slot_id: int
    duration: int
    service_id: int


def load_response(data: bytes | str) -> Any:
    """Decode a JSON reply body."""
    try:
        return json.loads(data)
    except ValueError as exc:
        raise ResponseError(f"invalid JSON reply: {exc}") from exc


def _check(value: Any, kind: type, default: Any, what: str) -> Any:
    """Return value if it has the expected JSON type, default if it is null."""
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ResponseError(f"{what}: expected {kind.__name__}, got {value!r}")
    return value


def _get(obj: dict[str, Any], name: str, kind: type, default: Any) -> Any:
    """Look a field up exactly first, then ignoring case, and check its type."""
    if name in obj:
        value = obj[name]
    else:
        folded = name.casefold()
        value = next((v for k, v in obj.items() if k.casefold() == folded), None)
    return _check(value, kind, default, name)


def _objects(items: Any, what: str) -> list[dict[str, Any]]:
    return [_check(item, dict, {}, what) for item in _check(items, list, [], what)]


def _parse_slot_time(text: str) -> datetime:
    match = _SLOT_TIME.fullmatch(text)
    if match is None:
        raise ResponseError(f"invalid slot time: {text!r}")
    *parts, fraction = match.groups()
    micro = int((fraction + "000000")[:6]) if fraction else 0
    try:
        return datetime(*map(int, parts), micro, tzinfo=NEW_YORK)
    except ValueError as exc:
        raise ResponseError(f"invalid slot time: {text!r}") from exc


def services_from_site_data(payload: Any) -> list[Service]:
    """Flatten the service categories of a SiteData reply into services."""
    site = _check(payload, dict, {}, "site data")
    return [
        Service(id=_get(entry, "TypeId", int, 0), name=_get(entry, "Name", str, ""))
        for category in _objects(_get(site, "ServiceTypes", list, []), "ServiceTypes")
        for entry in _objects(_get(category, "ServiceTypes", list, []), "ServiceTypes")
    ]


def locations_from_counties(payload: Any) -> list[Location]:
    """Flatten a LocationsByCounty reply into locations."""
    return [
        Location(
            id=_get(entry, "Id", int, 0),
            name=_get(entry, "Name", str, ""),
            city=_get(entry, "City", str, ""),
        )
        for county in _objects(payload, "counties")
        for entry in _objects(_get(county, "Locations", list, []), "Locations")
    ]


def appointments_from_location_dates(payload: Any, service_id: int) -> list[Appointment]:
    """Turn an AvailableLocationDates reply into appointments in New York time."""
    reply = _check(payload, dict, {}, "available location dates")
    locations = _objects(_get(reply, "LocationAvailabilityDates", list, []), "LocationAvailabilityDates")
    return [
        Appointment(
            location_id=_get(location, "LocationId", int, 0),
            date_time=_parse_slot_time(_get(slot, "StartDateTime", str, "")),
            slot_id=_get(slot, "SlotId", int, 0),
            duration=_get(slot, "Duration", int, 0),
            service_id=service_id,
        )
        for location in locations
        for slot in _objects(_get(location, "AvailableTimeSlots", list, []), "AvailableTimeSlots")
    ]
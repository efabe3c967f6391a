"""HTTP client for the New York DMV reservation API."""

from __future__ import annotations

import io
from datetime import datetime

import requests

from .payloads import Booking, _rfc3339, write_payload
from .responses import (
    Appointment,
    Location,
    Service,
    appointments_from_location_dates,
    load_response,
    locations_from_counties,
    services_from_site_data,
)

BASE_URL = "https://publicwebsiteapi.nydmvreservation.com/api/"


class DmvApiError(Exception):
    """The API could not be reached or refused a request."""


class Client:
    """Reads services, offices and free slots, and books appointments."""

    def __init__(self, session: requests.Session | None = None, base_url: str = BASE_URL) -> None:
        self._session = session if session is not None else requests.Session()
        self._base_url = base_url

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(method, self._base_url + path, **kwargs)
        except requests.RequestException as exc:
            raise DmvApiError(str(exc)) from exc

    def get_services(self) -> list[Service]:
        """All services that can be booked."""
        return services_from_site_data(load_response(self._request("GET", "SiteData").content))

    def get_locations(self, service_id: int) -> list[Location]:
        """Offices that offer a service."""
        response = self._request("GET", f"LocationsByCounty?serviceTypeId={service_id}")
        return locations_from_counties(load_response(response.content))

    def get_appointments(self, location_id: int, service_id: int) -> list[Appointment]:
        """Free slots from now on for a service at one office."""
        start = _rfc3339(datetime.now().astimezone())
        response = self._request(
            "GET",
            f"AvailableLocationDates?locationId={location_id}&typeId={service_id}&startDate={start}",
        )
        if response.status_code != requests.codes.ok:
            if response.content:
                raise DmvApiError(f"error response: {response.text}")
            raise DmvApiError(f"unexpected status code: {response.status_code}")
        return appointments_from_location_dates(load_response(response.content), service_id)

    def book_appointment(self, appointment: Appointment, first_name: str, last_name: str,
                         email: str, cell_phone: str) -> None:
        """Book a slot for a person."""
        booking = Booking.from_appointment(appointment, first_name, last_name, email, cell_phone)
        buffer = io.BytesIO()
        if write_payload(booking, buffer) == 0:
            raise DmvApiError("no data written")
        response = self._request("POST", "Booking", data=buffer.getvalue(),
                                 headers={"Content-Type": "application/json"})
        if response.status_code != requests.codes.ok:
            raise DmvApiError(f"unexpected status code: {response.status_code}")
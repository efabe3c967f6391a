"""Command line for listing services, offices and free slots, and booking a slot."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from .client import Client, DmvApiError
from .responses import ResponseError

MAX_LOCATIONS = 10
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class _CommandFailed(Exception):
    """A command could not complete; the message is shown to the user."""


@contextmanager
def _failure(message: str) -> Iterator[None]:
    try:
        yield
    except (DmvApiError, ResponseError) as exc:
        raise _CommandFailed(f"{message}: {exc}") from exc


def print_services(client: Client) -> None:
    """Print every service as "id: name"."""
    with _failure("Failed to get services"):
        services = client.get_services()
    for service in services:
        print(f"{service.id}: {service.name}")


def print_locations(client: Client, service_id: int) -> None:
    """Print the offices offering a service as "id: name, city"."""
    with _failure("Failed to get locations"):
        locations = client.get_locations(service_id)
    for location in locations:
        print(f"{location.id}: {location.name}, {location.city}")


def get_location_names(client: Client, service_id: int) -> dict[int, str]:
    """Map the ids of the offices offering a service to their names."""
    return {location.id: location.name for location in client.get_locations(service_id)}


def print_appointments(client: Client, location_ids: Sequence[int], service_id: int) -> None:
    """Print the free slots at the given offices, soonest first."""
    with _failure("Failed to get location names"):
        names = get_location_names(client, service_id)

    appointments = []
    for location_id in location_ids:
        with _failure(f"Failed to get appointments for location {location_id}"):
            appointments.extend(client.get_appointments(location_id, service_id))

    for appt in sorted(appointments, key=lambda a: a.date_time):
        print(
            f"{appt.date_time.strftime(_TIME_FORMAT)} - {names.get(appt.location_id, '')}"
            f" - Location ID: {appt.location_id}, Slot ID: {appt.slot_id},"
            f" Duration: {appt.duration}"
        )


def book_appointment(
    client: Client,
    location_id: int,
    service_id: int,
    slot_id: int,
    first_name: str,
    last_name: str,
    email: str,
    phone: str,
) -> bool:
    """Book the slot with the given id; return whether such a slot was found."""
    with _failure("Failed to get appointments"):
        appointments = client.get_appointments(location_id, service_id)

    appointment = next((a for a in appointments if a.slot_id == slot_id), None)
    if appointment is None:
        print("No appointment found with the given slot ID.")
        return False

    with _failure("Failed to book appointment"):
        client.book_appointment(appointment, first_name, last_name, email, phone)
    print("Appointment booked successfully!")
    return True


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nydmv", description=__doc__)
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("services", help="list services")

    locations = commands.add_parser("locations", help="list offices for a service")
    locations.add_argument("service_id", metavar="serviceId", type=int)

    appointments = commands.add_parser("appointments", help="list free slots")
    appointments.add_argument("service_id", metavar="serviceId", type=int)
    appointments.add_argument("location_ids", metavar="locationIds", type=int, nargs="+")

    book = commands.add_parser("book", help="book a free slot")
    book.add_argument("service_id", metavar="serviceId", type=int)
    book.add_argument("location_id", metavar="locationId", type=int)
    book.add_argument("slot_id", metavar="slotId", type=int)
    book.add_argument("first_name", metavar="firstName")
    book.add_argument("last_name", metavar="lastName")
    book.add_argument("email")
    book.add_argument("phone")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "appointments" and len(args.location_ids) > MAX_LOCATIONS:
        parser.error(f"at most {MAX_LOCATIONS} location IDs may be given")

    client = Client()
    try:
        if args.command == "services":
            print_services(client)
        elif args.command == "locations":
            print_locations(client, args.service_id)
        elif args.command == "appointments":
            print_appointments(client, args.location_ids, args.service_id)
        elif args.command == "book":
            book_appointment(
                client,
                args.location_id,
                args.service_id,
                args.slot_id,
                args.first_name,
                args.last_name,
                args.email,
                args.phone,
            )
    except _CommandFailed as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
# nydmv

This package works with the New York DMV reservation system. You can look up
services, offices and open appointment slots, and you can book a slot. A
Telegram bot can also watch one office and send you a message when an early
slot turns up.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Command line

The `nydmv` command has four subcommands.

### List services

This prints every service as `ID: name`:

```
nydmv services
```

### List offices

This prints the offices that offer a service as `ID: name, city`:

```
nydmv locations SERVICE_ID
```

### Show open slots

This shows the open slots for a service at one or more offices, soonest
first. You can give at most ten location IDs.

```
nydmv appointments SERVICE_ID LOCATION_ID [LOCATION_ID ...]
```

Each line gives the following, in this order:

- the date and time, in New York time, as `YYYY-MM-DD HH:MM:SS`
- the office name
- the location ID
- the slot ID
- the duration

### Book a slot

Use a slot ID from the `appointments` listing:

```
nydmv book SERVICE_ID LOCATION_ID SLOT_ID FIRST_NAME LAST_NAME jane.doe@example.com PHONE
```

If no open slot at that office has the given slot ID, the command says so and
books nothing. If the phone number is an empty string, no SMS confirmation is
requested.

### Errors

If the service cannot be reached, refuses a request or sends a reply that
cannot be decoded, the command prints the failure on standard error and exits
with status 1.

## Telegram bot

Set the bot token in the environment, then start the bot:

```
export TELEGRAM_BOT_TOKEN=token
nydmv-bot
```

The bot long-polls Telegram for messages and answers these commands:

| Command | What it does |
| --- | --- |
| `/start` | Sends a greeting. |
| `/help` | Lists the commands. |
| `/services` | Lists the available services. |
| `/locations <service_id>` | Lists the offices that offer a service. |
| `/watch <service_id> <location_id> <within_hours>` | Starts a watch on one office (see below). |
| `/stop` | Stops the current watch. Sends no reply. |

While a watch runs, the bot checks the office every 20 seconds. On each check
it sends up to five open slots that are after the present moment and no more
than `within_hours` hours away. It sends these slots on every check in which
any are found.

Only one watch runs at a time, for all chats together. Starting a new watch
replaces the old one. The watch is kept in memory only, so it ends when the
bot stops.

## Python API

```python
from nydmv.client import Client

client = Client()
services = client.get_services()
locations = client.get_locations(services[0].id)
slots = client.get_appointments(locations[0].id, services[0].id)
for slot in slots:
    print(slot.date_time, slot.slot_id, slot.duration)
```

`Client(session=None, base_url=...)` takes an optional `requests.Session` and
API base URL.

### Return types

These dataclasses live in `nydmv.responses`:

- `Client.get_services()` returns a list of `Service` (`id`, `name`).
- `Client.get_locations(service_id)` returns a list of `Location` (`id`, `name`, `city`).
- `Client.get_appointments(location_id, service_id)` returns a list of
  `Appointment` (`location_id`, `date_time`, `slot_id`, `duration`,
  `service_id`). Each `date_time` is a timezone-aware time in New York.

### Booking

`Client.book_appointment(appointment, first_name, last_name, email, cell_phone)`
books one of the returned appointments. The request body is built by
`nydmv.payloads.Booking`.

### Exceptions

- `nydmv.client.DmvApiError` is raised when the service cannot be reached,
  when `get_appointments` gets a status other than 200, and when
  `book_appointment` gets a status other than 200.
- `nydmv.responses.ResponseError` is raised when a reply cannot be decoded.
"""Telegram bot that lists services and offices and watches for free slots."""

from __future__ import annotations

import argparse
import logging
import os
import re
import threading
import time
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import requests

from .client import Client, DmvApiError
from .payloads import _rfc3339
from .responses import Appointment, ResponseError

log = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"
TOKEN_VARIABLE = "TELEGRAM_BOT_TOKEN"
CHECK_PERIOD = timedelta(seconds=20)
POLL_TIMEOUT = 60
RETRY_DELAY = 3
MAX_REPORTED = 5

HELP_TEXT = (
    "Available commands:\n"
    "/services - List available services\n"
    "/locations <service_id> - List locations for a specific service\n"
    "/watch <service_id> <location_id> <within_hours> - Watch for appointments at a specific location\n"
    "/help - Show this help message\n"
)
WELCOME_TEXT = "Welcome! I'm a Go Telegram bot. Use /help to see available commands."
UNKNOWN_TEXT = "Unknown command. Type /help to see available commands."

_COMMAND = re.compile(r"/(\S+)")
_INTEGER = re.compile(r"[+-]?\d+")


class _TelegramError(RuntimeError):
    """The Bot API could not be reached or rejected a call."""


class TelegramBot:
    """A minimal client for the Telegram Bot API."""

    def __init__(self, token: str, session: requests.Session | None = None) -> None:
        self._url = f"{TELEGRAM_API}/bot{token}/"
        self._session = session if session is not None else requests.Session()

    def _call(self, method: str, http_timeout: float = 30, **params: Any) -> Any:
        try:
            reply = self._session.post(self._url + method, json=params, timeout=http_timeout).json()
        except (requests.RequestException, ValueError) as exc:
            raise _TelegramError(f"{method}: {exc}") from exc
        if not isinstance(reply, dict) or not reply.get("ok"):
            description = reply.get("description") if isinstance(reply, dict) else None
            raise _TelegramError(f"{method}: {description or 'request failed'}")
        return reply.get("result")

    def get_me(self) -> dict[str, Any]:
        """The bot's own account."""
        return self._call("getMe")

    def get_updates(self, offset: int = 0, timeout: int = POLL_TIMEOUT) -> list[dict[str, Any]]:
        """Long-poll for updates from the given offset on."""
        result = self._call("getUpdates", http_timeout=timeout + 10, offset=offset, timeout=timeout)
        return list(result or [])

    def send_message(self, chat_id: int, text: str) -> dict[str, Any]:
        """Send a text message to a chat."""
        return self._call("sendMessage", chat_id=chat_id, text=text)


def parse_command(text: str | None) -> tuple[str, str] | None:
    """Split a "/command@bot arguments" message; None when it is not a command."""
    match = _COMMAND.match(text or "")
    if match is None:
        return None
    return match.group(1).split("@", 1)[0], text[match.end() + 1:]


def _atoi(text: str) -> int:
    if _INTEGER.fullmatch(text) is None:
        raise ValueError(f"invalid number: {text!r}")
    return int(text)


def list_services(client: Client) -> str:
    """One line per service, or an error notice."""
    try:
        services = client.get_services()
    except (DmvApiError, ResponseError) as exc:
        log.error("Error listing services: %s", exc)
        return "Error retrieving services."
    return "".join(f"Service ID: {s.id}\tName: {s.name}\n" for s in services)


def list_locations(client: Client, service_id: int) -> str:
    """One line per office offering a service, or an error notice."""
    try:
        locations = client.get_locations(service_id)
    except (DmvApiError, ResponseError) as exc:
        log.error("Error listing locations: %s", exc)
        return "Error retrieving locations."
    return "".join(f"Location ID: {loc.id}\tName: {loc.name}\n" for loc in locations)


def get_appointments(client: Client, service_id: int, location_ids: Iterable[int]) -> list[Appointment]:
    """Free slots at all the given offices, soonest first."""
    appointments: list[Appointment] = []
    for location_id in location_ids:
        try:
            appointments.extend(client.get_appointments(location_id, service_id))
        except (DmvApiError, ResponseError) as exc:
            raise DmvApiError(f"error getting appointments for location {location_id}: {exc}") from exc
    appointments.sort(key=lambda a: a.date_time)
    return appointments


def filter_appointments(appointments: Iterable[Appointment], now: datetime,
                        within: timedelta) -> list[Appointment]:
    """Slots strictly after now and no further than within from it."""
    return [a for a in appointments if now < a.date_time and a.date_time - now <= within]


def format_appointments(appointments: Iterable[Appointment]) -> str:
    """A message listing at most the first five slots."""
    return "".join(
        f"Appointment ID: {a.slot_id}\tDate: {_rfc3339(a.date_time)}\n"
        for a, _ in zip(appointments, range(MAX_REPORTED))
    )


class WatchState:
    """Periodically checks for slots and reports those close enough to a chat."""

    def __init__(self, client: Client, service_id: int, location_ids: Sequence[int],
                 within: timedelta, chat_id: int, bot: TelegramBot,
                 check_period: timedelta = CHECK_PERIOD) -> None:
        self.client = client
        self.service_id = service_id
        self.location_ids = list(location_ids)
        self.within = within
        self.chat_id = chat_id
        self.bot = bot
        self.check_period = check_period
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    def check(self) -> str | None:
        """Look once; return the text sent to the chat, or None if nothing was due."""
        try:
            appointments = get_appointments(self.client, self.service_id, self.location_ids)
        except DmvApiError as exc:
            log.error("Error getting appointments: %s", exc)
            return None
        if not appointments:
            log.info("No appointments found.")
            return None
        soon = filter_appointments(appointments, datetime.now(timezone.utc), self.within)
        if not soon:
            log.info("No appointments found within the specified duration.")
            return None
        text = format_appointments(soon)
        try:
            self.bot.send_message(self.chat_id, text)
        except _TelegramError as exc:
            log.error("Error sending message: %s", exc)
        return text

    def _run(self) -> None:
        while not self._stopped.wait(self.check_period.total_seconds()):
            self.check()
        log.info("Stopping watch...")

    def start(self) -> None:
        """Begin checking in the background every check period."""
        if self._thread is not None:
            raise RuntimeError("watch already started")
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name="watch", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop checking and wait for the background work to end."""
        self._stopped.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        log.info("Watch stopped.")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class CommandHandler:
    """Answers the bot's commands and keeps the one active watch."""

    def __init__(self, bot: TelegramBot, client: Client) -> None:
        self.bot = bot
        self.client = client
        self.watch_state: WatchState | None = None

    def _stop_watch(self) -> None:
        if self.watch_state is not None:
            self.watch_state.stop()
            self.watch_state = None

    def _watch(self, chat_id: int, args: str) -> str:
        if args == "":
            return "Please provide a service ID and location ID to watch for appointments."
        ids = args.split(" ")
        if len(ids) < 3:
            return "Please provide service ID, location ID, and within_hours (e.g., /watch 1 2 24)."
        values = []
        for text, error in zip(ids, ("Invalid service ID.", "Invalid location ID.", "Invalid hours value.")):
            try:
                values.append(_atoi(text))
            except ValueError:
                return f"{error} Please provide a valid number."
        service_id, location_id, within_hours = values

        self._stop_watch()
        self.watch_state = WatchState(self.client, service_id, [location_id],
                                      timedelta(hours=within_hours), chat_id, self.bot, CHECK_PERIOD)
        self.watch_state.start()
        return (f"Watching for appointments for service ID {service_id} "
                f"at location ID {location_id} within {within_hours} hours.")

    def _reply(self, chat_id: int, command: str, args: str) -> str:
        command = command.lower()
        if command == "start":
            return WELCOME_TEXT
        if command == "help":
            return HELP_TEXT
        if command == "services":
            return list_services(self.client)
        if command == "locations":
            if args == "":
                return "Please provide a service ID to list locations."
            try:
                return list_locations(self.client, _atoi(args))
            except ValueError:
                return "Invalid service ID. Please provide a valid number."
        if command == "watch":
            return self._watch(chat_id, args)
        if command == "stop":
            self._stop_watch()
            return ""
        return UNKNOWN_TEXT

    def handle(self, chat_id: int, text: str | None) -> str | None:
        """Answer a message; return the reply, or None if it was not a command."""
        parsed = parse_command(text)
        if parsed is None:
            return None
        reply = self._reply(chat_id, *parsed)
        if reply:
            try:
                self.bot.send_message(chat_id, reply)
            except _TelegramError as exc:
                log.error("Error sending message: %s", exc)
        return reply


def main(argv: Sequence[str] | None = None) -> int:
    """Run the bot until interrupted and return the exit status."""
    argparse.ArgumentParser(
        prog="nydmv-bot", description=f"Telegram bot; the token is read from {TOKEN_VARIABLE}."
    ).parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    token = os.environ.get(TOKEN_VARIABLE, "")
    if not token:
        log.error("%s environment variable is not set", TOKEN_VARIABLE)
        return 1

    bot = TelegramBot(token)
    try:
        me = bot.get_me()
    except _TelegramError as exc:
        log.error("Failed to create bot: %s", exc)
        return 1
    log.info("Authorized on account %s", me.get("username", ""))

    handler = CommandHandler(bot, Client())
    offset = 0
    try:
        while True:
            try:
                updates = bot.get_updates(offset, POLL_TIMEOUT)
            except _TelegramError as exc:
                log.error("Failed to get updates, retrying in %d seconds: %s", RETRY_DELAY, exc)
                time.sleep(RETRY_DELAY)
                continue
            for update in updates:
                offset = max(offset, int(update.get("update_id", 0)) + 1)
                message = update.get("message")
                if message is None:
                    continue
                text = message.get("text", "")
                log.info("[%s] %s", (message.get("from") or {}).get("username", ""), text)
                handler.handle(message["chat"]["id"], text)
    except KeyboardInterrupt:
        handler._stop_watch()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
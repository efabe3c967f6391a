"""Client, command-line tool and Telegram bot for New York DMV appointment reservations."""

__version__ = "0.1.0"
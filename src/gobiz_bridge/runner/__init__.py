"""
CLI runner module.

Provides commands:
- init-config: Write a default config file
- login: Verify the configured account can log in
- today: Today's transactions
- search: One page of transactions in a date range
- summary: Totals over every transaction in a date range
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]

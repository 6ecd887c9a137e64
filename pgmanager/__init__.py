"""PG (paying-guest) property management: rent ledger, rooms and move-out settlements."""

__version__ = "0.1.0"

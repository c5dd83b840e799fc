"""Daily digest of Bitrix24 calendar events and open tasks."""

__version__ = "0.1.0"

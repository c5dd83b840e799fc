"""Digest rendering and delivery."""

from .generator import format_digest, sanitize_message
from .sender import DeliveryError, deliver

__all__ = ["format_digest", "sanitize_message", "DeliveryError", "deliver"]

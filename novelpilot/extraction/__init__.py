"""Content extraction from chat-completion payloads.

``extract_content`` is the process-wide entry point: any component holding a
decoded upstream payload can import and call it directly.
"""

from .envelopes import (
    BareStringEnvelope,
    ChoiceMessageEnvelope,
    ChoiceTextEnvelope,
    DirectFieldEnvelope,
    Envelope,
    UnknownEnvelope,
    envelope_source,
    envelope_text,
    parse_envelope,
)
from .extractor import extract_content


__all__ = [
    "BareStringEnvelope",
    "ChoiceMessageEnvelope",
    "ChoiceTextEnvelope",
    "DirectFieldEnvelope",
    "Envelope",
    "UnknownEnvelope",
    "envelope_source",
    "envelope_text",
    "extract_content",
    "parse_envelope",
]

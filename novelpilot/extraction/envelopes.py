"""Envelope shapes used by chat-completion providers.

Providers wrap generated text differently: custom back-ends return it in a
top-level field, OpenAI-compatible APIs nest it in a ``choices`` array, and
some proxies return the bare string. Each known shape is one frozen dataclass;
``parse_envelope`` classifies a decoded payload and ``envelope_text`` maps every
variant to a string.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


# Checked in this order; the first string-valued field wins
DIRECT_FIELDS = ("response", "message", "content", "data")


@dataclass(frozen=True)
class DirectFieldEnvelope:
    """Text stored directly under one of ``DIRECT_FIELDS``."""

    field: str
    text: str


@dataclass(frozen=True)
class ChoiceMessageEnvelope:
    """OpenAI chat format: ``choices[0].message.content``."""

    text: str


@dataclass(frozen=True)
class ChoiceTextEnvelope:
    """Legacy completion format: ``choices[0].text``."""

    text: str


@dataclass(frozen=True)
class BareStringEnvelope:
    """The payload itself is the text."""

    text: str


@dataclass(frozen=True)
class UnknownEnvelope:
    """Payload shape not recognized."""

    type_name: str = "NoneType"


Envelope = (
    DirectFieldEnvelope
    | ChoiceMessageEnvelope
    | ChoiceTextEnvelope
    | BareStringEnvelope
    | UnknownEnvelope
)


def _first_choice(payload: Mapping[str, Any]) -> Any:
    choices = payload.get("choices")
    if isinstance(choices, list | tuple) and choices:
        return choices[0]
    return None


def parse_envelope(payload: Any) -> Envelope:
    """Classify a decoded upstream payload into its envelope shape.

    Falsy payloads (``None``, ``{}``, ``""``) are always unknown.
    """
    if not payload:
        return UnknownEnvelope(type(payload).__name__)

    if isinstance(payload, Mapping):
        for field in DIRECT_FIELDS:
            value = payload.get(field)
            if isinstance(value, str):
                return DirectFieldEnvelope(field=field, text=value)

        choice = _first_choice(payload)
        if isinstance(choice, Mapping):
            message = choice.get("message")
            if isinstance(message, Mapping):
                content = message.get("content")
                if isinstance(content, str):
                    return ChoiceMessageEnvelope(text=content)
            text = choice.get("text")
            if isinstance(text, str):
                return ChoiceTextEnvelope(text=text)

        return UnknownEnvelope(type(payload).__name__)

    if isinstance(payload, str):
        return BareStringEnvelope(text=payload)

    return UnknownEnvelope(type(payload).__name__)


def envelope_text(envelope: Envelope) -> str:
    """Return the text carried by an envelope, ``""`` for unknown shapes."""
    if isinstance(envelope, UnknownEnvelope):
        return ""
    return envelope.text


def envelope_source(envelope: Envelope) -> str:
    """Describe where the text was found, for diagnostics."""
    if isinstance(envelope, DirectFieldEnvelope):
        return f"response.{envelope.field}"
    if isinstance(envelope, ChoiceMessageEnvelope):
        return "response.choices[0].message.content"
    if isinstance(envelope, ChoiceTextEnvelope):
        return "response.choices[0].text"
    if isinstance(envelope, BareStringEnvelope):
        return "response"
    return f"unknown:{envelope.type_name}"

"""Best-effort text extraction from chat-completion payloads."""

from typing import Any

from novelpilot.core.logging import get_logger

from .envelopes import envelope_source, envelope_text, parse_envelope


logger = get_logger(__name__)


def extract_content(response: Any) -> str:
    """Extract the generated text from an arbitrary upstream payload.

    Resolution order, first match wins:

    1. ``response["response"]``, ``["message"]``, ``["content"]`` or ``["data"]``
       when the value is a string
    2. ``response["choices"][0]["message"]["content"]``
    3. ``response["choices"][0]["text"]``
    4. ``response`` itself when it is a string

    Args:
        response: Decoded JSON value (or raw string) returned by the provider

    Returns:
        The extracted text, or ``""`` when the shape is not recognized. An empty
        result means "unknown format", not an empty completion.
    """
    envelope = parse_envelope(response)
    content = envelope_text(envelope)
    logger.debug(
        "content_extraction_resolved",
        source=envelope_source(envelope),
        length=len(content),
    )
    return content

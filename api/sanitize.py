"""
Input sanitization for stored chat messages.
"""

_ESCAPES = (
    ("&", "&amp;"),  # must run first
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)


def sanitize_input(text: str) -> str:
    """Escape HTML special characters."""
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def sanitize_and_trim(text: str) -> str:
    return sanitize_input(text.strip())

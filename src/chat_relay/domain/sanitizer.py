"""Markup escaping for user-supplied text fields."""
from __future__ import annotations

import html


def sanitize(text: str) -> str:
    """Escape ``& < > " '`` so the result renders literally as HTML.

    Single pass: already-escaped input is escaped again.
    """
    return html.escape(text, quote=True)

"""Call-to-action precedence rule shared by prompts, checks and the mock provider."""

from __future__ import annotations

import re
from typing import List

from ..types import CtaDetails

GENERIC_CTA = "Learn More"

_URL_PATTERN = re.compile(r"(https?://|www\.)\S+", re.IGNORECASE)
_WHATSAPP_PATTERN = re.compile(r"whats\s*app", re.IGNORECASE)


def assemble_cta(details: CtaDetails) -> str:
    """Return the CTA text for the four url/whatsapp presence states."""
    url = (details.url or "").strip()
    whatsapp = (details.whatsapp or "").strip()
    if url and whatsapp:
        return f"Shop now at {url} or message us on WhatsApp at {whatsapp}"
    if url:
        return f"Shop now at {url}"
    if whatsapp:
        return f"Message us on WhatsApp at {whatsapp}"
    return GENERIC_CTA


def cta_instruction(details: CtaDetails) -> str:
    """Describe the precedence rule to the provider for the current details."""
    url = (details.url or "").strip()
    whatsapp = (details.whatsapp or "").strip()
    if url and whatsapp:
        return (
            f'Both a website ({url}) and a WhatsApp number ({whatsapp}) were given: every CTA must '
            f'reference both, e.g. "{assemble_cta(details)}".'
        )
    if url:
        return (
            f"Only a website was given: every CTA must use {url} and must not mention WhatsApp "
            "or any other destination."
        )
    if whatsapp:
        return (
            f"Only a WhatsApp number was given: every CTA must invite people to message {whatsapp} "
            "on WhatsApp and must not mention any website."
        )
    return (
        f'No destination was given: use a generic CTA such as "{GENERIC_CTA}" and do not invent '
        "a website or WhatsApp contact."
    )


def _normalise_url(url: str) -> str:
    text = url.strip().lower()
    text = re.sub(r"^https?://", "", text)
    text = re.sub(r"^www\.", "", text)
    return text.rstrip("/")


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def references_url(text: str, url: str) -> bool:
    """True when ``text`` mentions ``url`` (scheme and ``www.`` are optional)."""
    target = _normalise_url(url)
    return bool(target) and target in text.lower()


def references_whatsapp(text: str, whatsapp: str) -> bool:
    """True when ``text`` points at WhatsApp by name or by the number itself."""
    if _WHATSAPP_PATTERN.search(text):
        return True
    digits = _digits(whatsapp)
    return bool(digits) and digits in _digits(text)


def cta_violations(text: str, details: CtaDetails) -> List[str]:
    """Return the ways ``text`` breaks the precedence rule (empty when it conforms)."""
    if not text.strip():
        return ["CTA is empty"]

    problems: List[str] = []
    if details.has_url:
        if not references_url(text, details.url or ""):
            problems.append(f"CTA {text!r} does not reference the website {details.url}")
        target = _normalise_url(details.url or "")
        for match in _URL_PATTERN.finditer(text):
            found = _normalise_url(match.group(0).rstrip(".,;:!?)\"'"))
            if not found.startswith(target):
                problems.append(f"CTA {text!r} references a website that was not provided: {match.group(0)}")
    elif _URL_PATTERN.search(text):
        problems.append(f"CTA {text!r} references a website that was not provided")

    if details.has_whatsapp:
        if not references_whatsapp(text, details.whatsapp or ""):
            problems.append(f"CTA {text!r} does not reference the WhatsApp contact")
    elif _WHATSAPP_PATTERN.search(text):
        problems.append(f"CTA {text!r} references WhatsApp although no number was provided")
    return problems


__all__ = [
    "GENERIC_CTA",
    "assemble_cta",
    "cta_instruction",
    "cta_violations",
    "references_url",
    "references_whatsapp",
]

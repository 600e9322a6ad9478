from __future__ import annotations

import re

from src.common.errors import ValidationError

_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
DOMAIN_PATTERN = re.compile(rf"^{_LABEL}(?:\.{_LABEL})*$")


def is_valid_domain(candidate: str) -> bool:
    return isinstance(candidate, str) and DOMAIN_PATTERN.fullmatch(candidate) is not None


def validate_domain(candidate: str) -> str:
    """Return ``candidate`` unchanged if it is a valid hostname, else raise ``ValidationError``."""

    if not is_valid_domain(candidate):
        raise ValidationError(candidate)
    return candidate

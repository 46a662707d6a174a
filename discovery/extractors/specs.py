"""Product specification extraction (volume, weight, size, technical attributes)."""

from __future__ import annotations

import re
from typing import Dict, Mapping

_VOLUME_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(ml|millilitres?|milliliters?|l|litres?|liters?)\b", re.IGNORECASE)
_WEIGHT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(kilograms?|kg|grams?|g)\b", re.IGNORECASE)
_SIZE_RE = re.compile(
    r"\bsize\s*[:\-]?\s*(xxl|xl|xs|s|m|l|\d{1,2})\b|\b(xxl|xl|xs|small|medium|large)\b",
    re.IGNORECASE,
)
_TECH_RE = re.compile(
    r"(\d+)\s*-?\s*(cores?|cpus?|gb|tb|mb)\b(?:\s+(ram|memory|storage|ssd|hdd))?",
    re.IGNORECASE,
)

_SIZE_ALIASES = {"small": "s", "medium": "m", "large": "l"}
_TECH_QUALIFIERS = {
    "ram": "ram",
    "memory": "ram",
    "storage": "storage",
    "ssd": "storage",
    "hdd": "storage",
}


def _format_quantity(value: float, unit: str) -> str:
    return f"{value:g}{unit}"


def _volume_ml(amount: str, unit: str) -> float:
    value = float(amount)
    if unit.lower().startswith("m"):
        return value
    return value * 1000


def _weight_g(amount: str, unit: str) -> float:
    value = float(amount)
    if unit.lower().startswith("k"):
        return value * 1000
    return value


def extract_specifications(text: str) -> Dict[str, str]:
    """Return a normalised attribute -> value map for the specs found in ``text``.

    Volumes are expressed in ml and weights in g so that "2L" and "2000ml"
    compare equal. Missing attributes are simply absent from the map.
    """
    specs: Dict[str, str] = {}
    if not text:
        return specs

    volume = _VOLUME_RE.search(text)
    if volume:
        specs["volume"] = _format_quantity(_volume_ml(volume.group(1), volume.group(2)), "ml")

    weight = _WEIGHT_RE.search(text)
    if weight:
        specs["weight"] = _format_quantity(_weight_g(weight.group(1), weight.group(2)), "g")

    size = _SIZE_RE.search(text)
    if size:
        token = (size.group(1) or size.group(2)).lower()
        specs["size"] = _SIZE_ALIASES.get(token, token)

    for match in _TECH_RE.finditer(text):
        amount, unit, qualifier = match.group(1), match.group(2).lower(), match.group(3)
        if unit.startswith(("core", "cpu")):
            specs.setdefault("cores", amount)
            continue
        key = _TECH_QUALIFIERS.get(qualifier.lower(), unit) if qualifier else unit
        specs.setdefault(key, f"{amount}{unit}")

    return specs


def matches_specifications(
    title: str,
    required: Mapping[str, str],
    *,
    strict: bool = False,
) -> bool:
    """Check a candidate title against the specs extracted from the expense.

    Non-strict mode only compares attributes present on both sides. Strict
    mode (used for literal shopping listings) also rejects titles that omit a
    required volume, weight or technical attribute. Size is compared only when
    both sides state one in either mode.
    """
    if not required:
        return True

    found = extract_specifications(title)
    for key, value in required.items():
        candidate_value = found.get(key)
        if candidate_value is None:
            if strict and key != "size":
                return False
            continue
        if candidate_value.lower() != value.lower():
            return False
    return True


def expense_specifications(name: str, description: str) -> Dict[str, str]:
    """Specs stated by an expense; attributes in the description win over the name."""
    specs = extract_specifications(name)
    specs.update(extract_specifications(description))
    return specs

"""Geographic hints in free text: known localities, state codes and postcodes."""

import re
from typing import Dict, NamedTuple, Optional, Tuple

from discovery.models import Expense, UserPreferences


class LocationHint(NamedTuple):
    locality: str = ""
    state: str = ""
    postcode: str = ""

    def display(self) -> str:
        return " ".join(part for part in (self.locality, self.state) if part)


# locality -> (state, postcode)
KNOWN_LOCALITIES: Dict[str, Tuple[str, str]] = {
    "Sydney": ("NSW", "2000"),
    "Melbourne": ("VIC", "3000"),
    "Brisbane": ("QLD", "4000"),
    "Perth": ("WA", "6000"),
    "Adelaide": ("SA", "5000"),
    "Hobart": ("TAS", "7000"),
    "Canberra": ("ACT", "2600"),
    "Darwin": ("NT", "0800"),
    "Gold Coast": ("QLD", "4217"),
    "Newcastle": ("NSW", "2300"),
    "Wollongong": ("NSW", "2500"),
    "Geelong": ("VIC", "3220"),
    "Townsville": ("QLD", "4810"),
    "Cairns": ("QLD", "4870"),
    "Toowoomba": ("QLD", "4350"),
    "Ballarat": ("VIC", "3350"),
    "Bendigo": ("VIC", "3550"),
    "Albury": ("NSW", "2640"),
    "Wodonga": ("VIC", "3690"),
    "Launceston": ("TAS", "7250"),
}

STATE_CODES = ("NSW", "VIC", "QLD", "WA", "SA", "TAS", "ACT", "NT")

# longest first so "Gold Coast" wins over any shorter overlap
_LOCALITY_RE = re.compile(
    r"\b(" + "|".join(re.escape(name) for name in sorted(KNOWN_LOCALITIES, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_STATE_RE = re.compile(r"\b(" + "|".join(STATE_CODES) + r")\b")
_STATE_POSTCODE_RE = re.compile(r"\b(" + "|".join(STATE_CODES) + r")\s+(\d{4})\b")
_CANONICAL = {name.lower(): name for name in KNOWN_LOCALITIES}


def extract_location_hint(text: str) -> Optional[LocationHint]:
    """First geographic hint in ``text``, or ``None``.

    A known locality fills in its state and postcode. State codes only count
    in upper case ("SA" yes, "sa" no), which keeps ordinary words out.
    """
    if not text:
        return None

    locality_match = _LOCALITY_RE.search(text)
    if locality_match:
        locality = _CANONICAL[locality_match.group(1).lower()]
        state, postcode = KNOWN_LOCALITIES[locality]
        return LocationHint(locality, state, postcode)

    state_postcode = _STATE_POSTCODE_RE.search(text)
    if state_postcode:
        return LocationHint(state=state_postcode.group(1), postcode=state_postcode.group(2))

    state_match = _STATE_RE.search(text)
    if state_match:
        return LocationHint(state=state_match.group(1))
    return None


def search_locality(expense: Expense, preferences: UserPreferences) -> str:
    """Locality for query text: the user's setting, else a hint in the expense."""
    if preferences.locality:
        return preferences.locality
    hint = extract_location_hint(f"{expense.name} {expense.description}")
    return hint.display() if hint else ""

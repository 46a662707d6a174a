"""Generative suggestions from an OpenAI chat completion with a JSON schema contract."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from discovery.exceptions import ConfigurationError, ResponseShapeError
from discovery.extractors import search_locality
from discovery.models import AlternativeCandidate, Expense, ProviderQuery, UserPreferences
from discovery.normalizers import normalize_results_for_provider
from discovery.progress import ProgressReporter
from discovery.providers.base import AlternativeProvider

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a price comparison assistant. Only suggest alternatives that exist today "
    "and that a shopper can buy right now. Every price must be a real, verifiable, "
    "currently advertised price in the shopper's local currency, and every url must "
    "point at the page where that price is shown. Never estimate or invent prices; "
    "omit an alternative rather than guess."
)

RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "alternatives",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "alternatives": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string"},
                            "description": {"type": "string"},
                            "price": {"type": "number"},
                            "url": {"type": "string"},
                            "savings": {"type": "number"},
                        },
                        "required": ["name", "description", "price", "url", "savings"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["alternatives"],
            "additionalProperties": False,
        },
    },
}


def parse_alternatives(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pull the ``alternatives`` array out of a chat completion body.

    Raises ResponseShapeError when any level of the payload is not what the
    response schema promises.
    """
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ResponseShapeError("completion has no message content", service_name="openai") from e
    if not content:
        raise ResponseShapeError("completion content is empty", service_name="openai")
    try:
        parsed = json.loads(content)
    except (TypeError, ValueError) as e:
        raise ResponseShapeError("completion content is not JSON", service_name="openai") from e
    alternatives = parsed.get("alternatives") if isinstance(parsed, dict) else None
    if not isinstance(alternatives, list):
        raise ResponseShapeError("alternatives is not a list", service_name="openai")
    return alternatives


class OpenAISuggestionProvider(AlternativeProvider):
    """Asks a chat model for cheaper alternatives with verifiable prices."""

    provider_id = "openai"

    def __init__(self, api_key: Optional[str], model: str = "gpt-4o-mini"):
        self.api_key = api_key
        self.model = model
        self.base_url = "https://api.openai.com/v1/chat/completions"
        self.temperature = 0.2

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_query(self, expense: Expense, preferences: UserPreferences) -> ProviderQuery:
        location = search_locality(expense, preferences) or preferences.country
        prompt = (
            f"Find cheaper alternatives for: {expense.name}, currently costing "
            f"${expense.amount:.2f} ({expense.frequency}) in the "
            f"{expense.category or 'general'} category. "
            f"Description: {expense.description or 'n/a'}. "
            f"Shopper location: {location}. "
            "For each alternative give the product name, a short description, the price, "
            "the url where that price is listed and the savings against the current cost."
        )
        return self._base_query(
            expense, preferences, prompt, metadata={"model": self.model}
        )

    async def search(
        self,
        expense: Expense,
        query: ProviderQuery,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> List[AlternativeCandidate]:
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set", detail={"provider": self.provider_id})

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query.query},
            ],
            "temperature": self.temperature,
            "response_format": RESPONSE_FORMAT,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        self._report(progress, "searching", 30)
        data = await self._request_json("POST", self.base_url, timeout=30.0, json=payload, headers=headers)

        self._report(progress, "processing", 60)
        try:
            items = parse_alternatives(data)
        except ResponseShapeError as e:
            logger.warning(f"[OpenAISuggestionProvider] Unexpected response shape: {e.message}")
            return []

        self._report(progress, "formatting", 80)
        candidates = normalize_results_for_provider(
            self.provider_id, items, expense, model=self.model
        )
        logger.info(
            f"[OpenAISuggestionProvider] {len(candidates)} of {len(items)} suggestions usable"
        )
        return candidates

"""Cheaper-alternative discovery for recurring expenses."""

from discovery.aggregator import AlternativeAggregator
from discovery.config import DiscoverySettings, load_settings
from discovery.models import (
    AlternativeCandidate,
    DiscoveryResult,
    Expense,
    ProgressEvent,
    ProviderStatusSnapshot,
    StoreLocation,
    UserPreferences,
)
from discovery.progress import ProgressReporter
from discovery.providers import build_default_providers

__all__ = [
    "AlternativeAggregator",
    "AlternativeCandidate",
    "DiscoveryResult",
    "DiscoverySettings",
    "Expense",
    "ProgressEvent",
    "ProgressReporter",
    "ProviderStatusSnapshot",
    "StoreLocation",
    "UserPreferences",
    "build_default_providers",
    "load_settings",
]

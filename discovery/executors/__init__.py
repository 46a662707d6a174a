"""Provider executors."""

from discovery.executors.base import TIMED_OUT_MESSAGE, classify_failure, run_provider_with_status

__all__ = [
    "TIMED_OUT_MESSAGE",
    "classify_failure",
    "run_provider_with_status",
]

"""
Independent fetches for multi-panel screens.

Each panel's request succeeds or fails on its own; one failing panel must
not blank the rest of the page.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from isoko_ui.api_client import ApiError, AuthenticationError

logger = logging.getLogger(__name__)


@dataclass
class PanelResults:
    data: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def ok(self, name: str) -> bool:
        return name in self.data

    @property
    def all_failed(self) -> bool:
        return bool(self.errors) and not self.data


def unwrap(envelope: dict) -> Any:
    """Envelope → data. A success=false envelope becomes an ApiError."""
    if not envelope.get("success", False):
        raise ApiError(envelope.get("message") or "Request failed")
    return envelope.get("data")


def fetch_panels(fetchers: dict[str, Callable[[], dict]]) -> PanelResults:
    """Run every fetcher; collect data and per-panel error messages.

    An expired session is not a panel failure: AuthenticationError propagates.
    """
    results = PanelResults()
    for name, fetch in fetchers.items():
        try:
            results.data[name] = unwrap(fetch())
        except AuthenticationError:
            raise
        except ApiError as exc:
            logger.info("Panel %s failed: %s", name, exc.message)
            results.errors[name] = exc.message
    return results

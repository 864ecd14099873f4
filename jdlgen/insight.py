"""Usage reporting.

Sends a small "sub-generator used" event to a configured HTTP endpoint.
Reporting is off unless ``Config.insight_url`` is set, and a failed report
never interrupts an import.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class InsightReporter:
    """Posts usage events with httpx."""

    def __init__(
        self,
        url: str | None,
        version: str,
        timeout: float = 5.0,
        enabled: bool = True,
    ) -> None:
        self.url = url
        self.version = version
        self.timeout = timeout
        self.enabled = enabled and bool(url)

    async def send_sub_gen_event(self, category: str, action: str) -> bool:
        """Report that sub-generator *action* of *category* ran.

        Returns:
            ``True`` if the endpoint accepted the event.
        """
        if not self.enabled:
            logger.debug("Insight reporting disabled")
            return False

        payload = {"category": category, "action": action, "version": self.version}
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug(f"Insight event not sent: {exc}")
            return False
        return True

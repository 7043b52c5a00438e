"""
Connectivity checks handed to the Router.

  StaticConnectivity - a fixed answer you can flip (tests, /offline in the REPL)
  HttpConnectivity   - HEAD request against a probe URL
"""

from __future__ import annotations
import logging

import requests

logger = logging.getLogger(__name__)


DEFAULT_PROBE_URL = "https://www.gstatic.com/generate_204"


class StaticConnectivity:
    """Reports whatever it was told."""

    def __init__(self, connected: bool = True):
        self.connected = connected

    def is_connected(self) -> bool:
        return self.connected


class HttpConnectivity:
    """Asks the network. Any requests error counts as offline."""

    def __init__(self, probe_url: str = DEFAULT_PROBE_URL, timeout: float = 2.0):
        self.probe_url = probe_url
        self.timeout = timeout

    def is_connected(self) -> bool:
        try:
            resp = requests.head(self.probe_url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            logger.debug("Connectivity probe failed: %s", e)
            return False
        return resp.status_code < 500

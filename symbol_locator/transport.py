"""HTTP transport for symbol server downloads."""
from __future__ import annotations

import os
import uuid
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import ResolutionCancelled, TransportError
from .monitor import TaskMonitor

DEFAULT_TIMEOUT = 30
USER_AGENT = "SymbolLocator/1.0 (Symbol Download)"
CHUNK_SIZE = 8192


class HttpFetcher:
    """
    Downloads single files from symbol servers.

    fetch() never raises for transport problems: a 404, a refused connection
    or a timeout is reported as False so the caller can move on to the next
    mirror. Only cancellation propagates.
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.timeout = timeout
        self._session = session

    def _get_session(self) -> requests.Session:
        """Get or create HTTP session with retry configuration."""
        if self._session is None:
            self._session = requests.Session()
            retry_strategy = Retry(
                total=3,
                backoff_factor=0.5,
                status_forcelist=[429, 500, 502, 503, 504],
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
            self._session.headers.update({"User-Agent": USER_AGENT})
        return self._session

    def fetch(self, url: str, destination, monitor: Optional[TaskMonitor] = None) -> bool:
        """
        Download url to destination.

        The body is streamed into "<destination>.part" and renamed into place
        only once complete, so an aborted download never leaves a file at
        destination.

        Returns:
            True if destination now holds the downloaded file.

        Raises:
            ResolutionCancelled: The monitor was cancelled mid-download.
        """
        destination = str(destination)
        try:
            self._download(url, destination, monitor)
            return True
        except TransportError:
            return False

    def _download(self, url: str, destination: str, monitor: Optional[TaskMonitor]):
        partial = f"{destination}.{uuid.uuid4().hex[:8]}.part"
        try:
            response = self._get_session().get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(url, str(e)[:80])

        with response:
            if response.status_code != 200:
                raise TransportError(url, f"HTTP {response.status_code}")

            total = int(response.headers.get("Content-Length") or 0)
            received = 0
            try:
                os.makedirs(os.path.dirname(destination) or ".", exist_ok=True)
                with open(partial, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if monitor is not None:
                            monitor.check_cancelled()
                        if chunk:
                            f.write(chunk)
                            received += len(chunk)
                            if monitor is not None:
                                monitor.report_progress(f"Downloading {os.path.basename(destination)}",
                                                        received, total)
                try:
                    os.replace(partial, destination)
                except OSError:
                    # Another request finished the same entry first
                    if not os.path.isfile(destination):
                        raise
                    _remove_quietly(partial)
            except ResolutionCancelled:
                _remove_quietly(partial)
                raise
            except (requests.RequestException, OSError) as e:
                _remove_quietly(partial)
                raise TransportError(url, str(e)[:80])


def _remove_quietly(path: str):
    try:
        os.unlink(path)
    except OSError:
        pass

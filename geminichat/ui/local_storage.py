"""Browser ``localStorage`` access for one connected NiceGUI client.

Values never live on the server: every read and write is a JavaScript call
executed in the user's tab.
"""

import json
import logging

from nicegui import Client

from geminichat.ui.session import StorageQuotaError

logger = logging.getLogger(__name__)

STORAGE_TIMEOUT = 5.0  # seconds; history JSON can be several MB


def get_item_script(key: str) -> str:
    return f"localStorage.getItem({json.dumps(key)})"


def set_item_script(key: str, value: str) -> str:
    """JavaScript that stores ``value`` and returns null, or the error name on failure."""
    return (
        "(() => { try { "
        f"localStorage.setItem({json.dumps(key)}, {json.dumps(value)}); return null; "
        "} catch (e) { return `${e.name}: ${e.message}`; } })()"
    )


class BrowserLocalStorage:
    """Reads and writes ``window.localStorage`` of a connected client.

    Args:
        client: NiceGUI client of the page.
        timeout: Seconds to wait for the browser to answer.
    """

    def __init__(self, client: Client, timeout: float = STORAGE_TIMEOUT) -> None:
        self._client = client
        self._timeout = timeout

    async def get_item(self, key: str) -> str | None:
        value = await self._client.run_javascript(get_item_script(key), timeout=self._timeout)
        return value if isinstance(value, str) else None

    async def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``.

        Raises:
            StorageQuotaError: If the browser refuses the write, typically
                ``QuotaExceededError``.
            TimeoutError: If the browser does not answer in time.
        """
        error = await self._client.run_javascript(
            set_item_script(key, value), timeout=self._timeout
        )
        if error:
            raise StorageQuotaError(f"localStorage rejected {key!r}: {error}")

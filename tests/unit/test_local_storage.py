"""Unit tests for browser localStorage access.

The NiceGUI client is replaced by a recorder that answers
``run_javascript`` calls with canned results.
"""

import json
from typing import Any

import pytest
import pytest_check as check

from geminichat.ui.local_storage import (
    STORAGE_TIMEOUT,
    BrowserLocalStorage,
    get_item_script,
    set_item_script,
)
from geminichat.ui.session import HistoryStore, StorageQuotaError


class _RecordingClient:
    def __init__(self, result: Any = None) -> None:
        self.result = result
        self.calls: list[tuple[str, float]] = []

    async def run_javascript(self, code: str, *, timeout: float = 1.0) -> Any:
        self.calls.append((code, timeout))
        return self.result


class TestScripts:
    def test_get_item_script_quotes_key(self) -> None:
        assert get_item_script("chatHistory") == 'localStorage.getItem("chatHistory")'

    def test_set_item_script_embeds_value_as_json_literal(self) -> None:
        value = json.dumps([{"role": "user", "parts": [{"text": "it's \"quoted\"\n</script>"}]}])

        script = set_item_script("chatHistory", value)

        check.is_in(f'localStorage.setItem("chatHistory", {json.dumps(value)})', script)
        check.is_in("catch (e)", script)
        check.is_in("return null", script)


class TestBrowserLocalStorage:
    async def test_get_item_returns_stored_string(self) -> None:
        client = _RecordingClient(result='[{"role": "user", "parts": [{"text": "hi"}]}]')
        storage = BrowserLocalStorage(client)

        value = await storage.get_item("chatHistory")

        check.equal(value, client.result)
        check.equal(client.calls, [(get_item_script("chatHistory"), STORAGE_TIMEOUT)])

    @pytest.mark.parametrize("result", [None, 42, {"unexpected": True}])
    async def test_get_item_missing_or_odd_value_is_none(self, result: Any) -> None:
        storage = BrowserLocalStorage(_RecordingClient(result=result))

        assert await storage.get_item("chatHistory") is None

    async def test_successful_write(self) -> None:
        client = _RecordingClient(result=None)

        await BrowserLocalStorage(client, timeout=2.0).set_item("chatHistory", "[]")

        check.equal(len(client.calls), 1)
        check.equal(client.calls[0][1], 2.0)

    async def test_refused_write_raises_quota_error(self) -> None:
        client = _RecordingClient(result="QuotaExceededError: The quota has been exceeded.")

        with pytest.raises(StorageQuotaError, match="QuotaExceededError"):
            await BrowserLocalStorage(client).set_item("chatHistory", "[]")

    async def test_history_store_over_browser_storage(self) -> None:
        client = _RecordingClient(result='[{"role": "model", "parts": [{"text": "Hello"}]}]')

        history = await HistoryStore(BrowserLocalStorage(client)).load()

        check.equal(len(history), 1)
        check.equal(history[0].text, "Hello")

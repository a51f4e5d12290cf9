"""Unit tests for the run modes in geminichat.main."""

from unittest.mock import MagicMock, patch

import pytest
import pytest_check as check

from geminichat import main as main_module


class TestRunSeparate:
    @patch("geminichat.ui.chat_page.main")
    @patch("subprocess.Popen")
    def test_relay_runs_without_reload_and_stops_with_page(
        self, mock_popen: MagicMock, mock_page_main: MagicMock
    ) -> None:
        with patch.dict("os.environ", {"PORT": "9000"}, clear=True):
            main_module.run_separate()

        command = mock_popen.call_args.args[0]
        check.is_in("geminichat.api.app:app", command)
        check.equal(command[command.index("--port") + 1], "9000")
        check.is_not_in("--reload", command)
        mock_page_main.assert_called_once()
        mock_popen.return_value.terminate.assert_called_once()

    @patch("geminichat.ui.chat_page.main", side_effect=KeyboardInterrupt)
    @patch("subprocess.Popen")
    def test_relay_is_stopped_when_page_exits_abruptly(
        self, mock_popen: MagicMock, _mock_page_main: MagicMock
    ) -> None:
        with pytest.raises(KeyboardInterrupt):
            main_module.run_separate()

        mock_popen.return_value.terminate.assert_called_once()
        mock_popen.return_value.wait.assert_called_once()


class TestMain:
    @pytest.mark.parametrize(
        ("mode", "runner"), [("separate", "run_separate"), ("integrated", "run_integrated"), ("", "run_integrated")]
    )
    def test_run_mode_selects_runner(self, mode: str, runner: str) -> None:
        with (
            patch.dict("os.environ", {"RUN_MODE": mode}),
            patch.object(main_module, "run_separate") as separate,
            patch.object(main_module, "run_integrated") as integrated,
        ):
            main_module.main()

        called = separate if runner == "run_separate" else integrated
        other = integrated if runner == "run_separate" else separate
        called.assert_called_once()
        other.assert_not_called()

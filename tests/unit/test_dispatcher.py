import threading
from unittest.mock import MagicMock

from mbox_ingest.trigger.dispatcher import ParseDispatcher


def _make_dispatcher() -> tuple[ParseDispatcher, MagicMock]:
    """Create a ParseDispatcher with a mocked trigger."""
    mock_trigger = MagicMock()
    mock_trigger.try_advance.return_value = False
    return ParseDispatcher(mock_trigger, max_workers=2), mock_trigger


class TestSubmit:
    def test_runs_trigger_in_background(self) -> None:
        dispatcher, mock_trigger = _make_dispatcher()

        future = dispatcher.submit("abc")
        assert future is not None
        future.result(timeout=5)
        dispatcher.shutdown()

        mock_trigger.try_advance.assert_called_once_with("abc")
        assert dispatcher.is_busy("abc") is False

    def test_trigger_exception_is_contained(self) -> None:
        dispatcher, mock_trigger = _make_dispatcher()
        mock_trigger.try_advance.side_effect = RuntimeError("boom")

        future = dispatcher.submit("abc")
        assert future is not None
        assert future.result(timeout=5) is None
        dispatcher.shutdown()

        assert dispatcher.is_busy("abc") is False

    def test_submit_after_shutdown_returns_none(self) -> None:
        dispatcher, mock_trigger = _make_dispatcher()
        dispatcher.shutdown()

        assert dispatcher.submit("abc") is None
        assert dispatcher.is_busy("abc") is False
        mock_trigger.try_advance.assert_not_called()


class TestCoalescing:
    def test_requests_during_a_run_fold_into_one_more_pass(self) -> None:
        dispatcher, mock_trigger = _make_dispatcher()
        started = threading.Event()
        release = threading.Event()

        def slow_first_pass(_session_id: str) -> bool:
            if mock_trigger.try_advance.call_count == 1:
                started.set()
                release.wait(timeout=5)
            return False

        mock_trigger.try_advance.side_effect = slow_first_pass

        future = dispatcher.submit("abc")
        assert started.wait(timeout=5)
        assert dispatcher.submit("abc") is None
        assert dispatcher.submit("abc") is None
        assert dispatcher.is_busy("abc") is True
        release.set()
        future.result(timeout=5)
        dispatcher.shutdown()

        assert mock_trigger.try_advance.call_count == 2

    def test_different_sessions_run_independently(self) -> None:
        dispatcher, mock_trigger = _make_dispatcher()

        first = dispatcher.submit("abc")
        second = dispatcher.submit("def")
        assert first is not None
        assert second is not None
        first.result(timeout=5)
        second.result(timeout=5)
        dispatcher.shutdown()

        called = sorted(c.args[0] for c in mock_trigger.try_advance.call_args_list)
        assert called == ["abc", "def"]

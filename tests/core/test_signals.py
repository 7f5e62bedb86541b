from unittest.mock import MagicMock
from altfinder.core.events import Signal

def test_signal_event():
    """Verify Signal behavior."""
    sig = Signal("test_signal")
    mock_handler = MagicMock()

    sig.connect(mock_handler)
    sig.emit("data", 123)

    mock_handler.assert_called_once_with("data", 123)

    sig.disconnect(mock_handler)
    sig.emit("data2")
    assert mock_handler.call_count == 1

def test_signal_connect_is_idempotent():
    sig = Signal("dupes")
    handler = MagicMock()
    sig.connect(handler)
    sig.connect(handler)
    assert sig.emit() == 1
    assert handler.call_count == 1

def test_signal_subscriber_error_is_isolated():
    sig = Signal("errors")
    after = MagicMock()

    def broken(*args):
        raise RuntimeError("boom")

    sig.connect(broken)
    sig.connect(after)
    assert sig.emit("x") == 1  # must not raise

    after.assert_called_once_with("x")

def test_signal_connect_as_decorator():
    sig = Signal("decorated")
    seen = []

    @sig.connect
    def on_changed(directory, names):
        seen.append((directory, names))

    sig.emit("/proj", ["a.txt"])
    assert seen == [("/proj", ["a.txt"])]
    assert on_changed is not None

def test_subscriber_may_disconnect_itself():
    sig = Signal("once")
    calls = []

    def once():
        calls.append(1)
        sig.disconnect(once)

    sig.connect(once)
    sig.emit()
    sig.emit()
    assert calls == [1]

"""Tests for the event emitter."""
from unittest.mock import Mock

from girderpy.core.api import EventEmitter


class TestEventEmitter:
    """Test suite for EventEmitter."""

    def test_emit_calls_handlers_in_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.on('ready', lambda value: calls.append(('first', value)))
        emitter.on('ready', lambda value: calls.append(('second', value)))

        emitter.emit('ready', 42)

        assert calls == [('first', 42), ('second', 42)]

    def test_emit_without_handlers(self):
        """Test emitting an event nobody listens to is harmless."""
        EventEmitter().emit('nothing', 1)

    def test_off_single_handler(self):
        emitter = EventEmitter()
        kept, removed = Mock(), Mock()
        emitter.on('ready', kept).on('ready', removed)

        emitter.off('ready', removed)
        emitter.emit('ready')

        kept.assert_called_once_with()
        removed.assert_not_called()
        assert emitter.listener_count('ready') == 1

    def test_off_all_handlers(self):
        emitter = EventEmitter()
        emitter.on('ready', Mock())

        emitter.off('ready')

        assert emitter.listener_count('ready') == 0

    def test_handler_removing_itself(self):
        """Test a handler may unregister while the event is being emitted."""
        emitter = EventEmitter()
        calls = []

        def once(value):
            calls.append(value)
            emitter.off('ready', once)

        emitter.on('ready', once)
        emitter.emit('ready', 1)
        emitter.emit('ready', 2)

        assert calls == [1]

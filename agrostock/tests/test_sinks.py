"""
Tests for event sinks and their loading from settings.
"""

import logging

import pytest
from django.core.exceptions import ImproperlyConfigured

from agrostock.adapters import (
    LoggingEventSink,
    NoopEventSink,
    SignalEventSink,
    get_event_sinks,
    reset_event_sinks,
)
from agrostock.protocols import EventSink
from agrostock.services.reservations import ReservationEngine
from agrostock.signals import ledger_event


@pytest.fixture(autouse=True)
def fresh_sinks():
    reset_event_sinks()
    yield
    reset_event_sinks()


class TestGetEventSinks:

    def test_default_is_signal_sink(self):
        sinks = get_event_sinks()

        assert len(sinks) == 1
        assert isinstance(sinks[0], SignalEventSink)

    def test_loads_configured_paths(self, settings):
        settings.AGROSTOCK = {'EVENT_SINKS': [
            'agrostock.adapters.noop.NoopEventSink',
            'agrostock.adapters.noop.LoggingEventSink',
        ]}

        sinks = get_event_sinks()

        assert [type(s) for s in sinks] == [NoopEventSink, LoggingEventSink]

    def test_sinks_are_cached(self):
        assert get_event_sinks() is get_event_sinks()

    def test_bad_path(self, settings):
        settings.AGROSTOCK = {'EVENT_SINKS': ['agrostock.adapters.nowhere.Sink']}

        with pytest.raises(ImproperlyConfigured):
            get_event_sinks()

    def test_not_a_sink(self, settings):
        settings.AGROSTOCK = {'EVENT_SINKS': ['agrostock.adapters.clock.SystemClock']}

        with pytest.raises(ImproperlyConfigured):
            get_event_sinks()

    def test_empty_list(self, settings):
        settings.AGROSTOCK = {'EVENT_SINKS': []}

        assert get_event_sinks() == []


class TestSinks:

    def test_signal_sink_sends_ledger_event(self):
        received = []

        def receiver(sender, topic, payload, **kwargs):
            received.append((topic, payload))

        ledger_event.connect(receiver)
        try:
            SignalEventSink().publish('stock.added', {'ledger_id': 1})
        finally:
            ledger_event.disconnect(receiver)

        assert received == [('stock.added', {'ledger_id': 1})]

    def test_signal_sink_survives_broken_receiver(self):
        def broken(sender, **kwargs):
            raise RuntimeError('boom')

        ledger_event.connect(broken)
        try:
            SignalEventSink().publish('stock.added', {})
        finally:
            ledger_event.disconnect(broken)

    def test_logging_sink(self, caplog):
        with caplog.at_level(logging.INFO, logger='agrostock'):
            LoggingEventSink().publish('sale.completed', {'ledger_id': 3})

        assert 'ledger.event.sale.completed' in caplog.text

    @pytest.mark.parametrize('sink_class', [NoopEventSink, LoggingEventSink, SignalEventSink])
    def test_protocol(self, sink_class):
        assert isinstance(sink_class(), EventSink)


class TestEngineDefaultSinks:

    def test_engine_uses_configured_sinks(self, store, clock, producer, make_inventory, settings):
        settings.AGROSTOCK = {'EVENT_SINKS': ['agrostock.adapters.signals.SignalEventSink']}
        ledger_id = make_inventory()
        received = []

        def receiver(sender, topic, payload, **kwargs):
            received.append(topic)

        ledger_event.connect(receiver)
        try:
            ReservationEngine(store=store, clock=clock).reserve(ledger_id, '1', producer).unwrap()
        finally:
            ledger_event.disconnect(receiver)

        assert received == ['quantity.reserved']

    def test_misconfigured_sinks_do_not_fail_the_change(self, store, clock, producer, make_inventory,
                                                        settings, caplog):
        settings.AGROSTOCK = {'EVENT_SINKS': ['agrostock.adapters.nowhere.Sink']}
        ledger_id = make_inventory()

        result = ReservationEngine(store=store, clock=clock).reserve(ledger_id, '1', producer)

        assert result.ok
        assert 'ledger.event.sinks_unavailable' in caplog.text

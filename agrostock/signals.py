"""
Agrostock signals.

    from agrostock.signals import ledger_event

    @receiver(ledger_event)
    def on_ledger_event(sender, topic, payload, **kwargs):
        if topic == 'quantity.reserved':
            ...
"""

from django.dispatch import Signal

# Sent after a ledger change is committed. Arguments: topic, payload.
ledger_event = Signal()

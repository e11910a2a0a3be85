"""
Fire-and-forget scheduling events.

Notification delivery, real-time dashboards and conversation creation subscribe
to these signals from outside the scheduling core. Senders only call ``emit``
after their transaction has committed; a failing receiver is logged and
never changes the outcome of the operation that emitted it.
"""

import logging

from blinker import Namespace

logger = logging.getLogger(__name__)

scheduling_signals = Namespace()

appointment_created = scheduling_signals.signal("appointment-created")
appointment_confirmed = scheduling_signals.signal("appointment-confirmed")
appointment_cancelled = scheduling_signals.signal("appointment-cancelled")
appointment_rescheduled = scheduling_signals.signal("appointment-rescheduled")
appointment_completed = scheduling_signals.signal("appointment-completed")
appointment_deleted = scheduling_signals.signal("appointment-deleted")
slot_booked = scheduling_signals.signal("slot-booked")
slot_released = scheduling_signals.signal("slot-released")


def emit(signal, sender, **payload) -> int:
    """Deliver ``signal`` to each receiver in isolation. Returns how many succeeded."""
    delivered = 0
    for receiver in signal.receivers_for(sender):
        try:
            receiver(sender, **payload)
            delivered += 1
        except Exception:
            logger.exception("Receiver %r failed for %s", receiver, signal.name)
    return delivered

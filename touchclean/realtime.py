"""Per-staff change feed for the jobs view."""

import logging
import queue
import threading
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")


class Subscription:
    def __init__(self, channel, table, staff_id, maxsize):
        self.channel = channel
        self.table = table
        self.staff_id = staff_id
        self.events = queue.Queue(maxsize=maxsize)
        self.closed = False

    def get(self, timeout=None):
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self):
        self.channel.unsubscribe(self)


class RealtimeChannel:
    def __init__(self, maxsize=100):
        self.maxsize = maxsize
        self._lock = threading.Lock()
        self._subscribers = {}

    def subscribe(self, staff_id, table="bookings"):
        sub = Subscription(self, table, staff_id, self.maxsize)
        with self._lock:
            self._subscribers.setdefault((table, staff_id), set()).add(sub)
        logger.debug("Realtime subscribe table=%s staff_id=%s", table, staff_id)
        return sub

    def unsubscribe(self, sub):
        with self._lock:
            subs = self._subscribers.get((sub.table, sub.staff_id))
            if subs is not None:
                subs.discard(sub)
                if not subs:
                    del self._subscribers[(sub.table, sub.staff_id)]
        sub.closed = True

    def subscriber_count(self, staff_id, table="bookings"):
        with self._lock:
            return len(self._subscribers.get((table, staff_id), ()))

    def publish(self, event_type, booking_id, staff_id, table="bookings"):
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown realtime event type: {event_type}")
        if staff_id is None:
            return 0
        event = {
            "event": event_type,
            "table": table,
            "booking_id": booking_id,
            "staff_id": staff_id,
            "at": datetime.now(timezone.utc).isoformat(),
        }
        with self._lock:
            targets = list(self._subscribers.get((table, staff_id), ()))
        delivered = 0
        for sub in targets:
            try:
                sub.events.put_nowait(event)
                delivered += 1
            except queue.Full:
                # Slow consumer; it resyncs on the next event it does receive.
                logger.warning("Realtime queue full for staff_id=%s, dropping %s", staff_id, event_type)
        return delivered


booking_channel = RealtimeChannel()

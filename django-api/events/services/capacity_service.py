"""Seat accounting.

Occupied spots are recounted from storage on every call. There is no cached
or incrementally maintained counter to drift out of step.
"""

from events.domain import Event, EventAvailability, EventId
from events.stores.interfaces import OrderStore, RegistrationStore


class CapacityService:
    """Counts the seats an event has handed out."""

    def __init__(self, registrations: RegistrationStore, orders: OrderStore) -> None:
        self._registrations = registrations
        self._orders = orders

    def occupied_spots(self, event_id: EventId) -> int:
        """Seat-holding registrations plus the quantity of approved merchandise orders."""
        return self._registrations.count_seat_holding(event_id) + self._orders.approved_quantity(event_id)

    def availability(self, event: Event) -> EventAvailability:
        occupied = self.occupied_spots(event.id)
        return EventAvailability(
            event=event,
            occupied_spots=occupied,
            available_spots=event.capacity.remaining(occupied),
        )

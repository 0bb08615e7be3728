"""Merchandise order engine.

Order lifecycle: CREATED -> PENDING_APPROVAL (proof uploaded) -> APPROVED or
REJECTED; a REJECTED order may receive a new proof. Stock is only taken on
approval, under the item row lock.
"""

from dataclasses import replace

import structlog
from django.utils import timezone

from events.domain import EventType, MerchandiseOrder, OrderStatus, ReviewAction, UserId
from events.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StateViolationError,
    ValidationFailedError,
)
from events.domain.lifecycle import registration_block_reason
from events.domain.merchandise import quantity_violation
from events.ports import FileStorage, NotificationSink, Upload
from events.services.common import best_effort, load_organizer_event, parse_event_id, parse_order_id
from events.services.ticket_service import TicketService
from events.stores.interfaces import ConstraintViolation, EventStore, OrderStore

logger = structlog.get_logger(__name__)

OPEN_ORDER_MESSAGE = "You already have an open merchandise order. Upload payment proof or wait for review."
STOCK_EXHAUSTED_MESSAGE = "Stock exhausted while approving this order"
PROOF_FOLDER = "payment-proofs"
PROOF_ACCEPTING_STATUSES = (OrderStatus.CREATED, OrderStatus.REJECTED)


class MerchandiseService:
    """Purchase, payment proof and review of merchandise orders."""

    def __init__(
        self,
        events: EventStore,
        orders: OrderStore,
        tickets: TicketService,
        files: FileStorage,
        notifier: NotificationSink,
        max_proof_bytes: int,
    ) -> None:
        self._events = events
        self._orders = orders
        self._tickets = tickets
        self._files = files
        self._notifier = notifier
        self._max_proof_bytes = max_proof_bytes

    def purchase(self, event_id: str, participant_id: UserId, item_sku: str, quantity: int = 1) -> MerchandiseOrder:
        """Open an order for one item; stock is not taken yet.

        Raises:
            NotFoundError: Unknown event or item.
            ValidationFailedError: Not a merchandise event, or quantity outside the limits.
            StateViolationError: If the event does not accept purchases.
            ConflictError: An open order exists, or stock is short.
        """
        parsed_id = parse_event_id(event_id)
        sku = str(item_sku or "").strip()
        with self._events.atomic():
            event = self._events.get_event(parsed_id, for_update=True)
            if event is None:
                raise NotFoundError("Event not found")
            if event.type != EventType.MERCHANDISE:
                raise ValidationFailedError("This event is not merchandise")
            reason = registration_block_reason(event, timezone.now())
            if reason:
                raise StateViolationError(reason)

            item = self._events.get_item(event.id, sku)
            if item is None:
                raise NotFoundError("Item not found")
            if self._orders.get_open_order(event.id, participant_id) is not None:
                raise ConflictError(OPEN_ORDER_MESSAGE)

            violation = quantity_violation(
                item, quantity, self._orders.committed_quantity(event.id, participant_id, item.sku)
            )
            if violation:
                raise ValidationFailedError(violation)
            if item.stock.value < quantity:
                raise ConflictError("Out of stock for selected quantity")

            try:
                order = self._orders.create(event.id, participant_id, item, quantity)
            except ConstraintViolation as exc:
                raise ConflictError(OPEN_ORDER_MESSAGE) from exc

        logger.info(
            "order_created",
            order_id=str(order.id),
            event_id=str(event.id),
            sku=item.sku,
            quantity=quantity,
            amount=str(order.amount),
        )
        return order

    def upload_proof(self, order_id: str, participant_id: UserId, upload: Upload) -> MerchandiseOrder:
        """Attach a payment proof image and send the order for review.

        Raises:
            NotFoundError: Unknown order.
            ForbiddenError: The order belongs to someone else.
            StateViolationError: The order is not CREATED or REJECTED.
            ValidationFailedError: The file is not an image or is too large.
        """
        parsed_id = parse_order_id(order_id)
        order = self._orders.get(parsed_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.participant.id != participant_id:
            raise ForbiddenError("Cannot modify this order")
        if order.status not in PROOF_ACCEPTING_STATUSES:
            raise StateViolationError("Payment proof cannot be uploaded in this state")
        if not upload.is_image:
            raise ValidationFailedError("Payment proof must be an image")
        if upload.size > self._max_proof_bytes:
            raise ValidationFailedError(
                f"Payment proof must be at most {self._max_proof_bytes // (1024 * 1024)} MB"
            )

        path = self._files.store(upload, f"{PROOF_FOLDER}/{order.event_id}")
        try:
            with self._events.atomic():
                current = self._orders.get(parsed_id, for_update=True)
                if current is None or current.status not in PROOF_ACCEPTING_STATUSES:
                    raise StateViolationError("Payment proof cannot be uploaded in this state")
                try:
                    updated = self._orders.save(
                        replace(
                            current,
                            status=OrderStatus.PENDING_APPROVAL,
                            payment_proof_path=path,
                            payment_proof_name=upload.name,
                            payment_proof_mime_type=upload.content_type,
                            review_comment="",
                            reviewed_by=None,
                            reviewed_at=None,
                        )
                    )
                except ConstraintViolation as exc:
                    raise ConflictError(OPEN_ORDER_MESSAGE) from exc
        except Exception:
            best_effort("file_cleanup", lambda: self._files.delete(path), path=path)
            raise

        if order.payment_proof_path:
            previous = order.payment_proof_path
            best_effort("file_cleanup", lambda: self._files.delete(previous), path=previous)
        logger.info("payment_proof_uploaded", order_id=str(order.id))
        return updated

    def review(self, order_id: str, reviewer_id: UserId, action: str, comment: str = "") -> MerchandiseOrder:
        """Approve or reject an order that is pending approval.

        Approval re-reads the item under lock, takes the stock and issues
        the ticket in the same transaction.

        Raises:
            ValidationFailedError: Unknown action.
            NotFoundError: Unknown order or item.
            ForbiddenError: The reviewer does not organize the event.
            StateViolationError: The order is not pending approval.
            ConflictError: Stock ran out before approval.
        """
        try:
            review_action = ReviewAction(str(action or "").strip().lower())
        except ValueError as exc:
            raise ValidationFailedError("Action must be approve/reject") from exc

        parsed_id = parse_order_id(order_id)
        order = self._orders.get(parsed_id)
        if order is None:
            raise NotFoundError("Order not found")
        event = self._events.get_event(order.event_id)
        if event is None or event.organizer.id != reviewer_id:
            raise ForbiddenError("Only the event organizer can review this order")
        if order.status != OrderStatus.PENDING_APPROVAL:
            raise StateViolationError("Order is not pending approval")

        ticket = None
        with self._events.atomic():
            current = self._orders.get(parsed_id, for_update=True)
            if current is None or current.status != OrderStatus.PENDING_APPROVAL:
                raise StateViolationError("Order is not pending approval")
            reviewed = replace(
                current,
                review_comment=str(comment or "").strip(),
                reviewed_by=reviewer_id,
                reviewed_at=timezone.now(),
            )

            if review_action == ReviewAction.REJECT:
                updated = self._orders.save(replace(reviewed, status=OrderStatus.REJECTED))
            else:
                item = self._events.get_item(event.id, current.item_sku, for_update=True)
                if item is None:
                    raise NotFoundError("Merchandise item not found in event")
                if item.stock.value < current.quantity:
                    raise ConflictError(STOCK_EXHAUSTED_MESSAGE)
                if not self._events.decrement_stock(event.id, item.sku, current.quantity):
                    raise ConflictError(STOCK_EXHAUSTED_MESSAGE)
                updated = self._orders.save(replace(reviewed, status=OrderStatus.APPROVED))
                ticket = self._tickets.issue(event, current.participant.id, order_id=current.id)
                updated = replace(updated, ticket_id=ticket.ticket_id)

        logger.info("order_reviewed", order_id=str(updated.id), action=review_action, status=updated.status)
        if ticket is None:
            subject = f"Merchandise order rejected - {event.name}"
            body = f"Your order for {updated.item_sku} x{updated.quantity} was rejected."
            if updated.review_comment:
                body += f"\nComment: {updated.review_comment}"
        else:
            subject = f"Order approved - {event.name}"
            body = (
                f"Your order for {updated.item_sku} x{updated.quantity} was approved.\n"
                f"Ticket ID: {ticket.ticket_id}"
            )
        best_effort(
            "order_email",
            lambda: self._notifier.send(updated.participant.email, subject, body),
            order_id=str(updated.id),
        )
        return updated

    def list_orders_for_event(
        self, event_id: str, organizer_id: UserId, status: str | None = None
    ) -> list[MerchandiseOrder]:
        event = load_organizer_event(self._events, event_id, organizer_id)
        try:
            parsed_status = OrderStatus(status.upper()) if status else None
        except ValueError as exc:
            raise ValidationFailedError(f"Unknown order status: {status}") from exc
        return self._orders.list_for_event(event.id, status=parsed_status)

    def list_orders_for_participant(self, participant_id: UserId) -> list[MerchandiseOrder]:
        return self._orders.list_for_participant(participant_id)

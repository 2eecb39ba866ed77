from typing import List, Optional

from sqlmodel import Session, select

from storefront.models.order_event import OrderEvent


def log_order_event(
    session: Session,
    order_id: int,
    event_type: str,
    label: str,
    actor: str = "system",
    details: Optional[dict] = None,
) -> OrderEvent:
    """
    Append an entry to the order timeline.
    Never commits; the event lands with the caller's transaction.
    """
    event = OrderEvent(
        order_id=order_id,
        event_type=event_type,
        label=label,
        actor=actor,
        details=details,
    )
    session.add(event)
    return event


def list_order_events(session: Session, order_id: int) -> List[OrderEvent]:
    return session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at, OrderEvent.id)
    ).all()

"""Admin status transitions — command, handler and locked entry point.

Staff move paid orders along the fulfilment path (processing → shipped →
delivered) or cancel them. pending → processing is reserved for the payment
webhook and cannot be requested here.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import NotAuthorizedError
from storefront.order.cancellation import cancel
from storefront.order.locking import with_order_lock, with_variant_locks
from storefront.order.order import Order, OrderStatus
from storefront.order.queries import is_staff, order_variant_ids
from storefront.utils.settings import get_settings

ADMIN_TARGETS = (OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    changed_by = Identifier(required=True)
    role = String(max_length=20, default="customer")
    tracking_number = String(max_length=255)
    note = String(max_length=500)


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        if not is_staff(command.role):
            raise NotAuthorizedError("Only staff can change order status")
        if command.status not in ADMIN_TARGETS:
            raise ValidationError({"status": [f"Status must be one of: {', '.join(ADMIN_TARGETS)}"]})

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if command.status == OrderStatus.SHIPPED.value:
            order.ship(changed_by=command.changed_by, tracking_number=command.tracking_number)
        elif command.status == OrderStatus.DELIVERED.value:
            order.deliver(
                changed_by=command.changed_by,
                review_window_days=get_settings().review_window_days,
            )
        else:
            cancel(order, command.changed_by, command.note)

        repo.add(order)
        return order.status


def update_order_status(order_id, status, changed_by, role=None, tracking_number=None, note=None) -> str:
    variant_ids = order_variant_ids(order_id) if status == OrderStatus.CANCELLED.value else []
    with with_order_lock(order_id), with_variant_locks(variant_ids):
        return current_domain.process(
            UpdateOrderStatus(
                order_id=order_id,
                status=status,
                changed_by=changed_by,
                role=role or "customer",
                tracking_number=tracking_number,
                note=note,
            ),
            asynchronous=False,
        )

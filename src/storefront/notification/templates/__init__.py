"""Template registry — maps notification type to template class.

Templates render plain-text ``subject`` and ``body`` from event context.
"""

from storefront.notification.templates.order_attention import OrderAttentionTemplate
from storefront.notification.templates.order_delivered import OrderDeliveredTemplate
from storefront.notification.templates.order_placed import OrderPlacedTemplate
from storefront.notification.templates.order_refunded import OrderRefundedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    template.notification_type: template
    for template in (OrderPlacedTemplate, OrderDeliveredTemplate, OrderRefundedTemplate, OrderAttentionTemplate)
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls

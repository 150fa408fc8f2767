"""Send rendered templates through the notification channels.

Sending is fire-and-forget: a failure is logged and reported back as
``False``, never raised to the caller.
"""

import structlog

from storefront.notification.channel import OPS_CHANNEL, get_alerter, get_mailer
from storefront.notification.channel.ports import DeliveryReceipt
from storefront.notification.templates import get_template

logger = structlog.get_logger(__name__)


def send_email(to: str | None, notification_type: str, context: dict) -> bool:
    if not to:
        logger.info("No contact email, notification skipped", notification_type=notification_type, **_ids(context))
        return False

    try:
        content = get_template(notification_type).render(context)
        receipt = get_mailer().send(to=to, subject=content["subject"], body=content["body"])
    except Exception as e:
        logger.error("Email dispatch failed", notification_type=notification_type, error=str(e), **_ids(context))
        return False

    return _check(receipt, notification_type, context)


def alert_ops(notification_type: str, context: dict) -> bool:
    try:
        content = get_template(notification_type).render(context)
        receipt = get_alerter().post(channel=OPS_CHANNEL, text=f"*{content['subject']}*\n{content['body']}")
    except Exception as e:
        logger.error("Ops alert failed", notification_type=notification_type, error=str(e), **_ids(context))
        return False

    return _check(receipt, notification_type, context)


def _check(receipt: DeliveryReceipt, notification_type: str, context: dict) -> bool:
    if receipt.delivered:
        logger.info(
            "Notification sent",
            notification_type=notification_type,
            message_id=receipt.message_id,
            **_ids(context),
        )
        return True

    logger.error(
        "Notification not delivered",
        notification_type=notification_type,
        error=receipt.error or "Unknown dispatch error",
        **_ids(context),
    )
    return False


def _ids(context: dict) -> dict:
    return {key: context[key] for key in ("order_id", "order_number") if key in context}

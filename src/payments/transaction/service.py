"""Payment application service.

Coordinates a gateway adapter with the Transaction and RefundRequest
aggregates. Every network call is made first, outside any Unit of Work, and
only the gateway's answer is handed to a command for persistence:

    create_payment   create the provider order, record a Transaction
    verify_payment   poll the provider, settle the Transaction
    handle_webhook   validate + authenticate the notification, then settle,
                     record a refund issued at the provider, or acknowledge
    refund           check the refundable balance, refund, record

Settlement is serialized within the process so concurrent deliveries of the
same webhook settle once and report ``duplicate`` afterwards. Refunds against
one transaction are serialized from the balance check until the refund is
recorded.

Once a settlement or refund has committed, its event is passed to
``publish``; the API app uses it to reconcile the order in the Ordering
domain. A redelivered notification re-announces the transaction's settled
outcome, and the Ordering handlers skip payments they already recorded.
"""

import json
import threading

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from shared.locking import KeyedLockRegistry

from payments.gateway.errors import ChecksumMismatchError, GatewayError
from payments.gateway.port import (
    GatewayOrder,
    GatewayOrderRequest,
    RefundInstruction,
    RefundResult,
    TransactionVerification,
    WebhookNotification,
    WebhookOutcome,
)
from payments.gateway.registry import GatewayRegistry
from payments.transaction.publishing import Publisher, refund_event, settlement_event
from payments.transaction.recording import DUPLICATE, RecordTransaction, SettleTransaction, find_transaction
from payments.transaction.refund import RefundRequest
from payments.transaction.refunds import RecordRefund, find_refund, refunded_total
from payments.transaction.transaction import Transaction

logger = structlog.get_logger(__name__)

PENDING = "pending"
AUTHORIZED = "authorized"
REFUNDED = "refunded"


class PaymentService:
    def __init__(self, registry: GatewayRegistry, publish: Publisher | None = None) -> None:
        self.registry = registry
        self.publish = publish
        self._settle_lock = threading.Lock()
        self._refund_locks = KeyedLockRegistry()

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def create_payment(self, provider: str, request: GatewayOrderRequest) -> tuple[str, GatewayOrder]:
        """Create the provider order and record it. Returns ``(transaction id, gateway order)``."""
        gateway = self.registry.get(provider)
        gateway_order = gateway.create_order(request)

        transaction_id = current_domain.process(
            RecordTransaction(
                order_id=request.order_id,
                provider=gateway_order.provider,
                gateway_order_id=gateway_order.external_order_id,
                amount=request.amount,
                currency=request.currency,
                checksum=gateway_order.checksum,
                is_mock=gateway_order.is_mock,
                raw_response=json.dumps(gateway_order.raw, default=str),
            ),
            asynchronous=False,
        )
        logger.info(
            "Payment order created",
            provider=gateway_order.provider,
            order_id=request.order_id,
            gateway_order_id=gateway_order.external_order_id,
            is_mock=gateway_order.is_mock,
        )
        return transaction_id, gateway_order

    def verify_payment(self, provider: str, gateway_order_id: str) -> tuple[str, TransactionVerification]:
        """Poll the provider and settle. Returns ``(outcome, verification)``."""
        gateway = self.registry.get(provider)
        verification = gateway.verify_transaction(gateway_order_id)

        outcome = self._settle(
            SettleTransaction(
                provider=gateway.provider.value,
                gateway_order_id=gateway_order_id,
                succeeded=verification.success,
                gateway_transaction_id=verification.external_transaction_id,
                failure_reason=verification.message or verification.status,
                raw_response=json.dumps(verification.raw, default=str),
            )
        )
        return outcome, verification

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def handle_webhook(self, provider: str, payload: dict, signature: str | None = None) -> str:
        """Apply the notification a webhook carries.

        Returns ``success`` or ``failed`` for a settlement, ``refunded`` for a
        refund issued at the provider, ``pending`` or ``authorized``
        (acknowledged, nothing changed) or ``duplicate``. Raises
        ``WebhookValidationError`` for a missing field and
        ``ChecksumMismatchError`` for a bad signature, both before any lookup.
        """
        gateway = self.registry.get(provider)
        notification = gateway.validate_webhook_payload(payload)

        if not gateway.is_mock and not gateway.verify_webhook_signature(payload, signature):
            logger.warning(
                "Rejected webhook with invalid signature",
                provider=notification.provider,
                gateway_order_id=notification.gateway_order_id,
            )
            raise ChecksumMismatchError(notification.provider, notification.gateway_order_id)

        if notification.outcome in (WebhookOutcome.PENDING, WebhookOutcome.AUTHORIZED):
            logger.info(
                "Webhook acknowledged without settlement",
                provider=notification.provider,
                gateway_order_id=notification.gateway_order_id,
                status=notification.status,
                webhook_event=notification.event,
            )
            return PENDING if notification.outcome is WebhookOutcome.PENDING else AUTHORIZED

        if notification.outcome is WebhookOutcome.REFUNDED:
            return self._record_gateway_refund(notification)

        return self._settle(
            SettleTransaction(
                provider=notification.provider,
                gateway_order_id=notification.gateway_order_id,
                succeeded=notification.outcome is WebhookOutcome.SUCCESS,
                gateway_transaction_id=notification.transaction_id,
                failure_reason=payload.get("RESPMSG") or payload.get("error_description") or notification.status,
                raw_response=json.dumps(notification.raw, default=str),
            )
        )

    def _settle(self, command: SettleTransaction) -> str:
        with self._settle_lock:
            outcome = current_domain.process(command, asynchronous=False)

        event = settlement_event(find_transaction(command.provider, command.gateway_order_id))
        if event is not None:
            self._publish(event)
        return outcome

    def _record_gateway_refund(self, notification: WebhookNotification) -> str:
        """Record a refund the provider reports it has issued, once per refund id."""
        transaction = find_transaction(notification.provider, notification.gateway_order_id)
        if transaction is None:
            raise ObjectNotFoundError(
                f"No {notification.provider} transaction for gateway order {notification.gateway_order_id}"
            )

        with self._refund_locks.hold(transaction.id):
            if find_refund(transaction.id, notification.refund_id) is not None:
                logger.info(
                    "Ignoring duplicate refund notification",
                    transaction_id=str(transaction.id),
                    refund_id=notification.refund_id,
                )
                return DUPLICATE

            refund_request_id = current_domain.process(
                RecordRefund(
                    transaction_id=str(transaction.id),
                    amount=notification.refund_amount,
                    reason=notification.reason or "Refund processed",
                    succeeded=True,
                    refund_id=notification.refund_id,
                    is_mock=transaction.is_mock,
                ),
                asynchronous=False,
            )

        logger.info(
            "Gateway refund recorded",
            provider=notification.provider,
            transaction_id=str(transaction.id),
            refund_id=notification.refund_id,
            amount=notification.refund_amount,
        )
        self._publish(refund_event(current_domain.repository_for(RefundRequest).get(refund_request_id)))
        return REFUNDED

    def _publish(self, event) -> None:
        if self.publish is not None:
            self.publish(event)

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def refund(
        self,
        transaction_id: str,
        amount: float,
        reason: str = "Customer requested refund",
        provider: str | None = None,
    ) -> RefundResult:
        """Refund part or all of a successful transaction.

        The refundable balance is checked before the provider is called, and
        no other refund of the same transaction can start until this one is
        recorded. A provider refusal is recorded as a failed RefundRequest and
        raised as ``GatewayError``.
        """
        with self._refund_locks.hold(transaction_id):
            transaction = current_domain.repository_for(Transaction).get(transaction_id)
            if provider is not None and transaction.provider != self.registry.get(provider).provider.value:
                raise ValidationError({"provider": [f"Transaction was not made through {provider}"]})
            transaction.assert_refundable(amount, refunded_total(transaction.id))

            gateway = self.registry.get(transaction.provider)
            refund_key = transaction.transaction_id or transaction.gateway_order_id
            result = gateway.process_refund(
                refund_key,
                RefundInstruction(
                    order_id=str(transaction.order_id),
                    gateway_order_id=transaction.gateway_order_id,
                    amount=amount,
                    reason=reason,
                ),
            )

            refund_request_id = current_domain.process(
                RecordRefund(
                    transaction_id=str(transaction.id),
                    amount=amount,
                    reason=reason,
                    succeeded=result.success,
                    refund_id=result.refund_id,
                    failure_reason=result.message,
                    is_mock=result.is_mock,
                ),
                asynchronous=False,
            )

        if not result.success:
            logger.error(
                "Refund rejected by gateway",
                provider=result.provider,
                transaction_id=str(transaction.id),
                message=result.message,
            )
            raise GatewayError(result.message or "Refund failed", provider=result.provider, raw=result.raw)

        logger.info(
            "Refund processed",
            provider=result.provider,
            transaction_id=str(transaction.id),
            refund_id=result.refund_id,
            amount=amount,
        )
        self._publish(refund_event(current_domain.repository_for(RefundRequest).get(refund_request_id)))
        return result

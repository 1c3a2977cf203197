"""Development payment gateway: records charges in the log and approves them."""

import logging
from uuid import uuid4

from scheduling.domain import Money, OccurrenceId
from scheduling.gateways.interfaces import ChargeOutcome, ChargeResult, PaymentGateway

logger = logging.getLogger(__name__)


class LoggingPaymentGateway(PaymentGateway):
    def charge(self, payment_method_token: str, amount: Money, occurrence_id: OccurrenceId) -> ChargeResult:
        if not payment_method_token:
            logger.warning("Declining charge for session %s: no payment method", occurrence_id)
            return ChargeResult(outcome=ChargeOutcome.DECLINED, message="No payment method on file")
        reference = f"dev_{uuid4().hex[:16]}"
        logger.info("Charged %s for session %s (ref %s)", amount, occurrence_id, reference)
        return ChargeResult(outcome=ChargeOutcome.SUCCESS, reference=reference)

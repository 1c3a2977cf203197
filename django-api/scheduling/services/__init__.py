from scheduling.services.billing_service import BillingService, ChargeAttempt
from scheduling.services.subscription_service import SubscriptionService

__all__ = ["BillingService", "ChargeAttempt", "SubscriptionService"]

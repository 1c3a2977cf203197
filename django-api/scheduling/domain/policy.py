"""Pricing and timing rules shared by fees, billing and the lifecycle."""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from scheduling.domain.value_objects import Money


@dataclass(frozen=True)
class BookingPolicy:
    """Rates and thresholds of the practice.

    Defaults are the practice's standard rates; ``scheduling.conf`` builds one
    from Django settings.
    """

    recurring_rate: Money = Money(Decimal("150.00"))
    standalone_rate: Money = Money(Decimal("170.00"))
    trial_rate: Money = Money(Decimal("1.00"))
    late_fee: Money = Money(Decimal("50.00"))
    fee_threshold: timedelta = timedelta(hours=24)
    billing_lead_time: timedelta = timedelta(hours=48)
    batch_size: int = 4

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        if self.standalone_rate.amount < self.recurring_rate.amount:
            raise ValueError("Standalone rate cannot be lower than the recurring rate")


DEFAULT_POLICY = BookingPolicy()

"""Periodic billing job: close out ended sessions, refresh look-ahead windows
and charge due sessions and late fees.

Run from cron, e.g. every 15 minutes::

    python manage.py charge_due_sessions
"""

from django.core.management.base import BaseCommand

from scheduling import conf
from scheduling.gateways import ChargeOutcome
from scheduling.services.billing_service import BillingService
from scheduling.services.subscription_service import SubscriptionService
from scheduling.stores.django_store import DjangoSubscriptionStore


class Command(BaseCommand):
    help = "Complete ended sessions, top up upcoming ones and charge every session within its billing lead time."

    def add_arguments(self, parser):
        parser.add_argument(
            "--skip-refresh",
            action="store_true",
            help="Only charge; do not materialize new sessions.",
        )

    def handle(self, *args, **options):
        store = DjangoSubscriptionStore()
        sink = conf.notification_sink()
        policy = conf.booking_policy()

        service = SubscriptionService(store, sink, policy)
        completed = service.complete_elapsed_sessions()
        self.stdout.write(f"Completed {completed} elapsed sessions")

        if not options["skip_refresh"]:
            added = service.refresh_lookahead()
            self.stdout.write(f"Materialized {added} new sessions")

        attempts = BillingService(store, conf.payment_gateway(), sink, policy).run_due_charges()
        succeeded = sum(1 for attempt in attempts if attempt.outcome is ChargeOutcome.SUCCESS)
        self.stdout.write(
            self.style.SUCCESS(f"Charged {succeeded} of {len(attempts)} due sessions")
        )

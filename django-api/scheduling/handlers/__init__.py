from scheduling.handlers.views import (
    ActivateView,
    CancelView,
    ConflictListView,
    FeeDecisionView,
    PauseView,
    PaymentMethodView,
    PreviewView,
    ResumeView,
    SessionCancelView,
    SessionCompleteView,
    SessionListView,
    SessionRescheduleView,
    SkipDateView,
    SlotDetailView,
    SlotListView,
    SubscriptionDetailView,
    SubscriptionListView,
    SummaryView,
    TermsView,
    TimezoneListView,
)

__all__ = [
    "ActivateView",
    "CancelView",
    "ConflictListView",
    "FeeDecisionView",
    "PauseView",
    "PaymentMethodView",
    "PreviewView",
    "ResumeView",
    "SessionCancelView",
    "SessionCompleteView",
    "SessionListView",
    "SessionRescheduleView",
    "SkipDateView",
    "SlotDetailView",
    "SlotListView",
    "SubscriptionDetailView",
    "SubscriptionListView",
    "SummaryView",
    "TermsView",
    "TimezoneListView",
]

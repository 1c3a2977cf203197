from django.urls import path

from scheduling.handlers import (
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

subscription = "subscriptions/<str:subscription_id>"
session = f"{subscription}/sessions/<str:occurrence_id>"

urlpatterns = [
    path("timezones", TimezoneListView.as_view(), name="timezone-list"),
    path("subscriptions", SubscriptionListView.as_view(), name="subscription-list"),
    path(subscription, SubscriptionDetailView.as_view(), name="subscription-detail"),
    path(f"{subscription}/slots", SlotListView.as_view(), name="slot-list"),
    path(f"{subscription}/slots/<str:slot_id>", SlotDetailView.as_view(), name="slot-detail"),
    path(f"{subscription}/conflicts", ConflictListView.as_view(), name="conflict-list"),
    path(f"{subscription}/preview", PreviewView.as_view(), name="subscription-preview"),
    path(f"{subscription}/terms", TermsView.as_view(), name="subscription-terms"),
    path(f"{subscription}/payment-method", PaymentMethodView.as_view(), name="subscription-payment-method"),
    path(f"{subscription}/activate", ActivateView.as_view(), name="subscription-activate"),
    path(f"{subscription}/pause", PauseView.as_view(), name="subscription-pause"),
    path(f"{subscription}/resume", ResumeView.as_view(), name="subscription-resume"),
    path(f"{subscription}/cancel", CancelView.as_view(), name="subscription-cancel"),
    path(f"{subscription}/skip-dates", SkipDateView.as_view(), name="subscription-skip-dates"),
    path(f"{subscription}/summary", SummaryView.as_view(), name="subscription-summary"),
    path(f"{subscription}/sessions", SessionListView.as_view(), name="session-list"),
    path(f"{session}/fee", FeeDecisionView.as_view(), name="session-fee"),
    path(f"{session}/cancel", SessionCancelView.as_view(), name="session-cancel"),
    path(f"{session}/reschedule", SessionRescheduleView.as_view(), name="session-reschedule"),
    path(f"{session}/complete", SessionCompleteView.as_view(), name="session-complete"),
]

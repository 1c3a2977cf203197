"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from django.core.cache import cache
from django.utils import timezone
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from scheduling import conf
from scheduling.cache import SESSIONS_TTL, SUBSCRIPTION_TTL, sessions_key, subscription_key
from scheduling.domain import FeeAction, ScheduleFrequency, SessionKind
from scheduling.domain.errors import ConflictError, DomainError, ErrorCode, ValidationError
from scheduling.domain.timezones import timezone_options
from scheduling.handlers import serializers
from scheduling.services.subscription_service import SubscriptionService
from scheduling.stores.django_store import DjangoSubscriptionStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_SLOT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TIMEZONE_UNRESOLVED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.SCHEDULE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.PAST_SESSION: status.HTTP_409_CONFLICT,
    ErrorCode.SUBSCRIPTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SLOT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.OCCURRENCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def error_response(exc: DomainError) -> Response:
    body = {"code": exc.code.value, "message": exc.message}
    if isinstance(exc, ValidationError):
        body["precondition"] = exc.precondition.value
    if isinstance(exc, ConflictError):
        body["conflicts"] = list(exc.conflicts)
    return Response(body, status=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST))


def subscription_service() -> SubscriptionService:
    return SubscriptionService(
        DjangoSubscriptionStore(),
        conf.notification_sink(),
        conf.booking_policy(),
    )


def validated(serializer_class, data) -> dict:
    serializer = serializer_class(data=data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class SchedulingView(APIView):
    """Base view turning domain errors into JSON error responses."""

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            logger.info("%s %s rejected: %s", self.request.method, self.request.path, exc)
            return error_response(exc)
        return super().handle_exception(exc)

    @property
    def service(self) -> SubscriptionService:
        return subscription_service()


def subscription_payload(subscription) -> dict:
    return serializers.SubscriptionSerializer(subscription).data


def occurrence_context(subscription) -> dict:
    return {"timezones": {slot.id: slot.timezone for slot in subscription.slots}}


class SubscriptionListView(SchedulingView):
    """Handler for POST /api/subscriptions"""

    def post(self, request: Request) -> Response:
        data = validated(serializers.CreateSubscriptionSerializer, request.data)
        subscription = self.service.create_subscription(data["client_id"])
        return Response(subscription_payload(subscription), status=status.HTTP_201_CREATED)


class SubscriptionDetailView(SchedulingView):
    """Handler for GET /api/subscriptions/{subscription_id}"""

    def get(self, request: Request, subscription_id: str) -> Response:
        key = subscription_key(subscription_id)
        payload = cache.get(key)
        if payload is None:
            payload = subscription_payload(self.service.get_subscription(subscription_id))
            cache.set(key, payload, SUBSCRIPTION_TTL)
        return Response(payload)


class SlotListView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/slots"""

    def post(self, request: Request, subscription_id: str) -> Response:
        data = validated(serializers.SlotInputSerializer, request.data)
        _, slot = self.service.add_slot(
            subscription_id,
            data["day_of_week"],
            data["time_of_day"],
            (data.get("timezone"), request.headers.get("X-Timezone")),
            data["enabled"],
            ScheduleFrequency(data["frequency"]),
        )
        return Response(serializers.SlotSerializer(slot).data, status=status.HTTP_201_CREATED)


class SlotDetailView(SchedulingView):
    """Handler for PATCH/DELETE /api/subscriptions/{subscription_id}/slots/{slot_id}"""

    def patch(self, request: Request, subscription_id: str, slot_id: str) -> Response:
        changes = validated(serializers.SlotUpdateSerializer, request.data)
        if "frequency" in changes:
            changes["frequency"] = ScheduleFrequency(changes["frequency"])
        subscription = self.service.update_slot(subscription_id, slot_id, **changes)
        return Response(subscription_payload(subscription))

    def delete(self, request: Request, subscription_id: str, slot_id: str) -> Response:
        subscription = self.service.remove_slot(subscription_id, slot_id)
        return Response(subscription_payload(subscription))


class ConflictListView(SchedulingView):
    """Handler for GET /api/subscriptions/{subscription_id}/conflicts"""

    def get(self, request: Request, subscription_id: str) -> Response:
        return Response({"conflicts": self.service.list_conflicts(subscription_id)})


class PreviewView(SchedulingView):
    """Handler for GET /api/subscriptions/{subscription_id}/preview"""

    def get(self, request: Request, subscription_id: str) -> Response:
        query = validated(serializers.PreviewQuerySerializer, request.query_params)
        previews = self.service.preview(subscription_id, query["count"])
        return Response(serializers.SessionPreviewSerializer(previews, many=True).data)


class TermsView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/terms"""

    def post(self, request: Request, subscription_id: str) -> Response:
        return Response(subscription_payload(self.service.acknowledge_terms(subscription_id)))


class PaymentMethodView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/payment-method"""

    def post(self, request: Request, subscription_id: str) -> Response:
        data = validated(serializers.PaymentMethodSerializer, request.data)
        subscription = self.service.set_payment_method(subscription_id, data["token"])
        return Response(subscription_payload(subscription))


class ActivateView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/activate"""

    def post(self, request: Request, subscription_id: str) -> Response:
        return Response(subscription_payload(self.service.activate(subscription_id)))


class PauseView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/pause"""

    def post(self, request: Request, subscription_id: str) -> Response:
        data = validated(serializers.PauseSerializer, request.data)
        subscription = self.service.pause(subscription_id, data["reason"], data.get("until"))
        return Response(subscription_payload(subscription))


class ResumeView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/resume"""

    def post(self, request: Request, subscription_id: str) -> Response:
        return Response(subscription_payload(self.service.resume(subscription_id)))


class CancelView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/cancel"""

    def post(self, request: Request, subscription_id: str) -> Response:
        return Response(subscription_payload(self.service.cancel(subscription_id)))


class SkipDateView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/skip-dates"""

    def post(self, request: Request, subscription_id: str) -> Response:
        data = validated(serializers.SkipDateSerializer, request.data)
        return Response(subscription_payload(self.service.add_skip_date(subscription_id, data["date"])))


class SessionListView(SchedulingView):
    """Handler for GET/POST /api/subscriptions/{subscription_id}/sessions"""

    def get(self, request: Request, subscription_id: str) -> Response:
        key = sessions_key(subscription_id)
        payload = cache.get(key)
        if payload is None:
            subscription = self.service.get_subscription(subscription_id)
            payload = serializers.OccurrenceSerializer(
                subscription.upcoming(timezone.now()), many=True, context=occurrence_context(subscription)
            ).data
            cache.set(key, payload, SESSIONS_TTL)
        return Response(payload)

    def post(self, request: Request, subscription_id: str) -> Response:
        data = validated(serializers.StandaloneBookingSerializer, request.data)
        occurrence = self.service.book_standalone(
            subscription_id, data["starts_at"], SessionKind(data["kind"])
        )
        return Response(serializers.OccurrenceSerializer(occurrence).data, status=status.HTTP_201_CREATED)


class FeeDecisionView(SchedulingView):
    """Handler for GET /api/subscriptions/{subscription_id}/sessions/{occurrence_id}/fee"""

    def get(self, request: Request, subscription_id: str, occurrence_id: str) -> Response:
        query = validated(serializers.FeeQuerySerializer, request.query_params)
        decision = self.service.decide_fee(subscription_id, occurrence_id, FeeAction(query["action"]))
        return Response(serializers.FeeDecisionSerializer(decision).data)


class SessionCancelView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/sessions/{occurrence_id}/cancel"""

    def post(self, request: Request, subscription_id: str, occurrence_id: str) -> Response:
        decision = self.service.cancel_session(subscription_id, occurrence_id)
        return Response(serializers.FeeDecisionSerializer(decision).data)


class SessionRescheduleView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/sessions/{occurrence_id}/reschedule"""

    def post(self, request: Request, subscription_id: str, occurrence_id: str) -> Response:
        data = validated(serializers.RescheduleSerializer, request.data)
        occurrence, decision = self.service.reschedule_session(
            subscription_id, occurrence_id, data["new_start"]
        )
        return Response(
            {
                "session": serializers.OccurrenceSerializer(occurrence).data,
                "fee": serializers.FeeDecisionSerializer(decision).data,
            }
        )


class SessionCompleteView(SchedulingView):
    """Handler for POST /api/subscriptions/{subscription_id}/sessions/{occurrence_id}/complete"""

    def post(self, request: Request, subscription_id: str, occurrence_id: str) -> Response:
        occurrence = self.service.complete_session(subscription_id, occurrence_id)
        return Response(serializers.OccurrenceSerializer(occurrence).data)


class SummaryView(SchedulingView):
    """Handler for GET /api/subscriptions/{subscription_id}/summary"""

    def get(self, request: Request, subscription_id: str) -> Response:
        return Response(serializers.SummarySerializer(self.service.summary(subscription_id)).data)


class TimezoneListView(APIView):
    """Handler for GET /api/timezones"""

    def get(self, request: Request) -> Response:
        return Response(serializers.TimezoneSerializer(timezone_options(), many=True).data)

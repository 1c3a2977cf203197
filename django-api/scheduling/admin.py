from django.contrib import admin

from scheduling.models import RecurringSubscription, SessionOccurrence, WeeklyScheduleSlot


class WeeklyScheduleSlotInline(admin.TabularInline):
    model = WeeklyScheduleSlot
    extra = 0


class SessionOccurrenceInline(admin.TabularInline):
    model = SessionOccurrence
    extra = 0
    fields = [
        "scheduled_at",
        "status",
        "amount_due",
        "charge_trigger_at",
        "charged_at",
        "suspended",
        "fee_charged",
        "fee_charged_at",
    ]
    readonly_fields = fields


@admin.register(RecurringSubscription)
class RecurringSubscriptionAdmin(admin.ModelAdmin):
    list_display = ["client_id", "state", "price_per_session", "created_at"]
    list_filter = ["state"]
    search_fields = ["client_id"]
    inlines = [WeeklyScheduleSlotInline, SessionOccurrenceInline]


@admin.register(SessionOccurrence)
class SessionOccurrenceAdmin(admin.ModelAdmin):
    list_display = ["subscription", "scheduled_at", "status", "amount_due", "charged_at"]
    list_filter = ["status", "kind"]

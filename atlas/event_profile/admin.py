from django.contrib import admin

from .models import (
    AuthorAccount,
    Category,
    CategoryReviewer,
    Event,
    EventEmailTemplate,
    Registrant,
    ReviewerProfile,
)


class CategoryReviewerInline(admin.TabularInline):
    model = CategoryReviewer
    extra = 1
    raw_id_fields = ["reviewer"]


class EventEmailTemplateInline(admin.StackedInline):
    model = EventEmailTemplate
    extra = 0


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Helper class to "admin" Event."""

    list_display = ["code", "name", "email_enabled", "notify_admins_on_review_approval"]
    list_filter = ["email_enabled"]
    search_fields = ["code", "name"]
    inlines = [EventEmailTemplateInline]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Helper class to "admin" Category."""

    list_display = ["id", "name", "event"]
    list_filter = ["event"]
    search_fields = ["name"]
    inlines = [CategoryReviewerInline]


@admin.register(Registrant)
class RegistrantAdmin(admin.ModelAdmin):
    """Helper class to "admin" Registrant."""

    list_display = ["id", "first_name", "last_name", "email", "event"]
    list_filter = ["event"]
    search_fields = ["first_name", "last_name", "email", "registration_id"]
    raw_id_fields = ["user"]


@admin.register(AuthorAccount)
class AuthorAccountAdmin(admin.ModelAdmin):
    """Helper class to "admin" AuthorAccount."""

    list_display = ["id", "name", "email"]
    search_fields = ["name", "email"]
    raw_id_fields = ["user"]


@admin.register(ReviewerProfile)
class ReviewerProfileAdmin(admin.ModelAdmin):
    """Helper class to "admin" ReviewerProfile."""

    list_display = ["reviewer", "assigned_abstracts_count"]
    search_fields = ["reviewer__email", "reviewer__last_name"]
    raw_id_fields = ["reviewer"]

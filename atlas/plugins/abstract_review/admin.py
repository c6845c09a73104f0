from django.contrib import admin

from .models import Abstract, AbstractDecision, Review, ReviewerAssignment


class ReviewerAssignmentInline(admin.TabularInline):
    model = ReviewerAssignment
    extra = 0
    raw_id_fields = ["reviewer"]


class ReviewInline(admin.TabularInline):
    model = Review
    extra = 0
    raw_id_fields = ["reviewer"]
    readonly_fields = ["date_reviewed"]


@admin.register(Abstract)
class AbstractAdmin(admin.ModelAdmin):
    """Helper class to "admin" Abstract."""

    list_display = ["id", "title", "event", "category", "status", "final_decision", "average_score"]
    list_filter = ["event", "status", "final_decision"]
    search_fields = ["title", "authors"]
    raw_id_fields = ["registration", "author", "decision_by"]
    readonly_fields = ["word_count", "average_score", "latest_state_change"]
    inlines = [ReviewerAssignmentInline, ReviewInline]


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """Helper class to "admin" Review."""

    list_display = ["id", "abstract", "reviewer", "decision", "score", "is_complete", "date_reviewed"]
    list_filter = ["decision", "is_complete"]
    search_fields = ["abstract__title", "reviewer__email"]
    raw_id_fields = ["abstract", "reviewer"]


@admin.register(AbstractDecision)
class AbstractDecisionAdmin(admin.ModelAdmin):
    """Helper class to "admin" AbstractDecision."""

    list_display = ["id", "abstract", "decision", "decided_by", "created"]
    list_filter = ["decision"]
    raw_id_fields = ["abstract", "decided_by"]

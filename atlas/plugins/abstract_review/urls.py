from django.urls import path

from . import views

app_name = "abstract_review"

urlpatterns = [
    path(
        "abstracts/assign-reviewers/",
        views.BulkAssignReviewers.as_view(),
        name="abstract_bulk_assign_reviewers",
    ),
    path(
        "abstracts/<int:pk>/assign-reviewers/",
        views.AssignReviewers.as_view(),
        name="abstract_assign_reviewers",
    ),
    path("abstracts/<int:pk>/review/", views.SubmitReview.as_view(), name="abstract_submit_review"),
    path("abstracts/<int:pk>/resubmit/", views.ResubmitRevision.as_view(), name="abstract_resubmit_revision"),
    path("abstracts/<int:pk>/decision/", views.AdminDecision.as_view(), name="abstract_admin_decision"),
    path("abstracts/<int:pk>/progress/", views.ReviewProgress.as_view(), name="abstract_review_progress"),
    path("events/<int:pk>/auto-assign/", views.AutoAssignReviewers.as_view(), name="event_auto_assign_reviewers"),
    path("events/<int:pk>/review-progress/", views.ReviewProgressList.as_view(), name="event_review_progress"),
    path(
        "events/<int:pk>/review-statistics/",
        views.ReviewStatistics.as_view(),
        name="event_review_statistics",
    ),
]

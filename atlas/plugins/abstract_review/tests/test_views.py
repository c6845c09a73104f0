import datetime

import pytest
from django.core import mail
from django.test import Client
from django.urls import reverse
from django.utils import timezone

from atlas.event_profile.factories import AccountFactory
from atlas.event_profile.utils import USER_NOT_FOUND

from ..factories import AbstractFactory
from ..models import Abstract, Review


@pytest.fixture
def admin_client(admin) -> Client:
    client = Client()
    client.force_login(admin)
    return client


@pytest.fixture
def reviewer_client(reviewers) -> Client:
    client = Client()
    client.force_login(reviewers[0])
    return client


@pytest.fixture
def submitter_client(registrant) -> Client:
    client = Client()
    client.force_login(registrant.user)
    return client


@pytest.mark.django_db
def test_assign_reviewers_view(abstract, reviewers, admin_client):
    url = reverse("abstract_review:abstract_assign_reviewers", kwargs={"pk": abstract.pk})
    response = admin_client.post(url, {"reviewers": [reviewers[0].pk, "invalidReviewer"]})

    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "partial"
    assert data["status"] == Abstract.Status.UNDER_REVIEW
    assert data["new_assignments"] == [reviewers[0].pk]
    assert data["invalid_reviewers"] == [{"identity": "invalidReviewer", "reason": USER_NOT_FOUND}]


@pytest.mark.django_db
def test_assign_reviewers_view_without_retries(abstract, reviewers, admin_client, settings):
    settings.ABSTRACT_REVIEW = {"TRANSACTION_RETRIES": 0}
    url = reverse("abstract_review:abstract_assign_reviewers", kwargs={"pk": abstract.pk})

    response = admin_client.post(url, {"reviewers": [reviewers[0].pk]})

    assert response.status_code == 200
    assert list(abstract.assignments.values_list("reviewer", flat=True)) == [reviewers[0].pk]


@pytest.mark.django_db
def test_assign_reviewers_view_failure(abstract, admin_client):
    url = reverse("abstract_review:abstract_assign_reviewers", kwargs={"pk": abstract.pk})

    response = admin_client.post(url, {"reviewers": ["ghost"]})
    assert response.status_code == 400
    assert response.json()["outcome"] == "failure"

    response = admin_client.post(url, {})
    assert response.status_code == 400
    assert "reviewers" in response.json()["error"]


@pytest.mark.django_db
def test_assign_reviewers_view_access(abstract, reviewers, reviewer_client):
    url = reverse("abstract_review:abstract_assign_reviewers", kwargs={"pk": abstract.pk})

    assert reviewer_client.post(url, {"reviewers": [reviewers[0].pk]}).status_code == 404
    assert Client().post(url, {"reviewers": [reviewers[0].pk]}).status_code == 403
    assert not abstract.assignments.exists()


@pytest.mark.django_db
def test_assign_reviewers_view_missing_abstract(reviewers, admin_client):
    url = reverse("abstract_review:abstract_assign_reviewers", kwargs={"pk": 999999})
    assert admin_client.post(url, {"reviewers": [reviewers[0].pk]}).status_code == 404


@pytest.mark.django_db
def test_bulk_assign_reviewers_view(event, category, reviewers, admin_client):
    abstracts = AbstractFactory.create_batch(2, event=event, category=category)
    response = admin_client.post(
        reverse("abstract_review:abstract_bulk_assign_reviewers"),
        {"abstracts": [abstract.pk for abstract in abstracts], "reviewers": [reviewers[1].pk]},
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert [result["abstract"] for result in results] == sorted(abstract.pk for abstract in abstracts)
    assert all(result["new_assignments"] == [reviewers[1].pk] for result in results)


@pytest.mark.django_db
def test_submit_review_view(assigned_abstract, reviewer_client):
    url = reverse("abstract_review:abstract_submit_review", kwargs={"pk": assigned_abstract.pk})

    response = reviewer_client.post(url, {"decision": "revise", "score": "6", "comments": "Needs focus"})
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == Abstract.Status.REVISION_REQUESTED
    assert data["average_score"] == 6
    assert data["review"]["decision"] == Review.Decisions.REVISE

    response = reviewer_client.post(url, {"decision": "accept", "score": "8"})
    assert response.status_code == 200
    assert response.json()["status"] == Abstract.Status.APPROVED
    assert assigned_abstract.reviews.count() == 1
    assert len(mail.outbox) == 1


@pytest.mark.django_db
def test_submit_review_view_errors(assigned_abstract, reviewer_client, reviewers):
    url = reverse("abstract_review:abstract_submit_review", kwargs={"pk": assigned_abstract.pk})

    response = reviewer_client.post(url, {"decision": "maybe"})
    assert response.status_code == 400
    assert "decision" in response.json()["error"]

    # reviewers cannot act on behalf of other reviewers
    response = reviewer_client.post(url, {"decision": "accept", "reviewer": reviewers[1].pk})
    assert response.status_code == 404

    outsider = Client()
    outsider.force_login(AccountFactory())
    assert outsider.post(url, {"decision": "accept"}).status_code == 404

    assigned_abstract.refresh_from_db()
    assert assigned_abstract.status == Abstract.Status.UNDER_REVIEW
    assert not assigned_abstract.reviews.exists()


@pytest.mark.django_db
def test_submit_review_view_on_behalf(assigned_abstract, reviewers, admin_client):
    url = reverse("abstract_review:abstract_submit_review", kwargs={"pk": assigned_abstract.pk})

    response = admin_client.post(url, {"decision": "reject", "reviewer": reviewers[2].pk})

    assert response.status_code == 201
    assert response.json()["review"]["reviewer"] == reviewers[2].pk
    assert admin_client.post(url, {"decision": "reject", "reviewer": 999999}).status_code == 400


@pytest.mark.django_db
def test_resubmit_revision_view(assigned_abstract, submitter_client, reviewer_client):
    assigned_abstract.status = Abstract.Status.REVISION_REQUESTED
    assigned_abstract.save()
    url = reverse("abstract_review:abstract_resubmit_revision", kwargs={"pk": assigned_abstract.pk})

    assert reviewer_client.post(url).status_code == 404

    response = submitter_client.post(url)
    assert response.status_code == 200
    assert response.json()["status"] == Abstract.Status.REVISED_PENDING_REVIEW
    assert len(mail.outbox) == 3

    # not in revision-requested anymore
    assert submitter_client.post(url).status_code == 400


@pytest.mark.django_db
def test_resubmit_revision_view_after_deadline(assigned_abstract, submitter_client):
    assigned_abstract.status = Abstract.Status.REVISION_REQUESTED
    assigned_abstract.revision_deadline = timezone.now() - datetime.timedelta(minutes=1)
    assigned_abstract.save()
    url = reverse("abstract_review:abstract_resubmit_revision", kwargs={"pk": assigned_abstract.pk})

    response = submitter_client.post(url)

    assert response.status_code == 400
    assigned_abstract.refresh_from_db()
    assert assigned_abstract.status == Abstract.Status.REVISION_REQUESTED


@pytest.mark.django_db
def test_admin_decision_view(assigned_abstract, admin_client, reviewer_client):
    url = reverse("abstract_review:abstract_admin_decision", kwargs={"pk": assigned_abstract.pk})
    deadline = timezone.now() + datetime.timedelta(days=3)

    assert reviewer_client.post(url, {"decision": "approved"}).status_code == 404
    assert admin_client.post(url, {"decision": "pending"}).status_code == 400
    response = admin_client.post(url, {"decision": "approved", "revision_deadline": deadline.isoformat()})
    assert response.status_code == 400

    response = admin_client.post(
        url,
        {"decision": "revision-requested", "reason": "Too long", "revision_deadline": deadline.isoformat()},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == Abstract.Status.REVISION_REQUESTED
    assert data["final_decision"] == Abstract.FinalDecisions.REVISION_REQUESTED
    assert data["decision_reason"] == "Too long"
    assert data["revision_deadline"] is not None


@pytest.mark.django_db
def test_auto_assign_view(event, category, reviewers, admin_client, reviewer_client):
    AbstractFactory(event=event, category=category)
    url = reverse("abstract_review:event_auto_assign_reviewers", kwargs={"pk": event.pk})

    assert reviewer_client.post(url).status_code == 404
    response = admin_client.post(url)
    assert response.status_code == 200
    assert response.json() == {"event": event.code, "updated": 1}
    assert admin_client.post(
        reverse("abstract_review:event_auto_assign_reviewers", kwargs={"pk": event.pk + 100}),
    ).status_code == 404


@pytest.mark.django_db
def test_review_progress_view(assigned_abstract, reviewer_client, submitter_client):
    url = reverse("abstract_review:abstract_review_progress", kwargs={"pk": assigned_abstract.pk})

    response = reviewer_client.get(url)
    assert response.status_code == 200
    assert response.json() == {
        "total_assigned": 3,
        "completed_reviews": 0,
        "pending_reviews": 3,
        "completion_percentage": 0,
    }
    assert submitter_client.get(url).status_code == 404


@pytest.mark.django_db
def test_review_progress_list_view(assigned_abstract, event, category, admin_client, reviewer_client):
    other = AbstractFactory(event=event, category=category)
    url = reverse("abstract_review:event_review_progress", kwargs={"pk": event.pk})

    assert reviewer_client.get(url).status_code == 404

    response = admin_client.get(url)
    assert response.status_code == 200
    abstracts = response.json()["abstracts"]
    assert [abstract["id"] for abstract in abstracts] == [assigned_abstract.pk, other.pk]
    assert abstracts[0]["total_assigned"] == 3
    assert abstracts[0]["pending_reviews"] == 3
    assert abstracts[1]["total_assigned"] == 0
    assert abstracts[1]["completion_percentage"] == 0

    response = admin_client.get(url, {"status": Abstract.Status.UNDER_REVIEW})
    assert [abstract["id"] for abstract in response.json()["abstracts"]] == [assigned_abstract.pk]

    response = admin_client.get(url, {"status": "bogus"})
    assert response.status_code == 400


@pytest.mark.django_db
def test_review_statistics_view(assigned_abstract, event, reviewers, admin_client, reviewer_client):
    url = reverse("abstract_review:event_review_statistics", kwargs={"pk": event.pk})
    reviewer_client.post(
        reverse("abstract_review:abstract_submit_review", kwargs={"pk": assigned_abstract.pk}),
        {"decision": "accept", "score": "8"},
    )

    assert reviewer_client.get(url).status_code == 404
    assert Client().get(url).status_code == 403

    response = admin_client.get(url)
    assert response.status_code == 200
    data = response.json()
    assert data["event"] == event.code
    assert data["total_abstracts"] == 1
    assert data["by_status"] == {Abstract.Status.APPROVED: 1}
    assert data["by_category"] == {"Plenary": 1}
    assert data["total_reviews"] == 1
    assert data["average_score"] == 8
    assert [reviewer["reviewer"] for reviewer in data["reviewers"]] == [reviewers[0].pk]

    missing = reverse("abstract_review:event_review_statistics", kwargs={"pk": event.pk + 100})
    assert admin_client.get(missing).status_code == 404

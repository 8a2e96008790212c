"""
Tests for job moderation, expiry and public listing.
"""
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import InvalidTransitionError, NotFoundError, PermissionDeniedError
from app.db.models.job import (
    STATUS_ACTIVE,
    STATUS_DRAFT,
    STATUS_EXPIRED,
    STATUS_PENDING,
    STATUS_REJECTED,
    TIER_FEATURED,
    TIER_PREMIUM,
)
from app.db.models.user import ROLE_TALENT
from app.services import company_service, job_service


@pytest.fixture
def employer(make_user):
    return make_user("employer@example.com")


@pytest.fixture
def company(make_company, employer):
    return make_company(employer)


def test_create_job_starts_as_draft(db, employer, company):
    job = job_service.create_job(db, employer, company.id, {"title": "Rust Dev", "description": "Validators"})
    assert job.status == STATUS_DRAFT
    assert job.tier == "normal"
    assert job.visibility_days == 30
    assert job.published_at is None


def test_create_job_with_submit_goes_to_pending(db, employer, company):
    job = job_service.create_job(db, employer, company.id, {"title": "Rust Dev", "description": "x"}, submit=True)
    assert job.status == STATUS_PENDING


def test_create_job_requires_membership(db, make_user, company):
    outsider = make_user("outsider@example.com")
    with pytest.raises(PermissionDeniedError):
        job_service.create_job(db, outsider, company.id, {"title": "x", "description": "y"})


def test_submit_moves_draft_to_pending(db, employer, company, make_job):
    job = make_job(company, status=STATUS_DRAFT)
    assert job_service.submit_job(db, employer, job.id).status == STATUS_PENDING


def test_update_cannot_touch_status_or_tier(db, employer, company, make_job):
    job = make_job(company, status=STATUS_DRAFT)
    updated = job_service.update_job(
        db, employer, job.id, {"title": "Senior Rust Dev", "status": STATUS_ACTIVE, "tier": TIER_PREMIUM}
    )
    assert updated.title == "Senior Rust Dev"
    assert updated.status == STATUS_DRAFT
    assert updated.tier == "normal"


def test_approve_sets_publication_window(db, company, make_job):
    job = make_job(company, status=STATUS_PENDING, visibility_days=30)

    approved = job_service.approve_job(db, job.id, now=datetime(2024, 1, 1))

    assert approved.status == STATUS_ACTIVE
    assert approved.published_at == datetime(2024, 1, 1)
    assert approved.expires_at == datetime(2024, 1, 31)


def test_approve_only_from_pending(db, company, make_job):
    job = make_job(company, status=STATUS_DRAFT)
    with pytest.raises(InvalidTransitionError):
        job_service.approve_job(db, job.id)
    db.refresh(job)
    assert job.status == STATUS_DRAFT


def test_reject_is_terminal(db, company, make_job):
    job = make_job(company, status=STATUS_PENDING)
    assert job_service.reject_job(db, job.id).status == STATUS_REJECTED

    with pytest.raises(InvalidTransitionError):
        job_service.approve_job(db, job.id)
    with pytest.raises(InvalidTransitionError):
        job_service.reject_job(db, job.id)


def test_rejected_job_excluded_from_public_listing(db, company, make_job):
    live = make_job(company, title="Live job")
    pending = make_job(company, status=STATUS_PENDING, title="Bad job")
    job_service.reject_job(db, pending.id)

    jobs, total = job_service.list_public_jobs(db)
    assert [j.id for j in jobs] == [live.id]
    assert total == 1

    jobs, _ = job_service.list_public_jobs(db, search="Bad")
    assert jobs == []


def test_listing_hides_draft_pending_and_expired(db, company, make_job):
    make_job(company, status=STATUS_DRAFT)
    make_job(company, status=STATUS_PENDING)
    make_job(company, status=STATUS_EXPIRED)
    make_job(company, expires_at=datetime.utcnow() - timedelta(minutes=1))
    visible = make_job(company, expires_at=datetime.utcnow() + timedelta(days=1))

    jobs, total = job_service.list_public_jobs(db)
    assert [j.id for j in jobs] == [visible.id]
    assert total == 1


def test_listing_orders_by_tier_then_recency(db, company, make_job):
    now = datetime.utcnow()
    old_normal = make_job(company, published_at=now - timedelta(days=3))
    new_normal = make_job(company, published_at=now - timedelta(days=1))
    featured = make_job(company, tier=TIER_FEATURED, published_at=now - timedelta(days=5))
    premium = make_job(company, tier=TIER_PREMIUM, published_at=now - timedelta(days=9))

    jobs, _ = job_service.list_public_jobs(db)
    assert [j.id for j in jobs] == [premium.id, featured.id, new_normal.id, old_normal.id]


def test_expire_due_jobs(db, company, make_job):
    due = make_job(company, expires_at=datetime(2024, 1, 31))
    later = make_job(company, expires_at=datetime(2024, 3, 1))

    count = job_service.expire_due_jobs(db, now=datetime(2024, 2, 1))

    assert count == 1
    db.expire_all()
    assert db.get(type(due), due.id).status == STATUS_EXPIRED
    assert db.get(type(later), later.id).status == STATUS_ACTIVE


def test_close_job_expires_instead_of_deleting(db, employer, company, make_job):
    job = make_job(company)
    closed = job_service.close_job(db, employer, job.id)
    assert closed.status == STATUS_EXPIRED
    assert job_service.get_job(db, job.id) is not None


def test_non_public_job_hidden_from_strangers(db, employer, company, make_job, make_user):
    draft = make_job(company, status=STATUS_DRAFT)
    stranger = make_user("talent@example.com", role=ROLE_TALENT)

    with pytest.raises(NotFoundError):
        job_service.get_job_for_viewer(db, draft.id, None)
    with pytest.raises(NotFoundError):
        job_service.get_job_for_viewer(db, draft.id, stranger)
    assert job_service.get_job_for_viewer(db, draft.id, employer).id == draft.id


def test_jobs_of_unapproved_company_stay_off_the_board(db, employer, make_company, make_job, make_user):
    stealth = make_company(employer, name="Stealth Co", approved=False)
    job = make_job(stealth)
    stranger = make_user("talent@example.com", role=ROLE_TALENT)

    jobs, total = job_service.list_public_jobs(db)
    assert jobs == [] and total == 0
    with pytest.raises(NotFoundError):
        job_service.get_job_for_viewer(db, job.id, stranger)
    with pytest.raises(NotFoundError):
        job_service.increment_view(db, job.id)
    assert job_service.get_job_for_viewer(db, job.id, employer).id == job.id

    company_service.approve_company(db, stealth.id)

    jobs, total = job_service.list_public_jobs(db)
    assert [j.id for j in jobs] == [job.id]
    assert job_service.get_job_for_viewer(db, job.id, stranger).id == job.id


def test_public_listing_api(client, company, make_job):
    featured = make_job(company, tier=TIER_FEATURED, title="Featured role")
    normal = make_job(company, title="Normal role")
    make_job(company, status=STATUS_PENDING)

    response = client.get("/api/jobs")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [j["id"] for j in data["jobs"]] == [featured.id, normal.id]
    assert data["jobs"][0]["tier"] == "featured"
    assert "publishedAt" in data["jobs"][0]


def test_job_view_counter(client, db, company, make_job):
    job = make_job(company)
    assert client.post(f"/api/jobs/{job.id}/view").status_code == 204
    assert client.post(f"/api/jobs/{job.id}/view").status_code == 204
    db.expire_all()
    assert db.get(type(job), job.id).view_count == 2


def test_create_and_submit_via_api(client, employer, company, auth_headers):
    response = client.post(
        "/api/jobs",
        json={"companyId": company.id, "title": "DeFi Analyst", "description": "Research", "jobType": "contract"},
        headers=auth_headers(employer),
    )
    assert response.status_code == 201
    job = response.json()
    assert job["status"] == "draft"
    assert job["jobType"] == "contract"

    response = client.post(f"/api/jobs/{job['id']}/submit", headers=auth_headers(employer))
    assert response.status_code == 200
    assert response.json()["status"] == "pending"


def test_talent_cannot_post_jobs(client, company, make_user, auth_headers):
    talent = make_user("talent@example.com", role=ROLE_TALENT)
    response = client.post(
        "/api/jobs",
        json={"companyId": company.id, "title": "x", "description": "y"},
        headers=auth_headers(talent),
    )
    assert response.status_code == 403

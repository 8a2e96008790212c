"""
Dashboard counters and the admin moderation endpoints.
"""
from datetime import datetime, timedelta

import pytest

from app.db.models.application import Application
from app.db.models.job import Job, STATUS_PENDING
from app.db.models.user import ROLE_ADMIN, ROLE_TALENT


@pytest.fixture
def employer(make_user):
    return make_user("employer@example.com")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role=ROLE_ADMIN)


def test_employer_dashboard_counts_own_companies_only(client, db, employer, make_user, make_company, make_job, grant_credits, auth_headers):
    company = make_company(employer)
    rival = make_company(make_user("rival@example.com"), name="Rival Labs")
    talent = make_user("talent@example.com", role=ROLE_TALENT)

    job = make_job(company, view_count=7)
    make_job(company, status=STATUS_PENDING)
    rival_job = make_job(rival, view_count=100)
    db.add(Application(job_id=job.id, user_id=talent.id))
    db.add(Application(job_id=rival_job.id, user_id=talent.id))
    db.commit()
    grant_credits(employer, 2)

    response = client.get("/api/dashboard/stats", headers=auth_headers(employer))

    assert response.status_code == 200
    assert response.json() == {
        "role": "employer",
        "activeJobsCount": 1,
        "totalViews": 7,
        "totalApplications": 1,
        "creditsBalance": 2,
    }


def test_talent_dashboard(client, db, make_user, employer, make_company, make_job, auth_headers):
    talent = make_user("talent@example.com", role=ROLE_TALENT)
    job = make_job(make_company(employer))
    db.add(Application(job_id=job.id, user_id=talent.id))
    db.commit()

    response = client.get("/api/dashboard/stats", headers=auth_headers(talent))

    assert response.json() == {"role": "talent", "applicationsCount": 1, "savedJobsCount": 0}


def test_admin_endpoints_require_admin(client, employer, auth_headers):
    for method, path in [
        ("get", "/api/admin/stats"),
        ("get", "/api/admin/jobs/pending"),
        ("post", "/api/admin/jobs/1/approve"),
        ("post", "/api/admin/jobs/1/reject"),
        ("post", "/api/admin/jobs/expire"),
        ("get", "/api/admin/companies/pending"),
        ("post", "/api/admin/companies/1/approve"),
    ]:
        response = getattr(client, method)(path, headers=auth_headers(employer))
        assert response.status_code == 403, path
        assert client.request(method.upper(), path).status_code == 401, path


def test_admin_moderation_flow(client, db, admin, employer, make_company, make_job, auth_headers):
    company = make_company(employer, approved=False)
    job = make_job(company, status=STATUS_PENDING)
    headers = auth_headers(admin)

    pending = client.get("/api/admin/jobs/pending", headers=headers).json()
    assert [j["id"] for j in pending] == [job.id]

    response = client.post(f"/api/admin/jobs/{job.id}/approve", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "active"
    assert response.json()["expiresAt"] is not None

    response = client.post(f"/api/admin/jobs/{job.id}/approve", headers=headers)
    assert response.status_code == 409

    assert [c["id"] for c in client.get("/api/admin/companies/pending", headers=headers).json()] == [company.id]
    response = client.post(f"/api/admin/companies/{company.id}/approve", headers=headers)
    assert response.json()["isApproved"] is True

    stats = client.get("/api/admin/stats", headers=headers).json()
    assert stats["activeJobs"] == 1
    assert stats["pendingCompanies"] == 0
    assert stats["totalUsers"] == 2


def test_admin_expiry_sweep(client, db, admin, employer, make_company, make_job, auth_headers):
    job = make_job(make_company(employer), expires_at=datetime.utcnow() - timedelta(hours=1))

    response = client.post("/api/admin/jobs/expire", headers=auth_headers(admin))

    assert response.json() == {"expired": 1}
    db.expire_all()
    assert db.get(Job, job.id).status == "expired"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

"""
Saved jobs, saved searches and the talent profile.
"""
import pytest
from sqlalchemy.exc import OperationalError

from app.db.models.job import STATUS_DRAFT, STATUS_PENDING, STATUS_REJECTED
from app.db.models.saved import SavedJob
from app.db.models.talent_profile import TalentProfile
from app.db.models.user import ROLE_TALENT
from app.services import saved_service, talent_service


@pytest.fixture
def talent(make_user):
    return make_user("talent@example.com", role=ROLE_TALENT)


@pytest.fixture
def job(make_user, make_company, make_job):
    return make_job(make_company(make_user("employer@example.com")))


def test_save_job_is_idempotent(client, db, talent, job, auth_headers):
    headers = auth_headers(talent)

    first = client.post("/api/saved-jobs", json={"jobId": job.id}, headers=headers)
    second = client.post("/api/saved-jobs", json={"jobId": job.id}, headers=headers)

    assert first.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert db.query(SavedJob).count() == 1

    listed = client.get("/api/saved-jobs", headers=headers).json()
    assert [s["jobId"] for s in listed] == [job.id]
    assert listed[0]["job"]["title"] == job.title

    assert client.delete(f"/api/saved-jobs/{job.id}", headers=headers).status_code == 204
    assert client.get("/api/saved-jobs", headers=headers).json() == []


def test_save_unknown_job(client, talent, auth_headers):
    response = client.post("/api/saved-jobs", json={"jobId": 404}, headers=auth_headers(talent))
    assert response.status_code == 404


@pytest.mark.parametrize("status", [STATUS_DRAFT, STATUS_PENDING, STATUS_REJECTED])
def test_cannot_save_job_hidden_from_public(client, db, talent, make_user, make_company, make_job, auth_headers, status):
    hidden = make_job(make_company(make_user("stealth@example.com"), name="Stealth Co"), status=status,
                      title="Stealth mode protocol engineer")
    headers = auth_headers(talent)

    assert client.get(f"/api/jobs/{hidden.id}", headers=headers).status_code == 404

    response = client.post("/api/saved-jobs", json={"jobId": hidden.id}, headers=headers)

    assert response.status_code == 404
    assert "Stealth" not in response.text
    assert db.query(SavedJob).count() == 0


def test_saved_job_details_dropped_when_job_leaves_the_board(client, db, talent, job, auth_headers):
    headers = auth_headers(talent)
    assert client.post("/api/saved-jobs", json={"jobId": job.id}, headers=headers).status_code == 201

    job.status = STATUS_REJECTED
    db.commit()

    listed = client.get("/api/saved-jobs", headers=headers).json()
    assert [s["jobId"] for s in listed] == [job.id]
    assert listed[0]["job"] is None


def test_company_member_can_save_own_draft(client, make_user, make_company, make_job, auth_headers):
    employer = make_user("founder@example.com")
    draft = make_job(make_company(employer, name="Draft Labs"), status=STATUS_DRAFT)

    response = client.post("/api/saved-jobs", json={"jobId": draft.id}, headers=auth_headers(employer))

    assert response.status_code == 201
    assert response.json()["job"]["status"] == "draft"


def test_saved_searches_belong_to_their_owner(client, talent, make_user, auth_headers):
    response = client.post(
        "/api/saved-searches",
        json={"name": "Remote Solidity", "filters": {"search": "solidity", "isRemote": True}, "emailAlerts": True},
        headers=auth_headers(talent),
    )
    assert response.status_code == 201
    search = response.json()
    assert search["alertFrequency"] == "weekly"
    assert search["filters"] == {"search": "solidity", "isRemote": True}

    other = make_user("other@example.com", role=ROLE_TALENT)
    response = client.delete(f"/api/saved-searches/{search['id']}", headers=auth_headers(other))
    assert response.status_code == 403

    response = client.delete(f"/api/saved-searches/{search['id']}", headers=auth_headers(talent))
    assert response.status_code == 204
    assert client.get("/api/saved-searches", headers=auth_headers(talent)).json() == []


def test_talent_profile_created_on_first_read(client, talent, auth_headers):
    headers = auth_headers(talent)

    response = client.get("/api/talent/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["userId"] == talent.id

    response = client.put(
        "/api/talent/profile",
        json={"title": "ZK Engineer", "skills": ["circom", "rust"], "isPublic": True},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["skills"] == ["circom", "rust"]

    directory = client.get("/api/talents", params={"search": "ZK"}).json()
    assert [p["title"] for p in directory] == ["ZK Engineer"]


def test_employers_have_no_talent_profile(client, make_user, auth_headers):
    employer = make_user("boss@example.com")
    assert client.get("/api/talent/profile", headers=auth_headers(employer)).status_code == 403


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


def test_profile_update_rolls_back_when_commit_fails(db, talent, monkeypatch):
    talent_service.get_or_create_profile(db, talent)
    monkeypatch.setattr(db, "commit", _failing_commit)

    with pytest.raises(OperationalError):
        talent_service.update_profile(db, talent, {"title": "Half written"})

    monkeypatch.undo()
    assert db.query(TalentProfile).filter(TalentProfile.user_id == talent.id).one().title is None


def test_saved_search_discarded_when_commit_fails(db, talent, monkeypatch):
    monkeypatch.setattr(db, "commit", _failing_commit)

    with pytest.raises(OperationalError):
        saved_service.create_saved_search(db, talent, {"name": "DeFi", "filters": {"category": "defi"}})

    monkeypatch.undo()
    assert not db.new
    assert saved_service.list_saved_searches(db, talent) == []

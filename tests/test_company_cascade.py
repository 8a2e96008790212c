"""
Company moderation and deletion.
"""
import pytest

from app.core.exceptions import NotFoundError
from app.db.models.application import Application, Message
from app.db.models.company import Company, CompanyMember
from app.db.models.credit_ledger import CreditLedger
from app.db.models.job import Job
from app.db.models.saved import SavedJob
from app.db.models.user import User, ROLE_ADMIN, ROLE_TALENT
from app.services import company_service, job_service


@pytest.fixture
def employer(make_user):
    return make_user("employer@example.com")


def test_company_delete_cascades(db, employer, make_company, make_job, make_user, grant_credits):
    company = make_company(employer)
    other = make_company(employer, name="Other Labs")
    talent = make_user("talent@example.com", role=ROLE_TALENT)

    job = make_job(company)
    kept_job = make_job(other)
    application = Application(job_id=job.id, user_id=talent.id)
    db.add(application)
    db.flush()
    db.add(Message(application_id=application.id, sender_id=employer.id, message="Hi"))
    db.add(SavedJob(user_id=talent.id, job_id=job.id))
    db.commit()

    grant_credits(employer, 1)
    job_service.upgrade_job_with_credit(db, employer, job.id)

    result = company_service.delete_company(db, company.id)

    assert result == {"company_id": company.id, "jobs_removed": 1}
    db.expire_all()
    assert db.get(Company, company.id) is None
    assert db.query(Job).filter(Job.company_id == company.id).count() == 0
    assert db.query(Application).count() == 0
    assert db.query(Message).count() == 0
    assert db.query(SavedJob).count() == 0
    assert db.query(CompanyMember).filter(CompanyMember.company_id == company.id).count() == 0

    # Ledger history survives with the job reference cleared
    debit = db.query(CreditLedger).filter(CreditLedger.amount == -1).one()
    assert debit.job_id is None

    assert db.get(Job, kept_job.id) is not None
    assert db.get(User, employer.id) is not None
    assert db.get(User, talent.id) is not None


def test_delete_unknown_company(db):
    with pytest.raises(NotFoundError):
        company_service.delete_company(db, 999)


def test_new_company_waits_for_approval(db, employer):
    company = company_service.create_company(db, employer, {"name": "Moon DAO"})
    assert company.slug == "moon-dao"
    assert company.is_approved is False

    duplicate = company_service.create_company(db, employer, {"name": "Moon DAO"})
    assert duplicate.slug == "moon-dao-1"


def test_admin_created_company_is_approved(db, make_user):
    admin = make_user("admin@example.com", role=ROLE_ADMIN)
    company = company_service.create_company(db, admin, {"name": "Foundation"})
    assert company.is_approved is True


def test_unapproved_company_hidden_from_public(db, employer, make_company):
    company = make_company(employer, name="Stealth Co", approved=False)

    with pytest.raises(NotFoundError):
        company_service.get_company_by_slug(db, company.slug)
    assert company_service.get_company_by_slug(db, company.slug, employer).id == company.id

    companies, total = company_service.list_companies(db)
    assert total == 0

    company_service.approve_company(db, company.id)
    assert company_service.get_company_by_slug(db, company.slug).id == company.id


def test_admin_delete_endpoint(client, db, employer, make_company, make_job, make_user, auth_headers):
    admin = make_user("admin@example.com", role=ROLE_ADMIN)
    company = make_company(employer)
    make_job(company)
    make_job(company)

    response = client.delete(f"/api/admin/companies/{company.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json() == {"deleted": True, "companyId": company.id, "jobsRemoved": 2}
    db.expire_all()
    assert db.query(Job).count() == 0


def test_employer_cannot_delete_company(client, employer, make_company, auth_headers):
    company = make_company(employer)
    response = client.delete(f"/api/admin/companies/{company.id}", headers=auth_headers(employer))
    assert response.status_code == 403

"""
Database models module.

Imports every model so they are registered on SQLAlchemy's Base.metadata
before table creation and Alembic autogenerate.
"""
from app.db.models.user import User
from app.db.models.company import Company, CompanyMember
from app.db.models.job import Job
from app.db.models.talent_profile import TalentProfile
from app.db.models.application import Application, Message
from app.db.models.saved import SavedJob, SavedSearch
from app.db.models.plan import Plan
from app.db.models.payment import Payment
from app.db.models.credit_ledger import CreditLedger

__all__ = [
    "User",
    "Company",
    "CompanyMember",
    "Job",
    "TalentProfile",
    "Application",
    "Message",
    "SavedJob",
    "SavedSearch",
    "Plan",
    "Payment",
    "CreditLedger",
]

"""
Expire active jobs whose visibility window has passed. Meant for cron.
Run: python -m scripts.expire_jobs
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal
from app.services.job_service import expire_due_jobs
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    db = SessionLocal()
    try:
        count = expire_due_jobs(db)
        logger.info(f"Expired {count} job(s)")
    finally:
        db.close()

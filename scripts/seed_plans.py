"""
Replace the active plan catalogue with the default plans.
Run: python -m scripts.seed_plans
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal
from app.services.plan_service import seed_default_plans
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    db = SessionLocal()
    try:
        plans = seed_default_plans(db)
        for plan in plans:
            print(f"{plan.id}\t{plan.tier}\t{plan.price / 100:.2f}\t{plan.name}")
    finally:
        db.close()

"""
Card payment endpoints with the Stripe SDK patched out.
"""
import hashlib
import hmac
import json
import time

import pytest
import stripe

from app.core import config
from app.db.models.job import Job
from app.db.models.payment import Payment, PAYMENT_FAILED, PAYMENT_SUCCEEDED
from app.services import ledger_service

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture(autouse=True)
def stripe_config(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)


@pytest.fixture
def employer(make_user):
    return make_user("employer@example.com")


@pytest.fixture
def company(make_company, employer):
    return make_company(employer)


@pytest.fixture
def fake_stripe(monkeypatch):
    """Records PaymentIntent.create calls and serves PaymentIntent.retrieve from a dict."""
    state = {"created": [], "intents": {}}

    def create(**kwargs):
        intent_id = f"pi_test_{len(state['created']) + 1}"
        state["created"].append(kwargs)
        state["intents"][intent_id] = {
            "id": intent_id,
            "status": "requires_payment_method",
            "amount": kwargs["amount"],
            "currency": kwargs["currency"],
            "metadata": kwargs["metadata"],
        }
        return {"id": intent_id, "client_secret": f"{intent_id}_secret"}

    def retrieve(intent_id):
        return state["intents"][intent_id]

    monkeypatch.setattr(stripe.PaymentIntent, "create", create)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve)
    return state


def signed_event(event: dict, secret: str = WEBHOOK_SECRET):
    payload = json.dumps(event)
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return payload, {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


def intent_event(intent: dict, event_type: str = "payment_intent.succeeded", event_id: str = "evt_1") -> dict:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": {**intent, "object": "payment_intent"}},
    }


def test_create_intent_uses_plan_price(client, db, employer, company, make_job, make_plan, fake_stripe, auth_headers):
    plan = make_plan(price=19900)
    job = make_job(company)

    response = client.post(
        "/api/create-payment-intent",
        json={"planId": plan.id, "jobId": job.id},
        headers=auth_headers(employer),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["clientSecret"] == "pi_test_1_secret"
    assert data["amount"] == 19900
    assert fake_stripe["created"][0]["amount"] == 19900
    assert fake_stripe["created"][0]["metadata"]["job_id"] == str(job.id)

    payment = db.query(Payment).filter(Payment.external_id == "pi_test_1").one()
    assert payment.status == "pending"
    assert payment.job_id == job.id


def test_create_intent_for_foreign_job_is_forbidden(client, company, make_job, make_plan, make_user, fake_stripe, auth_headers):
    make_plan()
    job = make_job(company)
    outsider = make_user("outsider@example.com")

    response = client.post("/api/create-payment-intent", json={"jobId": job.id}, headers=auth_headers(outsider))

    assert response.status_code == 403
    assert fake_stripe["created"] == []


def test_create_intent_without_stripe_key(client, employer, make_plan, monkeypatch, auth_headers):
    make_plan()
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", None)

    response = client.post("/api/create-payment-intent", json={}, headers=auth_headers(employer))

    assert response.status_code == 503


def test_webhook_redelivery_upgrades_once(client, db, employer, company, make_job, make_plan, fake_stripe, auth_headers):
    plan = make_plan()
    job = make_job(company)
    client.post("/api/create-payment-intent", json={"planId": plan.id, "jobId": job.id}, headers=auth_headers(employer))
    intent = {**fake_stripe["intents"]["pi_test_1"], "status": "succeeded"}
    payload, headers = signed_event(intent_event(intent))

    first = client.post("/api/stripe-webhook", content=payload, headers=headers)
    second = client.post("/api/stripe-webhook", content=payload, headers=headers)

    assert first.status_code == 200
    assert first.json() == {"received": True, "type": "payment_intent.succeeded", "alreadyProcessed": False}
    assert second.status_code == 200
    assert second.json()["alreadyProcessed"] is True

    db.expire_all()
    assert db.get(Job, job.id).tier == "featured"
    assert db.query(Payment).one().status == PAYMENT_SUCCEEDED
    assert ledger_service.get_credit_balance(db, employer.id) == 0


def test_webhook_bad_signature(client, fake_stripe):
    payload, headers = signed_event(intent_event({"id": "pi_x"}), secret="whsec_wrong")

    response = client.post("/api/stripe-webhook", content=payload, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_webhook_failure_leaves_job_alone(client, db, employer, company, make_job, make_plan, fake_stripe, auth_headers):
    plan = make_plan()
    job = make_job(company)
    client.post("/api/create-payment-intent", json={"planId": plan.id, "jobId": job.id}, headers=auth_headers(employer))
    intent = {**fake_stripe["intents"]["pi_test_1"], "status": "requires_payment_method"}
    payload, headers = signed_event(intent_event(intent, event_type="payment_intent.payment_failed"))

    response = client.post("/api/stripe-webhook", content=payload, headers=headers)

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Payment).one().status == PAYMENT_FAILED
    assert db.get(Job, job.id).tier == "normal"


def test_client_confirmation_then_webhook(client, db, employer, company, make_job, make_plan, fake_stripe, auth_headers):
    plan = make_plan()
    job = make_job(company)
    client.post("/api/create-payment-intent", json={"planId": plan.id, "jobId": job.id}, headers=auth_headers(employer))
    fake_stripe["intents"]["pi_test_1"]["status"] = "succeeded"

    response = client.post(
        f"/api/jobs/{job.id}/upgrade-featured",
        json={"paymentIntentId": "pi_test_1"},
        headers=auth_headers(employer),
    )
    assert response.status_code == 200
    assert response.json()["upgraded"] is True
    assert response.json()["job"]["tier"] == "featured"

    payload, headers = signed_event(intent_event(fake_stripe["intents"]["pi_test_1"]))
    response = client.post("/api/stripe-webhook", content=payload, headers=headers)
    assert response.json()["alreadyProcessed"] is True


def test_client_confirmation_requires_succeeded_intent(client, db, employer, make_plan, fake_stripe, auth_headers):
    plan = make_plan(credits=5)
    client.post("/api/create-payment-intent", json={"planId": plan.id}, headers=auth_headers(employer))

    response = client.post("/api/credits/add", json={"paymentIntentId": "pi_test_1"}, headers=auth_headers(employer))

    assert response.status_code == 400
    assert ledger_service.get_credit_balance(db, employer.id) == 0


def test_credit_purchase_via_client_confirmation(client, db, employer, make_plan, fake_stripe, auth_headers):
    plan = make_plan(credits=5)
    client.post("/api/create-payment-intent", json={"planId": plan.id}, headers=auth_headers(employer))
    fake_stripe["intents"]["pi_test_1"]["status"] = "succeeded"

    first = client.post("/api/credits/add", json={"paymentIntentId": "pi_test_1"}, headers=auth_headers(employer))
    second = client.post("/api/credits/add", json={"paymentIntentId": "pi_test_1"}, headers=auth_headers(employer))

    assert first.status_code == 200
    assert first.json()["creditsGranted"] == 5
    assert first.json()["creditsBalance"] == 5
    assert second.json()["alreadyProcessed"] is True
    assert second.json()["creditsBalance"] == 5

    history = client.get("/api/credits/history", headers=auth_headers(employer)).json()
    assert history["creditsBalance"] == 5
    assert len(history["entries"]) == 1


def test_someone_elses_intent_is_refused(client, employer, make_plan, make_user, fake_stripe, auth_headers):
    plan = make_plan()
    client.post("/api/create-payment-intent", json={"planId": plan.id}, headers=auth_headers(employer))
    fake_stripe["intents"]["pi_test_1"]["status"] = "succeeded"
    thief = make_user("thief@example.com")

    response = client.post("/api/credits/add", json={"paymentIntentId": "pi_test_1"}, headers=auth_headers(thief))

    assert response.status_code == 403


def test_list_plans(client, make_plan):
    make_plan(tier="normal", price=9900)
    make_plan(tier="featured", price=19900)

    response = client.get("/api/plans")

    assert response.status_code == 200
    assert [p["price"] for p in response.json()] == [9900, 19900]
    assert response.json()[0]["visibilityDays"] == 30

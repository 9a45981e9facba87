from __future__ import annotations

from datetime import timedelta

from buildops.core.security import create_access_token, get_password_hash, verify_password


def test_password_hash_round_trip():
    hashed = get_password_hash("site-visit-2026")
    assert hashed != "site-visit-2026"
    assert verify_password("site-visit-2026", hashed)
    assert not verify_password("wrong", hashed)


def test_bearer_token_resolves_user(token_client, users):
    token = create_access_token({"sub": str(users.sales.id)})

    response = token_client.get("/api/approval-requests/mine", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.headers["X-Request-Id"]


def test_missing_or_expired_token_is_401(token_client, users):
    assert token_client.get("/api/approval-requests/mine").status_code == 401

    expired = create_access_token({"sub": str(users.sales.id)}, expires_delta=timedelta(minutes=-5))
    response = token_client.get("/api/approval-requests/mine", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_inactive_user_is_401(token_client, db, users):
    users.worker.is_active = False
    db.commit()
    token = create_access_token({"sub": str(users.worker.id)})

    response = token_client.get("/api/approval-requests/mine", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401

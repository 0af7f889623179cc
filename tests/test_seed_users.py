from portal.auth.security import verify_password
from portal.models.models import User, UserSession
from scripts.seed_users import seed_user


def test_seed_creates_then_resets(db_session):
    assert seed_user(db_session, "ops", "first") == "created"
    assert seed_user(db_session, "ops", "second", hash_password=True) == "updated"
    user = db_session.query(User).filter(User.user_id == "ops").one()
    assert user.password != "second"
    assert verify_password("second", user.password)


def test_seed_dry_run_writes_nothing(db_session):
    assert seed_user(db_session, "ops", "pw", dry_run=True) == "unchanged"
    assert db_session.query(User).count() == 0


def test_password_reset_ends_existing_sessions(auth_client, db_session):
    assert auth_client.get("/api/tickets").status_code == 200
    assert seed_user(db_session, "asha", "new-secret") == "updated"
    assert db_session.query(UserSession).count() == 0
    assert auth_client.get("/api/tickets").status_code == 401
    r = auth_client.post("/api/login", json={"userId": "asha", "password": "new-secret"})
    assert r.status_code == 200

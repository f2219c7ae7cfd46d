"""
Tests for the audit trail written by form/template mutations.
"""
import uuid

from fastapi.testclient import TestClient
from app.main import app

from app.core.audit import log_event
from app.models.audit_event import AuditEvent
from tests.helpers import auth, create_form, create_user, text_field


def test_list_audit_requires_admin(db_session):
    create_user(db_session, "user@local.test")
    client = TestClient(app)
    r = client.get("/audit", headers=auth("user@local.test"))
    assert r.status_code == 403


def test_mutations_are_audited(db_session):
    admin = create_user(db_session, "admin@local.test", "Admin", is_admin=True)
    client = TestClient(app)

    r = client.post(
        "/forms",
        json={"form_name": "Audited", "fields": [text_field()]},
        headers=auth("admin@local.test"),
    )
    form_id = r.json()["id"]
    client.put(f"/forms/{form_id}/status", json={"status": "active"}, headers=auth("admin@local.test"))
    client.delete(f"/forms/{form_id}", headers=auth("admin@local.test"))

    r = client.get(f"/audit?entity_type=form&entity_id={form_id}", headers=auth("admin@local.test"))
    assert r.status_code == 200
    events = r.json()
    assert sorted(e["action"] for e in events) == ["FORM_CREATED", "FORM_DELETED", "FORM_STATUS_CHANGED"]
    assert all(e["actor_user_id"] == str(admin.id) for e in events)

    r = client.get("/audit?action=form_status_changed", headers=auth("admin@local.test"))
    assert [e["metadata"] for e in r.json()] == [{"from": "inactive", "to": "active"}]


def test_rejected_activation_leaves_no_audit_row(db_session):
    user = create_user(db_session, "author@local.test")
    form = create_form(db_session, fields=[], created_by=user)
    client = TestClient(app)

    r = client.put(f"/forms/{form.id}/status", json={"status": "active"}, headers=auth("author@local.test"))
    assert r.status_code == 400
    assert db_session.query(AuditEvent).count() == 0


def test_log_event_metadata_is_json_safe(db_session):
    user = create_user(db_session, "author@local.test")
    ref = uuid.uuid4()
    log_event(
        db=db_session,
        actor=user,
        action="FORM_UPDATED",
        entity_type="form",
        entity_id=ref,
        metadata={"approver": ref, "ids": (ref,)},
    )
    db_session.commit()

    row = db_session.query(AuditEvent).one()
    assert row.event_metadata == {"approver": str(ref), "ids": [str(ref)]}

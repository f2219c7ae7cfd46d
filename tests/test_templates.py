import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.audit_event import AuditEvent
from app.models.template import Template
from tests.helpers import auth, create_form, create_template, create_user


@pytest.fixture()
def author(db_session):
    return create_user(db_session, "author@test.com", full_name="Author")


@pytest.fixture()
def approver(db_session):
    return create_user(db_session, "approver@test.com", full_name="Approver")


def _payload(forms, approver, **extra):
    body = {
        "template_name": "Onboarding",
        "forms": [str(f.id) for f in forms],
        "approver_template": str(approver.id),
    }
    body.update(extra)
    return body


def test_create_template(db_session, author, approver):
    a = create_form(db_session, form_name="Contact", status="active")
    b = create_form(db_session, form_name="Address")
    client = TestClient(app)

    r = client.post("/templates", json=_payload([a, b], approver), headers=auth("author@test.com"))
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "inactive"
    assert body["approver_template"]["name"] == "Approver"
    assert sorted(f["form_name"] for f in body["forms"]) == ["Address", "Contact"]
    assert sorted(body["form_names"].split(", ")) == ["Address", "Contact"]
    assert body["created_by"]["email"] == "author@test.com"

    assert db_session.query(AuditEvent).filter(AuditEvent.action == "TEMPLATE_CREATED").count() == 1


def test_create_active_template(db_session, author, approver):
    form = create_form(db_session, status="active")
    client = TestClient(app)
    r = client.post("/templates", json=_payload([form], approver, status="active"), headers=auth("author@test.com"))
    assert r.status_code == 201
    assert r.json()["status"] == "active"


def test_create_active_template_without_active_forms(db_session, author, approver):
    form = create_form(db_session)
    client = TestClient(app)
    r = client.post("/templates", json=_payload([form], approver, status="active"), headers=auth("author@test.com"))
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["message"] == (
        "Cannot set template to active: Template must have at least one active form to be activated"
    )
    assert detail["errors"][0]["type"] == "NO_ACTIVE_FORMS"
    assert detail["errors"][0]["details"]["totalFormCount"] == 1
    assert db_session.query(Template).count() == 0


def test_create_template_with_no_forms_is_inactive(db_session, author, approver):
    client = TestClient(app)
    r = client.post("/templates", json=_payload([], approver, status="active"), headers=auth("author@test.com"))
    assert r.status_code == 201
    assert r.json()["status"] == "inactive"
    assert r.json()["forms"] == []


def test_duplicate_template_name_case_insensitive(db_session, author, approver):
    create_template(db_session, template_name="Onboarding", approver=approver)
    client = TestClient(app)
    r = client.post(
        "/templates", json=_payload([], approver, template_name="ONBOARDING"), headers=auth("author@test.com")
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Template with this name already exists"


def test_deleted_template_frees_its_name(db_session, author, approver):
    t = create_template(db_session, template_name="Onboarding", approver=approver)
    t.is_active = False
    db_session.commit()

    client = TestClient(app)
    r = client.post("/templates", json=_payload([], approver), headers=auth("author@test.com"))
    assert r.status_code == 201


def test_create_template_unknown_form(db_session, author, approver):
    gone = create_form(db_session)
    gone.is_active = False
    db_session.commit()

    client = TestClient(app)
    r = client.post("/templates", json=_payload([gone], approver), headers=auth("author@test.com"))
    assert r.status_code == 400
    assert r.json()["detail"]["missing_form_ids"] == [str(gone.id)]


def test_create_template_inactive_approver(db_session, author):
    retired = create_user(db_session, "retired@test.com", is_active=False)
    client = TestClient(app)
    r = client.post("/templates", json=_payload([], retired), headers=auth("author@test.com"))
    assert r.status_code == 400
    assert r.json()["detail"] == "Approver template user not found or inactive"


def test_create_template_requires_approver(db_session, author):
    client = TestClient(app)
    r = client.post("/templates", json={"template_name": "No approver", "forms": []}, headers=auth("author@test.com"))
    assert r.status_code == 422


def test_get_template_reconciles_status(db_session, author, approver):
    form = create_form(db_session, status="active")
    t = create_template(db_session, forms=[form], approver=approver, status="active", created_by=author)

    form.status = "inactive"
    db_session.commit()

    client = TestClient(app)
    r = client.get(f"/templates/{t.id}", headers=auth("author@test.com"))
    assert r.status_code == 200
    assert r.json()["status"] == "inactive"

    db_session.refresh(t)
    assert t.status == "inactive"


def test_list_templates_reconciles_and_searches(db_session, author, approver):
    form = create_form(db_session, status="active")
    create_template(db_session, template_name="Cable Onboarding", forms=[form], approver=approver, status="active")
    create_template(db_session, template_name="Billing", approver=approver)

    soft_deleted = create_form(db_session, form_name="Spare")
    soft_deleted.is_active = False
    form.is_active = False
    db_session.commit()

    client = TestClient(app)
    r = client.get("/templates?search=cable", headers=auth("author@test.com"))
    assert r.status_code == 200
    rows = r.json()
    assert [t["template_name"] for t in rows] == ["Cable Onboarding"]
    assert rows[0]["status"] == "inactive"


def test_update_template(db_session, author, approver):
    a = create_form(db_session, form_name="A", status="active")
    b = create_form(db_session, form_name="B", status="active")
    t = create_template(db_session, forms=[a], approver=approver, created_by=author)
    client = TestClient(app)

    r = client.put(
        f"/templates/{t.id}",
        json=_payload([b], approver, template_name="Renamed", status="active"),
        headers=auth("author@test.com"),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["template_name"] == "Renamed"
    assert [f["form_name"] for f in body["forms"]] == ["B"]
    assert body["status"] == "active"


def test_update_template_keeps_own_name(db_session, author, approver):
    t = create_template(db_session, template_name="Onboarding", approver=approver, created_by=author)
    client = TestClient(app)
    r = client.put(f"/templates/{t.id}", json=_payload([], approver), headers=auth("author@test.com"))
    assert r.status_code == 200


def test_update_template_name_clash(db_session, author, approver):
    create_template(db_session, template_name="Existing", approver=approver)
    t = create_template(db_session, template_name="Mine", approver=approver, created_by=author)
    client = TestClient(app)
    r = client.put(
        f"/templates/{t.id}", json=_payload([], approver, template_name="existing"), headers=auth("author@test.com")
    )
    assert r.status_code == 400


def test_update_template_forbidden_for_other_users(db_session, author, approver):
    create_user(db_session, "other@test.com")
    t = create_template(db_session, approver=approver, created_by=author)
    client = TestClient(app)
    r = client.put(f"/templates/{t.id}", json=_payload([], approver), headers=auth("other@test.com"))
    assert r.status_code == 403
    assert r.json()["detail"] == "Access denied. You can only update your own templates."


def test_patch_status_activate_and_deactivate(db_session, author, approver):
    form = create_form(db_session, status="active")
    t = create_template(db_session, forms=[form], approver=approver, created_by=author)
    client = TestClient(app)

    r = client.patch(f"/templates/{t.id}/status", json={"status": "active"}, headers=auth("author@test.com"))
    assert r.status_code == 200
    assert r.json()["status"] == "active"

    r = client.patch(f"/templates/{t.id}/status", json={"status": "inactive"}, headers=auth("author@test.com"))
    assert r.status_code == 200
    assert r.json()["status"] == "inactive"


def test_patch_status_reports_every_problem(db_session, author):
    t = create_template(db_session, created_by=author)
    client = TestClient(app)

    r = client.patch(f"/templates/{t.id}/status", json={"status": "active"}, headers=auth("author@test.com"))
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["message"].startswith("Cannot activate template: ")
    assert [e["type"] for e in detail["errors"]] == ["NO_FORMS", "NO_APPROVER"]


def test_validate_template(db_session, author, approver):
    active = create_form(db_session, form_name="Active", status="active")
    inactive = create_form(db_session, form_name="Inactive")
    t = create_template(db_session, forms=[active, inactive], approver=approver, created_by=author)
    client = TestClient(app)

    r = client.get(f"/templates/{t.id}/validate", headers=auth("author@test.com"))
    assert r.status_code == 200
    body = r.json()
    assert body["current_status"] == "inactive"
    assert body["validation"] == {"is_valid": True, "errors": []}
    assert body["statistics"]["form_count"] == 2
    assert body["statistics"]["active_form_count"] == 1
    assert sorted(f["status"] for f in body["forms_details"]) == ["active", "inactive"]


def test_delete_template(db_session, author, approver):
    t = create_template(db_session, approver=approver, created_by=author)
    client = TestClient(app)

    r = client.delete(f"/templates/{t.id}", headers=auth("author@test.com"))
    assert r.status_code == 200

    r = client.get(f"/templates/{t.id}", headers=auth("author@test.com"))
    assert r.status_code == 404
    assert client.get("/templates", headers=auth("author@test.com")).json() == []


def test_delete_stale_active_template(db_session, author, approver):
    form = create_form(db_session, status="active")
    t = create_template(db_session, forms=[form], approver=approver, status="active", created_by=author)
    form.status = "inactive"
    db_session.commit()

    client = TestClient(app)
    r = client.delete(f"/templates/{t.id}", headers=auth("author@test.com"))
    assert r.status_code == 200
    db_session.refresh(t)
    assert t.is_active is False
    assert t.status == "inactive"

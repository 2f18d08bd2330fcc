import pytest

from talentos.data import db
from talentos.data.schema import GUEST
from talentos.errors import AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from talentos.services import clients, identity, jobs, notifications, users


# ---------------- identidade ----------------
def test_resolve_actor_guest_and_lazy_profile(session):
    assert identity.resolve_actor(session, None) is GUEST
    actor = identity.resolve_actor(session, "novo-id", email="novo@agency.com")
    assert actor.name == "Novo Recrutador"
    assert actor.role == "Junior Recruiter"
    p = session.get(db.Profile, "novo-id")
    assert p.preferences == {"notifications": True}


def test_resolve_actor_inactive_is_refused(session, people):
    users.update_user(session, people["admin"], "u4", {"status": "Inativo"})
    with pytest.raises(PermissionDeniedError):
        identity.resolve_actor(session, "u4")


def test_visible_pages_by_role():
    admin = [p["id"] for p in identity.visible_pages("Admin")]
    junior = [p["id"] for p in identity.visible_pages("Junior Recruiter")]
    assert "job-trash" in admin and "users" in admin
    assert "job-trash" not in junior and "users" not in junior
    assert junior[:2] == ["dashboard", "pipeline"]


# ---------------- usuários ----------------
def test_add_user_admin_only_and_unique_email(session, people):
    with pytest.raises(PermissionDeniedError):
        users.add_user(session, people["ana"], {"name": "X", "email": "x@agency.com"})
    u = users.add_user(session, people["admin"], {"name": "Lucas Santos", "email": "lucas.s@agency.com",
                                                  "role": "Senior Recruiter"})
    assert u.avatar_url == "LS"
    assert u.preferences == {"notifications": True, "newsletter": False}
    with pytest.raises(ConflictError):
        users.add_user(session, people["admin"], {"name": "Outro", "email": "LUCAS.S@agency.com"})
    with pytest.raises(ValidationError):
        users.add_user(session, people["admin"], {"name": "Y", "email": "y@agency.com", "role": "Root"})


def test_update_user_self_and_role_rules(session, people):
    p = users.update_user(session, people["ana"], "u1", {"bio": "Tech recruiter"})
    assert p.bio == "Tech recruiter"
    with pytest.raises(PermissionDeniedError):
        users.update_user(session, people["ana"], "u1", {"role": "Admin"})
    with pytest.raises(PermissionDeniedError):
        users.update_user(session, people["ana"], "u4", {"bio": "x"})
    assert users.update_user(session, people["admin"], "u4", {"role": "Senior Recruiter"}).user_role == "Senior Recruiter"


def test_list_users_filters(session, people):
    assert [p.id for p in users.list_users(session, people["ana"], role="Admin")] == ["adm"]
    assert [p.id for p in users.list_users(session, people["ana"], search="ricardo")] == ["u4"]
    assert len(users.list_users(session, people["ana"], role="Todos")) == 3


def test_delete_user_rules(session, people):
    with pytest.raises(ValidationError):
        users.delete_user(session, people["admin"], "adm")
    jobs.add_job(session, people["admin"], {"title": "Dev", "company": "Nubank", "recruiter": {"id": "u4"}})
    with pytest.raises(ConflictError, match="desativar"):
        users.delete_user(session, people["admin"], "u4")

    notifications.notify(session, "u1", "Oi")
    session.commit()
    users.delete_user(session, people["admin"], "u1")
    assert session.get(db.Profile, "u1") is None
    with pytest.raises(NotFoundError):
        users.get_user(session, people["admin"], "u1")


# ---------------- clientes ----------------
def test_client_crud_and_active_jobs(session, people):
    c = clients.add_client(session, people["ana"], {"name": "hotmart", "industry": "Educação"})
    assert c.logo_url == "H"
    assert c.status == "Prospect"

    jobs.add_job(session, people["admin"], {"title": "PM", "company": "hotmart", "recruiter": {"id": "u1"}})
    delivered = jobs.add_job(session, people["admin"], {"title": "PO", "company": "hotmart", "recruiter": {"id": "u1"}})
    jobs.update_job_stage(session, people["admin"], delivered.id, "Entregue")

    [(row, active)] = clients.list_clients(session, people["ana"], search="educacao")
    assert row.id == c.id and active == 1
    assert clients.list_clients(session, people["ana"], status="Ativo") == []

    c = clients.update_client(session, people["ana"], c.id, {"status": "Ativo", "contactName": "Roberto"})
    assert (c.status, c.contact_name, c.industry) == ("Ativo", "Roberto", "Educação")
    with pytest.raises(ValidationError):
        clients.update_client(session, people["ana"], c.id, {"status": "Perdido"})


def test_delete_client_rules(session, people):
    c = clients.add_client(session, people["admin"], {"name": "Salesforce"})
    with pytest.raises(PermissionDeniedError):
        clients.delete_client(session, people["ana"], c.id)
    jobs.add_job(session, people["admin"], {"title": "AE", "company": "Salesforce", "recruiter": {"id": "u1"}})
    with pytest.raises(ConflictError):
        clients.delete_client(session, people["admin"], c.id)

    other = clients.add_client(session, people["admin"], {"name": "Hotmart"})
    clients.delete_client(session, people["admin"], other.id)
    assert session.get(db.Client, other.id) is None


# ---------------- notificações ----------------
def test_notifications_flow(session, people):
    assert notifications.notify(session, "guest", "x") is None
    notifications.notify(session, "u1", "Um", type_="desconhecido")
    notifications.notify(session, "u1", "Dois", type_="warning")
    notifications.notify(session, "u4", "Outro")
    session.commit()

    rows, unread = notifications.list_notifications(session, people["ana"])
    assert unread == 2
    assert {n.notification_type for n in rows} == {"info", "warning"}

    notifications.mark_read(session, people["ana"], rows[0].id)
    assert notifications.list_notifications(session, people["ana"])[1] == 1
    other, _ = notifications.list_notifications(session, people["rick"])
    with pytest.raises(NotFoundError):
        notifications.mark_read(session, people["ana"], other[0].id)

    assert notifications.clear(session, people["ana"]) == 2
    assert notifications.list_notifications(session, people["ana"]) == ([], 0)


def test_notifications_respect_preferences(session, people):
    users.update_user(session, people["ana"], "u1", {"preferences": {"notifications": False}})
    notifications.notify(session, "u1", "Silenciada")
    session.commit()
    assert notifications.list_notifications(session, people["ana"]) == ([], 0)


def test_guest_cannot_list_clients(session):
    with pytest.raises(AuthenticationError):
        clients.list_clients(session, GUEST)


def test_null_required_fields_are_validation_errors(session, people):
    c = clients.add_client(session, people["ana"], {"name": "Hotmart"})
    with pytest.raises(ValidationError):
        clients.update_client(session, people["ana"], c.id, {"status": None})
    with pytest.raises(ValidationError):
        clients.add_client(session, people["ana"], {"name": "Stone", "status": None})
    for payload in ({"role": None}, {"status": None}, {"email": None}):
        with pytest.raises(ValidationError):
            users.update_user(session, people["admin"], "u4", payload)
    session.expire_all()
    assert session.get(db.Client, c.id).status == "Prospect"
    assert session.get(db.Profile, "u4").user_role == "Junior Recruiter"

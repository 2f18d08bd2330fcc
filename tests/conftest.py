import pytest
from fastapi.testclient import TestClient

from talentos.config import settings
from talentos.data import db
from talentos.services.identity import actor_from_profile


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    # banco em memória novo a cada teste + trilha de auditoria no tmp
    mon_dir = tmp_path / "monitoring"
    monkeypatch.setattr(settings, "MONITORING_DIR", str(mon_dir))
    db.init_db("sqlite://")
    return {"mon_dir": mon_dir, "tmp_path": tmp_path}


@pytest.fixture()
def session():
    s = db.get_session()
    yield s
    s.close()


def _profile(session, id_, name, email, role, **kw):
    p = db.Profile(id=id_, name=name, email=email, user_role=role, status=kw.pop("status", "Ativo"),
                   preferences=kw.pop("preferences", {"notifications": True}), **kw)
    session.add(p)
    return p


@pytest.fixture()
def people(session):
    """Admin, recrutadora sênior e recrutador júnior já cadastrados."""
    rows = {
        "admin": _profile(session, "adm", "Maria Costa", "maria.c@agency.com", "Admin"),
        "ana": _profile(session, "u1", "Ana Silva", "ana.silva@agency.com", "Senior Recruiter"),
        "rick": _profile(session, "u4", "Ricardo Alves", "ricardo.a@agency.com", "Junior Recruiter"),
    }
    session.commit()
    return {k: actor_from_profile(p) for k, p in rows.items()}


@pytest.fixture()
def client():
    from talentos.api.main import app
    return TestClient(app)

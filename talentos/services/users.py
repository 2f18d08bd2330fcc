import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..data import db, mapping
from ..data.schema import ROLES, USER_STATUSES, Actor
from ..errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..utils.text import initials, matches
from .identity import require_admin, require_user
from .notifications import notify

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES = {"notifications": True, "newsletter": False}


def _check_values(session: Session, values: Dict[str, Any], user_id: Optional[str] = None) -> None:
    mapping.reject_nulls(values, ("name", "email", "user_role", "status"))
    role = values.get("user_role")
    if role is not None and role not in ROLES:
        raise ValidationError(f"Papel inválido: {role}")
    status = values.get("status")
    if status is not None and status not in USER_STATUSES:
        raise ValidationError(f"Status inválido: {status}")
    if "name" in values and not (values["name"] or "").strip():
        raise ValidationError("Nome é obrigatório")
    if "email" in values:
        email = (values["email"] or "").strip().lower()
        if not email:
            raise ValidationError("E-mail é obrigatório")
        dup = session.scalar(
            select(db.Profile.id).where(func.lower(db.Profile.email) == email, db.Profile.id != (user_id or ""))
        )
        if dup:
            raise ConflictError("E-mail já cadastrado")


def list_users(
    session: Session,
    actor: Actor,
    search: str = "",
    role: Optional[str] = None,
    status: Optional[str] = None,
) -> List[db.Profile]:
    require_user(actor)
    q = select(db.Profile).order_by(db.Profile.name)
    if role and role != "Todos":
        q = q.where(db.Profile.user_role == role)
    if status and status != "Todos":
        q = q.where(db.Profile.status == status)
    return [p for p in session.scalars(q).all() if matches(search, p.name, p.email)]


def get_user(session: Session, actor: Actor, user_id: str) -> db.Profile:
    require_user(actor)
    p = session.get(db.Profile, user_id)
    if p is None:
        raise NotFoundError("Usuário não encontrado")
    return p


def add_user(session: Session, actor: Actor, data: Dict[str, Any]) -> db.Profile:
    """Cadastro feito pelo admin; a credencial de acesso é criada fora daqui."""
    require_admin(actor)
    values = mapping.to_columns(data, mapping.USER_FIELDS)
    values.setdefault("user_role", "Junior Recruiter")
    values.setdefault("status", "Ativo")
    values.setdefault("email", "")
    values.setdefault("name", "")
    _check_values(session, values)
    if data.get("id") and session.get(db.Profile, data["id"]) is not None:
        raise ConflictError("Usuário já existe")

    values["email"] = values["email"].strip()
    if not values.get("avatar_url"):
        values["avatar_url"] = initials(values.get("name", ""))
    if values.get("preferences") is None:
        values["preferences"] = dict(DEFAULT_PREFERENCES)

    p = db.Profile(**values)
    if data.get("id"):
        p.id = data["id"]
    session.add(p)
    session.flush()
    notify(session, actor.id, "Novo Usuário", f"{p.name} foi adicionado ao sistema.", "success")
    session.commit()
    logger.info("User created", extra={"ctx": {"user_id": p.id, "role": p.user_role}})
    return p


def update_user(session: Session, actor: Actor, user_id: str, updates: Dict[str, Any]) -> db.Profile:
    """Admin edita qualquer perfil; os demais só o próprio, sem mexer em papel/status."""
    require_user(actor)
    if user_id != actor.id and not actor.is_admin:
        raise PermissionDeniedError("Só é possível editar o próprio perfil")
    p = get_user(session, actor, user_id)
    values = mapping.to_columns(updates, mapping.USER_FIELDS)
    if not actor.is_admin and ({"user_role", "status"} & set(values)):
        raise PermissionDeniedError("Papel e status só podem ser alterados por administradores")
    _check_values(session, values, user_id=p.id)

    mapping.apply(p, values)
    if user_id == actor.id:
        notify(session, actor.id, "Perfil Atualizado", "Suas informações de perfil foram salvas.", "success")
    session.commit()
    return p


def delete_user(session: Session, actor: Actor, user_id: str) -> None:
    require_admin(actor)
    if user_id == actor.id:
        raise ValidationError("Não é possível excluir o próprio usuário")
    p = get_user(session, actor, user_id)
    linked = session.scalar(select(func.count(db.Job.id)).where(db.Job.recruiter_id == p.id))
    if linked:
        raise ConflictError(
            "Não é possível excluir este usuário pois ele possui registros vinculados "
            "(como vagas ou candidatos atribuídos). Tente desativar o usuário em vez de excluí-lo."
        )
    session.execute(delete(db.Notification).where(db.Notification.user_id == p.id))
    session.delete(p)
    notify(session, actor.id, "Usuário Removido", "O usuário foi excluído do sistema permanentemente.", "info")
    session.commit()
    logger.info("User deleted", extra={"ctx": {"user_id": user_id}})

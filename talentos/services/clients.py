import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..data import db, mapping
from ..data.schema import CLIENT_STATUSES, Actor
from ..errors import ConflictError, NotFoundError, ValidationError
from ..utils.text import matches
from .identity import require_admin, require_user
from .notifications import notify

logger = logging.getLogger(__name__)

DELIVERED_STAGE = "Entregue"


def _check_values(values: Dict[str, Any]) -> None:
    mapping.reject_nulls(values, ("name", "status"))
    status = values.get("status")
    if status is not None and status not in CLIENT_STATUSES:
        raise ValidationError(f"Status de cliente inválido: {status}")
    if "name" in values and not (values["name"] or "").strip():
        raise ValidationError("Nome do cliente é obrigatório")


def active_jobs_by_company(session: Session) -> Dict[str, int]:
    """Vagas em andamento (não entregues, fora da lixeira) por nome de empresa."""
    rows = session.execute(
        select(db.Job.company_name, func.count(db.Job.id))
        .where(db.Job.job_stage != DELIVERED_STAGE, db.Job.trashed.is_(False))
        .group_by(db.Job.company_name)
    ).all()
    return {name: n for name, n in rows}


def list_clients(
    session: Session,
    actor: Actor,
    search: str = "",
    status: Optional[str] = None,
) -> List[Tuple[db.Client, int]]:
    require_user(actor)
    q = select(db.Client).order_by(db.Client.name)
    if status and status != "Todos":
        q = q.where(db.Client.status == status)
    counts = active_jobs_by_company(session)
    return [
        (c, counts.get(c.name, 0))
        for c in session.scalars(q).all()
        if matches(search, c.name, c.industry, c.contact_name)
    ]


def get_client(session: Session, actor: Actor, client_id: str) -> db.Client:
    require_user(actor)
    c = session.get(db.Client, client_id)
    if c is None:
        raise NotFoundError("Cliente não encontrado")
    return c


def add_client(session: Session, actor: Actor, data: Dict[str, Any]) -> db.Client:
    require_user(actor)
    values = mapping.to_columns(data, mapping.CLIENT_FIELDS)
    values.setdefault("status", "Prospect")
    values.setdefault("name", "")
    _check_values(values)
    values["name"] = values["name"].strip()
    if not values.get("logo_url"):
        values["logo_url"] = values["name"][:1].upper()

    c = db.Client(**values)
    session.add(c)
    notify(session, actor.id, "Novo Cliente", f"{c.name} foi adicionado à carteira.", "success")
    session.commit()
    logger.info("Client created", extra={"ctx": {"client_id": c.id}})
    return c


def update_client(session: Session, actor: Actor, client_id: str, updates: Dict[str, Any]) -> db.Client:
    c = get_client(session, actor, client_id)
    values = mapping.to_columns(updates, mapping.CLIENT_FIELDS)
    _check_values(values)
    mapping.apply(c, values)
    notify(session, actor.id, "Cliente Atualizado", "As informações do cliente foram salvas.", "success")
    session.commit()
    return c


def delete_client(session: Session, actor: Actor, client_id: str) -> None:
    require_admin(actor)
    c = get_client(session, actor, client_id)
    linked = session.scalar(select(func.count(db.Job.id)).where(db.Job.company_name == c.name))
    if linked:
        raise ConflictError(
            "Não é possível excluir este cliente pois ele possui vagas vinculadas. "
            "Remova ou altere as vagas antes de excluir o cliente."
        )
    session.delete(c)
    notify(session, actor.id, "Cliente Removido", "O cliente e seus dados foram excluídos.", "info")
    session.commit()

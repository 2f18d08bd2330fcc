"""
Identidade e controle de acesso.

A autenticação é feita fora daqui (gateway / backend gerenciado): chegam
apenas o id do usuário e metadados opcionais. Perfil ausente é criado na
primeira requisição.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..data import db
from ..data.schema import ADMIN, GUEST, JUNIOR_RECRUITER, ROLES, Actor
from ..errors import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Novo Recrutador"

# Menu lateral: (slug, rótulo)
BASE_PAGES = [
    ("dashboard", "Dashboard"),
    ("pipeline", "Pipeline"),
    ("candidates", "Banco de Talentos"),
    ("clients", "Clientes"),
    ("reports", "Relatórios"),
    ("settings", "Configurações"),
]
ADMIN_PAGES = [
    ("users", "Usuários"),
    ("client-management", "Gestão de Clientes"),
    ("job-trash", "Lixeira de Vagas"),
    ("candidate-trash", "Lixeira de Candidatos"),
]


def actor_from_profile(p: db.Profile) -> Actor:
    return Actor(
        id=p.id,
        name=p.name,
        email=p.email,
        role=p.user_role,
        status=p.status,
        avatar=p.avatar_url,
    )


def resolve_actor(
    session: Session,
    user_id: Optional[str],
    email: Optional[str] = None,
    name: Optional[str] = None,
    role: Optional[str] = None,
) -> Actor:
    """Converte a identidade recebida do gateway em ``Actor``; sem id -> convidado."""
    if not user_id:
        return GUEST

    profile = session.get(db.Profile, user_id)
    if profile is None:
        # criação preguiçosa do perfil
        profile = db.Profile(
            id=user_id,
            name=(name or "").strip() or DEFAULT_NAME,
            email=email or "",
            user_role=role if role in ROLES else JUNIOR_RECRUITER,
            status="Ativo",
            preferences={"notifications": True},
        )
        session.add(profile)
        session.commit()
        logger.warning("Profile missing, created lazily", extra={"ctx": {"user_id": user_id}})

    if profile.status == "Inativo":
        raise PermissionDeniedError("Usuário inativo")
    return actor_from_profile(profile)


def require_user(actor: Actor) -> Actor:
    if actor.is_guest:
        raise AuthenticationError("Identificação do usuário ausente")
    return actor


def require_admin(actor: Actor) -> Actor:
    require_user(actor)
    if actor.role != ADMIN:
        raise PermissionDeniedError("Acesso restrito a administradores")
    return actor


def visible_pages(role: str) -> List[dict]:
    pages = list(BASE_PAGES)
    if role == ADMIN:
        pages += ADMIN_PAGES
    return [{"id": slug, "label": label} for slug, label in pages]

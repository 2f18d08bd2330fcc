import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..data import db, mapping
from ..data.schema import CANDIDATE_STATUSES, SENIORITIES, Actor
from ..errors import NotFoundError, ValidationError
from ..monitoring import audit
from ..monitoring.metrics import PIPELINE_MOVES
from ..pipeline import board as kb
from ..pipeline.stages import status_for_stage
from ..utils.text import matches, normalize_text, split_list
from . import columns as cols
from .identity import require_admin, require_user
from .jobs import get_job
from .notifications import notify

logger = logging.getLogger(__name__)

DEFAULTS = {
    "candidate_status": "Triagem",
    "candidate_stage": "Triagem",
    "source": "Manual",
    "seniority": "Pleno",
    "email": "",
    "phone": "",
    "location": "",
    "current_job_role": "",
}
REQUIRED_COLUMNS = ("name", "job_id", "candidate_status", "candidate_stage")


# =========================
# Helpers internos
# =========================
def _check_values(values: Dict[str, Any]) -> None:
    mapping.reject_nulls(values, REQUIRED_COLUMNS)
    status = values.get("candidate_status")
    if status is not None and status not in CANDIDATE_STATUSES:
        raise ValidationError(f"Status inválido: {status}")
    seniority = values.get("seniority")
    if seniority is not None and seniority not in SENIORITIES:
        raise ValidationError(f"Senioridade inválida: {seniority}")
    if "name" in values and not (values["name"] or "").strip():
        raise ValidationError("Nome do candidato é obrigatório")


def _open_job(session: Session, actor: Actor, job_id: Optional[str]) -> db.Job:
    """Vaga precisa existir, estar visível e fora da lixeira."""
    if not job_id:
        raise ValidationError("Vaga é obrigatória")
    job = get_job(session, actor, job_id)
    if job.trashed:
        raise ValidationError("Vaga está na lixeira")
    return job


def _column(session: Session, job_id: str, stage: str, exclude_id: Optional[str] = None) -> List[db.Candidate]:
    rows = session.scalars(
        select(db.Candidate).where(
            db.Candidate.job_id == job_id,
            db.Candidate.candidate_stage == stage,
            db.Candidate.trashed.is_(False),
        )
    ).all()
    return [c for c in rows if c.id != exclude_id]


# =========================
# Consultas
# =========================
def get_candidate(session: Session, actor: Actor, candidate_id: str) -> db.Candidate:
    require_user(actor)
    c = session.get(db.Candidate, candidate_id)
    if c is None:
        raise NotFoundError("Candidato não encontrado")
    return c


def _editable(session: Session, actor: Actor, candidate_id: str) -> db.Candidate:
    # mexer no candidato exige acesso à vaga dele
    c = get_candidate(session, actor, candidate_id)
    get_job(session, actor, c.job_id)
    return c


def list_for_job(session: Session, actor: Actor, job_id: str, trashed: bool = False) -> List[db.Candidate]:
    get_job(session, actor, job_id)
    return list(session.scalars(
        select(db.Candidate)
        .where(db.Candidate.job_id == job_id, db.Candidate.trashed == trashed)
        .order_by(db.Candidate.position, db.Candidate.created_at)
    ).all())


def search_candidates(
    session: Session,
    actor: Actor,
    search: str = "",
    job_id: Optional[str] = None,
    seniority: Optional[str] = None,
    location: Optional[str] = None,
    stage: Optional[str] = None,
    status: Optional[str] = None,
    skills: Optional[List[str]] = None,
    trashed: bool = False,
) -> List[db.Candidate]:
    """
    Banco de talentos: candidatos de qualquer vaga, visíveis a todos.

    Busca livre em nome, e-mail e cargo atual; habilidades exigem TODAS as
    selecionadas. Filtros vazios não restringem.
    """
    require_user(actor)
    q = select(db.Candidate).where(db.Candidate.trashed == trashed)
    if job_id:
        q = q.where(db.Candidate.job_id == job_id)
    if seniority:
        q = q.where(db.Candidate.seniority == seniority)
    if location:
        q = q.where(db.Candidate.location == location)
    if stage:
        q = q.where(db.Candidate.candidate_stage == stage)
    if status:
        q = q.where(db.Candidate.candidate_status == status)
    rows = session.scalars(q.order_by(db.Candidate.created_at)).all()

    wanted = {normalize_text(s) for s in (skills or []) if s}
    out = []
    for c in rows:
        if not matches(search, c.name, c.email, c.current_job_role):
            continue
        if wanted and not wanted.issubset({normalize_text(s) for s in (c.skills or [])}):
            continue
        out.append(c)
    return out


def facets(session: Session, actor: Actor) -> Dict[str, List[str]]:
    """Valores únicos para os filtros do banco de talentos."""
    require_user(actor)
    rows = session.scalars(select(db.Candidate).where(db.Candidate.trashed.is_(False))).all()
    skills = sorted({s for c in rows for s in (c.skills or []) if s})
    locations = sorted({c.location for c in rows if c.location})
    return {"skills": skills, "locations": locations}


# =========================
# Escrita
# =========================
def add_candidate(session: Session, actor: Actor, data: Dict[str, Any], note: Optional[str] = None) -> db.Candidate:
    require_user(actor)
    values = mapping.to_columns(data, mapping.CANDIDATE_FIELDS)
    job = _open_job(session, actor, values.get("job_id"))
    for k, v in DEFAULTS.items():
        if values.get(k) in (None, ""):
            values[k] = v
    values["candidate_stage"] = cols.resolve_stage(session, kb.CANDIDATES_BOARD, values["candidate_stage"])
    values["skills"] = split_list(values.get("skills"))
    _check_values(values)

    c = db.Candidate(**values)
    c.trashed = False
    c.position = len(_column(session, job.id, c.candidate_stage))
    session.add(c)
    session.flush()

    if note and note.strip():
        _new_note(session, actor, c, note)

    notify(session, actor.id, "Candidato Adicionado", f"{c.name} foi cadastrado com sucesso.", "success")
    session.commit()
    logger.info("Candidate created", extra={"ctx": {"candidate_id": c.id, "job_id": c.job_id}})
    return c


def update_candidate(session: Session, actor: Actor, candidate_id: str, updates: Dict[str, Any]) -> db.Candidate:
    """Atualização parcial; troca de etapa segue o mesmo caminho do kanban."""
    c = _editable(session, actor, candidate_id)
    values = mapping.to_columns(updates, mapping.CANDIDATE_FIELDS)
    _check_values(values)
    moved_job = "job_id" in values and values["job_id"] != c.job_id
    if moved_job:
        _open_job(session, actor, values["job_id"])
    stage = None
    if "candidate_stage" in values:
        stage = cols.resolve_stage(session, kb.CANDIDATES_BOARD, values.pop("candidate_stage"))
        if c.trashed:
            raise ValidationError("Candidato na lixeira não pode ser movido")
    if "skills" in values:
        values["skills"] = split_list(values["skills"])

    mapping.apply(c, values)
    if moved_job:
        # entra no fim da coluna na vaga nova
        c.position = len(_column(session, c.job_id, c.candidate_stage, exclude_id=c.id))
    notify(session, actor.id, "Candidato Atualizado", "As informações foram salvas.", "success")
    session.commit()
    if stage is not None:
        update_candidate_stage(session, actor, c.id, stage)
    return c


def update_candidate_stage(
    session: Session,
    actor: Actor,
    candidate_id: str,
    stage: str,
    index: Optional[int] = None,
) -> bool:
    """
    Move o candidato no kanban da vaga. Soltar em 'Reprovado' também marca
    status 'Rejeitado'. Retorna True se a etapa mudou.
    """
    c = _editable(session, actor, candidate_id)
    if c.trashed:
        raise ValidationError("Candidato na lixeira não pode ser movido")
    target = cols.resolve_stage(session, kb.CANDIDATES_BOARD, stage)

    cards = session.scalars(
        select(db.Candidate).where(db.Candidate.job_id == c.job_id, db.Candidate.trashed.is_(False))
    ).all()
    column, previous = kb.move_card(cards, c.id, target, lambda x: x.candidate_stage, index)
    c.candidate_stage = target
    kb.renumber(column)

    new_status = status_for_stage(target)
    if new_status:
        c.candidate_status = new_status
    session.commit()

    changed = previous != target
    if changed:
        audit.record_move(kb.CANDIDATES_BOARD, c.id, previous, target, actor.id)
        try:
            PIPELINE_MOVES.labels(board=kb.CANDIDATES_BOARD, stage=target).inc()
        except Exception:
            pass
    return changed


def trash_candidate(session: Session, actor: Actor, candidate_id: str) -> db.Candidate:
    c = _editable(session, actor, candidate_id)
    c.trashed = True
    notify(session, actor.id, "Candidato movido para lixeira", "", "success")
    session.commit()
    return c


def restore_candidate(session: Session, actor: Actor, candidate_id: str) -> db.Candidate:
    c = _editable(session, actor, candidate_id)
    c.trashed = False
    c.position = len(_column(session, c.job_id, c.candidate_stage, exclude_id=c.id))
    notify(session, actor.id, "Candidato restaurado", "", "success")
    session.commit()
    return c


def delete_candidate_permanently(session: Session, actor: Actor, candidate_id: str) -> None:
    require_admin(actor)
    c = get_candidate(session, actor, candidate_id)
    session.delete(c)  # notas vão junto (cascade)
    notify(session, actor.id, "Candidato excluído permanentemente", "", "warning")
    session.commit()


# =========================
# Notas
# =========================
def _new_note(session: Session, actor: Actor, c: db.Candidate, content: str) -> db.CandidateNote:
    n = db.CandidateNote(
        candidate=c,
        content=content.strip(),
        author_id=actor.id,
        author_name=actor.name,
        author_avatar=actor.avatar,
    )
    session.add(n)
    return n


def add_note(session: Session, actor: Actor, candidate_id: str, content: str) -> db.CandidateNote:
    if not content or not content.strip():
        raise ValidationError("Nota vazia")
    c = _editable(session, actor, candidate_id)
    n = _new_note(session, actor, c, content)
    session.commit()
    return n


def list_notes(session: Session, actor: Actor, candidate_id: str) -> List[db.CandidateNote]:
    c = get_candidate(session, actor, candidate_id)
    return list(c.notes)

"""
Quadros kanban de vagas e de candidatos.

A configuração de colunas é global por quadro; os cards vêm das tabelas de
vagas/candidatos, agrupados pela etapa. Mover um card delega ao serviço do
agregado, que valida a etapa e renumera as posições.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..data import db, mapping
from ..data.schema import Actor
from ..errors import ConflictError, NotFoundError, ValidationError
from ..pipeline import board as kb
from ..utils.text import matches
from . import candidates, columns, jobs
from .identity import require_admin, require_user

logger = logging.getLogger(__name__)


def _cards(session: Session, actor: Actor, kind: str, search: str, job_id: Optional[str], status: Optional[str]):
    if kind == kb.JOBS_BOARD:
        rows = jobs.list_jobs(session, actor, search=search)
        return rows, (lambda j: j.job_stage)

    if not job_id:
        raise ValidationError("Quadro de candidatos exige a vaga (job_id)")
    rows = candidates.list_for_job(session, actor, job_id)
    if status and status != "Todos":
        rows = [c for c in rows if c.candidate_status == status]
    rows = [c for c in rows if matches(search, c.name, c.email, c.current_job_role)]
    return rows, (lambda c: c.candidate_stage)


def get_board(
    session: Session,
    actor: Actor,
    kind: str,
    search: str = "",
    job_id: Optional[str] = None,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    require_user(actor)
    cols = columns.load_columns(session, kind)
    rows, stage_of = _cards(session, actor, kind, search, job_id, status)
    state = kb.group_by_stage(rows, cols, stage_of)

    if kind == kb.JOBS_BOARD:
        counts = jobs.candidate_counts(session, [j.id for j in rows])
        to_dict = lambda j: mapping.job_to_dict(j, counts.get(j.id, 0))  # noqa: E731
    else:
        to_dict = lambda c: mapping.candidate_to_dict(c, with_notes=False)  # noqa: E731

    return {
        "board": kind,
        "columns": [mapping.column_to_dict(c) for c in state.columns],
        "cards": {stage: [to_dict(x) for x in items] for stage, items in state.cards.items()},
        "unassigned": [to_dict(x) for x in state.unassigned],
    }


# =========================
# Colunas
# =========================
def list_columns(session: Session, actor: Actor, kind: str) -> List[kb.KanbanColumn]:
    require_user(actor)
    return columns.load_columns(session, kind)


def rename_column(session: Session, actor: Actor, kind: str, column_id: str, title: str) -> List[kb.KanbanColumn]:
    require_user(actor)
    cols = kb.rename_column(columns.load_columns(session, kind), column_id, title)
    columns.save_columns(session, kind, cols)
    return cols


def reorder_column(session: Session, actor: Actor, kind: str, from_index: int, to_index: int) -> List[kb.KanbanColumn]:
    require_user(actor)
    cols = kb.reorder_columns(columns.load_columns(session, kind), from_index, to_index)
    columns.save_columns(session, kind, cols)
    return cols


def add_column(session: Session, actor: Actor, kind: str, title: str, color: str = "") -> List[kb.KanbanColumn]:
    require_admin(actor)
    cols = kb.add_column(columns.load_columns(session, kind), title, color)
    columns.save_columns(session, kind, cols)
    logger.info("Board column added", extra={"ctx": {"board": kind, "column": cols[-1].id}})
    return cols


def _cards_in_stage(session: Session, kind: str, stage: str) -> int:
    if kind == kb.JOBS_BOARD:
        q = select(db.Job.id).where(db.Job.job_stage == stage, db.Job.trashed.is_(False))
    else:
        q = select(db.Candidate.id).where(db.Candidate.candidate_stage == stage, db.Candidate.trashed.is_(False))
    return len(session.scalars(q).all())


def remove_column(session: Session, actor: Actor, kind: str, column_id: str) -> List[kb.KanbanColumn]:
    require_admin(actor)
    current = columns.load_columns(session, kind)
    cols = kb.remove_column(current, column_id)
    if _cards_in_stage(session, kind, column_id):
        raise ConflictError("Existem cards nesta coluna. Mova-os antes de removê-la.")
    columns.save_columns(session, kind, cols)
    logger.info("Board column removed", extra={"ctx": {"board": kind, "column": column_id}})
    return cols


# =========================
# Cards
# =========================
def move_card(
    session: Session,
    actor: Actor,
    kind: str,
    card_id: str,
    stage: str,
    index: Optional[int] = None,
) -> Dict[str, Any]:
    """Move um card de quadro; retorna o card já no formato da UI."""
    require_user(actor)
    if kind == kb.JOBS_BOARD:
        job = jobs.update_job_stage(session, actor, card_id, stage, index)
        return jobs.serialize(session, [job])[0]
    if kind == kb.CANDIDATES_BOARD:
        candidates.update_candidate_stage(session, actor, card_id, stage, index)
        return mapping.candidate_to_dict(candidates.get_candidate(session, actor, card_id), with_notes=False)
    raise NotFoundError(f"Quadro desconhecido: {kind}")

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..data import db, mapping
from ..data.schema import JOB_PRIORITIES, Actor
from ..errors import ConflictError, NotFoundError, ValidationError
from ..monitoring import audit
from ..monitoring.metrics import PIPELINE_MOVES
from ..pipeline import board as kb
from ..utils.text import matches, split_list
from . import columns as cols
from .identity import require_admin, require_user
from .notifications import notify

logger = logging.getLogger(__name__)

OPEN_STAGE = "Vagas Abertas"
DEFAULT_REQUIREMENTS = ["Geral"]
REQUIRED_COLUMNS = ("title", "company_name", "job_stage", "recruiter_id")


# =========================
# Helpers internos
# =========================
def _visible(actor: Actor, job: db.Job) -> bool:
    return actor.is_admin or job.recruiter_id == actor.id


def visible_jobs_query(actor: Actor, trashed: Optional[bool] = False):
    """Admin vê tudo; demais papéis só as vagas em que são recrutadores."""
    q = select(db.Job)
    if not actor.is_admin:
        q = q.where(db.Job.recruiter_id == actor.id)
    if trashed is not None:
        q = q.where(db.Job.trashed == trashed)
    return q.order_by(db.Job.created_at)


def candidate_counts(session: Session, job_ids: List[str]) -> Dict[str, int]:
    if not job_ids:
        return {}
    rows = session.execute(
        select(db.Candidate.job_id, func.count(db.Candidate.id))
        .where(db.Candidate.job_id.in_(job_ids), db.Candidate.trashed.is_(False))
        .group_by(db.Candidate.job_id)
    ).all()
    return {job_id: n for job_id, n in rows}


def serialize(session: Session, jobs: List[db.Job]) -> List[Dict[str, Any]]:
    counts = candidate_counts(session, [j.id for j in jobs])
    return [mapping.job_to_dict(j, counts.get(j.id, 0)) for j in jobs]


def _check_values(values: Dict[str, Any], session: Session) -> None:
    mapping.reject_nulls(values, REQUIRED_COLUMNS)
    for key, label in (("title", "Título"), ("company_name", "Empresa")):
        if key in values and not (values[key] or "").strip():
            raise ValidationError(f"{label} é obrigatório")
    prio = values.get("priority")
    if prio is not None and prio not in JOB_PRIORITIES:
        raise ValidationError(f"Prioridade inválida: {prio}")
    progress = values.get("progress")
    if progress is not None and not (0 <= int(progress) <= 100):
        raise ValidationError("Progresso deve estar entre 0 e 100")
    if "recruiter_id" in values:
        rid = values["recruiter_id"]
        if not rid or session.get(db.Profile, rid) is None:
            raise ValidationError("Por favor, selecione um recrutador responsável.")


def _check_salary(job: db.Job) -> None:
    if job.salary_min is not None and job.salary_max is not None and job.salary_min > job.salary_max:
        raise ValidationError("Salário mínimo maior que o máximo")


# =========================
# Consultas
# =========================
def list_jobs(session: Session, actor: Actor, search: str = "", trashed: bool = False) -> List[db.Job]:
    if trashed:
        require_admin(actor)  # lixeira de vagas é só do admin
    else:
        require_user(actor)
    jobs = session.scalars(visible_jobs_query(actor, trashed)).unique().all()
    return [j for j in jobs if matches(search, j.title, j.company_name)]


def get_job(session: Session, actor: Actor, job_id: str) -> db.Job:
    require_user(actor)
    job = session.get(db.Job, job_id)
    if job is None or not _visible(actor, job):
        raise NotFoundError("Vaga não encontrada")
    return job


# =========================
# Escrita
# =========================
def add_job(session: Session, actor: Actor, data: Dict[str, Any]) -> db.Job:
    """Publica vaga nova; sempre entra em 'Vagas Abertas' com progresso zero."""
    require_user(actor)
    values = mapping.job_to_columns(data)
    values.setdefault("recruiter_id", actor.id)
    _check_values(values, session)

    values["requirements"] = split_list(values.get("requirements")) or list(DEFAULT_REQUIREMENTS)
    values.update(job_stage=OPEN_STAGE, progress=0, trashed=False)

    column = session.scalars(
        select(db.Job).where(db.Job.job_stage == OPEN_STAGE, db.Job.trashed.is_(False))
    ).all()
    job = db.Job(**values)
    job.position = len(column)
    _check_salary(job)
    session.add(job)
    session.flush()

    notify(session, job.recruiter_id, "Nova Vaga Atribuída",
           f"Você é o responsável pela vaga de {job.title}.", "success")
    session.commit()
    logger.info("Job created", extra={"ctx": {"job_id": job.id, "recruiter_id": job.recruiter_id}})
    return job


def update_job(session: Session, actor: Actor, job_id: str, updates: Dict[str, Any]) -> db.Job:
    """Atualização parcial; troca de etapa segue o mesmo caminho do kanban."""
    job = get_job(session, actor, job_id)
    values = mapping.job_to_columns(updates)
    stage = None
    if "job_stage" in values:
        stage = cols.resolve_stage(session, kb.JOBS_BOARD, values.pop("job_stage"))
        if job.trashed:
            raise ValidationError("Vaga na lixeira não pode ser movida")
    if "requirements" in values:
        values["requirements"] = split_list(values["requirements"])
    _check_values(values, session)

    mapping.apply(job, values)
    try:
        _check_salary(job)
    except ValidationError:
        session.rollback()
        raise
    notify(session, actor.id, "Vaga Atualizada", "As alterações foram salvas no banco de dados.", "success")
    session.commit()
    if stage is not None:
        update_job_stage(session, actor, job.id, stage)
    session.refresh(job)
    return job


def update_job_stage(
    session: Session,
    actor: Actor,
    job_id: str,
    stage: str,
    index: Optional[int] = None,
) -> db.Job:
    """Move a vaga no kanban; ``index`` posiciona dentro da coluna de destino."""
    job = get_job(session, actor, job_id)
    if job.trashed:
        raise ValidationError("Vaga na lixeira não pode ser movida")
    target = cols.resolve_stage(session, kb.JOBS_BOARD, stage)

    # índice relativo ao quadro que o usuário enxerga
    cards = session.scalars(visible_jobs_query(actor)).unique().all()
    column, previous = kb.move_card(cards, job.id, target, lambda j: j.job_stage, index)
    job.job_stage = target
    kb.renumber(column)

    if previous != target:
        notify(session, job.recruiter_id, "Atualização de Pipeline",
               f'A vaga {job.title} moveu de "{previous}" para "{target}".', "info")
    session.commit()

    if previous != target:
        audit.record_move(kb.JOBS_BOARD, job.id, previous, target, actor.id)
        try:
            PIPELINE_MOVES.labels(board=kb.JOBS_BOARD, stage=target).inc()
        except Exception:
            pass
    return job


def trash_job(session: Session, actor: Actor, job_id: str) -> db.Job:
    job = get_job(session, actor, job_id)
    job.trashed = True
    notify(session, actor.id, "Vaga movida para a lixeira", "", "info")
    session.commit()
    return job


def restore_job(session: Session, actor: Actor, job_id: str) -> db.Job:
    require_admin(actor)
    job = get_job(session, actor, job_id)
    job.trashed = False
    notify(session, actor.id, "Vaga restaurada", "", "success")
    session.commit()
    return job


def delete_job_permanently(session: Session, actor: Actor, job_id: str) -> None:
    require_admin(actor)
    job = get_job(session, actor, job_id)
    linked = session.scalar(select(func.count(db.Candidate.id)).where(db.Candidate.job_id == job.id))
    if linked:
        raise ConflictError("Pode haver candidatos vinculados a esta vaga.")
    session.delete(job)
    notify(session, actor.id, "Vaga excluída permanentemente", "", "warning")
    session.commit()
    logger.info("Job deleted", extra={"ctx": {"job_id": job_id}})

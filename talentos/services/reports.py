"""
Indicadores do dashboard e relatórios de performance.

Tudo calculado em memória com pandas sobre as vagas visíveis ao usuário
(fora da lixeira) e seus candidatos ativos.
"""
from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..data import db, mapping
from ..data.schema import Actor
from ..pipeline.stages import CLOSED_JOB_STAGES, HIRED_STAGE, INTERVIEW_STAGES, REJECTED_STAGE, SCREENING_STAGE, TEST_STAGE
from .identity import require_user
from .jobs import serialize, visible_jobs_query

CRITICAL = "Crítico"
RECENT_LIMIT = 6
URGENT_LIMIT = 5

JOB_COLUMNS = ["id", "title", "company", "stage", "priority", "daysRemaining"]
CANDIDATE_COLUMNS = ["id", "jobId", "stage"]

FUNNEL_COLUMNS = ["total", "screening", "test", "interview", "hired", "rejected"]


# =========================
# Frames
# =========================
def _jobs(session: Session, actor: Actor) -> List[db.Job]:
    return list(session.scalars(visible_jobs_query(actor, trashed=False)).unique().all())


def jobs_frame(jobs: List[db.Job]) -> pd.DataFrame:
    rows = [
        {
            "id": j.id,
            "title": j.title,
            "company": j.company_name,
            "stage": j.job_stage,
            "priority": j.priority,
            "daysRemaining": mapping.days_remaining(j),
        }
        for j in jobs
    ]
    return pd.DataFrame(rows, columns=JOB_COLUMNS)


def candidates_frame(session: Session, job_ids: List[str]) -> pd.DataFrame:
    if not job_ids:
        return pd.DataFrame(columns=CANDIDATE_COLUMNS)
    rows = session.execute(
        select(db.Candidate.id, db.Candidate.job_id, db.Candidate.candidate_stage)
        .where(db.Candidate.job_id.in_(job_ids), db.Candidate.trashed.is_(False))
    ).all()
    return pd.DataFrame([tuple(r) for r in rows], columns=CANDIDATE_COLUMNS)


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


# =========================
# Dashboard
# =========================
def dashboard(session: Session, actor: Actor) -> Dict[str, Any]:
    require_user(actor)
    jobs = _jobs(session, actor)
    jdf = jobs_frame(jobs)
    cdf = candidates_frame(session, jdf["id"].tolist())

    total_jobs = len(jdf)
    total_candidates = len(cdf)
    active = int((~jdf["stage"].isin(CLOSED_JOB_STAGES)).sum())

    # prazo curto e ainda não entregue, mais urgente primeiro
    days = pd.to_numeric(jdf["daysRemaining"], errors="coerce")
    urgent_mask = days.notna() & (days <= settings.URGENT_DAYS) & (jdf["stage"] != HIRED_STAGE)
    urgent_ids = (
        jdf.assign(_days=days)[urgent_mask]
        .sort_values("_days", kind="stable")
        .head(URGENT_LIMIT)["id"]
        .tolist()
    )
    by_id = {j.id: j for j in jobs}

    return {
        "totalJobs": total_jobs,
        "totalCandidates": total_candidates,
        "activeJobs": active,
        "criticalJobs": int((jdf["priority"] == CRITICAL).sum()),
        "closedJobs": total_jobs - active,
        "candidatesPerJob": round(total_candidates / total_jobs, 1) if total_jobs else 0.0,
        "urgentJobs": serialize(session, [by_id[i] for i in urgent_ids]),
        "stageDistribution": {
            "Vagas Abertas": int((jdf["stage"] == "Vagas Abertas").sum()),
            "Em Triagem": int((jdf["stage"] == "Em Triagem").sum()),
            "Entrevistas": int(jdf["stage"].isin(INTERVIEW_STAGES).sum()),
            "Finalizado": int((jdf["stage"] == HIRED_STAGE).sum()),
        },
        "recentJobs": serialize(session, jobs[:RECENT_LIMIT]),
    }


# =========================
# Relatórios
# =========================
def funnel(jdf: pd.DataFrame, cdf: pd.DataFrame) -> pd.DataFrame:
    """Uma linha por vaga com a contagem de candidatos em cada fase do funil."""
    stage = cdf["stage"]
    flags = pd.DataFrame({
        "jobId": cdf["jobId"],
        "total": 1,
        "screening": (stage == SCREENING_STAGE).astype(int),
        "test": (stage == TEST_STAGE).astype(int),
        "interview": stage.isin(INTERVIEW_STAGES).astype(int),
        "hired": (stage == HIRED_STAGE).astype(int),
        "rejected": (stage == REJECTED_STAGE).astype(int),
    })
    counts = flags.groupby("jobId")[FUNNEL_COLUMNS].sum()

    out = jdf[["id", "title", "company", "stage"]].merge(counts, how="left", left_on="id", right_index=True)
    out[FUNNEL_COLUMNS] = out[FUNNEL_COLUMNS].fillna(0).astype(int)
    return out.reset_index(drop=True)


def report(session: Session, actor: Actor) -> Dict[str, Any]:
    require_user(actor)
    jdf = jobs_frame(_jobs(session, actor))
    cdf = candidates_frame(session, jdf["id"].tolist())

    closed = int((jdf["stage"] == HIRED_STAGE).sum())
    total_candidates = len(cdf)
    hired = int((cdf["stage"] == HIRED_STAGE).sum())
    per_job = funnel(jdf, cdf)

    return {
        "scope": "global" if actor.is_admin else "own",
        "activeJobs": len(jdf) - closed,
        "closedJobs": closed,
        "totalCandidates": total_candidates,
        "inInterview": int(cdf["stage"].isin(INTERVIEW_STAGES).sum()),
        "hired": hired,
        "conversionRate": _rate(hired, total_candidates),
        "jobs": [
            {
                "id": r["id"],
                "title": r["title"],
                "company": r["company"],
                "stage": r["stage"],
                "stats": {k: int(r[k]) for k in FUNNEL_COLUMNS},
            }
            for r in per_job.to_dict(orient="records")
        ],
    }


def report_csv(session: Session, actor: Actor) -> str:
    require_user(actor)
    jdf = jobs_frame(_jobs(session, actor))
    cdf = candidates_frame(session, jdf["id"].tolist())
    return funnel(jdf, cdf).to_csv(index=False)

"""
Remapeamento entre o formato da UI (camelCase, objetos aninhados) e as
colunas do banco (snake_case com nomes próprios: ``company_name``,
``job_stage``, ``candidate_status`` ...).

Atualizações parciais só tocam nas chaves presentes no dicionário recebido.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional

from ..errors import ValidationError
from ..utils.text import initials
from . import db

EXTERNAL_RECRUITER = "Recrutador Externo"

# UI -> coluna
USER_FIELDS = {
    "name": "name",
    "email": "email",
    "role": "user_role",
    "status": "status",
    "avatar": "avatar_url",
    "bio": "bio",
    "preferences": "preferences",
}

CLIENT_FIELDS = {
    "name": "name",
    "industry": "industry",
    "contactName": "contact_name",
    "contactEmail": "contact_email",
    "phone": "phone",
    "status": "status",
    "contractValue": "contract_value",
    "logo": "logo_url",
}

JOB_FIELDS = {
    "title": "title",
    "company": "company_name",
    "stage": "job_stage",
    "priority": "priority",
    "progress": "progress",
    "daysRemaining": "days_remaining",
    "salaryMin": "salary_min",
    "salaryMax": "salary_max",
    "description": "description",
    "requirements": "requirements",
    "deadline": "deadline",
}

CANDIDATE_FIELDS = {
    "jobId": "job_id",
    "name": "name",
    "email": "email",
    "phone": "phone",
    "status": "candidate_status",
    "stage": "candidate_stage",
    "resumeUrl": "resume_url",
    "resumeName": "resume_name",
    "skills": "skills",
    "source": "source",
    "location": "location",
    "currentRole": "current_job_role",
    "seniority": "seniority",
}


def to_columns(updates: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    """Converte chaves da UI em colunas; chaves desconhecidas são ignoradas."""
    return {fields[k]: v for k, v in updates.items() if k in fields}


def job_to_columns(updates: Dict[str, Any]) -> Dict[str, Any]:
    out = to_columns(updates, JOB_FIELDS)
    if isinstance(out.get("deadline"), str):
        out["deadline"] = _parse_date(out["deadline"])
    if "tag" in updates:
        tag = updates["tag"] or {}
        out["tag_label"] = tag.get("label")
        out["tag_color"] = tag.get("color")
    if "recruiter" in updates and updates["recruiter"]:
        out["recruiter_id"] = updates["recruiter"].get("id")
    if "recruiterId" in updates:
        out["recruiter_id"] = updates["recruiterId"]
    return out


def _parse_date(v: str) -> Optional[date]:
    if not v:
        return None
    try:
        return date.fromisoformat(v[:10])
    except ValueError:
        raise ValidationError(f"Data inválida (use AAAA-MM-DD): {v}") from None


def reject_nulls(values: Dict[str, Any], required) -> None:
    """Colunas obrigatórias não aceitam ``null`` vindo de um PATCH."""
    missing = [k for k in required if k in values and values[k] is None]
    if missing:
        raise ValidationError(f"Campo obrigatório não pode ser nulo: {', '.join(missing)}")


def apply(row, values: Dict[str, Any]) -> None:
    for k, v in values.items():
        setattr(row, k, v)


def _iso(v) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return str(v)


# ============ coluna -> UI ============

def user_to_dict(p: db.Profile) -> Dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "email": p.email,
        "role": p.user_role,
        "status": p.status,
        "avatar": p.avatar_url or "",
        "bio": p.bio,
        "preferences": p.preferences,
    }


def client_to_dict(c: db.Client, active_jobs: Optional[int] = None) -> Dict[str, Any]:
    out = {
        "id": c.id,
        "name": c.name,
        "industry": c.industry,
        "contactName": c.contact_name,
        "contactEmail": c.contact_email,
        "phone": c.phone,
        "status": c.status,
        "contractValue": c.contract_value,
        "logo": c.logo_url,
    }
    if active_jobs is not None:
        out["activeJobs"] = active_jobs
    return out


def days_remaining(j: db.Job, today: Optional[date] = None) -> Optional[int]:
    """Prazo derivado do deadline quando existe; senão o valor gravado."""
    if j.deadline is not None:
        today = today or date.today()
        return (j.deadline - today).days
    return j.days_remaining


def job_to_dict(j: db.Job, candidates_count: int = 0) -> Dict[str, Any]:
    rec = j.recruiter
    return {
        "id": j.id,
        "title": j.title,
        "company": j.company_name,
        "stage": j.job_stage,
        "priority": j.priority,
        "tag": {"label": j.tag_label, "color": j.tag_color or ""} if j.tag_label else None,
        "progress": j.progress or 0,
        "daysRemaining": days_remaining(j),
        "recruiter": {
            "id": j.recruiter_id,
            "name": rec.name if rec is not None else EXTERNAL_RECRUITER,
            "avatar": (rec.avatar_url or "") if rec is not None else "",
        },
        "candidatesCount": candidates_count,
        "salaryMin": j.salary_min,
        "salaryMax": j.salary_max,
        "description": j.description,
        "requirements": list(j.requirements or []),
        "deadline": _iso(j.deadline),
        "trashed": bool(j.trashed),
        "position": j.position or 0,
    }


def note_to_dict(n: db.CandidateNote) -> Dict[str, Any]:
    return {
        "id": n.id,
        "content": n.content,
        "authorId": n.author_id,
        "authorName": n.author_name,
        "authorAvatar": n.author_avatar or "",
        "createdAt": _iso(n.created_at),
    }


def candidate_to_dict(c: db.Candidate, with_notes: bool = True) -> Dict[str, Any]:
    out = {
        "id": c.id,
        "jobId": c.job_id,
        "initials": initials(c.name),
        "name": c.name,
        "email": c.email or "",
        "phone": c.phone or "",
        "status": c.candidate_status,
        "stage": c.candidate_stage,
        "badgeText": c.candidate_stage,
        "resumeUrl": c.resume_url,
        "resumeName": c.resume_name,
        "skills": list(c.skills or []),
        "source": c.source,
        "location": c.location,
        "currentRole": c.current_job_role,
        "seniority": c.seniority,
        "trashed": bool(c.trashed),
        "position": c.position or 0,
    }
    if with_notes:
        out["notes"] = [note_to_dict(n) for n in c.notes]
    return out


def notification_to_dict(n: db.Notification) -> Dict[str, Any]:
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message or "",
        "time": _iso(n.created_at),
        "read": bool(n.is_read),
        "type": n.notification_type,
    }


def column_to_dict(c) -> Dict[str, Any]:
    return {"id": c.id, "title": c.title, "color": c.color, "count": c.count, "custom": c.custom}

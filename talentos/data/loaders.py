from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, List
from datetime import datetime
import argparse
import json
import logging

from sqlalchemy.orm import Session

from . import db, mapping
from ..pipeline.stages import normalize_candidate_stage, normalize_job_stage
from ..utils.text import initials, split_list

logger = logging.getLogger(__name__)

SECTIONS = ("users", "clients", "jobs", "candidates")


def _safe_get(d: Dict, path: List[str], default=None):
    cur = d
    for k in path:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _items(data: Dict, key: str) -> List[Dict]:
    # aceita lista ou dict indexado por id (mesmo formato dos exports antigos)
    raw = data.get(key) or []
    if isinstance(raw, dict):
        return [dict(v, id=v.get("id", k)) for k, v in raw.items()]
    return list(raw)


def load_seed(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return {k: _items(data, k) for k in SECTIONS}


def _parse_dt(v):
    if not v:
        return None
    try:
        return datetime.fromisoformat(str(v))
    except ValueError:
        return None


def _exists(session: Session, model, item_id) -> bool:
    return item_id is not None and session.get(model, str(item_id)) is not None


def seed_database(session: Session, data: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
    """
    Grava os registros no formato da UI. Ids já existentes são pulados, então
    rodar duas vezes não duplica nada. Etapas antigas ('Aprovado', 'Vaga
    fechada' ...) são normalizadas; as desconhecidas ficam como vieram.
    """
    counts = {k: 0 for k in SECTIONS}

    for u in data.get("users", []):
        if _exists(session, db.Profile, u.get("id")):
            continue
        values = mapping.to_columns(u, mapping.USER_FIELDS)
        values.setdefault("avatar_url", initials(u.get("name", "")))
        values.setdefault("preferences", {"notifications": True, "newsletter": False})
        row = db.Profile(**values)
        if u.get("id"):
            row.id = str(u["id"])
        session.add(row)
        counts["users"] += 1
    session.flush()

    for c in data.get("clients", []):
        if _exists(session, db.Client, c.get("id")):
            continue
        row = db.Client(**mapping.to_columns(c, mapping.CLIENT_FIELDS))
        if c.get("id"):
            row.id = str(c["id"])
        session.add(row)
        counts["clients"] += 1

    positions: Dict[Any, int] = {}
    for j in data.get("jobs", []):
        if _exists(session, db.Job, j.get("id")):
            continue
        values = mapping.job_to_columns(j)
        values["recruiter_id"] = _safe_get(j, ["recruiter", "id"]) or j.get("recruiterId")
        values["job_stage"] = normalize_job_stage(values.get("job_stage")) or values.get("job_stage") or "Vagas Abertas"
        values["requirements"] = split_list(values.get("requirements"))
        values["trashed"] = bool(j.get("trashed", False))
        row = db.Job(**values)
        row.position = positions.get(("job", row.job_stage), 0)
        positions[("job", row.job_stage)] = row.position + 1
        if j.get("id"):
            row.id = str(j["id"])
        session.add(row)
        counts["jobs"] += 1
    session.flush()

    for c in data.get("candidates", []):
        if _exists(session, db.Candidate, c.get("id")):
            continue
        values = mapping.to_columns(c, mapping.CANDIDATE_FIELDS)
        values["job_id"] = str(values.get("job_id"))
        stage = values.get("candidate_stage")
        values["candidate_stage"] = normalize_candidate_stage(stage) or stage or "Triagem"
        values["skills"] = split_list(values.get("skills"))
        values["trashed"] = bool(c.get("trashed", False))
        row = db.Candidate(**values)
        key = (row.job_id, row.candidate_stage)
        row.position = positions.get(key, 0)
        positions[key] = row.position + 1
        if c.get("id"):
            row.id = str(c["id"])
        for n in c.get("notes") or []:
            row.notes.append(db.CandidateNote(
                id=str(n["id"]) if n.get("id") else db.new_id(),
                content=n.get("content", ""),
                author_id=n.get("authorId"),
                author_name=n.get("authorName", ""),
                author_avatar=n.get("authorAvatar"),
                created_at=_parse_dt(n.get("createdAt")) or datetime.now(),
            ))
        session.add(row)
        counts["candidates"] += 1

    session.commit()
    logger.info("Seed loaded", extra={"ctx": counts})
    return counts


def seed_from_file(path: Path) -> Dict[str, int]:
    session = db.get_session()
    try:
        return seed_database(session, load_seed(path))
    finally:
        session.close()


def main(argv=None):
    from ..config import settings
    from ..monitoring.logs import configure_logging

    ap = argparse.ArgumentParser(description="Carrega dados iniciais no banco.")
    ap.add_argument("--path", default=str(settings.SEED_PATH), help="JSON com users/clients/jobs/candidates")
    ap.add_argument("--database-url", default=None, help="sobrescreve DATABASE_URL")
    args = ap.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)
    db.init_db(args.database_url)
    counts = seed_from_file(Path(args.path))
    print(json.dumps(counts, ensure_ascii=False))
    return counts


if __name__ == "__main__":
    main()

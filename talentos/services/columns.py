"""Persistência das colunas dos quadros kanban."""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..data import db
from ..errors import ValidationError
from ..pipeline import board as kb
from ..pipeline.stages import normalize_candidate_stage, normalize_job_stage


def _check_board(board: str):
    # levanta NotFoundError para quadro desconhecido
    kb.default_columns(board)


def load_columns(session: Session, board: str) -> List[kb.KanbanColumn]:
    """Colunas salvas em ordem; padrões ausentes são acrescentadas e gravadas."""
    _check_board(board)
    rows = session.scalars(
        select(db.BoardColumn).where(db.BoardColumn.board == board).order_by(db.BoardColumn.position)
    ).all()
    saved = [kb.KanbanColumn(r.column_id, r.title, r.color or "", 0, bool(r.custom)) for r in rows]
    merged = kb.merge_missing_columns(saved, kb.default_columns(board))
    if len(merged) != len(saved):
        save_columns(session, board, merged)
    return merged


def save_columns(session: Session, board: str, columns: List[kb.KanbanColumn]) -> None:
    rows = {
        r.column_id: r
        for r in session.scalars(select(db.BoardColumn).where(db.BoardColumn.board == board)).all()
    }
    keep = set()
    for i, c in enumerate(columns):
        keep.add(c.id)
        row = rows.get(c.id)
        if row is None:
            row = db.BoardColumn(board=board, column_id=c.id)
            session.add(row)
        row.title = c.title
        row.color = c.color
        row.position = i
        row.custom = c.custom
    for cid, row in rows.items():
        if cid not in keep:
            session.delete(row)
    session.commit()


def resolve_stage(session: Session, board: str, stage: Optional[str]) -> str:
    """Valida a etapa contra as colunas do quadro (aceita aliases antigos)."""
    columns = load_columns(session, board)
    custom = [c.id for c in columns if c.custom]
    if board == kb.JOBS_BOARD:
        resolved = normalize_job_stage(stage, custom)
    else:
        resolved = normalize_candidate_stage(stage, custom)
    if resolved is None or resolved not in {c.id for c in columns}:
        raise ValidationError(f"Etapa inválida: {stage}")
    return resolved

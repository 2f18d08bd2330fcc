"""
Estado do kanban em memória.

Funções puras sobre listas: agrupar cards por etapa, mover cards entre
colunas (com posição), renomear e reordenar colunas. Quem persiste o
resultado é ``talentos.services.boards``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import NotFoundError, ValidationError

JOBS_BOARD = "jobs"
CANDIDATES_BOARD = "candidates"
BOARDS = (JOBS_BOARD, CANDIDATES_BOARD)


@dataclass
class KanbanColumn:
    id: str
    title: str
    color: str = ""
    count: int = 0
    custom: bool = False


@dataclass
class Board:
    columns: List[KanbanColumn]
    cards: Dict[str, List[Any]] = field(default_factory=dict)
    unassigned: List[Any] = field(default_factory=list)


DEFAULT_JOB_COLUMNS = [
    KanbanColumn("Vagas Abertas", "Vagas Abertas", "bg-blue-400"),
    KanbanColumn("Em Triagem", "Em Triagem", "bg-amber-400"),
    KanbanColumn("Primeira Entrevista", "Primeira Entrevista", "bg-indigo-400"),
    KanbanColumn("Entrevista Gestor", "Entrevista Gestor", "bg-purple-400"),
    KanbanColumn("Vaga paralisada", "Vaga paralisada", "bg-gray-400"),
    KanbanColumn("Substituição", "Substituição", "bg-cyan-400"),
    KanbanColumn("Entregue", "Entregue", "bg-green-400"),
    KanbanColumn("Retrabalho", "Retrabalho", "bg-red-400"),
]

DEFAULT_CANDIDATE_COLUMNS = [
    KanbanColumn("Triagem", "Triagem"),
    KanbanColumn("Testes", "Fase de Testes"),
    KanbanColumn("Primeira Entrevista", "Primeira Entrevista"),
    KanbanColumn("Entrevista Gestor", "Entrevista Gestor"),
    KanbanColumn("Entregue", "Entregue"),
    KanbanColumn("Retrabalho", "Retrabalho"),
    KanbanColumn("Reprovado", "Reprovado"),
]


def default_columns(board: str) -> List[KanbanColumn]:
    if board == JOBS_BOARD:
        return [replace(c) for c in DEFAULT_JOB_COLUMNS]
    if board == CANDIDATES_BOARD:
        return [replace(c) for c in DEFAULT_CANDIDATE_COLUMNS]
    raise NotFoundError(f"Quadro desconhecido: {board}")


# =========================
# Colunas
# =========================
def merge_missing_columns(columns: Sequence[KanbanColumn], defaults: Sequence[KanbanColumn]) -> List[KanbanColumn]:
    """Acrescenta ao final as colunas padrão que ainda não existem (migração de estado salvo)."""
    out = list(columns)
    known = {c.id for c in out}
    for d in defaults:
        if d.id not in known:
            out.append(replace(d))
    return out


def _index_of(columns: Sequence[KanbanColumn], column_id: str) -> int:
    for i, c in enumerate(columns):
        if c.id == column_id:
            return i
    raise NotFoundError(f"Coluna não encontrada: {column_id}")


def rename_column(columns: Sequence[KanbanColumn], column_id: str, title: str) -> List[KanbanColumn]:
    """Título em branco mantém o anterior."""
    idx = _index_of(columns, column_id)
    out = list(columns)
    if title and title.strip():
        out[idx] = replace(out[idx], title=title.strip())
    return out


def reorder_columns(columns: Sequence[KanbanColumn], from_index: int, to_index: int) -> List[KanbanColumn]:
    n = len(columns)
    if not (0 <= from_index < n) or not (0 <= to_index < n):
        raise ValidationError(f"Índice de coluna fora do intervalo (0..{n - 1})")
    out = list(columns)
    col = out.pop(from_index)
    out.insert(to_index, col)
    return out


def add_column(columns: Sequence[KanbanColumn], title: str, color: str = "") -> List[KanbanColumn]:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Título da coluna é obrigatório")
    if any(c.id.lower() == title.lower() for c in columns):
        raise ValidationError(f"Coluna já existe: {title}")
    return list(columns) + [KanbanColumn(id=title, title=title, color=color, custom=True)]


def remove_column(columns: Sequence[KanbanColumn], column_id: str) -> List[KanbanColumn]:
    idx = _index_of(columns, column_id)
    if not columns[idx].custom:
        raise ValidationError("Colunas padrão não podem ser removidas")
    out = list(columns)
    out.pop(idx)
    return out


# =========================
# Cards
# =========================
StageOf = Callable[[Any], Optional[str]]


def _pos(card) -> int:
    return getattr(card, "position", 0) or 0


def group_by_stage(cards: Sequence[Any], columns: Sequence[KanbanColumn], stage_of: StageOf) -> Board:
    """Agrupa cards por coluna (ordem por ``position``) e preenche ``count``."""
    grouped: Dict[str, List[Any]] = {c.id: [] for c in columns}
    unassigned = []
    for card in cards:
        stage = stage_of(card)
        if stage in grouped:
            grouped[stage].append(card)
        else:
            unassigned.append(card)
    for stage in grouped:
        grouped[stage].sort(key=_pos)
    cols = [replace(c, count=len(grouped[c.id])) for c in columns]
    return Board(columns=cols, cards=grouped, unassigned=unassigned)


def move_card(
    cards: Sequence[Any],
    card_id: str,
    target_stage: str,
    stage_of: StageOf,
    index: Optional[int] = None,
) -> Tuple[List[Any], Optional[str]]:
    """
    Calcula a nova ordem da coluna de destino após mover ``card_id``.

    Retorna (cards da coluna destino na ordem final, etapa anterior).
    Sem ``index`` o card vai para o fim da coluna; índice além do fim é
    truncado. As posições devem ser renumeradas 0..n-1 por quem persiste.
    """
    card = None
    for c in cards:
        if str(getattr(c, "id")) == str(card_id):
            card = c
            break
    if card is None:
        raise NotFoundError(f"Card não encontrado: {card_id}")
    previous = stage_of(card)

    column = sorted(
        (c for c in cards if stage_of(c) == target_stage and c is not card),
        key=_pos,
    )
    if index is None or index >= len(column):
        column.append(card)
    else:
        column.insert(max(index, 0), card)
    return column, previous


def renumber(cards: Sequence[Any]) -> None:
    """Grava position = índice na lista (mutação in-place)."""
    for i, c in enumerate(cards):
        c.position = i

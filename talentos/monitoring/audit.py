# talentos/monitoring/audit.py
"""Trilha em CSV das movimentações de cards no kanban.

Mesma filosofia do log de monitoramento: nada aqui pode derrubar a requisição.
"""
import csv
import logging
import os
import time

from ..config import settings

logger = logging.getLogger(__name__)

HEADER = ["ts", "board", "card_id", "from_stage", "to_stage", "actor_id"]


def _log_file() -> str:
    return os.path.join(settings.MONITORING_DIR, "pipeline_moves.csv")


def init_audit():
    """Garante diretório/arquivo da trilha."""
    if not settings.MONITORING_DIR:
        return
    try:
        os.makedirs(settings.MONITORING_DIR, exist_ok=True)
        path = _log_file()
        if not os.path.exists(path):
            with open(path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(HEADER)
    except Exception:
        # não bloqueia o app se não conseguir criar diretório/arquivo
        logger.warning("Audit trail unavailable", exc_info=True)


def record_move(board: str, card_id: str, from_stage, to_stage: str, actor_id: str):
    """Anexa uma linha na trilha; falhas só viram warning no log."""
    if not settings.MONITORING_DIR:
        return
    try:
        path = _log_file()
        new_file = not os.path.exists(path)
        os.makedirs(settings.MONITORING_DIR, exist_ok=True)
        with open(path, "a", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            if new_file:
                w.writerow(HEADER)
            w.writerow([time.time(), board, card_id, from_stage or "", to_stage, actor_id])
    except Exception:
        logger.warning("Audit write failed", exc_info=True, extra={"ctx": {"board": board, "card_id": card_id}})

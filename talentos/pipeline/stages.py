# talentos/pipeline/stages.py
from typing import Optional, Iterable
from unidecode import unidecode

from ..data.schema import CANDIDATE_STAGES, JOB_STAGES

# -------------------------------------------------------------------
# Configuração
# -------------------------------------------------------------------
# Rótulos antigos que ainda aparecem na base (telas diferentes gravaram
# variações de caixa e nomes). A chave já está normalizada.
CANDIDATE_STAGE_ALIASES = {
    "fase de testes": "Testes",
    "entrevista tecnica": "Primeira Entrevista",
    "aprovado": "Entregue",
    "reprovado gestor": "Reprovado",
}

JOB_STAGE_ALIASES = {
    "vaga fechada": "Entregue",
    "triagem": "Em Triagem",
}

# Etapas que contam como "em entrevista" nos relatórios
INTERVIEW_STAGES = ("Primeira Entrevista", "Entrevista Gestor")
HIRED_STAGE = "Entregue"
REJECTED_STAGE = "Reprovado"
SCREENING_STAGE = "Triagem"
TEST_STAGE = "Testes"

# Vagas nestas etapas contam como encerradas no dashboard
CLOSED_JOB_STAGES = ("Entregue", "Retrabalho")


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _norm(s: Optional[str]) -> str:
    """Normaliza string: sem acentos, minúsculas, espaços trimados."""
    return unidecode((s or "").strip().lower())


def _resolve(value: Optional[str], known: Iterable[str], aliases: dict) -> Optional[str]:
    s = _norm(value)
    if not s:
        return None
    for k in known:
        if _norm(k) == s:
            return k
    return aliases.get(s)


# -------------------------------------------------------------------
# API principal
# -------------------------------------------------------------------
def normalize_candidate_stage(stage: Optional[str], extra: Iterable[str] = ()) -> Optional[str]:
    """
    Resolve a etapa do candidato para o id canônico da coluna.
    ``extra`` são colunas personalizadas do quadro. Retorna None se
    não reconhecer.
    """
    return _resolve(stage, tuple(CANDIDATE_STAGES) + tuple(extra), CANDIDATE_STAGE_ALIASES)


def normalize_job_stage(stage: Optional[str], extra: Iterable[str] = ()) -> Optional[str]:
    return _resolve(stage, tuple(JOB_STAGES) + tuple(extra), JOB_STAGE_ALIASES)


def status_for_stage(stage: str) -> Optional[str]:
    """Status implícito ao soltar o card numa coluna (só reprovação por enquanto)."""
    if stage == REJECTED_STAGE:
        return "Rejeitado"
    return None

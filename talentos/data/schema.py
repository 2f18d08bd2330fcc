from dataclasses import dataclass
from typing import Optional

# Papéis
ADMIN = "Admin"
SENIOR_RECRUITER = "Senior Recruiter"
JUNIOR_RECRUITER = "Junior Recruiter"
ROLES = (ADMIN, SENIOR_RECRUITER, JUNIOR_RECRUITER)

USER_STATUSES = ("Ativo", "Inativo")
CLIENT_STATUSES = ("Prospect", "Negociação", "Ativo", "Inativo", "Churn")

JOB_STAGES = (
    "Vagas Abertas",
    "Em Triagem",
    "Primeira Entrevista",
    "Entrevista Gestor",
    "Vaga paralisada",
    "Substituição",
    "Entregue",
    "Retrabalho",
)
JOB_PRIORITIES = ("Alta Prioridade", "Crítico")

CANDIDATE_STATUSES = ("Triagem", "Entrevista", "Aprovado", "Rejeitado")
CANDIDATE_STAGES = (
    "Triagem",
    "Testes",
    "Primeira Entrevista",
    "Entrevista Gestor",
    "Entregue",
    "Retrabalho",
    "Reprovado",
)
SENIORITIES = ("Estagiário", "Júnior", "Pleno", "Sênior", "Especialista", "Gerente")

NOTIFICATION_TYPES = ("success", "warning", "info")

GUEST_ID = "guest"


@dataclass
class Actor:
    """Usuário que faz a requisição (já autenticado pelo gateway)."""
    id: str
    name: str
    email: str
    role: str
    status: str = "Ativo"
    avatar: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    @property
    def is_guest(self) -> bool:
        return self.id == GUEST_ID


GUEST = Actor(id=GUEST_ID, name="Convidado", email="", role=JUNIOR_RECRUITER)

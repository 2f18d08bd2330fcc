"""
Hierarquia de exceções do Talentos.

Os serviços levantam estes erros; a API traduz cada um para o status HTTP
correspondente (ver ``http_status``).
"""


class TalentosError(Exception):
    """Base para todos os erros de domínio."""
    http_status = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(TalentosError):
    """Registro inexistente (ou invisível para o usuário atual)."""
    http_status = 404


class AuthenticationError(TalentosError):
    """Requisição sem identidade (convidado)."""
    http_status = 401


class PermissionDeniedError(TalentosError):
    """Papel do usuário não permite a operação."""
    http_status = 403


class ConflictError(TalentosError):
    """Registro vinculado a outros (equivalente a violação de foreign key)."""
    http_status = 409


class ValidationError(TalentosError):
    """Valor fora do vocabulário ou regra de negócio violada."""
    http_status = 422

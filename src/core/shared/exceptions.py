"""
Exceções de Domínio da Orquestração de Visitas.

Este módulo define exceções específicas do domínio que permitem
comunicar erros de forma clara e tipada entre as camadas.

Hierarquia:
    DomainException (base)
    ├── ValidationError (validação de entrada)
    ├── EntityNotFoundError (entidade não existe)
    ├── BusinessRuleViolationError (regra de negócio violada)
    ├── InvalidTransitionError (máquina de estados rejeitou a transição)
    ├── AuthorizationError (falhas de autorização)
    │   ├── NotAssignedError (engenheiro não atribuído à visita)
    │   └── CodeMismatchError (código lido não confere com o equipamento)
    └── IdentifierExhaustedError (tentativas de número de ticket esgotadas)
"""

from typing import Optional


class DomainException(Exception):
    """
    Exceção base para todos os erros de domínio.

    Todas as exceções específicas do domínio devem herdar desta classe.
    Isso permite capturar qualquer erro de domínio de forma genérica.

    Example:
        try:
            service.execute(input_dto)
        except DomainException as e:
            logger.error(f"Erro de domínio: {e}")
    """

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário (útil para APIs)."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Erro de validação de dados de entrada.

    Example:
        if not solicitacao_id:
            raise ValidationError("Solicitação é obrigatória", field="solicitacao_id")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class EntityNotFoundError(DomainException):
    """
    Entidade não encontrada no repositório.

    Lançada quando uma busca por ID não retorna resultado. Nunca é
    repetida internamente: sempre chega ao chamador.

    Example:
        visita = repo.get_by_id(visita_id)
        if not visita:
            raise EntityNotFoundError(
                f"Visita {visita_id} não encontrada",
                entity_type="Visita",
                entity_id=visita_id,
            )
    """

    def __init__(self, message: str, entity_type: str = None, entity_id: str = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    Example:
        if visita.resultado is not None:
            raise BusinessRuleViolationError(
                "Resultado já registrado para a visita",
                rule="resultado_unico"
            )
    """

    def __init__(self, message: str, rule: str = None):
        self.rule = rule
        super().__init__(message, "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class InvalidTransitionError(DomainException):
    """
    Transição de status rejeitada pela máquina de estados.

    Carrega o estado atual e o solicitado para que o chamador possa
    reportar o problema sem reconsultar a visita. A máquina nunca
    tenta adivinhar a intenção: a transição simplesmente não ocorre.

    Attributes:
        atual: Status atual (valor do enum)
        solicitado: Status solicitado (valor do enum)
        validos: Próximos estados válidos a partir do atual
    """

    def __init__(
        self,
        message: str,
        atual: Optional[str] = None,
        solicitado: Optional[str] = None,
        validos: tuple = (),
    ):
        self.atual = atual
        self.solicitado = solicitado
        self.validos = tuple(validos)
        super().__init__(message, "INVALID_TRANSITION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["atual"] = self.atual
        result["solicitado"] = self.solicitado
        result["validos"] = list(self.validos)
        return result


class AuthorizationError(DomainException):
    """
    Falha de autorização.

    Base para os erros do portão de verificação: o ator existe e a
    visita existe, mas a ação não é permitida para ele.
    """

    def __init__(self, message: str, code: str = "AUTHORIZATION_ERROR"):
        super().__init__(message, code)


class NotAssignedError(AuthorizationError):
    """
    Engenheiro não é o principal nem está entre os atribuídos da visita.

    Attributes:
        visita_id: Visita verificada
        engenheiro_id: Engenheiro que tentou iniciar
    """

    def __init__(self, message: str, visita_id: str = None, engenheiro_id: str = None):
        self.visita_id = visita_id
        self.engenheiro_id = engenheiro_id
        super().__init__(message, "NOT_ASSIGNED")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.visita_id:
            result["visita_id"] = self.visita_id
        if self.engenheiro_id:
            result["engenheiro_id"] = self.engenheiro_id
        return result


class CodeMismatchError(AuthorizationError):
    """
    Código lido no local não confere com o código registrado do equipamento.

    O código registrado não é incluído no payload para não vazar o
    identificador físico do equipamento.
    """

    def __init__(self, message: str, equipamento_id: str = None, codigo_lido: str = None):
        self.equipamento_id = equipamento_id
        self.codigo_lido = codigo_lido
        super().__init__(message, "CODE_MISMATCH")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.equipamento_id:
            result["equipamento_id"] = self.equipamento_id
        return result


class IdentifierExhaustedError(DomainException):
    """
    Gerador de número de ticket esgotou as tentativas.

    Fatal para a operação de criação em curso; o chamador pode
    repetir a operação inteira.
    """

    def __init__(self, message: str, tentativas: int = 0):
        self.tentativas = tentativas
        super().__init__(message, "IDENTIFIER_EXHAUSTED")

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["tentativas"] = self.tentativas
        return result

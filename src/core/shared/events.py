"""
Domain Events - Comunicação Assíncrona entre Domínios.

Este módulo define a infraestrutura base para Domain Events,
permitindo comunicação desacoplada entre o núcleo e os
notificadores externos.

Características:
- Imutáveis após criação (dataclass frozen)
- Auto-geração de ID e timestamp
- Serializáveis para transporte (Celery/JSON)
- Rastreáveis via aggregate_id

Pattern:
    - Eventos são enfileirados no UoW durante a operação
    - Publicados somente após commit bem-sucedido
    - Falhas de publicação são logadas e nunca desfazem a operação
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict
import uuid


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Classe base abstrata para Domain Events.

    Um Domain Event representa algo significativo que aconteceu
    no domínio. É um snapshot: os dados são copiados no momento
    da emissão e não acompanham mudanças posteriores do agregado.

    Attributes:
        event_id: Identificador único do evento
        aggregate_id: ID do agregado que gerou o evento
        occurred_at: Momento em que o evento ocorreu
        version: Versão do schema do evento (para evolução)

    Example:
        @dataclass(frozen=True)
        class VisitaAgendadaEvent(DomainEvent):
            numero_ticket: str = ""

            @property
            def aggregate_type(self) -> str:
                return "Visita"
    """

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=datetime.now)
    version: int = 1

    def __post_init__(self):
        """Validação após inicialização."""
        if not self.aggregate_id:
            raise ValueError("aggregate_id é obrigatório")

    @property
    @abstractmethod
    def aggregate_type(self) -> str:
        """
        Retorna o tipo do agregado que gerou este evento.

        Returns:
            Nome do tipo do agregado (ex: "Visita")
        """
        ...

    @property
    def event_type(self) -> str:
        """Nome da classe do evento."""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializa evento para dicionário.

        Útil para envio via message broker e logging estruturado.

        Returns:
            Dicionário com dados do evento
        """
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        """
        Retorna dados específicos do evento.

        Por padrão serializa todos os campos declarados pela subclasse,
        convertendo enums, datas e tuplas para tipos JSON.
        """
        base_fields = {"event_id", "aggregate_id", "occurred_at", "version"}
        return {
            f.name: _serializar(getattr(self, f.name))
            for f in fields(self)
            if f.name not in base_fields
        }

    def __repr__(self) -> str:
        return (
            f"{self.event_type}("
            f"event_id={self.event_id[:8]}..., "
            f"aggregate_id={self.aggregate_id}, "
            f"occurred_at={self.occurred_at.isoformat()}"
            f")"
        )


def _serializar(valor: Any) -> Any:
    if isinstance(valor, Enum):
        return valor.name
    if isinstance(valor, datetime):
        return valor.isoformat()
    if isinstance(valor, (tuple, list)):
        return [_serializar(v) for v in valor]
    return valor

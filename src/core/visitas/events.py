"""
Domain Events do Domínio de Visitas.

Eventos:
- VisitaAgendadaEvent: Visita entrou em AGENDADA (criação, aprovação
  ou reagendamento)

Uso:
    Eventos são criados nos use cases e publicados através do
    UnitOfWork após commit bem-sucedido.

    with uow:
        repo.save(visita)
        uow.publish_event(VisitaAgendadaEvent.da_visita(visita))
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from src.core.shared.events import DomainEvent

from .entities import VisitaEntity, OrigemVisita


@dataclass(frozen=True, repr=False)
class VisitaAgendadaEvent(DomainEvent):
    """
    Evento: Visita foi agendada.

    Snapshot dos dados da visita no momento da emissão, incluindo o
    conjunto de engenheiros atribuídos naquele instante.

    Handlers típicos:
    - Notificar cada engenheiro atribuído
    - Notificar o cliente

    Attributes:
        numero_ticket: Número legível da visita
        cliente_id: Cliente
        equipamento_id: Equipamento
        data_agendada: Data agendada
        origem: Origem da visita
        engenheiros_ids: Engenheiros atribuídos no momento da emissão
    """

    numero_ticket: str = ""
    cliente_id: str = ""
    equipamento_id: str = ""
    data_agendada: Optional[datetime] = None
    origem: OrigemVisita = OrigemVisita.CENTRAL_ATENDIMENTO
    engenheiros_ids: Tuple[str, ...] = ()

    @property
    def aggregate_type(self) -> str:
        return "Visita"

    @classmethod
    def da_visita(cls, visita: VisitaEntity) -> "VisitaAgendadaEvent":
        """Cria o snapshot a partir do estado atual da visita."""
        return cls(
            aggregate_id=visita.id,
            numero_ticket=visita.numero_ticket,
            cliente_id=visita.cliente_id,
            equipamento_id=visita.equipamento_id,
            data_agendada=visita.data_agendada,
            origem=visita.origem,
            engenheiros_ids=tuple(visita.engenheiros_ids),
        )

"""
Data Transfer Objects (DTOs) do Domínio de Visitas.

Tipos de DTOs:
- Input DTOs: comandos recebidos pelos use cases (imutáveis)
- Output DTOs: dados formatados para a camada chamadora
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .entities import (
    VisitaEntity,
    RegistroAuditoria,
    SolicitacaoManutencaoEntity,
)


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CriarVisitaInputDTO:
    """
    DTO de entrada para criar visita.

    Sem engenheiros_ids, o motor tenta a atribuição automática.

    Attributes:
        solicitacao_id: Solicitação de origem
        equipamento_id: Equipamento a ser atendido
        data_agendada: Data/hora agendada
        origem: Nome do enum OrigemVisita (ex: "CENTRAL_ATENDIMENTO")
        criador_id: Usuário que está criando
        papel_criador: Papel do criador (define o estado inicial)
        engenheiros_ids: Atribuição manual opcional
        pago: Se é visita paga
        custo: Valor
        visita_pai_id: Visita anterior, em visitas de retorno
        observacoes: Texto livre
    """

    solicitacao_id: str
    equipamento_id: str
    data_agendada: datetime
    criador_id: str
    papel_criador: str
    origem: str = "CENTRAL_ATENDIMENTO"
    engenheiros_ids: tuple = field(default_factory=tuple)
    pago: bool = False
    custo: Optional[Decimal] = None
    visita_pai_id: Optional[str] = None
    observacoes: str = ""

    def to_dict(self) -> dict:
        return {
            "solicitacao_id": self.solicitacao_id,
            "equipamento_id": self.equipamento_id,
            "data_agendada": self.data_agendada.isoformat(),
            "criador_id": self.criador_id,
            "papel_criador": self.papel_criador,
            "origem": self.origem,
            "engenheiros_ids": list(self.engenheiros_ids),
            "pago": self.pago,
            "custo": str(self.custo) if self.custo is not None else None,
            "visita_pai_id": self.visita_pai_id,
            "observacoes": self.observacoes,
        }


@dataclass(frozen=True)
class AprovarVisitaInputDTO:
    visita_id: str
    aprovado_por_id: str
    nota: str = ""


@dataclass(frozen=True)
class AtribuirEngenheirosInputDTO:
    """
    DTO de entrada para substituir os engenheiros de uma visita.

    Attributes:
        visita_id: Visita
        engenheiros_ids: Novo conjunto (o primeiro vira principal se não houver)
        atribuido_por_id: Quem está atribuindo
    """

    visita_id: str
    engenheiros_ids: tuple
    atribuido_por_id: str


@dataclass(frozen=True)
class VerificarEIniciarVisitaInputDTO:
    """
    DTO de entrada para verificar o equipamento e iniciar a visita.

    Attributes:
        visita_id: Visita
        engenheiro_id: Engenheiro no local
        codigo_lido: Código escaneado/digitado no equipamento
    """

    visita_id: str
    engenheiro_id: str
    codigo_lido: str


@dataclass(frozen=True)
class RegistrarResultadoInputDTO:
    """
    DTO de entrada para registrar o resultado de uma visita em andamento.

    Attributes:
        visita_id: Visita
        engenheiro_id: Engenheiro que registra
        resultado: Nome do enum ResultadoVisita
        relatorio: Texto livre (motivo quando NAO_CONCLUIDA)
    """

    visita_id: str
    engenheiro_id: str
    resultado: str
    relatorio: str = ""


@dataclass(frozen=True)
class CancelarVisitaInputDTO:
    visita_id: str
    cancelado_por_id: str
    motivo: str = ""


@dataclass(frozen=True)
class ReagendarVisitaInputDTO:
    visita_id: str
    nova_data: datetime
    reagendado_por_id: str
    nota: str = ""


@dataclass(frozen=True)
class CriarSolicitacaoInputDTO:
    """
    DTO de entrada para abrir solicitação de manutenção.

    Attributes:
        cliente_id: Cliente solicitante
        equipamento_id: Equipamento
        descricao: Descrição do problema
    """

    cliente_id: str
    equipamento_id: str
    descricao: str


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class VisitaOutputDTO:
    """
    DTO de saída com dados da visita.

    Enums são expostos pelo valor de exibição (ex: "Agendada").
    """

    id: str
    numero_ticket: str
    solicitacao_id: str
    cliente_id: str
    equipamento_id: str
    data_agendada: Optional[datetime]
    origem: str
    status: str
    engenheiro_principal_id: Optional[str]
    engenheiros_ids: List[str]
    pago: bool
    custo: Optional[Decimal]
    iniciada_em: Optional[datetime]
    concluida_em: Optional[datetime]
    resultado: Optional[str]
    visita_pai_id: Optional[str]

    @classmethod
    def from_entity(cls, entity: VisitaEntity) -> "VisitaOutputDTO":
        return cls(
            id=entity.id,
            numero_ticket=entity.numero_ticket,
            solicitacao_id=entity.solicitacao_id,
            cliente_id=entity.cliente_id,
            equipamento_id=entity.equipamento_id,
            data_agendada=entity.data_agendada,
            origem=entity.origem.value,
            status=entity.status.value,
            engenheiro_principal_id=entity.engenheiro_principal_id,
            engenheiros_ids=list(entity.atribuidos_ids),
            pago=entity.pago,
            custo=entity.custo,
            iniciada_em=entity.iniciada_em,
            concluida_em=entity.concluida_em,
            resultado=entity.resultado.value if entity.resultado else None,
            visita_pai_id=entity.visita_pai_id,
        )

    def to_dict(self) -> dict:
        """Converte para dicionário (serialização JSON)."""
        return {
            "id": self.id,
            "numero_ticket": self.numero_ticket,
            "solicitacao_id": self.solicitacao_id,
            "cliente_id": self.cliente_id,
            "equipamento_id": self.equipamento_id,
            "data_agendada": self.data_agendada.isoformat() if self.data_agendada else None,
            "origem": self.origem,
            "status": self.status,
            "engenheiro_principal_id": self.engenheiro_principal_id,
            "engenheiros_ids": list(self.engenheiros_ids),
            "pago": self.pago,
            "custo": str(self.custo) if self.custo is not None else None,
            "iniciada_em": self.iniciada_em.isoformat() if self.iniciada_em else None,
            "concluida_em": self.concluida_em.isoformat() if self.concluida_em else None,
            "resultado": self.resultado,
            "visita_pai_id": self.visita_pai_id,
        }


@dataclass
class RegistroAuditoriaOutputDTO:
    visita_id: str
    ator_id: str
    status_anterior: Optional[str]
    status_novo: str
    nota: str
    registrado_em: datetime

    @classmethod
    def from_entity(cls, entity: RegistroAuditoria) -> "RegistroAuditoriaOutputDTO":
        return cls(
            visita_id=entity.visita_id,
            ator_id=entity.ator_id,
            status_anterior=entity.status_anterior,
            status_novo=entity.status_novo,
            nota=entity.nota,
            registrado_em=entity.registrado_em,
        )


@dataclass
class SolicitacaoOutputDTO:
    id: str
    cliente_id: str
    equipamento_id: str
    descricao: str
    status: str
    engenheiro_atribuido_id: Optional[str]
    observacoes: str

    @classmethod
    def from_entity(cls, entity: SolicitacaoManutencaoEntity) -> "SolicitacaoOutputDTO":
        return cls(
            id=entity.id,
            cliente_id=entity.cliente_id,
            equipamento_id=entity.equipamento_id,
            descricao=entity.descricao,
            status=entity.status.value,
            engenheiro_atribuido_id=entity.engenheiro_atribuido_id,
            observacoes=entity.observacoes,
        )

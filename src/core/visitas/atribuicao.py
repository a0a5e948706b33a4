"""
Motor de Atribuição de Engenheiros.

Escolhe o engenheiro elegível menos carregado para a localização
de um equipamento.

Composição:
- engenheiros_elegiveis(): filtro geográfico (puro)
- carga_de_trabalho(): contagem de itens ativos (pura)
- selecionar_menos_carregado(): mínimo estrito, empate fica com o primeiro
- MotorAtribuicao: resolve localização e carga via ports

A atribuição automática é best-effort: sem localização ou sem
candidatos, nada é atribuído e a criação da visita segue normalmente.
A atribuição manual (substituir_atribuicoes) não passa pelo filtro.
"""

from typing import Iterable, List, Optional, Protocol, Sequence, Tuple
import logging

from src.core.shared.exceptions import ValidationError

from .entities import (
    VisitaEntity,
    EngenheiroEntity,
    EquipamentoEntity,
)
from .ports import (
    EngenheiroRepository,
    HospitalRepository,
    VisitaRepository,
    SolicitacaoRepository,
)

logger = logging.getLogger(__name__)


class ItemComResponsaveis(Protocol):
    """Visita ou solicitação com engenheiros responsáveis."""

    @property
    def esta_ativa(self) -> bool:
        ...

    @property
    def engenheiros_responsaveis(self) -> Tuple[str, ...]:
        ...


# =============================================================================
# Funções puras
# =============================================================================

def engenheiros_elegiveis(
    localizacao: Optional[str],
    pool: Iterable[EngenheiroEntity],
) -> List[EngenheiroEntity]:
    """
    Filtra engenheiros ativos que cobrem a localização.

    A comparação é por contenção de texto sem diferenciar maiúsculas
    (o nome da área deve conter a localização), tolerando nomes de
    localização digitados livremente.

    Args:
        localizacao: Localização do atendimento
        pool: Engenheiros candidatos, na ordem de consulta

    Returns:
        Engenheiros elegíveis preservando a ordem de entrada
    """
    if not localizacao or not localizacao.strip():
        return []
    return [e for e in pool if e.ativo and e.atende(localizacao)]


def carga_de_trabalho(engenheiro_id: str, itens_ativos: Iterable[ItemComResponsaveis]) -> int:
    """
    Conta itens não terminais sob responsabilidade do engenheiro.

    Args:
        engenheiro_id: Engenheiro avaliado
        itens_ativos: Visitas e/ou solicitações

    Returns:
        Número de itens ativos do engenheiro
    """
    return sum(
        1 for item in itens_ativos
        if item.esta_ativa and engenheiro_id in item.engenheiros_responsaveis
    )


def selecionar_menos_carregado(
    candidatos: Sequence[EngenheiroEntity],
    itens_ativos: Sequence[ItemComResponsaveis],
) -> Optional[EngenheiroEntity]:
    """
    Seleciona o candidato de menor carga.

    Empates ficam com o primeiro candidato na ordem recebida
    (determinístico, nunca aleatório).

    Returns:
        Engenheiro escolhido ou None se não houver candidatos
    """
    escolhido = None
    menor_carga = None

    for candidato in candidatos:
        carga = carga_de_trabalho(candidato.id, itens_ativos)
        if menor_carga is None or carga < menor_carga:
            escolhido = candidato
            menor_carga = carga

    return escolhido


def substituir_atribuicoes(
    visita: VisitaEntity,
    engenheiros_ids: Sequence[str],
    atribuido_por_id: Optional[str] = None,
) -> Tuple[str, ...]:
    """
    Atribuição manual: substitui todo o conjunto de engenheiros da visita.

    Args:
        visita: Visita a alterar
        engenheiros_ids: Novo conjunto (duplicatas são descartadas)
        atribuido_por_id: Quem fez a atribuição

    Returns:
        IDs atribuídos após a substituição

    Raises:
        ValidationError: Se lista vazia ou com IDs vazios
    """
    if not engenheiros_ids:
        raise ValidationError(
            "Informe ao menos um engenheiro",
            field="engenheiros_ids"
        )
    if any(not eid for eid in engenheiros_ids):
        raise ValidationError(
            "ID de engenheiro vazio na lista",
            field="engenheiros_ids"
        )

    visita.substituir_atribuicoes(list(engenheiros_ids), atribuido_por_id)
    return visita.atribuidos_ids


# =============================================================================
# Motor (composição com ports)
# =============================================================================

class MotorAtribuicao:
    """
    Motor de atribuição automática.

    Resolve a localização do equipamento pelo hospital dono e escolhe
    o engenheiro elegível menos carregado. A carga soma visitas e
    solicitações ativas sob responsabilidade de cada candidato.

    Example:
        motor = MotorAtribuicao(engenheiro_repo, hospital_repo,
                                visita_repo, solicitacao_repo)
        engenheiro = motor.sugerir_para_equipamento(equipamento)
        if engenheiro:
            visita.substituir_atribuicoes([engenheiro.id])
    """

    def __init__(
        self,
        engenheiro_repo: EngenheiroRepository,
        hospital_repo: HospitalRepository,
        visita_repo: VisitaRepository,
        solicitacao_repo: SolicitacaoRepository,
    ):
        self.engenheiro_repo = engenheiro_repo
        self.hospital_repo = hospital_repo
        self.visita_repo = visita_repo
        self.solicitacao_repo = solicitacao_repo

    def resolver_localizacao(self, equipamento: EquipamentoEntity) -> Optional[str]:
        """
        Localização de atendimento do equipamento.

        Returns:
            Localização do hospital dono, ou None para equipamentos
            de cliente direto e hospitais sem localização
        """
        if equipamento.pertence_a_cliente or not equipamento.hospital_id:
            return None

        hospital = self.hospital_repo.get_by_id(equipamento.hospital_id)
        if not hospital or not hospital.localizacao:
            return None

        return hospital.localizacao

    def sugerir(self, localizacao: Optional[str]) -> Optional[EngenheiroEntity]:
        """Engenheiro elegível menos carregado para a localização."""
        candidatos = engenheiros_elegiveis(localizacao, self.engenheiro_repo.list_ativos())
        if not candidatos:
            logger.warning(f"Nenhum engenheiro elegível para a localização '{localizacao}'")
            return None

        ids = [c.id for c in candidatos]
        itens_ativos = [
            *self.visita_repo.list_ativas_por_engenheiros(ids),
            *self.solicitacao_repo.list_ativas_por_engenheiros(ids),
        ]

        escolhido = selecionar_menos_carregado(candidatos, itens_ativos)
        logger.info(
            f"Engenheiro {escolhido.id} selecionado para '{localizacao}' "
            f"entre {len(candidatos)} candidato(s)"
        )
        return escolhido

    def sugerir_para_equipamento(self, equipamento: EquipamentoEntity) -> Optional[EngenheiroEntity]:
        """
        Sugere engenheiro para o equipamento (best-effort).

        Returns:
            Engenheiro escolhido ou None (atribuição pulada)
        """
        localizacao = self.resolver_localizacao(equipamento)
        if localizacao is None:
            logger.info(
                f"Atribuição automática pulada para equipamento {equipamento.id}: "
                f"sem localização de atendimento"
            )
            return None

        return self.sugerir(localizacao)

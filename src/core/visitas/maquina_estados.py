"""
Máquina de Estados das Visitas.

Define as transições legais de status e o estado inicial por papel.
Funções puras, sem acesso a persistência, para permitir testes
exaustivos orientados a tabela.

Transições válidas:
    PENDENTE         → AGENDADA (aprovação), CANCELADA
    AGENDADA         → EM_ANDAMENTO (somente com verificação), CANCELADA
    EM_ANDAMENTO     → CONCLUIDA, AGUARDANDO_PECAS, SEGUNDA_VISITA, CANCELADA
    AGUARDANDO_PECAS → AGENDADA (reagendamento)
    SEGUNDA_VISITA   → AGENDADA (reagendamento)

Qualquer outro par (inclusive permanecer no mesmo estado) é rejeitado
com InvalidTransitionError.
"""

from typing import Dict, FrozenSet, Tuple, Union

from src.core.shared.exceptions import InvalidTransitionError

from .entities import VisitaStatus, PapelUsuario


TRANSICOES_VALIDAS: Dict[VisitaStatus, FrozenSet[VisitaStatus]] = {
    VisitaStatus.PENDENTE: frozenset({
        VisitaStatus.AGENDADA,
        VisitaStatus.CANCELADA,
    }),
    VisitaStatus.AGENDADA: frozenset({
        VisitaStatus.EM_ANDAMENTO,
        VisitaStatus.CANCELADA,
    }),
    VisitaStatus.EM_ANDAMENTO: frozenset({
        VisitaStatus.CONCLUIDA,
        VisitaStatus.AGUARDANDO_PECAS,
        VisitaStatus.SEGUNDA_VISITA,
        VisitaStatus.CANCELADA,
    }),
    VisitaStatus.AGUARDANDO_PECAS: frozenset({VisitaStatus.AGENDADA}),
    VisitaStatus.SEGUNDA_VISITA: frozenset({VisitaStatus.AGENDADA}),
    VisitaStatus.REAGENDADA: frozenset(),
    VisitaStatus.CONCLUIDA: frozenset(),
    VisitaStatus.CANCELADA: frozenset(),
}

ESTADOS_TERMINAIS: FrozenSet[VisitaStatus] = frozenset({
    VisitaStatus.CONCLUIDA,
    VisitaStatus.CANCELADA,
})

# Papéis de supervisão criam visitas já agendadas; os demais dependem de aprovação.
ESTADO_INICIAL_POR_PAPEL: Dict[PapelUsuario, VisitaStatus] = {
    PapelUsuario.SUPER_ADMIN: VisitaStatus.AGENDADA,
    PapelUsuario.GERENTE_MANUTENCAO: VisitaStatus.AGENDADA,
    PapelUsuario.SUPORTE_MANUTENCAO: VisitaStatus.AGENDADA,
    PapelUsuario.SUPORTE_VENDAS: VisitaStatus.PENDENTE,
    PapelUsuario.ENGENHEIRO: VisitaStatus.PENDENTE,
    PapelUsuario.CLIENTE: VisitaStatus.PENDENTE,
}

ESTADO_INICIAL_PADRAO = VisitaStatus.PENDENTE


def pode_transicionar(atual: VisitaStatus, solicitado: VisitaStatus) -> bool:
    """Verifica se a transição consta da tabela."""
    return solicitado in TRANSICOES_VALIDAS.get(atual, frozenset())


def proximos_estados_validos(atual: VisitaStatus) -> Tuple[VisitaStatus, ...]:
    """
    Lista os estados alcançáveis a partir do atual.

    Returns:
        Tupla ordenada pela declaração do enum
    """
    destinos = TRANSICOES_VALIDAS.get(atual, frozenset())
    return tuple(status for status in VisitaStatus if status in destinos)


def validar_transicao(atual: VisitaStatus, solicitado: VisitaStatus) -> None:
    """
    Valida uma transição de status.

    Args:
        atual: Status atual da visita
        solicitado: Status desejado

    Raises:
        InvalidTransitionError: Se o par não consta da tabela
    """
    if pode_transicionar(atual, solicitado):
        return

    validos = proximos_estados_validos(atual)
    descricao_validos = ", ".join(s.value for s in validos) or "nenhum"
    raise InvalidTransitionError(
        f"Transição de {atual.value} para {solicitado.value} não é permitida. "
        f"Próximos estados válidos: {descricao_validos}",
        atual=atual.value,
        solicitado=solicitado.value,
        validos=tuple(s.value for s in validos),
    )


def e_estado_terminal(status: VisitaStatus) -> bool:
    return status in ESTADOS_TERMINAIS


def estado_inicial_para_papel(papel: Union[PapelUsuario, str, None]) -> VisitaStatus:
    """
    Estado inicial de uma visita criada por um papel.

    Papéis desconhecidos recebem PENDENTE.

    Args:
        papel: PapelUsuario ou seu nome/valor em texto
    """
    if isinstance(papel, str):
        try:
            papel = PapelUsuario.from_string(papel)
        except ValueError:
            return ESTADO_INICIAL_PADRAO

    return ESTADO_INICIAL_POR_PAPEL.get(papel, ESTADO_INICIAL_PADRAO)

"""
Use Cases (Application Services) do Domínio de Visitas.

Este módulo contém os casos de uso que orquestram máquina de estados,
motor de atribuição, portão de verificação, gerador de tickets e
trilha de auditoria sob controle transacional.

Use Cases implementados:
- CriarVisitaService: Cria visita (estado inicial por papel)
- AprovarVisitaService: PENDENTE → AGENDADA
- AtribuirEngenheirosService: Substitui engenheiros da visita
- VerificarEIniciarVisitaService: Verifica equipamento e inicia
- RegistrarResultadoVisitaService: Aplica resultado à visita e à solicitação
- CancelarVisitaService: Cancela visita
- ReagendarVisitaService: Reagenda visita que aguarda peças/retorno
- ObterVisitaService / ListarAuditoriaVisitaService: Consultas
- CriarSolicitacaoManutencaoService: Abre solicitação com atribuição automática

Fluxo comum:
1. Carregar entidades referenciadas (EntityNotFoundError se ausentes)
2. Validar a transição na máquina de estados
3. Atribuir (motor) ou verificar (portão) quando aplicável
4. Persistir a visita
5. Registrar auditoria na mesma transação
6. Enfileirar evento (publicado após commit)
7. Retornar DTO de saída

Princípios:
- Um Use Case = Uma operação de negócio
- Dependências injetadas (DI)
- Toda a operação dentro de `with self.uow:`
"""

from typing import Callable, List
import logging

from src.core.shared.interfaces import (
    UnitOfWork,
    AuditoriaPort,
    NotificadorPort,
)
from src.core.shared.exceptions import (
    EntityNotFoundError,
    ValidationError,
    BusinessRuleViolationError,
    NotAssignedError,
)

from .ports import (
    VisitaRepository,
    SolicitacaoRepository,
    EquipamentoRepository,
    EngenheiroRepository,
    AuditoriaRepository,
)
from .entities import (
    VisitaEntity,
    VisitaStatus,
    OrigemVisita,
    ResultadoVisita,
    SolicitacaoStatus,
    SolicitacaoManutencaoEntity,
    PapelUsuario,
)
from .dtos import (
    CriarVisitaInputDTO,
    AprovarVisitaInputDTO,
    AtribuirEngenheirosInputDTO,
    VerificarEIniciarVisitaInputDTO,
    RegistrarResultadoInputDTO,
    CancelarVisitaInputDTO,
    ReagendarVisitaInputDTO,
    CriarSolicitacaoInputDTO,
    VisitaOutputDTO,
    RegistroAuditoriaOutputDTO,
    SolicitacaoOutputDTO,
)
from .events import VisitaAgendadaEvent
from .maquina_estados import estado_inicial_para_papel, validar_transicao
from .atribuicao import MotorAtribuicao, substituir_atribuicoes
from .verificacao import VerificadorEquipamento
from .numeracao import GeradorNumeroTicket

logger = logging.getLogger(__name__)

PAPEL_SUPORTE = PapelUsuario.SUPORTE_MANUTENCAO.name

# Resultado → (status da visita, status da solicitação). None: visita não muda.
EFEITOS_DO_RESULTADO = {
    ResultadoVisita.CONCLUIDA: (VisitaStatus.CONCLUIDA, SolicitacaoStatus.CONCLUIDA),
    ResultadoVisita.NECESSITA_SEGUNDA_VISITA: (
        VisitaStatus.SEGUNDA_VISITA,
        SolicitacaoStatus.NECESSITA_SEGUNDA_VISITA,
    ),
    ResultadoVisita.NECESSITA_PECA: (VisitaStatus.AGUARDANDO_PECAS, SolicitacaoStatus.NECESSITA_PECA),
    ResultadoVisita.NAO_CONCLUIDA: (None, SolicitacaoStatus.EM_ESPERA),
}


def _obter_visita(visita_repo: VisitaRepository, visita_id: str) -> VisitaEntity:
    visita = visita_repo.get_by_id(visita_id)
    if not visita:
        raise EntityNotFoundError(
            f"Visita {visita_id} não encontrada",
            entity_type="Visita",
            entity_id=visita_id
        )
    return visita


def _notificar(enviar: Callable, *args, **kwargs) -> None:
    """Envia notificação pós-commit; falhas são logadas e não propagam."""
    try:
        enviar(*args, **kwargs)
    except Exception as e:
        logger.error(f"Falha ao enviar notificação: {e}", exc_info=True)


class CriarVisitaService:
    """
    Use Case: Criar visita a partir de uma solicitação e um equipamento.

    Fluxo:
    1. Validar par solicitação + equipamento
    2. Definir estado inicial pelo papel do criador
    3. Gerar número de ticket
    4. Atribuir engenheiros (manual ou automático)
    5. Persistir, auditar e, se AGENDADA, enfileirar VisitaAgendada

    Example:
        service = CriarVisitaService(visita_repo, solicitacao_repo,
                                     equipamento_repo, engenheiro_repo,
                                     auditoria, motor, gerador, uow)
        output = service.execute(CriarVisitaInputDTO(...))
        print(output.numero_ticket)
    """

    def __init__(
        self,
        visita_repo: VisitaRepository,
        solicitacao_repo: SolicitacaoRepository,
        equipamento_repo: EquipamentoRepository,
        engenheiro_repo: EngenheiroRepository,
        auditoria: AuditoriaPort,
        motor: MotorAtribuicao,
        gerador: GeradorNumeroTicket,
        uow: UnitOfWork,
    ):
        self.visita_repo = visita_repo
        self.solicitacao_repo = solicitacao_repo
        self.equipamento_repo = equipamento_repo
        self.engenheiro_repo = engenheiro_repo
        self.auditoria = auditoria
        self.motor = motor
        self.gerador = gerador
        self.uow = uow

    def execute(self, input_dto: CriarVisitaInputDTO) -> VisitaOutputDTO:
        """
        Executa criação de visita em transação atômica.

        Raises:
            EntityNotFoundError: Solicitação, equipamento ou engenheiro ausente
            ValidationError: Dados inválidos ou equipamento diferente do da solicitação
            IdentifierExhaustedError: Número de ticket não pôde ser gerado
        """
        with self.uow:
            solicitacao = self.solicitacao_repo.get_by_id(input_dto.solicitacao_id)
            if not solicitacao:
                raise EntityNotFoundError(
                    f"Solicitação {input_dto.solicitacao_id} não encontrada",
                    entity_type="Solicitacao",
                    entity_id=input_dto.solicitacao_id
                )

            equipamento = self.equipamento_repo.get_by_id(input_dto.equipamento_id)
            if not equipamento:
                raise EntityNotFoundError(
                    f"Equipamento {input_dto.equipamento_id} não encontrado",
                    entity_type="Equipamento",
                    entity_id=input_dto.equipamento_id
                )

            if solicitacao.equipamento_id != equipamento.id:
                raise ValidationError(
                    "Equipamento não corresponde ao da solicitação",
                    field="equipamento_id"
                )

            try:
                origem = OrigemVisita.from_string(input_dto.origem)
            except ValueError:
                raise ValidationError(
                    f"Origem inválida: {input_dto.origem}",
                    field="origem"
                )

            status_inicial = estado_inicial_para_papel(input_dto.papel_criador)

            visita = VisitaEntity.criar(
                numero_ticket=self.gerador.gerar(),
                solicitacao_id=solicitacao.id,
                cliente_id=solicitacao.cliente_id,
                equipamento_id=equipamento.id,
                data_agendada=input_dto.data_agendada,
                origem=origem,
                status_inicial=status_inicial,
                pago=input_dto.pago,
                custo=input_dto.custo,
                visita_pai_id=input_dto.visita_pai_id,
                observacoes=input_dto.observacoes,
            )

            if input_dto.engenheiros_ids:
                _garantir_engenheiros(self.engenheiro_repo, input_dto.engenheiros_ids)
                substituir_atribuicoes(visita, input_dto.engenheiros_ids, input_dto.criador_id)
            else:
                sugerido = self.motor.sugerir_para_equipamento(equipamento)
                if sugerido:
                    visita.substituir_atribuicoes([sugerido.id])

            self.visita_repo.save(visita)

            self.auditoria.record_transition(
                visita.id,
                None,
                visita.status.value,
                input_dto.criador_id,
                "Visita criada",
            )

            if visita.status == VisitaStatus.AGENDADA:
                self.uow.publish_event(VisitaAgendadaEvent.da_visita(visita))

        logger.info(
            f"Visita {visita.numero_ticket} criada em {visita.status.value} "
            f"por {input_dto.criador_id}"
        )
        return VisitaOutputDTO.from_entity(visita)


class AprovarVisitaService:
    """
    Use Case: Aprovar visita pendente (PENDENTE → AGENDADA).

    Visitas em AGUARDANDO_PECAS/SEGUNDA_VISITA voltam a AGENDADA
    pelo ReagendarVisitaService, não por aprovação.
    """

    def __init__(self, visita_repo: VisitaRepository, auditoria: AuditoriaPort, uow: UnitOfWork):
        self.visita_repo = visita_repo
        self.auditoria = auditoria
        self.uow = uow

    def execute(self, input_dto: AprovarVisitaInputDTO) -> VisitaOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se visita não existe
            InvalidTransitionError: Se a visita não pode ir para AGENDADA
            BusinessRuleViolationError: Se a visita não está pendente
        """
        with self.uow:
            visita = _obter_visita(self.visita_repo, input_dto.visita_id)

            if visita.status != VisitaStatus.PENDENTE:
                validar_transicao(visita.status, VisitaStatus.AGENDADA)
                raise BusinessRuleViolationError(
                    f"Apenas visitas pendentes podem ser aprovadas (atual: {visita.status.value})",
                    rule="aprovacao_somente_pendente"
                )

            anterior = visita.transicionar(VisitaStatus.AGENDADA)
            self.visita_repo.save(visita)

            self.auditoria.record_transition(
                visita.id,
                anterior.value,
                visita.status.value,
                input_dto.aprovado_por_id,
                input_dto.nota or "Visita aprovada",
            )

            self.uow.publish_event(VisitaAgendadaEvent.da_visita(visita))

        return VisitaOutputDTO.from_entity(visita)


class AtribuirEngenheirosService:
    """
    Use Case: Substituir os engenheiros atribuídos a uma visita.

    Remoção e inserção acontecem na mesma transação da atualização
    da visita. Registra auditoria com status inalterado.
    """

    def __init__(
        self,
        visita_repo: VisitaRepository,
        engenheiro_repo: EngenheiroRepository,
        auditoria: AuditoriaPort,
        uow: UnitOfWork,
    ):
        self.visita_repo = visita_repo
        self.engenheiro_repo = engenheiro_repo
        self.auditoria = auditoria
        self.uow = uow

    def execute(self, input_dto: AtribuirEngenheirosInputDTO) -> VisitaOutputDTO:
        """
        Raises:
            EntityNotFoundError: Visita ou engenheiro ausente
            ValidationError: Lista vazia
            BusinessRuleViolationError: Visita encerrada
        """
        with self.uow:
            visita = _obter_visita(self.visita_repo, input_dto.visita_id)

            _garantir_engenheiros(self.engenheiro_repo, input_dto.engenheiros_ids)
            atribuidos = substituir_atribuicoes(
                visita,
                input_dto.engenheiros_ids,
                input_dto.atribuido_por_id,
            )

            self.visita_repo.save(visita)

            self.auditoria.record_transition(
                visita.id,
                visita.status.value,
                visita.status.value,
                input_dto.atribuido_por_id,
                f"Engenheiros atribuídos: {', '.join(atribuidos)}",
            )

        return VisitaOutputDTO.from_entity(visita)


class VerificarEIniciarVisitaService:
    """
    Use Case: Verificar equipamento no local e iniciar a visita.

    Fluxo:
    1. Validar AGENDADA → EM_ANDAMENTO
    2. Portão: engenheiro atribuído e código do equipamento confere
    3. Transicionar (define iniciada_em), persistir, auditar
    """

    def __init__(
        self,
        visita_repo: VisitaRepository,
        verificador: VerificadorEquipamento,
        auditoria: AuditoriaPort,
        uow: UnitOfWork,
    ):
        self.visita_repo = visita_repo
        self.verificador = verificador
        self.auditoria = auditoria
        self.uow = uow

    def execute(self, input_dto: VerificarEIniciarVisitaInputDTO) -> VisitaOutputDTO:
        """
        Raises:
            EntityNotFoundError: Visita ou equipamento ausente
            InvalidTransitionError: Visita fora de AGENDADA
            NotAssignedError: Engenheiro não atribuído
            CodeMismatchError: Código não confere
        """
        with self.uow:
            visita = _obter_visita(self.visita_repo, input_dto.visita_id)

            validar_transicao(visita.status, VisitaStatus.EM_ANDAMENTO)
            self.verificador.verificar(visita, input_dto.engenheiro_id, input_dto.codigo_lido)

            anterior = visita.transicionar(VisitaStatus.EM_ANDAMENTO)
            self.visita_repo.save(visita)

            self.auditoria.record_transition(
                visita.id,
                anterior.value,
                visita.status.value,
                input_dto.engenheiro_id,
                "Equipamento verificado no local",
            )

        logger.info(f"Visita {visita.numero_ticket} iniciada por {input_dto.engenheiro_id}")
        return VisitaOutputDTO.from_entity(visita)


class RegistrarResultadoVisitaService:
    """
    Use Case: Registrar resultado de visita em andamento.

    Efeitos por resultado:
        CONCLUIDA                → visita CONCLUIDA, solicitação CONCLUIDA
        NECESSITA_SEGUNDA_VISITA → visita SEGUNDA_VISITA, solicitação idem
        NECESSITA_PECA           → visita AGUARDANDO_PECAS, solicitação NECESSITA_PECA
        NAO_CONCLUIDA            → visita inalterada, solicitação EM_ESPERA

    O suporte de manutenção é notificado após o commit.
    """

    def __init__(
        self,
        visita_repo: VisitaRepository,
        solicitacao_repo: SolicitacaoRepository,
        auditoria: AuditoriaPort,
        notificador: NotificadorPort,
        uow: UnitOfWork,
    ):
        self.visita_repo = visita_repo
        self.solicitacao_repo = solicitacao_repo
        self.auditoria = auditoria
        self.notificador = notificador
        self.uow = uow

    def execute(self, input_dto: RegistrarResultadoInputDTO) -> VisitaOutputDTO:
        """
        Raises:
            EntityNotFoundError: Visita ou solicitação ausente
            ValidationError: Resultado inválido
            BusinessRuleViolationError: Visita fora de EM_ANDAMENTO
            NotAssignedError: Engenheiro não atribuído
        """
        try:
            resultado = ResultadoVisita.from_string(input_dto.resultado)
        except ValueError:
            raise ValidationError(
                f"Resultado inválido: {input_dto.resultado}",
                field="resultado"
            )

        with self.uow:
            visita = _obter_visita(self.visita_repo, input_dto.visita_id)

            if visita.status != VisitaStatus.EM_ANDAMENTO:
                raise BusinessRuleViolationError(
                    f"Resultado só pode ser registrado em visita em andamento "
                    f"(atual: {visita.status.value})",
                    rule="resultado_requer_visita_em_andamento"
                )

            if not visita.esta_atribuido(input_dto.engenheiro_id):
                raise NotAssignedError(
                    f"Engenheiro {input_dto.engenheiro_id} não está atribuído à visita "
                    f"{visita.numero_ticket}",
                    visita_id=visita.id,
                    engenheiro_id=input_dto.engenheiro_id,
                )

            solicitacao = self.solicitacao_repo.get_by_id(visita.solicitacao_id)
            if not solicitacao:
                raise EntityNotFoundError(
                    f"Solicitação {visita.solicitacao_id} não encontrada",
                    entity_type="Solicitacao",
                    entity_id=visita.solicitacao_id
                )

            novo_status_visita, novo_status_solicitacao = EFEITOS_DO_RESULTADO[resultado]

            visita.registrar_resultado(resultado)
            if novo_status_visita is not None:
                anterior = visita.transicionar(novo_status_visita)
                self.auditoria.record_transition(
                    visita.id,
                    anterior.value,
                    visita.status.value,
                    input_dto.engenheiro_id,
                    input_dto.relatorio or f"Resultado: {resultado.value}",
                )
            self.visita_repo.save(visita)

            nota = None
            if resultado == ResultadoVisita.NAO_CONCLUIDA:
                nota = f"Não foi possível concluir: {input_dto.relatorio or 'sem motivo informado'}"
            solicitacao.alterar_status(novo_status_solicitacao, nota)
            self.solicitacao_repo.save(solicitacao)

        _notificar(
            self.notificador.notify_role,
            PAPEL_SUPORTE,
            f"Resultado da visita {visita.numero_ticket}",
            f"Visita {visita.numero_ticket}: {resultado.value}",
            {
                "visita_id": visita.id,
                "solicitacao_id": solicitacao.id,
                "resultado": resultado.name,
            },
        )
        return VisitaOutputDTO.from_entity(visita)


class CancelarVisitaService:
    """Use Case: Cancelar visita (PENDENTE, AGENDADA ou EM_ANDAMENTO)."""

    def __init__(self, visita_repo: VisitaRepository, auditoria: AuditoriaPort, uow: UnitOfWork):
        self.visita_repo = visita_repo
        self.auditoria = auditoria
        self.uow = uow

    def execute(self, input_dto: CancelarVisitaInputDTO) -> VisitaOutputDTO:
        with self.uow:
            visita = _obter_visita(self.visita_repo, input_dto.visita_id)

            anterior = visita.transicionar(VisitaStatus.CANCELADA)
            self.visita_repo.save(visita)

            self.auditoria.record_transition(
                visita.id,
                anterior.value,
                visita.status.value,
                input_dto.cancelado_por_id,
                input_dto.motivo or "Visita cancelada",
            )

        return VisitaOutputDTO.from_entity(visita)


class ReagendarVisitaService:
    """
    Use Case: Reagendar visita que aguarda peças ou segunda visita.

    Define nova data, volta para AGENDADA e enfileirar VisitaAgendada
    para que engenheiros e cliente sejam avisados da nova data.
    """

    ORIGENS_PERMITIDAS = (VisitaStatus.AGUARDANDO_PECAS, VisitaStatus.SEGUNDA_VISITA)

    def __init__(self, visita_repo: VisitaRepository, auditoria: AuditoriaPort, uow: UnitOfWork):
        self.visita_repo = visita_repo
        self.auditoria = auditoria
        self.uow = uow

    def execute(self, input_dto: ReagendarVisitaInputDTO) -> VisitaOutputDTO:
        """
        Raises:
            EntityNotFoundError: Visita ausente
            InvalidTransitionError: Visita não pode voltar para AGENDADA
            BusinessRuleViolationError: Visita pendente (requer aprovação)
        """
        with self.uow:
            visita = _obter_visita(self.visita_repo, input_dto.visita_id)

            if visita.status not in self.ORIGENS_PERMITIDAS:
                validar_transicao(visita.status, VisitaStatus.AGENDADA)
                raise BusinessRuleViolationError(
                    "Visita pendente deve ser aprovada, não reagendada",
                    rule="reagendamento_requer_peca_ou_retorno"
                )

            visita.reagendar_para(input_dto.nova_data)
            anterior = visita.transicionar(VisitaStatus.AGENDADA)
            self.visita_repo.save(visita)

            self.auditoria.record_transition(
                visita.id,
                anterior.value,
                visita.status.value,
                input_dto.reagendado_por_id,
                input_dto.nota or f"Reagendada para {input_dto.nova_data.isoformat()}",
            )

            self.uow.publish_event(VisitaAgendadaEvent.da_visita(visita))

        return VisitaOutputDTO.from_entity(visita)


class ObterVisitaService:
    """Use Case: Obter visita por ID (somente leitura, sem UoW)."""

    def __init__(self, visita_repo: VisitaRepository):
        self.visita_repo = visita_repo

    def execute(self, visita_id: str) -> VisitaOutputDTO:
        return VisitaOutputDTO.from_entity(_obter_visita(self.visita_repo, visita_id))


class ListarAuditoriaVisitaService:
    """Use Case: Listar trilha de auditoria de uma visita."""

    def __init__(self, visita_repo: VisitaRepository, auditoria_repo: AuditoriaRepository):
        self.visita_repo = visita_repo
        self.auditoria_repo = auditoria_repo

    def execute(self, visita_id: str) -> List[RegistroAuditoriaOutputDTO]:
        _obter_visita(self.visita_repo, visita_id)
        return [
            RegistroAuditoriaOutputDTO.from_entity(r)
            for r in self.auditoria_repo.list_by_visita(visita_id)
        ]


class CriarSolicitacaoManutencaoService:
    """
    Use Case: Abrir solicitação de manutenção.

    Fluxo:
    1. Validar equipamento
    2. Criar solicitação PENDENTE
    3. Tentar atribuição automática (best-effort)
    4. Após commit: notificar suporte e o engenheiro escolhido, ou
       avisar o suporte que a atribuição manual é necessária
    """

    def __init__(
        self,
        solicitacao_repo: SolicitacaoRepository,
        equipamento_repo: EquipamentoRepository,
        motor: MotorAtribuicao,
        notificador: NotificadorPort,
        uow: UnitOfWork,
    ):
        self.solicitacao_repo = solicitacao_repo
        self.equipamento_repo = equipamento_repo
        self.motor = motor
        self.notificador = notificador
        self.uow = uow

    def execute(self, input_dto: CriarSolicitacaoInputDTO) -> SolicitacaoOutputDTO:
        with self.uow:
            equipamento = self.equipamento_repo.get_by_id(input_dto.equipamento_id)
            if not equipamento:
                raise EntityNotFoundError(
                    f"Equipamento {input_dto.equipamento_id} não encontrado",
                    entity_type="Equipamento",
                    entity_id=input_dto.equipamento_id
                )

            solicitacao = SolicitacaoManutencaoEntity.criar(
                cliente_id=input_dto.cliente_id,
                equipamento_id=equipamento.id,
                descricao=input_dto.descricao,
            )

            engenheiro = self.motor.sugerir_para_equipamento(equipamento)
            if engenheiro:
                solicitacao.atribuir_engenheiro(engenheiro.id)

            self.solicitacao_repo.save(solicitacao)

        metadata = {
            "solicitacao_id": solicitacao.id,
            "equipamento_id": equipamento.id,
            "cliente_id": solicitacao.cliente_id,
        }

        _notificar(
            self.notificador.notify_role,
            PAPEL_SUPORTE,
            "Nova solicitação de manutenção",
            f"Solicitação para o equipamento {equipamento.nome or equipamento.id}",
            metadata,
        )

        if engenheiro:
            _notificar(
                self.notificador.notify_user,
                engenheiro.id,
                "Nova solicitação atribuída",
                f"Você foi atribuído à solicitação do equipamento {equipamento.nome or equipamento.id}",
                metadata,
            )
        else:
            _notificar(
                self.notificador.notify_role,
                PAPEL_SUPORTE,
                "Atribuição manual necessária",
                f"Nenhum engenheiro foi atribuído automaticamente à solicitação {solicitacao.id}",
                metadata,
            )

        return SolicitacaoOutputDTO.from_entity(solicitacao)


def _garantir_engenheiros(engenheiro_repo: EngenheiroRepository, engenheiros_ids) -> None:
    """Garante que todos os engenheiros existem."""
    for engenheiro_id in engenheiros_ids:
        if not engenheiro_id:
            continue
        if not engenheiro_repo.get_by_id(engenheiro_id):
            raise EntityNotFoundError(
                f"Engenheiro {engenheiro_id} não encontrado",
                entity_type="Engenheiro",
                entity_id=engenheiro_id
            )

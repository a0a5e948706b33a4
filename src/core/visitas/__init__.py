"""
Domínio de Visitas - Orquestração de Visitas de Manutenção em Campo.

Este módulo contém toda a lógica de negócio relacionada às visitas
de engenheiros a equipamentos, incluindo:
- Entidades (VisitaEntity, SolicitacaoManutencaoEntity, colaboradores)
- Máquina de estados (transições legais, estado inicial por papel)
- Motor de atribuição (engenheiro elegível menos carregado)
- Portão de verificação (código do equipamento no local)
- Gerador de número de ticket (VISIT-YYYYMMDD-NNNN)
- Use Cases, Domain Events, DTOs e Ports

Características do Domínio:
- Transições sempre validadas e auditadas na mesma transação
- Início do atendimento somente após verificação física
- Atribuição automática best-effort, nunca bloqueia a criação
- Eventos publicados somente após commit
"""

from .entities import (
    VisitaEntity,
    VisitaStatus,
    OrigemVisita,
    ResultadoVisita,
    AtribuicaoEntity,
    RegistroAuditoria,
    SolicitacaoManutencaoEntity,
    SolicitacaoStatus,
    EquipamentoEntity,
    HospitalEntity,
    EngenheiroEntity,
    AreaCobertura,
    PapelUsuario,
)
from .events import VisitaAgendadaEvent
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
from .ports import (
    VisitaRepository,
    SolicitacaoRepository,
    EquipamentoRepository,
    HospitalRepository,
    EngenheiroRepository,
    AuditoriaRepository,
    EquipamentoRepositoryComCache,
)
from .maquina_estados import (
    pode_transicionar,
    proximos_estados_validos,
    validar_transicao,
    e_estado_terminal,
    estado_inicial_para_papel,
)
from .atribuicao import MotorAtribuicao, substituir_atribuicoes
from .verificacao import VerificadorEquipamento
from .numeracao import GeradorNumeroTicket
from .use_cases import (
    CriarVisitaService,
    AprovarVisitaService,
    AtribuirEngenheirosService,
    VerificarEIniciarVisitaService,
    RegistrarResultadoVisitaService,
    CancelarVisitaService,
    ReagendarVisitaService,
    ObterVisitaService,
    ListarAuditoriaVisitaService,
    CriarSolicitacaoManutencaoService,
)

__all__ = [
    # Entities
    "VisitaEntity",
    "VisitaStatus",
    "OrigemVisita",
    "ResultadoVisita",
    "AtribuicaoEntity",
    "RegistroAuditoria",
    "SolicitacaoManutencaoEntity",
    "SolicitacaoStatus",
    "EquipamentoEntity",
    "HospitalEntity",
    "EngenheiroEntity",
    "AreaCobertura",
    "PapelUsuario",
    # Events
    "VisitaAgendadaEvent",
    # DTOs
    "CriarVisitaInputDTO",
    "AprovarVisitaInputDTO",
    "AtribuirEngenheirosInputDTO",
    "VerificarEIniciarVisitaInputDTO",
    "RegistrarResultadoInputDTO",
    "CancelarVisitaInputDTO",
    "ReagendarVisitaInputDTO",
    "CriarSolicitacaoInputDTO",
    "VisitaOutputDTO",
    "RegistroAuditoriaOutputDTO",
    "SolicitacaoOutputDTO",
    # Ports
    "VisitaRepository",
    "SolicitacaoRepository",
    "EquipamentoRepository",
    "HospitalRepository",
    "EngenheiroRepository",
    "AuditoriaRepository",
    "EquipamentoRepositoryComCache",
    # Domain services
    "pode_transicionar",
    "proximos_estados_validos",
    "validar_transicao",
    "e_estado_terminal",
    "estado_inicial_para_papel",
    "MotorAtribuicao",
    "substituir_atribuicoes",
    "VerificadorEquipamento",
    "GeradorNumeroTicket",
    # Use Cases
    "CriarVisitaService",
    "AprovarVisitaService",
    "AtribuirEngenheirosService",
    "VerificarEIniciarVisitaService",
    "RegistrarResultadoVisitaService",
    "CancelarVisitaService",
    "ReagendarVisitaService",
    "ObterVisitaService",
    "ListarAuditoriaVisitaService",
    "CriarSolicitacaoManutencaoService",
]

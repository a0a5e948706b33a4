"""
Repositórios Django para persistência de Visitas e colaboradores.

Implementam as interfaces (Ports) definidas em src/core/visitas/ports.py.
São DRIVEN ADAPTERS - acionados pelo Core em resposta a operações.

Responsabilidades:
- Mapear entities para models e vice-versa
- Executar queries no banco via ORM
- Evitar N+1 (prefetch_related de atribuições e áreas)

Transações:
    Repositórios não abrem transações próprias; todas as escritas
    participam da transação do DjangoUnitOfWork corrente.
"""

from typing import Iterable, List, Optional
import logging
import uuid

from django.db.models import Q

from src.core.visitas.entities import (
    VisitaEntity,
    VisitaStatus,
    RegistroAuditoria,
    SolicitacaoManutencaoEntity,
    SolicitacaoStatus,
    EquipamentoEntity,
    HospitalEntity,
    EngenheiroEntity,
)

from .models import (
    VisitaModel,
    AtribuicaoModel,
    RegistroAuditoriaModel,
    SolicitacaoManutencaoModel,
    EquipamentoModel,
    HospitalModel,
    EngenheiroModel,
    AreaCoberturaModel,
)
from .mappers import (
    VisitaMapper,
    RegistroAuditoriaMapper,
    SolicitacaoMapper,
    EquipamentoMapper,
    HospitalMapper,
    EngenheiroMapper,
)

logger = logging.getLogger(__name__)

STATUS_VISITA_TERMINAIS = [VisitaStatus.CONCLUIDA.value, VisitaStatus.CANCELADA.value]
STATUS_SOLICITACAO_TERMINAIS = [SolicitacaoStatus.CONCLUIDA.value, SolicitacaoStatus.CANCELADA.value]


class DjangoVisitaRepository:
    """
    Implementação Django do VisitaRepository.

    save() substitui as atribuições: remove todas as linhas existentes
    e insere o conjunto atual. Dentro do UoW, a remoção e a inserção
    são confirmadas ou desfeitas junto com a visita.

    Example:
        repo = DjangoVisitaRepository()
        with DjangoUnitOfWork():
            repo.save(visita)
        visita = repo.get_by_id(visita.id)
    """

    def __init__(self):
        self._mapper = VisitaMapper()

    def _queryset(self):
        return VisitaModel.objects.prefetch_related('atribuicoes')

    def save(self, visita: VisitaEntity) -> None:
        logger.debug(f"Saving visita: {visita.id}")

        model, _ = VisitaModel.objects.update_or_create(
            id=visita.id,
            defaults=self._mapper.to_model_data(visita),
        )

        AtribuicaoModel.objects.filter(visita=model).delete()
        AtribuicaoModel.objects.bulk_create(self._mapper.to_atribuicao_models(visita))

        logger.info(f"Visita saved: {visita.numero_ticket} [{visita.status.value}]")

    def get_by_id(self, visita_id: str) -> Optional[VisitaEntity]:
        try:
            return self._mapper.to_entity(self._queryset().get(id=visita_id))
        except VisitaModel.DoesNotExist:
            logger.debug(f"Visita not found: {visita_id}")
            return None

    def exists_numero_ticket(self, numero_ticket: str) -> bool:
        return VisitaModel.objects.filter(numero_ticket=numero_ticket).exists()

    def list_ativas_por_engenheiros(self, engenheiros_ids: Iterable[str]) -> List[VisitaEntity]:
        ids = list(engenheiros_ids)
        if not ids:
            return []

        models = (
            self._queryset()
            .exclude(status__in=STATUS_VISITA_TERMINAIS)
            .filter(Q(engenheiro_principal_id__in=ids) | Q(atribuicoes__engenheiro_id__in=ids))
            .distinct()
        )
        return self._mapper.to_entity_list(models)


class DjangoSolicitacaoRepository:
    """Implementação Django do SolicitacaoRepository."""

    def save(self, solicitacao: SolicitacaoManutencaoEntity) -> None:
        SolicitacaoManutencaoModel.objects.update_or_create(
            id=solicitacao.id,
            defaults=SolicitacaoMapper.to_model_data(solicitacao),
        )
        logger.debug(f"Solicitação saved: {solicitacao.id} [{solicitacao.status.value}]")

    def get_by_id(self, solicitacao_id: str) -> Optional[SolicitacaoManutencaoEntity]:
        try:
            return SolicitacaoMapper.to_entity(
                SolicitacaoManutencaoModel.objects.get(id=solicitacao_id)
            )
        except SolicitacaoManutencaoModel.DoesNotExist:
            return None

    def list_ativas_por_engenheiros(
        self,
        engenheiros_ids: Iterable[str],
    ) -> List[SolicitacaoManutencaoEntity]:
        models = (
            SolicitacaoManutencaoModel.objects
            .filter(engenheiro_atribuido_id__in=list(engenheiros_ids))
            .exclude(status__in=STATUS_SOLICITACAO_TERMINAIS)
        )
        return [SolicitacaoMapper.to_entity(m) for m in models]


class DjangoEquipamentoRepository:
    """Implementação Django do EquipamentoRepository."""

    def save(self, equipamento: EquipamentoEntity) -> None:
        EquipamentoModel.objects.update_or_create(
            id=equipamento.id,
            defaults=EquipamentoMapper.to_model_data(equipamento),
        )

    def get_by_id(self, equipamento_id: str) -> Optional[EquipamentoEntity]:
        try:
            return EquipamentoMapper.to_entity(EquipamentoModel.objects.get(id=equipamento_id))
        except EquipamentoModel.DoesNotExist:
            return None

    def get_by_codigo(self, codigo_qr: str) -> Optional[EquipamentoEntity]:
        model = EquipamentoModel.objects.filter(codigo_qr__iexact=codigo_qr).first()
        return EquipamentoMapper.to_entity(model) if model else None


class DjangoHospitalRepository:
    """Implementação Django do HospitalRepository."""

    def save(self, hospital: HospitalEntity) -> None:
        HospitalModel.objects.update_or_create(
            id=hospital.id,
            defaults={'nome': hospital.nome, 'localizacao': hospital.localizacao},
        )

    def get_by_id(self, hospital_id: str) -> Optional[HospitalEntity]:
        try:
            return HospitalMapper.to_entity(HospitalModel.objects.get(id=hospital_id))
        except HospitalModel.DoesNotExist:
            return None


class DjangoEngenheiroRepository:
    """
    Implementação Django do EngenheiroRepository.

    list_ativos() ordena por data de cadastro: a ordem dos candidatos
    decide empates na atribuição automática.
    """

    def _queryset(self):
        return EngenheiroModel.objects.prefetch_related('areas_cobertura')

    def save(self, engenheiro: EngenheiroEntity) -> None:
        model, _ = EngenheiroModel.objects.update_or_create(
            id=engenheiro.id,
            defaults={'nome': engenheiro.nome, 'ativo': engenheiro.ativo},
        )
        AreaCoberturaModel.objects.filter(engenheiro=model).delete()
        AreaCoberturaModel.objects.bulk_create([
            AreaCoberturaModel(engenheiro=model, nome=area.nome, ativa=area.ativa)
            for area in engenheiro.areas_cobertura
        ])

    def get_by_id(self, engenheiro_id: str) -> Optional[EngenheiroEntity]:
        try:
            return EngenheiroMapper.to_entity(self._queryset().get(id=engenheiro_id))
        except EngenheiroModel.DoesNotExist:
            return None

    def list_ativos(self) -> List[EngenheiroEntity]:
        return [
            EngenheiroMapper.to_entity(m)
            for m in self._queryset().filter(ativo=True).order_by('criado_em', 'id')
        ]


class DjangoAuditoriaRepository:
    """
    Trilha de auditoria em banco (AuditoriaPort + consulta).

    Append-only: não há update nem delete.
    """

    def record_transition(
        self,
        visita_id: str,
        anterior: Optional[str],
        novo: str,
        ator_id: str,
        nota: str = "",
    ) -> None:
        RegistroAuditoriaModel.objects.create(
            id=str(uuid.uuid4()),
            visita_id=visita_id,
            ator_id=ator_id,
            status_anterior=anterior,
            status_novo=novo,
            nota=nota or "",
        )
        logger.debug(f"Auditoria: visita {visita_id} {anterior} -> {novo} por {ator_id}")

    def list_by_visita(self, visita_id: str) -> List[RegistroAuditoria]:
        return [
            RegistroAuditoriaMapper.to_entity(m)
            for m in RegistroAuditoriaModel.objects.filter(visita_id=visita_id).order_by('registrado_em')
        ]

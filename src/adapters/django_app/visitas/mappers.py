"""
Mappers para conversão entre Entities (Core) e Models (Django).

Responsabilidades:
- Converter Entity → dados de Model (para persistência)
- Converter Model → Entity (para uso no Core)

Princípios:
- Mappers são stateless
- Não contêm lógica de negócio
- Models carregados do banco não passam pelos factory methods
  (.criar()), pois os dados já foram validados na criação
"""

from typing import Any, Dict, Iterable, List

from src.core.visitas.entities import (
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
)

from .models import (
    VisitaModel,
    AtribuicaoModel,
    RegistroAuditoriaModel,
    SolicitacaoManutencaoModel,
    EquipamentoModel,
    HospitalModel,
    EngenheiroModel,
)


class VisitaMapper:
    """
    Mapper para VisitaEntity ↔ VisitaModel (+ AtribuicaoModel).

    Espera que as atribuições venham pré-carregadas
    (prefetch_related('atribuicoes')) para evitar N+1.
    """

    @staticmethod
    def to_model_data(entity: VisitaEntity) -> Dict[str, Any]:
        """Campos da visita para update_or_create (sem o id)."""
        return {
            'numero_ticket': entity.numero_ticket,
            'solicitacao_id': entity.solicitacao_id,
            'cliente_id': entity.cliente_id,
            'equipamento_id': entity.equipamento_id,
            'data_agendada': entity.data_agendada,
            'origem': entity.origem.value,
            'status': entity.status.value,
            'engenheiro_principal_id': entity.engenheiro_principal_id,
            'pago': entity.pago,
            'custo': entity.custo,
            'iniciada_em': entity.iniciada_em,
            'concluida_em': entity.concluida_em,
            'resultado': entity.resultado.value if entity.resultado else None,
            'visita_pai_id': entity.visita_pai_id,
            'observacoes': entity.observacoes,
            'criado_em': entity.criado_em,
            'atualizado_em': entity.atualizado_em,
        }

    @staticmethod
    def to_atribuicao_models(entity: VisitaEntity) -> List[AtribuicaoModel]:
        return [
            AtribuicaoModel(
                visita_id=entity.id,
                engenheiro_id=a.engenheiro_id,
                atribuido_por_id=a.atribuido_por_id,
                atribuido_em=a.atribuido_em,
                posicao=posicao,
            )
            for posicao, a in enumerate(entity.atribuicoes)
        ]

    @staticmethod
    def to_entity(model: VisitaModel) -> VisitaEntity:
        return VisitaEntity(
            id=model.id,
            numero_ticket=model.numero_ticket,
            solicitacao_id=model.solicitacao_id,
            cliente_id=model.cliente_id,
            equipamento_id=model.equipamento_id,
            data_agendada=model.data_agendada,
            origem=OrigemVisita(model.origem),
            status=VisitaStatus(model.status),
            engenheiro_principal_id=model.engenheiro_principal_id,
            atribuicoes=[
                AtribuicaoEntity(
                    visita_id=model.id,
                    engenheiro_id=a.engenheiro_id,
                    atribuido_por_id=a.atribuido_por_id,
                    atribuido_em=a.atribuido_em,
                )
                for a in model.atribuicoes.all()
            ],
            pago=model.pago,
            custo=model.custo,
            iniciada_em=model.iniciada_em,
            concluida_em=model.concluida_em,
            resultado=ResultadoVisita(model.resultado) if model.resultado else None,
            visita_pai_id=model.visita_pai_id,
            observacoes=model.observacoes,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )

    @staticmethod
    def to_entity_list(models: Iterable[VisitaModel]) -> List[VisitaEntity]:
        return [VisitaMapper.to_entity(model) for model in models]


class RegistroAuditoriaMapper:

    @staticmethod
    def to_entity(model: RegistroAuditoriaModel) -> RegistroAuditoria:
        return RegistroAuditoria(
            id=model.id,
            visita_id=model.visita_id,
            ator_id=model.ator_id,
            status_anterior=model.status_anterior,
            status_novo=model.status_novo,
            nota=model.nota,
            registrado_em=model.registrado_em,
        )


class SolicitacaoMapper:

    @staticmethod
    def to_model_data(entity: SolicitacaoManutencaoEntity) -> Dict[str, Any]:
        return {
            'cliente_id': entity.cliente_id,
            'equipamento_id': entity.equipamento_id,
            'descricao': entity.descricao,
            'status': entity.status.value,
            'engenheiro_atribuido_id': entity.engenheiro_atribuido_id,
            'observacoes': entity.observacoes,
            'criado_em': entity.criado_em,
            'atualizado_em': entity.atualizado_em,
        }

    @staticmethod
    def to_entity(model: SolicitacaoManutencaoModel) -> SolicitacaoManutencaoEntity:
        return SolicitacaoManutencaoEntity(
            id=model.id,
            cliente_id=model.cliente_id,
            equipamento_id=model.equipamento_id,
            descricao=model.descricao,
            status=SolicitacaoStatus(model.status),
            engenheiro_atribuido_id=model.engenheiro_atribuido_id,
            observacoes=model.observacoes,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )


class EquipamentoMapper:

    @staticmethod
    def to_model_data(entity: EquipamentoEntity) -> Dict[str, Any]:
        return {
            'nome': entity.nome,
            'codigo_qr': entity.codigo_qr,
            'numero_serie': entity.numero_serie,
            'hospital_id': entity.hospital_id,
            'cliente_id': entity.cliente_id,
        }

    @staticmethod
    def to_entity(model: EquipamentoModel) -> EquipamentoEntity:
        return EquipamentoEntity(
            id=model.id,
            nome=model.nome,
            codigo_qr=model.codigo_qr,
            numero_serie=model.numero_serie,
            hospital_id=model.hospital_id,
            cliente_id=model.cliente_id,
        )


class HospitalMapper:

    @staticmethod
    def to_entity(model: HospitalModel) -> HospitalEntity:
        return HospitalEntity(id=model.id, nome=model.nome, localizacao=model.localizacao)


class EngenheiroMapper:
    """Espera areas_cobertura pré-carregadas."""

    @staticmethod
    def to_entity(model: EngenheiroModel) -> EngenheiroEntity:
        return EngenheiroEntity(
            id=model.id,
            nome=model.nome,
            ativo=model.ativo,
            areas_cobertura=[
                AreaCobertura(nome=area.nome, ativa=area.ativa)
                for area in model.areas_cobertura.all()
            ],
        )

"""
Testes Unitários para Entidades do Domínio de Visitas.

Coverage:
- VisitaEntity.criar(): validações
- VisitaEntity.substituir_atribuicoes(): duplicatas e principal
- VisitaEntity.esta_atribuido()
- SolicitacaoManutencaoEntity: criação, atribuição e status
- EngenheiroEntity.atende(): contenção sem diferenciar maiúsculas
- Conversão de enums a partir de texto
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.core.visitas.entities import (
    VisitaEntity,
    VisitaStatus,
    OrigemVisita,
    ResultadoVisita,
    SolicitacaoManutencaoEntity,
    SolicitacaoStatus,
    EquipamentoEntity,
    EngenheiroEntity,
    AreaCobertura,
)
from src.core.shared.exceptions import (
    ValidationError,
    BusinessRuleViolationError,
)


DATA = datetime(2025, 1, 20, 14, 0, tzinfo=timezone.utc)


def criar_visita(**overrides):
    dados = dict(
        numero_ticket="VISIT-20250114-1234",
        solicitacao_id="sol-1",
        cliente_id="cli-1",
        equipamento_id="eq-1",
        data_agendada=DATA,
        origem=OrigemVisita.CENTRAL_ATENDIMENTO,
        status_inicial=VisitaStatus.PENDENTE,
    )
    dados.update(overrides)
    return VisitaEntity.criar(**dados)


class TestVisitaEntityCriacao:
    """Testes para criação de VisitaEntity."""

    def test_criar_visita_valida(self):
        """Deve criar visita com dados válidos."""
        visita = criar_visita(custo=Decimal("150.00"), pago=True, observacoes="  portaria B  ")

        assert visita.id is not None
        assert visita.status == VisitaStatus.PENDENTE
        assert visita.custo == Decimal("150.00")
        assert visita.pago is True
        assert visita.observacoes == "portaria B"
        assert visita.iniciada_em is None
        assert visita.concluida_em is None
        assert visita.atribuicoes == []

    @pytest.mark.parametrize("campo", [
        "numero_ticket", "solicitacao_id", "cliente_id", "equipamento_id",
    ])
    def test_campos_obrigatorios(self, campo):
        """Deve rejeitar campo obrigatório vazio."""
        with pytest.raises(ValidationError) as exc_info:
            criar_visita(**{campo: ""})

        assert exc_info.value.field == campo

    def test_data_agendada_obrigatoria(self):
        with pytest.raises(ValidationError) as exc_info:
            criar_visita(data_agendada=None)

        assert exc_info.value.field == "data_agendada"

    def test_custo_negativo(self):
        """Deve rejeitar custo negativo."""
        with pytest.raises(ValidationError) as exc_info:
            criar_visita(custo=Decimal("-1"))

        assert exc_info.value.field == "custo"

    def test_igualdade_por_id(self):
        visita = criar_visita()
        outra = criar_visita()

        assert visita != outra
        assert visita == VisitaEntity(id=visita.id)
        assert len({visita, VisitaEntity(id=visita.id)}) == 1


class TestVisitaEntityAtribuicoes:
    """Testes do conjunto de atribuições."""

    def test_substituir_remove_duplicatas(self):
        """Deve manter cada engenheiro uma única vez, na ordem recebida."""
        visita = criar_visita()

        visita.substituir_atribuicoes(["eng-2", "eng-1", "eng-2"], atribuido_por_id="ger-1")

        assert visita.atribuidos_ids == ("eng-2", "eng-1")
        assert all(a.atribuido_por_id == "ger-1" for a in visita.atribuicoes)
        assert all(a.visita_id == visita.id for a in visita.atribuicoes)

    def test_primeiro_vira_principal_se_vazio(self):
        """Deve definir o primeiro como principal quando não há principal."""
        visita = criar_visita()

        visita.substituir_atribuicoes(["eng-1", "eng-2"])

        assert visita.engenheiro_principal_id == "eng-1"

    def test_principal_existente_mantido(self):
        """Deve manter o principal anterior em substituições."""
        visita = criar_visita()
        visita.substituir_atribuicoes(["eng-1"])

        visita.substituir_atribuicoes(["eng-3"])

        assert visita.engenheiro_principal_id == "eng-1"
        assert visita.atribuidos_ids == ("eng-3",)
        assert visita.engenheiros_ids == ("eng-3", "eng-1")

    def test_substituicao_descarta_conjunto_anterior(self):
        """Deve remover atribuições anteriores por completo."""
        visita = criar_visita()
        visita.substituir_atribuicoes(["eng-1", "eng-2"])

        visita.substituir_atribuicoes(["eng-2", "eng-3"])

        assert visita.atribuidos_ids == ("eng-2", "eng-3")

    def test_visita_encerrada_nao_aceita_atribuicao(self):
        """Deve rejeitar atribuição em visita cancelada."""
        visita = criar_visita()
        visita.transicionar(VisitaStatus.CANCELADA)

        with pytest.raises(BusinessRuleViolationError) as exc_info:
            visita.substituir_atribuicoes(["eng-1"])

        assert exc_info.value.rule == "visita_encerrada_imutavel"

    def test_esta_atribuido(self):
        visita = criar_visita()
        visita.engenheiro_principal_id = "eng-principal"
        visita.substituir_atribuicoes(["eng-1"])

        assert visita.esta_atribuido("eng-principal")
        assert visita.esta_atribuido("eng-1")
        assert not visita.esta_atribuido("eng-2")
        assert not visita.esta_atribuido("")

    def test_reagendar_para(self):
        visita = criar_visita()
        nova = datetime(2025, 2, 1, 8, 0, tzinfo=timezone.utc)

        visita.reagendar_para(nova)

        assert visita.data_agendada == nova
        assert visita.status == VisitaStatus.PENDENTE


class TestSolicitacaoManutencaoEntity:
    """Testes para SolicitacaoManutencaoEntity."""

    def test_criar_solicitacao(self):
        solicitacao = SolicitacaoManutencaoEntity.criar("cli-1", "eq-1", "  Não liga  ")

        assert solicitacao.status == SolicitacaoStatus.PENDENTE
        assert solicitacao.descricao == "Não liga"
        assert solicitacao.engenheiros_responsaveis == ()

    @pytest.mark.parametrize("cliente,equipamento,descricao,campo", [
        ("", "eq-1", "x", "cliente_id"),
        ("cli-1", "", "x", "equipamento_id"),
        ("cli-1", "eq-1", "   ", "descricao"),
    ])
    def test_validacoes(self, cliente, equipamento, descricao, campo):
        with pytest.raises(ValidationError) as exc_info:
            SolicitacaoManutencaoEntity.criar(cliente, equipamento, descricao)

        assert exc_info.value.field == campo

    def test_atribuir_engenheiro(self):
        """Deve marcar solicitação como ATRIBUIDA."""
        solicitacao = SolicitacaoManutencaoEntity.criar("cli-1", "eq-1", "Ruído")

        solicitacao.atribuir_engenheiro("eng-1")

        assert solicitacao.status == SolicitacaoStatus.ATRIBUIDA
        assert solicitacao.engenheiros_responsaveis == ("eng-1",)

    def test_alterar_status_acumula_notas(self):
        """Deve acrescentar notas às observações."""
        solicitacao = SolicitacaoManutencaoEntity.criar("cli-1", "eq-1", "Ruído")

        solicitacao.alterar_status(SolicitacaoStatus.EM_ESPERA, "Cliente ausente")
        solicitacao.alterar_status(SolicitacaoStatus.NECESSITA_PECA, "Placa queimada")

        assert solicitacao.status == SolicitacaoStatus.NECESSITA_PECA
        assert solicitacao.observacoes == "Cliente ausente\nPlaca queimada"

    def test_solicitacao_encerrada_imutavel(self):
        """Deve rejeitar mudança de status após conclusão."""
        solicitacao = SolicitacaoManutencaoEntity.criar("cli-1", "eq-1", "Ruído")
        solicitacao.alterar_status(SolicitacaoStatus.CONCLUIDA)

        with pytest.raises(BusinessRuleViolationError):
            solicitacao.alterar_status(SolicitacaoStatus.EM_ESPERA)

        assert not solicitacao.esta_ativa


class TestColaboradores:

    def test_engenheiro_atende_por_contencao(self):
        """Deve comparar sem diferenciar maiúsculas, área contendo a localização."""
        engenheiro = EngenheiroEntity(
            nome="Ana",
            areas_cobertura=[AreaCobertura("Zona Norte - São Paulo")],
        )

        assert engenheiro.atende("são paulo")
        assert engenheiro.atende("ZONA NORTE")
        assert not engenheiro.atende("Campinas")
        assert not engenheiro.atende("")

    def test_area_inativa_ignorada(self):
        engenheiro = EngenheiroEntity(
            areas_cobertura=[AreaCobertura("Campinas", ativa=False)],
        )

        assert not engenheiro.atende("Campinas")

    def test_equipamento_de_cliente(self):
        assert EquipamentoEntity(cliente_id="cli-1").pertence_a_cliente
        assert not EquipamentoEntity(hospital_id="h-1", cliente_id="cli-1").pertence_a_cliente


class TestEnums:

    @pytest.mark.parametrize("texto,esperado", [
        ("EM_ANDAMENTO", VisitaStatus.EM_ANDAMENTO),
        ("em andamento", VisitaStatus.EM_ANDAMENTO),
        ("Aguardando Peças", VisitaStatus.AGUARDANDO_PECAS),
    ])
    def test_status_from_string(self, texto, esperado):
        assert VisitaStatus.from_string(texto) == esperado

    def test_resultado_from_string(self):
        assert ResultadoVisita.from_string("necessita_peca") == ResultadoVisita.NECESSITA_PECA

    def test_valor_invalido(self):
        with pytest.raises(ValueError):
            OrigemVisita.from_string("FAX")

"""
Testes do Motor de Atribuição.

Coverage:
- engenheiros_elegiveis(): filtro por localização e atividade
- carga_de_trabalho() / selecionar_menos_carregado(): empate no primeiro
- substituir_atribuicoes(): validações da atribuição manual
- MotorAtribuicao: resolução de localização e carga via repositórios
"""

from datetime import datetime, timezone

import pytest

from src.core.visitas.atribuicao import (
    engenheiros_elegiveis,
    carga_de_trabalho,
    selecionar_menos_carregado,
    substituir_atribuicoes,
    MotorAtribuicao,
)
from src.core.visitas.entities import (
    VisitaEntity,
    VisitaStatus,
    SolicitacaoManutencaoEntity,
    SolicitacaoStatus,
    EquipamentoEntity,
    HospitalEntity,
    EngenheiroEntity,
    AreaCobertura,
)
from src.core.visitas.ports import (
    InMemoryEngenheiroRepository,
    InMemoryHospitalRepository,
    InMemoryVisitaRepository,
    InMemorySolicitacaoRepository,
)
from src.core.shared.exceptions import ValidationError


def engenheiro(eid, *areas, ativo=True):
    return EngenheiroEntity(
        id=eid,
        nome=eid,
        ativo=ativo,
        areas_cobertura=[AreaCobertura(a) for a in areas],
    )


def visita_de(*engenheiros_ids, status=VisitaStatus.AGENDADA):
    visita = VisitaEntity(
        numero_ticket=f"VISIT-20250114-{1000 + len(engenheiros_ids)}",
        solicitacao_id="sol-1",
        cliente_id="cli-1",
        equipamento_id="eq-1",
        status=status,
    )
    if visita.esta_ativa:
        visita.substituir_atribuicoes(list(engenheiros_ids))
    return visita


def solicitacao_de(engenheiro_id, status=SolicitacaoStatus.ATRIBUIDA):
    return SolicitacaoManutencaoEntity(
        cliente_id="cli-1",
        equipamento_id="eq-1",
        descricao="x",
        engenheiro_atribuido_id=engenheiro_id,
        status=status,
    )


class TestEngenheirosElegiveis:

    def test_filtra_por_area(self):
        """Deve manter apenas quem cobre a localização, na ordem de entrada."""
        pool = [
            engenheiro("a", "Campinas"),
            engenheiro("b", "São Paulo - Centro"),
            engenheiro("c", "Grande São Paulo"),
        ]

        elegiveis = engenheiros_elegiveis("são paulo", pool)

        assert [e.id for e in elegiveis] == ["b", "c"]

    def test_ignora_inativos(self):
        pool = [engenheiro("a", "Campinas", ativo=False), engenheiro("b", "Campinas")]

        assert [e.id for e in engenheiros_elegiveis("Campinas", pool)] == ["b"]

    @pytest.mark.parametrize("localizacao", [None, "", "   "])
    def test_sem_localizacao(self, localizacao):
        """Deve retornar vazio sem localização."""
        assert engenheiros_elegiveis(localizacao, [engenheiro("a", "Campinas")]) == []


class TestSelecaoMenosCarregado:

    def test_carga_conta_apenas_itens_ativos(self):
        itens = [
            visita_de("a"),
            visita_de("a", "b"),
            solicitacao_de("a"),
            solicitacao_de("a", status=SolicitacaoStatus.CONCLUIDA),
        ]
        concluida = visita_de(status=VisitaStatus.CONCLUIDA)
        concluida.engenheiro_principal_id = "a"
        itens.append(concluida)

        assert carga_de_trabalho("a", itens) == 3
        assert carga_de_trabalho("b", itens) == 1
        assert carga_de_trabalho("c", itens) == 0

    def test_escolhe_menor_carga(self):
        """Deve escolher o candidato com menos itens ativos."""
        candidatos = [engenheiro("a"), engenheiro("b"), engenheiro("c")]
        itens = [visita_de("a"), visita_de("a"), visita_de("b")]

        assert selecionar_menos_carregado(candidatos, itens).id == "c"

    def test_empate_fica_com_primeiro(self):
        """Deve desempatar pela ordem dos candidatos."""
        candidatos = [engenheiro("b"), engenheiro("a")]
        itens = [visita_de("a"), visita_de("b")]

        assert selecionar_menos_carregado(candidatos, itens).id == "b"

    def test_sem_candidatos(self):
        assert selecionar_menos_carregado([], []) is None


class TestAtribuicaoManual:

    def test_substitui_sem_duplicatas(self):
        visita = visita_de("a")

        atribuidos = substituir_atribuicoes(visita, ["b", "c", "b"], "ger-1")

        assert atribuidos == ("b", "c")

    def test_lista_vazia(self):
        """Deve rejeitar lista vazia."""
        with pytest.raises(ValidationError) as exc_info:
            substituir_atribuicoes(visita_de(), [])

        assert exc_info.value.field == "engenheiros_ids"

    def test_id_vazio(self):
        with pytest.raises(ValidationError):
            substituir_atribuicoes(visita_de(), ["a", ""])

    def test_manual_ignora_area(self):
        """Deve aceitar engenheiro fora da área na atribuição manual."""
        visita = visita_de()

        substituir_atribuicoes(visita, ["fora-da-area"])

        assert visita.engenheiro_principal_id == "fora-da-area"


class TestMotorAtribuicao:

    @pytest.fixture
    def repos(self):
        return {
            "engenheiro": InMemoryEngenheiroRepository(),
            "hospital": InMemoryHospitalRepository(),
            "visita": InMemoryVisitaRepository(),
            "solicitacao": InMemorySolicitacaoRepository(),
        }

    @pytest.fixture
    def motor(self, repos):
        return MotorAtribuicao(
            repos["engenheiro"],
            repos["hospital"],
            repos["visita"],
            repos["solicitacao"],
        )

    def test_sugere_menos_carregado_do_hospital(self, repos, motor):
        """Deve combinar visitas e solicitações ativas na carga."""
        repos["hospital"].save(HospitalEntity(id="h-1", nome="HC", localizacao="Campinas"))
        repos["engenheiro"].save(engenheiro("a", "Campinas"))
        repos["engenheiro"].save(engenheiro("b", "Região de Campinas"))
        repos["engenheiro"].save(engenheiro("c", "Santos"))
        repos["visita"].save(visita_de("a"))
        repos["solicitacao"].save(solicitacao_de("b"))
        repos["solicitacao"].save(solicitacao_de("b"))

        escolhido = motor.sugerir_para_equipamento(EquipamentoEntity(id="eq-1", hospital_id="h-1"))

        assert escolhido.id == "a"

    def test_equipamento_de_cliente_pula(self, repos, motor):
        """Deve pular atribuição para equipamento sem hospital."""
        repos["engenheiro"].save(engenheiro("a", "Campinas"))

        assert motor.sugerir_para_equipamento(EquipamentoEntity(cliente_id="cli-1")) is None

    def test_hospital_sem_localizacao_pula(self, repos, motor):
        repos["hospital"].save(HospitalEntity(id="h-1", nome="HC", localizacao=None))
        repos["engenheiro"].save(engenheiro("a", "Campinas"))

        assert motor.sugerir_para_equipamento(EquipamentoEntity(hospital_id="h-1")) is None

    def test_sem_elegiveis(self, repos, motor):
        repos["hospital"].save(HospitalEntity(id="h-1", nome="HC", localizacao="Manaus"))
        repos["engenheiro"].save(engenheiro("a", "Campinas"))

        assert motor.sugerir_para_equipamento(EquipamentoEntity(hospital_id="h-1")) is None

    def test_empate_pela_ordem_de_cadastro(self, repos, motor):
        repos["hospital"].save(HospitalEntity(id="h-1", nome="HC", localizacao="Campinas"))
        repos["engenheiro"].save(engenheiro("primeiro", "Campinas"))
        repos["engenheiro"].save(engenheiro("segundo", "Campinas"))

        assert motor.sugerir("Campinas").id == "primeiro"

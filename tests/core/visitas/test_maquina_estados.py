"""
Testes da Máquina de Estados das Visitas.

Percorre todos os pares (atual, solicitado) e compara com a tabela
de transições legais.

Coverage:
- pode_transicionar / validar_transicao: todos os pares
- proximos_estados_validos: mensagens de erro
- estado_inicial_para_papel: papéis de supervisão e demais
- VisitaEntity.transicionar(): timestamps
"""

import itertools
from datetime import datetime, timezone

import pytest

from src.core.visitas.entities import VisitaEntity, VisitaStatus, PapelUsuario
from src.core.visitas.maquina_estados import (
    pode_transicionar,
    proximos_estados_validos,
    validar_transicao,
    e_estado_terminal,
    estado_inicial_para_papel,
)
from src.core.shared.exceptions import InvalidTransitionError


S = VisitaStatus

LEGAIS = {
    (S.PENDENTE, S.AGENDADA),
    (S.PENDENTE, S.CANCELADA),
    (S.AGENDADA, S.EM_ANDAMENTO),
    (S.AGENDADA, S.CANCELADA),
    (S.EM_ANDAMENTO, S.CONCLUIDA),
    (S.EM_ANDAMENTO, S.AGUARDANDO_PECAS),
    (S.EM_ANDAMENTO, S.SEGUNDA_VISITA),
    (S.EM_ANDAMENTO, S.CANCELADA),
    (S.AGUARDANDO_PECAS, S.AGENDADA),
    (S.SEGUNDA_VISITA, S.AGENDADA),
}

TODOS_OS_PARES = list(itertools.product(VisitaStatus, repeat=2))


class TestTabelaDeTransicoes:
    """Tabela completa de transições."""

    @pytest.mark.parametrize("atual,solicitado", TODOS_OS_PARES)
    def test_par_segue_tabela(self, atual, solicitado):
        """Deve aceitar exatamente os pares da tabela."""
        assert pode_transicionar(atual, solicitado) == ((atual, solicitado) in LEGAIS)

    @pytest.mark.parametrize("atual,solicitado", sorted(LEGAIS, key=lambda p: (p[0].name, p[1].name)))
    def test_validar_transicao_legal_nao_lanca(self, atual, solicitado):
        """Deve validar transições legais sem erro."""
        validar_transicao(atual, solicitado)

    @pytest.mark.parametrize(
        "atual,solicitado",
        [p for p in TODOS_OS_PARES if p not in LEGAIS],
    )
    def test_validar_transicao_ilegal_lanca(self, atual, solicitado):
        """Deve rejeitar transições fora da tabela."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            validar_transicao(atual, solicitado)

        erro = exc_info.value
        assert erro.atual == atual.value
        assert erro.solicitado == solicitado.value
        assert erro.code == "INVALID_TRANSITION"

    @pytest.mark.parametrize("status", list(VisitaStatus))
    def test_permanecer_no_mesmo_estado_invalido(self, status):
        """Deve rejeitar transição para o próprio estado."""
        assert pode_transicionar(status, status) is False


class TestProximosEstados:

    def test_erro_lista_proximos_estados(self):
        """Deve listar os estados válidos na mensagem de erro."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            validar_transicao(S.PENDENTE, S.EM_ANDAMENTO)

        erro = exc_info.value
        assert erro.validos == ("Agendada", "Cancelada")
        assert "Agendada" in str(erro)
        assert "Cancelada" in str(erro)

    def test_proximos_de_em_andamento(self):
        assert proximos_estados_validos(S.EM_ANDAMENTO) == (
            S.AGUARDANDO_PECAS,
            S.SEGUNDA_VISITA,
            S.CONCLUIDA,
            S.CANCELADA,
        )

    @pytest.mark.parametrize("status", [S.CONCLUIDA, S.CANCELADA, S.REAGENDADA])
    def test_estados_sem_saida(self, status):
        """Deve não ter próximos estados."""
        assert proximos_estados_validos(status) == ()

    def test_estados_terminais(self):
        assert e_estado_terminal(S.CONCLUIDA)
        assert e_estado_terminal(S.CANCELADA)
        assert not e_estado_terminal(S.REAGENDADA)
        assert not e_estado_terminal(S.AGUARDANDO_PECAS)


class TestEstadoInicialPorPapel:

    @pytest.mark.parametrize("papel", [
        PapelUsuario.SUPER_ADMIN,
        PapelUsuario.GERENTE_MANUTENCAO,
        PapelUsuario.SUPORTE_MANUTENCAO,
    ])
    def test_papeis_de_supervisao_criam_agendada(self, papel):
        """Deve criar visitas já agendadas para papéis de supervisão."""
        assert estado_inicial_para_papel(papel) == S.AGENDADA

    @pytest.mark.parametrize("papel", [
        PapelUsuario.SUPORTE_VENDAS,
        PapelUsuario.ENGENHEIRO,
        PapelUsuario.CLIENTE,
    ])
    def test_demais_papeis_criam_pendente(self, papel):
        """Deve exigir aprovação para os demais papéis."""
        assert estado_inicial_para_papel(papel) == S.PENDENTE

    def test_papel_em_texto(self):
        assert estado_inicial_para_papel("GERENTE_MANUTENCAO") == S.AGENDADA
        assert estado_inicial_para_papel("Suporte de Vendas") == S.PENDENTE

    @pytest.mark.parametrize("papel", ["DESCONHECIDO", "", None])
    def test_papel_desconhecido_cria_pendente(self, papel):
        """Deve cair em PENDENTE para papéis desconhecidos."""
        assert estado_inicial_para_papel(papel) == S.PENDENTE


class TestTransicionarEntidade:
    """Efeitos colaterais de VisitaEntity.transicionar()."""

    def _visita(self, status):
        return VisitaEntity(
            numero_ticket="VISIT-20250114-1234",
            solicitacao_id="sol-1",
            cliente_id="cli-1",
            equipamento_id="eq-1",
            status=status,
        )

    def test_em_andamento_define_iniciada_em(self):
        """Deve definir iniciada_em ao iniciar."""
        visita = self._visita(S.AGENDADA)
        momento = datetime(2025, 1, 14, 9, 30, tzinfo=timezone.utc)

        anterior = visita.transicionar(S.EM_ANDAMENTO, momento)

        assert anterior == S.AGENDADA
        assert visita.iniciada_em == momento
        assert visita.concluida_em is None

    def test_iniciada_em_mantida_apos_conclusao(self):
        """Deve manter iniciada_em e definir concluida_em ao concluir."""
        visita = self._visita(S.AGENDADA)
        inicio = datetime(2025, 1, 14, 9, 30, tzinfo=timezone.utc)
        fim = datetime(2025, 1, 14, 11, 0, tzinfo=timezone.utc)

        visita.transicionar(S.EM_ANDAMENTO, inicio)
        visita.transicionar(S.CONCLUIDA, fim)

        assert visita.iniciada_em == inicio
        assert visita.concluida_em == fim

    def test_concluida_em_somente_em_concluida(self):
        """Deve deixar concluida_em vazio fora de CONCLUIDA."""
        visita = self._visita(S.EM_ANDAMENTO)
        visita.transicionar(S.AGUARDANDO_PECAS)

        assert visita.concluida_em is None

    def test_transicao_invalida_nao_altera(self):
        """Deve manter estado após transição rejeitada."""
        visita = self._visita(S.PENDENTE)

        with pytest.raises(InvalidTransitionError):
            visita.transicionar(S.CONCLUIDA)

        assert visita.status == S.PENDENTE
        assert visita.iniciada_em is None

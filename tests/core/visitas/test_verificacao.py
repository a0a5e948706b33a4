"""
Testes do Portão de Verificação de Equipamento.
"""

import pytest

from src.core.visitas.entities import VisitaEntity, VisitaStatus, EquipamentoEntity
from src.core.visitas.ports import InMemoryEquipamentoRepository
from src.core.visitas.verificacao import VerificadorEquipamento, codigos_conferem
from src.core.shared.exceptions import (
    AuthorizationError,
    CodeMismatchError,
    EntityNotFoundError,
    NotAssignedError,
)


@pytest.fixture
def equipamento_repo():
    repo = InMemoryEquipamentoRepository()
    repo.save(EquipamentoEntity(id="eq-1", nome="Monitor", codigo_qr="ABC123", hospital_id="h-1"))
    return repo


@pytest.fixture
def verificador(equipamento_repo):
    return VerificadorEquipamento(equipamento_repo)


@pytest.fixture
def visita():
    visita = VisitaEntity(
        numero_ticket="VISIT-20250114-1234",
        solicitacao_id="sol-1",
        cliente_id="cli-1",
        equipamento_id="eq-1",
        status=VisitaStatus.AGENDADA,
    )
    visita.substituir_atribuicoes(["eng-1"])
    return visita


class TestVerificadorEquipamento:

    def test_codigo_confere_sem_diferenciar_maiusculas(self, verificador, visita):
        """Deve aceitar abc123 para o código registrado ABC123."""
        equipamento = verificador.verificar(visita, "eng-1", "abc123")

        assert equipamento.id == "eq-1"

    def test_codigo_diferente(self, verificador, visita):
        """Deve rejeitar código que não confere."""
        with pytest.raises(CodeMismatchError) as exc_info:
            verificador.verificar(visita, "eng-1", "ABC124")

        erro = exc_info.value
        assert isinstance(erro, AuthorizationError)
        assert erro.code == "CODE_MISMATCH"
        assert "ABC123" not in str(erro.to_dict())

    def test_engenheiro_nao_atribuido(self, verificador, visita):
        """Deve rejeitar engenheiro fora da visita antes de ler o equipamento."""
        with pytest.raises(NotAssignedError) as exc_info:
            verificador.verificar(visita, "eng-2", "ABC123")

        assert exc_info.value.visita_id == visita.id
        assert exc_info.value.engenheiro_id == "eng-2"

    def test_principal_pode_verificar(self, verificador, visita):
        visita.engenheiro_principal_id = "eng-principal"

        verificador.verificar(visita, "eng-principal", "ABC123")

    def test_equipamento_inexistente(self, verificador, visita):
        visita.equipamento_id = "eq-inexistente"

        with pytest.raises(EntityNotFoundError) as exc_info:
            verificador.verificar(visita, "eng-1", "ABC123")

        assert exc_info.value.entity_type == "Equipamento"

    def test_equipamento_sem_codigo_nunca_confere(self, equipamento_repo, verificador, visita):
        equipamento_repo.save(EquipamentoEntity(id="eq-1", nome="Monitor", codigo_qr=None))

        with pytest.raises(CodeMismatchError):
            verificador.verificar(visita, "eng-1", "")


class TestCodigosConferem:

    @pytest.mark.parametrize("lido,registrado,esperado", [
        ("ABC123", "abc123", True),
        ("abc123", "ABC123", True),
        ("ABC124", "ABC123", False),
        ("", "ABC123", False),
        ("ABC123", None, False),
        (None, None, False),
    ])
    def test_comparacao(self, lido, registrado, esperado):
        assert codigos_conferem(lido, registrado) is esperado

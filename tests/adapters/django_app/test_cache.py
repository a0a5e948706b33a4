"""
Testes do cache de equipamentos.

Coverage:
- InMemoryCache: expiração com relógio injetado, None nunca guardado
- EquipamentoRepositoryComCache: miss/hit, escrita atualiza as chaves,
  troca de código remove a chave antiga
- DjangoCacheAdapter sobre LocMem
- Verificação sobre o cache: entrada velha não decide o resultado
"""

import pytest

from src.core.shared.exceptions import CodeMismatchError, EntityNotFoundError
from src.core.visitas.entities import EquipamentoEntity, VisitaEntity, VisitaStatus
from src.core.visitas.ports import (
    EquipamentoRepositoryComCache,
    InMemoryEquipamentoRepository,
)
from src.core.visitas.verificacao import VerificadorEquipamento
from src.adapters.django_app.shared.cache import DjangoCacheAdapter, InMemoryCache


class Relogio:
    def __init__(self):
        self.agora = 1000.0

    def __call__(self):
        return self.agora

    def avancar(self, segundos):
        self.agora += segundos


class RepositorioContador(InMemoryEquipamentoRepository):
    """Conta leituras que chegam ao repositório decorado."""

    def __init__(self):
        super().__init__()
        self.leituras = 0

    def get_by_id(self, equipamento_id):
        self.leituras += 1
        return super().get_by_id(equipamento_id)


@pytest.fixture
def relogio():
    return Relogio()


@pytest.fixture
def cache(relogio):
    return InMemoryCache(relogio=relogio)


@pytest.fixture
def base():
    repo = RepositorioContador()
    repo.save(EquipamentoEntity(id="eq-1", nome="Monitor", codigo_qr="ABC123", hospital_id="h-1"))
    return repo


@pytest.fixture
def repo(base, cache):
    return EquipamentoRepositoryComCache(base, cache, ttl=60)


class TestInMemoryCache:

    def test_expira_apos_ttl(self, cache, relogio):
        """Deve esquecer a chave depois do TTL."""
        cache.set("chave", "valor", ttl=10)

        relogio.avancar(9)
        assert cache.get("chave") == "valor"

        relogio.avancar(1)
        assert cache.get("chave") is None

    def test_get_or_create_nao_guarda_none(self, cache):
        chamadas = []

        def carregar():
            chamadas.append(1)
            return None

        assert cache.get_or_create("ausente", carregar, ttl=60) is None
        assert cache.get_or_create("ausente", carregar, ttl=60) is None
        assert len(chamadas) == 2

    def test_contadores(self, cache):
        cache.get_or_create("k", lambda: "v", ttl=60)
        cache.get_or_create("k", lambda: "outro", ttl=60)

        assert (cache.hits, cache.misses) == (1, 1)

    def test_valor_devolvido_e_copia(self, cache):
        """Deve isolar o cache de alterações na entidade devolvida."""
        equipamento = EquipamentoEntity(id="eq-1", codigo_qr="ABC123")
        cache.set("equipamento:id:eq-1", equipamento, ttl=60)
        equipamento.codigo_qr = "ALTERADO"

        lido = cache.get("equipamento:id:eq-1")
        lido.codigo_qr = "OUTRO"

        assert cache.get("equipamento:id:eq-1").codigo_qr == "ABC123"


class TestEquipamentoRepositoryComCache:

    def test_primeira_leitura_vai_ao_repositorio(self, repo, base):
        """Deve ler do repositório uma vez e servir as seguintes do cache."""
        assert repo.get_by_id("eq-1").codigo_qr == "ABC123"
        assert repo.get_by_id("eq-1").codigo_qr == "ABC123"

        assert base.leituras == 1

    def test_leitura_por_id_aquece_chave_do_codigo(self, repo, cache):
        repo.get_by_id("eq-1")

        assert cache.get("equipamento:codigo:abc123").id == "eq-1"

    def test_expiracao_volta_ao_repositorio(self, repo, base, relogio):
        repo.get_by_id("eq-1")
        relogio.avancar(61)
        repo.get_by_id("eq-1")

        assert base.leituras == 2

    def test_ausente_nao_fica_em_cache(self, repo, base):
        assert repo.get_by_id("eq-999") is None
        assert repo.get_by_id("eq-999") is None

        assert base.leituras == 2

    def test_save_atualiza_cache(self, repo, cache):
        """Deve refletir a escrita na próxima leitura."""
        repo.get_by_id("eq-1")

        repo.save(EquipamentoEntity(id="eq-1", nome="Monitor", codigo_qr="NOVO9", hospital_id="h-1"))

        assert repo.get_by_id("eq-1").codigo_qr == "NOVO9"
        assert repo.get_by_codigo("novo9").id == "eq-1"
        assert cache.get("equipamento:codigo:abc123") is None

    def test_get_by_codigo(self, repo):
        assert repo.get_by_codigo("abc123").id == "eq-1"
        assert repo.get_by_codigo("inexistente") is None

    def test_recarregar_ignora_entrada_em_cache(self, repo, base, cache):
        """Deve ler do repositório decorado e trocar as duas chaves."""
        repo.get_by_id("eq-1")
        base.save(EquipamentoEntity(id="eq-1", nome="Monitor", codigo_qr="NEW-2", hospital_id="h-1"))

        assert repo.recarregar("eq-1").codigo_qr == "NEW-2"
        assert base.leituras == 2
        assert repo.get_by_id("eq-1").codigo_qr == "NEW-2"
        assert cache.get("equipamento:codigo:abc123") is None

    def test_invalidate(self, repo, base):
        repo.get_by_id("eq-1")
        repo.invalidate("eq-1")
        repo.get_by_id("eq-1")

        # invalidate também lê o repositório para achar o código
        assert base.leituras == 3


class TestDjangoCacheAdapter:

    @pytest.fixture(autouse=True)
    def limpar(self):
        from django.core.cache import cache
        cache.clear()
        yield
        cache.clear()

    def test_get_or_create(self):
        adapter = DjangoCacheAdapter()
        chamadas = []

        def carregar():
            chamadas.append(1)
            return EquipamentoEntity(id="eq-1", codigo_qr="ABC123")

        primeiro = adapter.get_or_create("equipamento:id:eq-1", carregar, 60)
        segundo = adapter.get_or_create("equipamento:id:eq-1", carregar, 60)

        assert primeiro == segundo
        assert len(chamadas) == 1

    def test_delete(self):
        adapter = DjangoCacheAdapter()
        adapter.set("k", "v", 60)
        adapter.delete("k")

        assert adapter.get_or_create("k", lambda: None, 60) is None


class TestVerificacaoComCache:
    """Portão de verificação sobre o repositório com cache."""

    @pytest.fixture
    def visita(self):
        visita = VisitaEntity(
            numero_ticket="VISIT-20250114-1234",
            solicitacao_id="sol-1",
            cliente_id="cli-1",
            equipamento_id="eq-1",
            status=VisitaStatus.AGENDADA,
        )
        visita.substituir_atribuicoes(["eng-1"])
        return visita

    @pytest.fixture
    def verificador(self, repo):
        return VerificadorEquipamento(repo)

    def test_codigo_alterado_fora_do_cache_e_aceito(self, verificador, visita, repo, base, cache):
        """Deve aceitar o código novo mesmo com o antigo ainda em cache."""
        verificador.verificar(visita, "eng-1", "ABC123")
        base.save(EquipamentoEntity(id="eq-1", nome="Monitor", codigo_qr="NEW-2", hospital_id="h-1"))

        equipamento = verificador.verificar(visita, "eng-1", "new-2")

        assert equipamento.codigo_qr == "NEW-2"
        assert repo.get_by_id("eq-1").codigo_qr == "NEW-2"
        assert cache.get("equipamento:codigo:abc123") is None
        assert cache.get("equipamento:codigo:new-2").id == "eq-1"

    def test_codigo_antigo_em_cache_e_rejeitado(self, verificador, visita, repo, base):
        """Deve rejeitar o código antigo que ainda está em cache."""
        assert repo.get_by_id("eq-1").codigo_qr == "ABC123"
        base.save(EquipamentoEntity(id="eq-1", nome="Monitor", codigo_qr="NEW-2", hospital_id="h-1"))

        with pytest.raises(CodeMismatchError):
            verificador.verificar(visita, "eng-1", "ABC123")

    def test_equipamento_removido_apos_cache(self, verificador, visita, repo, base, cache):
        repo.get_by_id("eq-1")
        base.clear()

        with pytest.raises(EntityNotFoundError):
            verificador.verificar(visita, "eng-1", "ABC123")

        assert cache.get("equipamento:id:eq-1") is None
        assert cache.get("equipamento:codigo:abc123") is None

"""
Ports (Interfaces) do Domínio de Visitas.

Define os contratos que os Adapters de infraestrutura devem implementar
para persistência de visitas, solicitações, equipamentos, hospitais,
engenheiros e auditoria.

Tipos de Ports:
- VisitaRepository / SolicitacaoRepository: agregados alterados pelo núcleo
- EquipamentoRepository / HospitalRepository / EngenheiroRepository:
  colaboradores lidos pelo núcleo
- AuditoriaRepository: trilha append-only

Também contém:
- Implementações em memória (testes e prototipagem)
- EquipamentoRepositoryComCache: decorator de cache sobre o port de
  equipamentos, mantendo o portão de verificação independente do cache

Princípio:
    Core define interfaces → Adapters implementam
"""

from copy import deepcopy
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable
import logging
import threading

from src.core.shared.interfaces import CachePort

from .entities import (
    VisitaEntity,
    SolicitacaoManutencaoEntity,
    EquipamentoEntity,
    HospitalEntity,
    EngenheiroEntity,
    RegistroAuditoria,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class VisitaRepository(Protocol):
    """
    Interface para persistência de Visitas.

    save() grava a visita e substitui suas atribuições na mesma
    transação do UoW corrente.
    """

    def save(self, visita: VisitaEntity) -> None:
        ...

    def get_by_id(self, visita_id: str) -> Optional[VisitaEntity]:
        ...

    def exists_numero_ticket(self, numero_ticket: str) -> bool:
        """Verifica se algum registro já usa o número de ticket."""
        ...

    def list_ativas_por_engenheiros(self, engenheiros_ids: Iterable[str]) -> List[VisitaEntity]:
        """
        Visitas não terminais em que algum dos engenheiros é principal
        ou atribuído.
        """
        ...


@runtime_checkable
class SolicitacaoRepository(Protocol):
    """Interface para persistência de Solicitações de Manutenção."""

    def save(self, solicitacao: SolicitacaoManutencaoEntity) -> None:
        ...

    def get_by_id(self, solicitacao_id: str) -> Optional[SolicitacaoManutencaoEntity]:
        ...

    def list_ativas_por_engenheiros(
        self,
        engenheiros_ids: Iterable[str],
    ) -> List[SolicitacaoManutencaoEntity]:
        """Solicitações não terminais atribuídas a algum dos engenheiros."""
        ...


@runtime_checkable
class EquipamentoRepository(Protocol):
    """Interface de leitura (e cadastro) de Equipamentos."""

    def save(self, equipamento: EquipamentoEntity) -> None:
        ...

    def get_by_id(self, equipamento_id: str) -> Optional[EquipamentoEntity]:
        ...

    def get_by_codigo(self, codigo_qr: str) -> Optional[EquipamentoEntity]:
        ...


@runtime_checkable
class HospitalRepository(Protocol):
    """Interface de leitura de Hospitais."""

    def save(self, hospital: HospitalEntity) -> None:
        ...

    def get_by_id(self, hospital_id: str) -> Optional[HospitalEntity]:
        ...


@runtime_checkable
class EngenheiroRepository(Protocol):
    """Interface de leitura de Engenheiros."""

    def save(self, engenheiro: EngenheiroEntity) -> None:
        ...

    def get_by_id(self, engenheiro_id: str) -> Optional[EngenheiroEntity]:
        ...

    def list_ativos(self) -> List[EngenheiroEntity]:
        """Engenheiros ativos em ordem estável (ordem de cadastro)."""
        ...


@runtime_checkable
class AuditoriaRepository(Protocol):
    """Trilha de auditoria: AuditoriaPort mais consulta por visita."""

    def record_transition(
        self,
        visita_id: str,
        anterior: Optional[str],
        novo: str,
        ator_id: str,
        nota: str = "",
    ) -> None:
        ...

    def list_by_visita(self, visita_id: str) -> List[RegistroAuditoria]:
        """Entradas da visita em ordem cronológica."""
        ...


# =============================================================================
# Decorator de cache
# =============================================================================

class EquipamentoRepositoryComCache:
    """
    Decorator de cache sobre um EquipamentoRepository.

    Chaves:
        equipamento:id:{id}          → equipamento
        equipamento:codigo:{codigo}  → equipamento (busca reversa)

    A primeira leitura sempre vem do repositório decorado e só então
    é guardada. save() grava no repositório e atualiza as duas chaves,
    removendo a chave do código antigo quando o código muda.

    Example:
        repo = EquipamentoRepositoryComCache(
            DjangoEquipamentoRepository(),
            DjangoCacheAdapter(),
            ttl=3600,
        )
    """

    PREFIXO_ID = "equipamento:id:"
    PREFIXO_CODIGO = "equipamento:codigo:"

    def __init__(self, repositorio: EquipamentoRepository, cache: CachePort, ttl: int = 3600):
        self._repositorio = repositorio
        self._cache = cache
        self._ttl = ttl

    def save(self, equipamento: EquipamentoEntity) -> None:
        anterior = self._repositorio.get_by_id(equipamento.id)
        self._repositorio.save(equipamento)

        if anterior and anterior.codigo_qr and anterior.codigo_qr != equipamento.codigo_qr:
            self._cache.delete(self._chave_codigo(anterior.codigo_qr))

        self._guardar(equipamento)

    def get_by_id(self, equipamento_id: str) -> Optional[EquipamentoEntity]:
        carregou = []

        def carregar():
            equipamento = self._repositorio.get_by_id(equipamento_id)
            carregou.append(equipamento)
            return equipamento

        equipamento = self._cache.get_or_create(
            self._chave_id(equipamento_id), carregar, self._ttl
        )

        if carregou and equipamento is not None and equipamento.codigo_qr:
            self._cache.set(self._chave_codigo(equipamento.codigo_qr), equipamento, self._ttl)

        return equipamento

    def get_by_codigo(self, codigo_qr: str) -> Optional[EquipamentoEntity]:
        return self._cache.get_or_create(
            self._chave_codigo(codigo_qr),
            lambda: self._repositorio.get_by_codigo(codigo_qr),
            self._ttl,
        )

    def recarregar(self, equipamento_id: str) -> Optional[EquipamentoEntity]:
        """
        Lê o equipamento direto do repositório decorado e substitui as
        entradas em cache, inclusive a chave de um código que mudou
        fora deste decorator.
        """
        em_cache = self._cache.get_or_create(self._chave_id(equipamento_id), lambda: None, self._ttl)
        atual = self._repositorio.get_by_id(equipamento_id)

        if em_cache is not None and em_cache.codigo_qr and (
            atual is None or atual.codigo_qr != em_cache.codigo_qr
        ):
            self._cache.delete(self._chave_codigo(em_cache.codigo_qr))

        if atual is None:
            self._cache.delete(self._chave_id(equipamento_id))
            return None

        self._guardar(atual)
        return atual

    def invalidate(self, equipamento_id: str) -> None:
        """Remove as entradas do equipamento."""
        equipamento = self._repositorio.get_by_id(equipamento_id)
        self._cache.delete(self._chave_id(equipamento_id))
        if equipamento and equipamento.codigo_qr:
            self._cache.delete(self._chave_codigo(equipamento.codigo_qr))

    def _guardar(self, equipamento: EquipamentoEntity) -> None:
        self._cache.set(self._chave_id(equipamento.id), equipamento, self._ttl)
        if equipamento.codigo_qr:
            self._cache.set(self._chave_codigo(equipamento.codigo_qr), equipamento, self._ttl)

    def _chave_id(self, equipamento_id: str) -> str:
        return f"{self.PREFIXO_ID}{equipamento_id}"

    def _chave_codigo(self, codigo_qr: str) -> str:
        return f"{self.PREFIXO_CODIGO}{codigo_qr.casefold()}"


# =============================================================================
# Implementações em memória
# =============================================================================

class _InMemoryStore:
    """
    Armazenamento em memória com cópias defensivas.

    Entidades são copiadas ao salvar e ao ler, de modo que alterações
    não salvas não vazam para o "banco".
    """

    def __init__(self):
        self._itens: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def _put(self, entidade_id: str, entidade: Any) -> None:
        with self._lock:
            self._itens[entidade_id] = deepcopy(entidade)

    def _get(self, entidade_id: str) -> Optional[Any]:
        with self._lock:
            entidade = self._itens.get(entidade_id)
            return deepcopy(entidade) if entidade is not None else None

    def _values(self) -> List[Any]:
        with self._lock:
            return [deepcopy(e) for e in self._itens.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._itens)

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._itens.clear()


class InMemoryVisitaRepository(_InMemoryStore):
    """
    Implementação em memória do VisitaRepository.

    Example:
        repo = InMemoryVisitaRepository()
        repo.save(visita)
        encontrada = repo.get_by_id(visita.id)
    """

    def save(self, visita: VisitaEntity) -> None:
        self._put(visita.id, visita)

    def get_by_id(self, visita_id: str) -> Optional[VisitaEntity]:
        return self._get(visita_id)

    def exists_numero_ticket(self, numero_ticket: str) -> bool:
        return any(v.numero_ticket == numero_ticket for v in self._values())

    def list_ativas_por_engenheiros(self, engenheiros_ids: Iterable[str]) -> List[VisitaEntity]:
        alvo = set(engenheiros_ids)
        return [
            v for v in self._values()
            if v.esta_ativa and alvo.intersection(v.engenheiros_ids)
        ]

    def list_all(self) -> List[VisitaEntity]:
        return self._values()


class InMemorySolicitacaoRepository(_InMemoryStore):
    """Implementação em memória do SolicitacaoRepository."""

    def save(self, solicitacao: SolicitacaoManutencaoEntity) -> None:
        self._put(solicitacao.id, solicitacao)

    def get_by_id(self, solicitacao_id: str) -> Optional[SolicitacaoManutencaoEntity]:
        return self._get(solicitacao_id)

    def list_ativas_por_engenheiros(
        self,
        engenheiros_ids: Iterable[str],
    ) -> List[SolicitacaoManutencaoEntity]:
        alvo = set(engenheiros_ids)
        return [
            s for s in self._values()
            if s.esta_ativa and s.engenheiro_atribuido_id in alvo
        ]


class InMemoryEquipamentoRepository(_InMemoryStore):
    """Implementação em memória do EquipamentoRepository."""

    def save(self, equipamento: EquipamentoEntity) -> None:
        self._put(equipamento.id, equipamento)

    def get_by_id(self, equipamento_id: str) -> Optional[EquipamentoEntity]:
        return self._get(equipamento_id)

    def get_by_codigo(self, codigo_qr: str) -> Optional[EquipamentoEntity]:
        alvo = codigo_qr.casefold()
        for equipamento in self._values():
            if equipamento.codigo_qr and equipamento.codigo_qr.casefold() == alvo:
                return equipamento
        return None


class InMemoryHospitalRepository(_InMemoryStore):
    """Implementação em memória do HospitalRepository."""

    def save(self, hospital: HospitalEntity) -> None:
        self._put(hospital.id, hospital)

    def get_by_id(self, hospital_id: str) -> Optional[HospitalEntity]:
        return self._get(hospital_id)


class InMemoryEngenheiroRepository(_InMemoryStore):
    """Implementação em memória do EngenheiroRepository (ordem de inserção)."""

    def save(self, engenheiro: EngenheiroEntity) -> None:
        self._put(engenheiro.id, engenheiro)

    def get_by_id(self, engenheiro_id: str) -> Optional[EngenheiroEntity]:
        return self._get(engenheiro_id)

    def list_ativos(self) -> List[EngenheiroEntity]:
        return [e for e in self._values() if e.ativo]


class InMemoryAuditoriaRepository:
    """Trilha de auditoria em memória (append-only)."""

    def __init__(self):
        self._registros: List[RegistroAuditoria] = []
        self._lock = threading.Lock()

    def record_transition(
        self,
        visita_id: str,
        anterior: Optional[str],
        novo: str,
        ator_id: str,
        nota: str = "",
    ) -> None:
        registro = RegistroAuditoria(
            visita_id=visita_id,
            ator_id=ator_id,
            status_anterior=anterior,
            status_novo=novo,
            nota=nota,
        )
        with self._lock:
            self._registros.append(registro)

    def list_by_visita(self, visita_id: str) -> List[RegistroAuditoria]:
        with self._lock:
            return [r for r in self._registros if r.visita_id == visita_id]

    @property
    def registros(self) -> List[RegistroAuditoria]:
        with self._lock:
            return list(self._registros)


class InMemoryNotificador:
    """
    Notificador em memória.

    Guarda as notificações enviadas para verificação em testes.
    """

    def __init__(self):
        self.notificacoes: List[Dict[str, Any]] = []

    def notify_role(
        self,
        papel: str,
        titulo: str,
        mensagem: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        logger.debug(f"Notificação para papel {papel}: {titulo}")
        self.notificacoes.append({
            "destino": "papel",
            "papel": papel,
            "titulo": titulo,
            "mensagem": mensagem,
            "metadata": dict(metadata or {}),
        })

    def notify_user(
        self,
        user_id: str,
        titulo: str,
        mensagem: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        logger.debug(f"Notificação para usuário {user_id}: {titulo}")
        self.notificacoes.append({
            "destino": "usuario",
            "user_id": user_id,
            "titulo": titulo,
            "mensagem": mensagem,
            "metadata": dict(metadata or {}),
        })

    def para_papel(self, papel: str) -> List[Dict[str, Any]]:
        return [n for n in self.notificacoes if n.get("papel") == papel]

    def para_usuario(self, user_id: str) -> List[Dict[str, Any]]:
        return [n for n in self.notificacoes if n.get("user_id") == user_id]

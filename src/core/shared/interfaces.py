"""
Interfaces (Ports) - Contratos entre Core e Adapters.

Este módulo define as interfaces que os Adapters devem implementar.
São os "Ports" da Arquitetura Hexagonal.

Tipos de Ports:
- UnitOfWork: fronteira transacional de cada operação
- EventPublisher: despacho de eventos (assíncrono, falhas logadas)
- CachePort: cache de leitura com expiração
- AuditoriaPort: trilha append-only de transições
- NotificadorPort: notificações para papéis e usuários

Princípio: Core define interfaces; Adapters implementam.
O fluxo de dependência sempre aponta para o Core.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from .events import DomainEvent


class UnitOfWork(ABC):
    """
    Unit of Work - Coordena transações atômicas.

    Garante que todas as leituras e escritas de uma operação sejam
    confirmadas ou desfeitas juntas.

    Pattern: Context Manager
        with uow:
            repo.save(visita)
            auditoria.record_transition(...)
            uow.publish_event(event)
        # Commit automático ao sair sem erro
        # Rollback automático se exceção

    Responsabilidades:
    - Gerenciar início/fim de transação
    - Commit/Rollback coordenado
    - Enfileirar eventos para publicação pós-commit
    - Garantir que eventos só são publicados após commit bem-sucedido
    """

    def __init__(self):
        self._events: List[DomainEvent] = []

    def __enter__(self) -> "UnitOfWork":
        self._begin_transaction()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """
        Finaliza contexto de transação.

        Returns:
            False para propagar exceções
        """
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        return False

    @abstractmethod
    def _begin_transaction(self) -> None:
        """Inicia uma nova transação."""
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """
        Persiste todas as mudanças e publica eventos.

        Ordem de execução:
        1. Commit da transação no banco
        2. Publicação de eventos enfileirados
        3. Limpeza de estado interno

        Note:
            Se commit falhar, eventos são descartados.
        """
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Desfaz todas as mudanças e descarta eventos."""
        raise NotImplementedError

    def publish_event(self, event: DomainEvent) -> None:
        """
        Enfileira evento para publicação após commit.

        Args:
            event: Evento de domínio a ser publicado
        """
        self._events.append(event)

    def collect_events(self) -> List[DomainEvent]:
        """Retorna eventos enfileirados (para testing/debugging)."""
        return list(self._events)

    def clear_events(self) -> None:
        """Limpa fila de eventos."""
        self._events.clear()


class EventPublisher(ABC):
    """
    Interface para publicação de eventos.

    Implementações não devem bloquear o chamador à espera dos
    consumidores nem propagar falhas de entrega.
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """
        Publica evento para consumidores.

        Args:
            event: Evento de domínio a ser publicado
        """
        raise NotImplementedError

    def publish_batch(self, events: List[DomainEvent]) -> None:
        """Publica múltiplos eventos, um a um."""
        for event in events:
            self.publish(event)


@runtime_checkable
class CachePort(Protocol):
    """
    Interface de cache com expiração.

    Leituras em cache são apenas aceleração: um miss nunca é erro.
    """

    def get_or_create(self, key: str, loader: Callable[[], Any], ttl: int) -> Any:
        """
        Retorna o valor em cache ou carrega, guarda e retorna.

        Valores None retornados pelo loader não são guardados.

        Args:
            key: Chave do cache
            loader: Função que carrega o valor na ausência
            ttl: Expiração em segundos
        """
        ...

    def set(self, key: str, value: Any, ttl: int) -> None:
        """Grava valor com expiração em segundos."""
        ...

    def delete(self, key: str) -> None:
        """Remove a chave (sem erro se ausente)."""
        ...


@runtime_checkable
class AuditoriaPort(Protocol):
    """
    Trilha de auditoria append-only.

    Chamada dentro do UoW: a entrada é persistida na mesma transação
    da alteração da visita.
    """

    def record_transition(
        self,
        visita_id: str,
        anterior: Optional[str],
        novo: str,
        ator_id: str,
        nota: str = "",
    ) -> None:
        """
        Registra uma transição de status.

        Args:
            visita_id: Visita alterada
            anterior: Status anterior (None na criação)
            novo: Status novo
            ator_id: Usuário que executou a operação
            nota: Texto livre
        """
        ...


@runtime_checkable
class NotificadorPort(Protocol):
    """
    Envio de notificações para papéis e usuários.

    Usado pelo fluxo de solicitações, não pela máquina de estados.
    """

    def notify_role(
        self,
        papel: str,
        titulo: str,
        mensagem: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...

    def notify_user(
        self,
        user_id: str,
        titulo: str,
        mensagem: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...


# Type alias para facilitar tipagem
UoW = UnitOfWork

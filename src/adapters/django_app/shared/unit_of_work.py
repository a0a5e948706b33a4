"""
Unit of Work - Implementação Django.

Gerencia a transação de cada operação de visita, garantindo que
visita, atribuições, solicitação e auditoria sejam confirmadas
ou desfeitas juntas.

Responsabilidades:
- Abrir/fechar bloco transaction.atomic()
- Commit/Rollback coordenado
- Publicar eventos somente após commit bem-sucedido

Isolamento:
- PostgreSQL em READ COMMITTED (padrão do Django); a unicidade de
  numero_ticket e de (visita, engenheiro) é garantida por constraints
"""

from typing import List, Optional
import logging

from django.db import transaction

from src.core.shared.interfaces import UnitOfWork, EventPublisher
from src.core.shared.events import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementação Django do Unit of Work.

    Usa transaction.atomic(), o que permite aninhar a operação em
    transações externas (savepoint), como acontece nos testes.
    Eventos são publicados apenas após o bloco atômico ser confirmado.

    Example:
        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            repo.save(visita)
            auditoria.record_transition(...)
            uow.publish_event(VisitaAgendadaEvent.da_visita(visita))
        # Commit automático + eventos publicados

    Example com rollback:
        with DjangoUnitOfWork() as uow:
            repo.save(visita)
            raise Exception("Erro!")
        # Rollback automático, eventos descartados
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None, using: Optional[str] = None):
        """
        Args:
            event_publisher: Publicador de eventos (Celery, fila, log)
            using: Alias do banco (default: 'default')
        """
        super().__init__()
        self._event_publisher = event_publisher
        self._using = using
        self._atomic = None
        self._committed = False
        self._rolled_back = False

    def _begin_transaction(self) -> None:
        self._committed = False
        self._rolled_back = False
        self._atomic = transaction.atomic(using=self._using)
        self._atomic.__enter__()
        logger.debug("Transaction started")

    def commit(self) -> None:
        """
        Confirma a transação e publica eventos.

        Ordem de execução:
        1. Fechar o bloco atômico (commit)
        2. Publicar eventos para handlers
        3. Limpar estado interno

        Raises:
            Exception: Se commit falhar, re-lança exceção (eventos descartados)
        """
        if self._atomic is None:
            logger.warning("Transaction already finalized")
            return

        atomic, self._atomic = self._atomic, None
        try:
            atomic.__exit__(None, None, None)
        except Exception as e:
            logger.error(f"Commit failed: {e}")
            self._rolled_back = True
            self.clear_events()
            raise

        self._committed = True
        logger.debug("Transaction committed")
        self._publish_events()

    def rollback(self) -> None:
        """
        Desfaz todas as mudanças e descarta eventos.

        Chamado automaticamente se exceção ocorrer dentro do contexto.
        """
        if self._atomic is None:
            self.clear_events()
            return

        atomic, self._atomic = self._atomic, None
        try:
            transaction.set_rollback(True, using=self._using)
            atomic.__exit__(None, None, None)
            logger.debug("Transaction rolled back")
        except Exception as e:
            logger.error(f"Rollback failed: {e}")
        finally:
            self._rolled_back = True
            self.clear_events()

    def _publish_events(self) -> None:
        """
        Publica eventos enfileirados.

        Falhas são logadas e não propagam: a operação já foi confirmada.
        """
        eventos = list(self._events)
        self.clear_events()

        for event in eventos:
            logger.info(
                f"Publishing event: {event.event_type} "
                f"for aggregate {event.aggregate_id}"
            )

            if self._event_publisher:
                try:
                    self._event_publisher.publish(event)
                except Exception as e:
                    logger.error(f"Failed to publish event: {e}", exc_info=True)

    @property
    def is_committed(self) -> bool:
        return self._committed

    @property
    def is_rolled_back(self) -> bool:
        return self._rolled_back


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work em memória para testes.

    Não persiste nada; repositórios em memória gravam imediatamente.
    Eventos seguem a mesma regra do DjangoUnitOfWork: publicados
    somente após commit.

    Example:
        uow = InMemoryUnitOfWork(event_publisher=publisher)
        with uow:
            uow.publish_event(event)

        assert uow.committed
        assert len(uow.published_events) == 1
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None):
        super().__init__()
        self._event_publisher = event_publisher
        self._committed = False
        self._rolled_back = False
        self._published_events: List[DomainEvent] = []

    def _begin_transaction(self) -> None:
        pass

    def commit(self) -> None:
        self._committed = True
        eventos = list(self._events)
        self.clear_events()
        self._published_events.extend(eventos)

        if self._event_publisher:
            for event in eventos:
                try:
                    self._event_publisher.publish(event)
                except Exception as e:
                    logger.error(f"Failed to publish event: {e}", exc_info=True)

    def rollback(self) -> None:
        self._rolled_back = True
        self.clear_events()

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events

    def reset(self) -> None:
        """Reset para próximo teste."""
        self._committed = False
        self._rolled_back = False
        self._published_events.clear()
        self.clear_events()

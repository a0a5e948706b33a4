"""
Event Publishers - Publicadores de Eventos de Domínio.

Responsável por entregar eventos (ex: VisitaAgendadaEvent) aos handlers
sem bloquear a operação que os emitiu.
Implementações:
- LoggingEventPublisher: Loga e executa handlers no thread do chamador (testes)
- CeleryEventPublisher: Publica via Celery (produção)
- AsyncQueueEventPublisher: Fila limitada + thread worker (padrão sem broker)
- InMemoryEventPublisher: Para testes

Em todas as implementações, falhas de entrega são logadas e nunca
propagadas para o chamador: o commit da visita já aconteceu.
"""

from typing import List, Callable, Dict, Optional
import logging
import json
import queue
import threading

from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import EventPublisher

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class _HandlersLocais:
    """Registro de handlers síncronos por tipo de evento."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def register_handler(self, event_type: str, handler: Handler) -> None:
        """Registra handler para tipo de evento."""
        self._handlers.setdefault(event_type, []).append(handler)

    def _dispatch_to_handlers(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"[HANDLER] Erro em handler para {event.event_type}: {e}",
                    exc_info=True
                )


class LoggingEventPublisher(_HandlersLocais, EventPublisher):
    """
    Publisher que loga eventos e executa handlers locais.

    Usado em desenvolvimento para visualizar eventos sem
    infraestrutura de mensageria.
    """

    def __init__(self, log_level: int = logging.INFO):
        super().__init__()
        self._log_level = log_level

    def publish(self, event: DomainEvent) -> None:
        logger.log(
            self._log_level,
            f"[EVENT] {event.event_type} | "
            f"aggregate={event.aggregate_id} | "
            f"data={json.dumps(event.to_dict(), default=str)}"
        )
        self._dispatch_to_handlers(event)


class CeleryEventPublisher(EventPublisher):
    """
    Publisher que envia eventos para Celery.

    O roteamento por tipo acontece na task dispatch_domain_event.
    """

    def __init__(self, also_log: bool = True):
        self._also_log = also_log

    def publish(self, event: DomainEvent) -> None:
        if self._also_log:
            logger.info(
                f"[EVENT->CELERY] {event.event_type} | "
                f"aggregate={event.aggregate_id}"
            )

        try:
            from src.adapters.django_app.events.handlers import dispatch_domain_event
            dispatch_domain_event.delay(event.event_type, event.to_dict())
        except Exception as e:
            logger.error(f"Falha ao publicar evento no Celery: {e}", exc_info=True)


class AsyncQueueEventPublisher(EventPublisher):
    """
    Publisher assíncrono com fila limitada em processo.

    publish() apenas enfileira (put_nowait) e retorna. Uma thread
    worker entrega cada evento ao publisher de destino. Com a fila
    cheia o evento é descartado e um warning é logado.

    Example:
        destino = LoggingEventPublisher()
        destino.register_handler("VisitaAgendadaEvent", notificar)
        publisher = AsyncQueueEventPublisher(destino, maxsize=1000)
        publisher.publish(evento)   # não bloqueia
        publisher.close()
    """

    def __init__(self, destino: EventPublisher, maxsize: int = 1000, nome: str = "event-publisher"):
        self._destino = destino
        self._fila: "queue.Queue[Optional[DomainEvent]]" = queue.Queue(maxsize=maxsize)
        self._descartados = 0
        self._lock = threading.Lock()
        self._worker = threading.Thread(target=self._processar, name=nome, daemon=True)
        self._worker.start()

    def publish(self, event: DomainEvent) -> None:
        try:
            self._fila.put_nowait(event)
        except queue.Full:
            with self._lock:
                self._descartados += 1
            logger.warning(
                f"[EVENT] Fila de eventos cheia; {event.event_type} "
                f"para {event.aggregate_id} descartado"
            )

    def flush(self, timeout: Optional[float] = None) -> None:
        """Aguarda a entrega de todos os eventos já enfileirados."""
        if timeout is None:
            self._fila.join()
            return

        # Queue.join() não aceita timeout
        concluido = threading.Event()

        def aguardar():
            self._fila.join()
            concluido.set()

        threading.Thread(target=aguardar, daemon=True).start()
        concluido.wait(timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Entrega o que está na fila e encerra a thread worker."""
        self._fila.put(None)
        self._worker.join(timeout)

    @property
    def descartados(self) -> int:
        with self._lock:
            return self._descartados

    @property
    def pendentes(self) -> int:
        return self._fila.qsize()

    def _processar(self) -> None:
        while True:
            event = self._fila.get()
            try:
                if event is None:
                    return
                self._destino.publish(event)
            except Exception as e:
                logger.error(
                    f"[EVENT] Falha ao entregar {event.event_type}: {e}",
                    exc_info=True
                )
            finally:
                self._fila.task_done()


class InMemoryEventPublisher(_HandlersLocais, EventPublisher):
    """
    Publisher em memória para testes.

    Armazena eventos publicados para verificação.
    """

    def __init__(self):
        super().__init__()
        self._published_events: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self._published_events.append(event)
        self._dispatch_to_handlers(event)

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events.copy()

    def clear(self) -> None:
        self._published_events.clear()

    def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        """Filtra eventos por tipo."""
        return [e for e in self._published_events if e.event_type == event_type]


def get_event_publisher(modo: str = "async", maxsize: int = 1000) -> EventPublisher:
    """
    Factory para obter publisher conforme o modo configurado.

    Args:
        modo: "async" (padrão), "celery" ou "sync" (testes)
        maxsize: Capacidade da fila no modo "async"

    Returns:
        Publisher configurado
    """
    modo = (modo or "async").lower()
    if modo == "celery":
        return CeleryEventPublisher()
    if modo == "sync":
        return LoggingEventPublisher()
    return AsyncQueueEventPublisher(LoggingEventPublisher(), maxsize=maxsize)

"""
Event Handlers - Processadores de Eventos de Domínio.

Handlers são executados de forma assíncrona via Celery quando
Domain Events são publicados. Nenhum handler participa da transação
que emitiu o evento: a visita já está gravada quando eles rodam.

Handlers:
- handle_visita_agendada: Notifica engenheiros atribuídos e cliente

Padrão:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        # Processar evento
"""

import logging
from typing import Dict, Any, List, Optional
from celery import shared_task

from src.core.shared.interfaces import NotificadorPort

logger = logging.getLogger(__name__)


def notificar_visita_agendada(event_data: Dict[str, Any], notificador: NotificadorPort) -> List[str]:
    """
    Envia a notificação de visita agendada a cada destinatário.

    Falhas são logadas por destinatário; um destinatário com erro
    não impede os demais.

    Args:
        event_data: VisitaAgendadaEvent serializado (to_dict)
        notificador: Canal de notificação

    Returns:
        IDs dos destinatários notificados com sucesso
    """
    dados = event_data.get('data', {})
    visita_id = event_data.get('aggregate_id')
    numero = dados.get('numero_ticket', '')
    data_agendada = dados.get('data_agendada') or 'data a definir'
    metadata = {'visita_id': visita_id, 'numero_ticket': numero}

    destinatarios = [
        (engenheiro_id, f"Você foi atribuído à visita {numero} em {data_agendada}")
        for engenheiro_id in dados.get('engenheiros_ids', [])
    ]
    if dados.get('cliente_id'):
        destinatarios.append(
            (dados['cliente_id'], f"Sua visita {numero} foi agendada para {data_agendada}")
        )

    notificados = []
    for user_id, mensagem in destinatarios:
        try:
            notificador.notify_user(user_id, "Visita agendada", mensagem, metadata)
            notificados.append(user_id)
        except Exception as e:
            logger.error(
                f"[HANDLER] Falha ao notificar {user_id} sobre visita {numero}: {e}",
                exc_info=True
            )

    return notificados


# =============================================================================
# Event Handlers - Visitas
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_visita_agendada(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para evento VisitaAgendadaEvent.

    Ações:
    - Notificar cada engenheiro atribuído no momento da emissão
    - Notificar o cliente

    Destinatários com falha são reenviados via retry, sem repetir
    quem já foi notificado.

    Args:
        event_data: Dados do evento serializado
    """
    from src.adapters.django_app.visitas.notifications import CeleryNotificador

    dados = event_data.get('data', {})
    logger.info(
        f"[HANDLER] VisitaAgendada: {event_data.get('aggregate_id')} | "
        f"Ticket: {dados.get('numero_ticket')} | "
        f"Engenheiros: {dados.get('engenheiros_ids', [])}"
    )

    notificados = notificar_visita_agendada(event_data, CeleryNotificador())

    pendentes = _somente_pendentes(event_data, notificados)
    if pendentes is not None:
        logger.warning(
            f"[HANDLER] Reenviando visita {dados.get('numero_ticket')} para "
            f"{pendentes['data']['engenheiros_ids']} / cliente {pendentes['data']['cliente_id']}"
        )
        raise self.retry(kwargs={'event_data': pendentes})


def _somente_pendentes(event_data: Dict[str, Any], notificados: List[str]) -> Optional[Dict[str, Any]]:
    """Evento restrito aos destinatários não notificados (None se todos foram)."""
    dados = event_data.get('data', {})
    engenheiros = [e for e in dados.get('engenheiros_ids', []) if e not in notificados]
    cliente = dados.get('cliente_id')
    if cliente in notificados:
        cliente = None

    if not engenheiros and not cliente:
        return None
    return {**event_data, 'data': {**dados, 'engenheiros_ids': engenheiros, 'cliente_id': cliente}}


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

EVENT_HANDLERS = {
    'VisitaAgendadaEvent': handle_visita_agendada,
}


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central para Domain Events.

    Roteia eventos para os handlers apropriados.

    Args:
        event_type: Tipo do evento (ex: 'VisitaAgendadaEvent')
        event_data: Dados do evento serializado
    """
    handler = EVENT_HANDLERS.get(event_type)

    if handler:
        logger.info(f"[DISPATCHER] Roteando {event_type} para handler")
        handler.delay(event_data)
    else:
        logger.warning(f"[DISPATCHER] Handler não encontrado para {event_type}")


# =============================================================================
# Notification Tasks
# =============================================================================

@shared_task(bind=True, max_retries=3, default_retry_delay=120)
def notify_user(
    self,
    user_id: str,
    titulo: str,
    mensagem: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Notifica um usuário.

    Args:
        user_id: ID do usuário
        titulo: Título da notificação
        mensagem: Corpo
        metadata: Dados adicionais (ids relacionados)
    """
    logger.info(f"[NOTIFICATION] Usuário {user_id}: {titulo} - {mensagem} | {metadata or {}}")


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_role(
    self,
    papel: str,
    titulo: str,
    mensagem: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Notifica todos os usuários de um papel.

    Args:
        papel: Nome do papel (ex: 'SUPORTE_MANUTENCAO')
        titulo: Título da notificação
        mensagem: Corpo
        metadata: Dados adicionais
    """
    logger.info(f"[NOTIFICATION] Papel {papel}: {titulo} - {mensagem} | {metadata or {}}")

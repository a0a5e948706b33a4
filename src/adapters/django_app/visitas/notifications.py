"""
Notificador via Celery.

Implementa o NotificadorPort enfileirando as tasks de notificação.
Só o enfileiramento acontece no processo chamador; a entrega fica
com os workers.

Com eager=True as tasks rodam no próprio processo (Task.apply),
sem broker, como no modo de publicação 'sync'.
"""

from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class CeleryNotificador:
    """
    Example:
        notificador = CeleryNotificador()
        notificador.notify_role("SUPORTE_MANUTENCAO", "Nova solicitação", "...")
    """

    def __init__(self, eager: bool = False):
        self._eager = eager

    def notify_role(
        self,
        papel: str,
        titulo: str,
        mensagem: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        from src.adapters.django_app.events.handlers import notify_role

        logger.debug(f"[NOTIFICATION] Enfileirando para papel {papel}: {titulo}")
        self._enviar(notify_role, papel=papel, titulo=titulo, mensagem=mensagem, metadata=metadata or {})

    def notify_user(
        self,
        user_id: str,
        titulo: str,
        mensagem: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        from src.adapters.django_app.events.handlers import notify_user

        logger.debug(f"[NOTIFICATION] Enfileirando para usuário {user_id}: {titulo}")
        self._enviar(notify_user, user_id=user_id, titulo=titulo, mensagem=mensagem, metadata=metadata or {})

    def _enviar(self, task, **kwargs) -> None:
        if self._eager:
            task.apply(kwargs=kwargs, throw=True)
        else:
            task.delay(**kwargs)

"""
Configuração do Orquestrador de Visitas de Manutenção.

Módulos:
- settings: Configurações Django
- celery: Configuração Celery para tarefas assíncronas
- container: Dependency Injection Container
"""

from .celery import app as celery_app

__all__ = ('celery_app',)

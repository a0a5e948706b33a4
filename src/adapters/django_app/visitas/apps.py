"""
Configuração do Django App para Visitas.
"""

from django.apps import AppConfig


class VisitasConfig(AppConfig):
    """Configuração do app Visitas."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'src.adapters.django_app.visitas'
    label = 'visitas'
    verbose_name = 'Visitas de Manutenção'

"""
Testes do módulo de settings.

Carrega src.config.settings sem as variáveis de ambiente que
alteram os padrões.
"""

import importlib

import pytest


@pytest.fixture
def modulo_settings(monkeypatch):
    for variavel in ("EVENT_PUBLISHER_MODE", "EVENT_QUEUE_MAXSIZE", "REDIS_URL", "DATABASE_URL"):
        monkeypatch.delenv(variavel, raising=False)

    import src.config.settings as modulo
    return importlib.reload(modulo)


class TestSettingsPadrao:

    def test_eventos_usam_fila_em_processo(self, modulo_settings):
        """Deve despachar eventos pela fila limitada quando nada é configurado."""
        assert modulo_settings.EVENT_PUBLISHER_MODE == 'async'
        assert modulo_settings.EVENT_QUEUE_MAXSIZE == 1000

    def test_sem_configuracao_http(self, modulo_settings):
        """Deve manter só a SECRET_KEY exigida pelo Django."""
        assert modulo_settings.SECRET_KEY

        for nome in ("DEBUG", "ALLOWED_HOSTS", "ROOT_URLCONF", "MIDDLEWARE", "TEMPLATES"):
            assert not hasattr(modulo_settings, nome)

    def test_banco_e_cache_locais(self, modulo_settings):
        assert modulo_settings.DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3'
        assert modulo_settings.CACHES['default']['BACKEND'].endswith('LocMemCache')

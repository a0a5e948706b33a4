"""
Configuração pytest para testes com Django.

Este arquivo configura:
- Django settings para testes (SQLite em memória, cache LocMem)
- Tasks Celery executadas no próprio processo
- Fixtures com repositórios Django e dados de exemplo
"""

import pytest


def pytest_configure(config):
    """Configura Django antes dos testes."""
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            DATABASES={
                'default': {
                    'ENGINE': 'django.db.backends.sqlite3',
                    'NAME': ':memory:',
                }
            },
            INSTALLED_APPS=[
                'django.contrib.contenttypes',
                'src.adapters.django_app.visitas',
            ],
            CACHES={
                'default': {
                    'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
                    'LOCATION': 'visitas-testes',
                }
            },
            DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
            USE_TZ=True,
            TIME_ZONE='America/Sao_Paulo',
            EVENT_PUBLISHER_MODE='sync',
            EVENT_QUEUE_MAXSIZE=100,
            EQUIPAMENTO_CACHE_TTL=60,
            TICKET_MAX_TENTATIVAS=10,
            CELERY_TASK_ALWAYS_EAGER=True,
            CELERY_BROKER_URL='memory://',
            CELERY_RESULT_BACKEND='cache+memory://',
        )
        django.setup()


@pytest.fixture
def repos():
    """Repositórios Django."""
    from src.adapters.django_app.visitas.repositories import (
        DjangoVisitaRepository,
        DjangoSolicitacaoRepository,
        DjangoEquipamentoRepository,
        DjangoHospitalRepository,
        DjangoEngenheiroRepository,
        DjangoAuditoriaRepository,
    )

    return {
        'visita': DjangoVisitaRepository(),
        'solicitacao': DjangoSolicitacaoRepository(),
        'equipamento': DjangoEquipamentoRepository(),
        'hospital': DjangoHospitalRepository(),
        'engenheiro': DjangoEngenheiroRepository(),
        'auditoria': DjangoAuditoriaRepository(),
    }


@pytest.fixture
def cenario(repos):
    """
    Hospital em Campinas, dois engenheiros da área, um equipamento
    e uma solicitação aberta para ele.
    """
    from src.core.visitas.entities import (
        HospitalEntity,
        EquipamentoEntity,
        EngenheiroEntity,
        AreaCobertura,
        SolicitacaoManutencaoEntity,
    )

    repos['hospital'].save(HospitalEntity(id='h-1', nome='Hospital Central', localizacao='Campinas'))
    repos['engenheiro'].save(EngenheiroEntity(
        id='eng-1', nome='Ana', areas_cobertura=[AreaCobertura('Campinas e região')],
    ))
    repos['engenheiro'].save(EngenheiroEntity(
        id='eng-2', nome='Bruno', areas_cobertura=[AreaCobertura('Campinas')],
    ))
    repos['equipamento'].save(EquipamentoEntity(
        id='eq-1', nome='Monitor', codigo_qr='ABC123', hospital_id='h-1',
    ))
    repos['solicitacao'].save(SolicitacaoManutencaoEntity(
        id='sol-1', cliente_id='cli-1', equipamento_id='eq-1', descricao='Alarme disparando',
    ))
    return repos


@pytest.fixture
def inmemory_uow():
    """Unit of Work em memória para testes unitários."""
    from src.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork
    return InMemoryUnitOfWork()

"""
Dependency Injection Container.

Configura e gerencia todas as dependências da aplicação.
Usa dependency-injector para lazy-loading e injeção explícita.

Padrões:
- Singleton: Uma instância para toda app (repositories, gerador, cache)
- Factory: Nova instância por chamada (services, UoW)

O gerador de número de ticket é Singleton: as reservas em processo
só protegem chamadas concorrentes que compartilham a mesma instância.
"""

from dependency_injector import containers, providers
from typing import Optional


def _importar(modulo: str, nome: str):
    """Import tardio para evitar circular imports e carregar Django só quando usado."""
    return getattr(__import__(modulo, fromlist=[nome]), nome)


_USE_CASES = 'src.core.visitas.use_cases'
_REPOS = 'src.adapters.django_app.visitas.repositories'
_PORTS = 'src.core.visitas.ports'


def _criar_event_publisher(modo: str, maxsize: int):
    """
    Publisher conforme EVENT_PUBLISHER_MODE.

    Fora do modo 'celery' a notificação de visita agendada roda no
    próprio processo (tasks Celery executadas localmente, sem broker).
    No modo 'async' (padrão) ela roda na thread worker da fila, e o
    commit não espera os handlers; 'sync' existe para os testes.
    """
    publishers = 'src.adapters.django_app.events.publishers'
    modo = (modo or 'async').lower()

    if modo == 'celery':
        return _importar(publishers, 'CeleryEventPublisher')()

    destino = _importar(publishers, 'LoggingEventPublisher')()
    notificar = _importar('src.adapters.django_app.events.handlers', 'notificar_visita_agendada')
    notificador = _importar('src.adapters.django_app.visitas.notifications', 'CeleryNotificador')(eager=True)
    destino.register_handler(
        'VisitaAgendadaEvent',
        lambda event: notificar(event.to_dict(), notificador),
    )

    if modo == 'sync':
        return destino
    return _importar(publishers, 'AsyncQueueEventPublisher')(destino, maxsize=maxsize)


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Configuration: settings do Django
    - Infrastructure: publisher, cache
    - Repositories: Persistência
    - Domain services: gerador, motor, verificador
    - Unit of Work: Transações
    - Services: Use Cases

    Example:
        from src.config.container import get_container

        container = get_container()
        service = container.criar_visita_service()
        output = service.execute(input_dto)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration()

    # =========================================================================
    # Infrastructure
    # =========================================================================

    event_publisher = providers.Singleton(
        _criar_event_publisher,
        modo=config.event_publisher_mode,
        maxsize=config.event_queue_maxsize,
    )

    cache = providers.Singleton(
        lambda: _importar('src.adapters.django_app.shared.cache', 'DjangoCacheAdapter')()
    )

    # Sem broker fora do modo 'celery': tasks de notificação rodam no processo
    notificador = providers.Singleton(
        lambda modo: _importar('src.adapters.django_app.visitas.notifications', 'CeleryNotificador')(
            eager=(modo or 'async').lower() != 'celery'
        ),
        modo=config.event_publisher_mode,
    )

    # =========================================================================
    # Repositories (Singleton)
    # =========================================================================

    visita_repository = providers.Singleton(
        lambda: _importar(_REPOS, 'DjangoVisitaRepository')()
    )

    solicitacao_repository = providers.Singleton(
        lambda: _importar(_REPOS, 'DjangoSolicitacaoRepository')()
    )

    equipamento_repository = providers.Singleton(
        lambda cache, ttl: _importar('src.core.visitas.ports', 'EquipamentoRepositoryComCache')(
            _importar(_REPOS, 'DjangoEquipamentoRepository')(),
            cache,
            ttl=ttl,
        ),
        cache=cache,
        ttl=config.equipamento_cache_ttl,
    )

    hospital_repository = providers.Singleton(
        lambda: _importar(_REPOS, 'DjangoHospitalRepository')()
    )

    engenheiro_repository = providers.Singleton(
        lambda: _importar(_REPOS, 'DjangoEngenheiroRepository')()
    )

    auditoria_repository = providers.Singleton(
        lambda: _importar(_REPOS, 'DjangoAuditoriaRepository')()
    )

    # =========================================================================
    # Domain services
    # =========================================================================

    gerador_numero_ticket = providers.Singleton(
        lambda visita_repo, max_tentativas: _importar(
            'src.core.visitas.numeracao', 'GeradorNumeroTicket'
        )(visita_repo, max_tentativas=max_tentativas),
        visita_repo=visita_repository,
        max_tentativas=config.ticket_max_tentativas,
    )

    motor_atribuicao = providers.Factory(
        lambda engenheiro_repo, hospital_repo, visita_repo, solicitacao_repo: _importar(
            'src.core.visitas.atribuicao', 'MotorAtribuicao'
        )(engenheiro_repo, hospital_repo, visita_repo, solicitacao_repo),
        engenheiro_repo=engenheiro_repository,
        hospital_repo=hospital_repository,
        visita_repo=visita_repository,
        solicitacao_repo=solicitacao_repository,
    )

    verificador_equipamento = providers.Factory(
        lambda equipamento_repo: _importar(
            'src.core.visitas.verificacao', 'VerificadorEquipamento'
        )(equipamento_repo),
        equipamento_repo=equipamento_repository,
    )

    # =========================================================================
    # Unit of Work (Factory - nova instância por operação)
    # =========================================================================

    unit_of_work = providers.Factory(
        lambda event_publisher: _importar(
            'src.adapters.django_app.shared.unit_of_work', 'DjangoUnitOfWork'
        )(event_publisher=event_publisher),
        event_publisher=event_publisher,
    )

    # =========================================================================
    # Services / Use Cases (Factory)
    # =========================================================================

    criar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'CriarVisitaService')(**deps),
        visita_repo=visita_repository,
        solicitacao_repo=solicitacao_repository,
        equipamento_repo=equipamento_repository,
        engenheiro_repo=engenheiro_repository,
        auditoria=auditoria_repository,
        motor=motor_atribuicao,
        gerador=gerador_numero_ticket,
        uow=unit_of_work,
    )

    aprovar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'AprovarVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    atribuir_engenheiros_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'AtribuirEngenheirosService')(**deps),
        visita_repo=visita_repository,
        engenheiro_repo=engenheiro_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    verificar_e_iniciar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'VerificarEIniciarVisitaService')(**deps),
        visita_repo=visita_repository,
        verificador=verificador_equipamento,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    registrar_resultado_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'RegistrarResultadoVisitaService')(**deps),
        visita_repo=visita_repository,
        solicitacao_repo=solicitacao_repository,
        auditoria=auditoria_repository,
        notificador=notificador,
        uow=unit_of_work,
    )

    cancelar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'CancelarVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    reagendar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'ReagendarVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    obter_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'ObterVisitaService')(**deps),
        visita_repo=visita_repository,
    )

    listar_auditoria_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'ListarAuditoriaVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria_repo=auditoria_repository,
    )

    criar_solicitacao_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'CriarSolicitacaoManutencaoService')(**deps),
        solicitacao_repo=solicitacao_repository,
        equipamento_repo=equipamento_repository,
        motor=motor_atribuicao,
        notificador=notificador,
        uow=unit_of_work,
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Retorna instância global do container, configurada a partir
    do django.conf.settings na primeira chamada.
    """
    global _container

    if _container is None:
        from django.conf import settings

        _container = Container()
        _container.config.from_dict({
            'event_publisher_mode': getattr(settings, 'EVENT_PUBLISHER_MODE', 'async'),
            'event_queue_maxsize': getattr(settings, 'EVENT_QUEUE_MAXSIZE', 1000),
            'equipamento_cache_ttl': getattr(settings, 'EQUIPAMENTO_CACHE_TTL', 3600),
            'ticket_max_tentativas': getattr(settings, 'TICKET_MAX_TENTATIVAS', 10),
        })

    return _container


def reset_container() -> None:
    """Reset do container (para testes)."""
    global _container
    _container = None


# =============================================================================
# Testing Container
# =============================================================================

class TestingContainer(containers.DeclarativeContainer):
    """
    Container para testes com implementações em memória.

    Example:
        container = TestingContainer()
        container.engenheiro_repository().save(engenheiro)
        output = container.criar_visita_service().execute(dto)
        eventos = container.event_publisher().published_events
    """

    config = providers.Configuration()

    event_publisher = providers.Singleton(
        lambda: _importar('src.adapters.django_app.events.publishers', 'InMemoryEventPublisher')()
    )

    cache = providers.Singleton(
        lambda: _importar('src.adapters.django_app.shared.cache', 'InMemoryCache')()
    )

    notificador = providers.Singleton(
        lambda: _importar(_PORTS, 'InMemoryNotificador')()
    )

    visita_repository = providers.Singleton(
        lambda: _importar(_PORTS, 'InMemoryVisitaRepository')()
    )

    solicitacao_repository = providers.Singleton(
        lambda: _importar(_PORTS, 'InMemorySolicitacaoRepository')()
    )

    equipamento_repository = providers.Singleton(
        lambda cache: _importar(_PORTS, 'EquipamentoRepositoryComCache')(
            _importar(_PORTS, 'InMemoryEquipamentoRepository')(),
            cache,
        ),
        cache=cache,
    )

    hospital_repository = providers.Singleton(
        lambda: _importar(_PORTS, 'InMemoryHospitalRepository')()
    )

    engenheiro_repository = providers.Singleton(
        lambda: _importar(_PORTS, 'InMemoryEngenheiroRepository')()
    )

    auditoria_repository = providers.Singleton(
        lambda: _importar(_PORTS, 'InMemoryAuditoriaRepository')()
    )

    gerador_numero_ticket = providers.Singleton(
        lambda visita_repo: _importar('src.core.visitas.numeracao', 'GeradorNumeroTicket')(visita_repo),
        visita_repo=visita_repository,
    )

    motor_atribuicao = providers.Factory(
        lambda engenheiro_repo, hospital_repo, visita_repo, solicitacao_repo: _importar(
            'src.core.visitas.atribuicao', 'MotorAtribuicao'
        )(engenheiro_repo, hospital_repo, visita_repo, solicitacao_repo),
        engenheiro_repo=engenheiro_repository,
        hospital_repo=hospital_repository,
        visita_repo=visita_repository,
        solicitacao_repo=solicitacao_repository,
    )

    verificador_equipamento = providers.Factory(
        lambda equipamento_repo: _importar(
            'src.core.visitas.verificacao', 'VerificadorEquipamento'
        )(equipamento_repo),
        equipamento_repo=equipamento_repository,
    )

    unit_of_work = providers.Factory(
        lambda event_publisher: _importar(
            'src.adapters.django_app.shared.unit_of_work', 'InMemoryUnitOfWork'
        )(event_publisher=event_publisher),
        event_publisher=event_publisher,
    )

    criar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'CriarVisitaService')(**deps),
        visita_repo=visita_repository,
        solicitacao_repo=solicitacao_repository,
        equipamento_repo=equipamento_repository,
        engenheiro_repo=engenheiro_repository,
        auditoria=auditoria_repository,
        motor=motor_atribuicao,
        gerador=gerador_numero_ticket,
        uow=unit_of_work,
    )

    aprovar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'AprovarVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    atribuir_engenheiros_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'AtribuirEngenheirosService')(**deps),
        visita_repo=visita_repository,
        engenheiro_repo=engenheiro_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    verificar_e_iniciar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'VerificarEIniciarVisitaService')(**deps),
        visita_repo=visita_repository,
        verificador=verificador_equipamento,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    registrar_resultado_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'RegistrarResultadoVisitaService')(**deps),
        visita_repo=visita_repository,
        solicitacao_repo=solicitacao_repository,
        auditoria=auditoria_repository,
        notificador=notificador,
        uow=unit_of_work,
    )

    cancelar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'CancelarVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    reagendar_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'ReagendarVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria=auditoria_repository,
        uow=unit_of_work,
    )

    obter_visita_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'ObterVisitaService')(**deps),
        visita_repo=visita_repository,
    )

    listar_auditoria_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'ListarAuditoriaVisitaService')(**deps),
        visita_repo=visita_repository,
        auditoria_repo=auditoria_repository,
    )

    criar_solicitacao_service = providers.Factory(
        lambda **deps: _importar(_USE_CASES, 'CriarSolicitacaoManutencaoService')(**deps),
        solicitacao_repo=solicitacao_repository,
        equipamento_repo=equipamento_repository,
        motor=motor_atribuicao,
        notificador=notificador,
        uow=unit_of_work,
    )

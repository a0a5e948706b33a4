"""
Shared Domain Components.

Contém componentes compartilhados entre todos os domínios:
- Exceções de domínio
- Interfaces (Ports)
- Base classes para Domain Events
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    BusinessRuleViolationError,
    InvalidTransitionError,
    AuthorizationError,
    NotAssignedError,
    CodeMismatchError,
    IdentifierExhaustedError,
)
from .events import DomainEvent
from .interfaces import (
    UnitOfWork,
    EventPublisher,
    CachePort,
    AuditoriaPort,
    NotificadorPort,
)

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "BusinessRuleViolationError",
    "InvalidTransitionError",
    "AuthorizationError",
    "NotAssignedError",
    "CodeMismatchError",
    "IdentifierExhaustedError",
    "DomainEvent",
    "UnitOfWork",
    "EventPublisher",
    "CachePort",
    "AuditoriaPort",
    "NotificadorPort",
]

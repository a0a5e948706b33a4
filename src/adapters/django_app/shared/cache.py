"""
Cache Adapters - Implementações do CachePort.

Implementações:
- DjangoCacheAdapter: delega ao framework de cache do Django
  (Redis em produção, LocMem em desenvolvimento)
- InMemoryCache: dicionário com expiração (testes)

Valores None nunca são guardados: um equipamento ausente deve ser
consultado de novo na próxima leitura.
"""

from typing import Any, Callable, Dict, Optional, Tuple
from copy import deepcopy
import logging
import threading
import time

logger = logging.getLogger(__name__)


class DjangoCacheAdapter:
    """
    CachePort sobre django.core.cache.

    Example:
        cache = DjangoCacheAdapter()            # alias 'default'
        cache.get_or_create("chave", carregar, ttl=3600)
    """

    def __init__(self, alias: str = 'default'):
        self._alias = alias

    @property
    def _cache(self):
        from django.core.cache import caches
        return caches[self._alias]

    def get_or_create(self, key: str, loader: Callable[[], Any], ttl: int) -> Any:
        valor = self._cache.get(key)
        if valor is not None:
            logger.debug(f"Cache hit: {key}")
            return valor

        logger.debug(f"Cache miss: {key}")
        valor = loader()
        if valor is not None:
            self._cache.set(key, valor, ttl)
        return valor

    def set(self, key: str, value: Any, ttl: int) -> None:
        self._cache.set(key, value, ttl)

    def delete(self, key: str) -> None:
        self._cache.delete(key)


class InMemoryCache:
    """
    Cache em memória com expiração por chave.

    O relógio é injetável para testar expiração sem esperar. Valores são
    copiados ao gravar e ao ler, como no cache do Django (pickle): alterar
    a entidade devolvida não altera o cache.
    """

    def __init__(self, relogio: Optional[Callable[[], float]] = None):
        self._relogio = relogio or time.monotonic
        self._itens: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any:
        with self._lock:
            item = self._itens.get(key)
            if item is None:
                return None
            valor, expira_em = item
            if self._relogio() >= expira_em:
                del self._itens[key]
                return None
            return deepcopy(valor)

    def get_or_create(self, key: str, loader: Callable[[], Any], ttl: int) -> Any:
        valor = self.get(key)
        if valor is not None:
            self.hits += 1
            return valor

        self.misses += 1
        valor = loader()
        if valor is not None:
            self.set(key, valor, ttl)
        return valor

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._itens[key] = (deepcopy(value), self._relogio() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._itens.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._itens.clear()

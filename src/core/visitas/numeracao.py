"""
Gerador de Número de Ticket.

Formato: VISIT-YYYYMMDD-NNNN, com NNNN aleatório entre 1000 e 9999.

Cada tentativa verifica a unicidade contra o repositório de visitas e
contra as reservas feitas por este gerador no processo (chamadas
concorrentes cujas visitas ainda não foram gravadas). O lock cobre
apenas a verificação-e-reserva de cada tentativa.
"""

from datetime import datetime
from typing import Callable, Optional, Set
import logging
import random
import threading

from src.core.shared.exceptions import IdentifierExhaustedError

from .entities import agora
from .ports import VisitaRepository

logger = logging.getLogger(__name__)


class GeradorNumeroTicket:
    """
    Gera números de ticket legíveis e únicos.

    Attributes:
        PREFIXO: Prefixo fixo do número
        SUFIXO_MIN / SUFIXO_MAX: Faixa do sufixo aleatório

    Example:
        gerador = GeradorNumeroTicket(visita_repo)
        numero = gerador.gerar()  # "VISIT-20250114-4821"
    """

    PREFIXO = "VISIT"
    SUFIXO_MIN = 1000
    SUFIXO_MAX = 9999

    def __init__(
        self,
        visita_repo: VisitaRepository,
        max_tentativas: int = 10,
        relogio: Optional[Callable[[], datetime]] = None,
        aleatorio: Optional[random.Random] = None,
    ):
        """
        Args:
            visita_repo: Repositório usado na checagem de unicidade
            max_tentativas: Tentativas antes de IdentifierExhaustedError
            relogio: Fonte do instante atual (default: UTC agora)
            aleatorio: Gerador de números aleatórios
        """
        if max_tentativas < 1:
            raise ValueError("max_tentativas deve ser >= 1")

        self.visita_repo = visita_repo
        self.max_tentativas = max_tentativas
        self._relogio = relogio or agora
        self._aleatorio = aleatorio or random.Random()
        self._lock = threading.Lock()
        self._reservados: Set[str] = set()
        self._data_reservas: Optional[str] = None

    def gerar(self) -> str:
        """
        Gera um número de ticket único.

        Raises:
            IdentifierExhaustedError: Se todas as tentativas colidirem
        """
        data = self._relogio().strftime("%Y%m%d")

        for tentativa in range(1, self.max_tentativas + 1):
            candidato = f"{self.PREFIXO}-{data}-{self._sortear_sufixo()}"

            with self._lock:
                if self._data_reservas != data:
                    self._reservados.clear()
                    self._data_reservas = data

                if candidato not in self._reservados and not self.visita_repo.exists_numero_ticket(candidato):
                    self._reservados.add(candidato)
                    return candidato

            logger.debug(f"Número de ticket {candidato} em uso (tentativa {tentativa})")

        logger.error(f"Geração de número de ticket esgotou {self.max_tentativas} tentativas")
        raise IdentifierExhaustedError(
            f"Não foi possível gerar número de ticket único após {self.max_tentativas} tentativas",
            tentativas=self.max_tentativas,
        )

    def _sortear_sufixo(self) -> int:
        return self._aleatorio.randint(self.SUFIXO_MIN, self.SUFIXO_MAX)

"""
Portão de Verificação de Equipamento.

Confirma a presença física do engenheiro antes de AGENDADA → EM_ANDAMENTO:
o ator precisa estar atribuído à visita e o código lido no local precisa
conferir com o código registrado do equipamento.

O portão lê o equipamento pelo port de repositório. Em produção esse port
é o EquipamentoRepositoryComCache, e a verificação usa recarregar(): o
código comparado vem sempre do repositório decorado e a leitura renova
as entradas em cache. Uma entrada velha nunca decide a verificação.
"""

from typing import Optional
import logging

from src.core.shared.exceptions import (
    CodeMismatchError,
    EntityNotFoundError,
    NotAssignedError,
)

from .entities import VisitaEntity, EquipamentoEntity
from .ports import EquipamentoRepository

logger = logging.getLogger(__name__)


def codigos_conferem(codigo_lido: Optional[str], codigo_registrado: Optional[str]) -> bool:
    """Comparação sem diferenciar maiúsculas; código ausente nunca confere."""
    if not codigo_lido or not codigo_registrado:
        return False
    return codigo_lido.casefold() == codigo_registrado.casefold()


class VerificadorEquipamento:
    """
    Portão de verificação.

    Example:
        verificador = VerificadorEquipamento(equipamento_repo)
        equipamento = verificador.verificar(visita, "eng-1", "ABC123")
    """

    def __init__(self, equipamento_repo: EquipamentoRepository):
        self.equipamento_repo = equipamento_repo

    def verificar(
        self,
        visita: VisitaEntity,
        engenheiro_id: str,
        codigo_lido: str,
    ) -> EquipamentoEntity:
        """
        Executa as verificações, na ordem: atribuição, equipamento, código.

        Returns:
            Equipamento verificado

        Raises:
            NotAssignedError: Engenheiro não é principal nem atribuído
            EntityNotFoundError: Equipamento da visita não existe
            CodeMismatchError: Código lido não confere
        """
        if not visita.esta_atribuido(engenheiro_id):
            logger.warning(
                f"Engenheiro {engenheiro_id} tentou iniciar visita "
                f"{visita.numero_ticket} sem estar atribuído"
            )
            raise NotAssignedError(
                f"Engenheiro {engenheiro_id} não está atribuído à visita {visita.numero_ticket}",
                visita_id=visita.id,
                engenheiro_id=engenheiro_id,
            )

        equipamento = self._ler_equipamento(visita.equipamento_id)
        if not equipamento:
            raise EntityNotFoundError(
                f"Equipamento {visita.equipamento_id} não encontrado",
                entity_type="Equipamento",
                entity_id=visita.equipamento_id,
            )

        if not codigos_conferem(codigo_lido, equipamento.codigo_qr):
            logger.warning(
                f"Código lido não confere para visita {visita.numero_ticket} "
                f"(equipamento {equipamento.id})"
            )
            raise CodeMismatchError(
                "Código lido não confere com o equipamento da visita",
                equipamento_id=equipamento.id,
                codigo_lido=codigo_lido,
            )

        return equipamento

    def _ler_equipamento(self, equipamento_id: str) -> Optional[EquipamentoEntity]:
        """
        Lê o equipamento da fonte autoritativa.

        Sobre o repositório com cache usa recarregar(), que ignora a
        entrada em cache e a substitui pelo valor lido.
        """
        recarregar = getattr(self.equipamento_repo, "recarregar", None)
        if recarregar is not None:
            return recarregar(equipamento_id)
        return self.equipamento_repo.get_by_id(equipamento_id)

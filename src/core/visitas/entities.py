"""
Entidades do Domínio de Visitas de Manutenção.

Este módulo define as entidades de domínio que encapsulam
regras de negócio relacionadas a visitas de campo.

Entidades:
- VisitaEntity: Agregado principal (visita de manutenção)
- AtribuicaoEntity: Engenheiro atribuído a uma visita
- RegistroAuditoria: Entrada imutável da trilha de auditoria
- SolicitacaoManutencaoEntity: Solicitação que origina visitas
- EquipamentoEntity, HospitalEntity, EngenheiroEntity: colaboradores
  externos lidos via ports

Regras de Negócio Encapsuladas:
- Transições de status sempre validadas pela máquina de estados
- iniciada_em definido ao entrar em EM_ANDAMENTO
- concluida_em definido somente em CONCLUIDA
- Conjunto de atribuições sem engenheiros duplicados
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple
import uuid

from src.core.shared.exceptions import (
    ValidationError,
    BusinessRuleViolationError,
)


def agora() -> datetime:
    """Momento atual em UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


class _EnumComTexto(Enum):
    """Enum com conversão tolerante a partir de nome ou valor."""

    @classmethod
    def from_string(cls, value: str):
        """
        Converte string para enum.

        Args:
            value: Nome ("EM_ANDAMENTO") ou valor ("Em Andamento")

        Raises:
            ValueError: Se valor inválido
        """
        try:
            return cls[value.upper().replace(" ", "_")]
        except KeyError:
            pass

        for membro in cls:
            if membro.value.lower() == value.lower():
                return membro

        raise ValueError(f"{cls.__name__} inválido: {value}")


class VisitaStatus(_EnumComTexto):
    """
    Estados possíveis de uma visita.

    Fluxo de Estados:
        PENDENTE → AGENDADA → EM_ANDAMENTO → CONCLUIDA
                      ↑            ↓
                      ├── AGUARDANDO_PECAS
                      └── SEGUNDA_VISITA

        PENDENTE, AGENDADA, EM_ANDAMENTO → CANCELADA
    """

    PENDENTE = "Pendente"
    AGENDADA = "Agendada"
    EM_ANDAMENTO = "Em Andamento"
    AGUARDANDO_PECAS = "Aguardando Peças"
    SEGUNDA_VISITA = "Segunda Visita"
    REAGENDADA = "Reagendada"
    CONCLUIDA = "Concluída"
    CANCELADA = "Cancelada"


class OrigemVisita(_EnumComTexto):
    """Como a visita foi iniciada."""

    CONTRATO_AUTOMATICO = "Contrato Automático"
    CENTRAL_ATENDIMENTO = "Central de Atendimento"
    APP_CLIENTE = "App do Cliente"
    VENDAS_MANUAL = "Vendas (Manual)"


class ResultadoVisita(_EnumComTexto):
    """Classificação do resultado de uma visita em andamento."""

    CONCLUIDA = "Concluída"
    NECESSITA_SEGUNDA_VISITA = "Necessita Segunda Visita"
    NECESSITA_PECA = "Necessita Peça"
    NAO_CONCLUIDA = "Não Concluída"


class SolicitacaoStatus(_EnumComTexto):
    """Estados de uma solicitação de manutenção."""

    PENDENTE = "Pendente"
    ATRIBUIDA = "Atribuída"
    EM_ANDAMENTO = "Em Andamento"
    NECESSITA_SEGUNDA_VISITA = "Necessita Segunda Visita"
    NECESSITA_PECA = "Necessita Peça"
    AGUARDANDO_PECA = "Aguardando Peça"
    AGUARDANDO_APROVACAO_CLIENTE = "Aguardando Aprovação do Cliente"
    EM_ESPERA = "Em Espera"
    CONCLUIDA = "Concluída"
    CANCELADA = "Cancelada"

    @property
    def e_terminal(self) -> bool:
        return self in (SolicitacaoStatus.CONCLUIDA, SolicitacaoStatus.CANCELADA)


class PapelUsuario(_EnumComTexto):
    """Papéis de usuário relevantes para o fluxo de visitas."""

    SUPER_ADMIN = "Super Admin"
    GERENTE_MANUTENCAO = "Gerente de Manutenção"
    SUPORTE_MANUTENCAO = "Suporte de Manutenção"
    SUPORTE_VENDAS = "Suporte de Vendas"
    ENGENHEIRO = "Engenheiro"
    CLIENTE = "Cliente"


# =============================================================================
# Atribuição e Auditoria
# =============================================================================

@dataclass
class AtribuicaoEntity:
    """
    Engenheiro atribuído a uma visita.

    Attributes:
        visita_id: Visita
        engenheiro_id: Engenheiro atribuído
        atribuido_por_id: Quem fez a atribuição (None para automática)
        atribuido_em: Momento da atribuição
    """

    visita_id: str
    engenheiro_id: str
    atribuido_por_id: Optional[str] = None
    atribuido_em: datetime = field(default_factory=agora)


@dataclass(frozen=True)
class RegistroAuditoria:
    """
    Entrada append-only da trilha de auditoria.

    status_anterior é None apenas no registro de criação.
    """

    visita_id: str
    ator_id: str
    status_anterior: Optional[str]
    status_novo: str
    nota: str = ""
    registrado_em: datetime = field(default_factory=agora)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


# =============================================================================
# Visita (Agregado)
# =============================================================================

@dataclass
class VisitaEntity:
    """
    Entidade de Domínio: Visita de Manutenção.

    Um encontro agendado/realizado entre engenheiro(s) e um equipamento.

    Invariantes:
    - Status só muda por transições aprovadas pela máquina de estados
    - iniciada_em é definido ao entrar em EM_ANDAMENTO e mantido depois
    - concluida_em é definido se e somente se status é CONCLUIDA
    - engenheiro_id único dentro de atribuicoes
    - Visitas nunca são removidas (CANCELADA é terminal, mas retida)

    Attributes:
        id: Identificador único (UUID)
        numero_ticket: Número legível (VISIT-YYYYMMDD-NNNN)
        solicitacao_id: Solicitação de origem
        cliente_id: Cliente
        equipamento_id: Equipamento a ser atendido
        data_agendada: Data/hora agendada
        origem: Como a visita foi criada
        status: Estado atual
        engenheiro_principal_id: Engenheiro responsável (pode ser vazio)
        atribuicoes: Engenheiros atribuídos, em ordem de atribuição
        pago: Se é visita paga
        custo: Valor da visita
        iniciada_em: Início do atendimento
        concluida_em: Conclusão
        resultado: Resultado registrado pelo engenheiro
        visita_pai_id: Visita anterior (em visitas de retorno)
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    numero_ticket: str = ""

    solicitacao_id: str = ""
    cliente_id: str = ""
    equipamento_id: str = ""

    data_agendada: Optional[datetime] = None
    origem: OrigemVisita = OrigemVisita.CENTRAL_ATENDIMENTO
    status: VisitaStatus = VisitaStatus.PENDENTE

    engenheiro_principal_id: Optional[str] = None
    atribuicoes: List[AtribuicaoEntity] = field(default_factory=list)

    pago: bool = False
    custo: Optional[Decimal] = None

    iniciada_em: Optional[datetime] = None
    concluida_em: Optional[datetime] = None
    resultado: Optional[ResultadoVisita] = None

    visita_pai_id: Optional[str] = None
    observacoes: str = ""

    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def criar(
        cls,
        numero_ticket: str,
        solicitacao_id: str,
        cliente_id: str,
        equipamento_id: str,
        data_agendada: datetime,
        origem: OrigemVisita,
        status_inicial: VisitaStatus,
        pago: bool = False,
        custo: Optional[Decimal] = None,
        visita_pai_id: Optional[str] = None,
        observacoes: str = "",
    ) -> "VisitaEntity":
        """
        Factory method para criar visita com validações.

        Raises:
            ValidationError: Se dados obrigatórios ausentes ou custo negativo
        """
        for nome, valor in (
            ("numero_ticket", numero_ticket),
            ("solicitacao_id", solicitacao_id),
            ("cliente_id", cliente_id),
            ("equipamento_id", equipamento_id),
        ):
            if not valor:
                raise ValidationError(f"Campo {nome} é obrigatório", field=nome)

        if data_agendada is None:
            raise ValidationError("Data agendada é obrigatória", field="data_agendada")

        if custo is not None and custo < 0:
            raise ValidationError("Custo não pode ser negativo", field="custo")

        return cls(
            numero_ticket=numero_ticket,
            solicitacao_id=solicitacao_id,
            cliente_id=cliente_id,
            equipamento_id=equipamento_id,
            data_agendada=data_agendada,
            origem=origem,
            status=status_inicial,
            pago=pago,
            custo=custo,
            visita_pai_id=visita_pai_id,
            observacoes=(observacoes or "").strip(),
        )

    def transicionar(
        self,
        novo_status: VisitaStatus,
        momento: Optional[datetime] = None,
    ) -> VisitaStatus:
        """
        Aplica transição validada pela máquina de estados.

        Args:
            novo_status: Status desejado
            momento: Instante da transição (default: agora)

        Returns:
            Status anterior

        Raises:
            InvalidTransitionError: Se transição não permitida
        """
        from .maquina_estados import validar_transicao

        validar_transicao(self.status, novo_status)

        momento = momento or agora()
        anterior = self.status
        self.status = novo_status

        if novo_status == VisitaStatus.EM_ANDAMENTO and self.iniciada_em is None:
            self.iniciada_em = momento
        if novo_status == VisitaStatus.CONCLUIDA:
            self.concluida_em = momento

        self._atualizar_timestamp(momento)
        return anterior

    def reagendar_para(self, nova_data: datetime) -> None:
        """Altera a data agendada (sem mudar status)."""
        if nova_data is None:
            raise ValidationError("Nova data é obrigatória", field="data_agendada")
        self.data_agendada = nova_data
        self._atualizar_timestamp()

    def substituir_atribuicoes(
        self,
        engenheiros_ids: List[str],
        atribuido_por_id: Optional[str] = None,
        momento: Optional[datetime] = None,
    ) -> None:
        """
        Substitui o conjunto de atribuições.

        Todas as atribuições anteriores são removidas e o novo conjunto
        é inserido sem duplicatas, na ordem recebida. O primeiro engenheiro
        vira principal somente se a visita ainda não tinha principal.

        Raises:
            BusinessRuleViolationError: Se visita em estado terminal
        """
        if self.esta_encerrada:
            raise BusinessRuleViolationError(
                f"Não é possível atribuir engenheiros a visita {self.status.value}",
                rule="visita_encerrada_imutavel"
            )

        momento = momento or agora()
        unicos = list(dict.fromkeys(engenheiros_ids))

        self.atribuicoes = [
            AtribuicaoEntity(
                visita_id=self.id,
                engenheiro_id=engenheiro_id,
                atribuido_por_id=atribuido_por_id,
                atribuido_em=momento,
            )
            for engenheiro_id in unicos
        ]

        if not self.engenheiro_principal_id and unicos:
            self.engenheiro_principal_id = unicos[0]

        self._atualizar_timestamp(momento)

    def registrar_resultado(self, resultado: ResultadoVisita) -> None:
        """Registra o resultado informado pelo engenheiro."""
        self.resultado = resultado
        self._atualizar_timestamp()

    def esta_atribuido(self, engenheiro_id: str) -> bool:
        """Verifica se engenheiro é principal ou está entre os atribuídos."""
        if not engenheiro_id:
            return False
        if self.engenheiro_principal_id == engenheiro_id:
            return True
        return engenheiro_id in self.atribuidos_ids

    @property
    def atribuidos_ids(self) -> Tuple[str, ...]:
        """IDs dos engenheiros atribuídos, em ordem de atribuição."""
        return tuple(a.engenheiro_id for a in self.atribuicoes)

    @property
    def engenheiros_ids(self) -> Tuple[str, ...]:
        """Atribuídos mais o principal (se não estiver entre eles)."""
        ids = list(self.atribuidos_ids)
        if self.engenheiro_principal_id and self.engenheiro_principal_id not in ids:
            ids.append(self.engenheiro_principal_id)
        return tuple(ids)

    @property
    def engenheiros_responsaveis(self) -> Tuple[str, ...]:
        return self.engenheiros_ids

    @property
    def esta_encerrada(self) -> bool:
        return self.status in (VisitaStatus.CONCLUIDA, VisitaStatus.CANCELADA)

    @property
    def esta_ativa(self) -> bool:
        return not self.esta_encerrada

    def _atualizar_timestamp(self, momento: Optional[datetime] = None) -> None:
        self.atualizado_em = momento or agora()

    def __repr__(self) -> str:
        return (
            f"VisitaEntity("
            f"id={self.id[:8]}..., "
            f"ticket={self.numero_ticket}, "
            f"status={self.status.value}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VisitaEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


# =============================================================================
# Solicitação de Manutenção
# =============================================================================

@dataclass
class SolicitacaoManutencaoEntity:
    """
    Solicitação de manutenção aberta por um cliente.

    Attributes:
        id: Identificador único
        cliente_id: Cliente solicitante
        equipamento_id: Equipamento com problema
        descricao: Descrição do problema
        status: Estado da solicitação
        engenheiro_atribuido_id: Engenheiro responsável
        observacoes: Notas acumuladas
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    cliente_id: str = ""
    equipamento_id: str = ""
    descricao: str = ""
    status: SolicitacaoStatus = SolicitacaoStatus.PENDENTE
    engenheiro_atribuido_id: Optional[str] = None
    observacoes: str = ""
    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    @classmethod
    def criar(
        cls,
        cliente_id: str,
        equipamento_id: str,
        descricao: str,
    ) -> "SolicitacaoManutencaoEntity":
        """
        Cria solicitação PENDENTE.

        Raises:
            ValidationError: Se cliente, equipamento ou descrição vazios
        """
        if not cliente_id:
            raise ValidationError("Cliente é obrigatório", field="cliente_id")
        if not equipamento_id:
            raise ValidationError("Equipamento é obrigatório", field="equipamento_id")
        if not descricao or not descricao.strip():
            raise ValidationError("Descrição é obrigatória", field="descricao")

        return cls(
            cliente_id=cliente_id,
            equipamento_id=equipamento_id,
            descricao=descricao.strip(),
        )

    def atribuir_engenheiro(self, engenheiro_id: str) -> None:
        """Atribui engenheiro e marca solicitação como ATRIBUIDA."""
        if not engenheiro_id:
            raise ValidationError("ID do engenheiro é obrigatório", field="engenheiro_id")
        self.engenheiro_atribuido_id = engenheiro_id
        self.status = SolicitacaoStatus.ATRIBUIDA
        self.atualizado_em = agora()

    def alterar_status(self, novo_status: SolicitacaoStatus, nota: Optional[str] = None) -> None:
        """
        Altera status, acrescentando nota às observações.

        Raises:
            BusinessRuleViolationError: Se solicitação já encerrada
        """
        if self.status.e_terminal and novo_status != self.status:
            raise BusinessRuleViolationError(
                f"Solicitação {self.status.value} não pode mudar de status",
                rule="solicitacao_encerrada_imutavel"
            )
        self.status = novo_status
        if nota:
            self.observacoes = f"{self.observacoes}\n{nota}".strip()
        self.atualizado_em = agora()

    @property
    def esta_ativa(self) -> bool:
        return not self.status.e_terminal

    @property
    def engenheiros_responsaveis(self) -> Tuple[str, ...]:
        if self.engenheiro_atribuido_id:
            return (self.engenheiro_atribuido_id,)
        return ()


# =============================================================================
# Colaboradores externos (somente leitura para o núcleo)
# =============================================================================

@dataclass
class EquipamentoEntity:
    """
    Equipamento atendido em campo.

    Pertence a um hospital (local de atendimento) ou diretamente
    a um cliente, caso em que não há localização para atribuição
    automática.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    nome: str = ""
    codigo_qr: Optional[str] = None
    numero_serie: Optional[str] = None
    hospital_id: Optional[str] = None
    cliente_id: Optional[str] = None

    @property
    def pertence_a_cliente(self) -> bool:
        return self.hospital_id is None and self.cliente_id is not None


@dataclass
class HospitalEntity:
    """Unidade onde equipamentos ficam instalados."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    nome: str = ""
    localizacao: Optional[str] = None


@dataclass(frozen=True)
class AreaCobertura:
    """Região geográfica atendida por um engenheiro."""

    nome: str
    ativa: bool = True


@dataclass
class EngenheiroEntity:
    """
    Engenheiro de campo.

    A cobertura é comparada por contenção de texto sem diferenciar
    maiúsculas: o nome da área deve conter a localização informada.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    nome: str = ""
    ativo: bool = True
    areas_cobertura: List[AreaCobertura] = field(default_factory=list)

    def atende(self, localizacao: str) -> bool:
        """Verifica se alguma área ativa cobre a localização."""
        if not localizacao:
            return False
        alvo = localizacao.casefold()
        return any(
            area.ativa and alvo in area.nome.casefold()
            for area in self.areas_cobertura
        )

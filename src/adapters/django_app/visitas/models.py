"""
Django Models para o domínio de Visitas.

Estes models são ADAPTERS - implementam a persistência para as
entidades de domínio definidas em src/core/visitas/entities.py.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Lógica de negócio fica nas Entities do Core
- Models são mapeados para/de Entities via Mappers

Tabelas:
- visitas / visita_atribuicoes / visita_auditoria
- solicitacoes_manutencao
- equipamentos / hospitais / engenheiros / engenheiro_areas_cobertura
"""

from django.db import models
from django.utils import timezone

from src.core.visitas.entities import (
    VisitaStatus,
    OrigemVisita,
    ResultadoVisita,
    SolicitacaoStatus,
)


def _choices(enum_cls):
    """Choices Django espelhando os valores do enum do Core."""
    return [(membro.value, membro.value) for membro in enum_cls]


class VisitaModel(models.Model):
    """
    Model Django para persistência de Visitas.

    Relacionamentos guardados como strings (IDs), exceto as
    atribuições, que pertencem à visita.
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    numero_ticket = models.CharField(
        max_length=30,
        unique=True,
        help_text="Número legível VISIT-YYYYMMDD-NNNN"
    )

    solicitacao_id = models.CharField(max_length=36, db_index=True)
    cliente_id = models.CharField(max_length=100, db_index=True)
    equipamento_id = models.CharField(max_length=36, db_index=True)

    data_agendada = models.DateTimeField(null=True, blank=True)
    origem = models.CharField(max_length=50, choices=_choices(OrigemVisita))
    status = models.CharField(
        max_length=50,
        choices=_choices(VisitaStatus),
        default=VisitaStatus.PENDENTE.value,
        db_index=True,
    )

    engenheiro_principal_id = models.CharField(max_length=36, null=True, blank=True, db_index=True)

    pago = models.BooleanField(default=False)
    custo = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    iniciada_em = models.DateTimeField(null=True, blank=True)
    concluida_em = models.DateTimeField(null=True, blank=True)
    resultado = models.CharField(
        max_length=50,
        choices=_choices(ResultadoVisita),
        null=True,
        blank=True,
    )

    visita_pai_id = models.CharField(max_length=36, null=True, blank=True)
    observacoes = models.TextField(blank=True, default="")

    criado_em = models.DateTimeField(default=timezone.now, db_index=True)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'visitas'
        verbose_name = 'Visita'
        verbose_name_plural = 'Visitas'
        ordering = ['-criado_em']
        indexes = [
            models.Index(fields=['status', 'data_agendada'], name='visitas_status_data_idx'),
        ]

    def __str__(self):
        return f"{self.numero_ticket} ({self.status})"


class AtribuicaoModel(models.Model):
    """Engenheiro atribuído a uma visita (único por visita)."""

    id = models.BigAutoField(primary_key=True)

    visita = models.ForeignKey(
        VisitaModel,
        on_delete=models.CASCADE,
        related_name='atribuicoes',
    )
    engenheiro_id = models.CharField(max_length=36, db_index=True)
    atribuido_por_id = models.CharField(max_length=100, null=True, blank=True)
    atribuido_em = models.DateTimeField(default=timezone.now)
    posicao = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'visita_atribuicoes'
        ordering = ['posicao', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['visita', 'engenheiro_id'],
                name='uniq_atribuicao_visita_engenheiro',
            ),
        ]


class RegistroAuditoriaModel(models.Model):
    """Trilha de auditoria append-only das transições de visitas."""

    id = models.CharField(max_length=36, primary_key=True, editable=False)
    visita_id = models.CharField(max_length=36, db_index=True)
    ator_id = models.CharField(max_length=100)
    status_anterior = models.CharField(max_length=50, null=True, blank=True)
    status_novo = models.CharField(max_length=50)
    nota = models.TextField(blank=True, default="")
    registrado_em = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'visita_auditoria'
        ordering = ['registrado_em']
        indexes = [
            models.Index(fields=['visita_id', 'registrado_em'], name='visita_audit_visita_data_idx'),
        ]

    def __str__(self):
        return f"{self.visita_id[:8]}: {self.status_anterior} -> {self.status_novo}"


class SolicitacaoManutencaoModel(models.Model):
    """Solicitação de manutenção aberta por um cliente."""

    id = models.CharField(max_length=36, primary_key=True, editable=False)
    cliente_id = models.CharField(max_length=100, db_index=True)
    equipamento_id = models.CharField(max_length=36, db_index=True)
    descricao = models.TextField()
    status = models.CharField(
        max_length=50,
        choices=_choices(SolicitacaoStatus),
        default=SolicitacaoStatus.PENDENTE.value,
        db_index=True,
    )
    engenheiro_atribuido_id = models.CharField(max_length=36, null=True, blank=True, db_index=True)
    observacoes = models.TextField(blank=True, default="")
    criado_em = models.DateTimeField(default=timezone.now)
    atualizado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'solicitacoes_manutencao'
        ordering = ['-criado_em']


class HospitalModel(models.Model):
    id = models.CharField(max_length=36, primary_key=True, editable=False)
    nome = models.CharField(max_length=200)
    localizacao = models.CharField(max_length=200, null=True, blank=True)

    class Meta:
        db_table = 'hospitais'


class EquipamentoModel(models.Model):
    """Equipamento atendido (de hospital ou diretamente de cliente)."""

    id = models.CharField(max_length=36, primary_key=True, editable=False)
    nome = models.CharField(max_length=200, blank=True, default="")
    codigo_qr = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    numero_serie = models.CharField(max_length=100, null=True, blank=True)
    hospital_id = models.CharField(max_length=36, null=True, blank=True, db_index=True)
    cliente_id = models.CharField(max_length=100, null=True, blank=True)

    class Meta:
        db_table = 'equipamentos'


class EngenheiroModel(models.Model):
    id = models.CharField(max_length=36, primary_key=True, editable=False)
    nome = models.CharField(max_length=200)
    ativo = models.BooleanField(default=True, db_index=True)
    criado_em = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'engenheiros'
        ordering = ['criado_em', 'id']


class AreaCoberturaModel(models.Model):
    id = models.BigAutoField(primary_key=True)
    engenheiro = models.ForeignKey(
        EngenheiroModel,
        on_delete=models.CASCADE,
        related_name='areas_cobertura',
    )
    nome = models.CharField(max_length=200)
    ativa = models.BooleanField(default=True)

    class Meta:
        db_table = 'engenheiro_areas_cobertura'
        ordering = ['id']

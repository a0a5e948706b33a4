"""
Migration inicial para o domínio de Visitas.

Cria as tabelas:
- visitas / visita_atribuicoes / visita_auditoria
- solicitacoes_manutencao
- hospitais / equipamentos / engenheiros / engenheiro_areas_cobertura
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


VISITA_STATUS = [
    ('Pendente', 'Pendente'),
    ('Agendada', 'Agendada'),
    ('Em Andamento', 'Em Andamento'),
    ('Aguardando Peças', 'Aguardando Peças'),
    ('Segunda Visita', 'Segunda Visita'),
    ('Reagendada', 'Reagendada'),
    ('Concluída', 'Concluída'),
    ('Cancelada', 'Cancelada'),
]

ORIGEM_VISITA = [
    ('Contrato Automático', 'Contrato Automático'),
    ('Central de Atendimento', 'Central de Atendimento'),
    ('App do Cliente', 'App do Cliente'),
    ('Vendas (Manual)', 'Vendas (Manual)'),
]

RESULTADO_VISITA = [
    ('Concluída', 'Concluída'),
    ('Necessita Segunda Visita', 'Necessita Segunda Visita'),
    ('Necessita Peça', 'Necessita Peça'),
    ('Não Concluída', 'Não Concluída'),
]

SOLICITACAO_STATUS = [
    ('Pendente', 'Pendente'),
    ('Atribuída', 'Atribuída'),
    ('Em Andamento', 'Em Andamento'),
    ('Necessita Segunda Visita', 'Necessita Segunda Visita'),
    ('Necessita Peça', 'Necessita Peça'),
    ('Aguardando Peça', 'Aguardando Peça'),
    ('Aguardando Aprovação do Cliente', 'Aguardando Aprovação do Cliente'),
    ('Em Espera', 'Em Espera'),
    ('Concluída', 'Concluída'),
    ('Cancelada', 'Cancelada'),
]


class Migration(migrations.Migration):
    """Migration inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        # =================================================================
        # Tabela: visitas
        # =================================================================
        migrations.CreateModel(
            name='VisitaModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('numero_ticket', models.CharField(
                    help_text='Número legível VISIT-YYYYMMDD-NNNN',
                    max_length=30,
                    unique=True,
                )),
                ('solicitacao_id', models.CharField(db_index=True, max_length=36)),
                ('cliente_id', models.CharField(db_index=True, max_length=100)),
                ('equipamento_id', models.CharField(db_index=True, max_length=36)),
                ('data_agendada', models.DateTimeField(blank=True, null=True)),
                ('origem', models.CharField(choices=ORIGEM_VISITA, max_length=50)),
                ('status', models.CharField(
                    choices=VISITA_STATUS,
                    db_index=True,
                    default='Pendente',
                    max_length=50,
                )),
                ('engenheiro_principal_id', models.CharField(blank=True, db_index=True, max_length=36, null=True)),
                ('pago', models.BooleanField(default=False)),
                ('custo', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('iniciada_em', models.DateTimeField(blank=True, null=True)),
                ('concluida_em', models.DateTimeField(blank=True, null=True)),
                ('resultado', models.CharField(blank=True, choices=RESULTADO_VISITA, max_length=50, null=True)),
                ('visita_pai_id', models.CharField(blank=True, max_length=36, null=True)),
                ('observacoes', models.TextField(blank=True, default='')),
                ('criado_em', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Visita',
                'verbose_name_plural': 'Visitas',
                'db_table': 'visitas',
                'ordering': ['-criado_em'],
                'indexes': [
                    models.Index(fields=['status', 'data_agendada'], name='visitas_status_data_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: visita_atribuicoes
        # =================================================================
        migrations.CreateModel(
            name='AtribuicaoModel',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('engenheiro_id', models.CharField(db_index=True, max_length=36)),
                ('atribuido_por_id', models.CharField(blank=True, max_length=100, null=True)),
                ('atribuido_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('posicao', models.PositiveIntegerField(default=0)),
                ('visita', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='atribuicoes',
                    to='visitas.visitamodel',
                )),
            ],
            options={
                'db_table': 'visita_atribuicoes',
                'ordering': ['posicao', 'id'],
                'constraints': [
                    models.UniqueConstraint(
                        fields=('visita', 'engenheiro_id'),
                        name='uniq_atribuicao_visita_engenheiro',
                    ),
                ],
            },
        ),

        # =================================================================
        # Tabela: visita_auditoria
        # =================================================================
        migrations.CreateModel(
            name='RegistroAuditoriaModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('visita_id', models.CharField(db_index=True, max_length=36)),
                ('ator_id', models.CharField(max_length=100)),
                ('status_anterior', models.CharField(blank=True, max_length=50, null=True)),
                ('status_novo', models.CharField(max_length=50)),
                ('nota', models.TextField(blank=True, default='')),
                ('registrado_em', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'visita_auditoria',
                'ordering': ['registrado_em'],
                'indexes': [
                    models.Index(fields=['visita_id', 'registrado_em'], name='visita_audit_visita_data_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: solicitacoes_manutencao
        # =================================================================
        migrations.CreateModel(
            name='SolicitacaoManutencaoModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('cliente_id', models.CharField(db_index=True, max_length=100)),
                ('equipamento_id', models.CharField(db_index=True, max_length=36)),
                ('descricao', models.TextField()),
                ('status', models.CharField(
                    choices=SOLICITACAO_STATUS,
                    db_index=True,
                    default='Pendente',
                    max_length=50,
                )),
                ('engenheiro_atribuido_id', models.CharField(blank=True, db_index=True, max_length=36, null=True)),
                ('observacoes', models.TextField(blank=True, default='')),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
                ('atualizado_em', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'solicitacoes_manutencao',
                'ordering': ['-criado_em'],
            },
        ),

        # =================================================================
        # Colaboradores: hospitais, equipamentos, engenheiros
        # =================================================================
        migrations.CreateModel(
            name='HospitalModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=200)),
                ('localizacao', models.CharField(blank=True, max_length=200, null=True)),
            ],
            options={
                'db_table': 'hospitais',
            },
        ),
        migrations.CreateModel(
            name='EquipamentoModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('nome', models.CharField(blank=True, default='', max_length=200)),
                ('codigo_qr', models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ('numero_serie', models.CharField(blank=True, max_length=100, null=True)),
                ('hospital_id', models.CharField(blank=True, db_index=True, max_length=36, null=True)),
                ('cliente_id', models.CharField(blank=True, max_length=100, null=True)),
            ],
            options={
                'db_table': 'equipamentos',
            },
        ),
        migrations.CreateModel(
            name='EngenheiroModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=200)),
                ('ativo', models.BooleanField(db_index=True, default=True)),
                ('criado_em', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'engenheiros',
                'ordering': ['criado_em', 'id'],
            },
        ),
        migrations.CreateModel(
            name='AreaCoberturaModel',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=200)),
                ('ativa', models.BooleanField(default=True)),
                ('engenheiro', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='areas_cobertura',
                    to='visitas.engenheiromodel',
                )),
            ],
            options={
                'db_table': 'engenheiro_areas_cobertura',
                'ordering': ['id'],
            },
        ),
    ]

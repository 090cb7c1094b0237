from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Produto',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=255, verbose_name='Nome do Produto')),
                ('descricao', models.TextField(blank=True, default='', verbose_name='Descrição')),
                ('preco', models.DecimalField(decimal_places=2, max_digits=10, verbose_name='Preço de Venda')),
                ('categoria', models.CharField(choices=[('Pastel', 'Pastel'), ('Bebida', 'Bebida'), ('Doce', 'Doce')], max_length=20)),
                ('video_url', models.CharField(blank=True, max_length=500, null=True)),
                ('popular', models.BooleanField(default=False)),
            ],
            options={
                'verbose_name': 'Produto',
                'verbose_name_plural': 'Produtos',
                'db_table': 'products',
            },
        ),
        migrations.CreateModel(
            name='Usuario',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=255)),
                ('email', models.CharField(blank=True, default='', max_length=255)),
                ('cpf', models.CharField(max_length=11, unique=True, verbose_name='CPF')),
                ('historico', models.JSONField(blank=True, default=list)),
                ('pontos', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'Usuário',
                'verbose_name_plural': 'Usuários',
                'db_table': 'users',
            },
        ),
        migrations.CreateModel(
            name='Pedido',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('usuario_id', models.CharField(db_index=True, max_length=64)),
                ('usuario_nome', models.CharField(blank=True, default='', max_length=255)),
                ('itens', models.JSONField(default=list)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('criado_em', models.DateTimeField(db_index=True)),
                ('status', models.CharField(choices=[('active', 'Na fila'), ('completed', 'Concluído')], db_index=True, default='active', max_length=20)),
                ('concluido_em', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Pedido',
                'verbose_name_plural': 'Pedidos',
                'db_table': 'orders',
                'ordering': ['criado_em'],
            },
        ),
    ]

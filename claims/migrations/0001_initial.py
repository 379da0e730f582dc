from django.db import migrations, models


def create_claim_space(apps, schema_editor):
    ClaimSpace = apps.get_model('claims', 'ClaimSpace')
    ClaimSpace.objects.using(schema_editor.connection.alias).get_or_create(id=1)


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Zone',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('area', models.CharField(db_index=True, max_length=100)),
                ('region', models.CharField(db_index=True, max_length=100)),
                ('trade_node', models.CharField(db_index=True, max_length=100)),
                ('kind', models.CharField(choices=[('land', 'Land'), ('sea', 'Sea'), ('lake', 'Lake'), ('wasteland', 'Wasteland')], default='land', max_length=20)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Claim',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.PositiveBigIntegerField(editable=False, primary_key=True, serialize=False)),
                ('owner', models.CharField(db_index=True, max_length=64)),
                ('display_name', models.CharField(max_length=100)),
                ('granularity', models.CharField(choices=[('area', 'Area'), ('region', 'Region'), ('trade-node', 'Trade Node')], max_length=20)),
                ('target', models.CharField(max_length=100)),
            ],
            options={
                'ordering': ['id'],
                'indexes': [models.Index(fields=['granularity', 'target'], name='claim_granularity_target_idx')],
            },
        ),
        migrations.CreateModel(
            name='ClaimSpace',
            fields=[
                ('id', models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                ('next_claim_id', models.PositiveBigIntegerField(default=1)),
            ],
        ),
        migrations.RunPython(create_claim_space, migrations.RunPython.noop),
    ]

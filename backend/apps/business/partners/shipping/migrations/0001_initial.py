import django.core.validators
import django.db.models.deletion
import uuid
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='ShippingCity',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='City name')),
                ('province', models.CharField(max_length=100, verbose_name='Province')),
                ('distance_km', models.DecimalField(decimal_places=2, default=Decimal('0'), help_text='Approximate distance from the store', max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Distance (km)')),
                ('is_custom_rate', models.BooleanField(default=False, help_text='If set, the custom price is charged regardless of weight', verbose_name='Custom rate')),
                ('custom_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Custom price')),
                ('latitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('longitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
            ],
            options={
                'verbose_name': 'Shipping City',
                'verbose_name_plural': 'Shipping Cities',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ShippingConfig',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('base_rate', models.DecimalField(decimal_places=2, default=Decimal('2.50'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Base rate')),
                ('rate_per_km', models.DecimalField(decimal_places=4, default=Decimal('0.35'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Rate per km')),
                ('rate_per_kg', models.DecimalField(decimal_places=4, default=Decimal('0.25'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Rate per kg')),
                ('iva_rate', models.DecimalField(decimal_places=4, default=Decimal('0.15'), max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(1)], verbose_name='IVA rate')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
            ],
            options={
                'verbose_name': 'Shipping Config',
                'verbose_name_plural': 'Shipping Config',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='ShippingZone',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='Is active')),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Zone name')),
                ('provinces', models.JSONField(blank=True, default=list, help_text='Province or city names belonging to this zone', verbose_name='Provinces')),
                ('multiplier', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Cost per km')),
            ],
            options={
                'verbose_name': 'Shipping Zone',
                'verbose_name_plural': 'Shipping Zones',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ShippingRate',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='Is active')),
                ('min_weight', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Min weight (kg)')),
                ('max_weight', models.DecimalField(decimal_places=3, max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Max weight (kg)')),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Price')),
                ('zone', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rates', to='shipping.shippingzone')),
            ],
            options={
                'verbose_name': 'Shipping Rate',
                'verbose_name_plural': 'Shipping Rates',
                'ordering': ['zone', 'min_weight'],
            },
        ),
    ]

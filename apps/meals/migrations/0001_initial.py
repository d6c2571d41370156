from decimal import Decimal
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('roster', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MealCancellation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField()),
                ('meal_type', models.CharField(choices=[('BREAKFAST', 'Breakfast'), ('LUNCH', 'Lunch'), ('SNACK', 'Snack')], max_length=20)),
                ('reason', models.CharField(blank=True, max_length=500)),
                ('meal_price', models.DecimalField(decimal_places=2, editable=False, max_digits=8, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('refunded', models.BooleanField(default=False)),
                ('refunded_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('child', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='meal_cancellations', to='roster.child')),
            ],
            options={
                'db_table': 'meal_cancellations',
                'ordering': ['-date', 'meal_type'],
                'indexes': [
                    models.Index(fields=['date'], name='meal_cancel_date_idx'),
                    models.Index(fields=['refunded', 'date'], name='meal_cancel_refunded_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('child', 'date', 'meal_type'), name='unique_meal_cancellation_slot'),
                ],
            },
        ),
    ]

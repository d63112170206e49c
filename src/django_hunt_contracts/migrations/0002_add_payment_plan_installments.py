"""Add installment position and due date to PaymentItem."""

from django.db import migrations, models


class Migration(migrations.Migration):
    """Payment plans split the guide fee into dated installment items."""

    dependencies = [
        ('django_hunt_contracts', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='paymentitem',
            name='installment_number',
            field=models.PositiveSmallIntegerField(
                blank=True,
                help_text='Position in the payment plan, starting at 1',
                null=True,
            ),
        ),
        migrations.AddField(
            model_name='paymentitem',
            name='due_date',
            field=models.DateField(
                blank=True,
                help_text='When a planned installment falls due',
                null=True,
            ),
        ),
        migrations.AddConstraint(
            model_name='paymentitem',
            constraint=models.UniqueConstraint(
                condition=models.Q(('deleted_at__isnull', True), ('installment_number__isnull', False)),
                fields=('contract', 'installment_number'),
                name='hunt_contracts_unique_installment_number',
            ),
        ),
    ]

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("finance", "0002_add_periodic_schedules"),
    ]

    operations = [
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("store_id", models.UUIDField(db_index=True, help_text="Store that owns this record")),
                ("name", models.CharField(help_text="Account display name", max_length=100)),
                ("bank_name", models.CharField(help_text="Bank name", max_length=100)),
                ("bank_code", models.CharField(blank=True, help_text="Bank code", max_length=10)),
                ("agency", models.CharField(help_text="Branch (agency) number", max_length=20)),
                ("account_number", models.CharField(help_text="Account number", max_length=30)),
                ("account_digit", models.CharField(blank=True, help_text="Check digit", max_length=5)),
                ("account_type", models.CharField(choices=[("checking", "Checking"), ("savings", "Savings"), ("investment", "Investment"), ("payment", "Payment account"), ("cash", "Cash box"), ("other", "Other")], default="checking", help_text="Kind of account", max_length=12)),
                ("allowed_payment_methods", models.JSONField(blank=True, default=list, help_text="Payment methods accepted by this account (empty: all)")),
                ("is_default", models.BooleanField(default=False, help_text="Default account of the store")),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive")], default="active", help_text="Catalog status", max_length=10)),
            ],
            options={
                "db_table": "finance_bank_account",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(fields=("store_id", "name"), name="unique_bank_account_name_per_store"),
                ],
            },
        ),
        migrations.AddField(
            model_name="transaction",
            name="attachment_url",
            field=models.URLField(blank=True, help_text="Link to the supporting document file", max_length=500),
        ),
        migrations.AddField(
            model_name="transaction",
            name="bank_account",
            field=models.ForeignKey(blank=True, help_text="Default account for payments of this transaction", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="finance.bankaccount"),
        ),
        migrations.AddField(
            model_name="payment",
            name="bank_account",
            field=models.ForeignKey(blank=True, help_text="Account the money moved through", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="finance.bankaccount"),
        ),
    ]

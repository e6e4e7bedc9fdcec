import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # =====================================================================
        # Reference data
        # =====================================================================
        migrations.CreateModel(
            name="Party",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("store_id", models.UUIDField(db_index=True, help_text="Store that owns this record")),
                ("name", models.CharField(help_text="Legal or full name", max_length=200)),
                ("trade_name", models.CharField(blank=True, help_text="Trading name, if different from the legal name", max_length=200)),
                ("document", models.CharField(blank=True, db_index=True, help_text="Tax identifier (CPF/CNPJ)", max_length=32)),
                ("email", models.EmailField(blank=True, help_text="Contact email", max_length=254)),
                ("phone", models.CharField(blank=True, help_text="Landline", max_length=32)),
                ("mobile", models.CharField(blank=True, help_text="Mobile phone", max_length=32)),
                ("is_customer", models.BooleanField(default=False, help_text="Buys from the store")),
                ("is_supplier", models.BooleanField(default=False, help_text="Sells to the store")),
                ("is_employee", models.BooleanField(default=False, help_text="Store employee")),
                ("is_salesperson", models.BooleanField(default=False, help_text="Sales agent")),
                ("address_street", models.CharField(blank=True, help_text="Street", max_length=200)),
                ("address_number", models.CharField(blank=True, help_text="Number", max_length=20)),
                ("address_complement", models.CharField(blank=True, help_text="Complement", max_length=100)),
                ("address_district", models.CharField(blank=True, help_text="District", max_length=100)),
                ("address_city", models.CharField(blank=True, help_text="City", max_length=100)),
                ("address_state", models.CharField(blank=True, help_text="State", max_length=50)),
                ("address_zip", models.CharField(blank=True, help_text="Postal code", max_length=20)),
                ("notes", models.TextField(blank=True, help_text="Free-form notes")),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive"), ("blocked", "Blocked")], db_index=True, default="active", help_text="Directory status", max_length=10)),
            ],
            options={
                "verbose_name": "Party",
                "verbose_name_plural": "Parties",
                "db_table": "finance_party",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["store_id", "name"], name="party_store_name_idx")],
            },
        ),
        migrations.CreateModel(
            name="Category",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("store_id", models.UUIDField(db_index=True, help_text="Store that owns this record")),
                ("name", models.CharField(help_text="Category name", max_length=100)),
                ("kind", models.CharField(choices=[("payable", "Payable"), ("receivable", "Receivable")], help_text="Transaction direction this category applies to", max_length=10)),
                ("color", models.CharField(blank=True, help_text="Display color", max_length=20)),
                ("icon", models.CharField(blank=True, help_text="Display icon name", max_length=50)),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive")], default="active", help_text="Catalog status", max_length=10)),
            ],
            options={
                "verbose_name_plural": "Categories",
                "db_table": "finance_category",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(fields=("store_id", "kind", "name"), name="unique_category_per_store_kind"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CostCenter",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("store_id", models.UUIDField(db_index=True, help_text="Store that owns this record")),
                ("name", models.CharField(help_text="Cost center name", max_length=100)),
                ("code", models.CharField(blank=True, help_text="Short code", max_length=30)),
                ("description", models.TextField(blank=True, help_text="Description")),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive")], default="active", help_text="Catalog status", max_length=10)),
            ],
            options={
                "db_table": "finance_cost_center",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("code", ""), _negated=True), fields=("store_id", "code"), name="unique_cost_center_code_per_store"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Tag",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("store_id", models.UUIDField(db_index=True, help_text="Store that owns this record")),
                ("name", models.CharField(help_text="Tag name", max_length=50)),
                ("color", models.CharField(blank=True, help_text="Display color", max_length=20)),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive")], default="active", help_text="Catalog status", max_length=10)),
            ],
            options={
                "db_table": "finance_tag",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(fields=("store_id", "name"), name="unique_tag_per_store"),
                ],
            },
        ),
        # =====================================================================
        # Recurrence
        # =====================================================================
        migrations.CreateModel(
            name="Recurrence",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("store_id", models.UUIDField(db_index=True, help_text="Store that owns this record")),
                ("kind", models.CharField(choices=[("payable", "Payable"), ("receivable", "Receivable"), ("transfer", "Transfer")], help_text="Kind of transaction materialized", max_length=12)),
                ("description", models.CharField(help_text="Description copied to each transaction", max_length=255)),
                ("amount_cents", models.PositiveBigIntegerField(help_text="Amount in cents for each occurrence")),
                ("currency", models.CharField(help_text="ISO 4217 currency code", max_length=3)),
                ("frequency", models.CharField(choices=[("weekly", "Weekly"), ("monthly", "Monthly"), ("yearly", "Yearly")], default="monthly", help_text="Cadence unit", max_length=10)),
                ("status", django_fsm.FSMField(choices=[("active", "Active"), ("paused", "Paused"), ("finished", "Finished")], db_index=True, default="active", help_text="Current lifecycle state", max_length=50, protected=True)),
                ("start_date", models.DateField(help_text="First occurrence date")),
                ("end_date", models.DateField(blank=True, help_text="Last date an occurrence may fall on (inclusive)", null=True)),
                ("next_due_date", models.DateField(db_index=True, help_text="Earliest occurrence not yet materialized")),
                ("day_of_month", models.PositiveSmallIntegerField(help_text="Anchor day (1-31) for monthly and yearly cadences")),
                ("counterparty", models.ForeignKey(blank=True, help_text="Counterparty copied to each transaction", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="recurrences", to="finance.party")),
                ("category", models.ForeignKey(blank=True, help_text="Category copied to each transaction", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="recurrences", to="finance.category")),
                ("cost_center", models.ForeignKey(blank=True, help_text="Cost center copied to each transaction", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="recurrences", to="finance.costcenter")),
                ("created_by", models.ForeignKey(blank=True, help_text="User who created the recurrence", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("updated_by", models.ForeignKey(blank=True, help_text="User who last changed the recurrence", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "finance_recurrence",
                "ordering": ["next_due_date", "created_at"],
                "indexes": [models.Index(fields=["status", "next_due_date"], name="recurrence_status_cursor_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount_cents__gt", 0)), name="finance_recurrence_amount_positive"),
                    models.CheckConstraint(condition=models.Q(("day_of_month__gte", 1), ("day_of_month__lte", 31)), name="finance_recurrence_day_of_month_range"),
                    models.CheckConstraint(condition=models.Q(("next_due_date__gte", models.F("start_date"))), name="finance_recurrence_cursor_after_start"),
                    models.CheckConstraint(condition=models.Q(("end_date__isnull", True), ("end_date__gte", models.F("start_date")), _connector="OR"), name="finance_recurrence_end_after_start"),
                ],
            },
        ),
        # =====================================================================
        # Transaction
        # =====================================================================
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("store_id", models.UUIDField(db_index=True, help_text="Store that owns this record")),
                ("kind", models.CharField(choices=[("payable", "Payable"), ("receivable", "Receivable"), ("transfer", "Transfer"), ("adjustment", "Adjustment")], db_index=True, help_text="Direction of the transaction", max_length=12)),
                ("description", models.CharField(blank=True, help_text="Human-readable description", max_length=255)),
                ("document_number", models.CharField(blank=True, help_text="Invoice (NF) or other supporting document number", max_length=60)),
                ("issue_date", models.DateField(blank=True, help_text="Date the supporting document was issued", null=True)),
                ("amount_cents", models.PositiveBigIntegerField(help_text="Amount in cents (always positive)")),
                ("currency", models.CharField(help_text="ISO 4217 currency code, fixed at creation", max_length=3)),
                ("due_date", models.DateField(db_index=True, help_text="Date the amount is due")),
                ("paid_date", models.DateField(blank=True, help_text="Date of the payment that settled the transaction in full", null=True)),
                ("amount_paid_cents", models.BigIntegerField(default=0, help_text="Sum of all payments and reversals in cents")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("approved", "Approved"), ("scheduled", "Scheduled"), ("paid", "Paid"), ("overdue", "Overdue"), ("canceled", "Canceled")], db_index=True, default="pending", help_text="Cached derived status, rewritten with every settlement change", max_length=10)),
                ("workflow_flag", models.CharField(blank=True, choices=[("", "None"), ("approved", "Approved"), ("scheduled", "Scheduled")], default="", help_text="Approval step set by the external workflow", max_length=10)),
                ("canceled_at", models.DateTimeField(blank=True, help_text="When the transaction was canceled", null=True)),
                ("counterparty", models.ForeignKey(blank=True, help_text="Customer or supplier on the other side", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="finance.party")),
                ("category", models.ForeignKey(blank=True, help_text="Reporting category", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="finance.category")),
                ("cost_center", models.ForeignKey(blank=True, help_text="Reporting cost center", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="finance.costcenter")),
                ("tags", models.ManyToManyField(blank=True, help_text="Free-form labels", related_name="transactions", to="finance.tag")),
                ("recurrence", models.ForeignKey(blank=True, help_text="Recurrence that materialized this transaction", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="finance.recurrence")),
                ("created_by", models.ForeignKey(blank=True, help_text="User who recorded the transaction", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("approved_by", models.ForeignKey(blank=True, help_text="User who set the workflow flag", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("canceled_by", models.ForeignKey(blank=True, help_text="User who canceled the transaction", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "finance_transaction",
                "ordering": ["due_date", "created_at"],
                "indexes": [
                    models.Index(fields=["store_id", "status", "due_date"], name="txn_store_status_due_idx"),
                    models.Index(fields=["store_id", "kind", "due_date"], name="txn_store_kind_due_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount_cents__gt", 0)), name="finance_txn_amount_positive"),
                    models.CheckConstraint(condition=models.Q(("amount_paid_cents__gte", 0), ("amount_paid_cents__lte", models.F("amount_cents"))), name="finance_txn_paid_within_amount"),
                    models.UniqueConstraint(condition=models.Q(("recurrence__isnull", False)), fields=("recurrence", "due_date"), name="finance_txn_unique_recurrence_occurrence"),
                ],
            },
        ),
        # =====================================================================
        # Payment
        # =====================================================================
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("amount_cents", models.BigIntegerField(help_text="Amount in cents; negative for reversals")),
                ("currency", models.CharField(help_text="ISO 4217 currency code (same as the transaction)", max_length=3)),
                ("method", models.CharField(choices=[("pix", "PIX"), ("bank_transfer", "Bank Transfer"), ("cash", "Cash"), ("card", "Card"), ("deposit", "Deposit")], help_text="How the money moved", max_length=20)),
                ("paid_on", models.DateField(help_text="Date the money moved")),
                ("note", models.TextField(blank=True, help_text="Optional free-text note")),
                ("transaction", models.ForeignKey(help_text="Transaction this payment settles", on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="finance.transaction")),
                ("reverses", models.ForeignKey(blank=True, help_text="Payment compensated by this reversal", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversals", to="finance.payment")),
                ("recorded_by", models.ForeignKey(blank=True, help_text="User who recorded the payment", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "finance_payment",
                "ordering": ["paid_on", "created_at"],
                "indexes": [models.Index(fields=["transaction", "paid_on"], name="payment_txn_paid_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount_cents", 0), _negated=True), name="finance_payment_amount_nonzero"),
                    models.CheckConstraint(condition=models.Q(models.Q(("amount_cents__gt", 0), ("reverses__isnull", True)), models.Q(("amount_cents__lt", 0), ("reverses__isnull", False)), _connector="OR"), name="finance_payment_sign_matches_kind"),
                ],
            },
        ),
    ]

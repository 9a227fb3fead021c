import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"verbose_name_plural": "companies"},
        ),
        migrations.CreateModel(
            name="Branch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("type", models.CharField(choices=[("MAIN", "Main"), ("SUB", "Sub-branch")], default="SUB", max_length=10)),
                ("address", models.CharField(blank=True, default="", max_length=400)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="branches", to="ledger_core.company")),
            ],
            options={
                "verbose_name_plural": "branches",
                "indexes": [models.Index(fields=["company", "type"], name="ledger_core_company_1f0c4a_idx")],
                "constraints": [models.UniqueConstraint(condition=models.Q(("type", "MAIN")), fields=("company",), name="uq_company_main_branch")],
            },
        ),
        migrations.CreateModel(
            name="Membership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("ADMIN", "Admin"), ("BRANCHADMIN", "Branch admin"), ("CASHIER", "Cashier"), ("VIEWER", "Viewer")], default="VIEWER", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("branch", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.branch")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="ledger_core.company")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="ledger_memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("user", "company"), name="uq_user_company_membership")],
            },
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("code", models.CharField(max_length=32)),
                ("ac_type", models.CharField(choices=[("ASSET", "Asset"), ("LIABILITY", "Liability"), ("EQUITY", "Equity"), ("INCOME", "Income"), ("EXPENSE", "Expense")], max_length=10)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="accounts", to="ledger_core.company")),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="ledger_core.account")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "ac_type"], name="ledger_core_company_8b7d21_idx"),
                    models.Index(fields=["company", "code"], name="ledger_core_company_0e9a53_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("company", "name"), name="uq_company_account_name")],
            },
        ),
        migrations.CreateModel(
            name="TaxRate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("rate", models.DecimalField(decimal_places=4, max_digits=7)),
                ("type", models.CharField(blank=True, default="", max_length=30)),
                ("is_default", models.BooleanField(default=False)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tax_rates", to="ledger_core.company")),
            ],
            options={
                "indexes": [models.Index(fields=["company", "name"], name="ledger_core_company_5c2e77_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("rate__gte", 0)), name="tax_rate_non_negative")],
            },
        ),
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="children", to="ledger_core.category")),
            ],
            options={"verbose_name_plural": "categories"},
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("sku", models.CharField(max_length=80)),
                ("description", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="products", to="ledger_core.category")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("sub_category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sub_products", to="ledger_core.category")),
            ],
            options={
                "indexes": [models.Index(fields=["company", "name"], name="ledger_core_company_a41b09_idx")],
                "constraints": [models.UniqueConstraint(fields=("company", "sku"), name="uq_company_product_sku")],
            },
        ),
        migrations.CreateModel(
            name="Item",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sku", models.CharField(blank=True, default="", max_length=80)),
                ("variant", models.CharField(blank=True, default="", max_length=120)),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("mrp", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("quantity", models.IntegerField(default=0)),
                ("location", models.CharField(blank=True, default="", max_length=120)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="items", to="ledger_core.product")),
                ("tax_rate", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.taxrate")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "product"], name="ledger_core_company_3d6f10_idx"),
                    models.Index(fields=["company", "sku"], name="ledger_core_company_77c2e4_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("phone", models.CharField(blank=True, max_length=32, null=True)),
                ("address", models.CharField(blank=True, default="", max_length=400)),
                ("is_walk_in", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "name"], name="ledger_core_company_c90d3e_idx"),
                    models.Index(fields=["company", "phone"], name="ledger_core_company_4f8a26_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("phone", models.CharField(blank=True, max_length=32, null=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
            ],
            options={
                "indexes": [models.Index(fields=["company", "name"], name="ledger_core_company_e2b5f8_idx")],
                "constraints": [models.UniqueConstraint(fields=("company", "name"), name="uq_company_vendor_name")],
            },
        ),
        migrations.CreateModel(
            name="BranchItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.IntegerField(default=0)),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("mrp", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="stock", to="ledger_core.branch")),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="branch_stock", to="ledger_core.item")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("branch", "item"), name="uq_branch_item")],
            },
        ),
        migrations.CreateModel(
            name="StockLedger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=[("PURCHASE", "Purchase"), ("SALE", "Sale"), ("ADJUSTMENT", "Adjustment")], max_length=12)),
                ("quantity", models.PositiveIntegerField()),
                ("reference", models.CharField(blank=True, max_length=100, null=True)),
                ("note", models.CharField(blank=True, max_length=400, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.branch")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.item")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "branch", "item"], name="ledger_core_company_6a0e91_idx"),
                    models.Index(fields=["reference", "item", "type"], name="ledger_core_referen_b3c7d2_idx"),
                ],
                "constraints": [models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="stock_ledger_qty_positive")],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=[("SALE", "Sale"), ("PURCHASE", "Purchase"), ("EXPENSE", "Expense")], default="SALE", max_length=10)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PARTIAL", "Partially paid"), ("PAID", "Paid"), ("FAILED", "Failed")], default="PENDING", max_length=10)),
                ("invoice_number", models.CharField(max_length=64, unique=True)),
                ("date", models.DateField()),
                ("due_date", models.DateField(blank=True, null=True)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("branch", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="ledger_core.branch")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("customer", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.customer")),
                ("vendor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="ledger_core.vendor")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "type", "status"], name="ledger_core_company_9d14b6_idx"),
                    models.Index(fields=["company", "customer"], name="ledger_core_company_2e5c08_idx"),
                    models.Index(fields=["company", "date"], name="ledger_core_company_f1a7c3_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("price", models.DecimalField(decimal_places=2, max_digits=18)),
                ("total", models.DecimalField(decimal_places=2, max_digits=18)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="ledger_core.invoice")),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.item")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.product")),
                ("tax_rate", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="ledger_core.taxrate")),
            ],
        ),
        migrations.CreateModel(
            name="InvoiceTax",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_type", models.CharField(choices=[("SALE", "Sale"), ("PURCHASE", "Purchase"), ("EXPENSE", "Expense")], max_length=10)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="taxes", to="ledger_core.invoice")),
                ("tax_rate", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.taxrate")),
            ],
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("method", models.CharField(max_length=40)),
                ("reference_no", models.CharField(blank=True, max_length=100, null=True)),
                ("gateway_payment_id", models.CharField(blank=True, max_length=120, null=True, unique=True)),
                ("raw_response", models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ("status", models.CharField(choices=[("SUCCESS", "Success"), ("PENDING", "Pending"), ("FAILED", "Failed")], default="SUCCESS", max_length=10)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("note", models.TextField(blank=True, default="")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="ledger_core.invoice")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "invoice"], name="ledger_core_company_7b3e5f_idx"),
                    models.Index(fields=["company", "date"], name="ledger_core_company_d8c1a4_idx"),
                ],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gte", Decimal("0"))), name="payment_amount_non_negative")],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("reference", models.CharField(blank=True, max_length=200, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("posted", "Posted")], default="draft", max_length=10)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("source_type", models.CharField(blank=True, max_length=50, null=True)),
                ("source_id", models.BigIntegerField(blank=True, null=True)),
                ("posting_fingerprint", models.CharField(blank=True, max_length=64, null=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "indexes": [
                    models.Index(fields=["company", "date"], name="ledger_core_company_0c6d2b_idx"),
                    models.Index(fields=["company", "source_type", "source_id"], name="ledger_core_company_95e4f7_idx"),
                ],
                "constraints": [models.UniqueConstraint(fields=("company", "reference"), name="uq_je_company_ref")],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, max_length=400, null=True)),
                ("debit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.account")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.invoice")),
                ("journal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.journalentry")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "account"], name="ledger_core_company_a9f2e1_idx"),
                    models.Index(fields=["company", "journal"], name="ledger_core_company_63b8d0_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="jl_non_negative_amounts"),
                    models.CheckConstraint(condition=models.Q(("debit", 0), ("credit", 0), _negated=True), name="jl_debit_or_credit_nonzero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Cart",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("DRAFT", "Draft"), ("CHECKEDOUT", "Checked out"), ("CANCELLED", "Cancelled")], default="ACTIVE", max_length=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("branch", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.branch")),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.company")),
                ("customer", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="carts", to="ledger_core.customer")),
            ],
            options={
                "indexes": [models.Index(fields=["company", "status"], name="ledger_core_company_4c1d9e_idx")],
                "constraints": [models.UniqueConstraint(condition=models.Q(("status", "ACTIVE"), ("customer__isnull", False)), fields=("company", "customer"), name="uq_active_cart_per_customer")],
            },
        ),
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("price", models.DecimalField(decimal_places=2, max_digits=18)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("cart", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="ledger_core.cart")),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.item")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.product")),
                ("tax_rate", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.taxrate")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("cart", "item"), name="uq_cart_item"),
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="cart_item_qty_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.company")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "user"], name="ledger_core_company_8e2f6a_idx"),
                    models.Index(fields=["company", "created_at"], name="ledger_core_company_1b9c47_idx"),
                ],
            },
        ),
    ]

from django.core.management.base import BaseCommand, CommandError

from ledger_core.models import Company
from ledger_core.services.stock import find_stock_drift


class Command(BaseCommand):
    help = "Compare branch stock with the stock ledger and report any drift."

    def add_arguments(self, parser):
        parser.add_argument("slug", help="Slug of the company to check.")

    def handle(self, *args, **options):
        try:
            company = Company.objects.get(slug=options["slug"])
        except Company.DoesNotExist:
            raise CommandError(f"No company with slug '{options['slug']}'") from None

        drift = find_stock_drift(company)
        if not drift:
            self.stdout.write(self.style.SUCCESS("Stock matches the ledger"))
            return

        for row in drift:
            self.stdout.write(
                self.style.WARNING(
                    f"branch {row['branch_id']} item {row['item_id']} "
                    f"({row['item'] or '?'}): stock {row['quantity']}, "
                    f"ledger {row['ledger_quantity']}"
                )
            )
        raise CommandError(f"{len(drift)} stock row(s) out of step with the ledger")

from django.core.management.base import BaseCommand, CommandError

from ledger_core.models import Company
from ledger_core.services.maintenance import purge_company_data


class Command(BaseCommand):
    help = "Delete every row of one tenant (development reset). The company row is kept."

    def add_arguments(self, parser):
        parser.add_argument("slug", help="Slug of the company to purge.")
        parser.add_argument(
            "--yes", action="store_true", help="Confirm the purge; nothing happens without it."
        )

    def handle(self, *args, **options):
        try:
            company = Company.objects.get(slug=options["slug"])
        except Company.DoesNotExist:
            raise CommandError(f"No company with slug '{options['slug']}'") from None

        if not options["yes"]:
            raise CommandError(f"Refusing to purge {company.slug} without --yes")

        counts = purge_company_data(company)
        for label, count in counts.items():
            if count:
                self.stdout.write(f"{label}: {count}")
        self.stdout.write(self.style.SUCCESS(f"Purged {company.slug}"))

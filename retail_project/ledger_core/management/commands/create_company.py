from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils.text import slugify

from ledger_core.models import Company, Membership
from ledger_core.services.accounts import create_company

User = get_user_model()


class Command(BaseCommand):
    help = "Onboard a company: MAIN branch, default chart of accounts and an optional admin user."

    def add_arguments(self, parser):
        parser.add_argument("name", help="Name of the company to create.")
        parser.add_argument("--email", default=None)
        parser.add_argument("--branch-name", default="Main", help="Name of the MAIN branch.")
        parser.add_argument("--username", default=None, help="Create (or reuse) this user as company ADMIN.")
        parser.add_argument("--password", default=None)

    # Generate unique slug for company
    def _unique_slug(self, name, max_tries=100):
        # "Test Ltd" -> "test-ltd" -> "test-ltd-1" -> "test-ltd-2"
        base = slugify(name) or "company"
        slug = base
        i = 1
        while Company.objects.filter(slug=slug).exists():
            slug = f"{base}-{i}"
            i += 1
            if i > max_tries:
                raise CommandError("Couldn't generate unique slug")
        return slug

    @transaction.atomic
    def handle(self, *args, **options):
        company = create_company(
            options["name"],
            slug=self._unique_slug(options["name"]),
            email=options["email"],
            main_branch_name=options["branch_name"],
        )
        self.stdout.write(self.style.SUCCESS(f"Created company: {company} ({company.slug})"))
        self.stdout.write(f"Seeded {company.accounts.count()} accounts")

        username = options["username"]
        if username:
            user, created = User.objects.get_or_create(
                username=username, defaults={"email": f"{username}@example.com"}
            )
            if created and options["password"]:
                user.set_password(options["password"])
                user.save()
            Membership.objects.create(
                user=user,
                company=company,
                branch=company.branches.get(type="MAIN"),
                role="ADMIN",
            )
            self.stdout.write(self.style.SUCCESS(f"{user.username} is ADMIN of {company.slug}"))

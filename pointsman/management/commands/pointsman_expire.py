"""Management command to expire loyalty points past their expiration date."""

from django.core.management.base import BaseCommand, CommandError

from pointsman.exceptions import LoyaltyError
from pointsman.service import LoyaltyService


class Command(BaseCommand):
    help = "Expire earned and bonus points past their expiration date"

    def add_arguments(self, parser):
        parser.add_argument(
            "--member",
            default=None,
            help="Only sweep this member (UUID)",
        )

    def handle(self, *args, **options):
        service = LoyaltyService()

        if options["member"]:
            try:
                expired = service.expire_old_points(options["member"])
            except LoyaltyError as exc:
                raise CommandError(exc.message)
            self.stdout.write(
                self.style.SUCCESS(f"Expired {expired} points for member {options['member']}.")
            )
            return

        results = service.expire_all_due()
        for member_id, expired in results.items():
            self.stdout.write(f"{member_id}: {expired} points expired")
        self.stdout.write(
            self.style.SUCCESS(
                f"Expired {sum(results.values())} points across {len(results)} accounts."
            )
        )

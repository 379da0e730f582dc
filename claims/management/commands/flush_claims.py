from django.core.management.base import BaseCommand, CommandError

from claims.errors import ClaimError
from claims.store import ClaimStore


class Command(BaseCommand):
    help = "Delete all claims and prepare for the next game. USE WITH CAUTION."

    def add_arguments(self, parser):
        parser.add_argument(
            "--yes",
            action="store_true",
            help="Confirm deletion without interactive prompt",
        )

    def handle(self, *args, **options):
        if not options.get("yes"):
            self.stdout.write(self.style.WARNING(
                "This will permanently delete ALL claims. Zones are kept."
            ))
            self.stdout.write(self.style.WARNING(
                "Re-run with --yes to proceed."
            ))
            return

        with ClaimStore() as store:
            try:
                deleted = store.flush()
            except ClaimError as err:
                raise CommandError(f"Failed to flush claims: {err}")
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} claims."))

from django.core.management.base import BaseCommand, CommandError

from records.services.store import Store


class Command(BaseCommand):
    help = "Check that the database answers, retrying as the service does at start-up."

    def add_arguments(self, parser):
        parser.add_argument("--database", default="default")
        parser.add_argument("--retries", type=int, default=None)
        parser.add_argument("--delay", type=float, default=None)

    def handle(self, *args, **opts):
        store = Store(opts["database"])
        if not store.check_connection(retries=opts["retries"], delay=opts["delay"]):
            raise CommandError(f"database '{opts['database']}' is unreachable")
        self.stdout.write(self.style.SUCCESS(f"database '{opts['database']}' ok ({store.vendor})"))

import csv
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from claims.geography import fold
from claims.models import Zone

REQUIRED_COLUMNS = ('name', 'area', 'region', 'trade_node', 'kind')


class Command(BaseCommand):
    help = "Load the static zone reference data (area/region/trade node). Runs once: skipped when zones exist."

    def add_arguments(self, parser):
        parser.add_argument(
            '--file',
            default=None,
            help="CSV with columns name,area,region,trade_node,kind (defaults to CLAIMS_SETTINGS['ZONES_FILE'])",
        )

    def handle(self, *args, **options):
        path = Path(options.get('file') or settings.CLAIMS_SETTINGS['ZONES_FILE'])
        if Zone.objects.exists():
            self.stdout.write(self.style.WARNING(
                f"Zones already loaded ({Zone.objects.count()}), skipping."
            ))
            return
        if not path.exists():
            raise CommandError(f"Zone file not found: {path}")

        zones = self._read(path)
        with transaction.atomic():
            Zone.objects.bulk_create(zones)
        self.stdout.write(self.style.SUCCESS(f"Loaded {len(zones)} zones from {path}."))

    def _read(self, path: Path):
        kinds = {k.value for k in Zone.Kind}
        seen = {}
        zones = []
        with path.open(newline='', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise CommandError(f"{path}: missing columns {', '.join(missing)}")
            for line_num, row in enumerate(reader, 2):
                values = {c: (row.get(c) or '').strip() for c in REQUIRED_COLUMNS}
                if not all(values.values()):
                    raise CommandError(f"{path}:{line_num}: empty field in {values}")
                kind = values['kind'].lower()
                if kind not in kinds:
                    raise CommandError(f"{path}:{line_num}: unknown zone kind '{values['kind']}'")
                key = fold(values['name'])
                if key in seen:
                    raise CommandError(f"{path}:{line_num}: duplicate zone '{values['name']}' (first seen on line {seen[key]})")
                seen[key] = line_num
                zones.append(Zone(
                    name=values['name'],
                    area=values['area'],
                    region=values['region'],
                    trade_node=values['trade_node'],
                    kind=kind,
                ))
        if not zones:
            raise CommandError(f"{path}: no zones found")
        return zones

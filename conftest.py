import os
import pytest

# A small reference geography: (name, area, region, trade_node, kind).
# Bordeaux the trade node reaches into Iberia through the Basque Country;
# Genoa the trade node lies within Italy apart from its sea zone; "Austria"
# is both an area (Wien) and an unrelated trade node (Linz).
REFERENCE_ZONES = [
    ("Bordeaux", "Guyenne", "France", "Bordeaux", "land"),
    ("Perigord", "Guyenne", "France", "Bordeaux", "land"),
    ("Toulouse", "Languedoc", "France", "Bordeaux", "land"),
    ("Provence", "Provence", "France", "Champagne", "land"),
    ("Champagne", "Champagne", "France", "Champagne", "land"),
    ("Reims", "Champagne", "France", "Champagne", "land"),
    ("Navarra", "Basque Country", "Iberia", "Bordeaux", "land"),
    ("Vizcaya", "Basque Country", "Iberia", "Bordeaux", "land"),
    ("Rioja", "Basque Country", "Iberia", "Bordeaux", "land"),
    ("Valencia", "Valencia", "Iberia", "Valencia", "land"),
    ("Alicante", "Valencia", "Iberia", "Valencia", "land"),
    ("Aragon", "Aragon", "Iberia", "Valencia", "land"),
    ("Burgos", "Old Castile", "Iberia", "Valencia", "land"),
    ("Toledo", "New Castile", "Iberia", "Sevilla", "land"),
    ("Genova", "Liguria", "Italy", "Genoa", "land"),
    ("Saluzzo", "Piedmont", "Italy", "Genoa", "land"),
    ("Milano", "Lombardy", "Italy", "Genoa", "land"),
    ("Venezia", "Venetia", "Italy", "Venice", "land"),
    ("Roma", "Lazio", "Italy", "Ragusa", "land"),
    ("Ragusa", "Dalmatia", "Balkans", "Ragusa", "land"),
    ("Wien", "Austria", "South Germany", "Wien", "land"),
    ("Linz", "Upper Austria", "South Germany", "Austria", "land"),
    ("Stockholm", "Svealand", "Scandinavia", "Baltic Sea", "land"),
    ("Östergötland", "Östergötland", "Scandinavia", "Baltic Sea", "land"),
    ("Bergen", "Western Norway", "Scandinavia", "Lubeck", "land"),
    ("Ligurian Sea", "Ligurian Sea", "Western Mediterranean", "Genoa", "sea"),
    ("Bay of Biscay", "Bay of Biscay", "Atlantic Coast", "Bordeaux", "sea"),
]

# Distinct claimable (land) group labels per granularity in REFERENCE_ZONES
REFERENCE_GROUP_COUNTS = {
    'area': 20,
    'region': 6,
    'trade-node': 11,
}


def create_reference_zones(using='default'):
    from claims.models import Zone
    Zone.objects.using(using).bulk_create([
        Zone(name=name, area=area, region=region, trade_node=trade_node, kind=kind)
        for name, area, region, trade_node, kind in REFERENCE_ZONES
    ])


def pytest_configure(config):
    config.addinivalue_line("markers", "concurrency: runs claim creations from several threads at once")


def pytest_collection_modifyitems(config, items):
    """Skip threaded concurrency tests when THEMIS_SKIP_CONCURRENCY=1.
    They need a file-backed test database (see DATABASES['default']['TEST']).
    """
    if os.environ.get("THEMIS_SKIP_CONCURRENCY") != "1":
        return
    skip = pytest.mark.skip(reason="Skipping concurrency tests (THEMIS_SKIP_CONCURRENCY=1)")
    for item in items:
        if "concurrency" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def reference_zones(db):
    create_reference_zones()


@pytest.fixture
def store(reference_zones):
    from claims.store import ClaimStore
    s = ClaimStore().open()
    yield s
    s.close()


@pytest.fixture
def committed_reference_zones(transactional_db):
    create_reference_zones()


@pytest.fixture
def group_counts():
    return dict(REFERENCE_GROUP_COUNTS)

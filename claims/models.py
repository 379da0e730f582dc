"""
Claim Models
Static zone reference data, the mutable claim table and its counter row
"""
from django.db import models

from .errors import InvalidGranularity


class TimestampedModel(models.Model):
    """Base model with creation/update timestamps"""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Granularity(models.TextChoices):
    AREA = 'area', 'Area'
    REGION = 'region', 'Region'
    TRADE_NODE = 'trade-node', 'Trade Node'

    @classmethod
    def parse(cls, raw) -> 'Granularity':
        """Parse user or stored input into a Granularity.
        Case-insensitive; accepts the legacy 'trade' spelling for trade nodes.
        """
        if isinstance(raw, cls):
            return raw
        value = str(raw or '').strip().lower()
        value = _GRANULARITY_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidGranularity(raw)

    @property
    def column(self) -> str:
        """Name of the Zone attribute this granularity groups by."""
        return _GRANULARITY_COLUMNS[self.value]


_GRANULARITY_ALIASES = {
    'trade': Granularity.TRADE_NODE.value,
    'trade_node': Granularity.TRADE_NODE.value,
    'trade node': Granularity.TRADE_NODE.value,
}

_GRANULARITY_COLUMNS = {
    Granularity.AREA.value: 'area',
    Granularity.REGION.value: 'region',
    Granularity.TRADE_NODE.value: 'trade_node',
}


class Zone(models.Model):
    """Atomic unit of geography. Loaded once by `load_zones`, never edited at runtime."""

    class Kind(models.TextChoices):
        LAND = 'land', 'Land'
        SEA = 'sea', 'Sea'
        LAKE = 'lake', 'Lake'
        WASTELAND = 'wasteland', 'Wasteland'

    name = models.CharField(max_length=100, unique=True)
    area = models.CharField(max_length=100, db_index=True)
    region = models.CharField(max_length=100, db_index=True)
    trade_node = models.CharField(max_length=100, db_index=True)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.LAND)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.area} / {self.region} / {self.trade_node})"


class Claim(TimestampedModel):
    # Assigned from ClaimSpace.next_claim_id, never by the database
    id = models.PositiveBigIntegerField(primary_key=True, editable=False)
    owner = models.CharField(max_length=64, db_index=True)
    display_name = models.CharField(max_length=100)
    granularity = models.CharField(max_length=20, choices=Granularity.choices)
    target = models.CharField(max_length=100)

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['granularity', 'target'], name='claim_granularity_target_idx'),
        ]

    def __str__(self):
        return f"id={self.id} owner={self.owner} granularity={self.granularity} target={self.target}"


class ClaimSpace(models.Model):
    """Single row holding the identifier counter.
    Locked by every claim creation, which serializes the write path.
    """
    SINGLETON_ID = 1

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID, editable=False)
    next_claim_id = models.PositiveBigIntegerField(default=1)

    def __str__(self):
        return f"ClaimSpace(next_claim_id={self.next_claim_id})"

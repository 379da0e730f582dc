"""
Geography reference: an immutable, in-memory index of zones grouped by
area, region and trade node.
"""
from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from django.db import DEFAULT_DB_ALIAS

from .models import Granularity, Zone

logger = logging.getLogger(__name__)


def fold(label: str) -> str:
    """Case-insensitive matching key for zone and group names."""
    return (label or '').strip().casefold()


@dataclass(frozen=True)
class ZoneRecord:
    name: str
    area: str
    region: str
    trade_node: str
    kind: str

    @property
    def claimable(self) -> bool:
        return self.kind == Zone.Kind.LAND

    def label_for(self, granularity: Granularity) -> str:
        return getattr(self, granularity.column)


@dataclass(frozen=True)
class ZoneGroup:
    granularity: Granularity
    label: str
    zones: Tuple[ZoneRecord, ...]

    @property
    def claimable(self) -> bool:
        return any(z.claimable for z in self.zones)

    @property
    def zone_names(self) -> List[str]:
        return [z.name for z in self.zones]


class Geography:
    """Read-only view over the zone universe. Safe to share between threads."""

    def __init__(self, zones: Iterable[ZoneRecord]):
        self._zones = tuple(sorted(zones, key=lambda z: (fold(z.name), z.name)))
        groups: Dict[Granularity, Dict[str, ZoneGroup]] = {}
        for granularity in Granularity:
            # Group by folded label, keeping the first spelling seen as canonical
            by_key: Dict[str, List[ZoneRecord]] = {}
            canonical: Dict[str, str] = {}
            for z in self._zones:
                label = z.label_for(granularity)
                key = fold(label)
                by_key.setdefault(key, []).append(z)
                canonical.setdefault(key, label)
            groups[granularity] = MappingProxyType({
                key: ZoneGroup(granularity=granularity, label=canonical[key], zones=tuple(members))
                for key, members in by_key.items()
            })
        self._groups = MappingProxyType(groups)

    @classmethod
    def load(cls, using: str = DEFAULT_DB_ALIAS) -> 'Geography':
        rows = Zone.objects.using(using).values_list('name', 'area', 'region', 'trade_node', 'kind')
        geography = cls(ZoneRecord(*row) for row in rows)
        if not geography:
            logger.warning("Geography loaded with no zones; run `manage.py load_zones`")
        else:
            logger.info(f"Geography loaded: {len(geography)} zones")
        return geography

    def __len__(self) -> int:
        return len(self._zones)

    def group(self, granularity: Granularity, group_label: str) -> Optional[ZoneGroup]:
        return self._groups[granularity].get(fold(group_label))

    def resolve_zones(self, granularity: Granularity, group_label: str) -> Tuple[ZoneRecord, ...]:
        """Every zone whose `granularity` attribute equals `group_label`, ignoring case."""
        group = self.group(granularity, group_label)
        return group.zones if group else ()

    def canonical_label(self, granularity: Granularity, group_label: str) -> Optional[str]:
        group = self.group(granularity, group_label)
        return group.label if group else None

    def claimable_groups(self, granularity: Granularity) -> List[ZoneGroup]:
        return [g for g in self._groups[granularity].values() if g.claimable]

    def count_groups(self, granularity: Granularity) -> int:
        return len(self.claimable_groups(granularity))

    def list_unclaimed_groups(self, granularity: Granularity, claimed_labels: Iterable[str], search: Optional[str] = None) -> List[str]:
        claimed = {fold(label) for label in claimed_labels}
        needle = fold(search) if search else ''
        labels = [
            g.label for g in self.claimable_groups(granularity)
            if fold(g.label) not in claimed and needle in fold(g.label)
        ]
        labels.sort(key=lambda label: (fold(label), label))
        return labels

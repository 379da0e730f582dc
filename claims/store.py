"""
Claim store: guarded mutation and query of the claim space.

A claim reserves every zone of one group label at one granularity. Area,
region and trade node are independent groupings over the same zones, so two
claims conflict whenever their zone sets intersect, whatever granularities
produced them. Claims held by the same owner never conflict with each other.
"""
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging
import threading
import time

from django.db import DEFAULT_DB_ALIAS, DatabaseError, OperationalError, connections, transaction
from django.db.models import Count

from .errors import (
    ClaimConflict,
    CorruptClaimError,
    DeadlineExceeded,
    InfrastructureError,
    NoSuchClaim,
    NoSuchZone,
    StoreClosed,
)
from .geography import Geography, ZoneGroup, fold
from .models import Claim, ClaimSpace, Granularity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    zone: str
    owner: str
    display_name: str
    granularity: Granularity
    target: str
    claim_id: int

    def __str__(self):
        return f"{self.zone} owned by #{self.claim_id} {self.granularity.label} {self.target} ({self.display_name})"

    def as_dict(self) -> Dict:
        return {
            'zone': self.zone,
            'owner': self.owner,
            'display_name': self.display_name,
            'granularity': self.granularity.value,
            'target': self.target,
            'claim_id': self.claim_id,
        }


@dataclass(frozen=True)
class ClaimDetail:
    claim: Claim
    zones: List[str]

    def __str__(self):
        lines = [str(self.claim)]
        lines.extend(f"  - {name}" for name in self.zones)
        return "\n".join(lines) + "\n"


class _Deadline:
    def __init__(self, timeout: Optional[float]):
        self.expires_at = None if timeout is None else time.monotonic() + max(0.0, float(timeout))

    def check(self, step: str) -> None:
        if self.expires_at is not None and time.monotonic() >= self.expires_at:
            raise DeadlineExceeded(step)

    def remaining_ms(self) -> Optional[int]:
        if self.expires_at is None:
            return None
        # Never 0: both SQLite busy_timeout and Postgres lock_timeout read 0 as "no limit"
        return max(1, int((self.expires_at - time.monotonic()) * 1000))


def _is_lock_timeout(exc: OperationalError) -> bool:
    cause = exc.__cause__
    # psycopg exposes `sqlstate`, psycopg2 `pgcode`; 55P03 is lock_not_available
    if getattr(cause, 'sqlstate', None) == '55P03' or getattr(cause, 'pgcode', None) == '55P03':
        return True
    return 'database is locked' in str(exc)


@contextmanager
def _backend_errors(action: str):
    try:
        yield
    except DatabaseError as exc:
        logger.error(f"Failed to {action}: {exc}")
        raise InfrastructureError(f"failed to {action}: {exc}") from exc


class ClaimStore:
    """Owns the claim table. Construct once, `open()` it, share it by reference.

    Write operations run inside `transaction.atomic`; claim creation also
    locks the ClaimSpace row, so concurrent creations over overlapping zones
    cannot both commit. Reads run in autocommit without locks.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self._geography: Optional[Geography] = None
        self._lock = threading.Lock()

    # ============ Lifecycle ============

    def open(self) -> 'ClaimStore':
        with self._lock:
            if self._geography is None:
                with _backend_errors('load geography'):
                    self._geography = Geography.load(self.using)
        return self

    def close(self) -> None:
        with self._lock:
            self._geography = None

    @property
    def is_open(self) -> bool:
        return self._geography is not None

    def __enter__(self) -> 'ClaimStore':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def geography(self) -> Geography:
        geography = self._geography
        if geography is None:
            raise StoreClosed()
        return geography

    # ============ Claims ============

    def create_claim(self, owner: str, display_name: str, group_label: str, granularity, *, timeout: Optional[float] = None) -> Claim:
        """Reserve every zone of `group_label` at `granularity` for `owner`.

        Raises NoSuchZone when the label matches no claimable zone, and
        ClaimConflict (carrying every blocking zone/claim pair) when another
        owner already holds any of those zones. Nothing is written on failure.

        `timeout` (seconds) also bounds the wait for the claim space lock;
        running out raises DeadlineExceeded.
        """
        geography = self.geography
        granularity = Granularity.parse(granularity)
        deadline = _Deadline(timeout)
        deadline.check('locking the claim space')

        with _backend_errors('create claim'), self._lock_wait_limit(deadline) as limited:
            try:
                claim = self._insert_claim(geography, owner, display_name, group_label, granularity, deadline)
            except OperationalError as exc:
                if not (limited and _is_lock_timeout(exc)):
                    raise
                logger.warning(f"Gave up waiting for the claim space lock ({owner}, {granularity.value} {group_label})")
                raise DeadlineExceeded('locking the claim space') from exc

        logger.info(f"Created claim #{claim.id}: {granularity.value} {claim.target} for {display_name} ({owner})")
        return claim

    def _insert_claim(self, geography: Geography, owner: str, display_name: str, group_label: str,
                      granularity: Granularity, deadline: _Deadline) -> Claim:
        with transaction.atomic(using=self.using):
            space = self._lock_claim_space(deadline)

            group = geography.group(granularity, group_label)
            if group is None or not group.claimable:
                raise NoSuchZone(granularity, group_label)

            conflicts = self._conflicts_with(owner, group)
            if conflicts:
                logger.info(f"Rejected {granularity.value} claim on {group.label} by {owner}: {len(conflicts)} conflicting zones")
                raise ClaimConflict(conflicts)

            deadline.check('inserting the claim')
            claim = Claim.objects.using(self.using).create(
                id=space.next_claim_id,
                owner=owner,
                display_name=display_name,
                granularity=granularity.value,
                target=group.label,
            )
            space.next_claim_id = claim.id + 1
            space.save(using=self.using, update_fields=['next_claim_id'])
        return claim

    def find_conflicts(self, owner: str, group_label: str, granularity) -> List[Conflict]:
        """Zones of the proposed claim already held by other owners. Read-only."""
        geography = self.geography
        group = geography.group(Granularity.parse(granularity), group_label)
        if group is None:
            return []
        with _backend_errors('find conflicts'):
            return self._conflicts_with(owner, group)

    def list_claims(self) -> List[Claim]:
        with _backend_errors('list claims'):
            claims = list(Claim.objects.using(self.using).order_by('id'))
        for claim in claims:
            self._granularity_of(claim)
        return claims

    def describe_claim(self, claim_id: int) -> ClaimDetail:
        geography = self.geography
        with _backend_errors('describe claim'):
            try:
                claim = Claim.objects.using(self.using).get(id=claim_id)
            except Claim.DoesNotExist:
                raise NoSuchClaim(claim_id)
        granularity = self._granularity_of(claim)
        zones = [z.name for z in geography.resolve_zones(granularity, claim.target)]
        return ClaimDetail(claim=claim, zones=zones)

    def delete_claim(self, claim_id: int, owner: str) -> None:
        """Delete claim `claim_id` if and only if `owner` holds it.
        A missing id and someone else's id are reported the same way.
        """
        with _backend_errors('delete claim'):
            deleted, _ = Claim.objects.using(self.using).filter(id=claim_id, owner=owner).delete()
        if deleted == 0:
            raise NoSuchClaim(claim_id)
        logger.info(f"Deleted claim #{claim_id} for {owner}")

    def list_availability(self, granularity, search: Optional[str] = None) -> List[str]:
        """Unclaimed group labels at `granularity`, ascending.
        Only claims at the same granularity count; overlapping claims at other
        granularities do not remove a label from this list.
        """
        geography = self.geography
        granularity = Granularity.parse(granularity)
        with _backend_errors('list availability'):
            claimed = list(
                Claim.objects.using(self.using)
                .filter(granularity=granularity.value)
                .values_list('target', flat=True)
                .distinct()
            )
        return geography.list_unclaimed_groups(granularity, claimed, search)

    def count_claims(self) -> Tuple[int, int]:
        """Total number of claims and number of distinct owners."""
        with _backend_errors('count claims'):
            totals = Claim.objects.using(self.using).aggregate(
                total=Count('id'),
                owners=Count('owner', distinct=True),
            )
        return totals['total'] or 0, totals['owners'] or 0

    def flush(self) -> int:
        """Remove every claim. Zones and the identifier counter are kept."""
        with _backend_errors('flush claims'), transaction.atomic(using=self.using):
            deleted, _ = Claim.objects.using(self.using).all().delete()
        logger.info(f"Flushed {deleted} claims")
        return deleted

    # ============ Internals ============

    @contextmanager
    def _lock_wait_limit(self, deadline: _Deadline):
        """Cap SQLite's busy wait at BEGIN IMMEDIATE to the time left on `deadline`.
        Yields whether a lock wait limit applies on this backend.
        """
        connection = connections[self.using]
        remaining_ms = deadline.remaining_ms()
        if remaining_ms is None or connection.vendor not in ('sqlite', 'postgresql'):
            yield False
            return
        if connection.vendor == 'postgresql':
            # lock_timeout is set per transaction in _lock_claim_space
            yield True
            return
        default_ms = int(connection.settings_dict.get('OPTIONS', {}).get('timeout', 5) * 1000)
        with connection.cursor() as cursor:
            cursor.execute(f"PRAGMA busy_timeout = {remaining_ms}")
        try:
            yield True
        finally:
            with connection.cursor() as cursor:
                cursor.execute(f"PRAGMA busy_timeout = {default_ms}")

    def _lock_claim_space(self, deadline: Optional[_Deadline] = None) -> ClaimSpace:
        connection = connections[self.using]
        remaining_ms = deadline.remaining_ms() if deadline else None
        if remaining_ms is not None and connection.vendor == 'postgresql':
            with connection.cursor() as cursor:
                cursor.execute("SELECT set_config('lock_timeout', %s, true)", [f"{remaining_ms}ms"])
        space, _ = (
            ClaimSpace.objects.using(self.using)
            .select_for_update()
            .get_or_create(id=ClaimSpace.SINGLETON_ID)
        )
        return space

    def _granularity_of(self, claim: Claim) -> Granularity:
        # Stored rows must hold the exact value; aliases are for caller input only
        try:
            return Granularity(claim.granularity)
        except ValueError:
            logger.error(f"Claim #{claim.id} has corrupt granularity {claim.granularity!r}")
            raise CorruptClaimError(claim.id, claim.granularity)

    def _conflicts_with(self, owner: str, group: ZoneGroup) -> List[Conflict]:
        geography = self.geography
        proposed = {z.name for z in group.zones}
        conflicts: List[Conflict] = []
        for claim in Claim.objects.using(self.using).exclude(owner=owner).order_by('id'):
            granularity = self._granularity_of(claim)
            held = {z.name for z in geography.resolve_zones(granularity, claim.target)}
            for zone in proposed & held:
                conflicts.append(Conflict(
                    zone=zone,
                    owner=claim.owner,
                    display_name=claim.display_name,
                    granularity=granularity,
                    target=claim.target,
                    claim_id=claim.id,
                ))
        conflicts.sort(key=lambda c: (fold(c.zone), c.claim_id))
        return conflicts

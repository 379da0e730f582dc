"""
Claim store errors. Every error carries a short machine-readable code that
adapters map to user-facing text.
"""


class InvalidGranularity(ValueError):
    code = 'invalid_granularity'

    def __init__(self, raw):
        super().__init__(f"no granularity matching '{raw}', expected one of area, region, trade-node")
        self.raw = raw


class ClaimError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class NoSuchZone(ClaimError):
    def __init__(self, granularity, group_label: str):
        super().__init__('no_such_zone', f"found no zones for {granularity.label.lower()} named {group_label}")
        self.granularity = granularity
        self.group_label = group_label


class ClaimConflict(ClaimError):
    def __init__(self, conflicts):
        super().__init__('conflict', f"found {len(conflicts)} conflicting zones")
        self.conflicts = list(conflicts)


class NoSuchClaim(ClaimError):
    def __init__(self, claim_id):
        super().__init__('no_such_claim', f"no such claim #{claim_id}")
        self.claim_id = claim_id


class InfrastructureError(ClaimError):
    def __init__(self, message: str, code: str = 'infrastructure'):
        super().__init__(code, message)


class StoreClosed(InfrastructureError):
    def __init__(self):
        super().__init__('claim store is not open', code='store_closed')


class DeadlineExceeded(InfrastructureError):
    def __init__(self, step: str):
        super().__init__(f"deadline exceeded before {step}", code='deadline_exceeded')
        self.step = step


class CorruptClaimError(InfrastructureError):
    def __init__(self, claim_id, raw_granularity):
        super().__init__(
            f"claim #{claim_id} has unparseable granularity '{raw_granularity}'",
            code='corrupt_claim',
        )
        self.claim_id = claim_id
        self.raw_granularity = raw_granularity

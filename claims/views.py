"""
JSON API over the claim store. Thin adapter: parses input, calls the store,
maps store errors to status codes.
"""
import json
import logging

from django.apps import apps
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .errors import ClaimConflict, ClaimError, InfrastructureError, InvalidGranularity, NoSuchClaim, NoSuchZone
from .models import Claim, Granularity

logger = logging.getLogger(__name__)

FLUSH_CONFIRMATIONS = ('y', 'ye', 'yes')


def get_store():
    return apps.get_app_config('claims').store.open()


def _claims_setting(name, default):
    return getattr(settings, 'CLAIMS_SETTINGS', {}).get(name, default)


def _body(request) -> dict:
    # Support both JSON and form-encoded
    if request.content_type and 'application/json' in request.content_type:
        try:
            body = json.loads(request.body or b"{}")
            return body if isinstance(body, dict) else {}
        except ValueError:
            return {}
    return request.POST.dict()


def _param(request, name, default=None):
    if request.method == "GET":
        val = request.GET.get(name)
    else:
        val = _body(request).get(name)
    if val is None:
        return default
    val = str(val).strip()
    return val or default


def _ok(data, status=200):
    return JsonResponse({"success": True, "ok": True, "data": data}, status=status)


def _error(message, code, status, **extra):
    payload = {"success": False, "ok": False, "error": message, "code": code}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def _error_response(err: ClaimError):
    if isinstance(err, ClaimConflict):
        return _error(str(err), err.code, 409, conflicts=[c.as_dict() for c in err.conflicts])
    if isinstance(err, (NoSuchZone, NoSuchClaim)):
        return _error(str(err), err.code, 404)
    if isinstance(err, InfrastructureError):
        logger.error(f"Claim store failure: {err}")
        return _error("Oops, something went wrong", err.code, 503)
    return _error(str(err), err.code, 400)


def _serialize_claim(claim):
    return {
        "id": claim.id,
        "owner": claim.owner,
        "display_name": claim.display_name,
        "granularity": claim.granularity,
        "granularity_label": Granularity(claim.granularity).label,
        "target": claim.target,
        "created_at": claim.created_at.isoformat() if claim.created_at else None,
    }


def _parse_granularity(request):
    raw = _param(request, "granularity") or _param(request, "claim_type")
    if raw is None:
        raise InvalidGranularity(raw)
    return Granularity.parse(raw)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def claims_collection(request):
    if request.method == "POST":
        return create_claim(request)
    store = get_store()
    try:
        claims = store.list_claims()
        total, owners = store.count_claims()
    except ClaimError as err:
        return _error_response(err)
    return _ok({
        "claims": [_serialize_claim(c) for c in claims],
        "total": total,
        "owners": owners,
    })


def create_claim(request):
    owner = _param(request, "owner")
    name = _param(request, "name")
    display_name = _param(request, "display_name", owner)
    if not owner or not name:
        return _error("owner and name are required", "invalid_request", 400)
    for field, value in (("owner", owner), ("display_name", display_name)):
        max_length = Claim._meta.get_field(field).max_length
        if len(value) > max_length:
            return _error(f"{field} must be at most {max_length} characters", "invalid_request", 400)
    try:
        granularity = _parse_granularity(request)
    except InvalidGranularity:
        return _error("You can only take claims of types `area`, `region` or `trade-node`", InvalidGranularity.code, 400)

    store = get_store()
    try:
        claim = store.create_claim(
            owner,
            display_name,
            name,
            granularity,
            timeout=_claims_setting('REQUEST_TIMEOUT_S', None),
        )
    except ClaimError as err:
        return _error_response(err)
    return _ok(_serialize_claim(claim), status=201)


@require_http_methods(["GET"])
def claim_detail(request, claim_id: int):
    store = get_store()
    try:
        detail = store.describe_claim(claim_id)
    except ClaimError as err:
        return _error_response(err)
    data = _serialize_claim(detail.claim)
    data["zones"] = detail.zones
    return _ok(data)


@csrf_exempt
@require_http_methods(["POST"])
def delete_claim(request, claim_id: int):
    owner = _param(request, "owner")
    if not owner:
        return _error("owner is required", "invalid_request", 400)
    store = get_store()
    try:
        store.delete_claim(claim_id, owner)
    except ClaimError as err:
        return _error_response(err)
    return _ok({"id": claim_id, "deleted": True})


@require_http_methods(["GET"])
def availability(request):
    try:
        granularity = _parse_granularity(request)
    except InvalidGranularity as err:
        return _error(str(err), InvalidGranularity.code, 400)
    search = _param(request, "search")
    store = get_store()
    try:
        labels = store.list_availability(granularity, search)
    except ClaimError as err:
        return _error_response(err)
    limit = int(_claims_setting('AUTOCOMPLETE_LIMIT', 25))
    return _ok({
        "granularity": granularity.value,
        "available": labels[:limit],
        "total": len(labels),
    })


@csrf_exempt
@require_http_methods(["POST"])
def flush_claims(request):
    confirmation = (_param(request, "confirm") or "").lower()
    if confirmation not in FLUSH_CONFIRMATIONS:
        return _ok({"flushed": False, "message": "Aborted..."})
    store = get_store()
    try:
        deleted = store.flush()
    except ClaimError as err:
        return _error_response(err)
    return _ok({"flushed": True, "deleted": deleted, "message": "Flushed all claims!"})

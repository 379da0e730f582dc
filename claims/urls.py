from django.urls import path
from .views import availability, claim_detail, claims_collection, delete_claim, flush_claims

urlpatterns = [
    # List (GET) and create (POST)
    path("claims/", claims_collection, name="claims"),

    # Reset the claim space (requires confirm=yes)
    path("claims/flush/", flush_claims, name="flush_claims"),

    # Detail and release
    path("claims/<int:claim_id>/", claim_detail, name="claim_detail"),
    path("claims/<int:claim_id>/delete/", delete_claim, name="delete_claim"),

    # Unclaimed group labels, for autocomplete
    path("availability/", availability, name="availability"),
]

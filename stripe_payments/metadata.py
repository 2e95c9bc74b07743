"""
stripe_payments.metadata

Shape submitted form data into the objects Stripe expects: flat metadata,
shipping details and legacy card address fields.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

# Keys posted by the framework itself; never part of the captured payload.
_POST_DATA_EXCLUDED = ("csrfmiddlewaretoken", "action", "redirect")


def flatten_metadata(metadata: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Stripe metadata values must be scalars. Multi-value fields (checkboxes,
    multi-selects) are joined with " - ".
    """
    flat: Dict[str, Any] = {}
    for key, item in (metadata or {}).items():
        if isinstance(item, (list, tuple)):
            flat[key] = " - ".join(str(v) for v in item)
        else:
            flat[key] = item
    return flat


def get_shipping(address: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "name": address.get("name") or "",
        "address": {
            "city": address.get("city") or "",
            "country": address.get("country") or "",
            "line1": address.get("line1") or "",
            "postal_code": address.get("postal_code") or address.get("zip") or "",
            "state": address.get("state") or "",
        },
        # Can be filled in later with a charge update.
        "carrier": "",
        "tracking_number": "",
    }


def get_stripe_address(address: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "address_line1": address.get("line1"),
        "address_city": address.get("city"),
        "address_state": address.get("state"),
        "address_zip": address.get("zip"),
        "address_country": address.get("country"),
    }


def get_post_data(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of the submitted payload without framework-only keys."""
    return {k: v for k, v in payload.items() if k not in _POST_DATA_EXCLUDED}

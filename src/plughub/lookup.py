"""Web API manifest lookup by URL scheme."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plughub.capabilities import CapabilityIndex


def get_web_api_manifests(index: CapabilityIndex, scheme: str) -> dict[str, Any]:
    """Merge the manifests of web APIs served under ``scheme``.

    Colons are stripped from ``scheme`` (``"foo:"`` equals ``"foo"``). Only
    APIs whose visibility matches the owning protocol's are included; an
    unknown scheme yields an empty mapping.
    """
    scheme = scheme.replace(":", "")
    proto = index.find_protocol(scheme)
    if proto is None:
        return {}

    manifests: dict[str, Any] = {}
    for api in index.web_apis():
        if api.is_internal == proto.is_internal and api.serves(scheme):
            manifests[api.name] = api.manifest
    return manifests


__all__ = ["get_web_api_manifests"]

"""Standard-URL scheme registration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plughub.capabilities import CapabilityIndex
    from plughub.host import SchemeRegistry

log = logging.getLogger(__name__)


def standard_schemes(index: CapabilityIndex) -> list[str]:
    """Schemes of every protocol descriptor that asks for standard-URL parsing."""
    return [proto.scheme for proto in index.protocols() if proto.is_standard_url]


def register_standard_schemes(index: CapabilityIndex, registry: SchemeRegistry) -> list[str]:
    """Register the standard schemes with the host in one batch call.

    Must run before the host signals readiness. Errors from the host
    primitive propagate unchanged.
    """
    schemes = standard_schemes(index)
    log.debug("Registering standard schemes: %s", schemes)
    registry.register_standard_schemes(schemes)
    return schemes


__all__ = ["register_standard_schemes", "standard_schemes"]

"""Sequential protocol handler activation."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

from plughub.errors import ProtocolActivationError
from plughub.instrumentation import ActivationReport

if TYPE_CHECKING:
    from plughub.capabilities import CapabilityIndex
    from plughub.host import MessageChannel

log = logging.getLogger(__name__)


async def setup_protocol_handlers(
    index: CapabilityIndex,
    channel: MessageChannel,
    report: ActivationReport | None = None,
) -> ActivationReport:
    """Run every protocol's register routine, one at a time, in index order.

    Each routine (sync or async) completes before the next starts, so plugins
    competing for a shared backend connection during setup never overlap.
    The first failure stops the chain; later protocols are not registered.
    Every attempted registration is timed into ``report``, which is returned.

    Raises:
        ProtocolActivationError: Chained to the failing routine's exception.
    """
    if report is None:
        report = ActivationReport()
    for proto in index.protocols():
        log.debug("Registering protocol handler: %s", proto.scheme)
        try:
            with report.measure(proto):
                result = proto.register(channel)
                if inspect.isawaitable(result):
                    await result
        except Exception as exc:
            log.error("Protocol handler for %s failed to register: %s", proto.scheme, exc)
            raise ProtocolActivationError(proto.scheme, str(exc)) from exc
    return report


__all__ = ["setup_protocol_handlers"]

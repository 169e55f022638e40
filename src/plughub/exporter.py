"""Partition web API manifests by calling convention and export them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from plughub.descriptors import CallingConvention, classify_entry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from plughub.capabilities import CapabilityIndex
    from plughub.host import CapabilityExporter

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ManifestPartition:
    """One bucket of exported functions per calling convention."""

    buckets: dict[CallingConvention, dict[str, Any]] = field(
        default_factory=lambda: {convention: {} for convention in CallingConvention}
    )

    def __getitem__(self, convention: CallingConvention) -> dict[str, Any]:
        return self.buckets[convention]

    @property
    def plain(self) -> dict[str, Any]:
        return self.buckets[CallingConvention.PLAIN]

    @property
    def callback(self) -> dict[str, Any]:
        return self.buckets[CallingConvention.CALLBACK]

    @property
    def async_callback(self) -> dict[str, Any]:
        return self.buckets[CallingConvention.ASYNC_CALLBACK]

    @property
    def static_object(self) -> dict[str, Any]:
        return self.buckets[CallingConvention.STATIC_OBJECT]


def partition_manifest(manifest: Mapping[str, Any]) -> ManifestPartition:
    """Classify every manifest entry into exactly one calling-convention bucket."""
    partition = ManifestPartition()
    for key, value in manifest.items():
        convention, name, function = classify_entry(key, value)
        partition.buckets[convention][name] = function
    return partition


def channel_name(api_name: str, convention: CallingConvention) -> str:
    """Export channel for ``api_name``'s bucket of ``convention`` functions."""
    return f"{convention.prefix}{api_name}"


def setup_web_apis(index: CapabilityIndex, exporter: CapabilityExporter) -> list[str]:
    """Export four channels per web API, empty buckets included.

    Returns the channel names in export order.
    """
    channels: list[str] = []
    for api in index.web_apis():
        log.debug("Wiring up web API %s (scheme=%s)", api.name, api.scheme or api.schemes)
        partition = partition_manifest(api.manifest)
        for convention in CallingConvention:
            name = channel_name(api.name, convention)
            # TODO: narrow api.methods to the bucket's functions once exporters accept it.
            exporter.export_api(name, partition[convention], api.methods)
            channels.append(name)
    return channels


__all__ = [
    "ManifestPartition",
    "channel_name",
    "partition_manifest",
    "setup_web_apis",
]

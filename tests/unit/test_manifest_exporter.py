"""Tests for manifest partitioning and web API export."""

from __future__ import annotations

from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from plughub.capabilities import CapabilityIndex
from plughub.descriptors import CallingConvention, ManifestEntry
from plughub.exporter import channel_name, partition_manifest, setup_web_apis
from plughub.host import CapabilityExporter, RecordingHost
from tests.helpers.plugins import make_plugin

pytestmark = pytest.mark.unit

_PREFIXES = ["", "_with_cb_", "_with_async_cb_", "_export_as_static_obj_"]


def _f1() -> None:
    pass


def _f2() -> None:
    pass


def _f3() -> None:
    pass


def _f4() -> None:
    pass


def test_when_manifest_mixes_prefixes_then_each_entry_lands_in_one_bucket() -> None:
    partition = partition_manifest(
        {
            "_with_cb_foo": _f1,
            "_with_async_cb_bar": _f2,
            "_export_as_static_obj_baz": _f3,
            "qux": _f4,
        }
    )

    assert partition.callback == {"foo": _f1}
    assert partition.async_callback == {"bar": _f2}
    assert partition.static_object == {"baz": _f3}
    assert partition.plain == {"qux": _f4}


def test_when_entry_declares_convention_explicitly_then_prefix_is_not_needed() -> None:
    partition = partition_manifest(
        {"watch": ManifestEntry(_f1, CallingConvention.CALLBACK), "ping": _f2}
    )

    assert partition.callback == {"watch": _f1}
    assert partition.plain == {"ping": _f2}


def test_channel_names_use_convention_prefix_and_plain_has_none() -> None:
    assert channel_name("safeApp", CallingConvention.PLAIN) == "safeApp"
    assert channel_name("safeApp", CallingConvention.CALLBACK) == "_with_cb_safeApp"
    assert channel_name("safeApp", CallingConvention.ASYNC_CALLBACK) == "_with_async_cb_safeApp"
    assert (
        channel_name("safeApp", CallingConvention.STATIC_OBJECT)
        == "_export_as_static_obj_safeApp"
    )


@given(
    st.dictionaries(
        st.tuples(st.sampled_from(_PREFIXES), st.text(min_size=1, max_size=8)).map(
            lambda pair: pair[0] + pair[1]
        ),
        st.integers(),
        max_size=12,
    )
)
def test_partition_is_total_and_disjoint(manifest: dict[str, Any]) -> None:
    partition = partition_manifest(manifest)

    assert sum(len(bucket) for bucket in partition.buckets.values()) == len(manifest)
    assert sorted(partition.plain.values()) == sorted(
        value
        for key, value in manifest.items()
        if not any(key.startswith(prefix) for prefix in _PREFIXES[1:])
    )


def test_when_exporting_web_apis_then_four_channels_are_registered_per_api() -> None:
    methods = {"foo": "readable", "qux": "promise"}
    index = CapabilityIndex(
        [
            make_plugin(
                "plughub-plugin-safe",
                protocols={"scheme": "safe", "register": print},
                webAPIs=[
                    {
                        "name": "safeApp",
                        "manifest": {"_with_cb_foo": _f1, "qux": _f4},
                        "methods": methods,
                    },
                    {"name": "safeLogs", "manifest": {}},
                ],
            )
        ]
    )
    host = RecordingHost()

    channels = setup_web_apis(index, host)

    assert channels == [
        "safeApp",
        "_with_cb_safeApp",
        "_with_async_cb_safeApp",
        "_export_as_static_obj_safeApp",
        "safeLogs",
        "_with_cb_safeLogs",
        "_with_async_cb_safeLogs",
        "_export_as_static_obj_safeLogs",
    ]
    assert host.exports["safeApp"] == {"qux": _f4}
    assert host.exports["_with_cb_safeApp"] == {"foo": _f1}
    assert host.exports["_with_async_cb_safeApp"] == {}
    assert host.exports["_export_as_static_obj_safeLogs"] == {}
    assert host.export_methods["_with_cb_safeApp"] is methods


def test_recording_host_satisfies_capability_exporter_contract() -> None:
    assert isinstance(RecordingHost(), CapabilityExporter)

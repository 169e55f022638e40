"""Tests for web API manifest lookup by scheme."""

from __future__ import annotations

import pytest

from plughub.capabilities import CapabilityIndex
from plughub.lookup import get_web_api_manifests
from tests.helpers.plugins import make_plugin

pytestmark = pytest.mark.unit


def _register(channel: object) -> None:
    del channel


@pytest.fixture
def index() -> CapabilityIndex:
    return CapabilityIndex(
        [
            make_plugin(
                "plughub-plugin-safe",
                protocols=[
                    {"scheme": "safe", "register": _register},
                    {"scheme": "safe-auth", "register": _register},
                ],
                webAPIs=[
                    {"name": "safeApp", "manifest": {"initialise": "promise"}},
                    {"name": "safeAuth", "scheme": "safe-auth", "manifest": {"auth": "promise"}},
                    {
                        "name": "safeInternal",
                        "scheme": "safe",
                        "isInternal": True,
                        "manifest": {"secret": "sync"},
                    },
                ],
            ),
            make_plugin(
                "plughub-plugin-beaker",
                protocols={"scheme": "beaker", "isInternal": True, "register": _register},
                webAPIs=[
                    {"name": "beakerBrowser", "manifest": {"open": "promise"}},
                    {"name": "safeApp", "scheme": "safe", "manifest": {"override": "sync"}},
                ],
            ),
        ]
    )


def test_when_scheme_has_trailing_colon_then_results_match_bare_scheme(
    index: CapabilityIndex,
) -> None:
    assert get_web_api_manifests(index, "safe:") == get_web_api_manifests(index, "safe")
    assert get_web_api_manifests(index, "s:a:f:e") == get_web_api_manifests(index, "safe")


def test_when_scheme_is_unknown_then_result_is_empty(index: CapabilityIndex) -> None:
    assert get_web_api_manifests(index, "ipfs") == {}


def test_when_api_visibility_differs_from_protocol_then_it_is_excluded(
    index: CapabilityIndex,
) -> None:
    manifests = get_web_api_manifests(index, "safe")

    assert "safeInternal" not in manifests


def test_when_api_is_backfilled_with_multiple_schemes_then_each_scheme_sees_it(
    index: CapabilityIndex,
) -> None:
    assert "safeApp" in get_web_api_manifests(index, "safe")
    assert set(get_web_api_manifests(index, "safe-auth")) == {"safeApp", "safeAuth"}


def test_when_names_collide_then_the_later_manifest_wins(index: CapabilityIndex) -> None:
    assert get_web_api_manifests(index, "safe")["safeApp"] == {"override": "sync"}


def test_internal_protocol_only_sees_internal_apis(index: CapabilityIndex) -> None:
    assert get_web_api_manifests(index, "beaker:") == {}

from __future__ import annotations

import pytest

from plughub.descriptors import ProtocolDescriptor
from plughub.instrumentation import ActivationReport

pytestmark = pytest.mark.unit


def _proto(scheme: str, plugin: str) -> ProtocolDescriptor:
    return ProtocolDescriptor.from_declaration(
        {"scheme": scheme, "register": print}, plugin=plugin
    )


def test_report_records_schemes_in_activation_order() -> None:
    report = ActivationReport(log_events=False)

    for scheme in ("safe", "dat"):
        with report.measure(_proto(scheme, "plughub-plugin-safe")):
            pass

    assert report.registered == ["safe", "dat"]
    assert report.failure is None
    assert all(entry.duration_ms >= 0.0 for entry in report.entries)


def test_failed_registration_is_recorded_and_reraised() -> None:
    report = ActivationReport(log_events=False)

    with pytest.raises(RuntimeError), report.measure(_proto("flaky", "plughub-plugin-flaky")):
        raise RuntimeError("backend down")

    assert report.registered == []
    assert report.failure is not None
    assert report.failure.scheme == "flaky"
    assert report.failure.error == "RuntimeError: backend down"
    assert report.format_lines()[0].endswith("failed (RuntimeError: backend down)")


def test_by_plugin_groups_timings_per_owning_plugin() -> None:
    report = ActivationReport(log_events=False)
    for scheme, plugin in (("a", "one"), ("b", "one"), ("c", "two")):
        with report.measure(_proto(scheme, plugin)):
            pass

    timings = report.by_plugin()

    assert list(timings) == ["one", "two"]
    assert timings["one"].count == 2
    assert timings["two"].count == 1
    assert timings["one"].max_ms <= timings["one"].total_ms
    assert report.total_ms == pytest.approx(sum(t.total_ms for t in timings.values()))


def test_report_logs_structured_events_when_requested(caplog: pytest.LogCaptureFixture) -> None:
    report = ActivationReport(log_events=True)

    with caplog.at_level("INFO", logger="plughub.instrumentation"), report.measure(
        _proto("safe", "plughub-plugin-safe")
    ):
        pass

    messages = [record.getMessage() for record in caplog.records]
    assert any('"scheme": "safe"' in message and '"ok": true' in message for message in messages)


def test_event_logging_follows_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUGHUB_INSTRUMENTATION_LOG", "yes")
    assert ActivationReport().log_events is True

    monkeypatch.setenv("PLUGHUB_INSTRUMENTATION_LOG", "0")
    assert ActivationReport().log_events is False

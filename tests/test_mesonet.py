import asyncio
import datetime as dt
import json
from typing import Any, Sequence

import aiohttp
import pytest

from envdisplay.adapters.mesonet import (
    DataKind,
    DataVar,
    MesonetClient,
    OutdoorTemperatureJob,
    Result,
    Variable,
    summarize_series,
)
from envdisplay.core.snapshot import OUTDOOR_TEMPERATURE, Measurement, Snapshot
from envdisplay.errors import SourceError, StationResponseError, StationTransportError

UTC = dt.timezone.utc


def _fixed_now() -> dt.datetime:
    return dt.datetime(2021, 9, 19, 3, 30, tzinfo=UTC)


def _payload(tair: list, times: list[str], success: bool = True) -> dict:
    return {
        "success": success,
        "response": {
            "attrs": {},
            "dims": {"time": len(times), "station": 1},
            "coords": {
                "time": {"attrs": {"long_name": "time"}, "data": times, "dims": ["time"]},
                "station": {"attrs": {"long_name": "station"}, "data": ["bkln"], "dims": ["station"]},
            },
            "data_vars": {
                "tair": {
                    "attrs": {"long_name": "air temperature", "scale_factor": 1, "units": "degF"},
                    "data": [tair],
                    "dims": ["station", "time"],
                }
            },
        },
    }


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> "_FakeResponse":
        return self

    async def __aexit__(self, *exc: object) -> bool:
        return False


class _FakeSession:
    def __init__(self, status: int = 200, body: Any = None, exc: Exception | None = None) -> None:
        self._status = status
        self._body = body if isinstance(body, str) else json.dumps(body)
        self._exc = exc
        self.requests: list[tuple[str, dict]] = []

    def post(self, url: str, data: str, headers: dict) -> _FakeResponse:
        self.requests.append((url, json.loads(data)))
        if self._exc is not None:
            raise self._exc
        return _FakeResponse(self._status, self._body)


class _FakeStationClient:
    def __init__(self, result: Result) -> None:
        self._result = result
        self.calls: list[dict] = []

    async def fetch(
        self,
        start: dt.datetime,
        end: dt.datetime,
        stations: Sequence[str],
        variables: Sequence[Variable],
    ) -> Result:
        self.calls.append({"start": start, "end": end, "stations": stations, "variables": variables})
        return self._result


def _job(client: _FakeStationClient) -> OutdoorTemperatureJob:
    job = OutdoorTemperatureJob(client, stations=["bkln"])
    job._now = _fixed_now  # type: ignore[method-assign]
    return job


def test_datavar_decodes_time_coordinates() -> None:
    var = DataVar.model_validate(
        {"attrs": {"long_name": "time"}, "data": ["20210919T0230", "20210919T0235"]}
    )

    assert var.kind is DataKind.TIME
    assert var.time_data[0] == dt.datetime(2021, 9, 19, 2, 30, tzinfo=UTC)
    assert var.float_data == []


def test_datavar_scales_nested_numeric_series() -> None:
    var = DataVar.model_validate(
        {"attrs": {"long_name": "air temperature", "scale_factor": 0.5}, "data": [[156.8, None, 137.6]]}
    )

    assert var.kind is DataKind.FLOAT
    assert var.float_data == pytest.approx([78.4, 0.0, 68.8])


def test_datavar_without_scale_factor_uses_one() -> None:
    var = DataVar.model_validate({"data": [[1, 2]]})

    assert var.float_data == [1.0, 2.0]


def test_datavar_unknown_shape_stays_raw() -> None:
    var = DataVar.model_validate({"attrs": {"long_name": "station"}, "data": ["bkln"]})

    assert var.kind is DataKind.RAW
    assert var.data == ["bkln"]


def test_datavar_bad_time_degrades_to_raw() -> None:
    var = DataVar.model_validate({"attrs": {"long_name": "time"}, "data": ["yesterday"]})

    assert var.kind is DataKind.RAW
    assert var.time_data == []


def test_client_posts_request_and_decodes_result() -> None:
    session = _FakeSession(body=_payload([78.4, 68.8], ["20210919T0230", "20210919T0235"]))
    client = MesonetClient(session, "https://example.test/timeseries2")  # type: ignore[arg-type]
    start = dt.datetime(2021, 9, 19, 2, 30, tzinfo=UTC)

    result = asyncio.run(
        client.fetch(start, start + dt.timedelta(hours=1), ["bkln"], [Variable(id="tair", units="degF")])
    )

    url, body = session.requests[0]
    assert url == "https://example.test/timeseries2"
    assert body["dataset"] == "nysm"
    assert body["stations"] == ["bkln"]
    assert body["variables"] == [{"id": "tair", "units": "degF"}]
    assert body["start"].startswith("2021-09-19T02:30:00")
    assert result.success is True
    assert result.response.data_vars["tair"].float_data == [78.4, 68.8]
    assert result.response.coords["station"].kind is DataKind.RAW


def test_client_non_ok_status_is_transport_error() -> None:
    client = MesonetClient(_FakeSession(status=503, body="unavailable"), "u")  # type: ignore[arg-type]
    now = _fixed_now()

    with pytest.raises(StationTransportError) as excinfo:
        asyncio.run(client.fetch(now, now, ["bkln"], []))
    assert excinfo.value.status_code == 503


def test_client_network_failure_is_transport_error() -> None:
    session = _FakeSession(exc=aiohttp.ClientConnectionError("reset"))
    client = MesonetClient(session, "u")  # type: ignore[arg-type]
    now = _fixed_now()

    with pytest.raises(StationTransportError):
        asyncio.run(client.fetch(now, now, ["bkln"], []))


def test_client_unsuccessful_response_is_error() -> None:
    session = _FakeSession(body=_payload([], [], success=False))
    client = MesonetClient(session, "u")  # type: ignore[arg-type]
    now = _fixed_now()

    with pytest.raises(StationResponseError):
        asyncio.run(client.fetch(now, now, ["bkln"], []))


def test_client_invalid_json_is_response_error() -> None:
    client = MesonetClient(_FakeSession(body="<html>"), "u")  # type: ignore[arg-type]
    now = _fixed_now()

    with pytest.raises(StationResponseError):
        asyncio.run(client.fetch(now, now, ["bkln"], []))


def test_summarize_series_excludes_zero_entries() -> None:
    times = [_fixed_now() - dt.timedelta(minutes=5 * (4 - i)) for i in range(5)]

    latest, mean, last_update = summarize_series([78.4, 0.0, 70.0, 68.8, 0.0], times)

    assert latest == 68.8
    assert mean == pytest.approx((78.4 + 70.0 + 68.8) / 3)
    assert last_update == times[3]


def test_summarize_series_all_zero_is_source_error() -> None:
    with pytest.raises(SourceError):
        summarize_series([0.0, 0.0])


def test_job_updates_measurement_and_timestamp() -> None:
    result = Result.model_validate(
        _payload([78.4, 0, 70.0, 68.8], ["20210919T0230", "20210919T0235", "20210919T0240", "20210919T0245"])
    )
    client = _FakeStationClient(result)
    snapshot = Snapshot()

    asyncio.run(_job(client).run(snapshot))

    value = snapshot.measurement(OUTDOOR_TEMPERATURE)
    assert value.current == 68.8
    assert value.trailing_mean == pytest.approx((78.4 + 70.0 + 68.8) / 3)
    assert snapshot.last_external_update(OUTDOOR_TEMPERATURE) == dt.datetime(2021, 9, 19, 2, 45, tzinfo=UTC)
    assert client.calls[0]["end"] - client.calls[0]["start"] == dt.timedelta(hours=1)
    assert client.calls[0]["variables"] == [Variable(id="tair", units="degF")]


def test_job_skips_request_when_data_is_recent() -> None:
    client = _FakeStationClient(Result.model_validate(_payload([50.0], ["20210919T0330"])))
    snapshot = Snapshot()
    previous = Measurement(68.8, 70.0)
    snapshot.update_measurement(
        OUTDOOR_TEMPERATURE, previous, observed_at=_fixed_now() - dt.timedelta(minutes=2)
    )

    asyncio.run(_job(client).run(snapshot))

    assert client.calls == []
    assert snapshot.measurement(OUTDOOR_TEMPERATURE) == previous


def test_job_queries_again_after_min_interval() -> None:
    client = _FakeStationClient(Result.model_validate(_payload([50.0], ["20210919T0330"])))
    snapshot = Snapshot()
    snapshot.update_measurement(
        OUTDOOR_TEMPERATURE, Measurement(68.8, 70.0), observed_at=_fixed_now() - dt.timedelta(minutes=7)
    )

    asyncio.run(_job(client).run(snapshot))

    assert len(client.calls) == 1
    assert snapshot.measurement(OUTDOOR_TEMPERATURE) == Measurement(50.0, 50.0)


def test_job_all_zero_series_leaves_snapshot_untouched() -> None:
    client = _FakeStationClient(Result.model_validate(_payload([0, 0, 0], ["20210919T0230"] * 3)))
    snapshot = Snapshot()

    with pytest.raises(SourceError):
        asyncio.run(_job(client).run(snapshot))

    assert snapshot.measurement(OUTDOOR_TEMPERATURE) == Measurement()
    assert snapshot.last_external_update(OUTDOOR_TEMPERATURE) is None


def test_job_missing_variable_is_source_error() -> None:
    payload = _payload([1.0], ["20210919T0230"])
    del payload["response"]["data_vars"]["tair"]
    client = _FakeStationClient(Result.model_validate(payload))

    with pytest.raises(SourceError) as excinfo:
        asyncio.run(_job(client).run(Snapshot()))
    assert "no data points" in str(excinfo.value)


def _result_with_literals(*literals: str) -> Result:
    # NaN 与 1e400 无法由 json.dumps 直接写出，先用占位字符串再替换
    placeholders = [f"__value{i}__" for i in range(len(literals))]
    times = [f"20210919T02{30 + 5 * i}" for i in range(len(literals))]
    text = json.dumps(_payload(placeholders, times))
    for placeholder, literal in zip(placeholders, literals):
        text = text.replace(f'"{placeholder}"', literal)
    return Result.model_validate_json(text)


def test_summarize_series_skips_non_finite_entries() -> None:
    latest, mean, _ = summarize_series([float("nan"), 70.0, float("inf"), 72.0, float("-inf")])

    assert latest == 72.0
    assert mean == 71.0


def test_summarize_series_only_non_finite_is_source_error() -> None:
    with pytest.raises(SourceError):
        summarize_series([float("nan"), float("inf"), 0.0])


@pytest.mark.parametrize(
    ("literals", "expected_time"),
    [
        (("NaN", "70.0"), dt.datetime(2021, 9, 19, 2, 35, tzinfo=UTC)),
        (("1e400", "70.0"), dt.datetime(2021, 9, 19, 2, 35, tzinfo=UTC)),
        (("70.0", "1e400"), dt.datetime(2021, 9, 19, 2, 30, tzinfo=UTC)),
    ],
)
def test_job_ignores_non_finite_station_values(literals: tuple, expected_time: dt.datetime) -> None:
    client = _FakeStationClient(_result_with_literals(*literals))
    snapshot = Snapshot()

    asyncio.run(_job(client).run(snapshot))

    assert snapshot.measurement(OUTDOOR_TEMPERATURE) == Measurement(70.0, 70.0)
    assert snapshot.last_external_update(OUTDOOR_TEMPERATURE) == expected_time


def test_job_non_finite_series_leaves_snapshot_untouched() -> None:
    client = _FakeStationClient(_result_with_literals("NaN", "1e400"))
    snapshot = Snapshot()

    with pytest.raises(SourceError):
        asyncio.run(_job(client).run(snapshot))

    assert snapshot.measurement(OUTDOOR_TEMPERATURE) == Measurement()
    assert snapshot.last_external_update(OUTDOOR_TEMPERATURE) is None

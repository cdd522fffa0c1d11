from __future__ import annotations

from contextlib import contextmanager

import pytest
import requests
from django.test import Client, override_settings

from weatherlink.api.views import get_observation_service
from weatherlink.core.providers.nws import NWSProvider
from weatherlink.core.providers.primary import PrimaryFeedProvider


PRIMARY_URL = "https://primary.test/wx.json"
NWS = "https://nws.test"
POINTS_URL = f"{NWS}/points/38.355,-97.666"
STATIONS_URL = f"{NWS}/gridpoints/ICT/70,52/stations"
STATION_URL = f"{NWS}/stations/KMPR"

NWS_PROPERTIES = {
    "timestamp": "2024-07-01T17:55:00+00:00",
    "temperature": {"unitCode": "wmoUnit:degC", "value": 20},
    "relativeHumidity": {"unitCode": "wmoUnit:percent", "value": 50},
    "windSpeed": {"unitCode": "wmoUnit:m_s-1", "value": 5},
    "windDirection": {"unitCode": "wmoUnit:degree_(angle)", "value": 270},
}


@contextmanager
def service_settings(**overrides):
    values = {
        "PRIMARY_WEATHER_JSON_URL": "",
        "NWS_USER_AGENT": "",
        "NWS_BASE_URL": NWS,
        "WEATHERLINK_ZIP": "67460",
        "WEATHERLINK_LAT": 38.355,
        "WEATHERLINK_LON": -97.666,
        "WEATHERLINK_TIMEOUT_MS": 1000,
    }
    values.update(overrides)
    get_observation_service.cache_clear()
    try:
        with override_settings(**values):
            yield
    finally:
        get_observation_service.cache_clear()


def register_directory(requests_mock):
    requests_mock.get(POINTS_URL, json={"properties": {"observationStations": STATIONS_URL}})
    requests_mock.get(
        STATIONS_URL,
        json={"features": [{"id": STATION_URL, "properties": {"stationIdentifier": "KMPR", "name": "McPherson Airport"}}]},
    )


def test_obs_uses_primary_feed(requests_mock) -> None:
    requests_mock.get(
        PRIMARY_URL,
        json={"tempF": 70, "humidity": 45, "windSpeed": 10, "windUnit": "mph", "windDir": 180, "pressureInHg": 29.8},
    )

    with service_settings(PRIMARY_WEATHER_JSON_URL=PRIMARY_URL):
        response = Client().get("/api/obs")

    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["used"] == "primary"
    assert payload["station"] == {"id": "primary", "name": "primary"}
    assert payload["data"]["tempF"] == pytest.approx(70)
    assert payload["data"]["dryBulbF"] == pytest.approx(70)
    assert payload["data"]["windDirTxt"] == "S"
    assert payload["data"]["timestamp"].endswith("Z")
    assert not any(PRIMARY_URL in str(value) for value in payload.values())


def test_obs_falls_back_to_nws_list_when_latest_times_out(requests_mock) -> None:
    register_directory(requests_mock)
    requests_mock.get(f"{STATION_URL}/observations/latest", exc=requests.exceptions.ReadTimeout)
    requests_mock.get(f"{STATION_URL}/observations", json={"features": [{"properties": NWS_PROPERTIES}]})

    with service_settings():
        response = Client().get("/api/obs")

    assert response.status_code == 200
    payload = response.json()
    assert payload["used"] == "nws"
    assert payload["station"] == {"id": "KMPR", "name": "McPherson Airport", "url": STATION_URL}
    data = payload["data"]
    assert data["tempF"] == pytest.approx(68)
    assert data["rh"] == 50
    assert data["windMph"] == pytest.approx(11.18, abs=0.01)
    assert data["windDirDeg"] == 270
    assert data["windDirTxt"] == "W"
    assert data["pressureInHg"] is None
    assert data["timestamp"] == "2024-07-01T17:55:00Z"
    assert set(data) == {
        "tempF",
        "rh",
        "dryBulbF",
        "wetBulbF",
        "windMph",
        "windDirDeg",
        "windDirTxt",
        "pressureInHg",
        "timestamp",
    }


def test_obs_primary_failure_is_hidden_by_fallback(requests_mock) -> None:
    requests_mock.get(PRIMARY_URL, status_code=500, text="primary exploded")
    register_directory(requests_mock)
    requests_mock.get(f"{STATION_URL}/observations/latest", json={"properties": NWS_PROPERTIES})

    with service_settings(PRIMARY_WEATHER_JSON_URL=PRIMARY_URL):
        response = Client().get("/api/obs")

    assert response.status_code == 200
    payload = response.json()
    assert payload["used"] == "nws"
    assert "exploded" not in response.content.decode()


def test_obs_reports_failed_stage_and_keeps_serving(requests_mock, no_backoff) -> None:
    requests_mock.get(PRIMARY_URL, exc=requests.exceptions.ConnectTimeout)
    register_directory(requests_mock)
    requests_mock.get(
        f"{STATION_URL}/observations/latest",
        [{"status_code": 503, "text": "unavailable"}, {"json": {"properties": NWS_PROPERTIES}}],
    )
    requests_mock.get(f"{STATION_URL}/observations", status_code=503, text="unavailable")

    with service_settings(PRIMARY_WEATHER_JSON_URL=PRIMARY_URL):
        client = Client()
        failed = client.get("/api/obs")
        recovered = client.get("/api/obs")

    assert failed.status_code == 500
    assert failed.json()["ok"] is False
    assert failed.json()["step"] == "nws:fetch"
    assert "no observations available" in failed.json()["error"]
    assert recovered.status_code == 200
    assert recovered.json()["used"] == "nws"


def test_obs_primary_with_out_of_range_timestamp_still_serves(requests_mock) -> None:
    requests_mock.get(PRIMARY_URL, json={"tempC": 10, "timestamp": "0001-01-01T00:00:00+05:00"})
    register_directory(requests_mock)
    requests_mock.get(f"{STATION_URL}/observations/latest", json={"properties": NWS_PROPERTIES})

    with service_settings(PRIMARY_WEATHER_JSON_URL=PRIMARY_URL):
        response = Client().get("/api/obs")

    assert response.status_code == 200
    payload = response.json()
    assert payload["used"] == "primary"
    assert payload["data"]["tempF"] == pytest.approx(50)
    assert payload["data"]["timestamp"].endswith("Z")
    assert not payload["data"]["timestamp"].startswith("0001")


def test_obs_unexpected_primary_error_falls_back(requests_mock, monkeypatch) -> None:
    def explode(self):
        raise OverflowError("date value out of range")

    monkeypatch.setattr(PrimaryFeedProvider, "current", explode)
    register_directory(requests_mock)
    requests_mock.get(f"{STATION_URL}/observations/latest", json={"properties": NWS_PROPERTIES})

    with service_settings(PRIMARY_WEATHER_JSON_URL=PRIMARY_URL):
        response = Client().get("/api/obs")

    assert response.status_code == 200
    assert response.json()["used"] == "nws"


def test_obs_unexpected_error_reports_its_stage(requests_mock, monkeypatch) -> None:
    def explode(self, properties):
        raise ValueError("math domain error")

    monkeypatch.setattr(NWSProvider, "normalize", explode)
    register_directory(requests_mock)
    requests_mock.get(f"{STATION_URL}/observations/latest", json={"properties": NWS_PROPERTIES})

    with service_settings():
        response = Client().get("/api/obs")

    assert response.status_code == 500
    assert response.json() == {"ok": False, "step": "nws:normalize", "error": "math domain error"}


def test_obs_reports_resolve_stage(requests_mock, no_backoff) -> None:
    requests_mock.get(POINTS_URL, status_code=500, text="directory down")

    with service_settings():
        response = Client().get("/api/obs")

    assert response.status_code == 500
    assert response.json()["step"] == "nws:resolve"
    assert "HTTP 500" in response.json()["error"]
    assert no_backoff == [0.5]


def test_health_reports_configuration() -> None:
    with service_settings(NWS_USER_AGENT="test-agent (ops@example.com)"):
        response = Client().get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "env": {"primaryConfigured": False, "userAgentConfigured": True}}


def test_health_with_primary_configured() -> None:
    with service_settings(PRIMARY_WEATHER_JSON_URL=PRIMARY_URL):
        response = Client().get("/api/health")

    assert response.json()["env"] == {"primaryConfigured": True, "userAgentConfigured": False}

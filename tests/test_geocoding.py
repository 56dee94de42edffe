"""Unit tests for reverse geocoding and geolocation error messages."""
import asyncio

import httpx

from heartbeat.core.config import settings
from heartbeat.services.geocoding import coordinates_label, geolocation_error_message, reverse_geocode


def test_error_messages_are_distinct():
    messages = {geolocation_error_message(code) for code in (1, 2, 3)}
    assert len(messages) == 3
    assert "denied" in geolocation_error_message(1)
    assert "unavailable" in geolocation_error_message(2)
    assert "timed out" in geolocation_error_message(3)


def test_unknown_error_code_gets_generic_message():
    assert "enter manually" in geolocation_error_message(99)


def test_coordinates_label_uses_six_decimals():
    assert coordinates_label(12.9715987, 77.5945627) == "12.971599, 77.594563"


def test_reverse_geocode_returns_display_name():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        seen["user_agent"] = request.headers.get("user-agent")
        return httpx.Response(200, json={"display_name": "MG Road, Bengaluru"})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await reverse_geocode(12.97, 77.59, client=client)

    assert asyncio.run(scenario()) == "MG Road, Bengaluru"
    assert seen["params"]["format"] == "json"
    assert seen["params"]["lat"] == "12.97"
    assert seen["user_agent"] == settings.GEOCODER_USER_AGENT


def test_reverse_geocode_failure_returns_none():
    async def scenario(handler):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await reverse_geocode(1.0, 2.0, client=client)

    assert asyncio.run(scenario(lambda request: httpx.Response(503))) is None
    assert asyncio.run(scenario(lambda request: httpx.Response(200, text="not json"))) is None
    assert asyncio.run(scenario(lambda request: httpx.Response(200, json={}))) is None


def test_locate_endpoint(client, donor, monkeypatch):
    async def fake_reverse_geocode(latitude, longitude):
        return None

    monkeypatch.setattr("heartbeat.api.v1.endpoints.geocode.reverse_geocode", fake_reverse_geocode)

    response = client.post("/api/v1/geocode/locate", json={"latitude": 1.5, "longitude": 2.25},
                           headers=donor["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["location_name"] == "1.500000, 2.250000"
    assert data["resolved"] is False

    response = client.post("/api/v1/geocode/locate", json={"error_code": 1}, headers=donor["headers"])
    assert response.status_code == 400
    assert "denied" in response.json()["detail"]

    response = client.post("/api/v1/geocode/locate", json={}, headers=donor["headers"])
    assert response.status_code == 422

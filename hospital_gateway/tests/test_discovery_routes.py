from __future__ import annotations

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_root_describes_gateway(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["service"] == "Hospital Management API Gateway"
    assert body["version"] == "1.0.0"
    assert body["mode"] == "full-system"
    assert body["status"] == "running"
    assert body["availableServices"] == [
        "auth",
        "doctors",
        "patients",
        "appointments",
        "medical-records",
        "prescriptions",
        "billing",
    ]
    assert body["disabledServices"] == ["rooms", "departments", "notifications"]
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_services_lists_urls_of_enabled_services(client: AsyncClient):
    response = await client.get("/services")

    assert response.status_code == 200
    body = response.json()
    assert body["mode"] == "full-system"
    assert body["availableServices"]["billing"] == {
        "url": "http://billing.test",
        "status": "active",
    }
    assert "rooms" not in body["availableServices"]
    assert body["disabledServices"] == ["rooms", "departments", "notifications"]

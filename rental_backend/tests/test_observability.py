"""
Tests for request logging and correlation IDs.
"""

import logging
import pytest


@pytest.mark.asyncio
async def test_access_log_includes_request_details(client, caplog):
    caplog.set_level(logging.INFO, logger="rental_backend.access")

    response = await client.get("/health", headers={"X-Correlation-ID": "corr-42"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "corr-42"
    messages = [r.getMessage() for r in caplog.records if r.name == "rental_backend.access"]
    assert len(messages) == 1
    assert messages[0].startswith("GET /health 200 ")
    assert messages[0].endswith("correlation_id=corr-42")


@pytest.mark.asyncio
async def test_client_errors_logged_as_warning(client, caplog):
    caplog.set_level(logging.INFO, logger="rental_backend.access")

    await client.get("/v1/transactions/tx-missing/shipping-notifications")

    records = [r for r in caplog.records if r.name == "rental_backend.access"]
    assert records[0].levelno == logging.WARNING
    assert " 404 " in records[0].getMessage()

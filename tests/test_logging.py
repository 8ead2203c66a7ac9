import pytest
import structlog
from structlog.testing import capture_logs

from datarepo.shared.core.exceptions import InvalidFilterError, ValidationError
from datarepo.shared.core.logging import clear_log_context, log_context


def test_log_context_binds_until_cleared():
    log_context(request_id="req-1", tenant="acme")
    try:
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "tenant": "acme"}
    finally:
        clear_log_context()

    assert structlog.contextvars.get_contextvars() == {}


@pytest.mark.integration
@pytest.mark.asyncio
class TestUsageErrorsAreLogged:
    async def test_missing_ordering(self, article_repo):
        with capture_logs() as logs:
            with pytest.raises(ValidationError):
                await article_repo.list_paginated({"order": "id"})

        warning = next(entry for entry in logs if entry["event"] == "Paginated listing without ordering")
        assert warning["log_level"] == "warning"
        assert warning["missing"] == ["sort"]

    async def test_unknown_field(self, article_repo):
        with capture_logs() as logs:
            with pytest.raises(InvalidFilterError):
                await article_repo.find_one({"colour": "red"})

        assert {"event": "Unknown filter field", "log_level": "warning", "model": "Article", "field": "colour"} in logs

"""
Unit tests for the HTTP client configuration module.

This module contains tests for the HTTP client configuration module, ensuring
that it creates the shared client session and derives the redirect policy from
the provided configuration context.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

from unittest.mock import MagicMock, patch

import aiohttp
import pytest

from service_monitor.config.http_config import get_http_session, get_redirect_policy
from service_monitor.config.monitoring_context import MonitoringContext
from service_monitor.domain import RedirectPolicy


@pytest.fixture
def mock_context() -> MonitoringContext:
    """
    Creates a MonitoringContext for testing.

    Returns:
        MonitoringContext: A MonitoringContext that does not follow redirects.
    """
    return MonitoringContext(
        dsn="postgresql://localhost/test",
        instance_name="test-instance",
        logging_type="dev",
        logging_config_file="",
        db_pool_size=10,
        tick_interval=5,
        fivexx_down=True,
        follow_redirects=False,
        max_redirects=4,
    )


@pytest.mark.asyncio
async def test_get_http_session_should_create_session_without_timeout_or_cookies(
    mock_context: MonitoringContext,
) -> None:
    """
    Tests that the shared session has no session-wide timeout and keeps no cookies.

    The cookie jar needs a running event loop.
    """
    # Arrange
    mock_session = MagicMock(spec=aiohttp.ClientSession)

    with patch("aiohttp.ClientSession", return_value=mock_session) as mock_client_session:
        # Act
        result = get_http_session(mock_context)

        # Assert
        mock_client_session.assert_called_once()
        kwargs = mock_client_session.call_args.kwargs
        assert kwargs["timeout"].total is None
        assert isinstance(kwargs["cookie_jar"], aiohttp.DummyCookieJar)
        assert result == mock_session


def test_get_redirect_policy_should_reflect_context(mock_context: MonitoringContext) -> None:
    """
    Tests that the redirect policy is taken from the context.
    """
    # Act
    policy = get_redirect_policy(mock_context)

    # Assert
    assert policy == RedirectPolicy(follow=False, max_hops=4)

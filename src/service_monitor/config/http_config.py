"""
HTTP client configuration module for the service monitoring system.

This module provides functionality to create the HTTP client session shared by
all HTTP probes, and to derive the redirect policy they apply.
"""

import logging

import aiohttp

from service_monitor.config import MonitoringContext
from service_monitor.domain import RedirectPolicy

# Module logger
logger = logging.getLogger(__name__)


def get_http_session(context: MonitoringContext) -> aiohttp.ClientSession:
    """
    Create an HTTP client session for the probes.

    Using a shared session is recommended for performance reasons. Timeouts
    are applied per request, so the session itself has none. Cookies are
    never kept between probes.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        aiohttp.ClientSession: A configured HTTP client session that can be used to make HTTP requests.
    """
    logger.debug(f"Creating HTTP session for instance {context.instance_name}")
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=None),
        cookie_jar=aiohttp.DummyCookieJar(),
    )


def get_redirect_policy(context: MonitoringContext) -> RedirectPolicy:
    """
    Derive the redirect policy of HTTP probes from the configuration.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        RedirectPolicy: Whether redirects are followed, and how many at most.
    """
    return RedirectPolicy(follow=context.follow_redirects, max_hops=context.max_redirects)

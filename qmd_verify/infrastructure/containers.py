"""
Dependency Injection container for the qmd_verify component.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure
adapters, based on the application's configuration.
"""

from typing import Iterator

from dependency_injector import containers, providers
import httpx

from ..application.domain import *
from ..application.service import CompatibilityChecker
from ..settings import load_settings, server_host

from .api_client import HttpComparisonClient
from .files import LocalQmdFiles
from .polling import JobPoller


def _http_client(timeout: float) -> Iterator[httpx.Client]:
    """Opens the blocking HTTP client shared by one invocation."""
    with httpx.Client(timeout=timeout) as client:
        yield client


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    config = providers.Singleton(load_settings)

    host = providers.Callable(server_host, config)

    http_client = providers.Resource(
        _http_client,
        timeout=config.provided.request_timeout,
    )

    poller = providers.Factory(
        JobPoller,
        fast_interval=config.provided.polling.fast_interval,
        slow_interval=config.provided.polling.slow_interval,
        slow_after=config.provided.polling.slow_after,
        max_duration=config.provided.polling.max_duration,
        show_progress=config.provided.polling.show_progress,
    )

    comparison_client: providers.Factory[ComparisonSource] = providers.Factory(
        HttpComparisonClient,
        client=http_client,
        base_url=host,
        poller=poller,
    )

    upload_source: providers.Factory[UploadSource] = providers.Factory(
        LocalQmdFiles
    )

    checker = providers.Factory(
        CompatibilityChecker,
        source=comparison_client,
        uploads=upload_source,
    )

"""Tests for app assembly, lifespan, and the background token sweep."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from lofersil.csrf import CSRFOptions, CSRFTokenService
from lofersil.main import _csrf_cleanup_loop, create_app


class TestCreateApp:
    def test_owns_a_csrf_service(self, app, app_config):
        service = app.state.csrf_service
        assert isinstance(service, CSRFTokenService)
        assert service.get_config().cookie_name == app_config.csrf_cookie_name
        assert app.state.config is app_config

    def test_apps_get_independent_services(self, app_config):
        first = create_app(app_config)
        second = create_app(app_config)
        assert first.state.csrf_service is not second.state.csrf_service

    def test_injected_service(self, app_config):
        service = CSRFTokenService(CSRFOptions(signing_key="k"))
        app = create_app(app_config, csrf_service=service)
        assert app.state.csrf_service is service


class TestCleanupLoop:
    @pytest.mark.asyncio
    async def test_sweeps_periodically(self):
        service = MagicMock()
        task = asyncio.create_task(_csrf_cleanup_loop(service, 0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        await asyncio.wait([task], timeout=1.0)
        assert service.cleanup_expired.call_count >= 2
        assert task.done()

    @pytest.mark.asyncio
    async def test_survives_sweep_errors(self):
        service = MagicMock()
        service.cleanup_expired.side_effect = [RuntimeError("boom"), 0, 0, 0, 0, 0, 0, 0, 0, 0]
        task = asyncio.create_task(_csrf_cleanup_loop(service, 0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        await asyncio.wait([task], timeout=1.0)
        assert service.cleanup_expired.call_count >= 2


class TestLifespan:
    @pytest.mark.asyncio
    async def test_starts_and_stops_sweeper(self, app):
        service = app.state.csrf_service
        service.generate_token()

        async with app.router.lifespan_context(app):
            task = app.state.cleanup_task
            assert not task.done()

        assert task.done()
        assert service.get_stats().active_tokens == 0

    @pytest.mark.asyncio
    async def test_warns_when_production_has_no_secret(self, config_factory):
        app = create_app(config_factory(environment="production", csrf_secret=None))
        with patch("lofersil.main.logger") as logger:
            async with app.router.lifespan_context(app):
                pass
        events = [c.args[0] for c in logger.warning.call_args_list]
        assert events == ["csrf_secret_missing"]
        assert "CSRF_SECRET" in logger.warning.call_args.kwargs["detail"]

    @pytest.mark.asyncio
    async def test_no_secret_warning_with_secret(self, config_factory):
        app = create_app(config_factory(environment="production"))
        with patch("lofersil.main.logger") as logger:
            async with app.router.lifespan_context(app):
                pass
        logger.warning.assert_not_called()

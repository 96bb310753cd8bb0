"""Unit tests for Kubernetes and Redis connection helpers."""

from unittest.mock import MagicMock, patch

import pytest
import redis
from kubernetes.config.config_exception import ConfigException

from whocan.core.config import Settings
from whocan.core.exceptions import SourceFetchError
from whocan.db import kubernetes as kube
from whocan.db.redis import (close_redis_connection, get_redis_client,
                              get_redis_pool)


class TestGetApiClient:
    def test_kubeconfig_context(self):
        """Test kubeconfig path and context are passed through."""
        with patch.object(kube.config, "new_client_from_config") as new_client:
            api_client = kube.get_api_client(
                Settings(kubeconfig="/tmp/kubeconfig", context="staging")
            )

        new_client.assert_called_once_with(config_file="/tmp/kubeconfig", context="staging")
        assert api_client is new_client.return_value

    def test_in_cluster(self):
        """Test in-cluster configuration skips the kubeconfig."""
        with patch.object(kube.config, "load_incluster_config") as load, patch.object(
            kube.config, "new_client_from_config"
        ) as new_client:
            kube.get_api_client(Settings(in_cluster=True))

        load.assert_called_once_with()
        new_client.assert_not_called()

    def test_config_error(self):
        """Test configuration errors become fetch errors."""
        with patch.object(
            kube.config,
            "new_client_from_config",
            side_effect=ConfigException("Invalid kube-config file. No configuration found."),
        ):
            with pytest.raises(SourceFetchError) as exc_info:
                kube.get_api_client(Settings())

        assert "Unable to load Kubernetes configuration" in str(exc_info.value)


@pytest.mark.redis
class TestRedisClient:
    def test_pool_uses_settings_url(self, monkeypatch):
        """Test the pool is built from WHOCAN_REDIS_URL."""
        monkeypatch.setenv("WHOCAN_REDIS_URL", "redis://cache:6380/3")

        pool = get_redis_pool()

        assert pool.connection_kwargs["host"] == "cache"
        assert pool.connection_kwargs["port"] == 6380
        assert pool.connection_kwargs["db"] == 3

    def test_ping_failure_raises(self):
        """Test an unreachable server raises."""
        with patch("whocan.db.redis.redis.Redis") as redis_cls:
            redis_cls.return_value.ping.side_effect = redis.ConnectionError("refused")

            with pytest.raises(redis.ConnectionError):
                get_redis_client()

    def test_client_cached(self):
        with patch("whocan.db.redis.redis.Redis") as redis_cls:
            redis_cls.return_value = MagicMock()

            assert get_redis_client() is get_redis_client()

        redis_cls.assert_called_once()

    def test_close_without_pool(self):
        """Test closing does nothing when no pool was opened."""
        with patch("whocan.db.redis.redis.ConnectionPool.from_url") as from_url:
            close_redis_connection()

        from_url.assert_not_called()

    def test_close_disconnects_pool(self):
        """Test closing disconnects the pool and forgets the client."""
        with patch("whocan.db.redis.redis.ConnectionPool.from_url") as from_url:
            pool = get_redis_pool()
            close_redis_connection()

        pool.disconnect.assert_called_once_with()
        assert from_url.call_count == 1
        assert get_redis_pool.cache_info().currsize == 0
        assert get_redis_client.cache_info().currsize == 0

    def test_close_error_logged(self):
        """Test a failed disconnect does not raise."""
        with patch("whocan.db.redis.redis.ConnectionPool.from_url") as from_url:
            from_url.return_value.disconnect.side_effect = redis.ConnectionError("gone")
            get_redis_pool()

            close_redis_connection()

        assert get_redis_pool.cache_info().currsize == 0

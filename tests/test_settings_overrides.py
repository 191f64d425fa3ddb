from __future__ import annotations

from typing import Iterable

from datastore.sensor_store import build_default_store
from services.dashboard import build_default_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (get_settings, build_default_store, build_default_service)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    store_path = tmp_path / "store.json"

    monkeypatch.setenv("SENSOR_STORE_NAME", "custom-store")
    monkeypatch.setenv("SENSOR_STORE_PATH", str(store_path))
    monkeypatch.setenv("READINGS_DEFAULT_LIMIT", "25")
    monkeypatch.setenv("READINGS_MAX_LIMIT", "50")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        service = build_default_service()

        assert settings.log_level == "DEBUG"
        assert service.store.name == "custom-store"
        assert service.store.persistence_path == store_path
        assert service.store.max_limit == 50
        assert service.default_limit == 25
    finally:
        _clear_caches(CACHES)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_STORE_PATH", "  ")
    monkeypatch.setenv("READINGS_DEFAULT_LIMIT", "-3")
    monkeypatch.setenv("READINGS_MAX_LIMIT", "lots")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    _clear_caches(CACHES)

    try:
        settings = get_settings()

        assert settings.store_persistence_path is None
        assert settings.readings_default_limit == 100
        assert settings.readings_max_limit == 500
        assert settings.log_level == "INFO"
    finally:
        _clear_caches(CACHES)


def test_default_limit_never_exceeds_max(monkeypatch) -> None:
    monkeypatch.setenv("READINGS_DEFAULT_LIMIT", "400")
    monkeypatch.setenv("READINGS_MAX_LIMIT", "200")
    _clear_caches(CACHES)

    try:
        assert get_settings().readings_default_limit == 200
    finally:
        _clear_caches(CACHES)

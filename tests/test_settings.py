"""Tests for settings loading and the injected API config."""

import pytest

from weather_dashboard.settings import Settings, WeatherApiConfig


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("WEATHER_API_KEY", raising=False)
        settings = Settings(_env_file=None)
        assert settings.weather_api_key is None
        assert settings.default_city == "New York"
        assert settings.search_debounce_s == 0.3

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WEATHER_API_KEY", "env-key")
        monkeypatch.setenv("WEATHER_API_BASE_URL", "https://proxy.example/owm/")
        monkeypatch.setenv("GEOCODING_API_BASE_URL", "https://proxy.example/geo")
        settings = Settings(_env_file=None)
        assert settings.weather_api_key == "env-key"
        assert settings.weather_api_base_url == "https://proxy.example/owm/"

    def test_reads_env_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("WEATHER_API_KEY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("WEATHER_API_KEY=file-key\nDEFAULT_CITY=Oslo\n")
        settings = Settings(_env_file=env_file)
        assert settings.weather_api_key == "file-key"
        assert settings.default_city == "Oslo"


class TestApiConfig:
    def test_strips_trailing_slash(self):
        settings = Settings(
            _env_file=None,
            weather_api_key="k",
            weather_api_base_url="https://owm.test/data/2.5/",
            geocoding_api_base_url="https://owm.test/geo/1.0/",
        )
        config = settings.api_config()
        assert config.weather_base_url == "https://owm.test/data/2.5"
        assert config.geocoding_base_url == "https://owm.test/geo/1.0"
        assert config.has_api_key

    def test_blank_key_is_missing(self):
        config = Settings(_env_file=None, weather_api_key="").api_config()
        assert config.api_key is None
        assert not config.has_api_key

    def test_config_is_immutable(self):
        config = WeatherApiConfig(api_key="k", weather_base_url="a", geocoding_base_url="b")
        with pytest.raises(AttributeError):
            config.api_key = "other"

"""Tests for YAML configuration loading."""

import pytest

from domainpulse.checkers.factory import create_checker
from domainpulse.config import Settings, load_config
from domainpulse.errors import ConfigurationError


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv('GEMINI_API_KEY', raising=False)
        monkeypatch.delenv('API_KEY', raising=False)
        settings = load_config(str(tmp_path / 'nope.yaml'))
        assert settings.checker.backend == 'doh'
        assert settings.checker.timeout == 3.0
        assert settings.runner.batch_size == 10
        assert settings.runner.mode == 'chunked'
        assert settings.ai.api_key == ''

    def test_values_from_yaml(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text(
            "checker:\n  backend: DNS\n  timeout: 1.5\n"
            "runner:\n  batch_size: 50\n  mode: whole\n"
            "ai:\n  count: 20\n"
        )
        settings = load_config(str(path))
        assert settings.checker.backend == 'dns'
        assert settings.checker.timeout == 1.5
        assert settings.runner.batch_size == 50
        assert settings.runner.mode == 'whole'
        assert settings.ai.count == 20

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / 'other.yaml'
        path.write_text("runner:\n  batch_size: 7\n")
        monkeypatch.setenv('DOMAINPULSE_CONFIG', str(path))
        assert load_config().runner.batch_size == 7

    def test_env_secrets(self, monkeypatch):
        monkeypatch.setenv('GEMINI_API_KEY', 'gem')
        monkeypatch.setenv('NAMECHEAP_API_USER', 'user')
        monkeypatch.setenv('NAMECHEAP_API_KEY', 'nc')
        settings = Settings.from_dict({})
        assert settings.ai.api_key == 'gem'
        assert settings.checker.namecheap_api_user == 'user'
        assert settings.checker.namecheap_api_key == 'nc'

    def test_file_secret_wins_over_env(self, monkeypatch):
        monkeypatch.setenv('GEMINI_API_KEY', 'gem')
        settings = Settings.from_dict({'ai': {'api_key': 'from-file'}})
        assert settings.ai.api_key == 'from-file'

    def test_blank_secret_is_filled_from_env(self, monkeypatch):
        monkeypatch.setenv('REGISTRAR_API_KEY', 'reg')
        monkeypatch.setenv('GEMINI_API_KEY', 'gem')
        settings = Settings.from_dict({
            'checker': {'backend': 'registrar', 'registrar_url': 'https://r.test', 'registrar_api_key': None},
            'ai': {'api_key': None},
        })
        assert settings.checker.registrar_api_key == 'reg'
        assert settings.ai.api_key == 'gem'

    def test_blank_secret_without_env_stays_empty(self, tmp_path, monkeypatch):
        monkeypatch.delenv('REGISTRAR_API_KEY', raising=False)
        path = tmp_path / 'config.yaml'
        path.write_text("checker:\n  backend: registrar\n  registrar_url: https://r.test\n  registrar_api_key:\n")
        settings = load_config(str(path))
        assert settings.checker.registrar_api_key == ''
        with pytest.raises(ConfigurationError):
            create_checker(settings.checker)

    @pytest.mark.parametrize("data", [
        {'checker': {'backend': 'smoke-signals'}},
        {'runner': {'mode': 'random'}},
        {'runner': {'batch_size': 0}},
        {'checker': {'timeout': 0}},
        {'runner': {'batch_size': 'ten'}},
        {'checker': {'timeout': 'soon'}},
        {'server': {'port': [8088]}},
        {'checker': 'doh'},
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigurationError):
            Settings.from_dict(data)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text("checker: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

"""
Unit tests for EngineConfig
"""

from unittest.mock import patch

import pytest

from tablereduce.config import EngineConfig


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.workers is None
        assert config.fallback_workers == 4
        assert config.backend == 'pool'
        assert config.log_level == 'INFO'

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv('TABLEREDUCE_WORKERS', '6')
        monkeypatch.setenv('TABLEREDUCE_FALLBACK_WORKERS', '2')
        monkeypatch.setenv('TABLEREDUCE_BACKEND', 'thread')
        monkeypatch.setenv('TABLEREDUCE_LOG_LEVEL', 'debug')

        config = EngineConfig.from_env()

        assert config == EngineConfig(workers=6, fallback_workers=2, backend='thread', log_level='DEBUG')

    def test_from_env_without_variables(self, monkeypatch):
        for name in ('TABLEREDUCE_WORKERS', 'TABLEREDUCE_FALLBACK_WORKERS',
                     'TABLEREDUCE_BACKEND', 'TABLEREDUCE_LOG_LEVEL'):
            monkeypatch.delenv(name, raising=False)
        assert EngineConfig.from_env() == EngineConfig()

    def test_overrides_skip_none(self):
        config = EngineConfig(workers=2).with_overrides(workers=None, backend='serial')
        assert config.workers == 2
        assert config.backend == 'serial'

    @pytest.mark.parametrize("kwargs", [
        {'workers': 0},
        {'fallback_workers': 0},
        {'backend': 'gpu'},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_resolve_explicit_workers(self):
        assert EngineConfig(workers=3).resolve_workers() == 3

    @patch('tablereduce.coordinator.partitioner.psutil.cpu_count', return_value=None)
    def test_resolve_uses_fallback(self, _mock_cpu_count):
        assert EngineConfig(fallback_workers=5).resolve_workers() == 5

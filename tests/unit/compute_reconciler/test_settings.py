"""Unit tests for ReconcilerSettings."""

from __future__ import annotations

import pytest

from compute_reconciler.providers.ec2_client import Ec2ComputeClient
from compute_reconciler.settings import ReconcilerSettings


class TestDefaults:
    def test_defaults_are_valid(self):
        assert ReconcilerSettings().validate() == []

    def test_defaults_lack_a_region(self):
        assert ReconcilerSettings().validate_api() == ['region_name is required']

    def test_wait_options_without_min_interval(self):
        assert ReconcilerSettings().wait_options() == {
            'max_interval': 10.0,
            'not_found_checks': 20,
        }


class TestValidate:
    @pytest.mark.parametrize(
        ('kwargs', 'fragment'),
        [
            ({'request_timeout_seconds': 0}, 'request_timeout_seconds'),
            ({'max_retries': -1}, 'max_retries'),
            ({'min_poll_interval_seconds': 0}, 'min_poll_interval_seconds'),
            ({'min_poll_interval_seconds': 5, 'max_poll_interval_seconds': 2}, 'max_poll_interval'),
            ({'not_found_checks': -1}, 'not_found_checks'),
            ({'log_format': 'xml'}, 'log_format'),
        ],
    )
    def test_reports_problem(self, kwargs, fragment):
        problems = ReconcilerSettings(**kwargs).validate()
        assert any(fragment in p for p in problems)


class TestFromEnv:
    def test_reads_environment(self):
        settings = ReconcilerSettings.from_env({
            'AWS_REGION': 'eu-west-1',
            'COMPUTE_ENDPOINT_URL': 'http://localhost:4566',
            'COMPUTE_REQUEST_TIMEOUT': '12.5',
            'COMPUTE_MAX_RETRIES': '5',
            'RECONCILER_MIN_POLL_INTERVAL': '2',
            'RECONCILER_MAX_POLL_INTERVAL': '20',
            'RECONCILER_NOT_FOUND_CHECKS': '4',
            'LOG_LEVEL': 'DEBUG',
            'LOG_FORMAT': 'console',
        })

        assert settings.region_name == 'eu-west-1'
        assert settings.endpoint_url == 'http://localhost:4566'
        assert settings.request_timeout_seconds == 12.5
        assert settings.max_retries == 5
        assert settings.log_format == 'console'
        assert settings.wait_options() == {
            'max_interval': 20.0,
            'not_found_checks': 4,
            'min_interval': 2.0,
        }
        assert settings.validate() == []
        assert settings.validate_api() == []

    def test_default_region_fallback(self):
        settings = ReconcilerSettings.from_env({'AWS_DEFAULT_REGION': 'us-east-2'})
        assert settings.region_name == 'us-east-2'

    def test_empty_environment_uses_defaults(self):
        assert ReconcilerSettings.from_env({}) == ReconcilerSettings()

    def test_settings_are_frozen(self):
        settings = ReconcilerSettings()
        with pytest.raises(AttributeError):
            settings.max_retries = 9


class TestBuildClient:
    def test_requires_api_settings(self):
        with pytest.raises(ValueError, match='region_name is required'):
            ReconcilerSettings().build_client()

    def test_builds_ec2_client(self):
        settings = ReconcilerSettings(
            region_name='us-west-2',
            endpoint_url='http://localhost:4566',
            request_timeout_seconds=12.5,
            max_retries=4,
        )
        client = settings.build_client()
        try:
            assert isinstance(client, Ec2ComputeClient)
            assert client.ec2.meta.region_name == 'us-west-2'
            assert client.ec2.meta.endpoint_url == 'http://localhost:4566'
            assert client.ec2.meta.config.read_timeout == 12.5
            assert client.ec2.meta.config.retries['total_max_attempts'] == 5
        finally:
            client.close()

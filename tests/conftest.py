"""
Shared test fixtures.
"""

import pytest
from unittest.mock import MagicMock

from console_signin.config import Config


ASSUMED_ROLE_ARN = 'arn:aws:sts::123456789012:assumed-role/Admin/alice@example.com'
USER_ARN = 'arn:aws:iam::123456789012:user/dev/alice'


class FakeContext:
    """Stands in for AWSContextManager; one MagicMock per AWS service."""

    def __init__(self):
        self.session = MagicMock()
        self.clients = {'sts': MagicMock(), 'iam': MagicMock()}

    def client(self, service_name):
        return self.clients[service_name]

    @property
    def sts(self):
        return self.clients['sts']

    @property
    def iam(self):
        return self.clients['iam']


def sts_credentials(prefix):
    return {
        'Credentials': {
            'AccessKeyId': prefix + '-akid',
            'SecretAccessKey': prefix + '-secret',
            'SessionToken': prefix + '-token',
        }
    }


@pytest.fixture
def ctx():
    return FakeContext()


@pytest.fixture
def config():
    return Config()

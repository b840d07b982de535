"""
pytest configuration
Shared fixtures for hpx-deploy tests
"""

import os
import pytest
import boto3
from moto import mock_aws
from unittest.mock import Mock, patch

from hpx_deploy.release_store import ReleaseStore

RELEASE_BUCKET = 'hpx-release-test'


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials"""
    credentials = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1',
    }
    with patch.dict(os.environ, credentials):
        yield credentials


@pytest.fixture
def s3_client(aws_credentials):
    """Mocked S3 client"""
    with mock_aws():
        yield boto3.client('s3', region_name='us-east-1')


@pytest.fixture
def release_bucket(s3_client):
    """Release bucket holding version 1.2.0 and a LATEST marker"""
    s3_client.create_bucket(Bucket=RELEASE_BUCKET)
    s3_client.put_object(Bucket=RELEASE_BUCKET, Key='LATEST', Body=b'1.2.0\n')
    s3_client.put_object(Bucket=RELEASE_BUCKET, Key='1.2.0/cloudformation/hpx.yaml', Body=b'Resources: {}')
    return RELEASE_BUCKET


@pytest.fixture
def release_store(s3_client, release_bucket):
    """ReleaseStore backed by the mocked release bucket"""
    return ReleaseStore(bucket=release_bucket, s3_client=s3_client)


@pytest.fixture
def fake_release_store():
    """In-memory release store"""
    store = Mock()
    store.bucket = RELEASE_BUCKET
    store.latest_version.return_value = '1.2.0'
    store.exists.return_value = True
    return store


@pytest.fixture
def deploy_environ():
    """Minimal environment for a deployment"""
    return {'REDSHIFT_PASSWORD': 'Secr3tPassw0rd'}

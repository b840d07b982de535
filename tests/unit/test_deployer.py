"""
Unit tests for the CloudFormation stack deployer
"""

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from moto import mock_aws
from unittest.mock import Mock

from hpx_deploy.deployer import StackDeployer
from hpx_deploy.errors import ErrorType, ExternalCallFailure
from hpx_deploy.models import DeploymentRequest
from hpx_deploy.validation import Prefix, RedshiftUser, S3Uri, StackName, Version, VpcCidr


def client_error(message, code='ValidationError', operation='DescribeStacks'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


def make_request(execute=False):
    return DeploymentRequest(
        stack_name=StackName('hpx-us-west-2'),
        version=Version('1.2.0'),
        distribution_uri=S3Uri('s3://hpx-release-test/1.2.0'),
        prefix=Prefix('hpx'),
        redshift_user=RedshiftUser('hpx'),
        redshift_password='Secr3tPassw0rd',
        vpc_cidr=VpcCidr('172.31.0.0/16'),
        region='us-west-2',
        local_user='alice',
        execute_immediately=execute
    )


@pytest.fixture
def cloudformation():
    """Mock CloudFormation client with no existing stack"""
    client = Mock()
    client.describe_stacks.side_effect = client_error('Stack with id hpx-us-west-2 does not exist')
    client.create_stack.return_value = {'StackId': 'arn:aws:cloudformation:us-west-2:123456789012:stack/hpx-us-west-2/1'}
    client.create_change_set.return_value = {'Id': 'arn:aws:cloudformation:us-west-2:123456789012:changeSet/hpx/1'}
    return client


@pytest.fixture
def existing_stack(cloudformation):
    cloudformation.describe_stacks.side_effect = None
    cloudformation.describe_stacks.return_value = {'Stacks': [{'StackName': 'hpx-us-west-2'}]}
    return cloudformation


class TestDispatchNewStack:
    """Test cases for stacks that do not exist yet"""

    def test_creates_stack(self, cloudformation):
        request = make_request()
        deployer = StackDeployer(cloudformation_client=cloudformation)

        result = deployer.dispatch(request)

        cloudformation.create_stack.assert_called_once_with(
            StackName='hpx-us-west-2',
            TemplateURL='https://s3.us-west-2.amazonaws.com/hpx-release-test/1.2.0/cloudformation/hpx.yaml',
            Parameters=request.to_parameters(),
            Capabilities=['CAPABILITY_NAMED_IAM']
        )
        cloudformation.create_change_set.assert_not_called()
        cloudformation.execute_change_set.assert_not_called()
        assert result['action'] == 'create'
        assert result['stack_id'].endswith('stack/hpx-us-west-2/1')

    def test_execute_flag_ignored_for_new_stack(self, cloudformation):
        StackDeployer(cloudformation_client=cloudformation).dispatch(make_request(execute=True))

        assert cloudformation.create_stack.call_count == 1
        cloudformation.execute_change_set.assert_not_called()

    def test_create_failure(self, cloudformation):
        cloudformation.create_stack.side_effect = client_error(
            'Requires capabilities', code='InsufficientCapabilitiesException', operation='CreateStack'
        )

        with pytest.raises(ExternalCallFailure) as exc_info:
            StackDeployer(cloudformation_client=cloudformation).dispatch(make_request())

        assert exc_info.value.operation == 'create-stack'
        assert exc_info.value.error_type == ErrorType.EXTERNAL_CALL_ERROR
        assert cloudformation.create_stack.call_count == 1


class TestDispatchExistingStack:
    """Test cases for stacks that already exist"""

    def test_creates_change_set_only(self, existing_stack):
        request = make_request()

        result = StackDeployer(cloudformation_client=existing_stack).dispatch(request)

        existing_stack.create_change_set.assert_called_once_with(
            StackName='hpx-us-west-2',
            TemplateURL=request.template_url,
            ChangeSetName='hpx-changeset-alice-us-west-2',
            Parameters=request.to_parameters(),
            Capabilities=['CAPABILITY_NAMED_IAM']
        )
        existing_stack.create_stack.assert_not_called()
        existing_stack.execute_change_set.assert_not_called()
        assert result == {
            'action': 'change_set',
            'stack_name': 'hpx-us-west-2',
            'change_set_name': 'hpx-changeset-alice-us-west-2',
            'change_set_id': 'arn:aws:cloudformation:us-west-2:123456789012:changeSet/hpx/1',
            'executed': False
        }

    def test_executes_change_set(self, existing_stack):
        calls = []
        existing_stack.create_change_set.side_effect = lambda **kwargs: calls.append('create') or {'Id': 'cs'}
        existing_stack.execute_change_set.side_effect = lambda **kwargs: calls.append('execute') or {}

        result = StackDeployer(cloudformation_client=existing_stack).dispatch(make_request(execute=True))

        assert calls == ['create', 'execute']
        existing_stack.execute_change_set.assert_called_once_with(
            ChangeSetName='hpx-changeset-alice-us-west-2',
            StackName='hpx-us-west-2'
        )
        assert result['executed'] is True

    def test_change_set_failure_skips_execute(self, existing_stack):
        existing_stack.create_change_set.side_effect = client_error(
            'ChangeSet already exists', code='AlreadyExistsException', operation='CreateChangeSet'
        )

        with pytest.raises(ExternalCallFailure, match='create-change-set failed'):
            StackDeployer(cloudformation_client=existing_stack).dispatch(make_request(execute=True))

        existing_stack.execute_change_set.assert_not_called()


class TestStackExists:
    """Test cases for the stack existence check"""

    def test_other_client_error_propagates(self, cloudformation):
        cloudformation.describe_stacks.side_effect = client_error('Rate exceeded', code='Throttling')

        with pytest.raises(ExternalCallFailure) as exc_info:
            StackDeployer(cloudformation_client=cloudformation).dispatch(make_request())

        assert exc_info.value.operation == 'describe-stacks'
        cloudformation.create_stack.assert_not_called()

    def test_network_error_propagates(self, cloudformation):
        cloudformation.describe_stacks.side_effect = EndpointConnectionError(
            endpoint_url='https://cloudformation.us-west-2.amazonaws.com'
        )

        with pytest.raises(ExternalCallFailure):
            StackDeployer(cloudformation_client=cloudformation).stack_exists('hpx-us-west-2')

    def test_missing_stack_with_moto(self, aws_credentials):
        with mock_aws():
            deployer = StackDeployer(session=boto3.Session(region_name='us-east-1'), region='us-east-1')

            assert deployer.stack_exists('hpx-us-east-1') is False

    def test_existing_stack_with_moto(self, aws_credentials):
        template = '{"Resources": {"Topic": {"Type": "AWS::SNS::Topic"}}}'
        with mock_aws():
            client = boto3.client('cloudformation', region_name='us-east-1')
            client.create_stack(StackName='hpx-us-east-1', TemplateBody=template)

            assert StackDeployer(cloudformation_client=client).stack_exists('hpx-us-east-1') is True

"""
CloudFormation stack dispatcher

Creates the stack when it does not exist yet, otherwise stages a change set
and optionally executes it. Every API call is attempted once.
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from hpx_deploy import config
from hpx_deploy.errors import ExternalCallFailure
from hpx_deploy.log import sanitize_parameters
from hpx_deploy.models import DeploymentRequest

logger = logging.getLogger(__name__)


class StackDeployer:
    """HPX stack deployer"""

    def __init__(self, region: Optional[str] = None, session: Optional[boto3.Session] = None,
                 cloudformation_client=None):
        """
        Args:
            region: AWS region
            session: boto3 session used to create the client
            cloudformation_client: CloudFormation client, created from ``session`` when omitted
        """
        if cloudformation_client is None:
            session = session or boto3.Session()
            cloudformation_client = session.client('cloudformation', region_name=region)
        self.cloudformation = cloudformation_client

    def dispatch(self, request: DeploymentRequest) -> Dict[str, Any]:
        """
        Create the stack or stage a change set for it.

        Args:
            request: validated deployment request

        Returns:
            dict: what was done and the ids returned by CloudFormation

        Raises:
            ExternalCallFailure: when any CloudFormation call fails
        """
        parameters = request.to_parameters()
        logger.debug(f"Template: {request.template_url}")
        logger.debug(f"Parameters: {sanitize_parameters(parameters)}")

        if not self.stack_exists(request.stack_name):
            logger.info(f"Creating new stack: {request.stack_name}")
            response = self._call(
                'create-stack',
                self.cloudformation.create_stack,
                StackName=request.stack_name,
                TemplateURL=request.template_url,
                Parameters=parameters,
                Capabilities=config.CAPABILITIES
            )
            return {
                'action': 'create',
                'stack_name': request.stack_name,
                'stack_id': response.get('StackId')
            }

        logger.info(f"Creating changeset for existing stack: {request.stack_name}")
        response = self._call(
            'create-change-set',
            self.cloudformation.create_change_set,
            StackName=request.stack_name,
            TemplateURL=request.template_url,
            ChangeSetName=request.change_set_name,
            Parameters=parameters,
            Capabilities=config.CAPABILITIES
        )
        result = {
            'action': 'change_set',
            'stack_name': request.stack_name,
            'change_set_name': request.change_set_name,
            'change_set_id': response.get('Id'),
            'executed': False
        }

        if request.execute_immediately:
            logger.info(f"Executing changeset: {request.change_set_name}")
            self._call(
                'execute-change-set',
                self.cloudformation.execute_change_set,
                ChangeSetName=request.change_set_name,
                StackName=request.stack_name
            )
            result['executed'] = True

        return result

    def stack_exists(self, stack_name: str) -> bool:
        """Check whether a CloudFormation stack exists"""
        try:
            self.cloudformation.describe_stacks(StackName=stack_name)
            return True
        except ClientError as e:
            if 'does not exist' in str(e):
                return False
            raise ExternalCallFailure('describe-stacks', e) from e
        except BotoCoreError as e:
            raise ExternalCallFailure('describe-stacks', e) from e

    def _call(self, operation: str, method, **kwargs) -> Dict[str, Any]:
        try:
            return method(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise ExternalCallFailure(operation, e) from e

"""
Deployment request model

A DeploymentRequest is assembled once per invocation from the parsed CLI
options and the process environment, validated field by field, and then
handed to the deployer.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from hpx_deploy import config
from hpx_deploy.errors import ValidationFailure
from hpx_deploy.validation import (
    Prefix,
    RedshiftUser,
    S3Uri,
    StackName,
    Version,
    VpcCidr,
    check_environment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeployOptions:
    """Values taken from the command line"""
    version: Optional[str] = None
    custom_uri: Optional[str] = None
    execute: bool = False
    stack_name: Optional[str] = None


@dataclass(frozen=True)
class DeploymentRequest:
    """Validated parameters for one stack deployment"""
    stack_name: StackName
    version: Version
    distribution_uri: S3Uri
    prefix: Prefix
    redshift_user: RedshiftUser
    redshift_password: str = field(repr=False)
    vpc_cidr: VpcCidr
    region: str
    local_user: str
    execute_immediately: bool = False

    @property
    def template_url(self) -> str:
        """HTTPS URL of the CloudFormation template inside the distribution"""
        return S3Uri(self.distribution_uri.join(config.TEMPLATE_KEY)).to_https_url(self.region)

    @property
    def change_set_name(self) -> str:
        """
        Deterministic per prefix, user and region.

        Characters CloudFormation does not allow in change set names
        (dots, backslashes, ...) are replaced in the user name.
        """
        user = re.sub(r'[^-a-zA-Z0-9]+', '-', self.local_user)
        return f"{self.prefix}-changeset-{user}-{self.region}"

    def to_parameters(self) -> List[Dict[str, Any]]:
        """CloudFormation parameter list"""
        values = [
            ('Prefix', self.prefix),
            ('DistS3Bucket', self.distribution_uri.bucket),
            ('DistS3Root', self.distribution_uri.key),
            ('RedshiftUser', self.redshift_user),
            ('RedshiftPassword', self.redshift_password),
            ('VpcCidrBlock', self.vpc_cidr),
        ]
        return [
            {'ParameterKey': key, 'ParameterValue': str(value)}
            for key, value in values
        ]


def build_request(options: DeployOptions, environ: Mapping[str, str], region: str,
                  local_user: str, release_store) -> DeploymentRequest:
    """
    Apply defaults and validate every field of a deployment request.

    Fields are resolved in a fixed order and the first invalid one aborts
    the whole build.

    Args:
        options: parsed command line options
        environ: process environment
        region: AWS region of the current session
        local_user: name of the invoking OS user
        release_store: ReleaseStore used to resolve LATEST and check the distribution

    Returns:
        DeploymentRequest: the validated request

    Raises:
        ValidationFailure: on the first invalid field
    """
    check_environment(environ, config.REQUIRED_ENVIRONMENT_VARIABLES).unwrap()
    explicit_stack_name = StackName.parse(options.stack_name).unwrap() if options.stack_name is not None else None

    version = Version.parse(options.version or release_store.latest_version()).unwrap()

    distribution_uri = S3Uri.parse(
        options.custom_uri or f"s3://{release_store.bucket}/{version}"
    ).unwrap()
    if not release_store.exists(distribution_uri):
        raise ValidationFailure(f"Cannot access S3URI ({distribution_uri})",
                                field=S3Uri.FIELD, value=distribution_uri)

    prefix = Prefix.parse(environ.get('PREFIX') or config.DEFAULT_PREFIX).unwrap()
    stack_name = explicit_stack_name or StackName.parse(f"{prefix}-{region}").unwrap()
    redshift_user = RedshiftUser.parse(
        environ.get('REDSHIFT_USER') or config.DEFAULT_REDSHIFT_USER
    ).unwrap()
    vpc_cidr = VpcCidr.parse(environ.get('VPC_CIDR') or config.DEFAULT_VPC_CIDR).unwrap()

    request = DeploymentRequest(
        stack_name=stack_name,
        version=version,
        distribution_uri=distribution_uri,
        prefix=prefix,
        redshift_user=redshift_user,
        redshift_password=environ['REDSHIFT_PASSWORD'],
        vpc_cidr=vpc_cidr,
        region=region,
        local_user=local_user,
        execute_immediately=options.execute,
    )
    logger.debug(f"Resolved deployment request for {stack_name} (version {version}, {distribution_uri})")
    return request

#!/usr/bin/env python3
"""
hpx-deploy command line interface
Creates or updates an HPX CloudFormation stack
"""

import argparse
import getpass
import logging
import os
import sys
from typing import List, Mapping, Optional

import boto3

from hpx_deploy import __version__, config
from hpx_deploy.deployer import StackDeployer
from hpx_deploy.errors import ConfigurationError, DeployError, ValidationFailure
from hpx_deploy.log import get_logger
from hpx_deploy.models import DeployOptions, build_request
from hpx_deploy.release_store import ReleaseStore
from hpx_deploy.validation import check_environment

logger = logging.getLogger(__name__)

USAGE = f"""hpx-deploy build {__version__}

USAGE:
  [VARIABLE=<string> ...] hpx-deploy [OPTIONS] <stack-name>

ARGUMENTS:
  stack-name                    Name of the stack you wish to create or update.
                                Defaults to "<PREFIX>-<AWS REGION>"

OPTIONS:
  -V,--version <version>        Select the version of HPX to deploy.
                                Defaults to the latest version.

  -c,--custom  <S3URI>          Deploy HPX from a custom s3 location.
                                Set to the root of your custom HPX instance.
                                EXAMPLE: 's3://hpx-dev-us-west-2/master'

  -x,--execute                  If deploying to an existing stack, immediately
                                execute any changes. If not set, a changeset is
                                created for review before execution.

ENVIRONMENT VARIABLES:
  VPC_CIDR                      The IPv4 block to use when creating VPC resources.
                                Example: '10.0.55.0/24'
                                Defaults to {config.DEFAULT_VPC_CIDR}

  REDSHIFT_PASSWORD (required)  The Redshift master password to set.

  REDSHIFT_USER     (optional)  The Redshift root user to create.
                                Defaults to '{config.DEFAULT_REDSHIFT_USER}'

  PREFIX   (optional)           The prefix to use when naming AWS resources.
                                Defaults to '{config.DEFAULT_PREFIX}'

  RELEASEBUCKET (optional)      Bucket holding HPX releases and the LATEST marker.
                                Defaults to '{config.RELEASE_BUCKET}'
"""


class DeployArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports errors as ValidationFailure"""

    def error(self, message):
        raise ValidationFailure(message)


def build_parser() -> argparse.ArgumentParser:
    parser = DeployArgumentParser(prog='hpx-deploy', add_help=False)
    parser.add_argument('-V', '--version', nargs='?', const='')
    parser.add_argument('-c', '--custom', nargs='?', const='')
    parser.add_argument('-x', '--execute', action='store_true')
    # Everything from the first positional token onwards is the stack name
    parser.add_argument('stack_name', nargs=argparse.REMAINDER)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> DeployOptions:
    """
    Parse command line arguments.

    Args:
        argv: argument list, defaults to ``sys.argv[1:]``

    Returns:
        DeployOptions: parsed options

    Raises:
        ValidationFailure: on a missing option value or an unknown option
    """
    args = build_parser().parse_args(argv)

    if args.version == '':
        raise ValidationFailure("(--version) Version string expected!", field='version', value='')
    if args.custom == '':
        raise ValidationFailure("(--custom) S3 location expected!", field='custom', value='')

    return DeployOptions(
        version=args.version,
        custom_uri=args.custom,
        execute=args.execute,
        stack_name=' '.join(args.stack_name) if args.stack_name else None
    )


def resolve_region(session: boto3.Session) -> str:
    """Default region of the AWS session"""
    if session.get_credentials() is None:
        raise ConfigurationError("AWS credentials not found! Configure the AWS CLI or set AWS_ACCESS_KEY_ID")
    if not session.region_name:
        raise ConfigurationError("AWS region not configured! Run 'aws configure' or set AWS_DEFAULT_REGION")
    return session.region_name


def local_user() -> str:
    """Name of the invoking OS user"""
    try:
        return getpass.getuser()
    except (OSError, KeyError) as e:
        raise ConfigurationError(f"Cannot determine local user name: {e}", original_exception=e) from e


def fail(error: DeployError) -> None:
    """Report an error with usage text and terminate"""
    logger.error(error.message or 'Unknown Error!')
    print(USAGE, file=sys.stderr)
    sys.exit(config.EXIT_FAILURE)


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None):
    """Main function"""
    get_logger('hpx-deploy')
    environ = os.environ if environ is None else environ

    try:
        check_environment(environ, config.REQUIRED_ENVIRONMENT_VARIABLES).unwrap()
        options = parse_args(argv)

        session = boto3.Session()
        region = resolve_region(session)

        request = build_request(
            options,
            environ,
            region=region,
            local_user=local_user(),
            release_store=ReleaseStore(
                bucket=environ.get('RELEASEBUCKET') or config.RELEASE_BUCKET,
                session=session
            )
        )
        result = StackDeployer(region=region, session=session).dispatch(request)
    except DeployError as e:
        fail(e)

    if result['action'] == 'create':
        logger.info(f"Stack creation started: {result['stack_id']}")
    elif result['executed']:
        logger.info(f"Changeset {result['change_set_name']} executed")
    else:
        logger.info(f"Changeset {result['change_set_name']} created, review it before execution")
    sys.exit(0)


if __name__ == '__main__':
    main()

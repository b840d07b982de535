"""
hpx-deploy configuration
"""
import os

# S3 locations
RELEASE_BUCKET = os.environ.get('RELEASEBUCKET', 'hpx-release-us-west-2')
CODE_PIPELINE_BUCKET = os.environ.get('CODE_PIPELINE_BUCKET', 'hpx-code-pipeline-repo-us-east-1')
LATEST_MARKER_KEY = 'LATEST'
TEMPLATE_KEY = 'cloudformation/hpx.yaml'

# Deployment defaults
DEFAULT_PREFIX = 'hpx'
DEFAULT_REDSHIFT_USER = 'hpx'
DEFAULT_VPC_CIDR = '172.31.0.0/16'
REQUIRED_ENVIRONMENT_VARIABLES = ('REDSHIFT_PASSWORD',)
CAPABILITIES = ['CAPABILITY_NAMED_IAM']

# System
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
EXIT_FAILURE = 255

"""
Release store access

The release bucket holds one prefix per released version plus a plain-text
LATEST marker naming the newest one.
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from hpx_deploy import config
from hpx_deploy.validation import S3Uri

logger = logging.getLogger(__name__)


class ReleaseStore:
    """Read-only view of the HPX release bucket"""

    def __init__(self, bucket: str = config.RELEASE_BUCKET, s3_client=None,
                 session: Optional[boto3.Session] = None):
        """
        Args:
            bucket: release bucket name
            s3_client: S3 client, created from ``session`` when omitted
            session: boto3 session used to create the client
        """
        self.bucket = bucket
        if s3_client is None:
            s3_client = (session or boto3.Session()).client('s3')
        self.s3 = s3_client

    def latest_version(self) -> str:
        """
        Contents of the LATEST marker.

        A failed read returns an empty string, which the version
        validator then rejects.
        """
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=config.LATEST_MARKER_KEY)
            return response['Body'].read().decode('utf-8').strip()
        except (ClientError, BotoCoreError, UnicodeDecodeError) as e:
            logger.debug(f"Cannot read s3://{self.bucket}/{config.LATEST_MARKER_KEY}: {e}")
            return ''

    def exists(self, uri: S3Uri) -> bool:
        """Whether anything is listable at ``uri`` (``aws s3 ls`` semantics)"""
        try:
            if not uri.key:
                self.s3.head_bucket(Bucket=uri.bucket)
                return True
            response = self.s3.list_objects_v2(Bucket=uri.bucket, Prefix=uri.key, MaxKeys=1)
            return response.get('KeyCount', 0) > 0
        except (ClientError, BotoCoreError) as e:
            logger.debug(f"Cannot access {uri}: {e}")
            return False

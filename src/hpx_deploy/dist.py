#!/usr/bin/env python3
"""
HPX repository packaging script
Zips the repository into dist/hpx.zip and syncs the tree to the code pipeline bucket
"""

import argparse
import logging
import os
import subprocess
import sys
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from hpx_deploy import config
from hpx_deploy.errors import DeployError, ExternalCallFailure
from hpx_deploy.log import get_logger

logger = logging.getLogger(__name__)

DIST_DIR = 'dist'
ARCHIVE_NAME = 'hpx.zip'
EXCLUDED_DIRS = ('.git',)


class RepositoryPackager:
    """HPX repository packager"""

    def __init__(self, project_root: Optional[str] = None, s3_client=None):
        """
        Args:
            project_root: repository root, defaults to the current directory
            s3_client: S3 client used for the upload
        """
        self.project_root = Path(project_root or os.getcwd()).resolve()
        self.dist_dir = self.project_root / DIST_DIR
        self._s3 = s3_client

    @property
    def s3(self):
        if self._s3 is None:
            self._s3 = boto3.client('s3')
        return self._s3

    def create_archive(self) -> Path:
        """
        Zip the repository tree into ``dist/hpx.zip``.

        Returns:
            Path: archive path
        """
        self.dist_dir.mkdir(parents=True, exist_ok=True)
        archive_path = self.dist_dir / ARCHIVE_NAME
        archive_path.unlink(missing_ok=True)

        logger.info(f"Creating archive: {archive_path}")
        with zipfile.ZipFile(archive_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for file_path in self._walk(skip_dist=True):
                zipf.write(file_path, file_path.relative_to(self.project_root).as_posix())

        return archive_path

    def current_branch(self) -> str:
        """Name of the checked out git branch"""
        try:
            result = subprocess.run(
                ['git', 'rev-parse', '--abbrev-ref', 'HEAD'],
                cwd=self.project_root, capture_output=True, text=True
            )
        except OSError as e:
            raise DeployError(f"Cannot determine git branch: {e}", original_exception=e) from e
        if result.returncode != 0:
            raise DeployError(f"Cannot determine git branch: {result.stderr.strip()}")
        return result.stdout.strip()

    def sync(self, bucket: str, prefix: str) -> Dict[str, List[str]]:
        """
        Mirror the repository tree under ``s3://bucket/prefix/``.

        Every local file is uploaded; remote keys under the prefix with no
        local counterpart are deleted.

        Returns:
            dict: uploaded and deleted keys
        """
        prefix = prefix.strip('/')
        local_keys = {}
        for file_path in self._walk(skip_dist=False):
            relative = file_path.relative_to(self.project_root).as_posix()
            local_keys[f"{prefix}/{relative}"] = file_path

        logger.info(f"Syncing {self.project_root} to s3://{bucket}/{prefix}")
        try:
            for key, file_path in sorted(local_keys.items()):
                self.s3.upload_file(str(file_path), bucket, key)

            stale_keys = [key for key in self._list_keys(bucket, f"{prefix}/") if key not in local_keys]
            for start in range(0, len(stale_keys), 1000):
                batch = stale_keys[start:start + 1000]
                self.s3.delete_objects(
                    Bucket=bucket,
                    Delete={'Objects': [{'Key': key} for key in batch], 'Quiet': True}
                )
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            raise ExternalCallFailure('s3-sync', e) from e

        for key in stale_keys:
            logger.info(f"delete: s3://{bucket}/{key}")

        return {'uploaded': sorted(local_keys), 'deleted': stale_keys}

    def _list_keys(self, bucket: str, prefix: str) -> List[str]:
        paginator = self.s3.get_paginator('list_objects_v2')
        keys = []
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            keys.extend(item['Key'] for item in page.get('Contents', []))
        return keys

    def _walk(self, skip_dist: bool):
        for root, dirs, files in os.walk(self.project_root):
            root_path = Path(root)
            dirs[:] = sorted(
                d for d in dirs
                if d not in EXCLUDED_DIRS and not (skip_dist and root_path / d == self.dist_dir)
            )
            for file in sorted(files):
                yield root_path / file


def main(argv: Optional[List[str]] = None):
    """Main function"""
    parser = argparse.ArgumentParser(description='Package the HPX repository and sync it to S3')
    parser.add_argument('--project-root', help='repository root (defaults to the current directory)')
    parser.add_argument('--bucket', default=config.CODE_PIPELINE_BUCKET, help='destination bucket')
    parser.add_argument('--branch', help='destination prefix (defaults to the current git branch)')
    parser.add_argument('--no-upload', action='store_true', help='only build dist/hpx.zip')

    args = parser.parse_args(argv)
    get_logger('hpx-dist')

    try:
        packager = RepositoryPackager(args.project_root)
        packager.create_archive()

        if not args.no_upload:
            branch = args.branch or packager.current_branch()
            packager.sync(args.bucket, branch)

        logger.info("Packaging complete")
    except DeployError as e:
        logger.error(e.message)
        sys.exit(1)


if __name__ == '__main__':
    main()

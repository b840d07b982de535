"""
Field validation for deployment requests

Every constrained field is a small value type whose ``parse`` classmethod
returns a ``ValidationResult`` instead of raising. The caller decides when a
failure becomes fatal by calling ``unwrap``.
"""

import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from hpx_deploy.errors import ValidationFailure

T = TypeVar('T')


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of parsing one field"""
    value: Optional[T] = None
    error: Optional[str] = None
    field: Optional[str] = None
    raw: Optional[str] = None
    pattern: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> 'ValidationResult[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, error: str, field: Optional[str] = None, raw: Optional[str] = None,
                pattern: Optional[str] = None) -> 'ValidationResult[Any]':
        return cls(error=error, field=field, raw=raw, pattern=pattern)

    def unwrap(self) -> T:
        """Return the parsed value or raise ValidationFailure"""
        if not self.ok:
            raise ValidationFailure(self.error, field=self.field, value=self.raw, pattern=self.pattern)
        return self.value


class PatternValue(str):
    """
    String value constrained by a regular expression.

    Subclasses set ``FIELD`` (the name used in error messages) and
    ``PATTERN``. ``EMPTY_MESSAGE`` is reported instead of the pattern
    mismatch when the raw value is empty.
    """
    FIELD = 'value'
    PATTERN = ''
    EMPTY_MESSAGE: Optional[str] = None

    @classmethod
    def parse(cls, raw: Optional[str]) -> ValidationResult:
        raw = raw or ''
        if not raw and cls.EMPTY_MESSAGE:
            return ValidationResult.failure(cls.EMPTY_MESSAGE, field=cls.FIELD, raw=raw)
        if not re.fullmatch(cls.PATTERN, raw):
            return ValidationResult.failure(
                f"Invalid {cls.FIELD} ({raw}). {cls.FIELD} must match {cls.PATTERN}",
                field=cls.FIELD, raw=raw, pattern=cls.PATTERN
            )
        return ValidationResult.success(cls(raw))


class StackName(PatternValue):
    """CloudFormation stack name"""
    FIELD = 'Stack name'
    PATTERN = r'^[a-zA-Z0-9._\-]{1,255}$'
    EMPTY_MESSAGE = 'Stack name must be set!'


class Version(PatternValue):
    """Dotted numeric release version, e.g. ``1.2.0``"""
    FIELD = 'Version'
    PATTERN = r'^[0-9]+\.[0-9]+(\.[0-9]+)*$'


class Prefix(PatternValue):
    """Prefix used when naming AWS resources"""
    FIELD = 'Prefix'
    PATTERN = r'^[a-zA-Z0-9]{1,16}$'


class RedshiftUser(PatternValue):
    """Redshift master user name"""
    FIELD = 'Redshift user'
    PATTERN = r'^[a-z]{1}[a-z0-9]{0,127}$'
    EMPTY_MESSAGE = 'Redshift user must be set!'


class VpcCidr(PatternValue):
    """
    IPv4 CIDR block for VPC resources.

    Only the shape is checked: octets are one to three digits with no
    0-255 range check, so ``999.1.1.1/16`` is accepted. IPv6 blocks are
    rejected.
    """
    FIELD = 'CIDR'
    PATTERN = r'^([0-9]{1,3}\.){3}[0-9]{1,3}(/([0-9]|[1-2][0-9]|3[0-2]))?$'


class S3Uri(PatternValue):
    """``s3://bucket[/key]`` location"""
    FIELD = 'S3URI'
    PATTERN = r'^s3://[a-zA-Z0-9.\-_]{1,255}/?.*$'

    @property
    def bucket(self) -> str:
        return self[5:].split('/', 1)[0]

    @property
    def key(self) -> str:
        parts = self[5:].split('/', 1)
        return parts[1] if len(parts) > 1 else ''

    def join(self, path: str) -> str:
        """Append a relative key to this location"""
        return f"{self.rstrip('/')}/{path}"

    def to_https_url(self, region: str) -> str:
        """Path-style HTTPS URL of this object in ``region``"""
        return f"https://s3.{region}.amazonaws.com/{self[5:]}"


def check_environment(environ, required) -> ValidationResult:
    """Fail on the first required environment variable that is unset or empty"""
    for name in required:
        if not environ.get(name):
            return ValidationResult.failure(f"Environment variable {name} must be set!",
                                            field=name, raw='')
    return ValidationResult.success(True)

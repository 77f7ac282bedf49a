"""
Stack configuration loaded from pulumi.Config().

Provides a typed, immutable view of stack settings. Settings are read from
Pulumi config (e.g. Pulumi.<stack>.yaml or pulumi config set). The project,
environment, domain and bucket name are required; every other key falls back
to the default listed in _CONFIG_SPEC. Used by __main__.main() to name
resources and size the bucket lifecycle, WAF and distribution.
"""

from dataclasses import dataclass
from typing import Any, Callable

import pulumi

from static_site._helpers import normalize_origin_path, site_aliases

# S3 refuses STANDARD_IA transitions earlier than 30 days, and objects must
# stay 30 days in STANDARD_IA before moving on to GLACIER_IR.
MIN_IA_TRANSITION_DAYS: int = 30
MIN_DAYS_IN_IA: int = 30
# Smallest rate limit WAFv2 accepts for a rate-based statement.
MIN_WAF_RATE_LIMIT: int = 100

DEFAULT_TAGS: dict[str, str] = {
    "ManagedBy": "pulumi",
}

_REQUIRED = object()


def _get_bool(config: pulumi.Config, key: str, default: Any) -> bool:
    raw = config.require(key) if default is _REQUIRED else config.get(key)
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in ("1", "true", "yes")


def _get_int(config: pulumi.Config, key: str, default: Any) -> int:
    raw = config.require(key) if default is _REQUIRED else config.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"config key {key!r} must be an integer, got {raw!r}") from e


def _get_str(config: pulumi.Config, key: str, default: Any) -> str:
    raw = config.require(key) if default is _REQUIRED else config.get(key)
    return default if raw is None else raw


# (key, parser, default); parser receives (config, key, default) and returns
# the value. _REQUIRED marks keys that must be set on the stack.
_CONFIG_SPEC: list[tuple[str, Callable[[pulumi.Config, str, Any], Any], Any]] = [
    ("project_name", _get_str, _REQUIRED),
    ("environment", _get_str, _REQUIRED),
    ("domain_name", _get_str, _REQUIRED),
    ("bucket_name", _get_str, _REQUIRED),
    ("region", _get_str, "us-east-1"),
    ("hosted_zone_name", _get_str, None),
    ("include_www", _get_bool, True),
    ("origin_path", _get_str, "/react-build"),
    ("price_class", _get_str, "PriceClass_100"),
    ("enable_waf", _get_bool, True),
    ("waf_rate_limit", _get_int, 2000),
    ("enable_versioning", _get_bool, True),
    ("transition_to_ia_days", _get_int, 30),
    ("transition_to_glacier_days", _get_int, 90),
    ("noncurrent_version_expiration_days", _get_int, 90),
    ("force_destroy", _get_bool, False),
]


@dataclass(frozen=True)
class StackConfig:
    """
    Stack configuration from Pulumi config.

    Attributes:
        project_name: Project name used in resource naming (required).
        environment: Environment label used in resource naming (required).
        domain_name: Apex domain served by the distribution (required).
        bucket_name: S3 origin bucket name (required; must be globally unique).
        region: Region for the origin bucket.
        hosted_zone_name: Route 53 zone holding the site records; None means
            the zone is named after domain_name.
        include_www: Whether www.<domain_name> is also served.
        origin_path: Bucket prefix holding the built site.
        price_class: CloudFront price class.
        enable_waf: Whether to attach a WAFv2 web ACL to the distribution.
        waf_rate_limit: Requests per 5 minutes per IP before WAF blocks.
        enable_versioning: Whether to enable bucket versioning.
        transition_to_ia_days: Days before objects move to STANDARD_IA.
        transition_to_glacier_days: Days before objects move to GLACIER_IR.
        noncurrent_version_expiration_days: Days before old versions expire.
        force_destroy: Whether the bucket may be destroyed while non-empty.
    """

    project_name: str
    environment: str
    domain_name: str
    bucket_name: str
    region: str = "us-east-1"
    hosted_zone_name: str | None = None
    include_www: bool = True
    origin_path: str = "/react-build"
    price_class: str = "PriceClass_100"
    enable_waf: bool = True
    waf_rate_limit: int = 2000
    enable_versioning: bool = True
    transition_to_ia_days: int = 30
    transition_to_glacier_days: int = 90
    noncurrent_version_expiration_days: int = 90
    force_destroy: bool = False

    def __post_init__(self):
        if self.transition_to_ia_days < MIN_IA_TRANSITION_DAYS:
            raise ValueError(
                "transition_to_ia_days must be at least "
                f"{MIN_IA_TRANSITION_DAYS}, got {self.transition_to_ia_days}"
            )
        if (
            self.transition_to_glacier_days
            < self.transition_to_ia_days + MIN_DAYS_IN_IA
        ):
            raise ValueError(
                "transition_to_glacier_days must be at least "
                f"{MIN_DAYS_IN_IA} days after transition_to_ia_days, got "
                f"{self.transition_to_glacier_days}"
            )
        if self.noncurrent_version_expiration_days < 1:
            raise ValueError(
                "noncurrent_version_expiration_days must be positive, got "
                f"{self.noncurrent_version_expiration_days}"
            )
        if self.waf_rate_limit < MIN_WAF_RATE_LIMIT:
            raise ValueError(
                f"waf_rate_limit must be at least {MIN_WAF_RATE_LIMIT}, got "
                f"{self.waf_rate_limit}"
            )

    @classmethod
    def from_pulumi_config(cls, config: pulumi.Config) -> "StackConfig":
        """
        Build StackConfig from pulumi.Config(). Keys marked _REQUIRED in
        _CONFIG_SPEC raise pulumi.ConfigMissingError when absent.
        """
        kwargs = {
            key: parser(config, key, default)
            for key, parser, default in _CONFIG_SPEC
        }
        return cls(**kwargs)

    @property
    def zone_name(self) -> str:
        return self.hosted_zone_name or self.domain_name

    @property
    def aliases(self) -> list[str]:
        return site_aliases(self.domain_name, self.include_www)

    @property
    def normalized_origin_path(self) -> str:
        return normalize_origin_path(self.origin_path)

    @property
    def tags(self) -> dict[str, str]:
        return {
            **DEFAULT_TAGS,
            "Project": self.project_name,
            "Environment": self.environment,
        }

    def resource_name(self, prefix: str) -> str:
        """Pulumi resource name for a component, e.g. "cdn-mysite-dev"."""
        return f"{prefix}-{self.project_name}-{self.environment}"

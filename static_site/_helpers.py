"""
Pure helpers for naming, DNS, IAM/S3 policies and WAF rules. Testable without
the Pulumi runtime.

No Pulumi types: every function accepts and returns plain Python values
(strings, lists, dicts) so it can be unit-tested without a Pulumi stack.
Components wrap them with ``Output.apply`` / ``Output.json_dumps`` where the
inputs are only known after deployment.
"""

import re
from typing import Any

IAM_POLICY_VERSION: str = "2012-10-17"

# Lambda function names: letters, digits, hyphens, underscores; 64 chars max.
_FUNCTION_NAME_DISALLOWED = re.compile(r"[^A-Za-z0-9_-]")


def ensure_trailing_dot(
    domain: str,
) -> str:
    """
    Return domain with a single trailing dot for DNS FQDN.

    Idempotent if already present.
    """
    return domain if domain.endswith(".") else f"{domain}."


def fqdn(
    domain: str,
    subdomain: str,
) -> str:
    """
    Build FQDN like 'www.example.com.' from domain and subdomain.

    Args:
        domain: Base domain (e.g. "example.com"); trailing dot is ensured.
        subdomain: Leading label (e.g. "www").

    Returns:
        FQDN with trailing dot (e.g. "www.example.com.").
    """
    base = ensure_trailing_dot(domain)
    return f"{subdomain}.{base}" if not base.startswith(f"{subdomain}.") else base


def site_aliases(
    domain: str,
    include_www: bool = True,
) -> list[str]:
    """
    Return the CloudFront aliases for a site: the apex, then ``www.<apex>``.

    Aliases are served without the trailing dot (CloudFront and ACM reject
    it). The first entry is used as the certificate's primary domain.
    """
    apex = domain.rstrip(".").lower()
    aliases = [apex]
    if include_www:
        www = fqdn(apex, "www").rstrip(".")
        if www not in aliases:
            aliases.append(www)
    return aliases


def normalize_origin_path(
    path: str,
) -> str:
    """
    Return a CloudFront origin path: leading slash, no trailing slash.

    CloudFront rejects origin paths ending in "/"; an empty or root path
    means "no origin path" and is returned as "".
    """
    stripped = path.strip().strip("/")
    return f"/{stripped}" if stripped else ""


def sanitize_function_name(
    name: str,
    max_len: int = 64,
) -> str:
    """
    Produce a Lambda-compliant function name from a Pulumi resource name.

    Disallowed characters become hyphens and the result is truncated to
    ``max_len`` (64 per Lambda).
    """
    return _FUNCTION_NAME_DISALLOWED.sub("-", name)[:max_len]


def edge_assume_role_policy() -> dict[str, Any]:
    """
    Trust policy for a Lambda@Edge execution role.

    Lambda@Edge replicas are assumed by ``edgelambda.amazonaws.com`` as well
    as the regular Lambda service.
    """
    return {
        "Version": IAM_POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Service": [
                        "lambda.amazonaws.com",
                        "edgelambda.amazonaws.com",
                    ]
                },
                "Action": "sts:AssumeRole",
            }
        ],
    }


def origin_read_policy(
    bucket_arn: str,
    distribution_arn: str,
) -> dict[str, Any]:
    """
    S3 bucket policy letting a single CloudFront distribution read objects.

    The principal is the CloudFront service, narrowed by ``AWS:SourceArn`` so
    only requests signed by this distribution's OAC are allowed.

    Args:
        bucket_arn: Origin bucket ARN (e.g. "arn:aws:s3:::my-site").
        distribution_arn: Distribution ARN that may read the bucket.
    """
    return {
        "Version": IAM_POLICY_VERSION,
        "Statement": [
            {
                "Sid": "AllowCloudFrontServicePrincipalReadOnly",
                "Effect": "Allow",
                "Principal": {"Service": "cloudfront.amazonaws.com"},
                "Action": "s3:GetObject",
                "Resource": f"{bucket_arn}/*",
                "Condition": {
                    "StringEquals": {"AWS:SourceArn": distribution_arn},
                },
            }
        ],
    }


def _visibility_config(metric_name: str) -> dict[str, Any]:
    return {
        "cloudwatch_metrics_enabled": True,
        "metric_name": metric_name,
        "sampled_requests_enabled": True,
    }


def managed_rule_group(
    name: str,
    priority: int,
    vendor_name: str = "AWS",
) -> dict[str, Any]:
    """
    WebAcl rule referencing a vendor-managed rule group.

    Managed groups carry their own actions, so the rule uses
    ``override_action: none`` rather than an ``action``.
    """
    return {
        "name": name,
        "priority": priority,
        "override_action": {"none": {}},
        "statement": {
            "managed_rule_group_statement": {
                "name": name,
                "vendor_name": vendor_name,
            }
        },
        "visibility_config": _visibility_config(name),
    }


def rate_limit_rule(
    limit: int,
    priority: int,
    name: str = "rate-limit-per-ip",
) -> dict[str, Any]:
    """
    WebAcl rule blocking any single IP above ``limit`` requests per 5 minutes.
    """
    return {
        "name": name,
        "priority": priority,
        "action": {"block": {}},
        "statement": {
            "rate_based_statement": {
                "limit": limit,
                "aggregate_key_type": "IP",
            }
        },
        "visibility_config": _visibility_config(name),
    }


def lifecycle_rules(
    transition_to_ia_days: int,
    transition_to_glacier_days: int,
    noncurrent_version_expiration_days: int,
    abort_multipart_days: int = 7,
) -> list[dict[str, Any]]:
    """
    Lifecycle rules for the origin bucket.

    Current objects tier down to STANDARD_IA then GLACIER_IR; GLACIER_IR keeps
    millisecond reads so the CDN can still fetch old assets on a cache miss.
    Noncurrent versions expire, and abandoned multipart uploads are aborted.

    Returns:
        Rule dicts in the shape of ``BucketLifecycleConfigurationRuleArgs``.
    """
    return [
        {
            "id": "tier-current-objects",
            "status": "Enabled",
            "filter": {"prefix": ""},
            "transitions": [
                {"days": transition_to_ia_days, "storage_class": "STANDARD_IA"},
                {"days": transition_to_glacier_days, "storage_class": "GLACIER_IR"},
            ],
        },
        {
            "id": "expire-noncurrent-versions",
            "status": "Enabled",
            "filter": {"prefix": ""},
            "noncurrent_version_expiration": {
                "noncurrent_days": noncurrent_version_expiration_days,
            },
        },
        {
            "id": "abort-incomplete-multipart-uploads",
            "status": "Enabled",
            "filter": {"prefix": ""},
            "abort_incomplete_multipart_upload": {
                "days_after_initiation": abort_multipart_days,
            },
        },
    ]

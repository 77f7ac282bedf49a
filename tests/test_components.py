"""Tests for component wiring, run against Pulumi mocks"""

import inspect
import json
from unittest import mock

import pulumi
import pulumi_aws as aws
import pytest

CLOUDFRONT_DOMAIN = "d111111abcdef8.cloudfront.net"
CLOUDFRONT_ZONE_ID = "Z2FDTNDATAQYW2"
ZONE_ID = "Z0123456789EXAMPLE"
WEB_ACL_ARN = "arn:aws:wafv2:us-east-1:123456789012:global/webacl/site/abc"


def _field(value, *path):
    """Walk nested output values that come back as objects or plain dicts."""
    for key in path:
        if isinstance(value, dict):
            head, *rest = key.split("_")
            camel = head + "".join(part.title() for part in rest)
            value = value[key] if key in value else value[camel]
        else:
            value = getattr(value, key)
    return value


class SiteMocks(pulumi.runtime.Mocks):
    """Echo inputs back as state and fill in the computed outputs we read."""

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        kind = args.typ.split(":")[-1]
        outputs = dict(args.inputs)
        outputs.setdefault("arn", f"arn:aws:mock::123456789012:{args.name}")
        if kind == "Bucket":
            bucket = args.inputs.get("bucket", args.name)
            outputs["bucket"] = bucket
            outputs["bucketRegionalDomainName"] = f"{bucket}.s3.us-east-1.amazonaws.com"
        elif kind == "Distribution":
            outputs["domainName"] = CLOUDFRONT_DOMAIN
            outputs["hostedZoneId"] = CLOUDFRONT_ZONE_ID
        elif kind == "Certificate":
            names = [args.inputs["domainName"], *args.inputs.get("subjectAlternativeNames", [])]
            outputs["domainValidationOptions"] = [
                {
                    "domainName": name,
                    "resourceRecordName": f"_abc.{name}.",
                    "resourceRecordType": "CNAME",
                    "resourceRecordValue": "_xyz.acm-validations.aws.",
                }
                for name in names
            ]
        elif kind == "Function":
            outputs["qualifiedArn"] = f"arn:aws:lambda:us-east-1:123456789012:function:{args.name}:1"
        elif kind == "Record":
            outputs["fqdn"] = args.inputs.get("name")
        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token.endswith("getZone"):
            return {"zoneId": ZONE_ID, "name": args.args.get("name")}
        return {}


pulumi.runtime.set_mocks(SiteMocks(), preview=False)

from static_site import edge, firewall, storage  # noqa: E402
from static_site.cdn import SiteDistribution  # noqa: E402
from static_site.certificate import SiteCertificate  # noqa: E402
from static_site.dns import SiteDns, lookup_zone_id  # noqa: E402


class TestSiteBucket:
    @pulumi.runtime.test
    def test_outputs(self):
        bucket = storage.SiteBucket("storage-test", bucket_name="mysite-origin")

        def check(args):
            name, domain = args
            assert name == "mysite-origin"
            assert domain == "mysite-origin.s3.us-east-1.amazonaws.com"

        return pulumi.Output.all(bucket.bucket_name, bucket.bucket_regional_domain_name).apply(check)

    def test_block_public_access_is_complete(self):
        assert all(storage.S3_BLOCK_PUBLIC_ACCESS.values())
        assert len(storage.S3_BLOCK_PUBLIC_ACCESS) == 4

    @pulumi.runtime.test
    def test_encryption_and_ownership(self):
        bucket = storage.SiteBucket("storage-sse", bucket_name="mysite-sse")

        def check(args):
            rules, ownership = args
            (rule,) = rules
            default = _field(rule, "apply_server_side_encryption_by_default")
            assert _field(default, "sse_algorithm") == "AES256"
            assert _field(rule, "bucket_key_enabled") is True
            assert _field(ownership, "object_ownership") == "BucketOwnerEnforced"

        return pulumi.Output.all(bucket.encryption.rules, bucket.ownership.rule).apply(check)

    @pulumi.runtime.test
    def test_lifecycle_rules(self):
        bucket = storage.SiteBucket(
            "storage-lifecycle",
            bucket_name="mysite-lifecycle",
            transition_to_ia_days=45,
            transition_to_glacier_days=120,
            noncurrent_version_expiration_days=14,
        )

        def check(rules):
            by_id = {_field(rule, "id"): rule for rule in rules}
            assert sorted(by_id) == [
                "abort-incomplete-multipart-uploads",
                "expire-noncurrent-versions",
                "tier-current-objects",
            ]
            transitions = [
                (_field(t, "days"), _field(t, "storage_class"))
                for t in _field(by_id["tier-current-objects"], "transitions")
            ]
            assert transitions == [(45, "STANDARD_IA"), (120, "GLACIER_IR")]
            expiration = _field(by_id["expire-noncurrent-versions"], "noncurrent_version_expiration")
            assert _field(expiration, "noncurrent_days") == 14
            abort = _field(by_id["abort-incomplete-multipart-uploads"], "abort_incomplete_multipart_upload")
            assert _field(abort, "days_after_initiation") == 7

        return bucket.lifecycle.rules.apply(check)

    @pulumi.runtime.test
    def test_lifecycle_waits_for_versioning(self):
        with mock.patch.object(aws.s3, "BucketLifecycleConfiguration") as lifecycle:
            bucket = storage.SiteBucket("storage-order", bucket_name="mysite-order")

        opts = lifecycle.call_args.kwargs["opts"]
        assert bucket.versioning is not None
        assert opts.depends_on == [bucket.versioning]
        assert opts.parent is bucket

    @pulumi.runtime.test
    def test_versioning_can_be_disabled(self):
        with mock.patch.object(aws.s3, "BucketVersioning") as versioning:
            bucket = storage.SiteBucket(
                "storage-unversioned",
                bucket_name="mysite-unversioned",
                enable_versioning=False,
            )

        versioning.assert_not_called()
        assert bucket.versioning is None

        def check(rules):
            assert len(rules) == 3

        return bucket.lifecycle.rules.apply(check)


class TestSiteCertificate:
    @pulumi.runtime.test
    def test_covers_every_alias(self):
        cert = SiteCertificate(
            "cert-test",
            domain_names=["example.com", "www.example.com"],
            zone_id=ZONE_ID,
        )

        def check(args):
            domain, sans, method = args
            assert domain == "example.com"
            assert sans == ["www.example.com"]
            assert method == "DNS"

        return pulumi.Output.all(
            cert.certificate.domain_name,
            cert.certificate.subject_alternative_names,
            cert.certificate.validation_method,
        ).apply(check)

    def test_requires_a_domain(self):
        with pytest.raises(ValueError):
            SiteCertificate("cert-empty", domain_names=[], zone_id=ZONE_ID)


class TestSiteFirewall:
    @pulumi.runtime.test
    def test_cloudfront_scope_and_priorities(self):
        waf = firewall.SiteFirewall("waf-test", rate_limit=500)

        def check(args):
            scope, rules = args
            assert scope == "CLOUDFRONT"
            priorities = [_field(rule, "priority") for rule in rules]
            assert priorities == [1, 2, 3, firewall.RATE_LIMIT_PRIORITY]
            assert len(set(priorities)) == len(priorities)
            assert _field(rules[-1], "statement", "rate_based_statement", "limit") == 500

        return pulumi.Output.all(waf.web_acl.scope, waf.web_acl.rules).apply(check)


class TestEdgeRewriter:
    def test_handler_points_at_rewriter_module(self):
        assert edge.HANDLER == "edge_handler.handler"
        assert edge.HANDLER_FILE == "edge_handler.py"

    @pulumi.runtime.test
    def test_published_function(self):
        rewriter = edge.EdgeRewriter("edge-test")

        def check(args):
            handler, runtime, publish, timeout, qualified_arn = args
            assert handler == "edge_handler.handler"
            assert runtime == edge.RUNTIME
            assert publish is True
            assert timeout == edge.TIMEOUT_SECONDS
            assert qualified_arn.endswith(":1")

        return pulumi.Output.all(
            rewriter.function.handler,
            rewriter.function.runtime,
            rewriter.function.publish,
            rewriter.function.timeout,
            rewriter.qualified_arn,
        ).apply(check)


def _distribution(**kwargs):
    defaults = {
        "bucket_name": "mysite-origin",
        "bucket_arn": "arn:aws:s3:::mysite-origin",
        "bucket_regional_domain_name": "mysite-origin.s3.us-east-1.amazonaws.com",
        "aliases": ["example.com", "www.example.com"],
        "certificate_arn": "arn:aws:acm:us-east-1:123456789012:certificate/abc",
        "viewer_request_lambda_arn": "arn:aws:lambda:us-east-1:123456789012:function:edge:1",
        "origin_path": "/react-build",
    }
    defaults.update(kwargs)
    return SiteDistribution(**defaults)


class TestSiteDistribution:
    @pulumi.runtime.test
    def test_viewer_request_hook(self):
        cdn = _distribution(name="cdn-hook")

        def check(behavior):
            (association,) = _field(behavior, "lambda_function_associations")
            assert _field(association, "event_type") == "viewer-request"
            assert _field(association, "lambda_arn").endswith(":function:edge:1")
            assert _field(behavior, "viewer_protocol_policy") == "redirect-to-https"

        return cdn.distribution.default_cache_behavior.apply(check)

    @pulumi.runtime.test
    def test_no_hook_when_arn_missing(self):
        cdn = _distribution(name="cdn-nohook", viewer_request_lambda_arn=None)

        def check(behavior):
            assert not _field(behavior, "lambda_function_associations")

        return cdn.distribution.default_cache_behavior.apply(check)

    @pulumi.runtime.test
    def test_origin_and_certificate(self):
        cdn = _distribution(name="cdn-origin")

        def check(args):
            origins, aliases, certificate, root = args
            (origin,) = origins
            assert _field(origin, "origin_path") == "/react-build"
            assert aliases == ["example.com", "www.example.com"]
            assert _field(certificate, "ssl_support_method") == "sni-only"
            assert _field(certificate, "minimum_protocol_version") == "TLSv1.2_2021"
            assert root == "index.html"

        return pulumi.Output.all(
            cdn.distribution.origins,
            cdn.distribution.aliases,
            cdn.distribution.viewer_certificate,
            cdn.distribution.default_root_object,
        ).apply(check)

    @pulumi.runtime.test
    def test_ipv6_and_http3(self):
        cdn = _distribution(name="cdn-protocols")

        def check(args):
            ipv6, http_version = args
            assert ipv6 is True
            assert http_version == "http2and3"

        return pulumi.Output.all(
            cdn.distribution.is_ipv6_enabled,
            cdn.distribution.http_version,
        ).apply(check)

    @pulumi.runtime.test
    def test_web_acl_attached(self):
        cdn = _distribution(name="cdn-waf", web_acl_arn=WEB_ACL_ARN)

        def check(web_acl_id):
            assert web_acl_id == WEB_ACL_ARN

        return cdn.distribution.web_acl_id.apply(check)

    @pulumi.runtime.test
    def test_bucket_policy_scoped_to_distribution(self):
        cdn = _distribution(name="cdn-policy")

        def check(args):
            bucket, policy, distribution_arn = args
            assert bucket == "mysite-origin"
            (statement,) = json.loads(policy)["Statement"]
            assert statement["Principal"] == {"Service": "cloudfront.amazonaws.com"}
            assert statement["Action"] == "s3:GetObject"
            assert statement["Resource"] == "arn:aws:s3:::mysite-origin/*"
            assert statement["Condition"]["StringEquals"]["AWS:SourceArn"] == distribution_arn

        return pulumi.Output.all(
            cdn.bucket_policy.bucket,
            cdn.bucket_policy.policy,
            cdn.distribution_arn,
        ).apply(check)

    @pulumi.runtime.test
    def test_spa_error_responses(self):
        cdn = _distribution(name="cdn-errors")

        def check(responses):
            assert sorted(_field(r, "error_code") for r in responses) == [403, 404]
            assert all(_field(r, "response_page_path") == "/index.html" for r in responses)
            assert all(_field(r, "response_code") == 200 for r in responses)

        return cdn.distribution.custom_error_responses.apply(check)

    @pulumi.runtime.test
    def test_outputs(self):
        cdn = _distribution(name="cdn-outputs")

        def check(args):
            domain, zone, url = args
            assert domain == CLOUDFRONT_DOMAIN
            assert zone == CLOUDFRONT_ZONE_ID
            assert url == "https://example.com"

        return pulumi.Output.all(cdn.domain_name, cdn.hosted_zone_id, cdn.url).apply(check)


class TestSiteDns:
    @pulumi.runtime.test
    def test_a_and_aaaa_per_alias(self):
        dns = SiteDns(
            "dns-test",
            zone_id=ZONE_ID,
            aliases=["example.com", "www.example.com"],
            target_domain_name=CLOUDFRONT_DOMAIN,
            target_hosted_zone_id=CLOUDFRONT_ZONE_ID,
        )

        def check(fqdns):
            assert sorted(fqdns) == [
                "example.com",
                "example.com",
                "www.example.com",
                "www.example.com",
            ]

        return dns.fqdns.apply(check)

    @pulumi.runtime.test
    def test_zone_lookup(self):
        def check(zone_id):
            assert zone_id == ZONE_ID

        return lookup_zone_id("example.com").apply(check)


class TestTagging:
    @pytest.mark.parametrize(
        "component",
        [storage.SiteBucket, SiteCertificate, firewall.SiteFirewall, edge.EdgeRewriter, SiteDistribution],
    )
    def test_tags_come_from_provider_defaults(self, component):
        assert "tags" not in inspect.signature(component.__init__).parameters

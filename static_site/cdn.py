"""
CloudFront distribution in front of the private S3 origin.

CloudFront reaches S3 through Origin Access Control (OAC) with signed
requests; the bucket policy created here allows ``s3:GetObject`` for this
distribution only. Every viewer request first runs the Lambda@Edge URI
rewriter, so extensionless client-side routes are served ``/index.html``.
403/404 from the origin are mapped to ``/index.html`` as well, for routes
that slip past the rewriter (e.g. dotted path segments).
"""

import pulumi
import pulumi_aws as aws

from static_site._helpers import origin_read_policy

ID: str = "staticsite:aws:SiteDistribution"

ORIGIN_ID: str = "s3-origin"
INDEX_DOCUMENT: str = "index.html"

# AWS managed cache policy "Managed-CachingOptimized".
CACHING_OPTIMIZED_POLICY_ID: str = "658327ea-f89d-4fab-a63d-7e88639e58f6"

# Origin status codes answered with the SPA entry document.
SPA_ERROR_CODES: list[int] = [403, 404]


class SiteDistribution(pulumi.ComponentResource):
    """
    OAC + Distribution (HTTPS, custom domain, edge rewriter) + bucket policy.
    """

    def __init__(
        self,
        name: str,
        bucket_name: pulumi.Input[str],
        bucket_arn: pulumi.Input[str],
        bucket_regional_domain_name: pulumi.Input[str],
        aliases: list[str],
        certificate_arn: pulumi.Input[str],
        viewer_request_lambda_arn: pulumi.Input[str] | None = None,
        web_acl_arn: pulumi.Input[str] | None = None,
        origin_path: str = "",
        price_class: str = "PriceClass_100",
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the OAC, the distribution and the origin bucket policy.

        Args:
            name: Pulumi resource name prefix.
            bucket_name: Origin bucket name (for the bucket policy).
            bucket_arn: Origin bucket ARN (for the bucket policy).
            bucket_regional_domain_name: Origin domain name.
            aliases: Custom domain names served by the distribution.
            certificate_arn: Validated us-east-1 ACM certificate covering
                every alias.
            viewer_request_lambda_arn: Version-qualified Lambda@Edge ARN run
                on viewer-request; None disables the rewriter.
            web_acl_arn: WAFv2 web ACL ARN; None leaves the distribution
                without a firewall.
            origin_path: Bucket prefix holding the site, e.g. "/react-build"
                ("" for the bucket root).
            price_class: CloudFront price class.
            opts: Resource options.

        Outputs (set on self, registered for the component):
            distribution_id: For cache invalidations in the deploy step.
            distribution_arn: Distribution ARN.
            domain_name: *.cloudfront.net domain (alias record target).
            hosted_zone_id: CloudFront hosted zone id (alias record zone).
            url: HTTPS URL of the first alias.
        """
        super().__init__(ID, name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        # retain_on_delete=True avoids AWS 409 OriginAccessControlInUse on
        # destroy; the orphaned OAC can be removed by hand.
        oac = aws.cloudfront.OriginAccessControl(
            resource_name=f"{name}-oac",
            description=f"OAC for {name}",
            origin_access_control_origin_type="s3",
            signing_behavior="always",
            signing_protocol="sigv4",
            opts=pulumi.ResourceOptions(parent=self, retain_on_delete=True),
        )

        origins = [
            aws.cloudfront.DistributionOriginArgs(
                domain_name=bucket_regional_domain_name,
                origin_id=ORIGIN_ID,
                origin_path=origin_path,
                origin_access_control_id=oac.id,
            )
        ]

        lambda_associations = []
        if viewer_request_lambda_arn is not None:
            lambda_associations.append(
                aws.cloudfront.DistributionDefaultCacheBehaviorLambdaFunctionAssociationArgs(
                    event_type="viewer-request",
                    lambda_arn=viewer_request_lambda_arn,
                    include_body=False,
                )
            )

        default_cache_behavior = aws.cloudfront.DistributionDefaultCacheBehaviorArgs(
            target_origin_id=ORIGIN_ID,
            viewer_protocol_policy="redirect-to-https",
            allowed_methods=["GET", "HEAD", "OPTIONS"],
            cached_methods=["GET", "HEAD"],
            compress=True,
            cache_policy_id=CACHING_OPTIMIZED_POLICY_ID,
            lambda_function_associations=lambda_associations,
        )

        custom_error_responses = [
            aws.cloudfront.DistributionCustomErrorResponseArgs(
                error_code=code,
                response_code=200,
                response_page_path=f"/{INDEX_DOCUMENT}",
                error_caching_min_ttl=0,
            )
            for code in SPA_ERROR_CODES
        ]

        restrictions = aws.cloudfront.DistributionRestrictionsArgs(
            geo_restriction=aws.cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="none",
            ),
        )

        viewer_certificate = aws.cloudfront.DistributionViewerCertificateArgs(
            acm_certificate_arn=certificate_arn,
            ssl_support_method="sni-only",
            minimum_protocol_version="TLSv1.2_2021",
        )

        # Explicit depends_on so destroy order is correct: distribution is
        # deleted before the OAC.
        self.distribution = aws.cloudfront.Distribution(
            resource_name=f"{name}-cdn",
            enabled=True,
            is_ipv6_enabled=True,
            http_version="http2and3",
            price_class=price_class,
            aliases=aliases,
            default_root_object=INDEX_DOCUMENT,
            origins=origins,
            default_cache_behavior=default_cache_behavior,
            custom_error_responses=custom_error_responses,
            restrictions=restrictions,
            viewer_certificate=viewer_certificate,
            web_acl_id=web_acl_arn,
            opts=pulumi.ResourceOptions(parent=self, depends_on=[oac]),
        )

        policy = pulumi.Output.all(bucket_arn, self.distribution.arn).apply(
            lambda args: origin_read_policy(args[0], args[1])
        )
        self.bucket_policy = aws.s3.BucketPolicy(
            resource_name=f"{name}-origin-policy",
            bucket=bucket_name,
            policy=pulumi.Output.json_dumps(policy),
            opts=child_opts,
        )

        self.distribution_id: pulumi.Output[str] = self.distribution.id
        self.distribution_arn: pulumi.Output[str] = self.distribution.arn
        self.domain_name: pulumi.Output[str] = self.distribution.domain_name
        self.hosted_zone_id: pulumi.Output[str] = self.distribution.hosted_zone_id
        self.url: pulumi.Output[str] = pulumi.Output.from_input(f"https://{aliases[0]}")
        self.register_outputs(
            {
                "distribution_id": self.distribution_id,
                "distribution_arn": self.distribution_arn,
                "domain_name": self.domain_name,
                "hosted_zone_id": self.hosted_zone_id,
                "url": self.url,
            }
        )

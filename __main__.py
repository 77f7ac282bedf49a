"""
Static site hosting - Pulumi entrypoint.

Wires the ComponentResources using Pulumi config and output chaining:

- **Storage**: private S3 bucket holding the built SPA under origin_path.
- **Certificate**: ACM certificate in us-east-1 for the apex (and www),
  validated through the Route 53 hosted zone.
- **Firewall**: optional WAFv2 web ACL (us-east-1) attached to CloudFront.
- **Edge**: Lambda@Edge viewer-request hook rewriting extensionless URIs to
  /index.html.
- **CDN**: CloudFront distribution with OAC access to the bucket.
- **DNS**: A/AAAA alias records for every alias.

Stack exports: bucket_name, distribution_id, cloudfront_domain, site_url,
certificate_arn, edge_function_arn, web_acl_arn (when the WAF is enabled).
"""

import pulumi
import pulumi_aws as aws

from config import StackConfig
from static_site.cdn import SiteDistribution
from static_site.certificate import SiteCertificate
from static_site.dns import SiteDns, lookup_zone_id
from static_site.edge import EdgeRewriter
from static_site.firewall import SiteFirewall
from static_site.storage import SiteBucket

# CloudFront only accepts certificates, web ACLs and Lambda@Edge functions
# from this region.
EDGE_REGION: str = "us-east-1"


def main():
    """
    Build the hosting components and export stack outputs.

    Reads config, creates the regional and us-east-1 providers, chains the
    bucket, certificate, web ACL and edge function into the distribution,
    then points DNS at it.
    """
    config = StackConfig.from_pulumi_config(pulumi.Config())
    # Resources are tagged through the providers' default_tags only.
    tags = config.tags

    site_provider = aws.Provider(
        config.resource_name("site"),
        region=config.region,
        default_tags=aws.ProviderDefaultTagsArgs(tags=tags),
    )
    edge_provider = aws.Provider(
        config.resource_name("edge"),
        region=EDGE_REGION,
        default_tags=aws.ProviderDefaultTagsArgs(tags=tags),
    )
    site_opts = pulumi.ResourceOptions(providers=[site_provider])
    edge_opts = pulumi.ResourceOptions(providers=[edge_provider])

    if not config.enable_versioning:
        pulumi.log.warn(
            "bucket versioning is disabled; a bad deploy cannot be rolled back"
        )

    storage = SiteBucket(
        name=config.resource_name("storage"),
        bucket_name=config.bucket_name,
        enable_versioning=config.enable_versioning,
        transition_to_ia_days=config.transition_to_ia_days,
        transition_to_glacier_days=config.transition_to_glacier_days,
        noncurrent_version_expiration_days=config.noncurrent_version_expiration_days,
        force_destroy=config.force_destroy,
        opts=site_opts,
    )

    zone_id = lookup_zone_id(config.zone_name, provider=site_provider)
    aliases = config.aliases
    pulumi.log.info(f"serving {', '.join(aliases)} from zone {config.zone_name}")

    certificate = SiteCertificate(
        name=config.resource_name("cert"),
        domain_names=aliases,
        zone_id=zone_id,
        opts=edge_opts,
    )

    web_acl_arn = None
    if config.enable_waf:
        firewall = SiteFirewall(
            name=config.resource_name("waf"),
            rate_limit=config.waf_rate_limit,
            opts=edge_opts,
        )
        web_acl_arn = firewall.web_acl_arn
        pulumi.export("web_acl_arn", web_acl_arn)
    else:
        pulumi.log.warn("WAF is disabled; the distribution has no web ACL")

    edge = EdgeRewriter(
        name=config.resource_name("edge"),
        opts=edge_opts,
    )

    cdn = SiteDistribution(
        name=config.resource_name("cdn"),
        bucket_name=storage.bucket_name,
        bucket_arn=storage.bucket_arn,
        bucket_regional_domain_name=storage.bucket_regional_domain_name,
        aliases=aliases,
        certificate_arn=certificate.certificate_arn,
        viewer_request_lambda_arn=edge.qualified_arn,
        web_acl_arn=web_acl_arn,
        origin_path=config.normalized_origin_path,
        price_class=config.price_class,
        opts=site_opts,
    )

    SiteDns(
        name=config.resource_name("dns"),
        zone_id=zone_id,
        aliases=aliases,
        target_domain_name=cdn.domain_name,
        target_hosted_zone_id=cdn.hosted_zone_id,
        opts=site_opts,
    )

    for output_name, value in [
        ("bucket_name", storage.bucket_name),
        ("distribution_id", cdn.distribution_id),
        ("cloudfront_domain", cdn.domain_name),
        ("site_url", cdn.url),
        ("certificate_arn", certificate.certificate_arn),
        ("edge_function_arn", edge.qualified_arn),
    ]:
        pulumi.export(output_name, value)


if __name__ == "__main__":
    main()

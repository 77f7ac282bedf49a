"""
Static-site hosting components.

Each concern is encapsulated in its own ComponentResource for clear
ownership, testability, and reuse. Use from the Pulumi entrypoint
(__main__.py) with config and output chaining:

- **storage.SiteBucket**: private S3 origin with encryption, versioning and
  lifecycle tiering; exposes bucket name/ARN and the regional domain.
- **certificate.SiteCertificate**: us-east-1 ACM certificate validated
  through Route 53; exposes certificate_arn.
- **firewall.SiteFirewall**: CloudFront-scoped WAFv2 web ACL; exposes
  web_acl_arn.
- **edge.EdgeRewriter**: Lambda@Edge viewer-request function running
  edge_handler; exposes qualified_arn.
- **cdn.SiteDistribution**: CloudFront (OAC, HTTPS, custom domain) plus the
  origin bucket policy; exposes distribution id, domain and hosted zone.
- **dns.SiteDns**: Route 53 A/AAAA alias records for the site aliases.

Import components from their modules. edge_handler and _helpers do not
import Pulumi.
"""

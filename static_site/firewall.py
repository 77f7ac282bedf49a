"""
WAFv2 web ACL for the CloudFront distribution.

CloudFront-scoped web ACLs must be created in us-east-1, so the caller passes
an ``opts`` carrying a us-east-1 provider. Requests are allowed by default
and filtered by AWS managed rule groups plus a per-IP rate limit.
"""

import pulumi
import pulumi_aws as aws

from static_site._helpers import managed_rule_group, rate_limit_rule

ID: str = "staticsite:aws:SiteFirewall"

# (rule group name, priority). Lower priorities are evaluated first.
MANAGED_RULE_GROUPS: list[tuple[str, int]] = [
    ("AWSManagedRulesCommonRuleSet", 1),
    ("AWSManagedRulesKnownBadInputsRuleSet", 2),
    ("AWSManagedRulesAmazonIpReputationList", 3),
]
RATE_LIMIT_PRIORITY: int = 10


class SiteFirewall(pulumi.ComponentResource):
    """
    WebAcl (scope=CLOUDFRONT) with managed rule groups and a rate limit.
    """

    def __init__(
        self,
        name: str,
        rate_limit: int = 2000,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the web ACL.

        Args:
            name: Pulumi resource name; also the CloudWatch metric prefix.
            rate_limit: Requests per IP per 5-minute window before blocking.
            opts: Resource options; must carry a us-east-1 provider.

        Outputs (set on self, registered for the component):
            web_acl_arn: ARN to pass as the distribution's web_acl_id.
        """
        super().__init__(ID, name, None, opts)

        rules = [
            managed_rule_group(group, priority)
            for group, priority in MANAGED_RULE_GROUPS
        ]
        rules.append(rate_limit_rule(rate_limit, RATE_LIMIT_PRIORITY))

        self.web_acl = aws.wafv2.WebAcl(
            resource_name=f"{name}-web-acl",
            scope="CLOUDFRONT",
            default_action={"allow": {}},
            visibility_config={
                "cloudwatch_metrics_enabled": True,
                "metric_name": f"{name}-web-acl",
                "sampled_requests_enabled": True,
            },
            rules=rules,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.web_acl_arn: pulumi.Output[str] = self.web_acl.arn
        self.register_outputs({"web_acl_arn": self.web_acl_arn})

"""
Route 53 alias records pointing the site's domains at the distribution.

The hosted zone is looked up by name (it is managed outside this stack, since
the registrar delegates to its name servers). Each alias gets an ``A`` and an
``AAAA`` alias record so IPv4 and IPv6 viewers both resolve to CloudFront.
"""

import pulumi
import pulumi_aws as aws

ID: str = "staticsite:aws:SiteDns"

ALIAS_RECORD_TYPES: list[str] = ["A", "AAAA"]


def lookup_zone_id(
    zone_name: str,
    provider: pulumi.ProviderResource | None = None,
) -> pulumi.Output[str]:
    """Hosted zone id for a public zone name (e.g. "example.com")."""
    zone = aws.route53.get_zone_output(
        name=zone_name,
        private_zone=False,
        opts=pulumi.InvokeOptions(provider=provider),
    )
    return zone.zone_id


class SiteDns(pulumi.ComponentResource):
    """
    A/AAAA alias records for every site alias.
    """

    def __init__(
        self,
        name: str,
        zone_id: pulumi.Input[str],
        aliases: list[str],
        target_domain_name: pulumi.Input[str],
        target_hosted_zone_id: pulumi.Input[str],
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the alias records.

        Args:
            name: Pulumi resource name prefix.
            zone_id: Route 53 hosted zone id holding the records.
            aliases: Domain names to point at the distribution.
            target_domain_name: Distribution domain (*.cloudfront.net).
            target_hosted_zone_id: CloudFront's hosted zone id.
            opts: Resource options.

        Outputs (set on self, registered for the component):
            fqdns: Record FQDNs, one per alias and record type.
        """
        super().__init__(ID, name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        alias_target = aws.route53.RecordAliasArgs(
            name=target_domain_name,
            zone_id=target_hosted_zone_id,
            evaluate_target_health=False,
        )

        fqdns = []
        for alias in aliases:
            for record_type in ALIAS_RECORD_TYPES:
                record = aws.route53.Record(
                    resource_name=f"{name}-{alias}-{record_type.lower()}",
                    zone_id=zone_id,
                    name=alias,
                    type=record_type,
                    aliases=[alias_target],
                    opts=child_opts,
                )
                fqdns.append(record.fqdn)

        self.fqdns: pulumi.Output[list[str]] = pulumi.Output.all(*fqdns)
        self.register_outputs({"fqdns": self.fqdns})

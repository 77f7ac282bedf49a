"""
TLS certificate for the site's custom domains, DNS-validated in Route 53.

CloudFront only accepts ACM certificates from us-east-1, so the caller passes
an ``opts`` with a us-east-1 provider. The certificate covers the first alias
as its primary name and the remaining aliases as SANs; one validation record
is created per alias in the hosted zone, and ``certificate_arn`` resolves
only after ACM reports the certificate as issued.
"""

import pulumi
import pulumi_aws as aws

ID: str = "staticsite:aws:SiteCertificate"


class SiteCertificate(pulumi.ComponentResource):
    """
    ACM certificate + Route 53 validation records + CertificateValidation.
    """

    def __init__(
        self,
        name: str,
        domain_names: list[str],
        zone_id: pulumi.Input[str],
        validation_ttl: int = 60,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Request the certificate and wait for DNS validation.

        Args:
            name: Pulumi resource name prefix.
            domain_names: Names to cover; the first is the primary domain,
                the rest become subject alternative names. Must not be empty.
            zone_id: Route 53 hosted zone that holds the validation records.
            validation_ttl: TTL in seconds for the validation CNAMEs.
            opts: Resource options; must carry a us-east-1 provider.

        Outputs (set on self, registered for the component):
            certificate_arn: ARN of the validated certificate.
        """
        if not domain_names:
            raise ValueError("SiteCertificate needs at least one domain name")

        super().__init__(ID, name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.certificate = aws.acm.Certificate(
            resource_name=f"{name}-cert",
            domain_name=domain_names[0],
            subject_alternative_names=domain_names[1:],
            validation_method="DNS",
            opts=child_opts,
        )

        # ACM returns one validation option per name; the count is known up
        # front, so records are indexed instead of built inside an apply.
        validation_fqdns = []
        for index in range(len(domain_names)):
            option = self.certificate.domain_validation_options[index]
            record = aws.route53.Record(
                resource_name=f"{name}-validation-{index}",
                zone_id=zone_id,
                name=option.resource_record_name,
                type=option.resource_record_type,
                records=[option.resource_record_value],
                ttl=validation_ttl,
                allow_overwrite=True,
                opts=child_opts,
            )
            validation_fqdns.append(record.fqdn)

        validation = aws.acm.CertificateValidation(
            resource_name=f"{name}-validation",
            certificate_arn=self.certificate.arn,
            validation_record_fqdns=validation_fqdns,
            opts=child_opts,
        )

        self.certificate_arn: pulumi.Output[str] = validation.certificate_arn
        self.register_outputs({"certificate_arn": self.certificate_arn})

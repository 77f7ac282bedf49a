"""
Origin storage: private S3 bucket with encryption, versioning and tiering.

The bucket is never publicly readable. Block Public Access is always on,
ACLs are disabled (BucketOwnerEnforced), and CloudFront reads through Origin
Access Control; the bucket policy granting that access lives in the CDN
component because it needs the distribution ARN.

Lifecycle rules tier current objects to STANDARD_IA and then GLACIER_IR,
expire noncurrent versions, and abort abandoned multipart uploads. Outputs
are ``Output[str]`` so the CDN and deploy steps can chain on them.
"""

import pulumi
import pulumi_aws as aws

from static_site._helpers import lifecycle_rules

ID: str = "staticsite:aws:SiteBucket"

S3_BLOCK_PUBLIC_ACCESS: dict[str, bool] = {
    "block_public_acls": True,
    "block_public_policy": True,
    "ignore_public_acls": True,
    "restrict_public_buckets": True,
}


class SiteBucket(pulumi.ComponentResource):
    """
    Private S3 origin bucket for the static site.

    Resources: Bucket, BucketPublicAccessBlock, BucketOwnershipControls,
    BucketServerSideEncryptionConfiguration, optional BucketVersioning and
    BucketLifecycleConfiguration.
    """

    def __init__(
        self,
        name: str,
        bucket_name: str,
        enable_versioning: bool = True,
        transition_to_ia_days: int = 30,
        transition_to_glacier_days: int = 90,
        noncurrent_version_expiration_days: int = 90,
        force_destroy: bool = False,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the bucket and its access, encryption and lifecycle settings.

        Args:
            name: Pulumi resource name prefix for the bucket resources.
            bucket_name: Physical S3 bucket name (globally unique).
            enable_versioning: If True, keep object versions so a bad deploy
                can be rolled back; noncurrent versions expire after
                noncurrent_version_expiration_days.
            transition_to_ia_days: Age in days before STANDARD_IA.
            transition_to_glacier_days: Age in days before GLACIER_IR.
            noncurrent_version_expiration_days: Age in days before old
                versions are deleted.
            force_destroy: Allow destroying the bucket while it has objects.
            opts: Resource options (e.g. the regional provider).

        Outputs (set on self, registered for the component):
            bucket_name: Physical bucket name (for the deploy step).
            bucket_arn: Bucket ARN (for the CDN bucket policy).
            bucket_regional_domain_name: Origin domain for CloudFront.
        """
        super().__init__(ID, name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.bucket = aws.s3.Bucket(
            resource_name=name,
            bucket=bucket_name,
            force_destroy=force_destroy,
            opts=child_opts,
        )

        public_access_block = aws.s3.BucketPublicAccessBlock(
            resource_name=f"{name}-block-public",
            bucket=self.bucket.id,
            opts=child_opts,
            **S3_BLOCK_PUBLIC_ACCESS,
        )

        # ACLs disabled: the bucket owner owns every object, access is by
        # policy only.
        self.ownership = aws.s3.BucketOwnershipControls(
            resource_name=f"{name}-ownership",
            bucket=self.bucket.id,
            rule=aws.s3.BucketOwnershipControlsRuleArgs(
                object_ownership="BucketOwnerEnforced",
            ),
            opts=pulumi.ResourceOptions(parent=self, depends_on=[public_access_block]),
        )

        self.encryption = aws.s3.BucketServerSideEncryptionConfiguration(
            resource_name=f"{name}-encryption",
            bucket=self.bucket.id,
            rules=[
                aws.s3.BucketServerSideEncryptionConfigurationRuleArgs(
                    apply_server_side_encryption_by_default=aws.s3.BucketServerSideEncryptionConfigurationRuleApplyServerSideEncryptionByDefaultArgs(
                        sse_algorithm="AES256",
                    ),
                    bucket_key_enabled=True,
                )
            ],
            opts=child_opts,
        )

        lifecycle_opts = child_opts
        self.versioning = None
        if enable_versioning:
            self.versioning = aws.s3.BucketVersioning(
                resource_name=f"{name}-versioning",
                bucket=self.bucket.id,
                versioning_configuration=aws.s3.BucketVersioningVersioningConfigurationArgs(
                    status="Enabled",
                ),
                opts=child_opts,
            )
            # Noncurrent-version rules are rejected until versioning exists.
            lifecycle_opts = pulumi.ResourceOptions(parent=self, depends_on=[self.versioning])

        self.lifecycle = aws.s3.BucketLifecycleConfiguration(
            resource_name=f"{name}-lifecycle",
            bucket=self.bucket.id,
            rules=lifecycle_rules(
                transition_to_ia_days=transition_to_ia_days,
                transition_to_glacier_days=transition_to_glacier_days,
                noncurrent_version_expiration_days=noncurrent_version_expiration_days,
            ),
            opts=lifecycle_opts,
        )

        self.bucket_name: pulumi.Output[str] = self.bucket.bucket
        self.bucket_arn: pulumi.Output[str] = self.bucket.arn
        self.bucket_regional_domain_name: pulumi.Output[str] = (
            self.bucket.bucket_regional_domain_name
        )
        self.register_outputs(
            {
                "bucket_name": self.bucket_name,
                "bucket_arn": self.bucket_arn,
                "bucket_regional_domain_name": self.bucket_regional_domain_name,
            }
        )

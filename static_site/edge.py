"""
Lambda@Edge viewer-request function running the extensionless-URI rewriter.

The handler source (``edge_handler.py``) is packaged on its own into the
function archive. Lambda@Edge functions must live in us-east-1 and be
referenced by a published version, so the function is created with
``publish=True`` and ``qualified_arn`` is what the distribution associates.
"""

import json
import os

import pulumi
import pulumi_aws as aws

from static_site import edge_handler
from static_site._helpers import edge_assume_role_policy, sanitize_function_name

ID: str = "staticsite:aws:EdgeRewriter"

HANDLER_FILE: str = os.path.basename(edge_handler.__file__)
HANDLER: str = f"{os.path.splitext(HANDLER_FILE)[0]}.handler"
RUNTIME: str = "python3.12"

# Viewer-request Lambda@Edge limits: 128 MB memory, 5 s timeout.
MEMORY_SIZE_MB: int = 128
TIMEOUT_SECONDS: int = 5

BASIC_EXECUTION_POLICY_ARN: str = (
    "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole"
)


def handler_archive() -> pulumi.AssetArchive:
    """Archive holding only the rewriter module at the archive root."""
    return pulumi.AssetArchive(
        {HANDLER_FILE: pulumi.FileAsset(edge_handler.__file__)}
    )


class EdgeRewriter(pulumi.ComponentResource):
    """
    IAM role + published Lambda function for the viewer-request hook.
    """

    def __init__(
        self,
        name: str,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """
        Create the execution role and the published function.

        Args:
            name: Pulumi resource name; also the (sanitized) function name.
            opts: Resource options; must carry a us-east-1 provider.

        Outputs (set on self, registered for the component):
            qualified_arn: Version-qualified function ARN for the
                distribution's lambda_function_associations.
        """
        super().__init__(ID, name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        role = aws.iam.Role(
            resource_name=f"{name}-role",
            assume_role_policy=json.dumps(edge_assume_role_policy()),
            opts=child_opts,
        )
        # Replicas write logs to CloudWatch in the region serving the request.
        attachment = aws.iam.RolePolicyAttachment(
            resource_name=f"{name}-basic-execution",
            role=role.name,
            policy_arn=BASIC_EXECUTION_POLICY_ARN,
            opts=child_opts,
        )

        # Replicated functions can take hours to be deletable after the
        # distribution drops them; skip_destroy keeps destroys from failing.
        self.function = aws.lambda_.Function(
            resource_name=f"{name}-fn",
            name=sanitize_function_name(name),
            role=role.arn,
            runtime=RUNTIME,
            handler=HANDLER,
            code=handler_archive(),
            memory_size=MEMORY_SIZE_MB,
            timeout=TIMEOUT_SECONDS,
            publish=True,
            skip_destroy=True,
            opts=pulumi.ResourceOptions(parent=self, depends_on=[attachment]),
        )

        self.qualified_arn: pulumi.Output[str] = self.function.qualified_arn
        self.register_outputs({"qualified_arn": self.qualified_arn})

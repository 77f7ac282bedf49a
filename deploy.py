"""
Upload a built site to the origin bucket and invalidate the CDN cache.

Run after ``pulumi up`` (the bucket name and distribution id are stack
outputs):

    python deploy.py --build-dir build \\
        --bucket "$(pulumi stack output bucket_name)" \\
        --distribution-id "$(pulumi stack output distribution_id)"

Files land under ``--prefix`` (``react-build`` by default, matching the
distribution's origin path). HTML documents are uploaded with ``no-cache`` so
a new release is picked up on the next request; every other file is treated
as a fingerprinted asset and cached for a year. ``--delete`` removes objects
under the prefix that are not part of the new build.
"""

import argparse
import logging
import mimetypes
import os
import sys
import time
from pathlib import Path
from typing import Iterable, Iterator

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX: str = "react-build"
DEFAULT_CONTENT_TYPE: str = "application/octet-stream"
HTML_CACHE_CONTROL: str = "no-cache"
ASSET_CACHE_CONTROL: str = "public, max-age=31536000, immutable"
INVALIDATE_ALL: tuple[str, ...] = ("/*",)


class DeployError(Exception):
    """Raised when the local build cannot be deployed."""


def _object_key(prefix: str, relative: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/{relative}" if prefix else relative


def iter_build_files(build_dir: Path, prefix: str = DEFAULT_PREFIX) -> Iterator[tuple[Path, str]]:
    """
    Yield ``(path, key)`` for every file under build_dir, sorted by key.

    Keys use forward slashes regardless of platform. Dotfiles and anything
    inside a dot-directory (``.git``, ``.DS_Store``) are skipped.
    """
    files = []
    for path in build_dir.rglob("*"):
        if not path.is_file():
            continue
        relative = path.relative_to(build_dir)
        if any(part.startswith(".") for part in relative.parts):
            continue
        files.append((path, _object_key(prefix, relative.as_posix())))
    yield from sorted(files, key=lambda item: item[1])


def content_type_for(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or DEFAULT_CONTENT_TYPE


def cache_control_for(key: str) -> str:
    """
    HTML documents must be revalidated on every request; bundler output is
    content-hashed and never changes under the same key.
    """
    if key.endswith((".html", ".htm")):
        return HTML_CACHE_CONTROL
    return ASSET_CACHE_CONTROL


def upload_build(s3, bucket: str, build_dir: Path, prefix: str = DEFAULT_PREFIX) -> list[str]:
    """
    Upload every build file to ``bucket`` under ``prefix``.

    Assets are uploaded before HTML documents, so a viewer never gets an
    index.html that references a bundle which is not in the bucket yet.

    Returns:
        Uploaded object keys, in upload order.

    Raises:
        DeployError: build_dir is missing or holds no files.
    """
    if not build_dir.is_dir():
        raise DeployError(f"build directory {build_dir} does not exist")

    files = list(iter_build_files(build_dir, prefix))
    if not files:
        raise DeployError(f"build directory {build_dir} is empty")

    # False sorts first: assets, then HTML.
    files.sort(key=lambda item: cache_control_for(item[1]) == HTML_CACHE_CONTROL)

    uploaded = []
    for path, key in files:
        extra_args = {
            "ContentType": content_type_for(path),
            "CacheControl": cache_control_for(key),
        }
        logger.debug("uploading %s -> s3://%s/%s", path, bucket, key)
        s3.upload_file(str(path), bucket, key, ExtraArgs=extra_args)
        uploaded.append(key)

    logger.info("uploaded %d files to s3://%s/%s", len(uploaded), bucket, prefix)
    return uploaded


def delete_stale(s3, bucket: str, prefix: str, keep: Iterable[str]) -> list[str]:
    """
    Delete objects under ``prefix`` whose keys are not in ``keep``.

    Returns:
        Deleted object keys.
    """
    keep = set(keep)
    list_prefix = f"{prefix.strip('/')}/" if prefix.strip("/") else ""
    stale = []
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket, Prefix=list_prefix):
        for obj in page.get("Contents", []):
            if obj["Key"] not in keep:
                stale.append(obj["Key"])

    # DeleteObjects accepts at most 1000 keys per call.
    for start in range(0, len(stale), 1000):
        batch = stale[start : start + 1000]
        s3.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
        )

    if stale:
        logger.info("deleted %d stale objects from s3://%s/%s", len(stale), bucket, prefix)
    return stale


def invalidate(cloudfront, distribution_id: str, paths: Iterable[str] = INVALIDATE_ALL) -> str:
    """
    Create a CloudFront invalidation and return its id.

    The caller reference is a timestamp, so repeated deploys always create
    a new invalidation.
    """
    paths = list(paths)
    response = cloudfront.create_invalidation(
        DistributionId=distribution_id,
        InvalidationBatch={
            "Paths": {"Quantity": len(paths), "Items": paths},
            "CallerReference": f"deploy-{time.time_ns()}",
        },
    )
    invalidation_id = response["Invalidation"]["Id"]
    logger.info("created invalidation %s on %s for %s", invalidation_id, distribution_id, ", ".join(paths))
    return invalidation_id


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Upload a built site to S3 and invalidate CloudFront.",
    )
    parser.add_argument("--build-dir", type=Path, default=Path("build"), help="directory with the built site")
    parser.add_argument("--bucket", default=os.environ.get("SITE_BUCKET"), help="origin bucket (env SITE_BUCKET)")
    parser.add_argument(
        "--distribution-id",
        default=os.environ.get("SITE_DISTRIBUTION_ID"),
        help="CloudFront distribution id (env SITE_DISTRIBUTION_ID)",
    )
    parser.add_argument("--prefix", default=DEFAULT_PREFIX, help="key prefix matching the origin path")
    parser.add_argument("--region", default=os.environ.get("AWS_REGION"), help="bucket region")
    parser.add_argument("--delete", action="store_true", help="delete objects not in the build")
    parser.add_argument("--no-invalidate", action="store_true", help="skip the CloudFront invalidation")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every uploaded file")
    args = parser.parse_args(argv)

    if not args.bucket:
        parser.error("--bucket or SITE_BUCKET is required")
    if not args.no_invalidate and not args.distribution_id:
        parser.error("--distribution-id or SITE_DISTRIBUTION_ID is required unless --no-invalidate is given")
    return args


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    session = boto3.session.Session(region_name=args.region)
    s3 = session.client("s3")
    try:
        uploaded = upload_build(s3, args.bucket, args.build_dir, args.prefix)
        if args.delete:
            delete_stale(s3, args.bucket, args.prefix, keep=uploaded)
        if not args.no_invalidate:
            invalidate(session.client("cloudfront"), args.distribution_id)
    except DeployError as e:
        logger.error("%s", e)
        return 1
    except ClientError as e:
        logger.error("AWS request failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

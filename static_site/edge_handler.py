"""
Lambda@Edge viewer-request hook: route extensionless URIs to the SPA entry.

Client-side routers produce deep links such as ``/students/42/profile`` that
have no object in the bucket. Any URI without a ``.`` is treated as an
application route and rewritten to ``/index.html``; anything with a ``.``
(``/static/app.a1b2.js``) is treated as an asset and passed through.

A route segment that itself contains a dot (``/users/john.doe/settings``) is
classified as an asset and left alone. That is a known limitation of the
heuristic and is kept on purpose.

This file is shipped on its own inside the Lambda archive, so it must only
import from the standard library.
"""

from typing import Any

INDEX_DOCUMENT: str = "/index.html"


def rewrite_uri(request: dict[str, Any]) -> dict[str, Any]:
    """
    Rewrite ``request["uri"]`` to the index document when it has no dot.

    Only the ``uri`` key is read or written; headers, querystring and the
    rest of the request are returned as received. A missing or non-string
    ``uri`` counts as the empty string, so it is rewritten too.
    """
    uri = request.get("uri")
    if not isinstance(uri, str):
        uri = ""
    if "." not in uri:
        request["uri"] = INDEX_DOCUMENT
    return request


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda entry point for the CloudFront viewer-request event."""
    request = event["Records"][0]["cf"]["request"]
    return rewrite_uri(request)

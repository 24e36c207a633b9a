"""Image URL normalization and the supported-format allow-list."""

import re
from urllib.parse import urljoin, urlparse

_SUPPORTED_FORMAT = re.compile(r".*\.(png|jpg|jpeg|gif|webp|svg)(\?.*)?", re.IGNORECASE)

# Characters escaped inside the extracted URL token, "?" included
_ESCAPES = str.maketrans({" ": "%20", "?": "%3F", "=": "%3D", "&": "%26"})

# Hosts whose images need extra query parameters to render at display size
_HOST_QUERY_AUGMENTATIONS = {
    "shields.io": "?style=for-the-badge&logoWidth=40",
}


def normalize_image_url(url: str, base_url: str | None = None) -> str:
    """Normalize an image URL into its cache / de-duplication key.

    Relative URLs are resolved against `base_url` when one is given. Spaces and
    query characters are percent-encoded, then known hosts get their query
    augmentation appended.
    """
    url = url.strip()
    if base_url and not urlparse(url).scheme:
        url = urljoin(base_url, url)

    url = url.translate(_ESCAPES)
    for host, query in _HOST_QUERY_AUGMENTATIONS.items():
        if host in url:
            url += query
            break
    return url


def is_supported_image_url(url: str) -> bool:
    return _SUPPORTED_FORMAT.fullmatch(url) is not None

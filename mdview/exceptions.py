class MdviewError(Exception):
    """Base exception for all mdview errors."""

    def __init__(self, message: str):
        super().__init__(message)


class DocumentLoadError(MdviewError):
    """Raised when a Markdown document cannot be loaded from a URL or path."""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class ImageError(MdviewError):
    """Base exception for image resolution failures. Always carries the image URL."""

    def __init__(self, url: str, *, message: str | None = None):
        super().__init__(message or f"Image {url!r} could not be resolved")
        self.url = url


class UnsupportedFormatError(ImageError):
    """Raised before any network activity when the URL extension is not an allowed image format."""

    def __init__(self, url: str):
        super().__init__(url, message=f"Unsupported image format: {url!r}")


class FetchFailedError(ImageError):
    """Raised for network errors, non-200 responses, wrong content types and decode failures."""

    def __init__(self, url: str, reason: str):
        super().__init__(url, message=f"Failed to fetch image {url!r}: {reason}")
        self.reason = reason


class ImageCancelledError(ImageError):
    """Raised to waiters of a fetch that was cancelled before it completed."""

    def __init__(self, url: str):
        super().__init__(url, message=f"Image request cancelled: {url!r}")

"""Container image reference resolution — image, sha, tag, version, base image."""

from p2s.core.constants import DEFAULT_REGISTRY
from p2s.pacts.types import ConfigurationError


def _split_reference(image: str) -> tuple[str, str | None, str | None]:
    """Split an image reference into (repository, tag, digest).

    A colon only counts as a tag separator after the last ``/`` so that
    registry ports (``my-reg:5000/prom``) are kept in the repository.
    """
    digest = None
    if "@" in image:
        image, digest = image.split("@", 1)
    tag = None
    last = image.rsplit("/", 1)[-1]
    if ":" in last:
        image, tag = image.rsplit(":", 1)
    return image, tag, digest


def has_tag_or_digest(image: str) -> bool:
    """True if *image* already pins a tag or a digest."""
    _, tag, digest = _split_reference(image)
    return tag is not None or digest is not None


def _normalize_repository(repo: str) -> str:
    """Qualify a familiar image name with the default registry.

    ``prometheus`` → ``docker.io/library/prometheus``,
    ``my-reg/prometheus`` → ``docker.io/my-reg/prometheus``. A first
    component containing ``.`` or ``:`` (or ``localhost``) is a registry host.
    """
    first, sep, rest = repo.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        return repo
    if not sep:
        return f"{DEFAULT_REGISTRY}/library/{repo}"
    return f"{DEFAULT_REGISTRY}/{repo}"


def build_image_path(image: str | None, base_image: str, version: str | None,
                     tag: str | None, sha: str | None,
                     default_version: str = "") -> str:
    """Compute the effective image for a container.

    Precedence: a tag/digest embedded in the explicit image, then sha, then
    the tag field, then the version. Without an explicit image the base
    image is used, tagged with the tag, the version or *default_version*.
    An explicit image with neither tag nor version is kept as-is.
    """
    if not image and not base_image:
        raise ConfigurationError("default base image is not configured")
    if image and has_tag_or_digest(image):
        return image
    if sha:
        return f"{image or base_image}@sha256:{sha}"
    if image:
        if tag:
            # The tag path goes through reference normalization, the version
            # path below does not.
            return f"{_normalize_repository(image)}:{tag}"
        if version:
            return f"{image}:{version}"
        return image
    reference = tag or version or default_version
    if not reference:
        raise ConfigurationError("default version is not configured")
    return f"{base_image}:{reference}"

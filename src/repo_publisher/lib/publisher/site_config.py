"""Site configuration file parsing.

The site config is a YAML mapping committed to the repository.  The only key
the publisher itself interprets is ``content_root``: the repository prefix
whose files are published (stripped from destination keys).
"""

from typing import Any

import yaml

from repo_publisher.lib.publisher.errors import ControlFileError

CONTENT_ROOT_KEY = "content_root"


def parse_site_config(content: bytes, path: str) -> dict[str, Any]:
    """Parse site config content into a key-value mapping.

    Args:
        content: Raw file bytes.
        path: Repository path of the file, for error messages.

    Returns:
        The parsed mapping (empty for an empty file).

    Raises:
        ControlFileError: If the YAML is malformed, the top level is not a
            mapping, or ``content_root`` is not a string.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ControlFileError(path, f"invalid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ControlFileError(path, f"expected a mapping at the top level, got {type(data).__name__}")

    root = data.get(CONTENT_ROOT_KEY)
    if root is not None and not isinstance(root, str):
        raise ControlFileError(path, f"{CONTENT_ROOT_KEY} must be a string")

    return {str(k): v for k, v in data.items()}


def content_root(config: dict[str, Any], default: str = "content/") -> str:
    """Resolve the normalised content root prefix for a site config.

    Returns:
        ``""`` when the whole repository is publishable, otherwise a prefix
        ending in ``/`` without a leading ``/``.
    """
    root = config.get(CONTENT_ROOT_KEY)
    if root is None:
        root = default
    root = root.strip().strip("/")
    return f"{root}/" if root else ""


def strip_content_root(path: str, root: str) -> str | None:
    """Return ``path`` relative to ``root``, or None if it lies outside it."""
    path = path.lstrip("/")
    if not root:
        return path
    if not path.startswith(root) or len(path) == len(root):
        return None
    return path[len(root) :]

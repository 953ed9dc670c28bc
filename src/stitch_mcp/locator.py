"""
Find download URLs inside an arbitrary ``get_screen`` result tree.

The tree is plain decoded JSON (dicts, lists, scalars). Traversal is
iterative and bounded by depth and node count, and each container is
visited once, so cyclic or pathological inputs cannot blow the stack.
"""

import enum
import logging
from typing import Any, Callable, List, Optional, Tuple

from .errors import PayloadNotFoundError

logger = logging.getLogger(__name__)

MAX_DEPTH = 64
MAX_NODES = 100_000

USER_CONTENT_DOMAIN = "googleusercontent.com"
IMAGE_EXTENSIONS = (".png", ".jpg")

# A rule inspects one object node and returns a URL when it matches.
Rule = Callable[[dict], Optional[str]]


class Role(str, enum.Enum):
    CODE = "code"
    IMAGE = "image"


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def looks_like_image_url(url: Any) -> bool:
    """Heuristic for screenshot URLs that are not under a ``screenshot`` key."""
    if not isinstance(url, str):
        return False
    if any(ext in url for ext in IMAGE_EXTENSIONS):
        return True
    return USER_CONTENT_DOMAIN in url and "contribution" not in url


def any_download_url(node: dict) -> Optional[str]:
    return _string(node.get("downloadUrl"))


def screenshot_download_url(node: dict) -> Optional[str]:
    screenshot = node.get("screenshot")
    if isinstance(screenshot, dict):
        return _string(screenshot.get("downloadUrl"))
    return None


def image_download_url(node: dict) -> Optional[str]:
    url = any_download_url(node)
    return url if looks_like_image_url(url) else None


# Rules per role, highest priority first. A lower rule is only tried after
# the whole tree has been searched for the ones above it.
RULES = {
    Role.CODE: (any_download_url,),
    Role.IMAGE: (screenshot_download_url, image_download_url),
}


def search(
    tree: Any,
    rule: Rule,
    max_depth: int = MAX_DEPTH,
    max_nodes: int = MAX_NODES,
) -> Optional[str]:
    """Depth-first search for the first object node accepted by *rule*.

    Sibling order is not part of the contract. Returns ``None`` when the tree
    is exhausted or a budget runs out.
    """
    stack: List[Tuple[Any, int]] = [(tree, 0)]
    seen = set()
    visited = 0

    while stack:
        node, depth = stack.pop()
        if not isinstance(node, (dict, list)):
            continue
        if id(node) in seen:
            continue
        seen.add(id(node))

        visited += 1
        if visited > max_nodes:
            logger.warning("Locator node budget (%d) exhausted", max_nodes)
            return None

        if isinstance(node, dict):
            found = rule(node)
            if found:
                return found
            children = list(node.values())
        else:
            children = list(node)

        if depth >= max_depth:
            if any(isinstance(c, (dict, list)) for c in children):
                logger.warning("Locator depth limit (%d) reached; pruning", max_depth)
            continue
        # Reversed so the first child is popped first.
        stack.extend((child, depth + 1) for child in reversed(children))

    return None


def locate(tree: Any, role: Role, **budget: int) -> Optional[str]:
    for rule in RULES[Role(role)]:
        url = search(tree, rule, **budget)
        if url:
            return url
    return None


_NOT_FOUND = {
    Role.CODE: "No code download URL found in screen data",
    Role.IMAGE: "No image URL found in screen data",
}


def require(tree: Any, role: Role, **budget: int) -> str:
    """Like :func:`locate` but raises PayloadNotFoundError on a miss."""
    url = locate(tree, role, **budget)
    if url is None:
        raise PayloadNotFoundError(_NOT_FOUND[Role(role)])
    return url

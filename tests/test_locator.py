import pytest

from stitch_mcp import locator
from stitch_mcp.errors import PayloadNotFoundError
from stitch_mcp.locator import Role


def test_code_url_found_regardless_of_position() -> None:
    url = "https://cdn.test/code.html"
    shallow = {"screen": {"downloadUrl": url}, "name": "Home"}
    deep = {"name": "Home", "files": [{"meta": {}}, {"html": {"file": {"downloadUrl": url}}}]}

    assert locator.locate(shallow, Role.CODE) == url
    assert locator.locate(deep, Role.CODE) == url
    # the tree is not consumed
    assert locator.locate(deep, Role.CODE) == url


def test_code_accepts_any_download_url_from_candidates() -> None:
    candidates = {"https://cdn.test/a.html", "https://cdn.test/b.html"}
    tree = {"a": {"downloadUrl": "https://cdn.test/a.html"}, "b": [{"downloadUrl": "https://cdn.test/b.html"}]}

    assert locator.locate(tree, Role.CODE) in candidates


def test_image_prefers_screenshot_over_earlier_image_url() -> None:
    tree = {
        "assets": [{"downloadUrl": "https://cdn.test/logo.png"}],
        "screen": {"screenshot": {"downloadUrl": "https://cdn.test/shot"}},
    }

    assert locator.locate(tree, Role.IMAGE) == "https://cdn.test/shot"


def test_image_falls_back_to_heuristic() -> None:
    tree = {
        "htmlCode": {"downloadUrl": "https://cdn.test/code.html"},
        "image": {"downloadUrl": "https://lh3.googleusercontent.com/abc"},
    }

    assert locator.locate(tree, Role.IMAGE) == "https://lh3.googleusercontent.com/abc"


def test_image_heuristic_skips_contribution_assets() -> None:
    tree = {"x": {"downloadUrl": "https://lh3.googleusercontent.com/contribution/1"}}

    assert locator.locate(tree, Role.IMAGE) is None


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://cdn.test/a.png", True),
        ("https://cdn.test/a.jpg?x=1", True),
        ("https://lh3.googleusercontent.com/x", True),
        ("https://lh3.googleusercontent.com/contribution/x", False),
        ("https://cdn.test/code.html", False),
        (None, False),
    ],
)
def test_looks_like_image_url(url, expected) -> None:
    assert locator.looks_like_image_url(url) is expected


def test_non_string_download_url_is_ignored() -> None:
    tree = {"a": {"downloadUrl": 42}, "b": {"downloadUrl": ""}}

    assert locator.locate(tree, Role.CODE) is None


def test_scalar_and_empty_trees() -> None:
    assert locator.locate("https://x/a.png", Role.IMAGE) is None
    assert locator.locate({}, Role.CODE) is None
    assert locator.locate([], Role.IMAGE) is None


def test_require_raises_when_missing() -> None:
    with pytest.raises(PayloadNotFoundError, match="No image URL"):
        locator.require({"screen": {"name": "x"}}, Role.IMAGE)
    with pytest.raises(PayloadNotFoundError, match="No code download URL"):
        locator.require({"screen": {"name": "x"}}, Role.CODE)


def test_cyclic_tree_terminates() -> None:
    tree: dict = {"children": []}
    tree["children"].append(tree)
    tree["self"] = tree

    assert locator.locate(tree, Role.CODE) is None


def test_depth_limit_prunes_deep_matches() -> None:
    tree: dict = {"downloadUrl": "https://cdn.test/deep.html"}
    for _ in range(10):
        tree = {"child": tree}

    assert locator.locate(tree, Role.CODE, max_depth=5) is None
    assert locator.locate(tree, Role.CODE, max_depth=20) == "https://cdn.test/deep.html"


def test_node_budget_stops_search() -> None:
    tree = {"items": [{"n": i} for i in range(50)] + [{"downloadUrl": "https://cdn.test/late.html"}]}

    assert locator.locate(tree, Role.CODE, max_nodes=10) is None
    assert locator.locate(tree, Role.CODE) == "https://cdn.test/late.html"

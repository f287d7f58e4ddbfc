"""Tests for arbor.routing.matcher — pathname resolution."""

import pytest

from arbor.errors import ConfigurationError, NoMatchError, ParamDecodeError
from arbor.routing.matcher import PathMatcher, match_by_path, split_pathname
from arbor.routing.route import route, root_route
from arbor.routing.tree import RouteTree


@pytest.fixture
def blog() -> RouteTree:
    return RouteTree.build(
        root_route(
            route("/"),
            route("/posts", route("/"), route("$slug")),
            route("$"),
        )
    )


class TestSplitPathname:
    def test_root(self) -> None:
        assert split_pathname("/") == []

    def test_segments(self) -> None:
        assert split_pathname("/posts/tanner") == ["posts", "tanner"]

    def test_trailing_marker(self) -> None:
        assert split_pathname("/posts//x/") == ["posts", "x", ""]


class TestMatch:
    def test_root_index(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/")
        assert result.route_ids == ("__root__", "/")

    def test_nested_index(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts")
        assert result.route_ids == ("__root__", "/posts", "/posts/")

    def test_param(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts/tanner")
        assert result.route_ids == ("__root__", "/posts", "/posts/$slug")
        assert result.params == {"slug": "tanner"}
        assert result.leaf.route.id == "/posts/$slug"

    def test_consumed_pathnames(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts/tanner")
        assert [m.pathname for m in result.chain] == ["/", "/posts", "/posts/tanner"]

    def test_parent_params_flow_down(self) -> None:
        tree = RouteTree.build(root_route(route("$org", route("$repo"))))
        result = PathMatcher(tree).match("/acme/arbor")
        assert result.chain[1].params == {"org": "acme"}
        assert result.chain[2].params == {"org": "acme", "repo": "arbor"}

    def test_splat_fallback(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/nope/deep")
        assert result.route_ids == ("__root__", "/$")
        assert result.params == {"_splat": "nope/deep"}

    def test_single_segment_splat(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/tanner")
        assert result.route_ids == ("__root__", "/$")
        assert result.params == {"_splat": "tanner"}

    def test_deterministic(self, blog: RouteTree) -> None:
        first = PathMatcher(blog).match("/posts/tanner")
        second = PathMatcher(blog).match("/posts/tanner")
        assert first == second

    def test_backtracks_into_splat(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts/tanner/extra")
        assert result.route_ids == ("__root__", "/$")
        assert result.params == {"_splat": "posts/tanner/extra"}

    def test_empty_splat(self) -> None:
        tree = RouteTree.build(root_route(route("/files/$")))
        assert PathMatcher(tree).match("/files").params == {"_splat": ""}
        assert PathMatcher(tree).match("/files/").params == {"_splat": ""}

    def test_no_match(self) -> None:
        tree = RouteTree.build(root_route(route("/posts")))
        matcher = PathMatcher(tree)
        assert matcher.find("/nope") is None
        with pytest.raises(NoMatchError) as exc_info:
            matcher.match("/nope")
        assert exc_info.value.pathname == "/nope"
        assert "/nope" in str(exc_info.value)


class TestDeclarationOrder:
    def test_first_declared_sibling_wins(self) -> None:
        tree = RouteTree.build(root_route(route("$slug"), route("/about")))
        result = PathMatcher(tree).match("/about")
        assert result.leaf.route.id == "/$slug"
        assert result.params == {"slug": "about"}

    def test_reordering_changes_the_winner(self) -> None:
        tree = RouteTree.build(root_route(route("/about"), route("$slug")))
        assert PathMatcher(tree).match("/about").leaf.route.id == "/about"

    def test_identical_patterns_first_wins(self) -> None:
        tree = RouteTree.build(root_route(route("$id", id="user"), route("$id", id="team")))
        assert PathMatcher(tree).match("/x").leaf.route.id == "user"


class TestTrailingSlash:
    def test_insignificant_for_matching(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts/tanner/")
        assert result.leaf.route.id == "/posts/$slug"
        assert result.params == {"slug": "tanner"}

    def test_never_strips(self, blog: RouteTree) -> None:
        assert PathMatcher(blog).match("/posts/tanner/").pathname == "/posts/tanner"

    def test_always_adds(self, blog: RouteTree) -> None:
        matcher = PathMatcher(blog, trailing_slash="always")
        assert matcher.match("/posts/tanner").pathname == "/posts/tanner/"
        assert matcher.match("/").pathname == "/"

    def test_preserve(self, blog: RouteTree) -> None:
        matcher = PathMatcher(blog, trailing_slash="preserve")
        assert matcher.match("/posts/tanner/").pathname == "/posts/tanner/"
        assert matcher.match("/posts/tanner").pathname == "/posts/tanner"

    def test_trailing_slash_selects_index(self, blog: RouteTree) -> None:
        assert PathMatcher(blog).match("/posts/").leaf.route.id == "/posts/"

    def test_unknown_policy(self, blog: RouteTree) -> None:
        with pytest.raises(ConfigurationError):
            PathMatcher(blog, trailing_slash="sometimes")  # type: ignore[arg-type]


class TestStrictTrailingSlash:
    @pytest.fixture
    def tree(self) -> RouteTree:
        return RouteTree.build(
            root_route(
                route(
                    "/posts",
                    route("/", strict_trailing_slash=True),
                    route("$slug", strict_trailing_slash=True),
                ),
                route("/docs/", strict_trailing_slash=True),
                route("/a", route("$b"), strict_trailing_slash=True),
            )
        )

    def test_extra_slash_rejected(self, tree: RouteTree) -> None:
        matcher = PathMatcher(tree)
        assert matcher.match("/posts/x").leaf.route.id == "/posts/$slug"
        assert matcher.find("/posts/x/") is None

    def test_required_slash(self, tree: RouteTree) -> None:
        matcher = PathMatcher(tree)
        assert matcher.match("/docs/").leaf.route.id == "/docs"
        assert matcher.find("/docs") is None

    def test_index_requires_slash(self, tree: RouteTree) -> None:
        matcher = PathMatcher(tree)
        assert matcher.match("/posts/").leaf.route.id == "/posts/"
        assert matcher.match("/posts").leaf.route.id == "/posts"

    def test_inherited_by_children(self, tree: RouteTree) -> None:
        matcher = PathMatcher(tree)
        assert matcher.match("/a/x").params == {"b": "x"}
        assert matcher.find("/a/x/") is None

    def test_child_can_opt_out(self) -> None:
        tree = RouteTree.build(
            root_route(route("/a", route("$b", strict_trailing_slash=False), strict_trailing_slash=True))
        )
        assert PathMatcher(tree).match("/a/x/").params == {"b": "x"}


class TestCaseSensitivity:
    def test_insensitive_by_default(self, blog: RouteTree) -> None:
        assert PathMatcher(blog).match("/POSTS/x").leaf.route.id == "/posts/$slug"

    def test_sensitive_falls_through_to_splat(self, blog: RouteTree) -> None:
        result = PathMatcher(blog, case_sensitive=True).match("/POSTS/x")
        assert result.leaf.route.id == "/$"

    def test_params_keep_their_case(self, blog: RouteTree) -> None:
        assert PathMatcher(blog).match("/posts/Tanner").params == {"slug": "Tanner"}

    def test_route_override(self) -> None:
        tree = RouteTree.build(root_route(route("/About", case_sensitive=True)))
        matcher = PathMatcher(tree)
        assert matcher.find("/about") is None
        assert matcher.find("/About") is not None


class TestFuzzy:
    def test_prefix_match(self) -> None:
        tree = RouteTree.build(root_route(route("/posts", route("$slug"))))
        result = PathMatcher(tree, fuzzy=True).match("/posts/tanner/edit")
        assert result.route_ids == ("__root__", "/posts", "/posts/$slug")

    def test_strict_rejects_leftover(self) -> None:
        tree = RouteTree.build(root_route(route("/posts", route("$slug"))))
        assert PathMatcher(tree).find("/posts/tanner/edit") is None

    def test_index_route_does_not_swallow_paths(self, blog: RouteTree) -> None:
        result = PathMatcher(blog, fuzzy=True).match("/posts/tanner")
        assert result.route_ids == ("__root__", "/posts", "/posts/$slug")

    def test_prefix_skips_zero_segment_routes(self) -> None:
        tree = RouteTree.build(root_route(route("/"), route("/posts", route("/"), route("$slug"))))
        result = PathMatcher(tree, fuzzy=True).match("/posts/tanner/edit")
        assert result.route_ids == ("__root__", "/posts", "/posts/$slug")

    def test_no_prefix_match(self) -> None:
        tree = RouteTree.build(root_route(route("/"), route("/posts")))
        matcher = PathMatcher(tree, fuzzy=True)
        assert matcher.find("/nope/x") is None
        with pytest.raises(NoMatchError):
            matcher.match("/nope/x")

    def test_exact_match_preferred(self) -> None:
        tree = RouteTree.build(root_route(route("/posts"), route("/posts/new")))
        assert PathMatcher(tree, fuzzy=True).match("/posts/new").leaf.route.id == "/posts/new"


class TestDecoding:
    def test_raw_unicode(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts/🚀")
        assert result.pathname == "/posts/🚀"
        assert result.params == {"slug": "🚀"}

    def test_encoded_unicode_location_verbatim(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts/%F0%9F%9A%80")
        assert result.pathname == "/posts/%F0%9F%9A%80"
        assert result.params == {"slug": "🚀"}

    def test_encoded_separator_in_splat(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/a%2Fb")
        assert result.route_ids == ("__root__", "/$")
        assert result.params == {"_splat": "a/b"}
        assert result.pathname == "/a%2Fb"

    def test_encoded_literal(self, blog: RouteTree) -> None:
        assert PathMatcher(blog).match("/p%6Fsts/x").leaf.route.id == "/posts/$slug"

    def test_decode_error_is_isolated(self, blog: RouteTree) -> None:
        result = PathMatcher(blog).match("/posts/%E0%A4%A")
        assert result.leaf.route.id == "/posts/$slug"
        assert result.params == {"slug": "%E0%A4%A"}
        assert isinstance(result.leaf.params_error, ParamDecodeError)
        assert all(m.params_error is None for m in result.chain[:-1])


class TestMatchByPath:
    def test_exact(self) -> None:
        assert match_by_path("/posts/tanner", "/posts/$slug") == {"slug": "tanner"}

    def test_leftover_rejected(self) -> None:
        assert match_by_path("/posts/tanner/edit", "/posts/$slug") is None

    def test_fuzzy(self) -> None:
        assert match_by_path("/posts/tanner/edit", "/posts/$slug", fuzzy=True) == {"slug": "tanner"}

    def test_case(self) -> None:
        assert match_by_path("/POSTS/x", "/posts/$slug") == {"slug": "x"}
        assert match_by_path("/POSTS/x", "/posts/$slug", case_sensitive=True) is None

    def test_literal_only(self) -> None:
        assert match_by_path("/about", "/about") == {}
        assert match_by_path("/about", "/contact") is None

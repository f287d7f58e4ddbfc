"""Arbor — nested route matching with an async load lifecycle and a reactive store.

Resolves a pathname against a tree of nested routes, decodes path params,
runs each match's loader (pending → success/error), and publishes every
transition through a small observable store.

Basic usage::

    from arbor import Router, RouteTree, root_route, route

    async def load_post(ctx):
        return await fetch_post(ctx.params["slug"], cancel=ctx.cancel_token)

    tree = RouteTree.build(
        root_route(
            route("/"),
            route("/posts", route("$slug", loader=load_post)),
            route("$"),
        )
    )
    router = Router(tree)

    router.store.subscribe(lambda state, previous: render(state.matches))
    await router.navigate("/posts/tanner")
"""

from importlib import import_module

__version__ = "0.1.0"

# public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "ArborError": "arbor.errors",
    "CancellationToken": "arbor.matches",
    "ConfigurationError": "arbor.errors",
    "EventBus": "arbor.events",
    "LoadCompletion": "arbor.matches",
    "LoaderContext": "arbor.matches",
    "LoaderError": "arbor.errors",
    "MatchNotFoundError": "arbor.errors",
    "Location": "arbor.matches",
    "MatchLifecycle": "arbor.lifecycle",
    "MatchResult": "arbor.routing.matcher",
    "NoMatchError": "arbor.errors",
    "ParamDecodeError": "arbor.errors",
    "PathMatcher": "arbor.routing.matcher",
    "Route": "arbor.routing.route",
    "RouteMatch": "arbor.matches",
    "RouteTree": "arbor.routing.tree",
    "Router": "arbor.router",
    "RouterConfig": "arbor.config",
    "RouterEvent": "arbor.events",
    "RouterState": "arbor.matches",
    "Selection": "arbor.store",
    "StaleResultDiscarded": "arbor.errors",
    "Store": "arbor.store",
    "match_by_path": "arbor.routing.matcher",
    "root_route": "arbor.routing.route",
    "route": "arbor.routing.route",
    "shallow": "arbor.store",
}

__all__ = sorted(_LAZY_IMPORTS)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import arbor`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(import_module(module_name), name)

"""Unit tests for the hook engine facade."""

import pytest

from graphhook import (
    HookConfig,
    HookEngine,
    ImmutablePropertyError,
    LocationNotFoundError,
    LocationStaleError,
    ScopeConflictError,
    obj,
)
from graphhook.core import engine as engine_module


def greet(this):
    return this["name"]


def shout(this):
    return this["name"].upper()


def unreachable(this):
    return None


def c(this):
    return "c"


def d(this):
    return "d"


def say_hi(invocation, args, context):
    return "hi " + invocation.run()


@pytest.fixture
def root():
    return obj(a=obj(greet=greet, shout=shout, name="root"))


@pytest.fixture
def hooks(root):
    return HookEngine(root=root)


@pytest.fixture
def global_engine():
    """Fresh global engine, dropped after the test."""
    yield engine_module.reset_global_engine()
    engine_module.reset_global_engine()


class TestCreateAndGetHook:
    """Test wrapper issuing and handler installation."""

    def test_hi_bob(self, hooks):
        """Test a handler decorates the original's result with an explicit receiver."""
        wrapper = hooks.create_hook(greet, say_hi)
        assert wrapper(obj(name="bob")) == "hi bob"

    def test_bare_call_uses_discovered_context(self, hooks):
        """Test calls without a receiver run against the node the function was found on."""
        wrapper = hooks.create_hook(greet, say_hi)
        assert wrapper() == "hi root"

    def test_receiver_override_inside_handler(self, hooks):
        """Test handlers can re-run the original against another receiver."""
        wrapper = hooks.create_hook(
            greet, lambda inv, args, ctx: inv.call(None, obj(name="other"))
        )
        assert wrapper() == "other"

    def test_default_forwarding(self, hooks):
        """Test an unhandled wrapper behaves like the original."""
        wrapper = hooks.get_hook(greet)
        receiver = obj(name="x")
        assert wrapper(receiver) == greet(receiver)
        assert wrapper() == "root"

    def test_get_hook_is_idempotent(self, hooks):
        """Test repeated lookups return one identity-stable wrapper."""
        wrapper = hooks.get_hook(greet)
        assert hooks.get_hook(greet) is wrapper
        assert hooks.get_hook(wrapper) is wrapper
        assert hooks.create_hook(wrapper) is wrapper
        assert len(hooks.bindings()) == 1

    def test_get_hook_keeps_handler(self, hooks):
        """Test get_hook never replaces an installed handler."""
        hooks.create_hook(greet, say_hi)
        assert hooks.get_hook(greet)() == "hi root"

    def test_create_hook_replaces_handler(self, hooks):
        """Test a second create_hook swaps the handler on the same wrapper."""
        first = hooks.create_hook(greet, say_hi)
        second = hooks.create_hook(greet, lambda inv, args, ctx: "replaced")
        assert first is second
        assert first() == "replaced"

    def test_wrapper_name(self, hooks):
        """Test wrappers carry a diagnostic name."""
        assert hooks.get_hook(greet).__name__ == "Hooked(greet)"

    def test_name_format_from_config(self, root):
        """Test the wrapper name format is configurable."""
        hooks = HookEngine(root=root, config=HookConfig(wrapper_name_format="hook:{name}"))
        assert hooks.get_hook(greet).__name__ == "hook:greet"

    def test_unlocated_function_still_dispatches(self, hooks):
        """Test functions outside the graph can be hooked for call dispatch."""
        wrapper = hooks.create_hook(unreachable, lambda inv, args, ctx: ctx)
        assert hooks.locate(unreachable) is None
        assert wrapper() is None
        receiver = obj()
        assert wrapper(receiver) is receiver

    def test_intercept_decorator(self, hooks, root):
        """Test the decorator installs the handler and returns it unchanged."""

        @hooks.intercept(greet)
        def loud(invocation, args, context):
            return invocation.run().upper()

        assert callable(loud)
        assert hooks.get_hook(greet)() == "ROOT"
        assert root["a"]["greet"] is greet

    def test_root_provider_is_read_lazily(self):
        """Test a provider root is consulted at location time."""
        holder = {}
        hooks = HookEngine(root_provider=lambda: holder.get("root"))
        assert hooks.locate(greet) is None

        holder["root"] = obj(node=obj(greet=greet, name="late"))
        assert hooks.locate(greet).path == ("node", "greet")
        assert hooks.get_hook(greet)() == "late"


class TestOverrideRestore:
    """Test in-place application."""

    def test_override_and_restore(self, hooks, root):
        """Test the wrapper round-trips through the live graph."""
        wrapper = hooks.create_hook(greet, say_hi)
        assert hooks.override(greet) is wrapper
        assert root["a"]["greet"] is wrapper
        assert root["a"].invoke("greet") == "hi root"

        assert hooks.restore(wrapper) is greet
        assert root["a"]["greet"] is greet

    def test_override_twice(self, hooks, root):
        """Test overriding an already overridden slot is a no-op."""
        wrapper = hooks.override(greet)
        assert hooks.override(greet) is wrapper
        assert root["a"]["greet"] is wrapper

    def test_override_keeps_flags(self, hooks, root):
        """Test the slot keeps its descriptor attributes."""
        root["a"].define("greet", greet, enumerable=False)
        hooks.override(greet)
        descriptor = root["a"].get_own_descriptor("greet")
        assert descriptor.enumerable is False
        assert descriptor.value is hooks.get_hook(greet)

    def test_override_immutable(self):
        """Test a frozen slot is refused and left unchanged."""
        node = obj(name="frozen")
        node.define("greet", greet, configurable=False, writable=False)
        root = obj(node=node)
        hooks = HookEngine(root=root)
        with pytest.raises(ImmutablePropertyError):
            hooks.override(greet)
        assert node["greet"] is greet

    def test_override_inherited(self):
        """Test inherited functions are replaced on the declaring node."""
        proto = obj(greet=greet)
        child = obj(proto, name="child")
        hooks = HookEngine(root=obj(child=child))
        wrapper = hooks.override(greet)
        assert proto["greet"] is wrapper
        assert child.has_own("greet") is False
        assert child.invoke("greet") == "child"

    def test_override_unlocated(self, hooks):
        """Test overriding a function outside the graph fails."""
        with pytest.raises(LocationNotFoundError):
            hooks.override(unreachable)

    def test_restore_stale(self, hooks, root):
        """Test restore refuses a slot that no longer holds the function."""
        hooks.override(greet)
        root["a"]["greet"] = unreachable
        with pytest.raises(LocationStaleError) as exc_info:
            hooks.restore(greet)
        assert exc_info.value.path == ("a", "greet")
        assert root["a"]["greet"] is unreachable

    def test_restore_without_strict_locations(self, root):
        """Test relaxed location checks write regardless."""
        hooks = HookEngine(root=root, config=HookConfig(strict_locations=False))
        hooks.override(greet)
        root["a"]["greet"] = unreachable
        hooks.restore(greet)
        assert root["a"]["greet"] is greet


class TestCloneObj:
    """Test single-node copy-on-write."""

    def test_clone_isolation(self, hooks, root):
        """Test the clone holds the wrapper and the original node is untouched."""
        wrapper = hooks.create_hook(greet, say_hi)
        clone = hooks.clone_obj(greet)
        assert clone is not root["a"]
        assert clone["greet"] is wrapper
        assert clone["shout"] is shout
        assert root["a"]["greet"] is greet
        assert clone.invoke("greet") == "hi root"

    def test_clone_unlocated(self, hooks):
        """Test cloning needs a location."""
        with pytest.raises(LocationNotFoundError):
            hooks.clone_obj(unreachable)


class TestGetObj:
    """Test scoped copy-on-write."""

    def test_single_binding(self, hooks, root):
        """Test a node with one hooked function."""
        wrapper = hooks.get_hook(greet)
        clone = hooks.get_obj(root["a"])
        assert clone["greet"] is wrapper
        assert root["a"]["greet"] is greet

    def test_multiple_bindings_same_node(self, hooks, root):
        """Test every binding found on the node is applied."""
        greet_wrapper = hooks.get_hook(greet)
        shout_wrapper = hooks.get_hook(shout)
        clone = hooks.get_obj(root["a"])
        assert clone["greet"] is greet_wrapper
        assert clone["shout"] is shout_wrapper
        assert clone["name"] == "root"

    def test_no_binding_for_scope(self, hooks):
        """Test a node without hooked functions is rejected."""
        hooks.get_hook(greet)
        with pytest.raises(LocationNotFoundError):
            hooks.get_obj(obj())

    def test_context_match_wins_over_owner(self):
        """Test a node holding one binding ignores the inherited ones it declares."""
        proto = obj(fn=c)
        child = obj(proto, second=None)
        proto["second"] = d
        hooks = HookEngine(root=obj(x=child, p=proto))

        assert hooks.locate(c).context is child
        assert hooks.locate(c).owner is proto
        assert hooks.locate(d).context is proto

        d_wrapper = hooks.get_hook(d)
        clone = hooks.get_obj(proto)
        assert clone is not proto
        assert clone["second"] is d_wrapper
        assert clone["fn"] is c
        assert proto["second"] is d

    def test_owner_match_when_nothing_found_on_scope(self):
        """Test a declaring node is reachable when no binding was found on it."""
        proto = obj(fn=c)
        child = obj(proto)
        hooks = HookEngine(root=obj(x=child))
        wrapper = hooks.get_hook(c)

        clone = hooks.get_obj(proto)
        assert clone["fn"] is wrapper
        assert proto["fn"] is c

    def test_scope_conflict(self):
        """Test bindings declared on one node but found on different nodes cannot share one clone."""
        proto = obj(fn=c, other=d)
        first = obj(proto, other=None)
        second = obj(proto)
        hooks = HookEngine(root=obj(x=first, y=second))

        assert hooks.locate(c).context is first
        assert hooks.locate(d).context is second
        assert hooks.locate(d).owner is proto
        with pytest.raises(ScopeConflictError):
            hooks.get_obj(proto)
        assert proto["fn"] is c and proto["other"] is d

    def test_root_scope_clones_hierarchy(self, hooks, root):
        """Test get_obj(root) is a hierarchy clone."""
        wrapper = hooks.get_hook(greet)
        new_root = hooks.get_obj(root)
        assert new_root is not root
        assert new_root["a"]["greet"] is wrapper
        assert root["a"]["greet"] is greet

    def test_root_clone_isolation(self, hooks, root):
        """Test unhooked writes on either root stay local while untouched nodes are shared."""
        nested = obj(deep=True)
        root["other"] = obj(nested=nested)
        hooks.get_hook(greet)
        new_root = hooks.get_obj(root)

        new_root["added"] = 1
        root["late"] = 2
        assert "added" not in root
        assert "late" not in new_root
        assert new_root["other"]["nested"] is nested


class TestCloneRoot:
    """Test hierarchy copy-on-write."""

    def test_shared_intermediates(self):
        """Test a.b.c and a.b.d share one cloned a and b."""
        b = obj(c=c, d=d)
        side = obj(value=1)
        root = obj(a=obj(b=b), side=side)
        hooks = HookEngine(root=root)
        c_wrapper = hooks.get_hook(c)
        d_wrapper = hooks.get_hook(d)

        new_root = hooks.clone_root()
        assert new_root["a"]["b"]["c"] is c_wrapper
        assert new_root["a"]["b"]["d"] is d_wrapper
        assert new_root["a"] is not root["a"]
        assert new_root["a"]["b"] is not b
        assert new_root["side"] is side
        assert b["c"] is c and b["d"] is d

    def test_binding_inside_hooked_function(self):
        """Test a hook on a function attribute of another hooked function fails the clone."""

        def outer(this):
            return "outer"

        def inner(this):
            return "inner"

        outer.inner = inner
        root = obj(a=obj(outer=outer))
        hooks = HookEngine(root=root)
        hooks.get_hook(outer)
        inner_wrapper = hooks.get_hook(inner)
        assert hooks.locate(inner).path == ("a", "outer", "inner")

        with pytest.raises(ScopeConflictError):
            hooks.clone_root()
        assert root["a"]["outer"] is outer

        new_root = hooks.clone_root([inner])
        assert new_root["a"]["outer"] is not outer
        assert new_root["a"]["outer"].inner is inner_wrapper
        assert outer.inner is inner

    def test_explicit_targets(self, hooks, root):
        """Test only the named targets are substituted."""
        greet_wrapper = hooks.get_hook(greet)
        hooks.get_hook(shout)
        new_root = hooks.clone_root([greet])
        assert new_root["a"]["greet"] is greet_wrapper
        assert new_root["a"]["shout"] is shout

    def test_no_bindings(self, hooks, root):
        """Test an engine without bindings returns a plain clone."""
        new_root = hooks.clone_root()
        assert new_root is not root
        assert new_root["a"] is root["a"]

    def test_unlocated_target(self, hooks):
        """Test explicit targets without a location fail the whole clone."""
        with pytest.raises(LocationStaleError):
            hooks.clone_root([greet, unreachable])

    def test_stale_path(self, hooks, root):
        """Test a moved function fails the clone."""
        hooks.get_hook(greet)
        root["a"]["greet"] = unreachable
        with pytest.raises(LocationStaleError):
            hooks.clone_root()

    def test_no_root(self):
        """Test cloning needs a root graph."""
        with pytest.raises(LocationNotFoundError):
            HookEngine().clone_root()


class TestDemoRoot:
    """Test hooking the sample process/window/runtime graph."""

    def test_locate_spawn(self, demo_root):
        """Test spawn is found on the process node."""
        hooks = HookEngine(root=demo_root)
        info = hooks.locate(demo_root["process"]["spawn"])
        assert info.path == ("process", "spawn")
        assert info.context is demo_root["process"]

    def test_override_spawn_sees_runtime_calls(self, demo_root):
        """Test an in-place hook observes calls made by other nodes."""
        hooks = HookEngine(root=demo_root)
        seen = []

        @hooks.intercept(demo_root["process"]["spawn"])
        def audit(invocation, args, context):
            seen.append((args, invocation.kwargs.get("kind")))
            return invocation.run()

        hooks.override(demo_root["process"]["spawn"])
        pid = demo_root["runtime"].invoke("exec", {"type": "app", "source": "index.html"})

        assert seen == [(("index.html",), "app")]
        assert demo_root["process"]["table"][pid]["windows"] == ["win-0"]

    def test_cloned_root_leaves_live_graph(self, demo_root):
        """Test a cloned root hooks spawn without touching the original process node."""
        hooks = HookEngine(root=demo_root)
        spawn = demo_root["process"]["spawn"]
        hooks.create_hook(spawn, lambda inv, args, ctx: -1)

        new_root = hooks.clone_root()
        assert new_root["process"].invoke("spawn", "x") == -1
        assert demo_root["process"].invoke("spawn", "x") == 0
        assert new_root["version"] == "0.1.0"

    def test_hooked_info_seen_by_list_and_kill(self, demo_root):
        """Test list goes through a hooked info and kill closes owned windows."""
        hooks = HookEngine(root=demo_root)
        process = demo_root["process"]
        hooks.create_hook(process["info"], lambda inv, args, ctx: {"pid": args[0], "hooked": True})
        hooks.override(process["info"])

        pid = demo_root["runtime"].invoke("exec", {"type": "webview", "source": "app.html"})
        assert process.invoke("list") == [{"pid": pid, "hooked": True}]

        assert process.invoke("kill", pid) is True
        assert demo_root["wm"]["windows"] == []
        assert process.invoke("kill", pid) is False

    def test_frozen_version(self, demo_root):
        """Test the frozen version slot cannot be overwritten."""
        with pytest.raises(TypeError):
            demo_root["version"] = "2"


class TestGlobalEngine:
    """Test the module-level convenience functions."""

    def test_global_functions(self, global_engine, root):
        """Test the global engine follows set_global_root."""
        engine_module.set_global_root(root)
        wrapper = engine_module.create_hook(greet, say_hi)
        assert engine_module.get_global_engine() is global_engine
        assert engine_module.get_hook(greet) is wrapper

        engine_module.override(greet)
        assert root["a"]["greet"] is wrapper
        engine_module.restore(greet)
        assert root["a"]["greet"] is greet

        assert engine_module.get_obj(root["a"])["greet"] is wrapper
        assert engine_module.clone_root()["a"]["greet"] is wrapper

    def test_global_intercept(self, global_engine, root):
        """Test the hook decorator alias."""
        import graphhook

        engine_module.set_global_root(root)

        @graphhook.hook(greet)
        def quiet(invocation, args, context):
            return invocation.run().lower()

        assert graphhook.get_hook(greet)(obj(name="LOUD")) == "loud"

    def test_reset_drops_bindings(self, global_engine, root):
        """Test reset gives a fresh engine."""
        engine_module.set_global_root(root)
        engine_module.get_hook(greet)
        fresh = engine_module.reset_global_engine(root)
        assert fresh is not global_engine
        assert fresh.bindings() == []

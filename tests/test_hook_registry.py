"""Tests for the per-collection hook registry."""

import pytest

from docrelate.hooks import HookEvent, HookParams, HookRegistry, relating_hook, skippable_hook


@pytest.fixture
def registry():
    return HookRegistry()


@pytest.fixture
def params():
    return HookParams(condition={"_id": 1})


class TestHookRegistry:
    def test_register_and_get(self, registry):
        async def my_hook(params):
            return None

        registry.register(HookEvent.BEFORE_UPDATE_ONE, my_hook)
        assert registry.get(HookEvent.BEFORE_UPDATE_ONE) == [my_hook]

    def test_register_accepts_event_name(self, registry):
        async def my_hook(params):
            return None

        registry.on("afterDeleteMany", my_hook)
        assert registry.is_registered(HookEvent.AFTER_DELETE_MANY)

    def test_unknown_event_name_rejected(self, registry):
        async def my_hook(params):
            return None

        with pytest.raises(ValueError):
            registry.register("beforeInsertOne", my_hook)

    def test_is_registered(self, registry):
        async def my_hook(params):
            return None

        assert not registry.is_registered(HookEvent.BEFORE_DELETE_ONE)
        registry.register(HookEvent.BEFORE_DELETE_ONE, my_hook)
        assert registry.is_registered(HookEvent.BEFORE_DELETE_ONE)

    def test_clear(self, registry):
        async def my_hook(params):
            return None

        registry.register(HookEvent.BEFORE_DELETE_ONE, my_hook)
        registry.clear()
        assert registry.get(HookEvent.BEFORE_DELETE_ONE) == []

    def test_get_returns_copy(self, registry):
        async def my_hook(params):
            return None

        registry.register(HookEvent.BEFORE_DELETE_ONE, my_hook)
        registry.get(HookEvent.BEFORE_DELETE_ONE).clear()
        assert registry.is_registered(HookEvent.BEFORE_DELETE_ONE)


class TestEmit:
    @pytest.mark.asyncio
    async def test_runs_in_registration_order(self, registry, params):
        calls = []

        async def first(p):
            calls.append("first")

        async def second(p):
            calls.append("second")

        registry.register(HookEvent.BEFORE_UPDATE_ONE, first)
        registry.register(HookEvent.BEFORE_UPDATE_ONE, second)
        await registry.emit(HookEvent.BEFORE_UPDATE_ONE, params)
        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_error_stops_remaining_hooks(self, registry, params):
        calls = []

        async def failing(p):
            raise RuntimeError("boom")

        async def later(p):
            calls.append("later")

        registry.register(HookEvent.BEFORE_UPDATE_ONE, failing)
        registry.register(HookEvent.BEFORE_UPDATE_ONE, later)
        with pytest.raises(RuntimeError, match="boom"):
            await registry.emit(HookEvent.BEFORE_UPDATE_ONE, params)
        assert calls == []

    @pytest.mark.asyncio
    async def test_meta_shared_between_hooks(self, registry, params):
        async def before(p):
            p.meta.modified_identifiers = {"_id": [1]}

        async def after(p):
            p.result = p.meta.modified_identifiers

        registry.register(HookEvent.BEFORE_UPDATE_ONE, before)
        registry.register(HookEvent.AFTER_UPDATE_ONE, after)
        await registry.emit(HookEvent.BEFORE_UPDATE_ONE, params)
        await registry.emit(HookEvent.AFTER_UPDATE_ONE, params)
        assert params.result == {"_id": [1]}

    @pytest.mark.asyncio
    async def test_hook_registered_during_emit_waits_for_next_emit(self, registry, params):
        calls = []

        async def late(p):
            calls.append("late")

        async def registering(p):
            calls.append("registering")
            registry.register(HookEvent.BEFORE_UPDATE_ONE, late)

        registry.register(HookEvent.BEFORE_UPDATE_ONE, registering)
        await registry.emit(HookEvent.BEFORE_UPDATE_ONE, params)
        assert calls == ["registering"]
        assert registry.get(HookEvent.BEFORE_UPDATE_ONE) == [registering, late]

    @pytest.mark.asyncio
    async def test_emit_without_hooks(self, registry, params):
        await registry.emit(HookEvent.AFTER_UPDATE_MANY, params)


class TestSkippableHook:
    @pytest.mark.asyncio
    async def test_relating_hook_runs_by_default(self, params):
        calls = []

        @relating_hook
        async def my_hook(p):
            calls.append(p)

        await my_hook(params)
        assert calls == [params]

    @pytest.mark.asyncio
    async def test_relating_false_skips(self):
        calls = []

        @relating_hook
        async def my_hook(p):
            calls.append(p)

        await my_hook(HookParams(condition={}, options={"relating": False}))
        assert calls == []

    @pytest.mark.asyncio
    async def test_other_options_do_not_skip(self):
        calls = []

        @skippable_hook("auditing")
        async def my_hook(p):
            calls.append(p)

        await my_hook(HookParams(condition={}, options={"relating": False}))
        assert len(calls) == 1

    def test_preserves_function_name(self):
        @relating_hook
        async def original_fn(p):
            return None

        assert original_fn.__name__ == "original_fn"


class TestHookParams:
    def test_mutation_prefers_modifier(self):
        params = HookParams(condition={}, modifier={"$set": {"a": 1}})
        assert params.mutation == {"$set": {"a": 1}}

    def test_mutation_falls_back_to_replacement(self):
        params = HookParams(condition={}, replacement={"a": 1})
        assert params.mutation == {"a": 1}

    def test_each_params_gets_fresh_meta(self):
        first = HookParams(condition={})
        second = HookParams(condition={})
        assert first.meta is not second.meta

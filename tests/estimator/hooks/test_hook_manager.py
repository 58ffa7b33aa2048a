"""Tests for estimator/hooks/manager.py: HookManager."""

from estimator.hooks import Hook, HookManager, HookPoint


class BeforeOnly(Hook):
    name = "before_only"
    hook_points = frozenset({HookPoint.BEFORE_RUN})


class EndOnly(Hook):
    name = "end_only"
    hook_points = frozenset({HookPoint.SESSION_END})


class TestMembership:

    def test_add_is_idempotent(self):
        hook = BeforeOnly()
        hm = HookManager()
        assert hm.add([hook]) == [hook]
        assert hm.add([hook]) == []
        assert len(hm) == 1

    def test_remove_is_idempotent(self):
        hook = BeforeOnly()
        hm = HookManager([hook])
        assert hm.remove([hook]) == [hook]
        assert hm.remove([hook]) == []
        assert hook not in hm

    def test_members_keep_insertion_order(self):
        a, b, c = BeforeOnly(), EndOnly(), BeforeOnly()
        hm = HookManager([a, b, c])
        hm.remove([b])
        hm.add([b])
        assert hm.members == [a, c, b]


class TestDispatchIndex:

    def test_hooks_indexed_by_declared_points(self):
        before, end = BeforeOnly(), EndOnly()
        hm = HookManager([before, end])
        assert hm.hooks_at(HookPoint.BEFORE_RUN) == [before]
        assert hm.hooks_at(HookPoint.SESSION_END) == [end]
        assert hm.hooks_at(HookPoint.AFTER_RUN) == []

    def test_index_follows_removal(self):
        before = BeforeOnly()
        hm = HookManager([before])
        hm.remove([before])
        assert hm.hooks_at(HookPoint.BEFORE_RUN) == []


class TestNestedDisable:

    def test_disabled_manager_dispatches_nothing(self):
        hm = HookManager([BeforeOnly()])
        hm.disable()
        assert hm.hooks_at(HookPoint.BEFORE_RUN) == []
        assert len(hm) == 1

    def test_requires_matching_enables(self):
        hm = HookManager([BeforeOnly()])
        hm.disable()
        hm.disable()
        hm.enable()
        assert not hm.enabled
        hm.enable()
        assert hm.enabled
        assert len(hm.hooks_at(HookPoint.BEFORE_RUN)) == 1

    def test_unmatched_enable_is_ignored(self):
        hm = HookManager()
        hm.enable()
        assert hm.enabled
        hm.disable()
        assert not hm.enabled

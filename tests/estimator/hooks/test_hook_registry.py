"""Tests for estimator/hooks/registry.py: HookRegistry."""

import pytest

from estimator.hooks import Hook, HookPoint, HookRegistry
from estimator.registry import Registry


class TestBuiltinHooks:

    def test_shipped_hooks_are_registered(self):
        names = HookRegistry.list_all()
        for name in ("nan_checker", "loss_logger", "checkpoint_saver", "tensorboard"):
            assert name in names

    def test_build_passes_config(self):
        (logger,) = HookRegistry.build(['loss_logger'], {'loss_logger': {'every_n_steps': 7}})
        assert logger.every_n_steps == 7

    def test_build_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown hook"):
            HookRegistry.build(['does_not_exist'])

    def test_get_all_info(self):
        info = {i['name']: i for i in HookRegistry.get_all_info()}
        assert info['loss_logger']['model_dependent'] is True
        assert 'BEFORE_RUN' in info['nan_checker']['hook_points']


class TestRegistration:

    def test_register_by_class_attribute(self):
        class _Reg(Registry):
            _items = {}

        @_Reg.register
        class Named(Hook):
            name = "named"
            hook_points = frozenset({HookPoint.AFTER_RUN})

        assert _Reg.get("named") is Named

    def test_register_with_explicit_name(self):
        class _Reg(Registry):
            _items = {}

        @_Reg.register("explicit")
        class Anything:
            pass

        assert _Reg.list_all() == ["explicit"]

    def test_register_without_name_attribute_raises(self):
        class _Reg(Registry):
            _items = {}

        class Nameless:
            pass

        with pytest.raises(TypeError):
            _Reg.register(Nameless)

    def test_registries_do_not_share_items(self):
        class _A(Registry):
            _items = {}

        class _B(Registry):
            _items = {}

        _A.register("only_a")(object)
        assert _B.list_all() == []

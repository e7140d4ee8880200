"""
Unit tests for policy and sandbox factories.
"""
import io

import pytest

from patrol import create_evaluator, make_config, make_policy
from patrol.exceptions import ConfigurationError
from patrol.executor.base import OutputSink, Sandbox
from patrol.executor.evaluator import Evaluator
from patrol.policy.rules import ALL, AllExcept, OnlyThese, Policy
from patrol.schemas import to_rule


class TestToRule:
    def test_all(self):
        assert to_rule("all") is ALL
        assert to_rule("ALL") is ALL
        assert to_rule(ALL) is ALL

    def test_except(self):
        assert to_rule({"except": ["system"]}) == AllExcept({"system"})

    def test_only(self):
        assert to_rule({"only": ["dumps"]}) == OnlyThese({"dumps"})
        assert to_rule(["dumps", "loads"]) == OnlyThese({"dumps", "loads"})

    def test_rule_values_pass_through(self):
        rule = OnlyThese({"dumps"})
        assert to_rule(rule) is rule

    @pytest.mark.parametrize("value", ["some", {"except": [], "only": []}, {"deny": []}, 3, None])
    def test_unknown(self, value):
        with pytest.raises(ValueError):
            to_rule(value)


class TestMakePolicy:
    def test_full(self):
        policy = make_policy({
            "allowed_local": ["add", "len"],
            "allowed_remote": {"math": "all", "os": {"except": ["system"]}, "json": ["dumps"]},
            "range_max": 50,
        })
        assert isinstance(policy, Policy)
        assert policy.allowed_local == frozenset({"add", "len"})
        assert policy.rule_for("math") is ALL
        assert policy.rule_for("os") == AllExcept({"system"})
        assert policy.rule_for("json") == OnlyThese({"dumps"})
        assert policy.range_max == 50

    def test_keywords(self):
        policy = make_policy(allowed_local=["add"])
        assert policy.allows_local("add")

    def test_defaults(self):
        policy = make_policy()
        assert policy.allowed_local == frozenset()
        assert dict(policy.allowed_remote) == {}
        assert policy.range_max == 1000

    def test_unbounded_range_max(self):
        assert make_policy(range_max=None).range_max is None

    def test_negative_range_max(self):
        with pytest.raises(ConfigurationError) as exc_info:
            make_policy(range_max=-1)
        assert exc_info.value.details["errors"]

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError):
            make_policy({"allowed_everything": True})

    def test_bad_rule(self):
        with pytest.raises(ConfigurationError):
            make_policy(allowed_remote={"math": "some"})

    def test_bad_remote_shape(self):
        with pytest.raises(ConfigurationError):
            make_policy(allowed_remote=["math"])


class TestMakeConfig:
    def test_with_policy(self):
        policy = Policy(allowed_local={"add"})
        config = make_config({"policy": policy, "timeout": 2})
        assert isinstance(config, Sandbox)
        assert config.policy is policy
        assert config.timeout == 2.0
        assert config.output_sink == OutputSink.DISCARD

    def test_with_policy_mapping(self):
        config = make_config(policy={"allowed_remote": {"math": "all"}})
        assert config.policy.rule_for("math") is ALL

    def test_policy_required(self):
        with pytest.raises(ConfigurationError):
            make_config({})

    def test_invalid_policy(self):
        with pytest.raises(ConfigurationError):
            make_config(policy="everything")

    def test_invalid_policy_mapping(self):
        with pytest.raises(ConfigurationError):
            make_config(policy={"range_max": -5})

    @pytest.mark.parametrize("timeout", [0, -1, "soon"])
    def test_invalid_timeout(self, timeout):
        with pytest.raises(ConfigurationError):
            make_config(policy=Policy(), timeout=timeout)

    def test_timeout_none_uses_default(self):
        assert make_config(policy=Policy(), timeout=None).timeout == 5.0

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError):
            make_config(policy=Policy(), retries=3)

    def test_all_fields(self):
        handle = io.StringIO()

        def transform(value):
            return value

        config = make_config(
            policy=Policy(),
            timeout=1.5,
            output_sink=handle,
            context={"x": 1},
            transform=transform,
            discard_path="/tmp/out",
            start_method="fork",
        )
        assert config.live_handle() is handle
        assert dict(config.context) == {"x": 1}
        assert config.transform is transform
        assert config.discard_path == "/tmp/out"
        assert config.start_method == "fork"

    def test_invalid_transform(self):
        with pytest.raises(ConfigurationError):
            make_config(policy=Policy(), transform=3)


class TestCreateEvaluator:
    def test_from_sandbox(self):
        sandbox = Sandbox(timeout=1)
        evaluator = create_evaluator(sandbox)
        assert isinstance(evaluator, Evaluator)
        assert evaluator.config is sandbox

    def test_from_mapping(self):
        evaluator = create_evaluator({"policy": {"allowed_local": ["len"]}, "timeout": 3})
        assert evaluator.config.policy.allows_local("len")
        assert evaluator.config.timeout == 3.0

    def test_default(self):
        assert create_evaluator().config.timeout == 5.0

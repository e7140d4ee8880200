"""
Safety checker: walks an expression tree against a capability policy.

The walk is total and side-effect free. Call and range shapes are judged by
their rule; every other node is safe only if all of its children are.

A capability may not be reached under another name: imports are judged
against the rule of the module they load, attribute lookups on a namespace
against that namespace's rule whether or not they are called, and builtins
referenced as values against ``allowed_local``.
"""
import ast
import builtins
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from patrol.policy.rules import AllExcept, OnlyThese, Policy, _AllRule
from patrol.policy.shapes import (
    AnonymousCall,
    LocalCall,
    Other,
    RangeLiteral,
    RemoteCall,
    canonical_namespace,
    classify,
    collect_aliases,
)

BUILTIN_NAMES = frozenset(dir(builtins))


@dataclass(frozen=True)
class Verdict:
    safe: bool
    offending: Optional[ast.AST] = None

    def __bool__(self) -> bool:
        return self.safe


ACCEPT = Verdict(True)


def render(node: ast.AST) -> str:
    """Human-readable source for a (sub)tree."""
    return ast.unparse(node)


class SafetyChecker:
    """Recursive policy check over one tree.

    Aliases introduced by imports anywhere in the tree are folded into
    namespace lookups, so ``import os as m; m.system()`` is judged as
    ``os.system`` and ``from os import system as f; f()`` likewise.
    """

    def __init__(self, policy: Policy, aliases: Optional[Dict[str, str]] = None):
        self.policy = policy
        self.aliases = aliases or {}

    def check(self, node: ast.AST) -> Verdict:
        shape = classify(node, self.aliases)

        if isinstance(shape, RemoteCall):
            return self._check_remote(shape)
        if isinstance(shape, AnonymousCall):
            # The callee is a value, not a name the policy can judge; only
            # the calls inside the expression producing it are.
            verdict = self.check(shape.callee)
            if not verdict:
                return verdict
            return self._check_all(shape.args)
        if isinstance(shape, LocalCall):
            if not self.policy.allows_local(shape.name):
                return Verdict(False, shape.node)
            return self._check_all(shape.args)
        if isinstance(shape, RangeLiteral):
            range_max = self.policy.range_max
            if range_max is None:
                return ACCEPT
            if shape.hi - shape.lo <= range_max and shape.hi < range_max:
                return ACCEPT
            return Verdict(False, shape.node)
        if isinstance(shape, Other):
            return self._check_other(shape.node)
        raise TypeError(f"Unhandled shape: {shape!r}")

    def admits(self, namespace: Optional[str], name: str) -> bool:
        """Whether the rule for ``namespace`` lets ``name`` through."""
        rule = self.policy.rule_for(namespace)
        if isinstance(rule, _AllRule):
            return True
        if isinstance(rule, AllExcept):
            return name not in rule.excluded
        if isinstance(rule, OnlyThese):
            return name in rule.allowed
        return False

    def has_rule(self, namespace: Optional[str]) -> bool:
        return isinstance(self.policy.rule_for(namespace), (_AllRule, AllExcept, OnlyThese))

    def _check_remote(self, shape: RemoteCall) -> Verdict:
        if not self.admits(shape.namespace, shape.name):
            return Verdict(False, shape.node)
        if shape.namespace is None:
            verdict = self.check(shape.receiver)
            if not verdict:
                return verdict
        return self._check_all(shape.args)

    def _check_other(self, node: ast.AST) -> Verdict:
        if isinstance(node, ast.Attribute):
            return self._check_attribute(node)
        if isinstance(node, ast.Name):
            if isinstance(node.ctx, ast.Load) and node.id in BUILTIN_NAMES:
                if not self.policy.allows_local(node.id):
                    return Verdict(False, node)
            return ACCEPT
        if isinstance(node, ast.Import):
            for alias in node.names:
                if not self.has_rule(alias.name):
                    return Verdict(False, node)
            return ACCEPT
        if isinstance(node, ast.ImportFrom):
            return self._check_import_from(node)
        return self._check_all(ast.iter_child_nodes(node))

    def _check_attribute(self, node: ast.Attribute) -> Verdict:
        namespace = canonical_namespace(node.value, self.aliases)
        if not self.admits(namespace, node.attr):
            return Verdict(False, node)
        if namespace is None:
            return self.check(node.value)
        return ACCEPT

    def _check_import_from(self, node: ast.ImportFrom) -> Verdict:
        module = None if node.level else node.module
        for alias in node.names:
            if alias.name == "*":
                if not isinstance(self.policy.rule_for(module), _AllRule):
                    return Verdict(False, node)
                continue
            if self.admits(module, alias.name):
                continue
            if module is not None and self.has_rule(f"{module}.{alias.name}"):
                continue
            return Verdict(False, node)
        return ACCEPT

    def _check_all(self, nodes: Iterable[ast.AST]) -> Verdict:
        for child in nodes:
            verdict = self.check(child)
            if not verdict:
                return verdict
        return ACCEPT


def check(tree: ast.AST, policy: Policy) -> Verdict:
    return SafetyChecker(policy, collect_aliases(tree)).check(tree)


def is_safe(tree: ast.AST, policy: Policy) -> bool:
    return check(tree, policy).safe

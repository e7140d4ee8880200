"""
Classification of ``ast`` nodes into the shapes the safety checker rules on.

Every node maps to exactly one of :class:`LocalCall`, :class:`RemoteCall`,
:class:`AnonymousCall`, :class:`RangeLiteral` or :class:`Other`.
"""
import ast
from dataclasses import dataclass
from typing import Dict, List, Optional, Union


@dataclass(frozen=True)
class LocalCall:
    node: ast.Call
    name: str
    args: List[ast.AST]


@dataclass(frozen=True)
class RemoteCall:
    node: ast.Call
    namespace: Optional[str]  # None when the receiver is not a dotted name
    name: str
    args: List[ast.AST]

    @property
    def receiver(self) -> Optional[ast.AST]:
        """The expression the function is looked up on, if written out."""
        func = self.node.func
        return func.value if isinstance(func, ast.Attribute) else None


@dataclass(frozen=True)
class AnonymousCall:
    node: ast.Call
    callee: ast.AST
    args: List[ast.AST]


@dataclass(frozen=True)
class RangeLiteral:
    node: ast.Call
    lo: int
    hi: int


@dataclass(frozen=True)
class Other:
    node: ast.AST


Shape = Union[LocalCall, RemoteCall, AnonymousCall, RangeLiteral, Other]


def call_arguments(node: ast.Call) -> List[ast.AST]:
    """Positional argument nodes followed by keyword values."""
    return list(node.args) + [keyword.value for keyword in node.keywords]


def dotted_name(node: ast.AST) -> Optional[str]:
    """Return ``a.b.c`` for a chain of attribute lookups on a name."""
    parts = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


def collect_aliases(tree: ast.AST) -> Dict[str, str]:
    """Map names bound by imports in ``tree`` to the module path they name."""
    aliases: Dict[str, str] = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    aliases[alias.asname] = alias.name
                else:
                    root = alias.name.split(".")[0]
                    aliases[root] = root
        elif isinstance(node, ast.ImportFrom):
            if node.level or not node.module:
                continue
            for alias in node.names:
                if alias.name == "*":
                    continue
                aliases[alias.asname or alias.name] = f"{node.module}.{alias.name}"
    return aliases


def canonical_namespace(node: ast.AST, aliases: Dict[str, str]) -> Optional[str]:
    """Resolve a call receiver to the namespace identifier policies use."""
    name = dotted_name(node)
    if name is None:
        return None
    root, _, rest = name.partition(".")
    root = aliases.get(root, root)
    return f"{root}.{rest}" if rest else root


def _int_literal(node: ast.AST) -> Optional[int]:
    try:
        value = ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def range_bounds(node: ast.Call) -> Optional[tuple]:
    """Inclusive ``(lo, hi)`` of ``range(...)`` over integer literals, else None."""
    if not isinstance(node.func, ast.Name) or node.func.id != "range":
        return None
    if node.keywords or not 1 <= len(node.args) <= 3:
        return None
    if any(isinstance(arg, ast.Starred) for arg in node.args):
        return None
    values = [_int_literal(arg) for arg in node.args]
    if any(value is None for value in values):
        return None
    try:
        span = range(*values)
    except ValueError:
        return None
    if not span:
        return span.start, span.start
    first, last = span[0], span[-1]
    return min(first, last), max(first, last)


def classify(node: ast.AST, aliases: Optional[Dict[str, str]] = None) -> Shape:
    if not isinstance(node, ast.Call):
        return Other(node)

    bounds = range_bounds(node)
    if bounds is not None:
        return RangeLiteral(node, bounds[0], bounds[1])

    func = node.func
    args = call_arguments(node)
    if isinstance(func, ast.Name):
        # A name bound by ``from m import f`` calls ``m.f``.
        target = (aliases or {}).get(func.id, "")
        if "." in target:
            namespace, _, name = target.rpartition(".")
            return RemoteCall(node, namespace, name, args)
        return LocalCall(node, func.id, args)
    if isinstance(func, ast.Attribute):
        namespace = canonical_namespace(func.value, aliases or {})
        return RemoteCall(node, namespace, func.attr, args)
    return AnonymousCall(node, func, args)

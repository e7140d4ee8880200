"""
Expression evaluation engine.

``run`` executes a module tree against initial bindings and returns the value
of its trailing expression statement together with the final bindings.

Qualified calls on dotted names (``math.sqrt(x)``) are routed through a
dispatcher so that a missing function is reported with its call site
instead of a bare ``AttributeError``. The dispatcher evaluates the
arguments before the receiver.
"""
import ast
import builtins
import copy
import importlib
from typing import Any, Dict, Mapping, Optional, Tuple

from patrol.config.defaults import EVALUATOR_DEFAULTS
from patrol.engine.parser import as_module
from patrol.exceptions import CompileError, UndefinedFunctionError
from patrol.policy.shapes import dotted_name

REMOTE_DISPATCH = "__patrol_remote__"
_HIDDEN = ("__builtins__", REMOTE_DISPATCH)


def _no_arguments() -> ast.arguments:
    return ast.arguments(
        posonlyargs=[],
        args=[],
        vararg=None,
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=[],
    )


class RemoteCallRewriter(ast.NodeTransformer):
    """Rewrite ``a.b.f(*args)`` into ``__patrol_remote__(lambda: a.b, "a.b", "f", *args)``."""

    def visit_Call(self, node: ast.Call) -> ast.AST:
        self.generic_visit(node)
        func = node.func
        if not isinstance(func, ast.Attribute):
            return node
        namespace = dotted_name(func.value)
        if namespace is None:
            return node
        receiver = ast.Lambda(args=_no_arguments(), body=func.value)
        call = ast.Call(
            func=ast.Name(id=REMOTE_DISPATCH, ctx=ast.Load()),
            args=[receiver, ast.Constant(namespace), ast.Constant(func.attr)] + list(node.args),
            keywords=node.keywords,
        )
        return ast.copy_location(call, node)


def dispatch_remote(receiver, namespace: str, name: str, *args, **kwargs) -> Any:
    try:
        target = receiver()
    except NameError as exc:
        # Unbound namespaces resolve to modules of the same dotted name.
        try:
            target = importlib.import_module(namespace)
        except ImportError:
            raise exc from None
    try:
        function = getattr(target, name)
    except AttributeError:
        called_with = list(args)
        if kwargs:
            called_with.append(dict(kwargs))
        raise UndefinedFunctionError(namespace, name, called_with) from None
    return function(*args, **kwargs)


def _raised_in_fragment(exc: BaseException, filename: str) -> bool:
    tb = exc.__traceback__
    if tb is None:
        return False
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename == filename


def run(
    tree: ast.AST,
    bindings: Optional[Mapping[str, Any]] = None,
    filename: Optional[str] = None,
) -> Tuple[Any, Dict[str, Any]]:
    """Evaluate ``tree`` with ``bindings`` as its initial globals.

    Returns:
        ``(value, final_bindings)``; ``value`` is None unless the last
        statement is an expression.

    Raises:
        CompileError: the tree does not compile, or the fragment itself
            referenced an unbound name.
        UndefinedFunctionError: a qualified call named a missing function.
    """
    filename = filename or EVALUATOR_DEFAULTS.fragment_filename
    module = RemoteCallRewriter().visit(copy.deepcopy(as_module(tree)))
    ast.fix_missing_locations(module)

    body = list(module.body)
    tail = None
    if body and isinstance(body[-1], ast.Expr):
        tail = body.pop().value

    try:
        statements = compile(ast.Module(body=body, type_ignores=[]), filename, "exec")
        expression = compile(ast.Expression(body=tail), filename, "eval") if tail is not None else None
    except SyntaxError as exc:
        raise CompileError(f"{filename}:{exc.lineno}: {exc.msg}") from exc

    namespace: Dict[str, Any] = {
        "__builtins__": builtins,
        "__name__": "__patrol__",
        REMOTE_DISPATCH: dispatch_remote,
    }
    namespace.update(bindings or {})

    try:
        exec(statements, namespace)
        value = eval(expression, namespace) if expression is not None else None
    except NameError as exc:
        if _raised_in_fragment(exc, filename):
            raise CompileError(f"{filename}: {exc}") from exc
        raise

    final = {key: val for key, val in namespace.items() if key not in _HIDDEN}
    return value, final

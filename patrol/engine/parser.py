"""
Source text to expression tree.
"""
import ast
from typing import Optional

from patrol.config.defaults import EVALUATOR_DEFAULTS
from patrol.exceptions import ParseError


def _offending_token(exc: SyntaxError) -> str:
    text = exc.text or ""
    start = (exc.offset or 0) - 1
    end = (getattr(exc, "end_offset", None) or 0) - 1
    if 0 <= start < end <= len(text):
        return text[start:end].strip()
    if 0 <= start < len(text):
        rest = text[start:].split()
        return rest[0] if rest else ""
    return text.strip()


def parse(source: str, filename: Optional[str] = None) -> ast.Module:
    """Parse ``source`` into a module tree.

    Raises:
        ParseError: carrying the line, message and offending token.
    """
    filename = filename or EVALUATOR_DEFAULTS.fragment_filename
    try:
        return ast.parse(source, filename=filename, mode="exec")
    except SyntaxError as exc:
        raise ParseError(exc.lineno, exc.msg, _offending_token(exc)) from exc
    except ValueError as exc:
        # null bytes on older interpreters
        raise ParseError(None, str(exc), "") from exc


def as_module(tree: ast.AST) -> ast.Module:
    """Wrap any expression, statement or mode root into an ``ast.Module``."""
    if isinstance(tree, ast.Module):
        return tree
    if isinstance(tree, (ast.Expression, ast.Interactive)):
        body = tree.body
        if isinstance(body, list):
            module = ast.Module(body=body, type_ignores=[])
        else:
            module = ast.Module(body=[ast.Expr(value=body)], type_ignores=[])
    elif isinstance(tree, ast.expr):
        module = ast.Module(body=[ast.Expr(value=tree)], type_ignores=[])
    elif isinstance(tree, ast.stmt):
        module = ast.Module(body=[tree], type_ignores=[])
    else:
        raise TypeError(f"Cannot evaluate a {type(tree).__name__} node")
    return ast.fix_missing_locations(module)

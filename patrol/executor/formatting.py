"""
Error message formatting for evaluation outcomes.
"""
from types import ModuleType
from typing import Any, Optional, Sequence, Union

from patrol.config.defaults import EVALUATOR_DEFAULTS


def display_namespace(
    namespace: Union[str, ModuleType],
    internal_prefixes: Optional[Sequence[str]] = None,
) -> str:
    """External name of a namespace, without any known internal prefix."""
    if internal_prefixes is None:
        internal_prefixes = EVALUATOR_DEFAULTS.internal_prefixes
    name = namespace.__name__ if isinstance(namespace, ModuleType) else str(namespace)
    for prefix in internal_prefixes:
        if name.startswith(prefix) and len(name) > len(prefix):
            return name[len(prefix):]
    return name


def format_undefined(
    namespace: Union[str, ModuleType],
    name: str,
    args: Sequence[Any],
    internal_prefixes: Optional[Sequence[str]] = None,
) -> str:
    """Describe a call to a function its namespace does not define.

    >>> format_undefined("math", "nope", [9])
    'math.nope/1, called with: [9]'
    """
    args = list(args)
    module_name = display_namespace(namespace, internal_prefixes)
    return f"{module_name}.{name}/{len(args)}, called with: {args!r}"

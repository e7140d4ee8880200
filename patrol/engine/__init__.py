"""
Parsing and evaluation engine used inside the worker process.
"""
from patrol.engine.parser import parse, as_module
from patrol.engine.runner import run, RemoteCallRewriter, dispatch_remote

__all__ = [
    "parse",
    "as_module",
    "run",
    "RemoteCallRewriter",
    "dispatch_remote",
]

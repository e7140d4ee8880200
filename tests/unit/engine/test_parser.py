"""
Unit tests for source parsing.
"""
import ast

import pytest

from patrol.engine.parser import as_module, parse
from patrol.exceptions import ParseError


class TestParse:
    def test_parse_returns_module(self):
        tree = parse("x = 1\nx + 1")
        assert isinstance(tree, ast.Module)
        assert len(tree.body) == 2

    def test_parse_error_carries_line(self):
        with pytest.raises(ParseError) as exc_info:
            parse("x = 1\ny = (")
        assert exc_info.value.line == 2
        assert exc_info.value.description
        assert exc_info.value.details["line"] == 2

    def test_parse_error_carries_token(self):
        with pytest.raises(ParseError) as exc_info:
            parse("x = = 1")
        assert exc_info.value.line == 1
        assert isinstance(exc_info.value.token, str)

    def test_statements_outside_functions_parse(self):
        # 'return' at module level is a compile error, not a parse error
        assert isinstance(parse("return 1"), ast.Module)


class TestAsModule:
    def test_module_is_unchanged(self):
        tree = ast.parse("1")
        assert as_module(tree) is tree

    def test_expression_mode(self):
        module = as_module(ast.parse("1 + 2", mode="eval"))
        assert isinstance(module, ast.Module)
        assert isinstance(module.body[0], ast.Expr)

    def test_interactive_mode(self):
        module = as_module(ast.parse("x = 1", mode="single"))
        assert isinstance(module.body[0], ast.Assign)

    def test_bare_expression(self):
        module = as_module(ast.Constant(5))
        assert ast.unparse(module) == "5"

    def test_bare_statement(self):
        statement = ast.parse("x = 1").body[0]
        assert as_module(statement).body == [statement]

    def test_other_nodes_rejected(self):
        with pytest.raises(TypeError):
            as_module(ast.Load())

import unittest

import pytest
from lark import Tree

from ailang.ail_errors import AilSyntaxError
from ailang.ail_parser import AilParser, get_parser, parse, parse_expression


def statements(tree):
    return [child.data for child in tree.children]


class TestParser(unittest.TestCase):
    def test_hello_world_program(self):
        code = """LET x = 5;
IF x < 10 DO
    PRINT "Hello, World!";
END;
"""
        tree = parse(code)
        self.assertEqual(statements(tree), ["let_stmt", "if_block"])
        cond = tree.children[1].children[0]
        self.assertEqual(cond.data, "lt")

    def test_empty_program(self):
        self.assertEqual(parse("").children, [])
        self.assertEqual(parse("\n\n;;\n").children, [])

    def test_keywords_are_case_insensitive(self):
        tree = parse("let a = 1\nprint a\nPrInT A")
        self.assertEqual(statements(tree), ["let_stmt", "print_stmt", "print_stmt"])

    def test_keyword_prefix_is_a_name(self):
        tree = parse("DONE = 1\nPRINTER = 2\nENDING = 3")
        self.assertEqual(statements(tree), ["assign_stmt"] * 3)

    def test_comments(self):
        tree = parse("REM a comment\nLET a = 1 ' trailing\n' whole line")
        self.assertEqual(statements(tree), ["let_stmt"])

    def test_precedence(self):
        expr = parse_expression("1 + 2 * 3 ^ 2")
        self.assertEqual(expr.data, "add")
        self.assertEqual(expr.children[1].data, "mul")
        self.assertEqual(expr.children[1].children[1].data, "pow")

    def test_comparison_binds_looser_than_sum(self):
        expr = parse_expression("a + 1 < b * 2")
        self.assertEqual(expr.data, "lt")

    def test_logical_operators(self):
        expr = parse_expression("NOT a = 1 OR b AND c")
        self.assertEqual(expr.data, "logical_or")
        self.assertEqual(expr.children[0].data, "logical_not")
        self.assertEqual(expr.children[1].data, "logical_and")

    def test_unary_minus(self):
        expr = parse_expression("-x ^ 2")
        self.assertEqual(expr.data, "neg")
        self.assertEqual(expr.children[0].data, "pow")

    def test_call(self):
        expr = parse_expression("MID(s, 2, 3)")
        self.assertEqual(expr.data, "call")
        args = [c for c in expr.children[1].children if isinstance(c, Tree)]
        self.assertEqual(len(args), 3)
        self.assertIsNone(parse_expression("RND()").children[1])

    def test_single_line_if_with_else(self):
        tree = parse("IF a THEN PRINT 1 ELSE PRINT 2")
        node = tree.children[0]
        self.assertEqual(node.data, "if_line")
        self.assertEqual(node.children[1].data, "print_stmt")
        self.assertEqual(node.children[2].data, "else_line")
        self.assertEqual(node.children[2].children[0].data, "print_stmt")

    def test_dangling_else_binds_to_nearest_if(self):
        outer = parse("IF a THEN IF b THEN x = 1 ELSE x = 2").children[0]
        self.assertIsNone(outer.children[2])
        inner = outer.children[1]
        self.assertEqual(inner.data, "if_line")
        self.assertEqual(inner.children[2].data, "else_line")

    def test_single_line_if_without_else(self):
        node = parse("IF a THEN PRINT 1").children[0]
        self.assertEqual(node.data, "if_line")
        self.assertEqual(len(node.children), 3)
        self.assertIsNone(node.children[2])

    def test_block_if_with_else(self):
        code = "IF a DO\n  x = 1\nELSE\n  x = 2\n  y = 3\nEND"
        node = parse(code).children[0]
        self.assertEqual(node.data, "if_block")
        self.assertEqual(len(node.children[1].children), 1)
        self.assertEqual(len(node.children[2].children), 2)

    def test_for_loop(self):
        node = parse("FOR i = 1 TO 10 STEP 2\n  PRINT i\nNEXT i").children[0]
        self.assertEqual(node.data, "for_stmt")
        var, start, end, step, body, next_var = node.children
        self.assertEqual(var, "i")
        self.assertEqual(step.data, "number")
        self.assertEqual(next_var, "i")

    def test_for_without_step_or_next_name(self):
        node = parse("FOR i = 1 TO 3\nNEXT").children[0]
        self.assertIsNone(node.children[3])
        self.assertIsNone(node.children[5])

    def test_next_name_is_case_insensitive(self):
        parse("FOR i = 1 TO 3\nNEXT I")

    def test_while_loop(self):
        node = parse("WHILE x < 3 DO\n x = x + 1\nEND").children[0]
        self.assertEqual(node.data, "while_stmt")

    def test_semicolons_separate_statements(self):
        tree = parse("LET a = 1; LET b = 2; PRINT a; PRINT b")
        self.assertEqual(len(tree.children), 4)

    def test_print_trailing_comma(self):
        node = parse("PRINT a, b,").children[0]
        print_list = node.children[0]
        self.assertEqual(print_list.children[-1].type, "COMMA")

    def test_positions_are_recorded(self):
        tree = parse("\n\nLET a = 1")
        self.assertEqual(tree.children[0].meta.line, 3)

    def test_parser_is_cached(self):
        self.assertIs(get_parser().parser, AilParser().parser)


class TestSyntaxErrors(unittest.TestCase):
    def test_next_mismatch(self):
        with self.assertRaises(AilSyntaxError) as cm:
            parse("FOR x = 1 TO 2\nNEXT y")
        self.assertIn("NEXT Y doesn't match FOR X", str(cm.exception))
        self.assertEqual(cm.exception.line, 2)

    def test_missing_end(self):
        with self.assertRaises(AilSyntaxError) as cm:
            parse("IF x DO\n PRINT 1\n")
        self.assertIn("end of input", str(cm.exception))

    def test_stray_character_reports_position(self):
        with self.assertRaises(AilSyntaxError) as cm:
            parse("LET a = 1\nLET b = 2 $ 3")
        err = cm.exception
        self.assertEqual(err.line, 2)
        self.assertEqual(err.column, 11)
        self.assertTrue(str(err).startswith("Syntax error at line 2, column 11"))

    def test_unterminated_string(self):
        with self.assertRaises(AilSyntaxError):
            parse('PRINT "hello')

    def test_expected_tokens_are_reported(self):
        with self.assertRaises(AilSyntaxError) as cm:
            parse("LET = 3")
        self.assertIn("NAME", cm.exception.expected)


@pytest.mark.parametrize("code", [
    "LET",
    "PRINT 1 +",
    "IF x THEN",
    "FOR i = 1 TO\nNEXT",
    "WHILE x DO\n",
    "x = (1 + 2",
    "NEXT i",
])
def test_invalid_programs_raise_syntax_error(code):
    with pytest.raises(AilSyntaxError):
        parse(code)


@pytest.mark.parametrize("literal", ["123", "1.5", ".5", "2.", "1e3", "2.5E-2"])
def test_number_literals(literal):
    expr = parse_expression(literal)
    assert expr.data == "number"
    assert expr.children[0] == literal

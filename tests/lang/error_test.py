import io
import os
import unittest
from contextlib import redirect_stderr
from unittest import mock

from bcc.lang.error import BccError, ErrorHandler, LexError, ParseError, RuntimeFault, Span


class SpanTestCase(unittest.TestCase):

    def test_span(self):
        self.assertRaises(ValueError, Span, 3, 2)
        self.assertEqual(Span(4, 5), Span.single(4))
        self.assertEqual(Span(1, 9), Span(1, 2).to(Span(5, 9)))
        self.assertEqual(Span(0, 0), Span(0, 0))


class ErrorHandlerTestCase(unittest.TestCase):

    def setUp(self):
        patcher = mock.patch.dict(os.environ, {"ANSI_COLORS_DISABLED": "1"})
        patcher.start()
        self.addCleanup(patcher.stop)

        self.stderr = io.StringIO()
        redirect = redirect_stderr(self.stderr)
        redirect.__enter__()
        self.addCleanup(redirect.__exit__, None, None, None)

    def test_locate(self):
        source = "ab\ncdé f"
        cases = {
            0: (0, 0, "ab"),
            2: (0, 2, "ab"),
            3: (1, 0, "cdé f"),
            7: (1, 3, "cdé f"),
            8: (1, 4, "cdé f"),
            9: (1, 5, "cdé f"),
        }
        for offset, expected in cases.items():
            self.assertEqual(expected, ErrorHandler.locate(source, offset), offset)

        self.assertEqual((1, 0, ""), ErrorHandler.locate("x\n", 2))
        self.assertEqual((0, 1, "a\udcffb"), ErrorHandler.locate("a\udcffb", 1))

    def test_diagnose(self):
        cases = {
            ("x = 1 + \"a\"", Span(4, 11)): "  x = 1 + \"a\"\n      ^~~~~~~",
            ("print(y)", Span(6, 7)): "  print(y)\n        ^",
            ("\"é\" + 1", Span(0, 8)): "  \"é\" + 1\n  ^~~~~~~",
            ("x = (1\ny", Span(4, 8)): "  x = (1\n      ^~",
            ("f(1,", Span(4, 5)): "  f(1,\n      ^",
        }
        for (source, span), expected in cases.items():
            self.assertEqual(expected, ErrorHandler.diagnose(ParseError("msg", span), source), source)

    def test_report(self):
        handler = ErrorHandler(fatal=False)
        handler.register_source("<repl>", "x = 1 + \"a\"", 3)

        report = handler.report(RuntimeFault("Cannot add int and string", Span(4, 11), "Use numbers."))
        self.assertEqual("<repl>:3:5: Runtime Error: Cannot add int and string\n"
                         "  x = 1 + \"a\"\n"
                         "      ^~~~~~~\n"
                         "help: Use numbers.", report)

        handler.register_source("prog.bcc", "x = 1\ny = z\n")
        report = handler.report(RuntimeFault("Undefined variable 'z'", Span(10, 11)))
        self.assertTrue(report.startswith("prog.bcc:2:5: Runtime Error: Undefined variable 'z'\n  y = z\n"), report)
        self.assertNotIn("help:", report)

        cases = {
            LexError("Unterminated string", Span(4, 5)): "Lexical Error: ",
            ParseError("Expected ')' after arguments", Span(4, 5)): "Parse Error: ",
            BccError("boom", Span(0, 1)): "Error: ",
        }
        for error, kind in cases.items():
            self.assertIn(kind + error.message, handler.report(error), error)

    def test_report_without_source(self):
        handler = ErrorHandler(fatal=False)
        handler.register_file("missing.bcc")

        report = handler.report(BccError("'missing.bcc' could not be opened"))
        self.assertEqual("missing.bcc: Error: 'missing.bcc' could not be opened", report)

        report = handler.report(BccError("cannot execute Foo", Span(0, 1), internal=True))
        self.assertEqual("missing.bcc: [internal] Error: cannot execute Foo", report)

        self.assertEqual("Error: boom", ErrorHandler().report(BccError("boom", Span(0, 1))))

    def test_throw(self):
        handler = ErrorHandler()
        handler.register_source("prog.bcc", "1 / 0")
        with self.assertRaises(SystemExit) as context:
            handler.throw(RuntimeFault("Division by zero", Span(0, 5)))
        self.assertEqual(1, context.exception.code)
        self.assertIn("prog.bcc:1:1: Runtime Error: Division by zero", self.stderr.getvalue())

        handler = ErrorHandler(fatal=False)
        handler.register_source("<repl>", "1 / 0")
        handler.throw(RuntimeFault("Division by zero", Span(0, 5)))
        self.assertEqual({"<repl>": (None, None)}, handler.traceback)

    def test_warn(self):
        handler = ErrorHandler(fatal=False)
        handler.warn("first")
        handler.register_source("<repl>", "x")
        handler.warn("keyboard interrupt, line discarded")

        self.assertEqual("warning: first\n<repl>: warning: keyboard interrupt, line discarded\n",
                         self.stderr.getvalue())

    def test_context(self):
        with ErrorHandler(fatal=False) as handler:
            handler.register_source("<repl>", "f(1,")
            raise ParseError("Expected argument after ','", Span(3, 4))
        self.assertIn("<repl>:1:4: Parse Error: Expected argument after ','", self.stderr.getvalue())

        suppressed = [KeyboardInterrupt, RecursionError, LexError("msg")]
        for error in suppressed:
            with ErrorHandler(fatal=False):
                raise error

        self.assertIn("Error: keyboard interrupt", self.stderr.getvalue())
        self.assertIn("Error: maximum recursion depth exceeded", self.stderr.getvalue())

        with self.assertRaises(SystemExit):
            with ErrorHandler(fatal=False):
                raise SystemExit(0)

        with self.assertRaises(ValueError):
            with ErrorHandler(fatal=False):
                raise ValueError("not a bcc error")
        self.assertIn("[internal] Error: unknown error: 'ValueError: not a bcc error'", self.stderr.getvalue())

        with self.assertRaises(SystemExit):
            with ErrorHandler():
                raise RuntimeFault("Integer overflow")


if __name__ == '__main__':
    unittest.main()

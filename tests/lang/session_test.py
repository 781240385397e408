import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from bcc.lang.error import BccError, ErrorHandler, LexError, ParseError, RuntimeFault
from bcc.lang.lexical import scan
from bcc.lang.parser import parse
from bcc.lang.session import Session


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.sess = Session(ErrorHandler(), Session.SH_FILE, cmd_line=True)

    def enter(self, *lines):
        """Runs each line as a separate command-line entry, returning what got echoed."""
        for line_num, line in enumerate(lines, 1):
            self.sess.add(line, line_num)
            self.sess.run()

        echoed = []
        while self.sess.results:
            echoed.append(self.sess.pop())
        return echoed

    def test_preprocess_line(self):
        cases = {
            "x = 1   ": ("x = 1", False),
            "f(1,": ("f(1,", True),
            "if (x) {": ("if (x) {", True),
            "x = [1, [2,": ("x = [1, [2,", True),
            "x = [1, 2]": ("x = [1, 2]", False),
            "}": ("}", False),
            "\"(\"": ("\"(\"", False),
            "f( // )": ("f( // )", True),
            "\"unterminated (": ("\"unterminated (", False),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, Session.preprocess_line(case), case)

    def test_echoes(self):
        should_fail = ["x = 1", "a, b = 1, 2", "{ x }", "x; y", "if (x) y", "while (false) x", ""]
        for case in should_fail:
            self.assertFalse(Session.echoes(parse(scan(case))), case)

        should_pass = ["x", "x + 1;", "print(x)", "1, 2", "return 1", "{}", "(x = 1)"]
        for case in should_pass:
            self.assertTrue(Session.echoes(parse(scan(case))), case)

    def test_cmd_line(self):
        self.assertFalse(self.sess.error_handler.fatal)

        self.assertEqual(["20"], self.enter("x = 10", "x * 2"))
        self.assertEqual(["(1, 2)", "[2, 1]"], self.enter("a, b = 1, 2", "a, b", "[b, a]"))
        self.assertEqual(["<case_result: big>"], self.enter("case(x > 5, \"big\")"))
        self.assertEqual(["3.5", "hello"], self.enter("7 / 2", "\"hello\""))

        # nil is never echoed, and neither is a line holding more than one statement
        self.assertEqual([], self.enter("nil", "y = 1; y", "{ y }"))

        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual([], self.enter("print(\"side effect\")"))
        self.assertEqual("side effect\n", out.getvalue())

    def test_errors(self):
        self.assertRaises(ParseError, self.sess.add, "1 +", 1)
        self.assertEqual(("1 +", 1), self.sess.error_handler.traceback[Session.SH_FILE])
        self.assertEqual([], self.sess.to_exec)

        self.assertRaises(LexError, self.sess.add, "\"abc", 2)

        self.sess.add("x = 1; y = 1 / 0", 3)
        self.assertRaises(RuntimeFault, self.sess.run)
        self.assertEqual(("x = 1; y = 1 / 0", 3), self.sess.error_handler.traceback[Session.SH_FILE])

        # variables assigned before the failure survive it
        self.assertEqual(["1"], self.enter("x"))

    def test_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "prog.bcc")
            with open(path, "w", encoding="utf-8") as file:
                file.write("x = 6\ny = x * 7\nprint(y)\ny\n")

            handler = ErrorHandler()
            sess = Session(handler, path, cmd_line=False)
            self.assertTrue(handler.fatal)
            self.assertEqual(1, len(sess.to_exec))
            self.assertEqual(4, len(sess.to_exec[0][2].statements))

            out = io.StringIO()
            with redirect_stdout(out):
                sess.run()
            self.assertEqual("42\n", out.getvalue())
            self.assertEqual([], sess.results)

            sess.enter_cmd_line()
            self.assertEqual(Session.SH_FILE, sess.path)
            self.assertFalse(handler.fatal)
            sess.add("y + 1", 1)
            sess.run()
            self.assertEqual("43", sess.pop())

            should_raise = [os.path.join(tmp, "missing.bcc"), tmp]
            for case in should_raise:
                with self.assertRaises(BccError) as context:
                    Session(ErrorHandler(), case, cmd_line=False)
                self.assertEqual(f"'{case}' could not be opened", context.exception.message)

            bad_path = os.path.join(tmp, "bad.bcc")
            with open(bad_path, "wb") as file:
                file.write(b"\xff\xfe\x00")
            self.assertRaises(BccError, Session, ErrorHandler(), bad_path, False)

        self.assertRaises(BccError, Session, ErrorHandler(), Session.SH_FILE, False)


if __name__ == '__main__':
    unittest.main()

"""Session control for bcc language. Runs source through scanning, parsing and evaluation, either in command-line mode
or file interpretation mode.
"""

from bcc.lang.error import BccError, LexError
from bcc.lang.evaluator import Evaluator
from bcc.lang.lexical import TokenType, scan
from bcc.lang.parser import parse
from bcc.lang.syntax import Assign, ExpressionStmt, MultiAssign
from bcc.lang.value import display

OPENERS = (TokenType.LEFT_PAREN, TokenType.LEFT_BRACKET, TokenType.LEFT_BRACE)
CLOSERS = (TokenType.RIGHT_PAREN, TokenType.RIGHT_BRACKET, TokenType.RIGHT_BRACE)


class Session:
    """Governs a bcc session. Everything run in a session shares one Evaluator, and therefore one set of variables."""
    SH_FILE = "<repl>"  # command-line interpreter filename

    def __init__(self, error_handler, path, cmd_line):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.evaluator = Evaluator()
        self.to_exec = []   # list of (line num, source, Program) to execute
        self.results = []   # values of echoed expressions, command-line mode only

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            try:
                with open(path, "r", encoding="utf-8") as file:
                    source = file.read()
            except (OSError, UnicodeDecodeError):
                raise BccError(f"'{path}' could not be opened") from None

            self.add(source, 1)

        elif not cmd_line:
            raise BccError(f"'{Session.SH_FILE}' is a reserved filename")

    def enter_cmd_line(self):
        """Switches a file session to command-line mode, keeping its variables."""
        self.path = Session.SH_FILE
        self.cmd_line = True

        self.error_handler.register_file(self.path)
        self.error_handler.fatal = False

    @staticmethod
    def preprocess_line(line):
        """Preprocesses a line from command-line. Returns updated value of line and whether it leaves a bracket open,
        in which case the next line should be appended to it. Lines that fail to scan are left for add to report.
        """
        line = line.rstrip()

        try:
            tokens = scan(line)
        except LexError:
            return line, False

        depth = sum(token.kind in OPENERS for token in tokens) - sum(token.kind in CLOSERS for token in tokens)
        return line, depth > 0

    def add(self, source, line_num):
        """Scans and parses source, queueing it for execution. Evaluation is delayed until run is called."""
        self.error_handler.register_source(self.path, source, line_num)  # in case error is raised

        program = parse(scan(source))
        self.to_exec.append((line_num, source, program))

        self.error_handler.remove_source(self.path)  # error was not raised

    def run(self):
        """Runs this session's queued programs in order. In command-line mode, the value of a lone expression is kept
        in results. Will raise any errors that are encountered.
        """
        while self.to_exec:
            line_num, source, program = self.to_exec.pop(0)
            self.error_handler.register_source(self.path, source, line_num)

            if self.cmd_line and Session.echoes(program):
                value = self.evaluator.eval(program.statements[0].expr)
                if value is not None:
                    self.results.append(value)
            else:
                self.evaluator.run(program)

            self.error_handler.remove_source(self.path)

    def pop(self):
        """Returns display of the oldest result not yet popped."""
        return display(self.results.pop(0))

    @staticmethod
    def echoes(program):
        """Returns whether program is a single expression statement whose value should be shown."""
        if len(program.statements) != 1 or not isinstance(program.statements[0], ExpressionStmt):
            return False
        return not isinstance(program.statements[0].expr, (Assign, MultiAssign))

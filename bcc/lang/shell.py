"""Handles interactive/command-line mode for bcc interpreter. Uses cmd as backend."""

import cmd

VERSION = "0.1.0"


class Shell(cmd.Cmd):
    """bcc interpreter shell."""
    intro = f"BCC Interpreter v{VERSION}\nType 'exit' or press Ctrl+D to quit, 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self.line_num = 0

    def onecmd(self, line):
        """Command words are only commands when alone on a line: 'exit = 3' is bcc code, and so is anything typed
        while a line continuation is pending.
        """
        command, arg, __ = self.parseline(line)
        if command in ("exit", "quit", "help") and (arg or self._tmp_line):
            return self.default(line.strip())
        elif command == "EOF" and arg:  # a bare "EOF" is what cmd.Cmd sends at end of input
            return self.default(line.strip())
        return super().onecmd(line)

    def default(self, line):
        """Executes arbitrary bcc code, or holds on to it while it leaves brackets open."""
        line, add_to_prev = self.sess.preprocess_line(self._tmp_line + line)

        if add_to_prev:
            self._tmp_line = line + "\n"
            self.prompt = self.secondary_prompt
        else:
            self._tmp_line = ""
            self.prompt = self._tmp_prompt
            self.execute(line)

    def execute(self, source):
        """Runs a complete entry and prints its value, if any."""
        if not source:
            return

        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            self.sess.add(source, self.line_num)
            self.sess.run()

            while self.sess.results:
                print(self.sess.pop())

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the bcc interpreter!\n\n"
              "bcc is a small dynamically-typed scripting language. Variables are created by \n"
              "assigning to them, and blocks, if, while and for work like in most C-like \n"
              "languages. The built-in functions are print, len, type, case and divmod.\n\n"
              "Try it out by typing 'x = 10'. Next, try typing 'x * 2'. This will evaluate \n"
              "the expression and print 20. A line that leaves a bracket open continues on \n"
              "the next line.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        if self._tmp_line:
            self.default("")
        return ""

    def do_EOF(self, arg):
        """Exits interpreter, first running any unfinished line so that its error is shown."""
        print()
        if self._tmp_line:
            source, self._tmp_line = self._tmp_line.rstrip(), ""
            self.execute(source)
        return True

    def do_exit(self, arg):
        """Exits interpreter."""
        print("Goodbye!")
        return True

    def do_quit(self, arg):
        """Exits interpreter."""
        return self.do_exit(arg)

    def cmdloop(self, intro=None):
        """Same as cmd.Cmd.cmdloop, except that a keyboard interrupt discards the current line instead of exiting."""
        while True:
            try:
                return super().cmdloop(intro)
            except KeyboardInterrupt:
                print()
                self.sess.error_handler.warn("keyboard interrupt, line discarded")

                self._tmp_line = ""
                self.prompt = self._tmp_prompt
                intro = ""  # only show intro once

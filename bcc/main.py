"""Uses bcc language implementation to interpret .bcc files/run in command-line mode. Also uses error handling context
manager. Called from bcc executable script.
"""

import argparse
import sys

from bcc.lang.error import ErrorHandler
from bcc.lang.session import Session
from bcc.lang.shell import Shell


def main(argv=None):
    """Runs bcc interpreter. Called from bcc executable script. Returns exit status."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="bcc", description="A Lox-like interpreter with excellent error diagnostics")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("-i", "--interactive", action="store_true",
                            help="start command-line mode after running file, keeping its variables")
        parser.add_argument("--ast", action="store_true", help="print syntax tree of file instead of running it")
        args = parser.parse_args(argv)

        if args.file is None:
            if args.ast:
                parser.error("--ast requires a file")
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()
            return 0

        sess = Session(error_handler, args.file, cmd_line=False)

        if args.ast:
            for __, __, program in sess.to_exec:
                print(program.display())
            return 0

        sess.run()

        if args.interactive:
            sess.enter_cmd_line()
            Shell(sess).cmdloop()

        return 0


if __name__ == "__main__":
    sys.exit(main())

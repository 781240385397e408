"""Tree-walking evaluator for bcc language. Executes a Program directly from its syntax tree against a chain of scopes.

Built-in functions are ordinary variables in the root scope, bound to marker strings ("__builtin_len__" and so on).
Calling a value dispatches on that marker, so `f = len` followed by `f("abc")` works, and so does calling the marker
string itself. Nothing else can be called.
"""

import operator

from bcc.lang.error import BccError, RuntimeFault
from bcc.lang.numerical import ROUND_MODES, check_int, divmod_doubles, divmod_ints
from bcc.lang.syntax import (Assign, Binary, BinaryOp, Block, Call, CallWithKwargs, DictExpr, ExpressionStmt, For,
                             Grouping, If, ListExpr, Literal, Logical, LogicalOp, MultiAssign, MultiReturn,
                             PropertyAccess, TupleExpr, Unary, UnaryOp, Variable, VariableTarget, While)
from bcc.lang.value import CaseResult, display, is_equal, is_int, is_number, is_truthy, type_name

BUILTIN_NAMES = ("print", "len", "type", "case", "divmod")

ARITHMETIC = {  # op: (verb used in errors, int/float implementation)
    BinaryOp.ADD: ("add", operator.add),
    BinaryOp.SUBTRACT: ("subtract", operator.sub),
    BinaryOp.MULTIPLY: ("multiply", operator.mul),
}

COMPARISONS = {
    BinaryOp.LESS: operator.lt,
    BinaryOp.LESS_EQUAL: operator.le,
    BinaryOp.GREATER: operator.gt,
    BinaryOp.GREATER_EQUAL: operator.ge,
}

OVERFLOW_HELP = "bcc integers are 64-bit: results must lie between -2^63 and 2^63 - 1. Use a double for larger values."


def marker(name):
    """Returns the string a built-in's name is bound to in the root scope."""
    return f"__builtin_{name}__"


class Environment:
    """Single scope of variables, linked to the scope enclosing it (None for the root scope)."""

    def __init__(self, enclosing=None):
        self.values = {}
        self.enclosing = enclosing

    def get(self, name):
        """Returns value of name in the innermost scope defining it. Raises KeyError if no scope does."""
        env = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.enclosing
        raise KeyError(name)

    def assign(self, name, value):
        """Rebinds name in the innermost scope defining it, or defines it in this scope if no scope does."""
        env = self
        while env is not None:
            if name in env.values:
                env.values[name] = value
                return
            env = env.enclosing
        self.values[name] = value


class Evaluator:
    """Runs bcc programs. An Evaluator keeps its root scope between calls to run and eval, so consecutive programs
    see each other's variables.
    """

    def __init__(self):
        self.globals = Environment()
        self.environment = self.globals

        self.builtins = {}  # marker: (name, handler)
        for name in BUILTIN_NAMES:
            self.globals.assign(name, marker(name))
            self.builtins[marker(name)] = (name, getattr(self, f"_builtin_{name}"))

    def run(self, program):
        """Executes every statement in program. Raises RuntimeFault on the first failing statement; statements
        before it keep their effects.
        """
        for stmt in program.statements:
            self.execute(stmt)

    # -----------------------------------------------------------------------------------------------------------------
    # Statements

    def execute(self, stmt):
        if isinstance(stmt, ExpressionStmt):
            self.eval(stmt.expr)

        elif isinstance(stmt, Block):
            self.execute_block(stmt.statements, Environment(self.environment))

        elif isinstance(stmt, If):
            if is_truthy(self.eval(stmt.condition)):
                self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                self.execute(stmt.else_branch)

        elif isinstance(stmt, While):
            while is_truthy(self.eval(stmt.condition)):
                self.execute(stmt.body)

        elif isinstance(stmt, For):
            if stmt.initializer is not None:
                self.execute(stmt.initializer)

            while stmt.condition is None or is_truthy(self.eval(stmt.condition)):
                self.execute(stmt.body)
                if stmt.increment is not None:
                    self.eval(stmt.increment)

        else:
            raise BccError(f"cannot execute {type(stmt).__name__}", stmt.span, internal=True)

    def execute_block(self, statements, environment):
        """Executes statements in environment, restoring the current one afterwards even if a statement fails."""
        previous = self.environment
        self.environment = environment
        try:
            for stmt in statements:
                self.execute(stmt)
        finally:
            self.environment = previous

    # -----------------------------------------------------------------------------------------------------------------
    # Expressions

    def eval(self, expr):
        """Returns value of expr in the current scope."""
        if isinstance(expr, Literal):
            return expr.value

        elif isinstance(expr, Variable):
            try:
                return self.environment.get(expr.name)
            except KeyError:
                raise RuntimeFault(f"Undefined variable '{expr.name}'", expr.span,
                                   f"Assign a value to '{expr.name}' before using it. Example: {expr.name} = 0") \
                    from None

        elif isinstance(expr, Assign):
            value = self.eval(expr.value)
            self.environment.assign(expr.name, value)
            return value

        elif isinstance(expr, MultiAssign):
            return self.multi_assign(expr)

        elif isinstance(expr, Grouping):
            return self.eval(expr.expr)

        elif isinstance(expr, Logical):
            left = self.eval(expr.left)
            if (expr.op is LogicalOp.OR) == is_truthy(left):
                return left
            return self.eval(expr.right)

        elif isinstance(expr, Unary):
            return self.unary(expr)

        elif isinstance(expr, Binary):
            return self.binary(expr)

        elif isinstance(expr, (Call, CallWithKwargs)):
            return self.call(expr)

        elif isinstance(expr, ListExpr):
            return [self.eval(element) for element in expr.elements]

        elif isinstance(expr, (TupleExpr, MultiReturn)):
            items = expr.elements if isinstance(expr, TupleExpr) else expr.values
            return tuple(self.eval(item) for item in items)

        elif isinstance(expr, DictExpr):
            return self.dictionary(expr)

        elif isinstance(expr, PropertyAccess):
            return self.property_access(expr)

        raise BccError(f"cannot evaluate {type(expr).__name__}", expr.span, internal=True)

    def multi_assign(self, expr):
        """Unpacks a tuple or list positionally into expr.targets. Any other value unpacks as a single value."""
        value = self.eval(expr.value)
        values = list(value) if isinstance(value, (tuple, list)) else [value]

        needed = max((idx + 1 for idx, target in enumerate(expr.targets) if isinstance(target, VariableTarget)),
                     default=0)
        if len(values) < needed:
            raise RuntimeFault(f"Expected at least {needed} values to unpack, got {len(values)}", expr.span,
                               "The right-hand side must provide a value for every variable on the left. Use '_' to "
                               "skip a value. Example: a, _, c = 1, 2, 3")

        for target, item in zip(expr.targets, values):
            if isinstance(target, VariableTarget):
                self.environment.assign(target.name, item)
        return value

    def dictionary(self, expr):
        result = {}
        for key_expr, value_expr in expr.pairs:
            key = self.eval(key_expr)
            if not isinstance(key, str):
                raise RuntimeFault(f"Dictionary keys must be strings, got {type_name(key)}", key_expr.span,
                                   "Only strings can be used as dictionary keys. Example: {\"key\": 1}")
            result[key] = self.eval(value_expr)
        return result

    def property_access(self, expr):
        obj = self.eval(expr.obj)

        if not isinstance(obj, CaseResult):
            raise RuntimeFault(f"Property access not supported for type {type_name(obj)}", expr.span,
                               "Property access is currently only supported for case_result objects.")
        elif expr.name != "result":
            raise RuntimeFault(f"Unknown property '{expr.name}' on case_result", expr.span,
                               "case_result objects only have a 'result' property.")
        return obj.result

    # -----------------------------------------------------------------------------------------------------------------
    # Operators

    def unary(self, expr):
        operand = self.eval(expr.operand)

        if expr.op is UnaryOp.NOT:
            return not is_truthy(operand)
        elif is_int(operand):
            return self._checked(-operand, expr.span)
        elif isinstance(operand, float):
            return -operand

        raise RuntimeFault(f"Cannot negate {type_name(operand)}", expr.span,
                           "Only ints and doubles can be negated.")

    def binary(self, expr):
        left = self.eval(expr.left)
        right = self.eval(expr.right)
        op = expr.op

        if op is BinaryOp.EQUAL:
            return is_equal(left, right)
        elif op is BinaryOp.NOT_EQUAL:
            return not is_equal(left, right)
        elif op is BinaryOp.IN:
            return self.contains(left, right, expr.span)

        elif op in ARITHMETIC:
            verb, func = ARITHMETIC[op]
            if op is BinaryOp.ADD and isinstance(left, str) and isinstance(right, str):
                return left + right
            self._check_numbers(verb, left, right, expr.span)

            if is_int(left) and is_int(right):
                return self._checked(func(left, right), expr.span)
            return func(float(left), float(right))

        elif op is BinaryOp.DIVIDE:
            self._check_numbers("divide", left, right, expr.span)
            if right == 0:
                raise RuntimeFault("Division by zero", expr.span, "Check that the divisor is not zero before dividing.")
            return float(left) / float(right)

        elif op in COMPARISONS:
            self._check_numbers("compare", left, right, expr.span)
            if is_int(left) and is_int(right):
                return COMPARISONS[op](left, right)
            return COMPARISONS[op](float(left), float(right))

        raise BccError(f"unknown binary operator {op}", expr.span, internal=True)

    def contains(self, left, right, span):
        """Evaluates `left in right`."""
        if isinstance(right, (list, tuple)):
            return any(is_equal(left, item) for item in right)

        elif isinstance(right, dict):
            if not isinstance(left, str):
                raise RuntimeFault(f"Dictionary key lookup requires a string, got {type_name(left)}", span,
                                   "Use 'in' with dictionaries like: \"key\" in {\"key\": \"value\"}. Only string keys "
                                   "are supported.")
            return left in right

        elif isinstance(right, str):
            if not isinstance(left, str):
                raise RuntimeFault(f"String containment check requires a string, got {type_name(left)}", span,
                                   "Use 'in' with strings like: \"sub\" in \"substring\". Both values must be strings.")
            return left in right

        raise RuntimeFault(f"'in' operator not supported for type {type_name(right)}", span,
                           "The 'in' operator works with lists, tuples, dictionaries, and strings. Examples: "
                           "item in [1, 2, 3], \"key\" in {\"key\": \"value\"}, \"sub\" in \"substring\".")

    @staticmethod
    def _check_numbers(verb, left, right, span):
        if not (is_number(left) and is_number(right)):
            help = "Arithmetic and comparison operators only work on ints and doubles."
            if verb == "add":
                help += " Two strings can also be joined with '+'."
            raise RuntimeFault(f"Cannot {verb} {type_name(left)} and {type_name(right)}", span, help)

    @staticmethod
    def _checked(num, span):
        try:
            return check_int(num)
        except OverflowError:
            raise RuntimeFault("Integer overflow", span, OVERFLOW_HELP) from None

    # -----------------------------------------------------------------------------------------------------------------
    # Built-ins

    def call(self, expr):
        callee = self.eval(expr.callee)
        builtin = self.builtins.get(callee) if isinstance(callee, str) else None
        if builtin is None:
            raise RuntimeFault("Only built-in functions can be called", expr.span,
                               "User-defined functions are not supported. Available built-ins: "
                               + ", ".join(f"{name}()" for name in BUILTIN_NAMES) + ".")

        name, handler = builtin
        kwargs = expr.kwargs if isinstance(expr, CallWithKwargs) else []
        return handler(expr, expr.args, self._keywords(name, kwargs, expr.span))

    def _keywords(self, name, kwargs, span):
        """Returns dict of keyword name: expression, rejecting keywords that name doesn't accept."""
        accepted = {"divmod": ("round_mode",)}.get(name, ())

        keywords = {}
        for kwarg in kwargs:
            if kwarg.name not in accepted:
                raise RuntimeFault(f"{name}() got an unexpected keyword argument '{kwarg.name}'", kwarg.span,
                                   f"{name}() accepts no keyword arguments." if not accepted else
                                   f"{name}() accepts: " + ", ".join(accepted) + ".")
            elif kwarg.name in keywords:
                raise RuntimeFault(f"{name}() got multiple values for keyword argument '{kwarg.name}'", kwarg.span,
                                   "Each keyword argument can only be given once.")
            keywords[kwarg.name] = kwarg.value
        return keywords

    @staticmethod
    def _arity(name, expected, args, span, usage):
        if len(args) != expected:
            plural = "argument" if expected == 1 else "arguments"
            raise RuntimeFault(f"{name}() takes exactly {expected} {plural}, got {len(args)}", span, usage)

    def _builtin_print(self, expr, args, kwargs):
        for arg in args:
            print(display(self.eval(arg)))

    def _builtin_len(self, expr, args, kwargs):
        self._arity("len", 1, args, expr.span, "Usage: len(value) where value is a string, list, or dictionary.")

        value = self.eval(args[0])
        if isinstance(value, (str, list, dict)):
            return len(value)

        raise RuntimeFault(f"len() not supported for type {type_name(value)}", args[0].span,
                           "len() only works with strings, lists, and dictionaries.")

    def _builtin_type(self, expr, args, kwargs):
        self._arity("type", 1, args, expr.span, "Usage: type(value) returns the type name as a string.")
        return type_name(self.eval(args[0]))

    def _builtin_case(self, expr, args, kwargs):
        """Returns CaseResult of the result paired with the first truthy condition. Pairs after it aren't evaluated."""
        if len(args) < 2 or len(args) % 2 != 0:
            raise RuntimeFault(f"case() requires an even number of arguments (at least 2), got {len(args)}", expr.span,
                               "Usage: case(condition1, result1, condition2, result2, ...). Each condition is paired "
                               "with its result.")

        for condition, result in zip(args[::2], args[1::2]):
            if is_truthy(self.eval(condition)):
                return CaseResult(self.eval(result))
        return CaseResult(None)

    def _builtin_divmod(self, expr, args, kwargs):
        usage = "Usage: divmod(a, b) or divmod(a, b, round_mode=\"down\"|\"up\"|\"nearest\")."
        self._arity("divmod", 2, args, expr.span, usage)

        dividend, divisor = (self.eval(arg) for arg in args)

        round_mode = "down"
        if "round_mode" in kwargs:
            round_mode = self.eval(kwargs["round_mode"])
            if not isinstance(round_mode, str):
                raise RuntimeFault(f"round_mode must be a string, got {type_name(round_mode)}",
                                   kwargs["round_mode"].span, usage)
            elif round_mode not in ROUND_MODES:
                raise RuntimeFault(f"Unknown rounding mode '{round_mode}'", kwargs["round_mode"].span, usage)

        if not (is_number(dividend) and is_number(divisor)):
            raise RuntimeFault(f"divmod() not supported for types {type_name(dividend)} and {type_name(divisor)}",
                               expr.span, "divmod() only works with ints and doubles.")

        try:
            if is_int(dividend) and is_int(divisor):
                return divmod_ints(dividend, divisor, round_mode)
            return divmod_doubles(float(dividend), float(divisor), round_mode)
        except ZeroDivisionError:
            raise RuntimeFault("Division by zero", expr.span, "The divisor of divmod() must not be zero.") from None
        except OverflowError:
            raise RuntimeFault("Integer overflow", expr.span, OVERFLOW_HELP) from None

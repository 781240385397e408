"""Runtime values of bcc language, shared by syntax tree literals and the evaluator.

bcc values are plain Python objects rather than wrappers:

```
nil          None
bool         bool
int          int            ; 64-bit signed, see numerical.py
double       float
string       str
list         list
dict         dict           ; keys are always str
tuple        tuple          ; multi-return and grouped multi-value results
case_result  CaseResult     ; produced by the case built-in
```

type_name, is_truthy, is_equal and display are total over exactly these types; anything else is an internal error.
Note that bool is a subclass of int in Python, so bool checks must always come first.
"""

import math
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CaseResult:
    """Wraps the result chosen by case(...). Its only readable property is `result`."""
    result: object


TYPE_NAMES = [
    (type(None), "nil"),
    (bool, "bool"),
    (int, "int"),
    (float, "double"),
    (str, "string"),
    (list, "list"),
    (dict, "dict"),
    (tuple, "tuple"),
    (CaseResult, "case_result"),
]


def type_name(value):
    """Returns bcc type name of value."""
    for cls, name in TYPE_NAMES:
        if isinstance(value, cls):
            return name
    raise TypeError(f"'{type(value).__name__}' is not a bcc value")


def is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value):
    return is_int(value) or isinstance(value, float)


def is_truthy(value):
    """nil, false, numeric zero and empty string/list/dict/tuple are falsy. case_result delegates to its result."""
    if isinstance(value, CaseResult):
        return is_truthy(value.result)
    type_name(value)  # rejects non-bcc values
    return bool(value)


def is_equal(left, right):
    """Structural equality. int and double compare by promotion, lists and tuples elementwise (also with each other).
    Dictionary equality is unsupported: anything involving a dict is unequal, even to itself.
    """
    if is_number(left) and is_number(right):
        if is_int(left) and is_int(right):
            return left == right
        return float(left) == float(right)

    if isinstance(left, dict) or isinstance(right, dict):
        return False

    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(is_equal(l, r) for l, r in zip(left, right))

    if isinstance(left, CaseResult) and isinstance(right, CaseResult):
        return is_equal(left.result, right.result)

    return type_name(left) == type_name(right) and left == right


def _display_double(num):
    """Doubles always show a fractional digit and never use exponent notation."""
    if math.isnan(num):
        return "NaN"
    if math.isinf(num):
        return "inf" if num > 0 else "-inf"
    if num.is_integer():
        return f"{num:.1f}"

    text = repr(num)
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


def display(value):
    """Returns printable form of value, as used by print and the command-line echo. Strings are unquoted at every
    depth; dict keys are always quoted.
    """
    if value is None:
        return "nil"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, int):
        return str(value)
    elif isinstance(value, float):
        return _display_double(value)
    elif isinstance(value, str):
        return value
    elif isinstance(value, list):
        return "[" + ", ".join(display(item) for item in value) + "]"
    elif isinstance(value, dict):
        return "{" + ", ".join(f'"{key}": {display(item)}' for key, item in value.items()) + "}"
    elif isinstance(value, tuple):
        items = ", ".join(display(item) for item in value)
        return f"({items},)" if len(value) == 1 else f"({items})"
    elif isinstance(value, CaseResult):
        return f"<case_result: {display(value.result)}>"
    raise TypeError(f"'{type(value).__name__}' is not a bcc value")

import unittest

from bcc.lang.value import CaseResult, display, is_equal, is_truthy, type_name


class ValueTestCase(unittest.TestCase):

    def test_type_name(self):
        cases = {
            "nil": None, "bool": True, "int": 0, "double": 0.0, "string": "", "list": [], "dict": {}, "tuple": (),
            "case_result": CaseResult(1),
        }
        for expected, case in cases.items():
            self.assertEqual(expected, type_name(case), case)

        should_raise = [object(), set(), b"bytes", 1j]
        for case in should_raise:
            self.assertRaises(TypeError, type_name, case)

    def test_is_truthy(self):
        should_fail = [None, False, 0, 0.0, -0.0, "", [], {}, (), CaseResult(None), CaseResult(CaseResult(0))]
        for case in should_fail:
            self.assertFalse(is_truthy(case), case)

        should_pass = [True, 1, -1, 0.5, "0", " ", [0], {"": None}, (None,), CaseResult(1), float("nan")]
        for case in should_pass:
            self.assertTrue(is_truthy(case), case)

    def test_is_equal(self):
        should_fail = [
            ({"a": 1}, {"a": 1}), ({}, {}), (1, "1"), (True, 1), (False, 0), (None, False), (0, None), ([1], [1, 2]),
            ([1, 2], [2, 1]), ("a", "b"), (CaseResult(1), 1), (CaseResult(1), CaseResult(2)), ([{}], [{}]),
            (float("nan"), float("nan")),
        ]
        for left, right in should_fail:
            self.assertFalse(is_equal(left, right), (left, right))

        should_pass = [
            (1, 1), (1, 1.0), (2.5, 2.5), (None, None), (True, True), ("a", "a"), ([1, 2], [1, 2]), ([1, 2], (1, 2)),
            ((1, [2.0]), [1.0, (2,)]), ([], ()), (CaseResult(1), CaseResult(1.0)), (2 ** 53 + 1, 9007199254740992.0),
        ]
        for left, right in should_pass:
            self.assertTrue(is_equal(left, right), (left, right))
            self.assertTrue(is_equal(right, left), (right, left))

        dictionary = {"a": 1}
        self.assertFalse(is_equal(dictionary, dictionary))

    def test_display(self):
        cases = {
            "nil": None,
            "true": True,
            "false": False,
            "42": 42,
            "-7": -7,
            "3.0": 3.0,
            "-0.0": -0.0,
            "2.5": 2.5,
            "0.1": 0.1,
            "0.00001": 0.00001,
            "100000000000000000000.0": 1e20,
            "0.00000015": 1.5e-7,
            "inf": float("inf"),
            "-inf": float("-inf"),
            "NaN": float("nan"),
            "hello": "hello",
            "[1, two, [3.0]]": [1, "two", [3.0]],
            "[]": [],
            "{\"a\": 1, \"b\": [nil]}": {"a": 1, "b": [None]},
            "{}": {},
            "(1, 2)": (1, 2),
            "(1,)": (1,),
            "()": (),
            "<case_result: 2>": CaseResult(2),
            "<case_result: <case_result: nil>>": CaseResult(CaseResult(None)),
        }
        for expected, case in cases.items():
            self.assertEqual(expected, display(case), case)

        self.assertRaises(TypeError, display, object())


if __name__ == '__main__':
    unittest.main()

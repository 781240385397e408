import unittest

from bcc.lang import numerical
from bcc.lang.numerical import INT_MAX, INT_MIN


class NumericalTestCase(unittest.TestCase):

    def test_check_int(self):
        should_raise = [INT_MAX + 1, INT_MIN - 1, 2 ** 64, -2 ** 100]
        for case in should_raise:
            self.assertRaises(OverflowError, numerical.check_int, case)

        should_pass = [0, 1, -1, INT_MAX, INT_MIN]
        for case in should_pass:
            self.assertEqual(case, numerical.check_int(case), case)

    def test_truncate_div(self):
        cases = {(7, 2): 3, (-7, 2): -3, (7, -2): -3, (-7, -2): 3, (6, 3): 2, (1, 5): 0, (-1, 5): 0}
        for case, expected in cases.items():
            self.assertEqual(expected, numerical.truncate_div(*case), case)

    def test_divmod_ints(self):
        should_raise = {
            (1, 0, "down"): ZeroDivisionError,
            (0, 0, "up"): ZeroDivisionError,
            (1, 2, "sideways"): ValueError,
            (INT_MIN, -1, "down"): OverflowError,
        }
        for case, error in should_raise.items():
            self.assertRaises(error, numerical.divmod_ints, *case)

        cases = {
            (7, 2, "down"): (3, 1),
            (-7, 2, "down"): (-3, -1),
            (7, -2, "down"): (-3, 1),
            (-7, -2, "down"): (3, -1),
            (7, 2, "up"): (4, -1),
            (6, 3, "up"): (2, 0),
            (-7, 2, "up"): (-3, -1),  # mixed signs truncate instead of rounding up
            (7, -2, "up"): (-3, 1),
            (-7, -2, "up"): (5, 3),   # (a + b - 1) / b with both operands negative
            (7, 2, "nearest"): (4, -1),
            (5, 2, "nearest"): (2, 1),  # ties to even
            (-7, 2, "nearest"): (-4, 1),
            (9, 4, "nearest"): (2, 1),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, numerical.divmod_ints(*case), case)

    def test_divmod_ints_remainder(self):
        for dividend in (-9, -4, 0, 3, 10):
            for divisor in (-3, -2, 1, 4):
                for round_mode in numerical.ROUND_MODES:
                    quotient, remainder = numerical.divmod_ints(dividend, divisor, round_mode)
                    self.assertEqual(dividend, quotient * divisor + remainder, (dividend, divisor, round_mode))

    def test_divmod_doubles(self):
        should_raise = {
            (1.0, 0.0, "down"): ZeroDivisionError,
            (1.0, -0.0, "nearest"): ZeroDivisionError,
            (1.0, 2.0, "sideways"): ValueError,
        }
        for case, error in should_raise.items():
            self.assertRaises(error, numerical.divmod_doubles, *case)

        cases = {
            (7.5, 2.0, "down"): (3.0, 1.5),
            (-7.5, 2.0, "down"): (-4.0, 0.5),
            (7.5, 2.0, "up"): (4.0, -0.5),
            (7.5, 2.0, "nearest"): (4.0, -0.5),
            (5.0, 2.0, "nearest"): (2.0, 1.0),
            (6.0, 3.0, "up"): (2.0, 0.0),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, numerical.divmod_doubles(*case), case)

        quotient, __ = numerical.divmod_doubles(float("inf"), 2.0)
        self.assertEqual(float("inf"), quotient)


if __name__ == '__main__':
    unittest.main()

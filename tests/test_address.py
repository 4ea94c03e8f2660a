import unittest

from tokenflow.core.address import format_amount, is_address, is_digits, normalize, parse_decimals, short_address


class IsAddressTests(unittest.TestCase):
    def test_accepts_40_hex_chars_any_case(self) -> None:
        self.assertTrue(is_address("0x" + "a" * 40))
        self.assertTrue(is_address("0x" + "A" * 40))
        self.assertTrue(is_address("0xdAC17F958D2ee523a2206206994597C13D831ec7"))

    def test_rejects_malformed(self) -> None:
        self.assertFalse(is_address("0x" + "a" * 39))
        self.assertFalse(is_address("0x" + "a" * 41))
        self.assertFalse(is_address("0x" + "g" * 40))
        self.assertFalse(is_address("a" * 42))
        self.assertFalse(is_address("0X" + "a" * 40))
        self.assertFalse(is_address(""))
        self.assertFalse(is_address(None))
        self.assertFalse(is_address("0x" + "a" * 40 + "\n"))


class NormalizeTests(unittest.TestCase):
    def test_case_folding_and_idempotent(self) -> None:
        mixed = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
        self.assertEqual(normalize(mixed), normalize(mixed.lower()))
        self.assertEqual(normalize(normalize(mixed)), normalize(mixed))
        self.assertEqual(normalize(mixed), mixed.lower())

    def test_short_address(self) -> None:
        self.assertEqual(short_address("0x" + "ab" * 20), "0xabab...abab")
        self.assertEqual(short_address("0x1234"), "0x1234")


class FormatAmountTests(unittest.TestCase):
    def test_known_values(self) -> None:
        self.assertEqual(format_amount("1000000000000000000", 18), "1")
        self.assertEqual(format_amount("1500000000000000000", 18), "1.5")
        self.assertEqual(format_amount("5", 0), "5")
        self.assertEqual(format_amount("100", 2), "1")
        self.assertEqual(format_amount("1", 2), "0.01")
        self.assertEqual(format_amount("0", 0), "0")

    def test_leading_zeros_and_empty(self) -> None:
        self.assertEqual(format_amount("000123", 0), "123")
        self.assertEqual(format_amount("", 0), "0")
        self.assertEqual(format_amount("0", 6), "0")
        self.assertEqual(format_amount("000", 6), "0")

    def test_beyond_float_precision(self) -> None:
        raw = "123456789012345678901234567890"
        self.assertEqual(format_amount(raw, 18), "123456789012.34567890123456789")
        self.assertEqual(format_amount("9007199254740993", 0), "9007199254740993")

    def test_decimals_clamped(self) -> None:
        self.assertEqual(format_amount("12", -3), "12")
        self.assertEqual(format_amount("1", 40), "0." + "0" * 35 + "1")

    def test_parse_decimals(self) -> None:
        self.assertEqual(parse_decimals("18"), 18)
        self.assertEqual(parse_decimals(""), 0)
        self.assertEqual(parse_decimals(None), 0)
        self.assertEqual(parse_decimals("abc"), 0)
        self.assertEqual(parse_decimals("\u00b9\u2078"), 0)

    def test_is_digits_ascii_only(self) -> None:
        self.assertTrue(is_digits("0123456789"))
        self.assertFalse(is_digits("\u00b2"))
        self.assertFalse(is_digits("\u0663"))
        self.assertFalse(is_digits(""))
        self.assertFalse(is_digits(None))


if __name__ == "__main__":
    unittest.main()

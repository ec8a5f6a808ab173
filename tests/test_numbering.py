import unittest
from datetime import datetime

from storefront.numbering import SequenceNumberGenerator

WHEN = datetime(2025, 11, 2, 14, 30, 15)


class SequenceNumberGeneratorTestCase(unittest.TestCase):
    def test_format(self):
        gen = SequenceNumberGenerator("AR", start=42)
        self.assertEqual(gen(WHEN), "AR-20251102-143015-000042")
        self.assertEqual(gen(WHEN), "AR-20251102-143015-000043")

    def test_uses_clock_when_no_time_given(self):
        gen = SequenceNumberGenerator("SUP", clock=lambda: WHEN, start=1)
        self.assertEqual(gen(), "SUP-20251102-143015-000001")

    def test_counter_wraps_to_six_digits(self):
        gen = SequenceNumberGenerator("AR", start=999_999)
        self.assertEqual(gen(WHEN), "AR-20251102-143015-999999")
        self.assertEqual(gen(WHEN), "AR-20251102-143015-000000")

    def test_default_start_is_not_fixed(self):
        starts = {SequenceNumberGenerator("AR")(WHEN) for _ in range(20)}
        self.assertGreater(len(starts), 1)


if __name__ == "__main__":
    unittest.main()

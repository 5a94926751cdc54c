import unittest

from portfolio_api.middleware import FixedWindowRateLimiter


class FixedWindowRateLimiterTests(unittest.TestCase):
    def test_window_resets(self):
        now = [0.0]
        limiter = FixedWindowRateLimiter(2, 600, clock=lambda: now[0])
        self.assertTrue(limiter.hit("1.2.3.4"))
        self.assertTrue(limiter.hit("1.2.3.4"))
        self.assertFalse(limiter.hit("1.2.3.4"))
        self.assertTrue(limiter.hit("5.6.7.8"))

        now[0] = 600.0
        self.assertTrue(limiter.hit("1.2.3.4"))


if __name__ == "__main__":
    unittest.main()

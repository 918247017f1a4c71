import unittest

from fastapi_rest_query.descriptor import Order
from fastapi_rest_query.metadata import PaginationPolicy, SortPolicy
from fastapi_rest_query.pagination import resolve_pagination, to_number
from fastapi_rest_query.sorting import resolve_sort

POLICY = SortPolicy(default_field="id", allowed_fields=("id", "createdAt"))


class SortTests(unittest.TestCase):
    def test_no_policy_no_order(self):
        self.assertIsNone(resolve_sort(None, {"sort": "id"}))

    def test_no_sort_and_no_default(self):
        self.assertIsNone(resolve_sort(SortPolicy(allowed_fields=("id",)), {}))

    def test_default_field_and_direction(self):
        self.assertEqual(resolve_sort(POLICY, {}), Order(field="id", direction="ASC"))
        policy = SortPolicy(default_field="id", default_direction="DESC")
        self.assertEqual(resolve_sort(policy, {}), Order(field="id", direction="DESC"))

    def test_leading_dash_sorts_descending(self):
        self.assertEqual(resolve_sort(POLICY, {"sort": "-createdAt"}), Order(field="createdAt", direction="DESC"))
        self.assertEqual(resolve_sort(POLICY, {"sort": "createdAt"}), Order(field="createdAt", direction="ASC"))

    def test_field_outside_allowlist_is_dropped(self):
        policy = SortPolicy(default_field="id", allowed_fields=("id",))
        self.assertIsNone(resolve_sort(policy, {"sort": "-createdAt"}))
        self.assertIsNone(resolve_sort(policy, {"sort": "password"}))

    def test_without_allowlist_requested_sort_is_dropped(self):
        self.assertIsNone(resolve_sort(SortPolicy(default_field="id"), {"sort": "id"}))


class PaginationTests(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(resolve_pagination(None, {}), (0, 10))

    def test_negative_start_index_is_zero(self):
        self.assertEqual(resolve_pagination(None, {"startIndex": "-5"}), (0, 10))

    def test_limits_are_clamped(self):
        self.assertEqual(resolve_pagination(None, {"maxResults": "999999"}), (0, 1000))
        self.assertEqual(resolve_pagination(None, {"startIndex": 20000}), (10000, 10))

    def test_non_numeric_and_zero_fall_back_to_defaults(self):
        self.assertEqual(resolve_pagination(None, {"startIndex": "abc", "maxResults": "abc"}), (0, 10))
        self.assertEqual(resolve_pagination(None, {"maxResults": "0"}), (0, 10))

    def test_negative_page_size_is_zero(self):
        self.assertEqual(resolve_pagination(None, {"maxResults": "-3"}), (0, 0))

    def test_policy_bounds(self):
        policy = PaginationPolicy(default_page_size=5, max_page_size=20, max_offset=100)
        self.assertEqual(resolve_pagination(policy, {}), (0, 5))
        self.assertEqual(resolve_pagination(policy, {"startIndex": "150", "maxResults": "50"}), (100, 20))
        self.assertEqual(resolve_pagination(policy, {"startIndex": "15", "maxResults": "7"}), (15, 7))

    def test_infinite_values_are_clamped(self):
        self.assertEqual(resolve_pagination(None, {"maxResults": "Infinity"}), (0, 1000))
        self.assertEqual(resolve_pagination(None, {"startIndex": "+Infinity"}), (10000, 10))
        self.assertEqual(resolve_pagination(None, {"startIndex": "-Infinity", "maxResults": "-Infinity"}), (0, 0))
        self.assertEqual(resolve_pagination(None, {"maxResults": float("inf")}), (0, 1000))

    def test_non_decimal_spellings_fall_back_to_defaults(self):
        for raw in ("1_000", "inf", "nan", "0x10", "1e", "12px"):
            with self.subTest(raw=raw):
                self.assertEqual(resolve_pagination(None, {"maxResults": raw}), (0, 10))

    def test_to_number(self):
        self.assertEqual(to_number(" 12 "), 12)
        self.assertEqual(to_number("1e2"), 100)
        self.assertEqual(to_number(".5"), 0.5)
        self.assertEqual(to_number("3."), 3)
        self.assertEqual(to_number(2.5), 2.5)
        self.assertEqual(to_number("-Infinity"), float("-inf"))
        self.assertEqual(to_number(""), 0)
        self.assertEqual(to_number("nan"), 0)
        self.assertEqual(to_number(float("nan")), 0)
        self.assertEqual(to_number("1_000"), 0)
        self.assertEqual(to_number(None), 0)
        self.assertEqual(to_number(True), 0)
        self.assertEqual(to_number(["1"]), 0)


if __name__ == "__main__":
    unittest.main()

import unittest

from fastapi_rest_query.descriptor import FilterCondition
from fastapi_rest_query.filters import build_field_filters, build_where, to_conditions, wants_deleted
from fastapi_rest_query.operators import FilterOperator as Op


def _filters(name, params):
    where = {}
    build_field_filters(name, params, where)
    return where


class FieldFilterTests(unittest.TestCase):
    def test_equal_and_greater_than_accumulate_on_one_field(self):
        where = _filters("age", {"age": "30", "age_gt": "18"})
        self.assertEqual(where, {"age": {Op.EQ: "30", Op.GT: "18"}})

    def test_null_sentinel_becomes_none(self):
        self.assertEqual(_filters("name", {"name": " .null. "}), {"name": {Op.EQ: None}})
        self.assertEqual(_filters("name", {"name!": ".null."}), {"name": {Op.NE: None}})

    def test_equal_value_is_trimmed_and_numbers_pass_through(self):
        self.assertEqual(_filters("name", {"name": "  bob "}), {"name": {Op.EQ: "bob"}})
        self.assertEqual(_filters("age", {"age": 42}), {"age": {Op.EQ: 42}})

    def test_in_and_not_in_split_on_comma(self):
        where = _filters("name", {"names": "a,b,c", "names!": " a,b "})
        self.assertEqual(where["name"][Op.IN], ("a", "b", "c"))
        self.assertEqual(where["name"][Op.NOT_IN], ("a", "b"))

    def test_like_replaces_star_with_percent(self):
        where = _filters("name", {"name_like": " *foo* ", "name_notLike": "bar*"})
        self.assertEqual(where["name"][Op.LIKE], "%foo%")
        self.assertEqual(where["name"][Op.NOT_LIKE], "bar%")

    def test_range_operators_take_strings_and_numbers(self):
        where = _filters("age", {"age_gt": " 1 ", "age_gte": 2, "age_lt": 3.5, "age_lte": "4"})
        self.assertEqual(where["age"], {Op.GT: "1", Op.GTE: 2, Op.LT: 3.5, Op.LTE: "4"})

    def test_values_of_the_wrong_shape_are_skipped(self):
        params = {"age_gt": ["1"], "age!": 3, "ages": 5, "age_like": 7, "age": True, "age_lt": None}
        self.assertEqual(_filters("age", params), {})

    def test_parameters_that_are_not_a_mapping_are_ignored(self):
        self.assertEqual(_filters("age", None), {})
        self.assertEqual(_filters("age", "age=3"), {})

    def test_unknown_keys_are_ignored(self):
        self.assertEqual(_filters("age", {"agex": "1", "age_between": "1,2"}), {})

    def test_condition_target_can_differ_from_parameter_name(self):
        where = {}
        build_field_filters("creator", {"creator": "7"}, where, col="creatorId")
        self.assertEqual(where, {"creatorId": {Op.EQ: "7"}})


class WhereTests(unittest.TestCase):
    def test_conditions_follow_field_then_operator_order(self):
        params = {"name_like": "a*", "age_lte": "9", "name": "x", "ages": "1,2"}
        conditions = to_conditions(build_where(("age", "name"), params))
        self.assertEqual(conditions, (
            FilterCondition(field="age", op=Op.IN, value=("1", "2")),
            FilterCondition(field="age", op=Op.LTE, value="9"),
            FilterCondition(field="name", op=Op.EQ, value="x"),
            FilterCondition(field="name", op=Op.LIKE, value="a%"),
        ))

    def test_same_input_same_conditions(self):
        params = {"name": "x", "age_gt": "1", "names!": "a,b"}
        first = to_conditions(build_where(("name", "age"), params))
        second = to_conditions(build_where(("name", "age"), params))
        self.assertEqual(first, second)

    def test_show_delete_truthiness(self):
        self.assertTrue(wants_deleted({"showDelete": "yes"}))
        self.assertTrue(wants_deleted({"showDelete": "0"}))
        self.assertTrue(wants_deleted({"showDelete": 1}))
        self.assertFalse(wants_deleted({"showDelete": ""}))
        self.assertFalse(wants_deleted({"showDelete": 0}))
        self.assertFalse(wants_deleted({}))


if __name__ == "__main__":
    unittest.main()

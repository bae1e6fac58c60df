"""
Tests unitaires pour l'index BK-tree
"""

import random
import unittest
from unittest import mock

from identity_index.bktree import BKTree, BKTreeConfigurationError, BKTreeNode
from identity_index.metrics import LEVENSHTEIN, OSA


class TestBKTreeScenario(unittest.TestCase):
    """blah / bleh / blck"""

    def setUp(self):
        self.tree = BKTree("blah", "R1", LEVENSHTEIN, default_threshold=1)
        self.tree.insert("bleh", "R2")
        self.tree.insert("blck", "R3")

    def test_children_keyed_by_distance(self):
        self.assertEqual(sorted(self.tree.root.children), [1, 2])
        self.assertEqual(self.tree.root.children[1].value, "bleh")
        self.assertEqual(self.tree.root.children[2].value, "blck")

    def test_search_threshold_one(self):
        results = dict(self.tree.search("blah", 1))
        self.assertEqual(
            results,
            {"blah": frozenset({"R1"}), "bleh": frozenset({"R2"})},
        )

    def test_search_threshold_two(self):
        results = dict(self.tree.search("blah", 2))
        self.assertEqual(set(results), {"blah", "bleh", "blck"})

    def test_default_threshold(self):
        self.assertEqual(set(dict(self.tree.search("blah"))), {"blah", "bleh"})

    def test_threshold_zero_returns_exact_value_only(self):
        self.assertEqual(self.tree.search("bleh", 0), [("bleh", frozenset({"R2"}))])

    def test_search_with_distance(self):
        results = sorted(self.tree.search_with_distance("blah", 2), key=lambda r: r[2])
        self.assertEqual([(value, dist) for value, _, dist in results][0], ("blah", 0))
        self.assertEqual(
            {value: dist for value, _, dist in results},
            {"blah": 0, "bleh": 1, "blck": 2},
        )

    def test_no_match(self):
        self.assertEqual(self.tree.search("zzzzzzzz", 1), [])

    def test_len_contains_iter(self):
        self.assertEqual(len(self.tree), 3)
        self.assertIn("bleh", self.tree)
        self.assertNotIn("blee", self.tree)
        self.assertNotIn(42, self.tree)
        self.assertEqual(
            dict(self.tree),
            {
                "blah": frozenset({"R1"}),
                "bleh": frozenset({"R2"}),
                "blck": frozenset({"R3"}),
            },
        )

    def test_height(self):
        self.assertEqual(self.tree.height(), 1)

    def test_returned_records_are_snapshots(self):
        (value, records), = self.tree.search("blah", 0)
        self.tree.insert("blah", "R4")
        self.assertEqual(records, frozenset({"R1"}))
        self.assertEqual(dict(self.tree.search("blah", 0))["blah"], frozenset({"R1", "R4"}))


class TestBKTreeInsert(unittest.TestCase):

    def test_search_before_any_insert(self):
        tree = BKTree("Dupont", 1, OSA, default_threshold=0)
        self.assertEqual(tree.search("Dupont"), [("Dupont", frozenset({1}))])
        self.assertEqual(tree.search("Martin", 1), [])

    def test_reflexive_retrieval(self):
        tree = BKTree("seed", "s", OSA)
        for i, value in enumerate(["Jean Dupont", "Jean Dupond", "J. Dupont", ""]):
            tree.insert(value, i)
            self.assertIn(i, dict(tree.search(value, 0))[value])

    def test_insert_is_idempotent(self):
        tree = BKTree("Martin", "A", LEVENSHTEIN)
        self.assertTrue(tree.insert("Martine", "B"))
        self.assertFalse(tree.insert("Martine", "B"))
        self.assertFalse(tree.insert("Martin", "A"))
        self.assertEqual(dict(tree.search("Martine", 0))["Martine"], frozenset({"B"}))
        self.assertEqual(len(tree), 2)

    def test_same_value_accumulates_records(self):
        tree = BKTree("ACME Widgets Inc.", "org-1", LEVENSHTEIN)
        self.assertTrue(tree.insert("ACME Widgets Inc.", "org-2"))
        self.assertEqual(tree.root.records, {"org-1", "org-2"})
        self.assertEqual(tree.root.children, {})

    def test_equidistant_values_are_pushed_down(self):
        tree = BKTree("abc", 1, LEVENSHTEIN)
        tree.insert("abd", 2)
        tree.insert("xbc", 3)
        self.assertEqual(list(tree.root.children), [1])
        child = tree.root.children[1]
        self.assertEqual(child.value, "abd")
        self.assertEqual(child.children[LEVENSHTEIN("abd", "xbc")].value, "xbc")
        self.assertEqual(dict(tree.search("xbc", 0)), {"xbc": frozenset({3})})
        self.assertEqual(set(dict(tree.search("abc", 1))), {"abc", "abd", "xbc"})

    def test_extend_counts_new_records(self):
        tree = BKTree("Smith", 0, OSA)
        added = tree.extend([("Smyth", 1), ("Smith", 2), ("Smyth", 1), ("Smiht", 3)])
        self.assertEqual(added, 3)
        self.assertEqual(len(tree), 3)

    def test_deep_chain_does_not_recurse(self):
        # Single characters are all at distance 1 from each other: one long path
        tree = BKTree("a", 0, LEVENSHTEIN)
        values = [chr(0x4E00 + i) for i in range(1100)]
        for i, value in enumerate(values, start=1):
            tree.insert(value, i)
        self.assertEqual(tree.height(), 1100)
        self.assertEqual(len(tree), 1101)
        self.assertEqual(tree.search(values[-1], 0), [(values[-1], frozenset({1100}))])

    def test_distinct_values_reported_at_zero_fail_loudly(self):
        node = BKTreeNode("abc", 1)
        broken = mock.Mock(return_value=0, algorithm_name="broken")
        with self.assertRaises(AssertionError):
            node.insert("xyz", 2, broken)


class TestBKTreeNode(unittest.TestCase):

    def test_equality_ignores_record_order(self):
        a = BKTreeNode("Paris", 1)
        a.records.update({2, 3})
        b = BKTreeNode("Paris", 3)
        b.records.update({1, 2})
        self.assertEqual(a, b)
        self.assertEqual(hash(a.snapshot()), hash(b.snapshot()))

    def test_nodes_are_not_hashable(self):
        with self.assertRaises(TypeError):
            hash(BKTreeNode("Paris", 1))


class TestBKTreeConfiguration(unittest.TestCase):

    def test_missing_metric(self):
        with self.assertRaises(BKTreeConfigurationError):
            BKTree("a", 1, None)

    def test_unknown_metric(self):
        with self.assertRaises(BKTreeConfigurationError):
            BKTree("a", 1, "soundex")

    def test_metric_by_name(self):
        self.assertIs(BKTree("a", 1, "osa").metric, OSA)

    def test_invalid_thresholds(self):
        for threshold in (-1, 1.5, "2", True):
            with self.assertRaises(BKTreeConfigurationError):
                BKTree("a", 1, LEVENSHTEIN, default_threshold=threshold)

    def test_configuration_error_is_value_error(self):
        self.assertTrue(issubclass(BKTreeConfigurationError, ValueError))

    def test_negative_search_threshold(self):
        tree = BKTree("a", 1, LEVENSHTEIN)
        with self.assertRaises(ValueError):
            tree.search("a", -1)

    def test_from_config_uses_environment(self):
        env = {"IDENTITY_INDEX_METRIC": "osa", "IDENTITY_INDEX_THRESHOLD": "3"}
        with mock.patch.dict("os.environ", env):
            tree = BKTree.from_config("Dupont", 1)
        self.assertIs(tree.metric, OSA)
        self.assertEqual(tree.default_threshold, 3)

    def test_from_config_defaults(self):
        with mock.patch.dict("os.environ", {}, clear=True):
            tree = BKTree.from_config("Dupont", 1)
        self.assertIs(tree.metric, LEVENSHTEIN)
        self.assertEqual(tree.default_threshold, 2)

    def test_negative_threshold_from_environment_is_rejected(self):
        with mock.patch.dict("os.environ", {"IDENTITY_INDEX_THRESHOLD": "-1"}):
            with self.assertRaises(BKTreeConfigurationError):
                BKTree.from_config("Dupont", 1)

    def test_unknown_metric_from_environment_is_rejected(self):
        with mock.patch.dict("os.environ", {"IDENTITY_INDEX_METRIC": "jaro"}):
            with self.assertRaises(BKTreeConfigurationError):
                BKTree.from_config("Dupont", 1)

    def test_construction_is_logged(self):
        with self.assertLogs("identity_index.bktree", level="INFO") as logs:
            BKTree("a", 1, OSA, default_threshold=1)
        self.assertIn("Optimal String Alignment", logs.output[0])


class TestPruningBounds(unittest.TestCase):

    def test_levenshtein_window_is_clamped(self):
        self.assertEqual(LEVENSHTEIN.search_bounds(1, 3), (0, 4))
        self.assertEqual(LEVENSHTEIN.search_bounds(5, 2), (3, 7))

    def test_osa_window_is_widened(self):
        self.assertEqual(OSA.search_bounds(3, 1), (1, 8))
        self.assertEqual(OSA.search_bounds(0, 0), (0, 0))

    def test_osa_transposition_match_is_not_pruned(self):
        # osa("ca", "abc") == 3 but osa("ac", "abc") == 1: the child at key 1
        # lies outside [3 - 1, 3 + 1] and must still be visited
        tree = BKTree("ca", 1, OSA)
        tree.insert("ac", 2)
        self.assertEqual(dict(tree.search("abc", 1)), {"ac": frozenset({2})})


class TestSearchCompleteness(unittest.TestCase):
    """Tree search must return exactly what a linear scan returns."""

    ALPHABET = "abcdeé"

    def _random_string(self, rng):
        return "".join(rng.choice(self.ALPHABET) for _ in range(rng.randint(0, 7)))

    def _check_metric(self, metric, seed):
        rng = random.Random(seed)
        pairs = [(self._random_string(rng), i) for i in range(300)]
        tree = BKTree(pairs[0][0], pairs[0][1], metric)
        expected_records = {}
        for value, record in pairs:
            expected_records.setdefault(value, set()).add(record)
            tree.insert(value, record)

        for _ in range(150):
            query = self._random_string(rng)
            threshold = rng.randint(0, 4)
            found = dict(tree.search(query, threshold))
            expected = {
                value: frozenset(records)
                for value, records in expected_records.items()
                if metric(value, query) <= threshold
            }
            self.assertEqual(found, expected, (metric, query, threshold))

    def test_levenshtein(self):
        self._check_metric(LEVENSHTEIN, seed=1234)

    def test_osa(self):
        self._check_metric(OSA, seed=5678)


if __name__ == "__main__":
    unittest.main()

import unittest

from engines.navigation import NavigationEngine, NavigationState, grade_key
from schemas import Question


class NavigationEngineTests(unittest.TestCase):
    def setUp(self):
        self.engine = NavigationEngine()
        self.question = Question(id="Q1", prompt="p", followUps={"3": "Q2", "default": "Q3"})

    def test_exact_grade_key_wins(self):
        self.assertEqual(self.engine.advance(self.question, 3), "Q2")
        self.assertEqual(self.engine.advance(self.question, 3.0), "Q2")

    def test_default_fallback_then_terminal(self):
        self.assertEqual(self.engine.advance(self.question, 1), "Q3")
        terminal = Question(id="Q9", prompt="p", followUps={"4": "Q1"})
        self.assertIsNone(self.engine.advance(terminal, 2))
        self.assertIsNone(self.engine.advance(Question(id="Q0"), 4))

    def test_advance_does_not_touch_history(self):
        state = self.engine.start("Q1")
        self.engine.advance(self.question, 3)
        self.assertEqual(state.history, [])
        self.assertEqual(state.current_id, "Q1")

    def test_visit_skips_adjacent_repeats(self):
        state = NavigationState()
        self.assertTrue(self.engine.visit(state, "Q1"))
        self.assertFalse(self.engine.visit(state, "Q1"))
        self.assertFalse(self.engine.visit(state, None))
        self.engine.visit(state, "Q2")
        self.engine.visit(state, "Q1")
        self.assertEqual(state.history, ["Q1", "Q2", "Q1"])

    def test_back_walks_to_none_and_stays_there(self):
        state = NavigationState(current_id="Q3", history=["Q1", "Q2", "Q3"])
        results = [self.engine.back(state) for _ in range(3)]
        self.assertEqual(results, ["Q2", "Q1", None])
        self.assertIsNone(self.engine.back(state))
        self.assertEqual(state.history, [])

    def test_history_is_bounded(self):
        engine = NavigationEngine(max_history=3)
        state = engine.start("Q1")
        for question_id in ["A", "B", "C", "D"]:
            engine.visit(state, question_id)
        self.assertEqual(state.history, ["B", "C", "D"])

    def test_grade_key_formats_integral_floats(self):
        self.assertEqual(grade_key(2.0), "2")
        self.assertEqual(grade_key(2.5), "2.5")
        self.assertEqual(grade_key(0), "0")


if __name__ == "__main__":
    unittest.main()

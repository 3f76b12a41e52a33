from django.test import TestCase

from goaltipp.predictions.exceptions import InvalidScoringRule
from goaltipp.predictions.models import ScoringRule
from goaltipp.predictions.rules import (
    RULE_TYPES,
    RuleSet,
    list_scoring_rules,
    resolve,
    resolve_rule_set,
    update_scoring_rules,
)
from goaltipp.tournaments.models import Tournament


class ResolveRuleTests(TestCase):
    def setUp(self) -> None:
        self.tournament = Tournament.objects.create(name='World Cup')
        self.other = Tournament.objects.create(name='Euro')
        ScoringRule.objects.create(rule_type='exact_score', points=5)
        ScoringRule.objects.create(rule_type='correct_winner', points=3)
        ScoringRule.objects.create(rule_type='exact_score', points=8, tournament=self.tournament)

    def test_tournament_override_wins(self) -> None:
        self.assertEqual(resolve('exact_score', self.tournament.pk), 8)

    def test_falls_back_to_global_value(self) -> None:
        self.assertEqual(resolve('correct_winner', self.tournament.pk), 3)
        self.assertEqual(resolve('exact_score', self.other.pk), 5)
        self.assertEqual(resolve('exact_score'), 5)

    def test_missing_rule_resolves_to_zero(self) -> None:
        self.assertEqual(resolve('correct_goal_diff', self.tournament.pk), 0)
        self.assertEqual(resolve('not_a_rule'), 0)

    def test_override_of_zero_is_respected(self) -> None:
        ScoringRule.objects.create(rule_type='correct_winner', points=0, tournament=self.tournament)

        self.assertEqual(resolve('correct_winner', self.tournament.pk), 0)

    def test_rule_set_lists_every_rule_type(self) -> None:
        rule_set = resolve_rule_set(self.tournament.pk)

        self.assertEqual(set(rule_set.as_dict()), set(RULE_TYPES))
        self.assertEqual(rule_set['exact_score'], 8)
        self.assertEqual(rule_set.tournament_id, self.tournament.pk)

    def test_changes_are_visible_immediately(self) -> None:
        self.assertEqual(resolve('exact_score'), 5)
        ScoringRule.objects.filter(rule_type='exact_score', tournament__isnull=True).update(points=6)

        self.assertEqual(resolve('exact_score'), 6)


class RuleSetTests(TestCase):
    def test_malformed_values_count_as_zero(self) -> None:
        rule_set = RuleSet.from_mapping({'exact_score': 'five', 'correct_draw': -2, 'correct_winner': True})

        self.assertEqual(rule_set.get('exact_score'), 0)
        self.assertEqual(rule_set.get('correct_draw'), 0)
        self.assertEqual(rule_set.get('correct_winner'), 0)

    def test_unknown_rule_is_zero(self) -> None:
        self.assertEqual(RuleSet().get('anything'), 0)


class UpdateScoringRulesTests(TestCase):
    def setUp(self) -> None:
        self.tournament = Tournament.objects.create(name='World Cup')

    def test_creates_and_updates_global_rules(self) -> None:
        update_scoring_rules({'exact_score': 5, 'correct_winner': 3})
        rule_set = update_scoring_rules({'exact_score': 6})

        self.assertEqual(rule_set.get('exact_score'), 6)
        self.assertEqual(rule_set.get('correct_winner'), 3)
        self.assertEqual(ScoringRule.objects.filter(tournament__isnull=True).count(), 2)

    def test_tournament_rules_do_not_touch_globals(self) -> None:
        update_scoring_rules({'exact_score': 5})
        update_scoring_rules({'exact_score': 10}, tournament=self.tournament)

        self.assertEqual(resolve('exact_score'), 5)
        self.assertEqual(resolve('exact_score', self.tournament.pk), 10)

    def test_rejects_unknown_rule_type(self) -> None:
        with self.assertRaises(InvalidScoringRule):
            update_scoring_rules({'exact_score': 5, 'bogus': 1})

        self.assertFalse(ScoringRule.objects.exists())

    def test_rejects_invalid_points(self) -> None:
        for value in (-1, 'many', None, True, 2.5):
            with self.subTest(value=value):
                with self.assertRaises(InvalidScoringRule):
                    update_scoring_rules({'exact_score': value})

        self.assertFalse(ScoringRule.objects.exists())

    def test_accepts_numeric_strings(self) -> None:
        rule_set = update_scoring_rules({'correct_draw': '4'})

        self.assertEqual(rule_set.get('correct_draw'), 4)

    def test_list_reports_scope(self) -> None:
        update_scoring_rules({'exact_score': 5, 'correct_winner': 3})
        update_scoring_rules({'exact_score': 7}, tournament=self.tournament)

        listed = {entry['rule_type']: entry for entry in list_scoring_rules(self.tournament)}

        self.assertEqual(listed['exact_score']['points'], 7)
        self.assertEqual(listed['exact_score']['scope'], 'tournament')
        self.assertEqual(listed['correct_winner']['points'], 3)
        self.assertEqual(listed['correct_winner']['scope'], 'global')
        self.assertEqual(listed['best_player']['points'], 0)
        self.assertEqual(listed['exact_score']['label'], 'Exact score')

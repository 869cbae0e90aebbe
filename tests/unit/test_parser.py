"""Unit tests for feature parser"""
import pytest
from wisebdd.parser.document import ScenarioOutline, Scenario, StepKeyword
from wisebdd.parser.feature_parser import FeatureParser, parse_feature, split_table_row

SAMPLE = '''# billing suite
@billing @smoke
Feature: Billing
  Invoices are generated monthly.
  Second line.

  Background:
    Given a customer account

  @fast
  Scenario: Pay an invoice
    Given an invoice of 100
    And the invoice is open
    When I pay it with:
      | method | amount |
      | card   | 100    |
    Then the receipt reads:
      """text
      Paid in full
      """

  Scenario Outline: Discounts
    Given a price of <price>
    Then the total is <total>

    @eu
    Examples: Europe
      | price | total |
      | 10    | 9     |
      | 20    | 18    |

  @rules
  Rule: Refunds
    Background:
      Given refunds are enabled

    Scenario: Full refund
      When I request a refund
      Then the balance is 0

  @late
  Rule: Disputes
    Scenario: Open dispute
      Given a disputed charge
'''


@pytest.fixture
def parsed():
    return FeatureParser().parse(SAMPLE, source='billing.feature')


def test_minimal_feature_name():
    result = parse_feature("Feature: Minimal\n")

    assert result.ok
    assert result.feature.name == 'Minimal'
    assert result.feature.scenarios == ()


def test_feature_header(parsed):
    feature = parsed.feature

    assert parsed.errors == []
    assert feature.name == 'Billing'
    assert feature.tag_names == ['@billing', '@smoke']
    assert feature.description == 'Invoices are generated monthly.\nSecond line.'
    assert feature.source == 'billing.feature'
    assert feature.location.line == 3


def test_background(parsed):
    background = parsed.feature.background

    assert background is not None
    assert len(background.steps) == 1
    assert background.steps[0].keyword is StepKeyword.GIVEN
    assert background.steps[0].text == 'a customer account'


def test_scenario_steps_and_arguments(parsed):
    scenario = parsed.feature.scenarios[0]

    assert isinstance(scenario, Scenario)
    assert scenario.name == 'Pay an invoice'
    assert scenario.tag_names == ['@fast']
    assert [step.keyword for step in scenario.steps] == [
        StepKeyword.GIVEN, StepKeyword.AND, StepKeyword.WHEN, StepKeyword.THEN,
    ]
    table = scenario.steps[2].data_table
    assert table.rows == (('method', 'amount'), ('card', '100'))
    assert table.as_dicts() == [{'method': 'card', 'amount': '100'}]
    assert scenario.steps[2].doc_string is None
    doc = scenario.steps[3].doc_string
    assert doc.content == 'Paid in full'
    assert doc.media_type == 'text'


def test_outline_with_examples(parsed):
    outline = parsed.feature.scenarios[1]

    assert isinstance(outline, ScenarioOutline)
    assert outline.name == 'Discounts'
    assert len(outline.examples) == 1
    examples = outline.examples[0]
    assert examples.name == 'Europe'
    assert [tag.name for tag in examples.tags] == ['@eu']
    assert examples.table.header == ('price', 'total')
    assert len(examples.table.data_rows) == 2


def test_rules(parsed):
    rules = parsed.feature.rules

    assert [rule.name for rule in rules] == ['Refunds', 'Disputes']
    assert rules[0].tag_names == ['@rules']
    assert rules[0].background.steps[0].text == 'refunds are enabled'
    assert [s.name for s in rules[0].scenarios] == ['Full refund']
    assert rules[1].tag_names == ['@late']
    assert rules[1].background is None
    assert len(parsed.feature.all_scenarios()) == 4


def test_scenario_with_examples_becomes_outline():
    text = '''Feature: F
  Scenario: eat <n>
    Given I eat <n>
    Examples:
      | n |
      | 1 |
'''
    result = parse_feature(text)

    assert result.ok
    assert isinstance(result.feature.scenarios[0], ScenarioOutline)
    assert result.feature.scenarios[0].keyword == 'Scenario'


def test_missing_feature_keyword_keeps_scenarios():
    result = parse_feature("Scenario: orphan\n  Given a step\n")

    assert len(result.errors) == 1
    assert "Expected 'Feature:'" in result.errors[0].message
    assert result.errors[0].line == 1
    assert result.feature.name == ''
    assert result.feature.scenarios[0].name == 'orphan'


def test_text_before_feature_is_reported_and_skipped():
    result = parse_feature("stray words\n@tagged\nFeature: Real\n  Scenario: s\n    Given x\n")

    assert len(result.errors) == 1
    assert result.feature.name == 'Real'
    assert result.feature.tag_names == ['@tagged']
    assert len(result.feature.scenarios) == 1


def test_empty_document():
    result = parse_feature("# only a comment\n")

    assert result.feature is None
    assert len(result.errors) == 1


def test_unterminated_doc_string_is_reported():
    result = parse_feature('Feature: F\n  Scenario: s\n    Given text\n      """\n      never closed\n')

    assert len(result.errors) == 1
    assert 'never closed' in result.errors[0].message
    step = result.feature.scenarios[0].steps[0]
    assert step.doc_string.content == 'never closed'


def test_inconsistent_table_row_is_reported_and_kept():
    result = parse_feature('Feature: F\n  Scenario: s\n    Given rows\n      | a | b |\n      | 1 |\n')

    assert len(result.errors) == 1
    assert result.errors[0].line == 5
    assert result.feature.scenarios[0].steps[0].data_table.rows == (('a', 'b'), ('1',))


def test_unexpected_tokens_do_not_abort():
    text = 'Feature: F\n  Scenario: one\n    Given x\n  loose text\n  Scenario: two\n    Given y\n'
    result = parse_feature(text, source='f.feature')

    assert len(result.errors) == 1
    assert str(result.errors[0]).startswith('f.feature:4:3:')
    assert [s.name for s in result.feature.scenarios] == ['one', 'two']


def test_dangling_tags_are_reported():
    result = parse_feature('Feature: F\n  Scenario: s\n    Given x\n  @orphan\n')

    assert len(result.errors) == 1
    assert 'Tags' in result.errors[0].message


def test_late_background_is_reported():
    result = parse_feature('Feature: F\n  Scenario: s\n    Given x\n  Background:\n    Given y\n')

    assert len(result.errors) == 1
    assert result.feature.background is None
    assert len(result.feature.scenarios[0].steps) == 1


def test_step_argument_after_blank_line():
    result = parse_feature('Feature: F\n  Scenario: s\n    Given rows\n\n      | a |\n')

    assert result.feature.scenarios[0].steps[0].data_table.rows == (('a',),)


def test_tags_keep_order_and_duplicates():
    result = parse_feature('@a @b @a # trailing comment\nFeature: F\n')

    assert result.feature.tag_names == ['@a', '@b', '@a']
    assert [tag.location.column for tag in result.feature.tags] == [1, 4, 7]


def test_tab_separated_tags_are_split():
    result = parse_feature('@a\t@b  @c\nFeature: F\n')

    assert result.feature.tag_names == ['@a', '@b', '@c']
    assert [tag.location.column for tag in result.feature.tags] == [1, 4, 8]


def test_split_table_row_escapes():
    assert split_table_row(r'| a \| b | c\\d | e\nf |') == ['a | b', 'c\\d', 'e\nf']
    assert split_table_row('|  x  |  |') == ['x', '']


def test_parse_file(tmp_path):
    path = tmp_path / 'login.feature'
    path.write_text('Feature: Login\n  Scenario: ok\n    Given a user\n', encoding='utf-8')

    result = FeatureParser().parse_file(path)

    assert result.feature.name == 'Login'
    assert result.feature.source == str(path)

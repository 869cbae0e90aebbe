"""Unit tests for the tokenizer"""
import pytest
from wisebdd.parser.tokenizer import Tokenizer, TokenKind, tokenize


def kinds(tokens):
    return [token.kind for token in tokens]


def test_every_line_yields_a_token():
    tokens = tokenize("some text\n\n# a comment\n@tag\n| a | b |")

    assert kinds(tokens) == [
        TokenKind.TEXT, TokenKind.BLANK, TokenKind.COMMENT,
        TokenKind.TAG_LINE, TokenKind.TABLE_ROW, TokenKind.EOF,
    ]
    assert [token.line for token in tokens] == [1, 2, 3, 4, 5, 6]


def test_longest_keyword_wins():
    tokens = tokenize("Scenario Outline: one\nScenario: two\nExamples: three\nExample: four\nScenario Template: five")

    assert kinds(tokens)[:-1] == [
        TokenKind.SCENARIO_OUTLINE, TokenKind.SCENARIO, TokenKind.EXAMPLES,
        TokenKind.SCENARIO, TokenKind.SCENARIO_OUTLINE,
    ]
    assert [token.value for token in tokens[:-1]] == ['one', 'two', 'three', 'four', 'five']
    assert tokens[0].keyword == 'Scenario Outline'


def test_structural_keyword_needs_colon():
    tokens = tokenize("Feature Login\nFeature: Login")

    assert tokens[0].kind is TokenKind.TEXT
    assert tokens[1].kind is TokenKind.FEATURE
    assert tokens[1].value == 'Login'


def test_step_keywords():
    tokens = tokenize("Given a thing\nAnd\n* bullet step\nGivenly not a step\nBut\tanother")

    assert tokens[0].kind is TokenKind.STEP
    assert tokens[0].keyword == 'Given'
    assert tokens[0].value == 'a thing'
    assert tokens[1].kind is TokenKind.STEP
    assert tokens[1].keyword == 'And'
    assert tokens[1].value == ''
    assert tokens[2].keyword == '*'
    assert tokens[2].value == 'bullet step'
    assert tokens[3].kind is TokenKind.TEXT
    assert tokens[4].keyword == 'But'
    assert tokens[4].value == 'another'


def test_indentation_counts_tabs_as_four_columns():
    tokens = tokenize("\tGiven x\n  \tWhen y")

    assert tokens[0].indent == 4
    assert tokens[0].column == 5
    assert tokens[1].indent == 6


def test_custom_tab_width():
    tokens = Tokenizer(tab_width=2).tokenize("\tGiven x")

    assert tokens[0].indent == 2


def test_doc_string_keeps_blank_lines_and_media_type():
    text = '\n'.join([
        '    Given a payload',
        '      """json',
        '      {',
        '',
        '        "a": 1',
        '      }',
        '      """',
        '    Then done',
    ])
    tokens = tokenize(text)

    assert kinds(tokens) == [TokenKind.STEP, TokenKind.DOC_STRING, TokenKind.STEP, TokenKind.EOF]
    doc = tokens[1]
    assert doc.media_type == 'json'
    assert doc.delimiter == '"""'
    assert doc.terminated
    assert doc.value == '{\n\n  "a": 1\n}'
    assert doc.line == 2
    assert tokens[2].line == 8


def test_backtick_doc_string_and_escaped_delimiter():
    text = '```\nsay \\`\\`\\` here\n```\nGiven next'
    tokens = tokenize(text)

    assert tokens[0].kind is TokenKind.DOC_STRING
    assert tokens[0].delimiter == '```'
    assert tokens[0].media_type is None
    assert tokens[0].value == 'say ``` here'
    assert tokens[1].kind is TokenKind.STEP


def test_unterminated_doc_string_runs_to_end_of_input():
    tokens = tokenize('Given text\n"""\nline one\n\nline two')

    assert kinds(tokens) == [TokenKind.STEP, TokenKind.DOC_STRING, TokenKind.EOF]
    assert tokens[1].terminated is False
    assert tokens[1].value == 'line one\n\nline two'


def test_comment_and_tag_values():
    tokens = tokenize("  # note here\n  @a @b")

    assert tokens[0].value == 'note here'
    assert tokens[1].value == '@a @b'
    assert tokens[1].column == 3


@pytest.mark.parametrize('text', ['', '\n'])
def test_empty_documents_end_with_eof(text):
    tokens = tokenize(text)

    assert tokens[-1].kind is TokenKind.EOF

"""Unit tests for helper utilities and the scenario context"""
import pytest
from wisebdd.executor.context import ScenarioContext
from wisebdd.utils.helpers import (
    deep_get, find_placeholders, normalize_tag, substitute_placeholders, unique,
)


def test_deep_get():
    data = {'a': {'b': {'c': 0}}, 'x': None}

    assert deep_get(data, 'a.b.c') == 0
    assert deep_get(data, 'a.b.missing', 'd') == 'd'
    assert deep_get(data, 'a.b.c.d', 'd') == 'd'
    assert deep_get(data, 'x') is None


def test_substitute_placeholders():
    assert substitute_placeholders('<a> + <b> = <c>', {'a': '1', 'b': '2'}) == '1 + 2 = <c>'
    assert substitute_placeholders('no placeholders', {'a': '1'}) == 'no placeholders'
    assert substitute_placeholders('<a>', {'a': '<a>'}) == '<a>'


def test_find_placeholders():
    assert find_placeholders('<first> and <second name>') == ['first', 'second name']


@pytest.mark.parametrize('tag, expected', [('smoke', '@smoke'), ('@smoke', '@smoke'), (' wip ', '@wip')])
def test_normalize_tag(tag, expected):
    assert normalize_tag(tag) == expected


def test_unique_keeps_order():
    assert unique(['b', 'a', 'b', 'c', 'a']) == ['b', 'a', 'c']


def test_context_attribute_and_item_access():
    context = ScenarioContext(user='ann')
    context.count = 3
    context['flag'] = True

    assert context.user == 'ann'
    assert context['count'] == 3
    assert context.get('flag') is True
    assert context.get('missing', 1) == 1
    assert sorted(context) == ['count', 'flag', 'user']
    with pytest.raises(AttributeError):
        context.missing


def test_context_reset():
    context = ScenarioContext(user='ann')
    context.reset('scenario', frozenset({'@a'}))

    assert context.as_dict() == {}
    assert context.scenario == 'scenario'
    assert context.active_tags == frozenset({'@a'})
    assert 'user' not in context

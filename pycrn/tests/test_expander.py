import pytest
import sympy

from pycrn.core import ConfigurationError, ReactionSyntaxError
from pycrn.expander import expand_line, expansion_size
from pycrn.parser import parse_reaction_line


def _expand(text):
    return expand_line(parse_reaction_line(text, line=1))


def _summary(drafts):
    return [(d.substrates, d.products, d.rate.expr) for d in drafts]


def test_single_reaction():
    drafts = _expand('k, A + B --> C')
    assert len(drafts) == 1
    assert drafts[0].substrates == (('A', 1), ('B', 1))
    assert drafts[0].products == (('C', 1), )
    assert drafts[0].mass_action
    assert not drafts[0].reverse


def test_product_tuple():
    drafts = _expand('1.0, S --> (P1, P2)')
    assert [d.products for d in drafts] == [(('P1', 1), ), (('P2', 1), )]
    assert all(d.substrates == (('S', 1), ) for d in drafts)


def test_all_tuples_paired():
    k1, k2 = sympy.symbols('k1 k2')
    drafts = _expand('(k1, k2), (A, B) --> (C, 0)')
    assert _summary(drafts) == [
        ((('A', 1), ), (('C', 1), ), k1),
        ((('B', 1), ), (), k2),
    ]


def test_mismatched_tuples():
    with pytest.raises(ConfigurationError) as excinfo:
        _expand('(1.0, 2.0), (S1, S2, S3) --> P')
    assert excinfo.value.line == 1


def test_backward_arrow_swaps():
    drafts = _expand('k, A <-- B')
    assert drafts[0].substrates == (('B', 1), )
    assert drafts[0].products == (('A', 1), )
    assert not drafts[0].reverse


def test_bidirectional_same_rate():
    k = sympy.Symbol('k')
    drafts = _expand('k, A + B <--> C')
    assert _summary(drafts) == [
        ((('A', 1), ('B', 1)), (('C', 1), ), k),
        ((('C', 1), ), (('A', 1), ('B', 1)), k),
    ]
    assert [d.reverse for d in drafts] == [False, True]


def test_bidirectional_rate_pair():
    kf, kb = sympy.symbols('kf kb')
    drafts = _expand('(kf, kb), A + B <=> C')
    assert [d.rate.expr for d in drafts] == [kf, kb]
    assert not any(d.mass_action for d in drafts)


def test_bidirectional_nested_tuples():
    k1, k2, k3, k4 = sympy.symbols('k1:5')
    drafts = _expand('((k1, k2), (k3, k4)), A <--> (B, C)')
    assert _summary(drafts) == [
        ((('A', 1), ), (('B', 1), ), k1),
        ((('A', 1), ), (('C', 1), ), k2),
        ((('B', 1), ), (('A', 1), ), k3),
        ((('C', 1), ), (('A', 1), ), k4),
    ]


def test_bidirectional_rate_tuple_size():
    with pytest.raises(ConfigurationError):
        _expand('(k1, k2, k3), A <--> B')


def test_nested_rate_tuple_outside_bidirectional():
    with pytest.raises(ReactionSyntaxError):
        _expand('((k1, k2), k3), A --> (B, C)')


def test_group_members_recorded():
    drafts = _expand('k, 2(A + B) --> C')
    assert drafts[0].grouped == frozenset(['A', 'B'])
    assert drafts[0].substrates == (('A', 2), ('B', 2))


def test_expansion_size():
    for text in ('k, A --> B', '1.0, S --> (P1, P2)', 'k, A <--> B',
                 '((k1, k2), (k3, k4)), A <--> (B, C)',
                 '(kf, kb), (A, B) <--> (C, D)'):
        parsed = parse_reaction_line(text)
        assert expansion_size(parsed) == len(expand_line(parsed))

import pytest
import sympy

from pycrn.core import ReactionSyntaxError, InvalidCoefficientError, \
    ConfigurationError, UnknownFunctionError
from pycrn.lexer import tokenize
from pycrn.parser import parse_reaction_line, side_stoichiometry, \
    side_group_members, RateExpr, TupleNode, Side, Term


def _types(text):
    return [t.type for t in tokenize(text)]


def test_tokenize():
    assert _types('k*X^2, 2A + B --> ∅') == [
        'ID', 'TIMES', 'ID', 'POWER', 'NUMBER', 'COMMA', 'NUMBER', 'ID',
        'PLUS', 'ID', 'ARROW', 'NOTHING']
    assert _types('1.5e-3, A -> B') == ['NUMBER', 'COMMA', 'ID', 'ARROW',
                                        'ID']
    assert _types('k, A --> B  # comment') == ['ID', 'COMMA', 'ID', 'ARROW',
                                               'ID']


def test_tokenize_positions():
    tokens = tokenize('k, A --> B')
    assert [t.pos for t in tokens] == [0, 1, 3, 5, 9]


def test_illegal_character():
    with pytest.raises(ReactionSyntaxError) as excinfo:
        tokenize('k, A ~> B', line=3)
    assert excinfo.value.line == 3
    assert excinfo.value.text == '~>'


def test_unusual_whitespace():
    for text in ('k, A\u00a0--> B', 'k, A \x0b--> B', 'k,\u2009A --> B'):
        with pytest.raises(ReactionSyntaxError) as excinfo:
            tokenize(text, line=1)
        assert len(excinfo.value.text) == 1
        assert excinfo.value.text.isspace()


def test_simple_line():
    r = parse_reaction_line('k, 2X + Y --> Z', line=1)
    assert r.rate == RateExpr(sympy.Symbol('k'), ('k', ), 'k')
    assert r.arrow == '-->'
    assert r.substrates.terms == (Term(2, 'X'), Term(1, 'Y'))
    assert side_stoichiometry(r.substrates) == (('X', 2), ('Y', 1))
    assert side_stoichiometry(r.products) == (('Z', 1), )
    assert r.line == 1


def test_coefficient_with_times():
    r = parse_reaction_line('k, 3*X --> Y')
    assert side_stoichiometry(r.substrates) == (('X', 3), )


def test_nothing_sentinel():
    for text in ('k, 0 --> X', 'k, ∅ --> X'):
        r = parse_reaction_line(text)
        assert r.substrates.nothing
        assert side_stoichiometry(r.substrates) == ()


def test_nothing_cannot_be_combined():
    for text in ('k, 0 + A --> B', 'k, ∅ + A --> B', 'k, A + 0 --> B',
                 'k, A --> B + ∅'):
        with pytest.raises(ReactionSyntaxError):
            parse_reaction_line(text)


def test_group_distributes_coefficient():
    r = parse_reaction_line('k, 2(A + B) + A --> 0')
    assert side_stoichiometry(r.substrates) == (('A', 3), ('B', 2))
    assert side_group_members(r.substrates) == frozenset(['A', 'B'])


def test_nested_groups():
    r = parse_reaction_line('k, 2(A + 3(B + C)) --> D')
    assert side_stoichiometry(r.substrates) == (('A', 2), ('B', 6),
                                                ('C', 6))


def test_nothing_inside_group():
    for text in ('k, (0) --> B', 'k, 2(∅) --> B'):
        with pytest.raises(ReactionSyntaxError):
            parse_reaction_line(text)


def test_invalid_coefficients():
    for text in ('k, 0X --> Y', 'k, -2X --> Y', 'k, 1.5X --> Y',
                 'k, A --> 0(B + C)'):
        with pytest.raises(InvalidCoefficientError) as excinfo:
            parse_reaction_line(text, line=2)
        assert isinstance(excinfo.value, ConfigurationError)
        assert isinstance(excinfo.value, ReactionSyntaxError)
        assert excinfo.value.line == 2


def test_unbalanced_parentheses():
    for text in ('k, (A + B --> C', 'k, A --> B)', '(k1, k2, A --> B',
                 'k*(1 + X, A --> B'):
        with pytest.raises(ReactionSyntaxError):
            parse_reaction_line(text)


def test_missing_parts():
    for text in ('k, A B', 'k, A', 'k A --> B', 'k, --> B', 'k, A -->',
                 '', ', A --> B'):
        with pytest.raises(ReactionSyntaxError):
            parse_reaction_line(text)


def test_rate_expression():
    r = parse_reaction_line('k1*X^2/2 + 3, A --> B')
    k1, x = sympy.symbols('k1 X')
    assert r.rate.expr == k1 * x ** 2 / 2 + 3
    assert r.rate.names == ('k1', 'X')
    assert r.rate.text == 'k1*X^2/2 + 3'


def test_rate_power_right_associative():
    assert parse_reaction_line('2^3^2, A --> B').rate.expr == 512
    assert parse_reaction_line('2**3, A --> B').rate.expr == 8
    assert parse_reaction_line('-2^2, A --> B').rate.expr == -4


def test_rate_float():
    r = parse_reaction_line('2.0, A --> B')
    assert r.rate.expr == sympy.Float(2.0)
    assert isinstance(r.rate.expr, sympy.Float)


def test_rate_tuple():
    r = parse_reaction_line('(k1, k2*X), S --> P')
    assert isinstance(r.rate, TupleNode)
    assert r.rate.size == 2
    assert r.rate.elements[1].names == ('k2', 'X')
    assert r.rate.text == '(k1, k2*X)'


def test_parenthesized_scalar_rate():
    r = parse_reaction_line('(k1 + k2)*X, S --> P')
    assert isinstance(r.rate, RateExpr)
    assert r.rate.names == ('k1', 'k2', 'X')


def test_reactant_tuple():
    r = parse_reaction_line('1.0, S --> (P1, P2)')
    assert isinstance(r.products, TupleNode)
    assert [side_stoichiometry(s) for s in r.products.elements] == [
        (('P1', 1), ), (('P2', 1), )]
    r = parse_reaction_line('1.0, (S, 0) --> P')
    assert r.substrates.elements[1] == Side((), True, '0')


def test_malformed_tuples():
    for text in ('1.0, S --> (P1, P2) + Q', '1.0, S --> Q + (P1, P2)',
                 '1.0, S --> 2(P1, P2)', '(k1, k2)*2, A --> B',
                 'exp((k1, k2)), A --> B'):
        with pytest.raises(ReactionSyntaxError):
            parse_reaction_line(text)


def test_function_calls():
    r = parse_reaction_line('hill(X, v, K, n), 0 --> Y')
    assert r.rate.names == ('X', 'v', 'K', 'n')
    assert r.rate.expr.func.__name__ == 'hill'
    r = parse_reaction_line('k*exp(-E_a), A --> B')
    assert r.rate.names == ('k', 'E_a')


def test_unknown_function():
    with pytest.raises(UnknownFunctionError) as excinfo:
        parse_reaction_line('k*foo(X, 2), X --> 0', line=9)
    assert excinfo.value.text == 'foo(X, 2)'
    assert excinfo.value.line == 9


def test_wrong_arity():
    with pytest.raises(ReactionSyntaxError) as excinfo:
        parse_reaction_line('hill(X, v, K), 0 --> Y')
    assert not isinstance(excinfo.value, UnknownFunctionError)


def test_function_not_allowed_as_reactant():
    with pytest.raises(ReactionSyntaxError):
        parse_reaction_line('k, hill(A) --> B')

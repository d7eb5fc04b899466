"""
Recursive-descent parser for reaction lines.

A reaction line has the form::

    <rate term> , <reactant list> <arrow> <reactant list>

The rate term is an arithmetic expression (``+ - * / ^ **``, numbers,
identifiers and calls to registered functions) or a parenthesized tuple of
them. A reactant list is the nothing-sentinel (``0`` or ``∅``), a ``+``
separated list of ``<coefficient>? <identifier or (group)>`` terms, or a
parenthesized tuple of such lists.

The parser produces explicit AST nodes. Rate expressions are turned into
sympy expressions straight away, with every identifier as a plain
``sympy.Symbol``; the resolver later decides which are species and which
are parameters.
"""
import collections
import re

import sympy

from pycrn.core import ReactionSyntaxError, InvalidCoefficientError, \
    UnknownFunctionError
from pycrn.functions import default_registry
from pycrn.lexer import tokenize


class RateExpr(collections.namedtuple('RateExpr', 'expr names text')):
    """
    A scalar rate expression.

    Attributes
    ----------
    expr : sympy.Expr
        The expression, with identifiers as plain sympy Symbols.
    names : tuple of str
        Free identifiers in order of first appearance.
    text : str
        Source text of the expression.
    """
    __slots__ = ()


class TupleNode(collections.namedtuple('TupleNode', 'elements text')):
    """A parenthesized, comma separated tuple requesting line expansion."""
    __slots__ = ()

    @property
    def size(self):
        return len(self.elements)


class Term(collections.namedtuple('Term', 'coefficient name')):
    """A single species with its stoichiometric coefficient."""
    __slots__ = ()


class Group(collections.namedtuple('Group', 'coefficient terms text')):
    """A parenthesized sub-list; the coefficient applies to every member."""
    __slots__ = ()


class Side(collections.namedtuple('Side', 'terms nothing text')):
    """One side of a reaction: a list of Terms/Groups, or nothing."""
    __slots__ = ()


class ReactionLine(collections.namedtuple(
        'ReactionLine', 'rate substrates arrow products line text')):
    """
    A parsed reaction line.

    ``rate`` is a RateExpr or TupleNode; ``substrates`` and ``products`` are
    Sides or TupleNodes; ``arrow`` is the raw arrow glyph.
    """
    __slots__ = ()


_INTEGER_REGEX = re.compile(r'\d+\Z')

_END = '$end'


class _LineParser(object):

    def __init__(self, text, line, registry):
        self.text = text
        self.line = line
        self.registry = registry
        self.tokens = tokenize(text, line)
        self.pos = 0
        self._names = []

    # -- helpers -------------------------------------------------------------
    def _peek(self, offset=0):
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return None

    def _peek_type(self, offset=0):
        tok = self._peek(offset)
        return tok.type if tok is not None else _END

    def _next(self):
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def _snippet(self, start, end=None):
        """Source text covered by tokens[start:end]."""
        if end is None:
            end = self.pos
        if start >= len(self.tokens):
            return ''
        first = self.tokens[start]
        last = self.tokens[max(start, min(end, len(self.tokens)) - 1)]
        return self.text[first.pos:last.pos + len(last.value)]

    def _error(self, reason, text=None, cls=ReactionSyntaxError):
        if text is None:
            tok = self._peek()
            text = tok.value if tok is not None else self.text
        return cls(reason, text=text, line=self.line)

    def _expect(self, tok_type, reason):
        if self._peek_type() != tok_type:
            if self._peek_type() == _END:
                raise self._error(reason + ', found end of line',
                                  text=self.text)
            raise self._error(reason)
        return self._next()

    def _matching_paren(self, idx):
        depth = 0
        for j in range(idx, len(self.tokens)):
            if self.tokens[j].type == 'LPAREN':
                depth += 1
            elif self.tokens[j].type == 'RPAREN':
                depth -= 1
                if depth == 0:
                    return j
        return len(self.tokens) - 1

    # -- reaction line -------------------------------------------------------
    def parse(self):
        if not self.tokens:
            raise self._error('Empty reaction line', text=self.text)
        rate = self._rate_term()
        self._expect('COMMA', 'Expected "," between the rate and the '
                              'reactants')
        substrates = self._side()
        if self._peek_type() != 'ARROW':
            if self._peek_type() == _END:
                raise self._error('Missing reaction arrow', text=self.text)
            raise self._error('Expected a reaction arrow')
        arrow = self._next().value
        products = self._side()
        if self._peek_type() != _END:
            if self._peek_type() == 'RPAREN':
                raise self._error('Unbalanced parentheses',
                                  text=self._snippet(self.pos,
                                                     len(self.tokens)))
            raise self._error('Unexpected input after the products',
                              text=self._snippet(self.pos, len(self.tokens)))
        return ReactionLine(rate, substrates, arrow, products, self.line,
                            self.text)

    # -- rate expressions ----------------------------------------------------
    def _rate_term(self):
        start = self.pos
        self._names = [[]]
        value = self._expression()
        names = self._names.pop()
        if isinstance(value, TupleNode):
            return value
        return RateExpr(value, _unique(names), self._snippet(start))

    def _scalar(self, value, start):
        if isinstance(value, TupleNode):
            raise self._error('Malformed tuple: a tuple cannot be part of an '
                              'arithmetic expression',
                              text=self._snippet(start))
        return value

    def _expression(self):
        start = self.pos
        left = self._multiplicative()
        while self._peek_type() in ('PLUS', 'MINUS'):
            op = self._next().type
            self._scalar(left, start)
            right = self._scalar(self._multiplicative(), start)
            left = left + right if op == 'PLUS' else left - right
        return left

    def _multiplicative(self):
        start = self.pos
        left = self._unary()
        while self._peek_type() in ('TIMES', 'DIVIDE'):
            op = self._next().type
            self._scalar(left, start)
            right = self._scalar(self._unary(), start)
            left = left * right if op == 'TIMES' else left / right
        return left

    def _unary(self):
        start = self.pos
        if self._peek_type() in ('PLUS', 'MINUS'):
            op = self._next().type
            operand = self._scalar(self._unary(), start)
            return -operand if op == 'MINUS' else operand
        return self._power()

    def _power(self):
        start = self.pos
        base = self._primary()
        if self._peek_type() == 'POWER':
            self._next()
            self._scalar(base, start)
            # right associative: a^b^c == a^(b^c)
            exponent = self._scalar(self._unary(), start)
            return base ** exponent
        return base

    def _primary(self):
        tok_type = self._peek_type()
        if tok_type == 'NUMBER':
            value = self._next().value
            if _INTEGER_REGEX.match(value):
                return sympy.Integer(value)
            return sympy.Float(value)
        if tok_type == 'ID':
            if self._peek_type(1) == 'LPAREN':
                return self._call()
            name = self._next().value
            self._names[-1].append(name)
            return sympy.Symbol(name)
        if tok_type == 'LPAREN':
            return self._parenthesized_rate()
        if tok_type == _END:
            raise self._error('Incomplete rate expression', text=self.text)
        if tok_type == 'NOTHING':
            raise self._error('The nothing-sentinel cannot be used in a rate '
                              'expression')
        raise self._error('Unexpected token in rate expression')

    def _call(self):
        start = self.pos
        name = self._next().value
        if name not in self.registry:
            end = self._matching_paren(self.pos)
            raise self._error("Unknown function '%s'" % name,
                              text=self._snippet(start, end + 1),
                              cls=UnknownFunctionError)
        self._next()  # LPAREN
        args = []
        if self._peek_type() != 'RPAREN':
            args.append(self._scalar(self._expression(), start))
            while self._peek_type() == 'COMMA':
                self._next()
                args.append(self._scalar(self._expression(), start))
        self._expect('RPAREN', 'Unbalanced parentheses in call to %s' % name)
        nargs = self.registry.arity(name)
        if len(args) != nargs:
            raise self._error('Function %s takes %d argument(s), %d given' %
                              (name, nargs, len(args)),
                              text=self._snippet(start))
        return self.registry.call(name, args)

    def _parenthesized_rate(self):
        start = self.pos
        self._next()  # LPAREN
        if self._peek_type() == 'RPAREN':
            raise self._error('Empty parentheses', text=self._snippet(
                start, self.pos + 1))
        elements = [self._tuple_element()]
        while self._peek_type() == 'COMMA':
            self._next()
            elements.append(self._tuple_element())
        if self._peek_type() != 'RPAREN':
            raise self._error('Unbalanced parentheses',
                              text=self._snippet(start, len(self.tokens)))
        self._next()
        if len(elements) == 1:
            element = elements[0]
            if isinstance(element, TupleNode):
                return element
            self._names[-1].extend(element.names)
            return element.expr
        return TupleNode(tuple(elements), self._snippet(start))

    def _tuple_element(self):
        start = self.pos
        self._names.append([])
        value = self._expression()
        names = self._names.pop()
        if isinstance(value, TupleNode):
            return value
        return RateExpr(value, _unique(names), self._snippet(start))

    # -- reactant lists ------------------------------------------------------
    def _is_nothing(self):
        tok = self._peek()
        if tok is None:
            return False
        if tok.type == 'NOTHING':
            return True
        return tok.type == 'NUMBER' and _INTEGER_REGEX.match(tok.value) \
            and int(tok.value) == 0 and \
            self._peek_type(1) not in ('ID', 'LPAREN', 'TIMES')

    def _side(self):
        if self._peek_type() in (_END, 'ARROW', 'COMMA'):
            raise self._error('Missing reactant list (use 0 or ∅ for no '
                              'reactants)', text=self.text)
        return self._side_element(allow_tuple=True)

    def _side_element(self, allow_tuple):
        start = self.pos
        if self._is_nothing():
            self._next()
            if self._peek_type() == 'PLUS':
                raise self._error("The nothing-sentinel may not be combined "
                                  "with '+'", text=self._snippet(
                                      start, self.pos + 2))
            return Side((), True, self._snippet(start))
        first = self._term(allow_tuple)
        if isinstance(first, TupleNode):
            if self._peek_type() == 'PLUS':
                raise self._error("Malformed tuple: a tuple of reactants "
                                  "cannot be combined with '+'",
                                  text=self._snippet(start, self.pos + 2))
            return first
        terms = [first]
        while self._peek_type() == 'PLUS':
            self._next()
            if self._is_nothing():
                raise self._error("The nothing-sentinel may not be combined "
                                  "with '+'", text=self._snippet(
                                      start, self.pos + 1))
            terms.append(self._term(allow_tuple=False))
        return Side(tuple(terms), False, self._snippet(start))

    def _coefficient(self):
        start = self.pos
        if self._peek_type() == 'MINUS' and self._peek_type(1) == 'NUMBER':
            self._next()
            self._next()
            raise self._error('Stoichiometric coefficient must be a positive '
                              'integer', text=self._snippet(start),
                              cls=InvalidCoefficientError)
        if self._peek_type() != 'NUMBER':
            return None
        value = self._next().value
        if not _INTEGER_REGEX.match(value) or int(value) <= 0:
            raise self._error('Stoichiometric coefficient must be a positive '
                              'integer', text=self._snippet(start),
                              cls=InvalidCoefficientError)
        if self._peek_type() == 'TIMES':
            self._next()
        return int(value)

    def _term(self, allow_tuple):
        start = self.pos
        coefficient = self._coefficient()
        tok_type = self._peek_type()
        if tok_type == 'ID':
            name = self._next().value
            if self._peek_type() == 'LPAREN':
                raise self._error('Function calls are not allowed in a '
                                  'reactant list',
                                  text=self._snippet(
                                      start, self._matching_paren(
                                          self.pos) + 1))
            return Term(coefficient or 1, name)
        if tok_type == 'LPAREN':
            self._next()
            elements = [self._side_element(allow_tuple=False)]
            while self._peek_type() == 'COMMA':
                self._next()
                elements.append(self._side_element(allow_tuple=False))
            if self._peek_type() != 'RPAREN':
                raise self._error('Unbalanced parentheses',
                                  text=self._snippet(start, len(self.tokens)))
            self._next()
            text = self._snippet(start)
            if len(elements) > 1:
                if not allow_tuple or coefficient is not None:
                    raise self._error('Malformed tuple: a tuple must make up '
                                      'the whole reactant list', text=text)
                return TupleNode(tuple(elements), text)
            element = elements[0]
            if element.nothing:
                raise self._error('The nothing-sentinel may not appear '
                                  'inside a parenthesized group', text=text)
            return Group(coefficient or 1, element.terms, text)
        if tok_type == 'NOTHING' or self._is_nothing():
            raise self._error('The nothing-sentinel may only appear alone',
                              text=self._snippet(start, self.pos + 1))
        if tok_type == _END:
            raise self._error('Incomplete reactant list', text=self.text)
        raise self._error('Expected a species name or a parenthesized group')


def _unique(names):
    seen = set()
    unique = []
    for name in names:
        if name not in seen:
            seen.add(name)
            unique.append(name)
    return tuple(unique)


def parse_reaction_line(text, line=None, registry=None):
    """
    Parse one reaction line into a :class:`ReactionLine`.

    Parameters
    ----------
    text : str
        The reaction line, e.g. ``'k, 2X + Y --> Z'``.
    line : int, optional
        Source line number, attached to any error raised.
    registry : pycrn.functions.FunctionRegistry, optional
        Functions callable from rate expressions. Defaults to
        :func:`pycrn.functions.default_registry`.

    Raises
    ------
    ReactionSyntaxError
        For any malformed input.
    InvalidCoefficientError
        For a zero, negative or non-integer stoichiometric coefficient.
    UnknownFunctionError
        For a call to a function missing from the registry.
    """
    if registry is None:
        registry = default_registry()
    return _LineParser(text, line, registry).parse()


def side_stoichiometry(side):
    """
    Flatten a Side into an ordered tuple of (name, stoichiometry) pairs.

    Group coefficients multiply into their members and repeated species are
    merged, keeping the position of their first appearance.

    >>> side_stoichiometry(parse_reaction_line('k, 2(A + B) + A --> 0')
    ...                    .substrates)
    (('A', 3), ('B', 2))
    """
    stoich = collections.OrderedDict()

    def visit(terms, multiplier):
        for term in terms:
            if isinstance(term, Group):
                visit(term.terms, multiplier * term.coefficient)
            else:
                stoich[term.name] = stoich.get(term.name, 0) + \
                    multiplier * term.coefficient

    visit(side.terms, 1)
    return tuple(stoich.items())


def side_group_members(side):
    """Names of species appearing inside a parenthesized group of a Side."""
    members = set()

    def visit(terms, in_group):
        for term in terms:
            if isinstance(term, Group):
                visit(term.terms, True)
            elif in_group:
                members.add(term.name)

    visit(side.terms, False)
    return frozenset(members)

"""
Expansion of parsed reaction lines into canonical forward reaction drafts.

One source line may stand for several elementary reactions: tuples on the
rate or either reactant list are paired positionally, and a bidirectional
arrow yields a forward and a backward reaction set. Backward arrows are
normalized by swapping substrates and products.
"""
import collections

from pycrn.arrows import classify_arrow, BIDIRECTIONAL
from pycrn.core import ConfigurationError, ReactionSyntaxError
from pycrn.parser import TupleNode, side_stoichiometry, side_group_members


class ReactionDraft(collections.namedtuple(
        'ReactionDraft', 'substrates products rate mass_action reverse '
                         'grouped line text')):
    """
    A canonical forward reaction whose identifiers are not yet resolved.

    Attributes
    ----------
    substrates, products : tuple of (str, int)
        Species names with stoichiometry, in order of first appearance.
    rate : pycrn.parser.RateExpr
        The declared rate.
    mass_action : bool
        Whether the arrow requests mass-action kinetics.
    reverse : bool
        True for the backward half of a bidirectional line.
    grouped : frozenset of str
        Species which appeared inside a parenthesized group.
    line, text : int, str
        Source position, for diagnostics.
    """
    __slots__ = ()


def expand_line(parsed):
    """
    Expand a :class:`~pycrn.parser.ReactionLine` into reaction drafts.

    Drafts are returned in tuple-index order; for a bidirectional line all
    forward drafts come first, followed by all backward drafts.

    Raises
    ------
    ConfigurationError
        If the tuples on the line have different lengths, or a bidirectional
        line's rate tuple does not have exactly two elements.
    ReactionSyntaxError
        If a nested rate tuple appears outside a bidirectional line.
    """
    arrow = classify_arrow(parsed.arrow, parsed.line)
    substrates, products = parsed.substrates, parsed.products

    if arrow.direction == BIDIRECTIONAL:
        rate = parsed.rate
        if isinstance(rate, TupleNode):
            if rate.size != 2:
                raise ConfigurationError(
                    'A bidirectional reaction takes a single rate or a '
                    '(forward, backward) pair of rates, got a tuple of '
                    'length %d' % rate.size, text=rate.text, line=parsed.line)
            forward_rate, backward_rate = rate.elements
        else:
            forward_rate = backward_rate = rate
        return _broadcast(parsed, forward_rate, substrates, products,
                          arrow.mass_action, reverse=False) + \
            _broadcast(parsed, backward_rate, products, substrates,
                       arrow.mass_action, reverse=True)

    if arrow.swap:
        substrates, products = products, substrates
    return _broadcast(parsed, parsed.rate, substrates, products,
                      arrow.mass_action, reverse=False)


def expansion_size(parsed):
    """Number of drafts :func:`expand_line` will produce for a line."""
    arrow = classify_arrow(parsed.arrow, parsed.line)
    sides = [parsed.substrates, parsed.products]
    if arrow.direction == BIDIRECTIONAL:
        if isinstance(parsed.rate, TupleNode) and parsed.rate.size == 2:
            rates = parsed.rate.elements
        else:
            rates = (parsed.rate, parsed.rate)
        return sum(_common_length([r] + sides) for r in rates)
    return _common_length([parsed.rate] + sides)


def _common_length(terms):
    lengths = [t.size for t in terms if isinstance(t, TupleNode)]
    return lengths[0] if lengths else 1


def _broadcast(parsed, rate, substrates, products, mass_action, reverse):
    terms = (rate, substrates, products)
    lengths = [t.size for t in terms if isinstance(t, TupleNode)]
    if len(set(lengths)) > 1:
        raise ConfigurationError(
            'Mismatched tuple lengths %s on reaction line' %
            ', '.join(str(n) for n in lengths),
            text=parsed.text, line=parsed.line)
    count = lengths[0] if lengths else 1

    def pick(term, i):
        return term.elements[i] if isinstance(term, TupleNode) else term

    drafts = []
    for i in range(count):
        rate_i = pick(rate, i)
        if isinstance(rate_i, TupleNode):
            raise ReactionSyntaxError(
                'Malformed tuple: nested rate tuples are only allowed as the '
                '(forward, backward) rates of a bidirectional reaction',
                text=rate_i.text, line=parsed.line)
        sub_i = pick(substrates, i)
        prod_i = pick(products, i)
        drafts.append(ReactionDraft(
            substrates=side_stoichiometry(sub_i),
            products=side_stoichiometry(prod_i),
            rate=rate_i,
            mass_action=mass_action,
            reverse=reverse,
            grouped=side_group_members(sub_i) | side_group_members(prod_i),
            line=parsed.line,
            text=parsed.text,
        ))
    return drafts

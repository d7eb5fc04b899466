"""
Classification of reaction arrow glyphs.

Every accepted arrow belongs to one of two families. "Filled" arrows declare
mass-action kinetics: the declared rate is multiplied by the combinatorial
substrate factor. "Unfilled" arrows declare a literal rate which is used
as-is. Both families come in forward, backward and bidirectional variants.

>>> classify_arrow('-->')
Arrow(glyph='-->', direction='forward', mass_action=True, swap=False)
>>> classify_arrow('⇐')
Arrow(glyph='⇐', direction='backward', mass_action=False, swap=True)
"""
import collections
import re

from pycrn.core import ReactionSyntaxError

FORWARD = 'forward'
BACKWARD = 'backward'
BIDIRECTIONAL = 'bidirectional'

Arrow = collections.namedtuple('Arrow', 'glyph direction mass_action swap')

FILLED_ARROWS = {
    FORWARD: ('-->', '->', '→', '↣', '↦', '⇾', '⟶', '⟼', '⥟', '⇀', '⇁'),
    BACKWARD: ('<--', '<-', '←', '↢', '↤', '⇽', '⟵', '⟻', '⥚', '⥞', '↼',
               '↽'),
    BIDIRECTIONAL: ('<-->', '<->', '↔', '⟷', '⇄', '⇆', '⇌', '⇋'),
}

UNFILLED_ARROWS = {
    FORWARD: ('=>', '⇒', '⟾', '⟹'),
    BACKWARD: ('<=', '⇐', '⟽', '⟸'),
    BIDIRECTIONAL: ('<=>', '⇔', '⟺'),
}


def _build_table():
    table = {}
    for mass_action, family in ((True, FILLED_ARROWS),
                                (False, UNFILLED_ARROWS)):
        for direction, glyphs in family.items():
            for glyph in glyphs:
                assert glyph not in table, 'duplicate arrow %s' % glyph
                table[glyph] = Arrow(glyph, direction, mass_action,
                                     direction == BACKWARD)
    return table


ARROWS = _build_table()

# Longest glyphs first, so '<-->' wins over '<--' and '<-'
ARROW_PATTERN = '|'.join(re.escape(g) for g in
                         sorted(ARROWS, key=len, reverse=True))


def classify_arrow(token, line=None):
    """
    Classify an arrow token.

    Parameters
    ----------
    token : str
        The arrow glyph as written in the source.
    line : int, optional
        Source line number, used in the error message.

    Returns
    -------
    Arrow
        A namedtuple of (glyph, direction, mass_action, swap). ``swap`` is
        True for backward arrows, whose substrates and products must be
        exchanged to obtain the canonical forward reaction.

    Raises
    ------
    ReactionSyntaxError
        If the glyph is not a known arrow.
    """
    try:
        return ARROWS[token]
    except (KeyError, TypeError):
        raise ReactionSyntaxError('Unknown reaction arrow', text=token,
                                  line=line)


def is_arrow(token):
    return token in ARROWS

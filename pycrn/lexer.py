"""
Tokenizer for reaction lines, built with ply.lex.

A single lexer is built at import time; :func:`tokenize` works on a clone of
it, so concurrent compiles never share lexer state.
"""
import collections
import re

from ply import lex
from ply.lex import TOKEN

from pycrn.arrows import ARROW_PATTERN
from pycrn.core import ReactionSyntaxError

NOTHING_GLYPHS = ('∅', )

_BAD_RUN_REGEX = re.compile(r'[^\w\s(),+]+')

Token = collections.namedtuple('Token', 'type value pos')


class _ReactionLexRules(object):

    tokens = (
        'ARROW',
        'NOTHING',
        'NUMBER',
        'ID',
        'POWER',
        'PLUS',
        'MINUS',
        'TIMES',
        'DIVIDE',
        'LPAREN',
        'RPAREN',
        'COMMA',
    )

    # A string containing ignored characters (spaces and tabs)
    t_ignore = ' \t'

    @TOKEN(ARROW_PATTERN)
    def t_ARROW(self, t):
        return t

    @TOKEN('|'.join(NOTHING_GLYPHS))
    def t_NOTHING(self, t):
        return t

    def t_NUMBER(self, t):
        r'(\d+\.\d*|\.\d+)([eE][-+]?\d+)?|\d+[eE][-+]?\d+|\d+'
        return t

    def t_ID(self, t):
        r'[^\W\d]\w*'
        return t

    def t_POWER(self, t):
        r'\*\*|\^'
        return t

    t_PLUS = r'\+'
    t_MINUS = r'-'
    t_TIMES = r'\*'
    t_DIVIDE = r'/'
    t_LPAREN = r'\('
    t_RPAREN = r'\)'
    t_COMMA = r','

    # Match and ignore comments (# to end of line)
    def t_comment(self, t):
        r'\#.*'

    def t_error(self, t):
        match = _BAD_RUN_REGEX.match(t.value)
        # Whitespace other than spaces and tabs is reported on its own
        bad = match.group(0) if match else t.value[0]
        raise ReactionSyntaxError(
            "Unknown reaction arrow or illegal character at position %d" %
            t.lexpos, text=bad)


_LEXER = lex.lex(module=_ReactionLexRules())


def tokenize(text, line=None):
    """
    Split one reaction line into tokens.

    Parameters
    ----------
    text : str
        The reaction line.
    line : int, optional
        Source line number, attached to any error raised.

    Returns
    -------
    list of Token
        namedtuples of (type, value, pos) where ``pos`` is the character
        offset into ``text``.
    """
    lexer = _LEXER.clone()
    lexer.input(text)
    tokens = []
    try:
        while True:
            tok = lexer.token()
            if not tok:
                break
            tokens.append(Token(tok.type, tok.value, tok.lexpos))
    except ReactionSyntaxError as e:
        raise e.at_line(line, text)
    return tokens

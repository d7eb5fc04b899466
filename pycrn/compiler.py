"""
Entry points that compile reaction-network source into a
:class:`~pycrn.network.ReactionNetwork`.

The pipeline is: split the source into lines, parse each line
(:mod:`pycrn.parser`), expand tuples and bidirectional arrows
(:mod:`pycrn.expander`), partition identifiers into species and parameters
(:mod:`pycrn.resolver`), then build the derived views
(:mod:`pycrn.network`). Any error aborts the whole compile.

Examples
--------

>>> from pycrn import compile_network
>>> rn = compile_network('''
...     p, 0 --> X      # production
...     d, X --> 0      # degradation
... ''', parameters=['p', 'd'])
>>> rn.species.names
('X',)
>>> rn.num_reactions
2
"""
import collections
import re

from pycrn.core import TooManyReactionsError, ReactionSyntaxError, \
    ConfigurationError, is_identifier
from pycrn.expander import expand_line, expansion_size
from pycrn.functions import default_registry
from pycrn.logging import get_logger, EXTENDED_DEBUG
from pycrn.network import assemble, DEFAULT_NAME
from pycrn.parser import parse_reaction_line
from pycrn.resolver import resolve
from pycrn.settings import get_setting, validate_setting

_PARAM_SEP_REGEX = re.compile(r'[\s,]+')


def _strip_comment(line):
    pos = line.find('#')
    if pos >= 0:
        line = line[:pos]
    return line.strip()


def _source_lines(reactions):
    if isinstance(reactions, str):
        return reactions.splitlines()
    lines = list(reactions)
    for line in lines:
        if not isinstance(line, str):
            raise TypeError('Reaction lines must be strings, got %r' % line)
    return lines


def _parameter_names(parameters):
    if parameters is None:
        return ()
    if isinstance(parameters, str):
        return tuple(p for p in _PARAM_SEP_REGEX.split(parameters) if p)
    return tuple(parameters)


def compile_network(reactions, parameters=(), name=None, noise_scaling=None,
                    max_reactions=None, registry=None, jacobian=None,
                    first_line=1):
    """
    Compile reaction lines into an immutable reaction network.

    Parameters
    ----------
    reactions : str or sequence of str
        Either a multi-line string with one reaction per line, or a sequence
        of reaction lines. Blank lines are ignored and ``#`` starts a
        comment running to the end of the line.
    parameters : sequence of str or str, optional
        Declared parameter names, in parameter-vector order. A string is
        split on whitespace and commas. Every other identifier is a species.
    name : str, optional
        Custom type name reported by the network (default
        ``'ReactionNetwork'``).
    noise_scaling : str, optional
        Name of a parameter which multiplies every entry of the noise
        matrix. It is always placed last in the parameter table.
    max_reactions : int, optional
        Upper bound on the number of elementary reactions after expansion.
        Defaults to the ``max_reactions`` setting.
    registry : pycrn.functions.FunctionRegistry, optional
        Functions callable from rate expressions. Defaults to
        :func:`pycrn.functions.default_registry`.
    jacobian : bool, optional
        Compute the Jacobian at compile time rather than on first access.
        Defaults to the ``jacobian`` setting. Missing derivative rules fail
        the compile either way.
    first_line : int, optional
        Line number of the first reaction line, used in error messages.

    Returns
    -------
    pycrn.network.ReactionNetwork

    Raises
    ------
    pycrn.core.CompileError
        Or one of its subclasses, for any invalid input.
    """
    if name is None:
        name = DEFAULT_NAME
    if max_reactions is None:
        max_reactions = get_setting('max_reactions')
    else:
        max_reactions = validate_setting('max_reactions', max_reactions)
    if jacobian is None:
        jacobian = get_setting('jacobian')
    else:
        jacobian = validate_setting('jacobian', jacobian)
    if registry is None:
        registry = default_registry()
    parameters = _parameter_names(parameters)

    logger = get_logger(__name__, network=name)
    lines = _source_lines(reactions)
    logger.debug('Parsing %d source line(s)', len(lines))

    parsed = []
    num_reactions = 0
    for offset, raw in enumerate(lines):
        lineno = first_line + offset
        text = _strip_comment(raw)
        if not text:
            continue
        logger.log(EXTENDED_DEBUG, 'Line %d: %s', lineno, text)
        reaction_line = parse_reaction_line(text, line=lineno,
                                            registry=registry)
        num_reactions += expansion_size(reaction_line)
        if num_reactions > max_reactions:
            raise TooManyReactionsError(
                'Expansion exceeds the maximum of %d reactions' %
                max_reactions, text=text, line=lineno)
        parsed.append(reaction_line)

    logger.debug('Expanding %d reaction line(s)', len(parsed))
    drafts = []
    for reaction_line in parsed:
        expanded = expand_line(reaction_line)
        logger.log(EXTENDED_DEBUG, 'Line %d expands to %d reaction(s)',
                   reaction_line.line, len(expanded))
        drafts.extend(expanded)

    logger.debug('Resolving species and parameters')
    species, params, reactions = resolve(drafts, parameters, noise_scaling)

    logger.debug('Assembling network')
    network = assemble(species, params, reactions, name=name,
                       jacobian=jacobian)
    logger.info('Compiled %d species, %d parameters and %d reactions',
                len(species), len(params), len(reactions))
    return network


class NetworkDefinition(collections.namedtuple(
        'NetworkDefinition', 'name noise_scaling lines parameters first_line')):
    """
    A parsed ``begin``/``end`` block, ready for compilation.

    Attributes
    ----------
    name : str or None
        Custom type name from the header line.
    noise_scaling : str or None
        Noise-scaling parameter from the header line.
    lines : tuple of str
        Reaction lines between ``begin`` and ``end``.
    parameters : tuple of str
        Parameters listed after ``end``.
    first_line : int
        Source line number of ``lines[0]``.
    """
    __slots__ = ()

    def compile(self, **kwargs):
        """Compile this definition; keyword arguments are passed to
        :func:`compile_network` and take precedence over the block's own."""
        options = dict(name=self.name, noise_scaling=self.noise_scaling,
                       parameters=self.parameters,
                       first_line=self.first_line)
        options.update(kwargs)
        return compile_network(self.lines, **options)


def parse_network_block(text):
    """
    Parse a complete network definition block.

    The block has the form::

        [TypeName [noise_param]] begin
            reaction lines ...
        end [param ...]

    where the parameters after ``end`` may be separated by whitespace or
    commas. Lines before the header and after ``end`` may only be blank or
    comments.

    Returns
    -------
    NetworkDefinition

    Raises
    ------
    ReactionSyntaxError
        If the header or ``end`` line is missing or malformed.
    ConfigurationError
        If the header names are not valid identifiers.
    """
    lines = text.splitlines()

    begin = None
    for i, raw in enumerate(lines):
        stripped = _strip_comment(raw)
        if stripped:
            begin = i
            break
    if begin is None:
        raise ReactionSyntaxError('Empty network definition')

    header = _strip_comment(lines[begin]).split()
    if header[-1] != 'begin':
        raise ReactionSyntaxError("Expected a header line ending in 'begin'",
                                  text=lines[begin].strip(), line=begin + 1)
    header = header[:-1]
    if len(header) > 2:
        raise ReactionSyntaxError('Header takes at most a type name and a '
                                  'noise-scaling parameter',
                                  text=lines[begin].strip(), line=begin + 1)
    for ident in header:
        if not is_identifier(ident):
            raise ConfigurationError('Not a valid identifier', text=ident,
                                     line=begin + 1)
    name = header[0] if header else None
    noise_scaling = header[1] if len(header) > 1 else None

    end = None
    for i in range(len(lines) - 1, begin, -1):
        stripped = _strip_comment(lines[i])
        if not stripped:
            continue
        if stripped.split()[0] != 'end':
            raise ReactionSyntaxError("Expected 'end' after the last reaction "
                                      "line", text=lines[i].strip(),
                                      line=i + 1)
        end = i
        break
    if end is None:
        raise ReactionSyntaxError("Missing 'end'", text=lines[begin].strip(),
                                  line=begin + 1)

    parameters = _parameter_names(_strip_comment(lines[end])[len('end'):])
    return NetworkDefinition(name, noise_scaling, tuple(lines[begin + 1:end]),
                             parameters, begin + 2)


def compile_block(text, **kwargs):
    """Parse a network definition block and compile it."""
    return parse_network_block(text).compile(**kwargs)

import re
import sympy
from collections.abc import Mapping, Sequence, Set


_IDENTIFIER_REGEX = re.compile(r'[^\W\d]\w*\Z')


def species_symbol(name):
    """Return the sympy symbol used for the concentration of a species."""
    return sympy.Symbol(name, real=True, nonnegative=True)


def parameter_symbol(name):
    """Return the sympy symbol used for a parameter."""
    return sympy.Symbol(name, real=True)


def is_identifier(name):
    return isinstance(name, str) and bool(_IDENTIFIER_REGEX.match(name))


class Component(object):

    """
    The base class for the named quantities of a reaction network.

    Parameters
    ----------
    name : string
        Name of the component. Must be unique within the containing network.
    index : int
        Position of the component in its canonical ordering. Every vector or
        matrix produced by the compiler uses this position.

    Attributes
    ----------
    Identical to Parameters (see above), plus ``symbol``, the sympy Symbol
    which stands for the component in rate expressions.

    """
    __slots__ = ('name', 'index', 'symbol')

    def __init__(self, name, index):
        if not is_identifier(name):
            raise InvalidComponentNameError(name)
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'index', index)
        object.__setattr__(self, 'symbol', self._make_symbol(name))

    def _make_symbol(self, name):
        raise NotImplementedError

    def __setattr__(self, key, value):
        raise AttributeError('%s is read-only' % self.__class__.__name__)

    def __eq__(self, other):
        return type(self) is type(other) and self.name == other.name and \
            self.index == other.index

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((type(self).__name__, self.name, self.index))

    def __repr__(self):
        return '%s(%s, %d)' % (self.__class__.__name__, repr(self.name),
                               self.index)

    def __str__(self):
        return self.name


class Species(Component):
    """
    A dynamic quantity (molecular count or concentration) tracked as state.

    Species are interned by the resolver in order of first appearance and
    referred to everywhere downstream by ``index``.
    """
    __slots__ = ()

    def _make_symbol(self, name):
        return species_symbol(name)


class Parameter(Component):
    """
    A named constant supplied at simulation time.

    Parameters
    ----------
    noise_scaling : bool, optional
        True for the parameter which scales the Langevin noise terms. There
        is at most one such parameter per network and it is always last.
    """
    __slots__ = ('noise_scaling',)

    def __init__(self, name, index, noise_scaling=False):
        Component.__init__(self, name, index)
        object.__setattr__(self, 'noise_scaling', noise_scaling)

    def _make_symbol(self, name):
        return parameter_symbol(name)

    def __repr__(self):
        if self.noise_scaling:
            return '%s(%s, %d, noise_scaling=True)' % (
                self.__class__.__name__, repr(self.name), self.index)
        return Component.__repr__(self)


class Reaction(object):

    """
    A canonical, one-directional elementary reaction.

    Parameters
    ----------
    substrates : sequence of (int, int)
        (species index, stoichiometry) pairs consumed by the reaction, in
        order of first appearance in the source line.
    products : sequence of (int, int)
        (species index, stoichiometry) pairs produced by the reaction.
    rate : sympy.Expr
        The declared rate, with every free variable resolved to a species or
        parameter symbol.
    mass_action : bool
        If True the rate law multiplies ``rate`` by the combinatorial
        substrate factor; otherwise ``rate`` is used as-is.
    reverse : bool, optional
        True if this is the backward half of a bidirectional source line.
    line : int, optional
        Source line number, for diagnostics only.
    text : str, optional
        Source line text, for diagnostics only.

    Notes
    -----
    Equality only considers the kinetic content (substrates, products, rate
    and mass_action), so the same reaction written with a different arrow
    glyph, or on a different line, compares equal.

    """

    __slots__ = ('substrates', 'products', 'rate', 'mass_action', 'reverse',
                 'line', 'text')

    def __init__(self, substrates, products, rate, mass_action=True,
                 reverse=False, line=None, text=None):
        for index, stoich in tuple(substrates) + tuple(products):
            if stoich <= 0:
                raise ValueError('Stoichiometry must be a positive integer, '
                                 'got %r for species %d' % (stoich, index))
        object.__setattr__(self, 'substrates', tuple(substrates))
        object.__setattr__(self, 'products', tuple(products))
        object.__setattr__(self, 'rate', sympy.sympify(rate))
        object.__setattr__(self, 'mass_action', bool(mass_action))
        object.__setattr__(self, 'reverse', bool(reverse))
        object.__setattr__(self, 'line', line)
        object.__setattr__(self, 'text', text)

    def __setattr__(self, key, value):
        raise AttributeError('Reaction is read-only')

    def net_stoichiometry(self):
        """
        Return the net change of each involved species as a dict.

        Species whose net change is zero (catalysts) are omitted.
        """
        net = {}
        for index, stoich in self.substrates:
            net[index] = net.get(index, 0) - stoich
        for index, stoich in self.products:
            net[index] = net.get(index, 0) + stoich
        return {k: v for k, v in net.items() if v != 0}

    def _key(self):
        return (self.substrates, self.products, self.rate, self.mass_action)

    def __eq__(self, other):
        return isinstance(other, Reaction) and self._key() == other._key()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return '%s(substrates=%r, products=%r, rate=%s, mass_action=%r)' % (
            self.__class__.__name__, self.substrates, self.products,
            sympy.sstr(self.rate), self.mass_action)


class ComponentSet(Set, Mapping, Sequence):
    """
    A read-only container for the Species or Parameters of a network.

    It behaves mostly like an ordered set, but components can also be retrieved
    by name *or* index by using the [] operator (like a combination of a dict
    and a list). The contents are fixed at construction.

    Parameters
    ----------
    iterable : iterable of Components, optional
        Contents of the set, in canonical order.

    """

    def __init__(self, iterable=None):
        self._elements = []
        self._map = {}
        if iterable is not None:
            for value in iterable:
                self._add(value)

    def _add(self, c):
        if c.name in self._map:
            raise ComponentDuplicateNameError(
                "Tried to add a component with a duplicate name: %s"
                % c.name)
        self._elements.append(c)
        self._map[c.name] = c

    def __iter__(self):
        return iter(self._elements)

    def __contains__(self, c):
        if isinstance(c, str):
            return c in self._map
        if not isinstance(c, Component):
            raise TypeError("Can only work with Components, got a %s" % type(c))
        return c.name in self._map and self[c.name] == c

    def __len__(self):
        return len(self._elements)

    def __getitem__(self, key):
        # Must support both Sequence and Mapping behavior. Component names
        # can never look like integers, so there is no ambiguity.
        if isinstance(key, (int, slice)):
            return self._elements[key]
        else:
            return self._map[key]

    def __eq__(self, other):
        if not isinstance(other, ComponentSet):
            return NotImplemented
        return self._elements == other._elements

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(tuple(self._elements))

    def get(self, key, default=None):
        if isinstance(key, int):
            raise ValueError("get is undefined for integer arguments, use []"
                             "instead")
        try:
            return self[key]
        except KeyError:
            return default

    def index(self, c):
        if isinstance(c, str):
            return self._map[c].index
        return self._map[c.name].index

    def keys(self):
        return [c.name for c in self._elements]

    def values(self):
        return list(self._elements)

    def items(self):
        return [(c.name, c) for c in self._elements]

    @property
    def names(self):
        return tuple(c.name for c in self._elements)

    @property
    def symbols(self):
        return tuple(c.symbol for c in self._elements)

    def __repr__(self):
        return '{' + \
            ',\n '.join('%s' % repr(c) for c in self) + \
            '}'


class CompileError(ValueError):
    """
    Base class for every error raised while compiling a reaction network.

    Parameters
    ----------
    reason : str
        Human-readable description of the problem.
    text : str, optional
        The offending source substring or line.
    line : int, optional
        1-based source line number.
    """
    def __init__(self, reason, text=None, line=None):
        self.reason = reason
        self.text = text
        self.line = line
        ValueError.__init__(self, self._format())

    def _format(self):
        msg = self.reason
        if self.text is not None:
            msg = "%s: '%s'" % (msg, self.text)
        if self.line is not None:
            msg = 'line %d: %s' % (self.line, msg)
        return msg

    def at_line(self, line, text=None):
        """Attach source position information, if not already present."""
        if self.line is None:
            self.line = line
        if self.text is None:
            self.text = text
        self.args = (self._format(), )
        return self

    def __str__(self):
        return self._format()


class ReactionSyntaxError(CompileError):
    """Malformed reaction line, unknown arrow or unbalanced grouping."""
    pass


ParseError = ReactionSyntaxError


class NameConflictError(CompileError):
    """An identifier is used both as a parameter and as a species."""
    pass


class ConfigurationError(CompileError):
    """Mismatched tuple lengths, bad coefficients or limits exceeded."""
    pass


class InvalidCoefficientError(ReactionSyntaxError, ConfigurationError):
    """Stoichiometric coefficient is not a positive integer."""
    pass


class TooManyReactionsError(ConfigurationError):
    """Expansion produced more reactions than the configured maximum."""
    pass


class UnknownFunctionError(CompileError):
    """A rate expression calls a function missing from the registry."""
    pass


class DifferentiationError(CompileError):
    """A registered function has no derivative rule."""
    pass


class InvalidComponentNameError(ValueError):
    """Inappropriate component name."""
    def __init__(self, name):
        ValueError.__init__(self, "Not a valid component name: '%s'" % name)


class ComponentDuplicateNameError(ValueError):
    """A component was added with the same name as an existing one."""
    pass

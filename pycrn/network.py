"""
The compiled reaction network and the views derived from it.

:func:`assemble` turns the resolved species, parameters and reactions into a
:class:`ReactionNetwork`, which holds:

* the integer stoichiometry matrix S (species x reactions),
* the deterministic rate of change of every species, sum_j S[i, j] * v_j,
* the chemical Langevin noise matrix G[i, j] = S[i, j] * sqrt(v_j), scaled
  by the noise-scaling parameter if one is configured,
* the jump propensities, each paired with its reaction's net stoichiometry,
* the Jacobian of the deterministic rates of change with respect to the
  species.

Solvers should depend on :class:`NetworkInterface` rather than on the
concrete class; :class:`NetworkView` wraps any network by composition.
"""
import abc
import collections

import networkx as nx
import numpy as np
import scipy.sparse
import sympy

from pycrn.functions import RegisteredFunction
from pycrn.logging import get_logger, EXTENDED_DEBUG
from pycrn.ratelaws import reaction_rate, reaction_propensity

DEFAULT_NAME = 'ReactionNetwork'


class JumpPropensity(collections.namedtuple(
        'JumpPropensity', 'propensity net_stoichiometry')):
    """
    A reaction channel for discrete stochastic simulation.

    Attributes
    ----------
    propensity : sympy.Expr
        Falling-factorial form of the reaction rate.
    net_stoichiometry : tuple of (int, int)
        (species index, net change) pairs, sorted by species index and
        omitting species whose net change is zero.
    """
    __slots__ = ()


class NetworkInterface(abc.ABC):
    """
    The capabilities a compiled network offers to its consumers.
    """

    @property
    @abc.abstractmethod
    def name(self):
        """Custom type name of the network."""

    @property
    @abc.abstractmethod
    def species(self):
        """ComponentSet of Species, in state-vector order."""

    @property
    @abc.abstractmethod
    def parameters(self):
        """ComponentSet of Parameters, in parameter-vector order."""

    @property
    @abc.abstractmethod
    def reactions(self):
        """Tuple of canonical forward Reactions."""

    @property
    @abc.abstractmethod
    def stoichiometry_matrix(self):
        """Read-only integer numpy array of shape (species, reactions)."""

    @property
    @abc.abstractmethod
    def odes(self):
        """Tuple with the deterministic rate of change of each species."""

    @property
    @abc.abstractmethod
    def noise_matrix(self):
        """sympy ImmutableMatrix of Langevin noise terms."""

    @property
    @abc.abstractmethod
    def jump_propensities(self):
        """
        Tuple of JumpPropensity, one per reaction.

        Each net stoichiometry is sparse: (species index, change) pairs
        without the zero entries. The dense vector of reaction j is
        ``stoichiometry_matrix[:, j]``.
        """

    @property
    @abc.abstractmethod
    def jacobian(self):
        """sympy ImmutableMatrix d(odes)/d(species)."""


class ReactionNetwork(NetworkInterface):

    """
    An immutable, fully resolved reaction network.

    Instances are created by :func:`assemble` (usually via
    :func:`pycrn.compile_network`) and are never modified afterwards, so
    they may be shared between threads without synchronization.

    Attributes
    ----------
    name : str
        Custom type name reported by the network.
    species : ComponentSet of Species
        State-vector layout.
    parameters : ComponentSet of Parameters
        Parameter-vector layout; the noise-scaling parameter, if any, is
        last.
    reactions : tuple of Reaction
        Canonical forward reactions.
    rates : tuple of sympy.Expr
        Continuous rate of each reaction.
    propensities : tuple of sympy.Expr
        Discrete propensity of each reaction.
    odes, noise_matrix, jump_propensities, jacobian, stoichiometry_matrix
        See :class:`NetworkInterface`.

    """

    def __init__(self, name, species, parameters, reactions, rates,
                 propensities, stoichiometry, odes, noise_matrix,
                 jacobian=None):
        self._name = name
        self._species = species
        self._parameters = parameters
        self._reactions = tuple(reactions)
        self._rates = tuple(rates)
        self._propensities = tuple(propensities)
        self._stoichiometry = stoichiometry
        self._odes = tuple(odes)
        self._noise_matrix = noise_matrix
        self._jacobian = jacobian
        self._jump_propensities = tuple(
            JumpPropensity(p, tuple(sorted(r.net_stoichiometry().items())))
            for p, r in zip(self._propensities, self._reactions))

    @property
    def name(self):
        return self._name

    @property
    def species(self):
        return self._species

    @property
    def parameters(self):
        return self._parameters

    @property
    def reactions(self):
        return self._reactions

    @property
    def rates(self):
        return self._rates

    @property
    def propensities(self):
        return self._propensities

    @property
    def stoichiometry_matrix(self):
        return self._stoichiometry

    @property
    def stoichiometry_matrix_sparse(self):
        """A scipy CSR copy of the stoichiometry matrix."""
        return scipy.sparse.csr_matrix(self._stoichiometry)

    @property
    def odes(self):
        return self._odes

    @property
    def noise_matrix(self):
        return self._noise_matrix

    @property
    def jump_propensities(self):
        return self._jump_propensities

    @property
    def jacobian(self):
        if self._jacobian is None:
            self._jacobian = compute_jacobian(self._odes, self.species_symbols)
        return self._jacobian

    @property
    def species_symbols(self):
        return self._species.symbols

    @property
    def parameter_symbols(self):
        return self._parameters.symbols

    @property
    def noise_scaling(self):
        """The noise-scaling Parameter, or None."""
        if len(self._parameters) and self._parameters[-1].noise_scaling:
            return self._parameters[-1]
        return None

    @property
    def num_species(self):
        return len(self._species)

    @property
    def num_reactions(self):
        return len(self._reactions)

    def is_mass_action(self, reaction_index):
        return self._reactions[reaction_index].mass_action

    def reaction_graph(self):
        """
        Bipartite graph of species and reactions.

        Species nodes are named after the species and carry ``bipartite=0``;
        reaction nodes are ``'R0'``, ``'R1'``, ... and carry ``bipartite=1``.
        Edges run from each substrate to its reaction and from each reaction
        to its products, with a ``stoichiometry`` attribute.

        Returns
        -------
        networkx.DiGraph
        """
        graph = nx.DiGraph(name=self._name)
        for sp in self._species:
            graph.add_node(sp.name, bipartite=0, index=sp.index)
        for j, reaction in enumerate(self._reactions):
            rnode = 'R%d' % j
            graph.add_node(rnode, bipartite=1, index=j,
                           mass_action=reaction.mass_action)
            for index, n in reaction.substrates:
                graph.add_edge(self._species[index].name, rnode,
                               stoichiometry=n)
            for index, n in reaction.products:
                graph.add_edge(rnode, self._species[index].name,
                               stoichiometry=n)
        return graph

    def dependency_graph(self):
        """
        Reaction dependency graph for jump simulation.

        There is an edge i -> j whenever firing reaction i changes the
        amount of a species on which the propensity of reaction j depends,
        so only the propensities of successors need updating after a jump.

        Returns
        -------
        networkx.DiGraph
            Nodes are reaction indices.
        """
        symbol_index = {s.symbol: s.index for s in self._species}
        depends = [
            set(symbol_index[x] for x in p.free_symbols if x in symbol_index)
            for p in self._propensities
        ]
        graph = nx.DiGraph(name=self._name)
        graph.add_nodes_from(range(len(self._reactions)))
        for i, jump in enumerate(self._jump_propensities):
            changed = set(index for index, _ in jump.net_stoichiometry)
            for j, dep in enumerate(depends):
                if changed & dep:
                    graph.add_edge(i, j)
        return graph

    def _key(self):
        return (self._name, self._species, self._parameters, self._reactions)

    def __eq__(self, other):
        if not isinstance(other, ReactionNetwork):
            return NotImplemented
        return self._key() == other._key()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return ("<%s '%s' (species: %d, parameters: %d, reactions: %d) "
                "at 0x%x>" % (self.__class__.__name__, self._name,
                              len(self._species), len(self._parameters),
                              len(self._reactions), id(self)))


class NetworkView(NetworkInterface):
    """
    Wrap a network under a different name.

    Every capability is delegated to the wrapped network; attributes not
    part of :class:`NetworkInterface` are forwarded as well.
    """

    def __init__(self, network, name):
        self._network = network
        self._name = name

    @property
    def network(self):
        return self._network

    @property
    def name(self):
        return self._name

    @property
    def species(self):
        return self._network.species

    @property
    def parameters(self):
        return self._network.parameters

    @property
    def reactions(self):
        return self._network.reactions

    @property
    def stoichiometry_matrix(self):
        return self._network.stoichiometry_matrix

    @property
    def odes(self):
        return self._network.odes

    @property
    def noise_matrix(self):
        return self._network.noise_matrix

    @property
    def jump_propensities(self):
        return self._network.jump_propensities

    @property
    def jacobian(self):
        return self._network.jacobian

    def __getattr__(self, item):
        if item.startswith('_'):
            raise AttributeError(item)
        return getattr(self._network, item)

    def __repr__(self):
        return "<%s '%s' of %r>" % (self.__class__.__name__, self._name,
                                   self._network)


def stoichiometry_matrix(num_species, reactions):
    """Net stoichiometry (products - substrates) as a read-only array."""
    sm = np.zeros((num_species, len(reactions)), dtype=np.int64)
    for j, reaction in enumerate(reactions):
        for index, n in reaction.substrates:
            sm[index, j] -= n
        for index, n in reaction.products:
            sm[index, j] += n
    sm.setflags(write=False)
    return sm


def rates_of_change(stoichiometry, rates):
    """Deterministic rate of change of each species, sum_j S[i, j] * v_j."""
    odes = []
    for row in stoichiometry:
        terms = [sympy.Integer(int(s)) * rates[j]
                 for j, s in enumerate(row) if s != 0]
        odes.append(sympy.Add(*terms))
    return odes


def langevin_noise(stoichiometry, rates, noise_scaling=None):
    """Noise matrix G[i, j] = S[i, j] * sqrt(v_j) (times the scaling)."""
    n, m = stoichiometry.shape
    roots = [sympy.sqrt(v) for v in rates]
    scale = noise_scaling if noise_scaling is not None else sympy.Integer(1)
    entries = [scale * sympy.Integer(int(stoichiometry[i, j])) * roots[j]
               for i in range(n) for j in range(m)]
    return sympy.ImmutableMatrix(n, m, entries)


def compute_jacobian(odes, species_symbols):
    """
    Jacobian of the rates of change with respect to the species.

    Raises
    ------
    DifferentiationError
        If a registered function without a derivative rule has to be
        differentiated.
    """
    n = len(species_symbols)
    return sympy.ImmutableMatrix(n, n, [ode.diff(x) for ode in odes
                                        for x in species_symbols])


def check_derivatives(odes, species_symbols):
    """
    Check that the Jacobian of ``odes`` can be built, without building it.

    Every registered function whose arguments depend on a species must have
    a derivative rule or a closed form.

    Raises
    ------
    DifferentiationError
        Naming the first function call that cannot be differentiated.
    """
    species_symbols = set(species_symbols)
    for ode in odes:
        for call in ode.atoms(RegisteredFunction):
            if call.has_derivative():
                continue
            for argindex, arg in enumerate(call.args, 1):
                if arg.free_symbols & species_symbols:
                    call.fdiff(argindex)


def assemble(species, parameters, reactions, name=None, jacobian=True):
    """
    Build a :class:`ReactionNetwork` from resolved components.

    Parameters
    ----------
    species, parameters : ComponentSet
        As returned by :func:`pycrn.resolver.resolve`.
    reactions : sequence of Reaction
        Canonical forward reactions.
    name : str, optional
        Custom type name. Defaults to ``'ReactionNetwork'``.
    jacobian : bool, optional
        Compute the Jacobian now (default). If False it is computed on first
        access, but every derivative it needs is still checked here.

    Raises
    ------
    DifferentiationError
        If a registered function without a derivative rule or closed form
        has to be differentiated with respect to a species.
    """
    if name is None:
        name = DEFAULT_NAME
    logger = get_logger(__name__, network=name)
    symbols = species.symbols

    rates = [reaction_rate(r, symbols) for r in reactions]
    propensities = [reaction_propensity(r, symbols) for r in reactions]
    for j, (rate, prop) in enumerate(zip(rates, propensities)):
        logger.log(EXTENDED_DEBUG, 'Reaction %d rate: %s, propensity: %s',
                   j, rate, prop)

    sm = stoichiometry_matrix(len(species), reactions)
    odes = rates_of_change(sm, rates)

    noise_param = None
    if len(parameters) and parameters[-1].noise_scaling:
        noise_param = parameters[-1].symbol
    noise = langevin_noise(sm, rates, noise_param)

    jac = None
    if jacobian:
        logger.debug('Computing Jacobian matrix')
        jac = compute_jacobian(odes, symbols)
    else:
        logger.debug('Checking derivatives, Jacobian deferred')
        check_derivatives(odes, symbols)

    return ReactionNetwork(name, species, parameters, reactions, rates,
                           propensities, sm, odes, noise, jac)

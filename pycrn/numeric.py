"""
Numeric callables built from a compiled network with ``sympy.lambdify``.

These are conveniences for solver authors; no integration is performed here.
State vectors ``y`` and parameter vectors ``p`` are 1-D numpy arrays laid out
in ``network.species`` and ``network.parameters`` order.
"""
import numpy as np
import sympy

from pycrn.functions import expand_registered
from pycrn.logging import get_logger


class NetworkFunctions(object):
    """
    Lazily constructed numeric functions for a network.

    Parameters
    ----------
    network : pycrn.network.NetworkInterface
        The compiled network.

    Examples
    --------

    >>> from pycrn import compile_network
    >>> rn = compile_network('k, X --> 0', parameters=['k'])
    >>> f = NetworkFunctions(rn)
    >>> f.rhs(0.0, np.array([2.0]), np.array([0.5]))
    array([-1.])
    """

    def __init__(self, network):
        self.network = network
        self._logger = get_logger(__name__, network=network)
        self.y = sympy.MatrixSymbol('y', len(network.species), 1)
        self.p = sympy.MatrixSymbol('p', len(network.parameters), 1)
        self._subs = {s.symbol: self.y[s.index, 0] for s in network.species}
        self._subs.update(
            {p.symbol: self.p[p.index, 0] for p in network.parameters})
        self._odes_fn = None
        self._jacobian_fn = None
        self._noise_fn = None
        self._propensities_fn = None

    def _prepare(self, exprs):
        return sympy.Matrix([expand_registered(sympy.sympify(e))
                             .xreplace(self._subs) for e in exprs])

    def _prepare_matrix(self, matrix):
        return sympy.Matrix(matrix.shape[0], matrix.shape[1], [
            expand_registered(e).xreplace(self._subs) for e in matrix])

    def _call(self, fn, y, p):
        y = np.asarray(y, dtype=float)[:, None]
        p = np.asarray(p, dtype=float)[:, None]
        return np.array(fn(y, p), dtype=float)

    @property
    def odes_fn(self):
        if self._odes_fn is None:
            self._logger.debug('Constructing rhs function')
            self._odes_fn = sympy.lambdify(
                [self.y, self.p], self._prepare(self.network.odes))
        return self._odes_fn

    @property
    def jacobian_fn(self):
        if self._jacobian_fn is None:
            self._logger.debug('Constructing jacobian function')
            self._jacobian_fn = sympy.lambdify(
                [self.y, self.p], self._prepare_matrix(self.network.jacobian))
        return self._jacobian_fn

    @property
    def noise_fn(self):
        if self._noise_fn is None:
            self._logger.debug('Constructing noise function')
            self._noise_fn = sympy.lambdify(
                [self.y, self.p],
                self._prepare_matrix(self.network.noise_matrix))
        return self._noise_fn

    @property
    def propensities_fn(self):
        if self._propensities_fn is None:
            self._logger.debug('Constructing propensity function')
            self._propensities_fn = sympy.lambdify(
                [self.y, self.p], self._prepare(
                    [j.propensity for j in self.network.jump_propensities]))
        return self._propensities_fn

    def rhs(self, t, y, p):
        """Deterministic rates of change, shape (species, )."""
        return self._call(self.odes_fn, y, p).reshape(-1)

    def jacobian(self, t, y, p):
        """Jacobian of :meth:`rhs`, shape (species, species)."""
        return self._call(self.jacobian_fn, y, p).reshape(
            len(self.network.species), len(self.network.species))

    def noise(self, t, y, p):
        """Langevin noise matrix, shape (species, reactions)."""
        return self._call(self.noise_fn, y, p).reshape(
            len(self.network.species), len(self.network.reactions))

    def propensities(self, y, p):
        """Jump propensities, shape (reactions, )."""
        return self._call(self.propensities_fn, y, p).reshape(-1)

import numpy as np
import pytest
import sympy

from pycrn import compile_network
from pycrn.core import DifferentiationError, species_symbol, \
    parameter_symbol
from pycrn.functions import default_registry
from pycrn.network import NetworkInterface, NetworkView, ReactionNetwork
from pycrn.testing import assert_expr_equal

k, k1, k2 = (parameter_symbol(name) for name in ('k', 'k1', 'k2'))
A, B, C = (species_symbol(name) for name in 'ABC')


def _catalysis():
    return compile_network('k, E + S --> E + P', ['k'])


def test_stoichiometry_matrix():
    rn = compile_network('''
        k1, 2A + B --> C
        k2, C --> A
    ''', ['k1', 'k2'])
    sm = rn.stoichiometry_matrix
    assert sm.shape == (3, 2)
    assert sm.dtype.kind == 'i'
    np.testing.assert_array_equal(sm, [[-2, 1], [-1, 0], [1, -1]])
    np.testing.assert_array_equal(rn.stoichiometry_matrix_sparse.toarray(),
                                  sm)
    with pytest.raises(ValueError):
        sm[0, 0] = 5


def test_catalyst_net_zero():
    rn = _catalysis()
    np.testing.assert_array_equal(rn.stoichiometry_matrix[:, 0], [0, -1, 1])
    assert rn.odes[0] == 0
    e, s = rn.species_symbols[:2]
    # the catalyst still appears in the rate
    assert rn.rates[0] == k * e * s
    assert rn.jump_propensities[0].net_stoichiometry == ((1, -1), (2, 1))


def test_jump_stoichiometry_matches_matrix():
    rn = compile_network('(k1, k2), E + S <--> ES\nk3, ES --> E + P',
                         ['k1', 'k2', 'k3'])
    for j, jump in enumerate(rn.jump_propensities):
        dense = np.zeros(rn.num_species, dtype=int)
        for index, change in jump.net_stoichiometry:
            assert change != 0
            dense[index] = change
        np.testing.assert_array_equal(dense, rn.stoichiometry_matrix[:, j])


def test_odes():
    rn = compile_network('k1, A + B --> C', ['k1'])
    assert rn.odes == (-k1 * A * B, -k1 * A * B, k1 * A * B)


def test_noise_matrix():
    rn = compile_network(['k1, A --> B', 'k2, B --> 0'], ['k1', 'k2'])
    g = rn.noise_matrix
    assert isinstance(g, sympy.ImmutableMatrix)
    assert g.shape == (2, 2)
    assert g[0, 0] == -sympy.sqrt(k1 * A)
    assert g[1, 0] == sympy.sqrt(k1 * A)
    assert g[0, 1] == 0
    assert g[1, 1] == -sympy.sqrt(k2 * B)
    assert rn.noise_scaling is None


def test_jump_propensities():
    rn = compile_network('k, 2A --> B', ['k'])
    jump = rn.jump_propensities[0]
    assert_expr_equal(jump.propensity, 'k*A*(A - 1)/2')
    assert jump.net_stoichiometry == ((0, -2), (1, 1))
    assert rn.propensities == (jump.propensity, )


def test_jacobian():
    rn = compile_network('k, 2A --> 0', ['k'])
    assert rn.odes == (-k * A ** 2, )
    assert rn.jacobian == sympy.ImmutableMatrix([[-2 * k * A]])


def test_jacobian_shape():
    rn = compile_network(['k1, A + B --> C', 'k2, C --> A + B'],
                         ['k1', 'k2'])
    jac = rn.jacobian
    assert jac.shape == (3, 3)
    assert jac[0, 0] == -k1 * B
    assert jac[0, 2] == k2
    assert jac[2, 1] == k1 * A


def test_lazy_jacobian():
    rn = compile_network('k, 2A --> 0', ['k'], jacobian=False)
    assert rn._jacobian is None
    assert rn.jacobian == sympy.ImmutableMatrix([[-2 * k * A]])
    assert rn._jacobian is not None


def test_missing_derivative_fails_compile():
    registry = default_registry()
    registry.register('g', 1)
    with pytest.raises(DifferentiationError):
        compile_network('g(A), A --> 0', registry=registry)
    with pytest.raises(DifferentiationError):
        compile_network('g(A), A --> 0', registry=registry, jacobian=False)


def test_missing_derivative_of_constant_argument():
    registry = default_registry()
    registry.register('g', 1)
    # g(k) does not depend on a species, so it is never differentiated
    rn = compile_network('g(k), A --> 0', ['k'], registry=registry,
                         jacobian=False)
    assert rn.jacobian[0, 0] == -rn.rates[0] / A


def test_registered_function_in_jacobian():
    rn = compile_network('mm(A, v, K), 0 --> B', ['v', 'K'])
    assert rn.species.names == ('A', 'B')
    v, kk = rn.parameter_symbols
    assert_expr_equal(rn.jacobian[1, 0], v * kk / (A + kk) ** 2)
    assert rn.jacobian[0, 0] == 0


def test_reaction_graph():
    graph = _catalysis().reaction_graph()
    assert graph.nodes['E']['bipartite'] == 0
    assert graph.nodes['R0']['bipartite'] == 1
    assert set(graph.edges()) == {('E', 'R0'), ('S', 'R0'), ('R0', 'E'),
                                  ('R0', 'P')}
    assert graph.edges['S', 'R0']['stoichiometry'] == 1


def test_reaction_graph_stoichiometry():
    graph = compile_network('k, 2A --> 3B', ['k']).reaction_graph()
    assert graph.edges['A', 'R0']['stoichiometry'] == 2
    assert graph.edges['R0', 'B']['stoichiometry'] == 3


def test_dependency_graph():
    rn = compile_network(['k1, A --> B', 'k2, B --> C'], ['k1', 'k2'])
    graph = rn.dependency_graph()
    assert set(graph.nodes()) == {0, 1}
    assert set(graph.edges()) == {(0, 0), (0, 1), (1, 1)}


def test_dependency_graph_catalyst():
    # firing does not change E, so nothing depending only on E is updated
    rn = compile_network(['k, E + S --> E + P', 'k, E --> F'], ['k'])
    graph = rn.dependency_graph()
    assert (0, 1) not in graph.edges()
    assert (1, 0) in graph.edges()


def test_network_view():
    rn = _catalysis()
    view = NetworkView(rn, 'Enzyme')
    assert isinstance(view, NetworkInterface)
    assert view.name == 'Enzyme'
    assert rn.name == 'ReactionNetwork'
    assert view.species is rn.species
    assert view.odes is rn.odes
    assert view.jacobian is rn.jacobian
    assert view.num_species == 3
    assert view.network is rn
    with pytest.raises(AttributeError):
        view._stoichiometry


def test_interface_is_abstract():
    with pytest.raises(TypeError):
        NetworkInterface()


def test_structural_equality():
    rn1 = compile_network('k, A --> B', ['k'])
    rn2 = compile_network('k, A → B', ['k'])
    assert rn1 == rn2
    assert hash(rn1) == hash(rn2)
    assert rn1 != compile_network('k, A --> B', ['k'], name='Other')
    assert rn1 != compile_network('k, A ⇒ B', ['k'])


def test_read_only():
    rn = _catalysis()
    with pytest.raises(AttributeError):
        rn.name = 'Other'
    with pytest.raises(AttributeError):
        rn.reactions[0].rate = k
    assert isinstance(rn, ReactionNetwork)
    assert rn.num_reactions == 1
    assert rn.is_mass_action(0)

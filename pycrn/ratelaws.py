"""
Rate laws derived from the declared rate of each reaction.

For a mass-action reaction with substrate stoichiometry {s_i: n_i} and
declared rate k:

* the continuous rate (used for the ODEs and the Langevin noise) is
  ``k * prod(s_i**n_i / n_i!)``;
* the discrete propensity (used for jump simulation) is
  ``k * prod(s_i * (s_i - 1) * ... * (s_i - n_i + 1) / n_i!)``.

A reaction declared with an unfilled arrow uses its declared rate, unchanged,
for both.
"""
import math

import sympy


def _compute_stat_factor(substrates):
    stat_factor = sympy.Integer(1)
    for _, count in substrates:
        stat_factor /= math.factorial(count)
    return stat_factor


def mass_action_rate(rate, substrates, species_symbols):
    """
    Continuous mass-action rate.

    Parameters
    ----------
    rate : sympy.Expr
        The declared rate.
    substrates : sequence of (int, int)
        (species index, stoichiometry) pairs.
    species_symbols : sequence of sympy.Symbol
        Species symbols in canonical order.
    """
    factors = [species_symbols[index] ** n for index, n in substrates]
    return rate * _compute_stat_factor(substrates) * sympy.Mul(*factors)


def mass_action_propensity(rate, substrates, species_symbols):
    """Discrete (falling-factorial) mass-action propensity."""
    factors = []
    for index, n in substrates:
        x = species_symbols[index]
        factors.extend(x - i for i in range(n))
    return rate * _compute_stat_factor(substrates) * sympy.Mul(*factors)


def reaction_rate(reaction, species_symbols):
    """Continuous rate of a :class:`~pycrn.core.Reaction`."""
    if not reaction.mass_action:
        return reaction.rate
    return mass_action_rate(reaction.rate, reaction.substrates,
                            species_symbols)


def reaction_propensity(reaction, species_symbols):
    """Jump propensity of a :class:`~pycrn.core.Reaction`."""
    if not reaction.mass_action:
        return reaction.rate
    return mass_action_propensity(reaction.rate, reaction.substrates,
                                  species_symbols)

"""
Partitioning of identifiers into species and parameters.
"""
import itertools

import sympy

from pycrn.core import ComponentSet, Species, Parameter, Reaction, \
    NameConflictError, ConfigurationError, is_identifier


def parameter_table(parameters, noise_scaling=None):
    """
    Build the Parameter table from the declared names.

    The noise-scaling parameter, if any, is always placed last, even when it
    also appears in ``parameters``.

    Raises
    ------
    NameConflictError
        If a parameter is declared twice.
    ConfigurationError
        If a name is not a valid identifier.
    """
    names = []
    for name in parameters:
        if not is_identifier(name):
            raise ConfigurationError('Not a valid parameter name', text=name)
        if name in names:
            raise NameConflictError('Parameter declared more than once',
                                    text=name)
        names.append(name)
    if noise_scaling is not None:
        if not is_identifier(noise_scaling):
            raise ConfigurationError('Not a valid noise-scaling parameter '
                                     'name', text=noise_scaling)
        if noise_scaling in names:
            names.remove(noise_scaling)
    table = [Parameter(name, i) for i, name in enumerate(names)]
    if noise_scaling is not None:
        table.append(Parameter(noise_scaling, len(table), noise_scaling=True))
    return ComponentSet(table)


def resolve(drafts, parameters=(), noise_scaling=None):
    """
    Resolve reaction drafts against the declared parameters.

    Parameters
    ----------
    drafts : sequence of pycrn.expander.ReactionDraft
        Canonical forward drafts in emission order.
    parameters : sequence of str
        Declared parameter names, in declaration order.
    noise_scaling : str, optional
        Name of the noise-scaling parameter.

    Returns
    -------
    (species, parameters, reactions)
        Two ComponentSets and a tuple of :class:`~pycrn.core.Reaction`.
        Species are indexed in order of first appearance. Within each
        source line the free variables of every rate come first, then the
        substrates and products of each expanded reaction in turn.

    Raises
    ------
    NameConflictError
        If a parameter (or the noise-scaling parameter) is used as a
        substrate or product, if the noise-scaling parameter is used in a
        rate expression, or if a rate expression refers to a species which
        also appears inside a parenthesized group on the same line.
    """
    params = parameter_table(parameters, noise_scaling)
    declared = set(p.name for p in params if not p.noise_scaling)

    species_names = []
    seen = set()

    def add_species(name):
        if name not in seen:
            seen.add(name)
            species_names.append(name)

    # Drafts expanded from one source line are contiguous. The free
    # variables of all their rates are indexed before any of their reactants.
    for _, line_drafts in itertools.groupby(
            drafts, key=lambda d: (d.line, d.text)):
        line_drafts = list(line_drafts)
        for draft in line_drafts:
            for name in draft.rate.names:
                if name == noise_scaling:
                    raise NameConflictError(
                        'Noise-scaling parameter %s cannot be used in a rate '
                        'expression' % name, text=draft.rate.text,
                        line=draft.line)
                if name in declared:
                    continue
                if name in draft.grouped:
                    raise NameConflictError(
                        'Rate expression refers to %s, which also appears '
                        'inside a parenthesized group on the same line' %
                        name, text=draft.text, line=draft.line)
                add_species(name)
        for draft in line_drafts:
            for name, _ in draft.substrates + draft.products:
                if name in declared or name == noise_scaling:
                    raise NameConflictError(
                        '%s is declared as a parameter but used as a species'
                        % name, text=draft.text, line=draft.line)
                add_species(name)

    species = ComponentSet(Species(name, i)
                           for i, name in enumerate(species_names))

    subs = {sympy.Symbol(p.name): p.symbol for p in params}
    subs.update({sympy.Symbol(s.name): s.symbol for s in species})

    reactions = tuple(
        Reaction(
            substrates=tuple((species.index(name), n)
                             for name, n in draft.substrates),
            products=tuple((species.index(name), n)
                           for name, n in draft.products),
            rate=draft.rate.expr.xreplace(subs),
            mass_action=draft.mass_action,
            reverse=draft.reverse,
            line=draft.line,
            text=draft.text,
        )
        for draft in drafts
    )
    return species, params, reactions

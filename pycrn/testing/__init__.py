import sympy


def _by_name(expr, values):
    """Map names in ``values`` onto the matching free symbols of expr."""
    symbols = {s.name: s for s in expr.free_symbols}
    return {symbols[name]: value for name, value in values.items()
            if name in symbols}


def _plain(expr):
    expr = sympy.sympify(expr)
    return expr.xreplace({s: sympy.Symbol(s.name) for s in expr.free_symbols
                          if isinstance(s, sympy.Symbol)})


def evaluate(expr, **values):
    """Substitute sample values by symbol name and return a float.

    Names absent from the expression are ignored, so the same sample point
    may be used for every expression of a network.
    """
    expr = sympy.sympify(expr)
    result = expr.subs(_by_name(expr, values))
    return float(sympy.N(result))


def assert_expr_equal(actual, expected):
    """Assert that two expressions are symbolically equal.

    Symbols are compared by name, ignoring assumptions, so ``expected`` may
    be written with plain ``sympy.Symbol`` objects or as a string (avoid
    names such as ``E``, ``I`` or ``S`` which sympy parses as constants).
    """
    diff = sympy.simplify(_plain(actual) - _plain(expected))
    assert diff == 0, "%s != %s (difference %s)" % (actual, expected, diff)

"""
Registry of the named functions that may be called inside rate expressions.

Rate expressions are sympy expressions, so a registered function is a sympy
``Function`` subclass. Each one carries its arity, and optionally a closed
form (used for numeric evaluation and, by default, for differentiation) and
an explicit derivative rule. Differentiating a function that has neither
raises :class:`~pycrn.core.DifferentiationError`.

The default registry provides the Hill and Michaelis-Menten saturation
functions and their repressive variants::

    hill(X, v, K, n)  = v * X**n / (K**n + X**n)
    hillr(X, v, K, n) = v * K**n / (K**n + X**n)
    mm(X, v, K)       = v * X / (X + K)
    mmr(X, v, K)      = v * K / (X + K)

and the elementary functions exp, log, sqrt, sin and cos, which map onto
sympy's own functions.
"""
import copy

import sympy

from pycrn.core import DifferentiationError, is_identifier


class RegisteredFunction(sympy.Function):
    """
    Base class for functions created by :meth:`FunctionRegistry.register`.

    Subclasses define ``_closed_form`` and ``_derivative`` as class
    attributes (either may be None).
    """
    _closed_form = None
    _derivative = None

    @classmethod
    def eval(cls, *args):
        # Never evaluate automatically; the call stays opaque
        return None

    @classmethod
    def has_closed_form(cls):
        return cls._closed_form is not None

    @classmethod
    def has_derivative(cls):
        """True if calls to this function can be differentiated."""
        return cls._derivative is not None or cls._closed_form is not None

    def closed_form(self):
        """Return the expression with this call replaced by its definition."""
        if self._closed_form is None:
            raise ValueError('Function %s has no closed form' %
                             self.func.__name__)
        return sympy.sympify(self._closed_form(*self.args))

    def fdiff(self, argindex=1):
        if self._derivative is not None:
            return sympy.sympify(self._derivative(argindex - 1, *self.args))
        if self._closed_form is not None:
            dummies = sympy.symbols('_a0:%d' % len(self.args), cls=sympy.Dummy)
            closed = sympy.sympify(self._closed_form(*dummies))
            derivative = closed.diff(dummies[argindex - 1])
            return derivative.xreplace(dict(zip(dummies, self.args)))
        raise DifferentiationError(
            'No derivative rule for argument %d of registered function %s' %
            (argindex, self.func.__name__), text=sympy.sstr(self))


class FunctionRegistry(object):
    """
    A mapping of function name to callable that builds a sympy expression.

    Use :func:`default_registry` to obtain a registry pre-populated with
    the built-in rate functions; use :meth:`copy` before registering extra
    functions so other compiles are unaffected.
    """

    def __init__(self):
        self._functions = {}

    def register(self, name, nargs, closed_form=None, derivative=None,
                 numeric=None):
        """
        Register a new named function.

        Parameters
        ----------
        name : str
            Function name, as called in rate expressions.
        nargs : int
            Number of arguments.
        closed_form : callable, optional
            Called with ``nargs`` sympy arguments, returns the sympy
            expression the function stands for.
        derivative : callable, optional
            Called as ``derivative(i, *args)``, returns the partial
            derivative with respect to the i-th (0-based) argument. Takes
            precedence over differentiating ``closed_form``.
        numeric : callable, optional
            Numeric implementation used by :mod:`pycrn.numeric` when there
            is no closed form.

        Returns
        -------
        The new sympy Function subclass.
        """
        if not is_identifier(name):
            raise ValueError("Not a valid function name: '%s'" % name)
        if not isinstance(nargs, int) or nargs < 1:
            raise ValueError('nargs must be a positive integer')
        attrs = {
            'nargs': nargs,
            '_closed_form': staticmethod(closed_form)
            if closed_form is not None else None,
            '_derivative': staticmethod(derivative)
            if derivative is not None else None,
        }
        if numeric is not None:
            attrs['_imp_'] = staticmethod(numeric)
        func = type(name, (RegisteredFunction, ), attrs)
        self._functions[name] = (func, nargs)
        return func

    def register_sympy(self, name, func, nargs):
        """Register one of sympy's own functions (or any callable) by name."""
        self._functions[name] = (func, nargs)
        return func

    def __contains__(self, name):
        return name in self._functions

    def __iter__(self):
        return iter(self._functions)

    def __len__(self):
        return len(self._functions)

    def arity(self, name):
        return self._functions[name][1]

    def get(self, name):
        return self._functions[name][0]

    def call(self, name, args):
        """Build the sympy expression for ``name(*args)``."""
        return self.get(name)(*args)

    def copy(self):
        new = FunctionRegistry()
        new._functions = copy.copy(self._functions)
        return new


def expand_registered(expr):
    """
    Replace every registered function call having a closed form by that
    closed form.
    """
    return expr.replace(
        lambda e: isinstance(e, RegisteredFunction) and e.has_closed_form(),
        lambda e: e.closed_form())


def _hill(x, v, k, n):
    return v * x ** n / (k ** n + x ** n)


def _hillr(x, v, k, n):
    return v * k ** n / (k ** n + x ** n)


def _mm(x, v, k):
    return v * x / (x + k)


def _mmr(x, v, k):
    return v * k / (x + k)


def _build_default_registry():
    registry = FunctionRegistry()
    registry.register('hill', 4, closed_form=_hill)
    registry.register('hillr', 4, closed_form=_hillr)
    registry.register('mm', 3, closed_form=_mm)
    registry.register('mmr', 3, closed_form=_mmr)
    registry.register_sympy('exp', sympy.exp, 1)
    registry.register_sympy('log', sympy.log, 1)
    registry.register_sympy('sqrt', sympy.sqrt, 1)
    registry.register_sympy('sin', sympy.sin, 1)
    registry.register_sympy('cos', sympy.cos, 1)
    return registry


_DEFAULT_REGISTRY = _build_default_registry()


def default_registry():
    """Return a fresh copy of the default function registry."""
    return _DEFAULT_REGISTRY.copy()

__version__ = '0.1.0'

from pycrn.core import Species, Parameter, Reaction, ComponentSet, \
    CompileError, ReactionSyntaxError, ParseError, NameConflictError, \
    ConfigurationError, InvalidCoefficientError, TooManyReactionsError, \
    UnknownFunctionError, DifferentiationError
from pycrn.functions import FunctionRegistry, default_registry
from pycrn.network import NetworkInterface, ReactionNetwork, NetworkView
from pycrn.compiler import compile_network, parse_network_block, \
    compile_block, NetworkDefinition

__all__ = ['compile_network', 'parse_network_block', 'compile_block',
           'NetworkDefinition', 'NetworkInterface', 'ReactionNetwork',
           'NetworkView', 'Species', 'Parameter', 'Reaction', 'ComponentSet',
           'FunctionRegistry', 'default_registry', 'CompileError',
           'ReactionSyntaxError', 'ParseError', 'NameConflictError',
           'ConfigurationError', 'InvalidCoefficientError',
           'TooManyReactionsError', 'UnknownFunctionError',
           'DifferentiationError']

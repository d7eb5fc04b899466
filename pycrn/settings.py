"""
Compiler settings with environment variable overrides.

Each setting has a built-in default which can be overridden before first use
by an environment variable, or at runtime by calling :func:`set_setting`.
Keyword arguments given to :func:`pycrn.compile_network` take precedence over
both for that call only. Run :func:`list_settings` for the known settings.
"""
import os


def _parse_positive_int(value):
    value = int(value)
    if value <= 0:
        raise ValueError('must be a positive integer')
    return value


def _parse_bool(value):
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError('must be one of 1/0, true/false, yes/no or on/off')


_settings_config = {
    'max_reactions': {
        'description': 'Maximum number of elementary reactions a single '
                       'compile may produce after tuple and bidirectional '
                       'expansion',
        'env_var': 'PYCRN_MAX_REACTIONS',
        'default': 10000,
        'parser': _parse_positive_int,
    },
    'jacobian': {
        'description': 'Compute the symbolic Jacobian at compile time. '
                       'When disabled it is computed on first access; the '
                       'derivatives it needs are still checked.',
        'env_var': 'PYCRN_JACOBIAN',
        'default': True,
        'parser': _parse_bool,
    },
}
_settings_cache = {}


def list_settings():
    """
    Return the known settings as a dictionary

    Returns
    -------
    A dictionary containing the setting name (key) and its description,
    environment variable and default value (value).

    """
    keep_keys = ('description', 'env_var', 'default')
    return {name: {
        k: v for k, v in conf.items() if k in keep_keys
    } for name, conf in _settings_config.items()}


def get_setting(name):
    """
    Gets the currently active value of a setting

    Parameters
    ----------
    name: str
        The setting name (run :func:`list_settings` for a list).

    Returns
    -------
    The value set by :func:`set_setting` if any; otherwise the value of the
    setting's environment variable, if set; otherwise the default. A
    ValueError is raised if the environment variable holds an invalid value.
    """
    try:
        return _settings_cache[name]
    except KeyError:
        pass

    if name not in _settings_config.keys():
        raise ValueError('%s is not a known setting' % name)

    conf = _settings_config[name]

    if conf['env_var'] in os.environ:
        env_var_val = os.environ[conf['env_var']]
        try:
            _settings_cache[name] = conf['parser'](env_var_val)
        except ValueError as e:
            raise ValueError('Environment variable %s is set to "%s", which '
                             'is not a valid value for setting %s (%s)' % (
                                 conf['env_var'], env_var_val, name, e))
        return _settings_cache[name]

    return conf['default']


def set_setting(name, value):
    """
    Sets the value of a setting at runtime

    Parameters
    ----------
    name: str
        The setting name (see :func:`list_settings`).
    value:
        The new value. It is validated and converted the same way as the
        environment variable would be; a ValueError is raised if invalid.
    """
    if name not in _settings_config.keys():
        raise ValueError('%s is not a known setting' % name)

    _settings_cache[name] = validate_setting(name, value)


def reset_setting(name):
    """Forget any runtime or cached value so the setting is re-read."""
    if name not in _settings_config.keys():
        raise ValueError('%s is not a known setting' % name)
    _settings_cache.pop(name, None)


def validate_setting(name, value):
    """Convert and validate a value for a setting, returning the result."""
    try:
        return _settings_config[name]['parser'](value)
    except (TypeError, ValueError) as e:
        raise ValueError('Invalid value %r for setting %s (%s)' % (
            value, name, e))

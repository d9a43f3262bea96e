"""Exception hierarchy shared by the drafter modules.

Module-specific errors (``DrafterDataError``, ``ApiError``,
``GeometryResolutionError``...) subclass :class:`DrafterError` in the module
that raises them. The CLI maps each family to a distinct exit code.
"""


class DrafterError(Exception):
    """Base class for all errors raised by onshape_drafter."""


class ConfigurationError(DrafterError):
    """Invalid arguments, configuration values or credentials.

    Raised before any network call is made.
    """

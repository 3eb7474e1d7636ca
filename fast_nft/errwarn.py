import threading
from contextlib import contextmanager

SUCCESS = 0
EC_INVALID_ARGUMENT = 1
EC_OUT_OF_MEMORY = 2
EC_NUMERIC_FAILURE = 3


class NftError(Exception):
    """Base class of all fatal errors raised by the transform."""
    code = -1


class InvalidInput(NftError):
    code = EC_INVALID_ARGUMENT


class InvalidScheme(InvalidInput):
    pass


class DegenerateInput(InvalidInput):
    pass


class AllocationFailure(NftError):
    code = EC_OUT_OF_MEMORY


class NumericFailure(NftError):
    code = EC_NUMERIC_FAILURE


# Kinds of recoverable problems. They are only reported through the sink.
CAPACITY_EXCEEDED = 'CapacityExceeded'
CONVERGENCE_WARNING = 'ConvergenceWarning'


_printf = print
_local = threading.local()
_unset = object()


def set_printf(printf):
    """
    Install the process-wide function used for warnings and error messages.

    Args:
        printf: callable taking one string, or None to silence all messages

    Returns:
        previously installed function

    """
    global _printf
    previous = _printf
    _printf = printf
    return previous


def get_printf():
    override = getattr(_local, 'printf', _unset)
    if override is not _unset:
        return override
    return _printf


@contextmanager
def printf_redirected(printf):
    """
    Redirect messages of the current thread to printf while the context is active.

    Examples:
        >>> with printf_redirected(None):
        ...     res = nsev(q, t, -5., 5., 256)  # quiet call

    """
    previous = getattr(_local, 'printf', _unset)
    _local.printf = printf
    try:
        yield
    finally:
        if previous is _unset:
            del _local.printf
        else:
            _local.printf = previous


def _emit(message):
    printf = get_printf()
    if printf is not None:
        printf(message)


def warn(func_name, msg, kind=None):
    if kind is None:
        _emit('[' + func_name + '] Warning: ' + msg)
    else:
        _emit('[' + func_name + '] Warning (' + kind + '): ' + msg)


def error(func_name, msg):
    _emit('[' + func_name + '] Error: ' + msg)

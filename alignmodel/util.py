from datetime import datetime
import logging

from .constants import Namespace, PROGNAME


class Log:
    """
    wrapper aroung the builtin logging to make it more readable
    """
    def __init__(self, indent_str='  ', indent_level=0, level=logging.INFO):
        self.indent_str = indent_str
        self.indent_level = indent_level
        self.level = level

    def __call__(self, *pos, time_stamp=False, level=None, indent_level=0, **kwargs):
        if level is None:
            level = self.level
        stamp = datetime.now().strftime('[%Y-%m-%d %H:%M:%S] ') if time_stamp else ''
        indent_prefix = self.indent_str * (self.indent_level + indent_level)
        message = '{}{}{}'.format(stamp, indent_prefix, ' '.join([str(p) for p in pos]))
        logging.getLogger(PROGNAME).log(level, message, **kwargs)


LOG = Log()


class WeakNamespace(Namespace):
    """
    namespace where every attribute can be overridden by its environment variable
    """

    def is_env_overwritable(self, attr):
        return True


def log_arguments(args, log=LOG):
    """
    output the arguments to the console

    Args:
        args (argparse.Namespace): the namespace to print arguments for
    """
    log('arguments', time_stamp=True)
    for arg, val in sorted(vars(args).items()):
        if isinstance(val, list):
            log(arg, '= [', ', '.join([repr(v) for v in val]), ']', indent_level=1)
        else:
            log(arg, '=', repr(val), indent_level=1)

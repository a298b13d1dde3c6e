'''
Console and file logging for the eigensolvers.

The `Logger` wraps a standard `logging.Logger` and adds indentation levels
(`lvl`), optional ANSI colours and a per-call `verbose` switch, which is how
the solvers report restart progress (debug), summaries (info) and recoverable
failures such as exhaustion or a discarded checkpoint (warning).

@note File logging is enabled by setting PYLOGFILE to a non-zero value.
@note Coloured console output is disabled by setting PYLOGCOLORS to '0'.

-------------------------------------------------------
file        :   krylov_eigsolve/common/flog.py
description :   Solver logger and profiling tables.
-------------------------------------------------------
'''

__all__ = [
    "Logger",
    "get_global_logger",
    "log_timing_summary",
]

import os
import re
import sys
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np

# keep third-party backends quiet
logging.getLogger("jax").setLevel(logging.WARNING)
logging.getLogger("h5py").setLevel(logging.WARNING)

ENV_LOGGER_FILE     = 'PYLOGFILE'
ENV_LOGGER_COLORS   = 'PYLOGCOLORS'
_STAMP_FMT          = "%d_%m_%Y_%H-%M_%S"

_ANSI               = {
    'red'       : "\033[31m",
    'green'     : "\033[32m",
    'yellow'    : "\033[33m",
    'blue'      : "\033[34m",
}
_ANSI_RESET         = "\033[0m"
_ANSI_PATTERN       = re.compile(r'\x1b\[[0-9;]*m')

class _PlainFormatter(logging.Formatter):
    ''' Formatter for log files: colour codes removed. '''

    def format(self, record):
        return _ANSI_PATTERN.sub('', super().format(record))

######################################################
#! LOGGER
######################################################

# names of `logging` loggers that already carry our console handler
_HANDLED = set()

class Logger:
    """
    Indented, optionally coloured logger with per-call verbosity.

    Parameters
    ----------
        name:
            Name of the underlying `logging` logger.
        logfile:
            Base name of a log file in ./log, used only when PYLOGFILE is set.
        lvl:
            Threshold, a `logging` constant or one of 'debug', 'info',
            'warning', 'error'.
        append_ts:
            Append a timestamp to the log file name.
        use_ts_in_cmd:
            Prefix console lines with a timestamp.

    Example
    -------
        >>> log = Logger("trlm", lvl="debug")
        >>> log.info("Restart 4: 3/8 converged", lvl=1)
    """

    NAMED_LEVELS = {
        'debug'     : logging.DEBUG,
        'info'      : logging.INFO,
        'warning'   : logging.WARNING,
        'error'     : logging.ERROR,
    }

    def __init__(self,
                name            : str           = "krylov_eigsolve",
                logfile         : Optional[str] = None,
                lvl                             = logging.INFO,
                append_ts       : bool          = False,
                use_ts_in_cmd   : bool          = False):
        self.lvl        = self.NAMED_LEVELS.get(lvl.lower(), logging.INFO) if isinstance(lvl, str) else int(lvl)
        self.has_colors = sys.stdout.isatty() and os.environ.get(ENV_LOGGER_COLORS, '1') != '0'
        self.logfile    = None
        self.logger     = logging.getLogger(name)
        self.logger.setLevel(self.lvl)
        self.logger.propagate = False

        if name not in _HANDLED or not self.logger.handlers:
            self._attach_console(use_ts_in_cmd)
            _HANDLED.add(name)

        if logfile is not None and os.environ.get(ENV_LOGGER_FILE, '0') != '0':
            base = logfile[:-4] if logfile.endswith('.log') else logfile
            base = base or datetime.now().strftime(_STAMP_FMT)
            if append_ts:
                base = f"{base}_{datetime.now().strftime(_STAMP_FMT)}"
            self.configure("./log", base)

    def _attach_console(self, with_time: bool) -> None:
        for h in list(self.logger.handlers):
            self.logger.removeHandler(h)
            h.close()
        fmt     = '%(asctime)s [%(levelname)s] %(message)s' if with_time else '[%(levelname)s] %(message)s'
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(self.lvl)
        handler.setFormatter(logging.Formatter(fmt, datefmt=_STAMP_FMT))
        self.logger.addHandler(handler)

    def configure(self, directory: str, base_name: str) -> None:
        """
        Also write to `directory/base_name.log`.
        """
        os.makedirs(directory, exist_ok=True)
        self.logfile    = os.path.join(directory, f'{base_name}.log')
        handler         = logging.FileHandler(self.logfile, encoding='utf-8')
        handler.setLevel(self.lvl)
        handler.setFormatter(_PlainFormatter('%(asctime)s [%(levelname)s] %(message)s', datefmt=_STAMP_FMT))
        self.logger.addHandler(handler)
        self.info(f"Log file created: {self.logfile}")

    # --------------------------------------------------------------

    @staticmethod
    def print(msg: str, lvl=0) -> str:
        """ Message indented by `lvl` tabs, with an arrow below the top level. """
        return '\t' * lvl + ('->' if lvl > 0 else '') + str(msg)

    def _emit(self, level: int, msg: str, lvl: int, verbose: bool, color: Optional[str]) -> None:
        if not verbose:
            return
        msg = Logger.print(msg, lvl)
        if color in _ANSI and self.has_colors:
            msg = _ANSI[color] + msg + _ANSI_RESET
        self.logger.log(level, msg)

    def debug(self, msg: str, lvl=0, verbose=True, color=None):
        self._emit(logging.DEBUG, msg, lvl, verbose, color)

    def info(self, msg: str, lvl=0, verbose=True, color=None):
        self._emit(logging.INFO, msg, lvl, verbose, color)

    def warning(self, msg: str, lvl=0, verbose=True, color='yellow'):
        self._emit(logging.WARNING, msg, lvl, verbose, color)

    def error(self, msg: str, lvl=0, verbose=True, color='red'):
        self._emit(logging.ERROR, msg, lvl, verbose, color)

    def title(self, tail: str, desired_size: int = 50, fill: str = '=', lvl=0, verbose=True, color=None):
        """
        `tail` centred in a line of `fill` characters of width `desired_size`;
        plain message when it does not fit.
        """
        if len(tail) + 2 > desired_size:
            self.info(tail, lvl, verbose, color)
            return
        self.info(f" {tail} ".center(desired_size, fill[0]), lvl, verbose, color)

######################################################
#! GLOBAL LOGGER
######################################################

_G_LOGGER       = None
_G_LOGGER_PID   = None
_G_LOCK         = threading.Lock()

def get_global_logger(**kwargs) -> Logger:
    """
    Process-wide logger used by every solver that is not given one.

    A forked child gets its own instance (keyed by PID). Keyword arguments
    (name, lvl, logfile, append_ts, use_ts_in_cmd) only matter on the first
    call in a process.

    Example
    -------
        >>> logger = get_global_logger()
        >>> logger.warning("Krylov space exhausted", lvl=1)
    """
    global _G_LOGGER, _G_LOGGER_PID
    pid = os.getpid()
    with _G_LOCK:
        if _G_LOGGER is None or _G_LOGGER_PID != pid:
            _G_LOGGER = Logger(
                name            = kwargs.get("name", "krylov_eigsolve"),
                logfile         = kwargs.get("logfile"),
                lvl             = kwargs.get("lvl", logging.INFO),
                append_ts       = kwargs.get("append_ts", True),
                use_ts_in_cmd   = kwargs.get("use_ts_in_cmd", True),
            )
            _G_LOGGER_PID = pid
        return _G_LOGGER

######################################################
#! PROFILE TABLE
######################################################

def log_timing_summary(
    logger              : Logger,
    phase_durations     : Dict[str, float],
    total_duration      : Optional[float]       = None,
    title               : str                   = "Timing Summary",
    phase_col_width     : int                   = 12,
    duration_col_width  : int                   = 12,
    duration_precision  : int                   = 4,
    lvl                 : int                   = 0,
    add_total_row       : bool                  = True,
    extra_info          : Optional[List[str]]   = None):
    """
    Log profiled phases as a table with their share of the total.

    Parameters
    ----------
        phase_durations:
            Seconds per phase, in the order they should appear.
        total_duration:
            Wall time of the whole solve. Phases may be nested (operator
            applications inside the Chebyshev filter), so their sum is used
            only when no total is given.
        extra_info:
            Lines logged between the title and the table (counters).
    """
    total   = float(total_duration) if total_duration is not None else float(sum(phase_durations.values()))
    w_name  = max(phase_col_width, len("Phase"), *(len(k) for k in phase_durations)) if phase_durations else phase_col_width
    w_time  = max(duration_col_width, len("Seconds"))
    rule    = f"+{'-' * (w_name + 2)}+{'-' * (w_time + 2)}+{'-' * 9}+"

    def row(name, seconds):
        share = 100.0 * seconds / total if total > 0.0 else 0.0
        return f"| {name:<{w_name}} | {seconds:>{w_time}.{duration_precision}f} | {share:>6.1f}% |"

    logger.title(title, 50, '#', lvl)
    for line in extra_info or []:
        logger.info(line, lvl=lvl + 1)
    logger.info(rule, lvl=lvl + 1)
    logger.info(f"| {'Phase':<{w_name}} | {'Seconds':>{w_time}} | {'Share':>7} |", lvl=lvl + 1)
    logger.info(rule, lvl=lvl + 1)
    for name, seconds in phase_durations.items():
        logger.info(row(name, seconds), lvl=lvl + 1)
    if add_total_row:
        logger.info(rule, lvl=lvl + 1)
        logger.info(row("Total", total), lvl=lvl + 1)
        if total_duration is not None and np.any(np.asarray(list(phase_durations.values())) > total * (1.0 + 1e-3)):
            logger.debug("A phase exceeds the total, timers overlap", lvl=lvl + 2)
    logger.info(rule, lvl=lvl + 1)

########################################################
#! EOF
########################################################

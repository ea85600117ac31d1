'''
This module provides a logger class for handling console and file logging with verbosity control.
It includes methods for printing messages with different log levels, formatting titles, timing
functions and printing training summaries as aligned tables.

@note If one wants to use file logging, the environment variable PYLOGFILE should be set to a non-zero value.
@note If one wants to disable colored output, the environment variable PYLOGCOLORS should be set to '0'.

-------------------------------------------------------
file        :   mlpstack/common/flog.py
description :   Console and file logging with verbosity control.
-------------------------------------------------------
'''

__all__         = [
    "Logger",
    "Colors",
    "get_global_logger",
    "log_training_summary"
]

import os
import re
import sys
import functools
import logging
import threading
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

######################################################
#! PRINT THE OUTPUT WITH A GIVEN COLOR
######################################################

class Colors:
    """
    ANSI colors for console output.

    Attributes:
        black, red, green, yellow, blue (str):
            ANSI escape codes for the given text color.
        white (str):
            ANSI escape code for resetting color to default.
    """

    black   = "\033[30m"
    red     = "\033[31m"
    green   = "\033[32m"
    yellow  = "\033[33m"
    blue    = "\033[34m"
    white   = "\033[0m"  # Reset / default color

    _MAPPING = {
        "black" : black,
        "red"   : red,
        "green" : green,
        "yellow": yellow,
        "blue"  : blue,
        "white" : white
    }

    def __init__(self, color : str):
        self.color = color

    def __str__(self) -> str:
        return Colors._MAPPING.get(self.color, Colors.white)

    def __repr__(self) -> str:
        return str(self)

    def __call__(self, text: str) -> str:
        ''' Wrap the text in this color and a reset code. '''
        return f"{self}{text}{Colors.white}"

# Regex for ANSI colour codes (CSI sequences: ESC [ ... m)
_ansi_escape = re.compile(r'\x1b\[[0-9;]*m')

class StripAnsiFormatter(logging.Formatter):
    ''' File formatter that removes the color codes from the final record. '''

    def format(self, record):
        msg = super().format(record)
        return _ansi_escape.sub('', msg)

######################################################
#! PRINT THE OUTPUT WITH A GIVEN LEVEL
######################################################

ENV_LOGGER_FILE     = 'PYLOGFILE'
ENV_LOGGER_COLORS   = 'PYLOGCOLORS'

# logger names that already carry a console handler
_CONFIGURED_LOGGERS = set()

class Logger:
    """
    Logger class for handling console and file logging with verbosity control.
    """

    LEVELS = {
        logging.DEBUG   : 'debug',
        logging.INFO    : 'info',
        logging.WARNING : 'warning',
        logging.ERROR   : 'error'
    }

    LEVELS_R = {v: k for k, v in LEVELS.items()}

    def __init__(self,
                name            : str           = "mlpstack",
                logfile         : Optional[str] = None,
                lvl             : int           = logging.INFO,
                append_ts       : bool          = False,
                use_ts_in_cmd   : bool          = False):
        """
        Initialize the logger instance.

        Args:
            name (str):
                Name of the underlying `logging` logger.
            logfile (str):
                Name of the log file (used only when PYLOGFILE is set; empty means a timestamp).
            lvl (int):
                Logging level (default: logging.INFO). Level names ('info', 'debug'...) are accepted.
            append_ts (bool):
                Whether to append a timestamp to the log file name.
            use_ts_in_cmd (bool):
                Whether to show a timestamp in console output.
        """
        self.now                = datetime.now()
        self.now_str            = self.now.strftime("%d_%m_%Y_%H-%M_%S")
        self.lvl                = Logger.LEVELS_R.get(lvl, logging.INFO) if isinstance(lvl, str) else lvl
        self.handler_added      = False
        self.use_console_ts     = use_ts_in_cmd
        self.has_colors         = sys.stdout.isatty() and os.environ.get(ENV_LOGGER_COLORS, '1') != '0'

        self.logger             = logging.getLogger(name or __name__)
        self.logger.setLevel(self.lvl)
        self.logger.propagate   = False

        # one console handler per logger name
        logger_name             = name or __name__
        console_fmt             = '%(asctime)s [%(levelname)s] %(message)s' if use_ts_in_cmd else '[%(levelname)s] %(message)s'
        if logger_name not in _CONFIGURED_LOGGERS or not self.logger.handlers:
            for h in list(self.logger.handlers):
                self.logger.removeHandler(h)
                h.close()
            ch = logging.StreamHandler(sys.stdout)
            ch.setLevel(self.lvl)
            ch.setFormatter(logging.Formatter(console_fmt, datefmt="%d_%m_%Y_%H-%M_%S"))
            self.logger.addHandler(ch)
            _CONFIGURED_LOGGERS.add(logger_name)

        # Set the log file name
        if logfile is not None and os.environ.get(ENV_LOGGER_FILE, '0') != '0':
            self.logfile = (logfile.split('.log')[0] if logfile.endswith('.log') else f'{logfile}') if len(logfile) > 0 else self.now_str
            if append_ts:
                self.logfile += f'_{self.now_str}'
            self.configure("./log")
        else:
            self.logfile = self.now_str

    # --------------------------------------------------------------

    @staticmethod
    def colorize(txt: str, color: str):
        """
        Apply color to the given text (for console output).

        Args:
            txt (str): Text to colorize.
            color (str): Color name.

        Returns:
            str: Colorized text.
        """
        if not color or color.lower() == 'white':
            return str(txt)
        return Colors(color)(str(txt))

    # --------------------------------------------------------------

    def configure(self, directory: str):
        """
        Configure the logger to use a specific directory for log files.

        Args:
            directory (str): Path to the directory where log files will be stored.
        """
        base_name       = self.now_str if len(self.logfile) == 0 else self.logfile
        self.logfile    = os.path.join(directory, f'{base_name}.log')
        os.makedirs(directory, exist_ok=True)

        if not self.handler_added:
            self._f_handler = logging.FileHandler(self.logfile, mode='w', encoding='utf-8')
            self._f_handler.setLevel(self.lvl)
            self._f_handler.setFormatter(StripAnsiFormatter('%(asctime)s [%(levelname)s] %(message)s', datefmt="%d_%m_%Y_%H-%M-%S"))
            self.logger.addHandler(self._f_handler)
            self.handler_added = True
            self._log_message(logging.INFO, f"Log file created: {self.logfile}")
            self._log_message(logging.INFO, f"Log level set to: {self.LEVELS.get(self.lvl, 'info')}")

    # --------------------------------------------------------------

    @staticmethod
    def print_tab(lvl=0):
        """
        Generate indentation for message formatting.

        Args:
            lvl (int): Number of tabulators.
        """
        return '\t' * lvl + ('->' if lvl > 0 else '')

    @staticmethod
    def print(msg: str, lvl=0):
        ''' Prefix the message with the indentation of the given level. '''
        return f"{Logger.print_tab(lvl)}{msg}"

    # --------------------------------------------------------------

    def say(self, *args, end=True, log=logging.INFO, lvl=0, verbose=True, color=None):
        """
        Print and log multiple messages if verbosity is enabled.

        Args:
            *args: Messages to log.
            end (bool)      : Join the messages with newlines (default: True), otherwise with spaces.
            log (int | str) : Log level, as a `logging` constant or a level name.
            lvl (int)       : Indentation level.
            verbose (bool)  : Log if True (default: True).
        """
        if isinstance(log, str):
            log = Logger.LEVELS_R.get(log.lower(), logging.DEBUG)

        if not verbose or log < self.lvl:
            return

        messages            = [str(arg) for arg in args]
        combined_message    = ' '.join(messages) if not end else '\n'.join(messages)
        if color is not None and self.has_colors:
            combined_message = self.colorize(combined_message, color)
        self._log_message(log, combined_message, lvl)

    def _log_message(self, log_level, msg, lvl = 0):
        log_function = getattr(self.logger, self.LEVELS.get(log_level, 'info'))
        log_function(Logger.print(msg, lvl))

    # --------------------------------------------------------------

    def info(self, msg: str, lvl=0, verbose=True, color=None):
        """
        Log an informational message if verbosity is enabled.

        Args:
            msg (str)       : Message to log.
            lvl (int)       : Indentation level.
            verbose (bool)  : Log if True (default: True).
        """
        if not verbose:
            return
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.info(Logger.print(msg, lvl))

    def debug(self, msg: str, lvl=0, verbose=True, color=None):
        ''' Log a debug message if verbosity is enabled. '''
        if not verbose:
            return
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.debug(Logger.print(msg, lvl))

    def warning(self, msg: str, lvl=0, verbose=True, color='yellow'):
        ''' Log a warning message if verbosity is enabled. '''
        if not verbose:
            return
        if self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.warning(Logger.print(msg, lvl))

    def error(self, msg: str, lvl=0, verbose=True, color='red'):
        ''' Log an error message if verbosity is enabled. '''
        if not verbose:
            return
        if self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.error(Logger.print(msg, lvl))

    # --------------------------------------------------------------

    def title(self, tail: str, desired_size: int=50, fill: str = '=', lvl=0, verbose=True, color=None):
        """
        Create a formatted title with filler characters if verbosity is enabled.

        Args:
            tail (str):
                Text in the middle of the title.
            desired_size (int):
                Total width of the title.
            fill (str):
                Character used for filling.
            lvl (int):
                Indentation level.
        """
        if not verbose:
            return
        if len(tail) + 2 + lvl * 6 > desired_size:
            self.info(tail, lvl, verbose)
            return

        fill_size   = (desired_size - len(tail)) // (2 * len(fill))
        out         = (fill * fill_size) + f"{tail}" + (fill * fill_size)
        if len(out) < desired_size:
            out += fill[0] * (desired_size - len(out))
        self.info(out[:desired_size], lvl, verbose, color)

    # --------------------------------------------------------------

    def timing(self, func):
        """
        Decorator to measure and log the execution time of functions.

        Use as:
            @logger.timing
            def my_function(...):
                ...
        """

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            self.debug(f"Starting '{func.__name__}'...")
            start_time  = datetime.now()
            result      = func(*args, **kwargs)
            duration    = (datetime.now() - start_time).total_seconds()
            self.debug(f"Finished '{func.__name__}' in {duration:.4f} seconds.")
            return result
        return wrapper

######################################################
#! GLOBAL LOGGER
######################################################

_G_LOGGER     = None
_G_LOGGER_PID = None
_G_LOCK       = threading.Lock()

def get_global_logger(**kwargs) -> Logger:
    """
    One Logger wrapper per process (PID), safe across threads.

    Args:
        **kwargs: Arguments to pass to the Logger constructor.
        - name (str): Name of the logger (default: "mlpstack").
        - lvl (int): Logging level (default: logging.INFO).
        - append_ts (bool): Whether to append timestamps to the log file (default: True).
        - use_ts_in_cmd (bool): Whether to show timestamps in the console (default: True).
        - logfile (str or None): Log file name (default: None).

    Returns:
        Logger: The global logger instance.

    Example
    -------
        >>> logger = get_global_logger()
        >>> logger.info("Training started.")
        >>> logger.debug("Epoch 1 finished.", color='blue')
    """
    global  _G_LOGGER, _G_LOGGER_PID
    pid     = os.getpid()

    if _G_LOGGER is not None and _G_LOGGER_PID == pid:
        return _G_LOGGER

    with _G_LOCK:
        if _G_LOGGER is not None and _G_LOGGER_PID == pid:
            return _G_LOGGER

        _G_LOGGER       = Logger(
            name            = kwargs.get("name",            "mlpstack"),
            lvl             = kwargs.get("lvl",             logging.INFO),
            append_ts       = kwargs.get("append_ts",       True),
            use_ts_in_cmd   = kwargs.get("use_ts_in_cmd",   True),
            logfile         = kwargs.get("logfile",         None),
        )
        _G_LOGGER_PID   = pid
        return _G_LOGGER

######################################################
#! SUMMARIES
######################################################

def log_training_summary(
    logger              : Logger,
    frame               : pd.DataFrame,
    title               : str = "Training Summary",
    col_width           : int = 14,
    precision           : int = 5,
    lvl                 : int = 0,
    extra_info          : Optional[Sequence[str]] = None
):
    """
    Logs a training summary frame in a tabular format using the provided logger.

    Parameters:
    logger:
        Logger instance to log the summary.
    frame:
        One row per member/attempt, one column per reported quantity. The index is printed
        as the first column.
    title:
        Title for the summary table.
    col_width:
        Minimal width of every column.
    precision:
        Decimal places for float values.
    lvl:
        Indentation level for the table rows.
    extra_info:
        Optional lines logged below the title (e.g. the task type).
    """
    columns     = [str(frame.index.name or "")] + [str(c) for c in frame.columns]
    widths      = [max(col_width, len(c)) for c in columns]

    def _fmt(value, width):
        if isinstance(value, float):
            return f"{value:>{width}.{precision}f}"
        return f"{str(value):>{width}}"

    separator   = "|" + "|".join('-' * (w + 2) for w in widths) + "|"
    header      = "|" + "|".join(f" {c:<{w}} " for c, w in zip(columns, widths)) + "|"

    logger.title(title, 50, '#', lvl)
    for info in extra_info or ():
        logger.info(info, lvl=lvl + 1)

    logger.info(separator, lvl=lvl + 1)
    logger.info(header, lvl=lvl + 1)
    logger.info(separator, lvl=lvl + 1)
    if frame.empty:
        logger.info(f"| {'No rows':<{sum(widths) + 3 * (len(widths) - 1)}} |", lvl=lvl + 1)
    for idx, row in frame.iterrows():
        cells = [_fmt(idx, widths[0])] + [_fmt(v, w) for v, w in zip(row.tolist(), widths[1:])]
        logger.info("|" + "|".join(f" {c} " for c in cells) + "|", lvl=lvl + 1)
    logger.info(separator, lvl=lvl + 1)

########################################################
#! EOF

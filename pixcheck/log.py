#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#
import logging

import colorlog
from wrapt import synchronized


# Per-case chatter, below DEBUG
LOG_TRACE = 5

logging.addLevelName(LOG_TRACE, 'TRACE')


class Log(object):
    """
    Logger registry

    Every module asks for its logger by tag through get(). Handlers are
    attached once per tag, with colored output if enable_color() was
    called before the first lookup.
    """

    _LOGGERS = {}
    _use_color = False
    _level = logging.INFO

    FORMAT = ' %(name)s/%(levelname)-8s | %(message)s'
    COLOR_FORMAT = ' %(log_color)s%(name)s/%(levelname)-8s%(reset)s |' \
                   ' %(log_color)s%(message)s%(reset)s'


    @synchronized
    @classmethod
    def get(cls, tag: str) -> logging.Logger:
        """
        Get the cached logger for the given tag

        :param tag: the log tag, usually the module name
        :return: the logger instance
        """
        if tag not in cls._LOGGERS:
            if cls._use_color:
                handler = colorlog.StreamHandler()
                handler.setFormatter(colorlog.ColoredFormatter(
                    cls.COLOR_FORMAT,
                    log_colors=dict(colorlog.default_log_colors, TRACE='white')))
            else:
                handler = logging.StreamHandler()
                handler.setFormatter(logging.Formatter(cls.FORMAT))

            logger = logging.getLogger(tag)
            logger.addHandler(handler)
            logger.setLevel(cls._level)
            logger.propagate = False

            cls._LOGGERS[tag] = logger

        return cls._LOGGERS[tag]


    @classmethod
    def enable_color(cls, enable: bool):
        """
        Enable colored output. Only affects loggers created afterwards.
        """
        cls._use_color = enable


    @synchronized
    @classmethod
    def set_level(cls, level: int):
        """
        Set the level of every logger handed out so far, and of
        any created later.
        """
        cls._level = level
        for logger in cls._LOGGERS.values():
            logger.setLevel(level)

"""
lib/Logging.py

Purpose:
Owns the package logger.

Place in Architecture:
Every module logs through `logger`. Nothing is printed unless the embedding application configures logging, calls Verbose(), or hands us its own logger with SetLogging().

Interface:

	logger: The package logger ("libdatastorefs").
	Verbose(): Send debug output to stdout.
	SetLogging(other): Replace the package logger with a caller supplied one.

TODOs/FIXMEs:
None.
"""

import logging
import sys

logger = logging.getLogger("libdatastorefs")
logger.addHandler(logging.NullHandler())


def SetLogging(other):
	global logger
	logger = other


verboseHandler = logging.StreamHandler(sys.stdout)
verboseHandler.setFormatter(logging.Formatter("datastorefs: %(filename)s:%(lineno)d %(message)s"))


# Safe to call more than once: the stdout handler is only ever attached once per logger.
def Verbose():
	if (verboseHandler not in logger.handlers):
		logger.addHandler(verboseHandler)
	logger.setLevel(logging.DEBUG)


def GetLogger():
	return logger

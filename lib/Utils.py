"""
lib/Utils.py

Purpose:
Path helpers and small shared utilities.

Place in Architecture:
Used by every layer to keep record keys in one canonical, absolute, forward-slash form. The normalized path IS the backing-store key, so every path must pass through NormalizePath before it touches the cache or a Datastore.

Interface:

	NormalizePath(path): Clean a path (collapse '.', '..', repeated separators) and root it at '/'.
	DirectoryOf(path): Normalized parent of a path. The parent of the root is the root.
	BaseName(path): Last segment of a path.
	IsUnder(path, root): Whether path is root or a descendant of root.
	ExponentialSleep(n): Back-off helper for retry loops.

TODOs/FIXMEs:
None.
"""

import posixpath
import time

ROOT = "/"

# The largest code point. Its UTF-8 bytes also sort above any other character's, so it bounds both string and byte ordered stores.
# Appending it to a path gives the exclusive upper bound of a range scan over everything prefixed by that path.
MAX_SUFFIX = "\U0010ffff"


# Clean the given path and root it at '/'.
# "", ".", ".." and "/.." all become the root.
def NormalizePath(path):
	if (path is None):
		path = ""
	path = str(path)
	if (not path.startswith("/")):
		path = "/" + path

	# normpath preserves a leading "//" per POSIX; we never want that.
	path = posixpath.normpath(path)
	if (path.startswith("//")):
		path = "/" + path.lstrip("/")

	return path


def DirectoryOf(path):
	return NormalizePath(posixpath.dirname(NormalizePath(path)))


def BaseName(path):
	path = NormalizePath(path)
	if (path == ROOT):
		return ROOT
	return posixpath.basename(path)


# RETURNS True if path is root itself or lives somewhere beneath it.
def IsUnder(path, root):
	path = NormalizePath(path)
	root = NormalizePath(root)
	if (path == root):
		return True
	prefix = root if root.endswith("/") else root + "/"
	return path.startswith(prefix)


# Sleep for exponentially increasing time. `n` is the number of times
# sleep has been called.
def ExponentialSleep(n, start=0.01, max_sleep=1):
	sleep_time = min(start * (2**n), max_sleep)
	time.sleep(sleep_time)

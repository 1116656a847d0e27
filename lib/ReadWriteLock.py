"""
lib/ReadWriteLock.py

Purpose:
A shared/exclusive lock.

Place in Architecture:
Guards the RecordAccessor's path -> Record cache. Lookups take the shared side so that any number of threads may resolve paths at once; inserting or evicting cache entries takes the exclusive side.

Interface:

	read(): Context manager holding the shared side.
	write(): Context manager holding the exclusive side.
	acquire_read() / release_read() / acquire_write() / release_write().

TODOs/FIXMEs:
None.
"""

import threading
from contextlib import contextmanager


# Writer-preferring: once a writer is waiting, new readers queue behind it.
# The exclusive side is reentrant for its owning thread, and the owner may also take the shared side.
class ReadWriteLock(object):
	def __init__(this):
		this.condition = threading.Condition(threading.Lock())
		this.readers = 0
		this.writer = None
		this.writerDepth = 0
		this.writersWaiting = 0

	def acquire_read(this):
		me = threading.get_ident()
		with this.condition:
			if (this.writer == me):
				this.readers += 1
				return
			while (this.writer is not None or this.writersWaiting):
				this.condition.wait()
			this.readers += 1

	def release_read(this):
		with this.condition:
			this.readers -= 1
			if (this.readers == 0):
				this.condition.notify_all()

	def acquire_write(this):
		me = threading.get_ident()
		with this.condition:
			if (this.writer == me):
				this.writerDepth += 1
				return
			this.writersWaiting += 1
			try:
				while (this.writer is not None or this.readers):
					this.condition.wait()
			finally:
				this.writersWaiting -= 1
			this.writer = me
			this.writerDepth = 1

	def release_write(this):
		with this.condition:
			this.writerDepth -= 1
			if (this.writerDepth == 0):
				this.writer = None
				this.condition.notify_all()

	@contextmanager
	def read(this):
		this.acquire_read()
		try:
			yield
		finally:
			this.release_read()

	@contextmanager
	def write(this):
		this.acquire_write()
		try:
			yield
		finally:
			this.release_write()

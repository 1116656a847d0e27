"""
lib/fs/Handle.py

Purpose:
Provides the logical file handle that "wraps" a cached Record. Multiple open handles may point to the same underlying Record.

Place in Architecture:
Returned by DatastoreFS.create(), open() and open_file(). Callers drive reads, writes, seeks and directory listings directly against the handle. All payload access happens under the Record's lock, one call at a time, so handles sharing a Record never see half of a write. Nothing is durable until close().

Interface:

	__init__(accessor, record, readOnly): Wraps a record.
	open() / close(): (Re)open the handle, or close it and persist the record.
	read(size) / readinto(buffer) / read_at(size, offset) / readinto_at(buffer, offset)
	write(data) / write_at(data, offset) / write_string(s)
	seek(offset, whence) / tell() / truncate(size)
	readdir(count) / readdirnames(count)
	stat() / sync() / name

TODOs/FIXMEs:
None.
"""

import errno
import os

from ..Logging import GetLogger
from .FileInfo import FileInfo
from .Record import Now


class Handle(object):
	"""
	Logical file handle. There may be multiple open handles
	corresponding to the same Record.
	"""

	def __init__(this, accessor, record, readOnly=False):
		this.accessor = accessor
		this.record = record
		this.readOnly = readOnly
		this.closed = False

		# Cursor into the payload.
		this.offset = 0

		# How many directory entries this handle has already returned.
		this.readDirCount = 0

	def __repr__(this):
		state = "closed" if this.closed else "open"
		return f"<Handle {this.name} ({state}{', read only' if this.readOnly else ''}) @ {this.offset}>"

	def __enter__(this):
		return this

	def __exit__(this, *exc):
		if (not this.closed):
			this.close()

	@property
	def name(this):
		return this.record.name

	def CheckOpen(this):
		if (this.closed):
			raise IOError(errno.EBADF, "Operation on a closed file", this.name)

	def CheckWriteable(this):
		if (this.readOnly):
			raise IOError(errno.EBADF, "File not writeable", this.name)
		if (this.record.directory):
			raise IOError(errno.EISDIR, "is a directory", this.name)

	def open(this):
		with this.record.lock:
			this.offset = 0
			this.readDirCount = 0
			this.closed = False

	# Close *this and persist the record.
	# This is the only point at which writes are guaranteed to reach the Datastore.
	def close(this):
		GetLogger().debug(f"Close {this.name}")
		with this.record.lock:
			this.CheckOpen()
			this.closed = True
			this.record.Touch()
			this.accessor.Save(this.record)

	def sync(this):
		pass

	def stat(this):
		return FileInfo.From(this.record)

	def tell(this):
		return this.offset

	# RETURNS up to size bytes from the cursor; all remaining bytes if size is negative or None.
	# At (or past) the end of the payload, RETURNS b"".
	def read(this, size=-1):
		GetLogger().debug(f"Read {this.name} {size}")
		with this.record.lock:
			this.CheckOpen()
			data = this.record.data
			remaining = len(data) - this.offset

			if (size is None or size < 0):
				size = max(remaining, 0)
			if (size == 0 or remaining <= 0 or this.offset < 0):
				return b""

			count = min(size, remaining)
			ret = bytes(data[this.offset:this.offset + count])
			this.offset += count
			return ret

	# Fill buffer from the cursor.
	# RETURNS the number of bytes copied; 0 at the end of the payload.
	def readinto(this, buffer):
		view = memoryview(buffer).cast('B')
		data = this.read(len(view))
		view[:len(data)] = data
		return len(data)

	def read_at(this, size, offset):
		with this.record.lock:
			this.offset = offset
			return this.read(size)

	def readinto_at(this, buffer, offset):
		with this.record.lock:
			this.offset = offset
			return this.readinto(buffer)

	# Write data at the cursor.
	# A cursor past the end of the payload fills the gap with zero bytes first.
	# Bytes beyond the written region are kept: this overwrites, it does not truncate.
	# The cursor ends up at the end of the payload.
	def write(this, data):
		data = bytes(data)
		GetLogger().debug(f"Write {this.name} {len(data)}")
		with this.record.lock:
			this.CheckOpen()
			this.CheckWriteable()
			if (this.offset < 0):
				raise IOError(errno.EINVAL, "negative file offset", this.name)

			payload = this.record.data
			if (this.offset > len(payload)):
				payload.extend(bytes(this.offset - len(payload)))
			payload[this.offset:this.offset + len(data)] = data

			this.record.mod_time = Now()
			this.offset = len(payload)
			return len(data)

	def write_at(this, data, offset):
		with this.record.lock:
			this.offset = offset
			return this.write(data)

	def write_string(this, s):
		return this.write(s.encode('utf-8'))

	# Grow the payload with zero bytes, or cut it down to size.
	def truncate(this, size):
		with this.record.lock:
			this.CheckOpen()
			this.CheckWriteable()
			if (size < 0):
				raise IOError(errno.EINVAL, "Out of range", this.name)

			payload = this.record.data
			if (size > len(payload)):
				payload.extend(bytes(size - len(payload)))
			else:
				del payload[size:]
			this.record.mod_time = Now()

	# No bounds checks: a cursor before the start or past the end only matters once something reads or writes.
	def seek(this, offset, whence=os.SEEK_SET):
		with this.record.lock:
			this.CheckOpen()
			if (whence == os.SEEK_SET):
				this.offset = offset
			elif (whence == os.SEEK_CUR):
				this.offset += offset
			elif (whence == os.SEEK_END):
				this.offset = len(this.record.data) + offset
			else:
				raise IOError(errno.EINVAL, f"invalid whence ({whence})", this.name)
			return this.offset

	# RETURNS the next count entries of this directory, or everything left if count <= 0.
	# Each call picks up where the last one on this handle stopped.
	# Once everything has been returned, a positive count RETURNS [].
	def readdir(this, count=0):
		GetLogger().debug(f"Readdir {this.name} {count} {this.readDirCount}")
		this.CheckOpen()
		if (not this.record.directory):
			raise IOError(errno.ENOTDIR, "not a directory", this.name)

		children = list(this.accessor.ListChildren(this.name, this.readDirCount, count))
		this.readDirCount += len(children)
		return [FileInfo.From(child) for child in children]

	def readdirnames(this, count=0):
		return [info.name for info in this.readdir(count)]

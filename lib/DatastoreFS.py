"""
lib/DatastoreFS.py

Purpose:
Implements DatastoreFS, a hierarchical filesystem on top of a flat, key-ordered Datastore. Files and directories are Records keyed by their full path; directories exist only as records that other records name as their parent.

Place in Architecture:
The public surface. It normalizes paths, enforces the directory rules, sequences RecordAccessor calls and hands out Handles. It keeps no state of its own beyond the RecordAccessor's cache.

Interface:

	__init__(datastore): Wraps a Datastore.
	create(path): New empty file (parents created as needed); RETURNS a writeable Handle.
	mkdir(path, mode) / mkdir_all(path, mode): Make one directory, or a directory and all its missing parents.
	open(path): RETURNS a read only Handle.
	open_file(path, flags, mode): os.open style flags; RETURNS a Handle.
	remove(path) / remove_all(path): Remove one record, or a directory and everything below it.
	rename(old, new): Atomic move of one record.
	stat(path): RETURNS a FileInfo.
	chmod(path, mode) / chtimes(path, atime, mtime): Not supported.
	name(): RETURNS the name of this filesystem.

TODOs/FIXMEs:
None.
"""

import errno
import os
import stat
import threading

from .Logging import GetLogger
from .RecordAccessor import RecordAccessor
from .Utils import DirectoryOf, NormalizePath
from .fs.FileInfo import FileInfo
from .fs.Handle import Handle
from .fs.Record import DEFAULT_DIR_MODE, DEFAULT_FILE_MODE, Record

ACCESS_MODES = os.O_RDONLY | os.O_WRONLY | os.O_RDWR


class DatastoreFS(object):
	def __init__(this, datastore):
		this.datastore = datastore
		this.accessor = RecordAccessor(datastore)

		# Serializes directory creation so two mkdir_all calls cannot both decide the same ancestor is missing.
		this.mkdirLock = threading.RLock()

	def name(this):
		return "Datastore Fs"

	def close(this):
		this.datastore.Close()

	# RETURNS True if there is a record at path.
	def exists(this, path):
		try:
			this.accessor.Load(path)
			return True
		except FileNotFoundError:
			return False

	# Create a file, returning a writeable handle.
	# Any missing parent directories are created.
	# An existing file at the same path is overwritten without complaint; an existing directory (the root included) is an error.
	def create(this, path):
		GetLogger().debug(f"Create {path}")
		path = NormalizePath(path)

		existing = this.LoadOrNone(path)
		if (existing is not None and existing.directory):
			raise IOError(errno.EISDIR, "is a directory", path)

		try:
			this.mkdir_all(DirectoryOf(path), DEFAULT_DIR_MODE)
		except OSError as err:
			raise IOError(err.errno, f"create: {err.strerror}", path) from err

		record = Record.CreateFile(path)
		try:
			this.accessor.Save(record)
		except OSError as err:
			raise IOError(err.errno, f"create: {err.strerror}", path) from err
		this.accessor.Insert(record)

		return Handle(this.accessor, record)

	def mkdir(this, path, mode=DEFAULT_DIR_MODE):
		GetLogger().debug(f"Mkdir {path}")
		path = NormalizePath(path)

		with this.mkdirLock:
			if (this.exists(path)):
				raise IOError(errno.EEXIST, "file exists", path)

			record = Record.CreateDir(path, mode)
			this.accessor.Save(record)
			this.accessor.Insert(record)

	# Create a directory and every missing parent, all with the same mode, in one batch.
	# Succeeds without doing anything if path is already a directory.
	# The root is never created; it always exists.
	def mkdir_all(this, path, mode=DEFAULT_DIR_MODE):
		GetLogger().debug(f"MkdirAll {path}")
		clean = NormalizePath(path)

		with this.mkdirLock:
			existing = this.LoadOrNone(clean)
			if (existing is not None):
				if (existing.directory):
					return
				raise IOError(errno.ENOTDIR, "not a directory", clean)

			# Walk the tree up toward the root until we reach something that exists.
			create = [clean]
			current = clean
			while (len(current) > 1):
				current = DirectoryOf(current)
				ancestor = this.LoadOrNone(current)
				if (ancestor is None):
					GetLogger().debug(f"create {current}")
					create.append(current)
					continue

				# If we found a parent, it has to be a directory.
				if (not ancestor.directory):
					raise IOError(errno.ENOTDIR, "not a directory", current)
				break

			records = [Record.CreateDir(name, mode) for name in reversed(create)]
			this.accessor.SaveMany(records)
			this.accessor.InsertMany(records)

	def LoadOrNone(this, path):
		try:
			return this.accessor.Load(path)
		except FileNotFoundError:
			return None

	def open(this, path):
		GetLogger().debug(f"Open {path}")
		return Handle(this.accessor, this.accessor.Load(path), readOnly=True)

	# Open a file using os.open style flags.
	# O_CREAT creates the file if it is missing (O_EXCL makes an existing file an error).
	# O_APPEND starts the cursor at the end; O_TRUNC empties a file opened for writing.
	# mode only applies to files created by this call.
	# Directories may only be opened read only, without O_CREAT.
	def open_file(this, path, flags=os.O_RDONLY, mode=DEFAULT_FILE_MODE):
		GetLogger().debug(f"OpenFile {path} {flags:#o}")
		path = NormalizePath(path)
		writeable = (flags & ACCESS_MODES) in (os.O_WRONLY, os.O_RDWR)

		record = this.LoadOrNone(path)
		if (record is not None):
			if ((flags & os.O_CREAT) and (flags & os.O_EXCL)):
				raise IOError(errno.EEXIST, "file exists", path)
			if (record.directory and (writeable or (flags & os.O_CREAT))):
				raise IOError(errno.EISDIR, "is a directory", path)
			file = Handle(this.accessor, record, readOnly=not writeable)
		elif (flags & os.O_CREAT):
			file = this.create(path)
			with file.record.lock:
				file.record.mode = stat.S_IFREG | stat.S_IMODE(mode)
			file.readOnly = not writeable
		else:
			raise IOError(errno.ENOENT, "no such file or directory", path)

		try:
			if (flags & os.O_APPEND):
				file.seek(0, os.SEEK_END)
			if ((flags & os.O_TRUNC) and writeable):
				file.truncate(0)
		except OSError:
			file.close()
			raise

		return file

	# Remove the record at path.
	# Removing a directory this way leaves its children behind; use remove_all for that.
	def remove(this, path):
		GetLogger().debug(f"Remove {path}")
		path = NormalizePath(path)
		this.accessor.Load(path)
		this.accessor.Delete(path)

	# Remove path and everything below it.
	# path must exist.
	def remove_all(this, path):
		GetLogger().debug(f"RemoveAll {path}")
		path = NormalizePath(path)
		this.accessor.Load(path)
		this.accessor.DeleteSubtree(path)

	# Move one record to a new path, atomically.
	# Only the named record moves: children of a renamed directory keep their old parent.
	def rename(this, old, new):
		GetLogger().debug(f"Rename {old} {new}")
		old = NormalizePath(old)
		new = NormalizePath(new)

		if (old == new):
			return

		this.accessor.RenameRecord(old, new)

	def stat(this, path):
		GetLogger().debug(f"Stat {path}")
		return FileInfo.From(this.accessor.Load(path))

	def chmod(this, path, mode):
		raise IOError(errno.ENOSYS, "not implemented", NormalizePath(path))

	def chtimes(this, path, atime, mtime):
		raise IOError(errno.ENOSYS, "not implemented", NormalizePath(path))

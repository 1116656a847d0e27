"""
lib/RecordAccessor.py

Purpose:
Translates path-keyed filesystem operations into Datastore operations, behind a read-through, write-through cache of Records keyed by normalized path.

Place in Architecture:
Sits between DatastoreFS (and its Handles) and whichever Datastore was configured. It is the only component that talks to storage, and the only owner of the path -> Record cache.

Interface:

	Load(path): Cached Record, else fetched from the Datastore and cached.
	Save(record) / SaveMany(records): Upsert one or many records.
	Delete(path): Delete one record and evict it.
	ListChildren(parent, offset, limit): Key-ordered children of a directory.
	RenameRecord(old, new): Transactional move of one record to a new key.
	DeleteSubtree(path): Delete a directory and everything below it.
	Insert(record) / InsertMany(records) / Evict(path): Cache maintenance.

TODOs/FIXMEs:
None.
"""

import errno

from .Logging import GetLogger
from .ReadWriteLock import ReadWriteLock
from .Utils import DirectoryOf, IsUnder, MAX_SUFFIX, NormalizePath, ROOT
from .fs.Record import FIELD_PARENT, Record
from .store.Datastore import NoSuchEntity, Query


# There is at most one Record instance per path in the cache at any time.
# Every Handle on a path shares that instance, and so shares its lock.
class RecordAccessor(object):
	def __init__(this, datastore):
		this.datastore = datastore

		# Cache lock: shared for lookups, exclusive for inserts and evictions.
		this.lock = ReadWriteLock()

		# path -> Record
		this.records = {}

	# RETURNS an OSError describing a failed backend operation.
	# Raise it "from" the original error to keep the cause.
	def Failure(this, operation, path, err):
		GetLogger().error(f"{operation} {path} failed: {err}")
		return IOError(errno.EIO, f"{operation} failed: {err}", path)

	def GetCached(this, path):
		with this.lock.read():
			return this.records.get(path)

	# Thread safe means of caching a Record, replacing whatever was cached for its path.
	def Insert(this, record):
		with this.lock.write():
			this.records[record.name] = record

	def InsertMany(this, records):
		with this.lock.write():
			for record in records:
				this.records[record.name] = record

	def Evict(this, path):
		with this.lock.write():
			this.records.pop(NormalizePath(path), None)

	def Load(this, path):
		path = NormalizePath(path)

		record = this.GetCached(path)
		if (record is not None):
			return record

		try:
			record = Record.From(path, this.datastore.Get(path))
		except NoSuchEntity:
			# The root always exists, whether or not anyone ever stored it.
			if (path != ROOT):
				raise IOError(errno.ENOENT, "no such file or directory", path)
			record = Record.CreateDir(ROOT)
		except Exception as err:
			raise this.Failure("open", path, err) from err

		# Someone else may have loaded the same path while we were waiting on the Datastore.
		# Theirs wins, so everyone shares one instance.
		with this.lock.write():
			return this.records.setdefault(path, record)

	# The root is never stored, so closing a handle on it is a no-op here.
	def Save(this, record):
		if (record.name == ROOT):
			return
		try:
			this.datastore.Put(record.name, record.GetDataToSave())
		except Exception as err:
			raise this.Failure("save", record.name, err) from err

	# Persist several records in one round trip.
	# Atomic on every Datastore in this package.
	def SaveMany(this, records):
		records = list(records)
		if (not records):
			return
		try:
			this.datastore.PutMulti(
				[record.name for record in records],
				[record.GetDataToSave() for record in records]
			)
		except Exception as err:
			raise this.Failure("save", records[-1].name, err) from err

	def Delete(this, path):
		path = NormalizePath(path)
		try:
			this.datastore.Delete(path)
		except Exception as err:
			raise this.Failure("remove", path, err) from err
		this.Evict(path)

	# Yields the children of parent, in key order.
	# Children already in the cache are returned as the cached instance so callers see unsaved writes.
	# There is no cursor: each call re-runs the query from offset.
	def ListChildren(this, parent, offset=0, limit=0):
		parent = NormalizePath(parent)
		query = Query(parent=parent, offset=offset, limit=limit)
		try:
			for key, entity in this.datastore.Run(query):
				# A stored root names itself as its parent.
				if (key == parent):
					continue
				cached = this.GetCached(key)
				yield cached if cached is not None else Record.From(key, entity)
		except Exception as err:
			raise this.Failure("readdir", parent, err) from err

	# Move one record from old to new in a single transaction.
	# Either both the put and the delete happen, or neither does.
	def RenameRecord(this, old, new):
		old = NormalizePath(old)
		new = NormalizePath(new)

		def Move(transaction):
			entity = transaction.Get(old)
			entity[FIELD_PARENT] = DirectoryOf(new)
			transaction.Put(new, entity)
			transaction.Delete(old)

		try:
			this.datastore.RunInTransaction(Move)
		except NoSuchEntity:
			raise IOError(errno.ENOENT, "no such file or directory", old)
		except Exception as err:
			raise this.Failure("rename", old, err) from err

		# Re-key the cache so nobody resolves the old path to a stale record.
		# Handles already open on the record keep working and will save under the new path.
		with this.lock.write():
			record = this.records.pop(old, None)
			this.records.pop(new, None)
			if (record is not None):
				record.Rename(new)
				this.records[new] = record

		GetLogger().debug(f"renamed {old} to {new}")

	# Delete path and every record below it in one batch.
	# Finds descendants by scanning the parent index over [path, path + MAX_SUFFIX).
	# That range also catches the children of siblings that merely share a prefix (e.g. /dir2/x for /dir), so results are filtered to true descendants.
	def DeleteSubtree(this, path):
		path = NormalizePath(path)
		query = Query(parent_min=path, parent_max=path + MAX_SUFFIX, keys_only=True)

		try:
			keys = [key for key, _ in this.datastore.Run(query) if key != path and IsUnder(key, path)]
			keys.append(path)
			this.datastore.DeleteMulti(keys)
		except Exception as err:
			raise this.Failure("removeall", path, err) from err

		with this.lock.write():
			for cached in [key for key in this.records if IsUnder(key, path)]:
				del this.records[cached]

		GetLogger().debug(f"removed {len(keys)} records under {path}")

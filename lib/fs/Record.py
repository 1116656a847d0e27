"""
lib/fs/Record.py

Purpose:
Provides the Record: the persisted representation of one file or directory. A Record is metadata plus the full byte payload of the file.

Place in Architecture:
The unit the RecordAccessor caches and the Datastores persist. Handles mutate the payload of a shared Record in place, under the Record's own lock.

Interface:

	__init__(name): Initializes an empty record for the given normalized path.
	CreateFile(name) / CreateDir(name, mode): Factories for new records.
	From(name, entity): Build a record from a stored entity.
	GetDataToSave(): RETURNS the entity (wire fields) to persist.
	LoadFromData(entity): Populate *this from a stored entity.
	Rename(name): Rewrite the path and parent of *this.

TODOs/FIXMEs:
None.
"""

import stat
import threading
from datetime import datetime, timezone

from ..Utils import DirectoryOf, NormalizePath

# Wire field names.
# These are the contract with every Datastore and must not change, or existing data becomes unreadable.
FIELD_MODE = "mode"
FIELD_DIRECTORY = "dir"
FIELD_PARENT = "parent"
FIELD_FORMAT = "format"
FIELD_SIZE = "size"
FIELD_DATA = "data"
FIELD_MOD_TIME = "mod_time"

FIELDS = [
	FIELD_MODE,
	FIELD_DIRECTORY,
	FIELD_PARENT,
	FIELD_FORMAT,
	FIELD_SIZE,
	FIELD_DATA,
	FIELD_MOD_TIME,
]

DEFAULT_FILE_MODE = stat.S_IFREG | 0o644
DEFAULT_DIR_MODE = stat.S_IFDIR | 0o755


def Now():
	return datetime.now(timezone.utc)


# A Record is the persisted form of a file or directory.
# The path is the key of the record in the backing store and is not stored as a field.
# NOTE: Anything that touches data, size or mod_time of a shared Record must hold record.lock.
class Record(object):
	def __init__(this, name):
		# Used if two handles have the same record loaded.
		this.lock = threading.RLock()

		this.name = NormalizePath(name)
		this.parent = DirectoryOf(this.name)
		this.mode = DEFAULT_FILE_MODE
		this.directory = False

		# Encoding of data, reserved for compression, encryption, etc.
		this.format = ""

		this.size = 0
		this.data = bytearray()
		this.mod_time = Now()

	def __repr__(this):
		kind = "dir" if this.directory else "file"
		return f"<Record {this.name} ({kind}, {len(this.data)} bytes)>"

	@classmethod
	def CreateFile(cls, name):
		ret = cls(name)
		ret.mode = DEFAULT_FILE_MODE
		return ret

	@classmethod
	def CreateDir(cls, name, mode=DEFAULT_DIR_MODE):
		ret = cls(name)
		ret.mode = int(mode)
		ret.directory = True
		return ret

	# Build a Record from an entity returned by a Datastore.
	# The key of the entity becomes the name of the Record.
	@classmethod
	def From(cls, name, entity):
		ret = cls(name)
		ret.LoadFromData(entity)
		return ret

	# RETURNS a dictionary of the wire fields that should be saved.
	def GetDataToSave(this):
		with this.lock:
			return {
				FIELD_MODE: this.mode,
				FIELD_DIRECTORY: this.directory,
				FIELD_PARENT: this.parent,
				FIELD_FORMAT: this.format,
				FIELD_SIZE: this.size,
				FIELD_DATA: bytes(this.data),
				FIELD_MOD_TIME: this.mod_time,
			}

	# Load the wire fields into *this.
	# The stored parent is ignored in favor of the one derived from the name, so a record can never disagree with its own key.
	def LoadFromData(this, entity):
		with this.lock:
			this.mode = int(entity.get(FIELD_MODE) or 0)
			this.directory = bool(entity.get(FIELD_DIRECTORY))
			this.format = entity.get(FIELD_FORMAT) or ""
			this.data = bytearray(entity.get(FIELD_DATA) or b"")
			this.size = int(entity.get(FIELD_SIZE) or len(this.data))
			this.mod_time = entity.get(FIELD_MOD_TIME) or Now()
			this.parent = DirectoryOf(this.name)

	# Move *this to a new path.
	def Rename(this, name):
		with this.lock:
			this.name = NormalizePath(name)
			this.parent = DirectoryOf(this.name)

	# Stamp mod_time and refresh the cached size from the payload.
	# Caller must hold this.lock.
	def Touch(this):
		this.mod_time = Now()
		this.size = len(this.data)

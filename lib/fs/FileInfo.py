"""
lib/fs/FileInfo.py

Purpose:
A read-only metadata view of a Record, used for stat and directory listings.

Place in Architecture:
Returned by DatastoreFS.stat(), Handle.stat() and Handle.readdir(). Never persisted.

Interface:

	From(record): Snapshot the metadata of a record.
	name, size, mode, mod_time, is_dir, sys.

TODOs/FIXMEs:
None.
"""

from dataclasses import dataclass, field
from datetime import datetime

from ..Utils import BaseName

# Size reported for every directory, regardless of what is stored.
DIRECTORY_SIZE = 42


@dataclass(frozen=True)
class FileInfo:
	name: str
	size: int
	mode: int
	mod_time: datetime
	is_dir: bool
	sys: object = field(default=None, repr=False, compare=False)

	@classmethod
	def From(cls, record):
		with record.lock:
			return cls(
				name=BaseName(record.name),
				size=DIRECTORY_SIZE if record.directory else len(record.data),
				mode=record.mode,
				mod_time=record.mod_time,
				is_dir=record.directory,
				sys=record,
			)

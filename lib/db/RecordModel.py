"""
lib/db/RecordModel.py

Purpose:
Defines the SQLAlchemy ORM model for filesystem records. Each row is one file or directory, keyed by its full path within a namespace and kind.

Place in Architecture:
Persistent storage used by SqlDatastore.

Interface:

	Defines columns: namespace, kind, key, mode, dir, parent, format, size, data, mod_time.
	ToEntity(): RETURNS the wire dictionary for the row.
	FromEntity(entity): Copies wire fields onto the row.

TODOs/FIXMEs:
None.
"""

from datetime import timezone

import sqlalchemy as sql
import sqlalchemy.orm as orm

Base = orm.declarative_base()


# Records store the full path as their key. There is no inode number: renaming a record means copying it to a new key.
# The parent column is what lets us emulate directories on a flat table.
class RecordModel(Base):
	__tablename__ = 'fs_record'
	__table_args__ = (
		sql.Index('ix_fs_record_parent', 'namespace', 'kind', 'parent', 'key'),
	)

	# Lookup info.
	namespace = sql.Column(sql.String(255), primary_key=True, default="")
	kind = sql.Column(sql.String(255), primary_key=True, default="file")
	key = sql.Column(sql.String(1024), primary_key=True)

	# Filesystem data.
	mode = sql.Column(sql.BigInteger, nullable=False, default=0)
	dir = sql.Column(sql.Boolean, nullable=False, default=False)
	parent = sql.Column(sql.String(1024), nullable=False)
	format = sql.Column(sql.String(255), nullable=False, default="")
	size = sql.Column(sql.BigInteger, nullable=False, default=0)
	data = sql.Column(sql.LargeBinary, nullable=False, default=b"")
	mod_time = sql.Column(sql.DateTime(timezone=True))

	def __repr__(this):
		return f"<{this.key} ({this.namespace}/{this.kind}) in {this.parent}>"

	def ToEntity(this):
		# SQLite hands back naive datetimes; everything we store is UTC.
		modTime = this.mod_time
		if (modTime is not None and modTime.tzinfo is None):
			modTime = modTime.replace(tzinfo=timezone.utc)

		return {
			'mode': this.mode,
			'dir': this.dir,
			'parent': this.parent,
			'format': this.format,
			'size': this.size,
			'data': bytes(this.data or b""),
			'mod_time': modTime,
		}

	def FromEntity(this, entity):
		this.mode = int(entity.get('mode') or 0)
		this.dir = bool(entity.get('dir'))
		this.parent = entity.get('parent') or ""
		this.format = entity.get('format') or ""
		this.size = int(entity.get('size') or 0)
		this.data = bytes(entity.get('data') or b"")
		this.mod_time = entity.get('mod_time')

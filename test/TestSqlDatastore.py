import os
import shutil
import tempfile

import sqlalchemy as sql

from DatastoreBehavior import DatastoreBehavior, Entity
from FileSystemBehavior import FileSystemBehavior

from libdatastorefs import DatastoreFS, Query
from libdatastorefs.db.RecordModel import RecordModel
from libdatastorefs.store.SqlDatastore import SqlDatastore


class TestSqlDatastore(DatastoreBehavior):

	# Other namespaces share the first store's engine, and so its database.
	def MakeDatastore(this, namespace=""):
		if (namespace):
			return SqlDatastore(namespace=namespace, engine=this.datastore.engine)
		return SqlDatastore("sqlite://")

	def test_rows(this):
		this.datastore.Put("/f", Entity("/", b"row"))
		with this.datastore.Session() as session:
			rows = session.query(RecordModel).all()
		this.assert_equal(len(rows), 1)
		this.assert_equal((rows[0].namespace, rows[0].kind, rows[0].key, rows[0].parent), ("", "file", "/f", "/"))

	def test_mod_time_is_utc(this):
		entity = Entity("/", b"x")
		this.datastore.Put("/f", entity)
		this.assert_equal(this.datastore.Get("/f")['mod_time'], entity['mod_time'])

	def test_delete_many(this):
		keys = [f"/d/{i:04d}" for i in range(1200)]
		this.datastore.PutMulti(keys, [Entity("/d") for _ in keys])
		this.datastore.DeleteMulti(keys[:1100])
		this.assert_equal(this.datastore.GetAll(Query(parent="/d")), keys[1100:])


class TestSqlFileSystem(FileSystemBehavior):

	def MakeDatastore(this, namespace=""):
		return SqlDatastore("sqlite://", namespace=namespace)


# A database file outlives the engine that wrote it.
class TestSqlFileSystemOnDisk(FileSystemBehavior):

	def MakeDatastore(this, namespace=""):
		this.url = f"sqlite:///{os.path.join(this.tempdir, 'fs.db')}"
		return SqlDatastore(this.url, namespace=namespace)

	def setup_method(this, method):
		this.tempdir = tempfile.mkdtemp()
		super().setup_method(method)

	def teardown_method(this, method):
		super().teardown_method(method)
		shutil.rmtree(this.tempdir)

	def test_reopen_database(this):
		this.WriteFile("/a/b", b"on disk")
		this.fs.close()

		this.fs = DatastoreFS(SqlDatastore(this.url))
		this.assert_equal(this.ReadFile("/a/b"), b"on disk")
		this.assert_equal(this.fs.stat("/a").is_dir, True)

	def test_engine_is_file_backed(this):
		this.assert_equal(isinstance(this.datastore.engine, sql.engine.Engine), True)
		this.assert_equal(this.datastore.engine.url.database, os.path.join(this.tempdir, 'fs.db'))

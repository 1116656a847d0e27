import errno
import os

import pytest

from StandardTestFixture import StandardTestFixture

from libdatastorefs import DatastoreFS, MemoryDatastore, Record


# A store whose connection went away.
class BrokenDatastore(MemoryDatastore):

	def Fail(this, *args, **kwargs):
		raise ConnectionError("backend unavailable")

	Get = Fail
	Put = Fail
	PutMulti = Fail
	Delete = Fail
	DeleteMulti = Fail
	RunInTransaction = Fail

	def Run(this, query):
		raise ConnectionError("backend unavailable")
		yield


class TestRecordAccessor(StandardTestFixture):

	def MakeDatastore(this, namespace=""):
		return BrokenDatastore(namespace=namespace)

	@pytest.mark.parametrize("operation, args", [
		("stat", ("/f",)),
		("open", ("/f",)),
		("create", ("/f",)),
		("mkdir", ("/d",)),
		("mkdir_all", ("/a/b",)),
		("rename", ("/a", "/b")),
	])
	def test_backend_failures_are_io_errors(this, operation, args):
		err = this.assert_errno(errno.EIO, getattr(this.fs, operation), *args)
		this.assert_equal(isinstance(err.__cause__, ConnectionError) or isinstance(err.__cause__, OSError), True)

	def test_failure_names_operation_and_path(this):
		err = this.assert_errno(errno.EIO, this.fs.stat, "/some/file")
		this.assert_equal(err.filename, "/some/file")
		this.assert_equal(err.strerror.startswith("open failed"), True)

	def test_readdir_failure(this):
		this.fs.accessor.Insert(Record.CreateDir("/dir"))
		dir = this.fs.open("/dir")
		err = this.assert_errno(errno.EIO, dir.readdir)
		this.assert_equal(err.strerror.startswith("readdir failed"), True)

	def test_close_failure(this):
		record = Record.CreateFile("/cached")
		this.fs.accessor.Insert(record)
		file = this.fs.open_file("/cached", os.O_RDWR)
		file.write(b"lost")
		err = this.assert_errno(errno.EIO, file.close)
		this.assert_equal(err.strerror.startswith("save failed"), True)

	def test_remove_failures(this):
		this.fs.accessor.Insert(Record.CreateDir("/dir"))
		this.assert_errno(errno.EIO, this.fs.remove_all, "/dir")
		this.assert_errno(errno.EIO, this.fs.remove, "/dir")

		# A failed delete leaves the cache alone.
		this.assert_equal(this.fs.stat("/dir").is_dir, True)


class TestLoad(StandardTestFixture):

	def test_root_is_synthesized(this):
		root = this.fs.accessor.Load("/")
		this.assert_equal(root.directory, True)
		this.assert_equal(this.fs.accessor.Load("") is root, True)

	def test_concurrent_loads_share_one_record(this):
		this.WriteFile("/f", b"x")
		other = DatastoreFS(this.datastore)
		first = other.accessor.Load("/f")
		this.assert_equal(other.accessor.Load("f") is first, True)

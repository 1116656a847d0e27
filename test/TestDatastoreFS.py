import logging

from FileSystemBehavior import FileSystemBehavior

from libdatastorefs import NewFileSystem, SetLogging, Verbose
from libdatastorefs.Logging import GetLogger


class TestMemoryFileSystem(FileSystemBehavior):

	def test_cache_shares_records(this):
		first = this.fs.create("/f")
		second = this.fs.open("/f")
		this.assert_equal(first.record is second.record, True)
		first.write(b"shared")
		this.assert_equal(second.read(), b"shared")
		first.close()
		second.close()

	def test_remove_all_evicts_cache(this):
		this.WriteFile("/dir/a", b"a")
		this.fs.remove_all("/dir")
		this.assert_equal(this.fs.accessor.records.get("/dir/a"), None)
		this.assert_equal(this.fs.accessor.records.get("/dir"), None)

	def test_rename_rekeys_cache(this):
		this.WriteFile("/x", b"hello")
		record = this.fs.accessor.records["/x"]
		this.fs.rename("/x", "/y")
		this.assert_equal("/x" in this.fs.accessor.records, False)
		this.assert_equal(this.fs.accessor.records["/y"] is record, True)
		this.assert_equal((record.name, record.parent), ("/y", "/"))

	def test_operations_are_logged(this, caplog):
		with caplog.at_level(logging.DEBUG, logger="libdatastorefs"):
			this.fs.mkdir_all("/logged/dir")
			this.fs.create("/logged/dir/file").close()
		messages = [r.getMessage() for r in caplog.records]
		this.assert_equal("MkdirAll /logged/dir" in messages, True)
		this.assert_equal("Create /logged/dir/file" in messages, True)
		this.assert_equal("Close /logged/dir/file" in messages, True)

	def test_set_logging(this):
		previous = GetLogger()
		replacement = logging.getLogger("test.datastorefs")
		try:
			SetLogging(replacement)
			this.assert_equal(GetLogger() is replacement, True)
		finally:
			SetLogging(previous)

	def test_verbose_attaches_one_handler(this):
		logger = GetLogger()
		level = logger.level
		before = list(logger.handlers)
		try:
			Verbose()
			Verbose()
			NewFileSystem(verbose=True).close()
			added = [handler for handler in logger.handlers if handler not in before]
			this.assert_equal(len(added), 1)
			this.assert_equal(logger.level, logging.DEBUG)
		finally:
			for handler in [handler for handler in logger.handlers if handler not in before]:
				logger.removeHandler(handler)
			logger.setLevel(level)

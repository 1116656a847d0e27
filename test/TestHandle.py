import errno
import os

from StandardTestFixture import StandardTestFixture


class TestHandle(StandardTestFixture):

	def setup_method(this, method):
		super().setup_method(method)
		this.file = this.fs.create("/file")

	def test_gap_fill(this):
		this.file.write_at(b"\x41\x41", 4)
		this.assert_equal(this.file.read_at(6, 0), b"\x00\x00\x00\x00\x41\x41")

	def test_write_keeps_tail(this):
		this.file.write(b"hello world")
		this.file.write_at(b"HE", 0)
		this.file.seek(0)
		this.assert_equal(this.file.read(), b"HEllo world")

	def test_write_moves_cursor_to_end(this):
		this.file.write(b"0123456789")
		this.file.write_at(b"ab", 2)
		this.assert_equal(this.file.tell(), 10)

	def test_write_string(this):
		this.assert_equal(this.file.write_string("héllo"), 6)
		this.assert_equal(this.file.read_at(100, 0), "héllo".encode('utf-8'))

	def test_write_negative_offset(this):
		this.file.seek(-1)
		this.assert_errno(errno.EINVAL, this.file.write, b"x")

	def test_read(this):
		this.file.write(b"abcdef")
		this.file.seek(0)
		this.assert_equal(this.file.read(2), b"ab")
		this.assert_equal(this.file.tell(), 2)
		this.assert_equal(this.file.read(100), b"cdef")
		this.assert_equal(this.file.read(1), b"")
		this.assert_equal(this.file.read(0), b"")

	def test_read_past_end(this):
		this.file.write(b"abc")
		this.file.seek(10)
		this.assert_equal(this.file.read(), b"")
		this.file.seek(-5)
		this.assert_equal(this.file.read(), b"")

	def test_readinto(this):
		this.file.write(b"abcdef")
		buffer = bytearray(4)
		this.assert_equal(this.file.readinto_at(buffer, 1), 4)
		this.assert_equal(bytes(buffer), b"bcde")
		this.assert_equal(this.file.readinto(buffer), 1)
		this.assert_equal(bytes(buffer[:1]), b"f")
		this.assert_equal(this.file.readinto(buffer), 0)

	def test_seek(this):
		this.file.write(b"0123456789")
		this.assert_equal(this.file.seek(3), 3)
		this.assert_equal(this.file.seek(2, os.SEEK_CUR), 5)
		this.assert_equal(this.file.seek(-4, os.SEEK_END), 6)
		this.assert_equal(this.file.read(), b"6789")
		this.assert_errno(errno.EINVAL, this.file.seek, 0, 7)

	def test_truncate(this):
		this.file.write(b"abc")
		this.file.truncate(6)
		this.assert_equal(this.file.read_at(10, 0), b"abc\x00\x00\x00")
		this.file.truncate(2)
		this.assert_equal(this.file.read_at(10, 0), b"ab")
		this.assert_equal(this.file.stat().size, 2)

	def test_truncate_negative(this):
		this.assert_errno(errno.EINVAL, this.file.truncate, -1)

	def test_closed(this):
		this.file.close()
		this.assert_equal(this.file.closed, True)
		this.assert_errno(errno.EBADF, this.file.read)
		this.assert_errno(errno.EBADF, this.file.write, b"x")
		this.assert_errno(errno.EBADF, this.file.truncate, 0)
		this.assert_errno(errno.EBADF, this.file.seek, 0)
		this.assert_errno(errno.EBADF, this.file.close)

	def test_reopen(this):
		this.file.write(b"again")
		this.file.close()
		this.file.open()
		this.assert_equal(this.file.tell(), 0)
		this.assert_equal(this.file.read(), b"again")

	def test_context_manager_closes_once(this):
		with this.file as file:
			file.write(b"x")
			file.close()
		this.assert_equal(this.file.closed, True)

	def test_close_stamps_size_and_time(this):
		before = this.file.record.mod_time
		this.file.write(b"12345")
		this.file.close()
		this.assert_equal(this.file.record.size, 5)
		this.assert_equal(this.file.record.mod_time >= before, True)

	def test_stat_and_name(this):
		this.file.write(b"xyz")
		info = this.file.stat()
		this.assert_equal((info.name, info.size, info.is_dir), ("file", 3, False))
		this.assert_equal(info.sys is this.file.record, True)
		this.assert_equal(this.file.name, "/file")

	def test_sync(this):
		this.file.sync()

	def test_readdirnames_restart_on_reopen(this):
		this.WriteFile("/dir/a", b"")
		dir = this.fs.open("/dir")
		this.assert_equal(dir.readdirnames(), ["a"])
		this.assert_equal(dir.readdirnames(1), [])
		dir.close()
		dir.open()
		this.assert_equal(dir.readdirnames(1), ["a"])
		dir.close()

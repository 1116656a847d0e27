import os
import threading

from StandardTestFixture import StandardTestFixture

from libdatastorefs.ReadWriteLock import ReadWriteLock


def RunThreads(target, count):
	errors = []

	def Wrapped(n):
		try:
			target(n)
		except Exception as err:
			errors.append(err)

	threads = [threading.Thread(target=Wrapped, args=(n,)) for n in range(count)]
	for thread in threads:
		thread.start()
	for thread in threads:
		thread.join()
	return errors


class TestConcurrency(StandardTestFixture):

	def test_handles_sharing_a_record(this):
		this.fs.create("/shared").close()
		chunk = 64

		def Writer(n):
			with this.fs.open_file("/shared", os.O_RDWR) as file:
				for i in range(10):
					file.write_at(bytes([65 + n]) * chunk, (n * 10 + i) * chunk)

		this.assert_equal(RunThreads(Writer, 8), [])

		data = this.ReadFile("/shared")
		this.assert_equal(len(data), 8 * 10 * chunk)
		for n in range(8):
			start = n * 10 * chunk
			this.assert_equal(data[start:start + 10 * chunk], bytes([65 + n]) * 10 * chunk)

	def test_concurrent_mkdir_all(this):
		this.assert_equal(RunThreads(lambda n: this.fs.mkdir_all("/a/b/c"), 8), [])
		this.assert_equal(sorted(key for (_, _, key) in this.datastore.entities), ["/a", "/a/b", "/a/b/c"])

	def test_concurrent_creates_in_one_directory(this):
		def Creator(n):
			for i in range(10):
				with this.fs.create(f"/dir/{n}-{i}") as file:
					file.write_string(f"{n}:{i}")

		this.assert_equal(RunThreads(Creator, 6), [])
		with this.fs.open("/dir") as dir:
			names = dir.readdirnames()
		this.assert_equal(len(names), 60)
		this.assert_equal(names, sorted(names))

	def test_concurrent_renames(this):
		for n in range(8):
			this.WriteFile(f"/src/{n}", str(n).encode())

		this.assert_equal(RunThreads(lambda n: this.fs.rename(f"/src/{n}", f"/dst/{n}"), 8), [])

		for n in range(8):
			this.assert_equal(this.ReadFile(f"/dst/{n}"), str(n).encode())
		with this.fs.open("/src") as dir:
			this.assert_equal(dir.readdirnames(), [])


class TestReadWriteLock(StandardTestFixture):

	def test_readers_share(this):
		lock = ReadWriteLock()
		inside = threading.Barrier(3, timeout=5)

		def Reader(n):
			with lock.read():
				inside.wait()

		this.assert_equal(RunThreads(Reader, 3), [])

	def test_writer_excludes_readers(this):
		lock = ReadWriteLock()
		events = []

		with lock.write():
			reader = threading.Thread(target=lambda: (lock.acquire_read(), events.append("read"), lock.release_read()))
			reader.start()
			reader.join(0.1)
			events.append("write done")
		reader.join(5)

		this.assert_equal(events, ["write done", "read"])

	def test_write_is_reentrant(this):
		lock = ReadWriteLock()
		with lock.write():
			with lock.write():
				with lock.read():
					pass
		with lock.write():
			pass

"""
lib/store/RedisDatastore.py

Purpose:
A Datastore over Redis.

Place in Architecture:
One of the interchangeable backends behind the RecordAccessor. Each record is a Redis hash. A single sorted set, with every member at score 0, holds "<parent>\\x00<key>" for every record, so ZRANGEBYLEX gives us both the key-ordered listing of one directory and the parent range scan used by subtree deletes.

Interface:

	__init__(client=None, namespace, kind, host, port, db, retries): Adopts a client or connects.
	See lib/store/Datastore.py for the rest.

TODOs/FIXMEs:
None.
"""

from datetime import datetime

import redis

from ..Logging import GetLogger
from ..Utils import ExponentialSleep
from .Datastore import Datastore, NoSuchEntity, Transaction

SEPARATOR = "\x00"


class RedisTransaction(Transaction):
	def __init__(this, store, pipe):
		this.store = store
		this.pipe = pipe

		# (key, entity or None for delete, previously indexed parent)
		this.writes = []

	# Reads happen immediately, and WATCH the key so the commit fails if anyone else touches it first.
	def Watch(this, key):
		entityKey = this.store.EntityKey(key)
		this.pipe.watch(entityKey)
		return this.pipe.hgetall(entityKey)

	def Get(this, key):
		raw = this.Watch(key)
		if (not raw):
			raise NoSuchEntity(key)
		return this.store.Decode(raw)

	def Put(this, key, entity):
		raw = this.Watch(key)
		this.writes.append((key, entity, this.store.RawParent(raw)))
		return key

	def Delete(this, key):
		raw = this.Watch(key)
		this.writes.append((key, None, this.store.RawParent(raw)))

	def Apply(this):
		this.pipe.multi()
		for key, entity, oldParent in this.writes:
			if (entity is None):
				this.store.QueueDelete(this.pipe, key, oldParent)
			else:
				this.store.QueuePut(this.pipe, key, entity, oldParent)
		this.pipe.execute()


class RedisDatastore(Datastore):
	def __init__(this, client=None, namespace="", kind="file", host="localhost", port=6379, db=0, retries=15):
		super().__init__(namespace, kind)

		if (client is None):
			client = redis.Redis(host=host, port=port, db=db)
		this.redis = client

		# Number of times to retry a transaction whose watched keys changed underneath it.
		this.retries = retries

		this.prefix = f"datastorefs:{this.namespace}:{this.kind}"
		this.indexKey = f"{this.prefix}:parent"

	def EntityKey(this, key):
		return f"{this.prefix}:entity:{key}"

	@staticmethod
	def IndexMember(parent, key):
		return f"{parent}{SEPARATOR}{key}"

	@staticmethod
	def SplitMember(member):
		if (isinstance(member, bytes)):
			member = member.decode('utf-8')
		parent, key = member.split(SEPARATOR, 1)
		return parent, key

	@staticmethod
	def RawParent(raw):
		if (not raw):
			return None
		parent = raw.get(b'parent')
		return parent.decode('utf-8') if parent is not None else None

	# Redis hashes only hold strings and bytes.
	@staticmethod
	def Encode(entity):
		modTime = entity.get('mod_time')
		return {
			'mode': str(int(entity.get('mode') or 0)),
			'dir': "1" if entity.get('dir') else "0",
			'parent': entity.get('parent') or "",
			'format': entity.get('format') or "",
			'size': str(int(entity.get('size') or 0)),
			'data': bytes(entity.get('data') or b""),
			'mod_time': modTime.isoformat() if modTime else "",
		}

	@staticmethod
	def Decode(raw):
		def Text(field):
			return raw.get(field, b"").decode('utf-8')

		modTime = Text(b'mod_time')
		return {
			'mode': int(Text(b'mode') or 0),
			'dir': Text(b'dir') == "1",
			'parent': Text(b'parent'),
			'format': Text(b'format'),
			'size': int(Text(b'size') or 0),
			'data': bytes(raw.get(b'data', b"")),
			'mod_time': datetime.fromisoformat(modTime) if modTime else None,
		}

	def QueuePut(this, pipe, key, entity, oldParent=None):
		encoded = this.Encode(entity)
		if (oldParent is not None and oldParent != encoded['parent']):
			pipe.zrem(this.indexKey, this.IndexMember(oldParent, key))
		pipe.delete(this.EntityKey(key))
		pipe.hset(this.EntityKey(key), mapping=encoded)
		pipe.zadd(this.indexKey, {this.IndexMember(encoded['parent'], key): 0})

	def QueueDelete(this, pipe, key, oldParent):
		pipe.delete(this.EntityKey(key))
		if (oldParent is not None):
			pipe.zrem(this.indexKey, this.IndexMember(oldParent, key))

	def Get(this, key):
		raw = this.redis.hgetall(this.EntityKey(key))
		if (not raw):
			raise NoSuchEntity(key)
		return this.Decode(raw)

	def GetMulti(this, keys):
		keys = list(keys)
		pipe = this.redis.pipeline(transaction=False)
		for key in keys:
			pipe.hgetall(this.EntityKey(key))
		ret = []
		for key, raw in zip(keys, pipe.execute()):
			if (not raw):
				raise NoSuchEntity(key)
			ret.append(this.Decode(raw))
		return ret

	def Put(this, key, entity):
		return this.PutMulti([key], [entity])[0]

	def PutMulti(this, keys, entities):
		if (len(keys) != len(entities)):
			raise ValueError("keys and entities must be the same length")
		keys = list(keys)
		oldParents = this.ReadParents(keys)
		pipe = this.redis.pipeline(transaction=True)
		for key, entity, oldParent in zip(keys, entities, oldParents):
			this.QueuePut(pipe, key, entity, oldParent)
		pipe.execute()
		return keys

	def Delete(this, key):
		this.DeleteMulti([key])

	def DeleteMulti(this, keys):
		keys = list(keys)
		if (not keys):
			return
		oldParents = this.ReadParents(keys)
		pipe = this.redis.pipeline(transaction=True)
		for key, oldParent in zip(keys, oldParents):
			this.QueueDelete(pipe, key, oldParent)
		pipe.execute()

	def ReadParents(this, keys):
		pipe = this.redis.pipeline(transaction=False)
		for key in keys:
			pipe.hget(this.EntityKey(key), 'parent')
		return [parent.decode('utf-8') if parent is not None else None for parent in pipe.execute()]

	def Run(this, query):
		if (query.parent is not None):
			# Members of one parent are contiguous and already in key order.
			low = f"[{query.parent}{SEPARATOR}"
			high = f"({query.parent}\x01"
			if (query.limit > 0):
				members = this.redis.zrangebylex(this.indexKey, low, high, start=max(query.offset, 0), num=query.limit)
			else:
				members = this.redis.zrangebylex(this.indexKey, low, high)[max(query.offset, 0):]
			keys = [this.SplitMember(member)[1] for member in members]
		else:
			low = f"[{query.parent_min}" if query.parent_min is not None else "-"
			high = f"({query.parent_max}" if query.parent_max is not None else "+"
			pairs = [this.SplitMember(member) for member in this.redis.zrangebylex(this.indexKey, low, high)]
			keys = sorted(key for parent, key in pairs if query.Matches(parent))
			keys = query.Page(keys)

		if (query.keys_only):
			for key in keys:
				yield key, None
			return

		pipe = this.redis.pipeline(transaction=False)
		for key in keys:
			pipe.hgetall(this.EntityKey(key))
		for key, raw in zip(keys, pipe.execute()):
			# Deleted between the index scan and the fetch.
			if (not raw):
				continue
			yield key, this.Decode(raw)

	def RunInTransaction(this, fn):
		for attempt in range(this.retries + 1):
			with this.redis.pipeline(transaction=True) as pipe:
				try:
					transaction = RedisTransaction(this, pipe)
					fn(transaction)
					transaction.Apply()
					return
				except redis.WatchError as err:
					if (attempt >= this.retries):
						GetLogger().error(f"Transaction abandoned after {attempt + 1} attempts: {err}")
						raise
					GetLogger().debug(f"Transaction conflict, retrying ({attempt + 1}/{this.retries})")
			ExponentialSleep(attempt)

	def Close(this):
		this.redis.close()

"""
lib/store/MemoryDatastore.py

Purpose:
An in-process Datastore.

Place in Architecture:
The default backend. Useful for tests and for embedding a throwaway filesystem. Entities are copied on the way in and out, so callers never share mutable state with the store.

Interface:

	See lib/store/Datastore.py.

TODOs/FIXMEs:
None.
"""

import copy
import threading

from ..fs.Record import FIELD_PARENT
from .Datastore import Datastore, NoSuchEntity, Transaction


class MemoryTransaction(Transaction):
	def __init__(this, store):
		this.store = store
		this.puts = {}
		this.deletes = set()

	def Get(this, key):
		if (key in this.deletes):
			raise NoSuchEntity(key)
		if (key in this.puts):
			return copy.deepcopy(this.puts[key])
		return this.store.Get(key)

	def Put(this, key, entity):
		this.deletes.discard(key)
		this.puts[key] = copy.deepcopy(entity)
		return key

	def Delete(this, key):
		this.puts.pop(key, None)
		this.deletes.add(key)

	def Apply(this):
		for key, entity in this.puts.items():
			this.store.entities[this.store.Scope(key)] = entity
		for key in this.deletes:
			this.store.entities.pop(this.store.Scope(key), None)


class MemoryDatastore(Datastore):
	def __init__(this, namespace="", kind="file"):
		super().__init__(namespace, kind)

		# Held for every operation, and for the whole body of a transaction.
		this.lock = threading.RLock()

		# (namespace, kind, key) -> entity
		this.entities = {}

	def Scope(this, key):
		return (this.namespace, this.kind, key)

	def Get(this, key):
		with this.lock:
			try:
				return copy.deepcopy(this.entities[this.Scope(key)])
			except KeyError:
				raise NoSuchEntity(key)

	def Put(this, key, entity):
		with this.lock:
			this.entities[this.Scope(key)] = copy.deepcopy(entity)
		return key

	def PutMulti(this, keys, entities):
		if (len(keys) != len(entities)):
			raise ValueError("keys and entities must be the same length")
		with this.lock:
			for key, entity in zip(keys, entities):
				this.entities[this.Scope(key)] = copy.deepcopy(entity)
		return list(keys)

	def Delete(this, key):
		with this.lock:
			this.entities.pop(this.Scope(key), None)

	def DeleteMulti(this, keys):
		with this.lock:
			for key in keys:
				this.entities.pop(this.Scope(key), None)

	def Run(this, query):
		with this.lock:
			matches = [
				(scope[2], entity)
				for scope, entity in this.entities.items()
				if scope[:2] == (this.namespace, this.kind) and query.Matches(entity.get(FIELD_PARENT, ""))
			]
			matches.sort(key=lambda pair: pair[0])
			page = query.Page(matches)
			results = [(key, None if query.keys_only else copy.deepcopy(entity)) for key, entity in page]

		for result in results:
			yield result

	def RunInTransaction(this, fn):
		with this.lock:
			transaction = MemoryTransaction(this)
			fn(transaction)
			transaction.Apply()

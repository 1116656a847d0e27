"""
lib/store/Datastore.py

Purpose:
Defines the contract every backing store must satisfy: a flat, key-ordered collection of entities with exact-key access, a parent index that can be scanned by exact value or by range, and transactions.

Place in Architecture:
The only thing the RecordAccessor knows about storage. MemoryDatastore, SqlDatastore and RedisDatastore implement it.

Interface:

	NoSuchEntity: Raised by Get when a key is absent.
	Query: Parent filter (exact or half-open range), ordering by key, offset, limit, keys only.
	Transaction: Get, Put and Delete inside RunInTransaction.
	Datastore: Get, GetMulti, Put, PutMulti, Delete, DeleteMulti, Run, RunInTransaction.

TODOs/FIXMEs:
None.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple


class NoSuchEntity(LookupError):
	def __init__(this, key):
		super().__init__(f"no such entity: {key}")
		this.key = key


@dataclass
class Query:
	"""
	A scan over the parent index.

	Exactly one of parent or (parent_min, parent_max) should be given.
	Results are always ordered by key, ascending.
	A limit of 0 or less means no limit.
	"""
	parent: Optional[str] = None
	parent_min: Optional[str] = None
	parent_max: Optional[str] = None
	offset: int = 0
	limit: int = 0
	keys_only: bool = False

	def Matches(this, parent):
		if (this.parent is not None):
			return parent == this.parent
		if (this.parent_min is not None and parent < this.parent_min):
			return False
		if (this.parent_max is not None and parent >= this.parent_max):
			return False
		return True

	# Apply offset and limit to an already ordered sequence.
	def Page(this, ordered):
		start = max(this.offset, 0)
		if (this.limit > 0):
			return ordered[start:start + this.limit]
		return ordered[start:]


# Operations available to the function given to Datastore.RunInTransaction.
# Nothing written through a Transaction is visible to anyone else until the function returns successfully.
class Transaction(ABC):

	@abstractmethod
	def Get(this, key) -> dict:
		pass

	@abstractmethod
	def Put(this, key, entity):
		pass

	@abstractmethod
	def Delete(this, key):
		pass


class Datastore(ABC):
	"""
	A flat key -> entity store.

	Entities are dictionaries of the wire fields described in lib/fs/Record.py.
	Keys are scoped by namespace and kind, so several filesystems can share one store.
	"""

	def __init__(this, namespace="", kind="file"):
		this.namespace = namespace or ""
		this.kind = kind or "file"

	# RETURNS the entity stored at key.
	# Raises NoSuchEntity if there is none.
	@abstractmethod
	def Get(this, key) -> dict:
		pass

	# RETURNS a list of entities aligned with keys.
	# Raises NoSuchEntity on the first key that is absent.
	def GetMulti(this, keys) -> List[dict]:
		return [this.Get(key) for key in keys]

	# RETURNS the key the entity was stored under.
	@abstractmethod
	def Put(this, key, entity) -> str:
		pass

	@abstractmethod
	def PutMulti(this, keys, entities) -> List[str]:
		pass

	# Deleting a key that does not exist is not an error.
	@abstractmethod
	def Delete(this, key):
		pass

	@abstractmethod
	def DeleteMulti(this, keys):
		pass

	# Yields (key, entity) pairs, or (key, None) for keys only queries.
	# Every call re-runs the query, so a scan can be restarted from any offset.
	@abstractmethod
	def Run(this, query) -> Iterator[Tuple[str, Optional[dict]]]:
		pass

	# Execute fn(transaction).
	# The transaction commits only if fn returns without raising; otherwise nothing fn did is kept and the exception propagates.
	@abstractmethod
	def RunInTransaction(this, fn):
		pass

	# RETURNS every key matching the query.
	def GetAll(this, query):
		query.keys_only = True
		return [key for key, _ in this.Run(query)]

	def Close(this):
		pass

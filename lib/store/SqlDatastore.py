"""
lib/store/SqlDatastore.py

Purpose:
A Datastore over any database SQLAlchemy can talk to.

Place in Architecture:
One of the interchangeable backends behind the RecordAccessor. Every record is a row of RecordModel; the (namespace, kind, parent, key) index serves both exact-parent listings and the parent range scan used by subtree deletes.

Interface:

	__init__(url, namespace, kind, engine=None): Connects (or adopts an engine) and creates the table if needed.
	See lib/store/Datastore.py for the rest.

TODOs/FIXMEs:
None.
"""

import sqlalchemy as sql
import sqlalchemy.orm as orm
from sqlalchemy.pool import StaticPool

from ..db.RecordModel import Base, RecordModel
from .Datastore import Datastore, NoSuchEntity, Transaction

# How many keys go into a single IN clause.
DELETE_BATCH = 500


class SqlTransaction(Transaction):
	def __init__(this, store, session):
		this.store = store
		this.session = session

	def Get(this, key):
		row = this.session.get(RecordModel, this.store.Scope(key))
		if (row is None):
			raise NoSuchEntity(key)
		return row.ToEntity()

	def Put(this, key, entity):
		this.store.Merge(this.session, key, entity)
		return key

	def Delete(this, key):
		row = this.session.get(RecordModel, this.store.Scope(key))
		if (row is not None):
			this.session.delete(row)


class SqlDatastore(Datastore):
	def __init__(this, url="sqlite://", namespace="", kind="file", engine=None):
		super().__init__(namespace, kind)

		if (engine is None):
			engine = this.CreateEngine(url)
		this.engine = engine

		Base.metadata.create_all(this.engine)
		this.Session = orm.sessionmaker(bind=this.engine, expire_on_commit=False)

	# An in-memory SQLite database exists per connection, so every thread must share the one connection.
	@staticmethod
	def CreateEngine(url):
		parsed = sql.engine.make_url(url)
		if (parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")):
			return sql.create_engine(
				url,
				poolclass=StaticPool,
				connect_args={"check_same_thread": False},
			)
		return sql.create_engine(url)

	def Scope(this, key):
		return (this.namespace, this.kind, key)

	def Merge(this, session, key, entity):
		row = RecordModel(namespace=this.namespace, kind=this.kind, key=key)
		row.FromEntity(entity)
		session.merge(row)

	def Filter(this, session, *columns):
		return session.query(*columns).filter(
			RecordModel.namespace == this.namespace,
			RecordModel.kind == this.kind,
		)

	def Get(this, key):
		with this.Session() as session:
			row = session.get(RecordModel, this.Scope(key))
			if (row is None):
				raise NoSuchEntity(key)
			return row.ToEntity()

	def GetMulti(this, keys):
		keys = list(keys)
		with this.Session() as session:
			rows = {
				row.key: row
				for row in this.Filter(session, RecordModel).filter(RecordModel.key.in_(keys)).all()
			}
		ret = []
		for key in keys:
			if (key not in rows):
				raise NoSuchEntity(key)
			ret.append(rows[key].ToEntity())
		return ret

	def Put(this, key, entity):
		with this.Session.begin() as session:
			this.Merge(session, key, entity)
		return key

	def PutMulti(this, keys, entities):
		if (len(keys) != len(entities)):
			raise ValueError("keys and entities must be the same length")
		with this.Session.begin() as session:
			for key, entity in zip(keys, entities):
				this.Merge(session, key, entity)
		return list(keys)

	def Delete(this, key):
		this.DeleteMulti([key])

	def DeleteMulti(this, keys):
		keys = list(keys)
		with this.Session.begin() as session:
			for i in range(0, len(keys), DELETE_BATCH):
				batch = keys[i:i + DELETE_BATCH]
				this.Filter(session, RecordModel).filter(RecordModel.key.in_(batch)).delete(synchronize_session=False)

	def Run(this, query):
		with this.Session() as session:
			if (query.keys_only):
				q = this.Filter(session, RecordModel.key)
			else:
				q = this.Filter(session, RecordModel)

			if (query.parent is not None):
				q = q.filter(RecordModel.parent == query.parent)
			else:
				if (query.parent_min is not None):
					q = q.filter(RecordModel.parent >= query.parent_min)
				if (query.parent_max is not None):
					q = q.filter(RecordModel.parent < query.parent_max)

			q = q.order_by(RecordModel.key)
			if (query.offset > 0):
				q = q.offset(query.offset)
			if (query.limit > 0):
				q = q.limit(query.limit)

			if (query.keys_only):
				results = [(row.key, None) for row in q.all()]
			else:
				results = [(row.key, row.ToEntity()) for row in q.all()]

		for result in results:
			yield result

	def RunInTransaction(this, fn):
		with this.Session.begin() as session:
			fn(SqlTransaction(this, session))

	def Close(this):
		this.engine.dispose()

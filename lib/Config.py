"""
lib/Config.py

Purpose:
Settings for a DatastoreFS and the factory that builds one from them.

Place in Architecture:
The entry point for applications that do not want to wire a Datastore by hand. Reads settings from keyword arguments or DATASTOREFS_* environment variables, picks the backend and returns a ready DatastoreFS.

Interface:

	DatastoreFSConfig: Validated settings.
	DatastoreFSConfig.FromEnvironment(environ, prefix): Settings from environment variables.
	NewDatastore(config): RETURNS the configured Datastore.
	NewFileSystem(config, **kwargs): RETURNS a DatastoreFS on the configured Datastore.

TODOs/FIXMEs:
None.
"""

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .DatastoreFS import DatastoreFS
from .Logging import GetLogger, Verbose
from .store.MemoryDatastore import MemoryDatastore

ENVIRONMENT_PREFIX = "DATASTOREFS_"


class DatastoreFSConfig(BaseModel):
	backend: Literal["memory", "sql", "redis"] = "memory"

	# Scopes every key, so several filesystems can share one database.
	namespace: str = ""
	kind: str = "file"

	sql_url: str = "sqlite://"

	redis_host: str = "localhost"
	redis_port: int = Field(default=6379, ge=1, le=65535)
	redis_db: int = Field(default=0, ge=0)
	redis_retries: int = Field(default=15, ge=0)

	verbose: bool = False

	@field_validator("kind")
	@classmethod
	def KindIsNotEmpty(cls, value):
		value = value.strip()
		if (not value):
			raise ValueError("kind must not be empty")
		return value

	# Build a config from DATASTOREFS_<FIELD> variables, e.g. DATASTOREFS_BACKEND=redis.
	# Unset variables keep their defaults; pydantic converts the strings.
	@classmethod
	def FromEnvironment(cls, environ=None, prefix=ENVIRONMENT_PREFIX):
		if (environ is None):
			environ = os.environ
		values = {}
		for field in cls.model_fields:
			key = f"{prefix}{field.upper()}"
			if (key in environ):
				values[field] = environ[key]
		return cls(**values)


def NewDatastore(config):
	GetLogger().debug(f"Using the {config.backend} backend")

	if (config.backend == "sql"):
		from .store.SqlDatastore import SqlDatastore
		return SqlDatastore(
			url=config.sql_url,
			namespace=config.namespace,
			kind=config.kind,
		)

	if (config.backend == "redis"):
		from .store.RedisDatastore import RedisDatastore
		return RedisDatastore(
			namespace=config.namespace,
			kind=config.kind,
			host=config.redis_host,
			port=config.redis_port,
			db=config.redis_db,
			retries=config.redis_retries,
		)

	return MemoryDatastore(namespace=config.namespace, kind=config.kind)


# Keyword arguments override (or, with no config, replace) the given settings.
def NewFileSystem(config: Optional[DatastoreFSConfig] = None, **kwargs):
	if (config is None):
		config = DatastoreFSConfig(**kwargs)
	elif (kwargs):
		config = config.model_copy(update=kwargs)
		config = DatastoreFSConfig.model_validate(config.model_dump())

	if (config.verbose):
		Verbose()

	return DatastoreFS(NewDatastore(config))

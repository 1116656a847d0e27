from .Config import DatastoreFSConfig, NewDatastore, NewFileSystem
from .DatastoreFS import DatastoreFS
from .Logging import GetLogger, SetLogging, Verbose
from .Utils import NormalizePath
from .fs.FileInfo import FileInfo
from .fs.Handle import Handle
from .fs.Record import Record
from .store.Datastore import Datastore, NoSuchEntity, Query
from .store.MemoryDatastore import MemoryDatastore

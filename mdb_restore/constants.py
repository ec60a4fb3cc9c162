"""
Well-known file names and namespaces of a dump tree.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

# Data files
DATA_SUFFIXES = (".bson", ".bin")
METADATA_SUFFIX = ".metadata.json"

# Special files inside a dump
OPLOG_FILE = "oplog.bson"
INDEXES_FILE = "system.indexes.bson"
PROFILE_FILE = "system.profile.bson"
USERS_FILE = "system.users.bson"

# Collections
INDEXES_COLLECTION = "system.indexes"
USERS_COLLECTION = "system.users"
SYSTEM_PREFIX = "system."

# Privilege records are matched on this field
USER_ID_FIELD = "user"

# Database used when the dump file has no parent directory
DEFAULT_DB_NAME = "test"

# Directory whose presence marks a dump of a sharded cluster
SHARDED_CONFIG_DIR = "config"

# Destination oplog
SERVER_OPLOG_NS = "local.oplog.rs"
MIN_OPLOG_REPLAY_VERSION = (1, 7, 4)

# Collection option that only names the collection at dump time
CREATE_OPTION = "create"

# Index definition fields
INDEX_NS_FIELD = "ns"
INDEX_VERSION_FIELD = "v"

DEFAULT_MONGO_URI = "mongodb://localhost:27017"

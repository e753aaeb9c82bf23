"""
Local persistence.

- kv_store.py: SQLite key/value table
- task_persistence.py: JSON (de)serialization of the task collection under a versioned key
"""

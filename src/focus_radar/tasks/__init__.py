"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskCategory)
- task_store.py: in-memory authoritative collection backed by persistence
- task_api.py: small high-level planning helpers used by the console
"""

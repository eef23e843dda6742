"""
Task subsystem.

Components:
- task_models.py: data structures (Task)
- task_errors.py: typed failures (validation / not found / storage)
- task_tree.py: pure tree projections (builder, deepest-task selector, helpers)
- task_cascade.py: completion cascades (plan + batch apply)
- task_store.py: SQLite-backed storage
- json_store.py: single-file JSON storage
- task_service.py: create/update/delete/query operations
- task_api.py: {success, message, data} envelopes with status codes
"""

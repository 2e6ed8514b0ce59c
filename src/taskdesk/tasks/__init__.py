"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority) and the completion transition
- task_schema.py: additive schema migrations for the SQLite table
- task_query.py: filter/sort/pagination -> parameterized SQL
- task_store.py: SQLite-backed storage (list/get/create/replace/patch/delete)
- errors.py: ValidationError / NotFoundError / StorageError
"""

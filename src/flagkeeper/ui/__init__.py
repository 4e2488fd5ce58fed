"""
Interactive user-facing components.

- **confirmation.py**: reaction-based yes/no gate with timeout, used before
  destructive bulk deletes.
"""

"""Library CLI - presentation helpers

- Raw input validation (validators.py)
- Output rendering in plain, json and rich modes (ui_helpers.py)
"""

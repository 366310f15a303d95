"""
Meow rule enforcement.

- **meow_classifier.py**: Pure predicate deciding whether text is a valid meow
- **enforcement.py**: Strike, warn and schedule deletion of non-meow messages
"""

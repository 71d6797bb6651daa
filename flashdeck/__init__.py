"""
flashdeck: spaced-repetition review scheduling and study queue engine.

Subpackages:
- core: cards, records, repository protocols and errors
- scheduling: memory model, review scheduler, queue builder
- quiz: quiz item synthesis and answer checking
- study: load monitoring, grading and the study service facade
- db: SQLAlchemy persistence
- cli: Typer command line interface
"""

__version__ = "1.0.0"

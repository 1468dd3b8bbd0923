"""Review planner backend: spaced-repetition scheduling and time budgeting."""

__version__ = "0.1.0"

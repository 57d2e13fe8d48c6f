"""
Pytest configuration loaded before any test module.
Forces the testing profile so the app binds to in-memory SQLite on import.
"""
import os

# Set testing environment before importing app
os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ.setdefault("LOG_LEVEL", "WARNING")

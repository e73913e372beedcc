"""
Routes package for the Task Compass application.

This package contains route blueprints:
- api: JSON endpoints driving the task store and rendering the task list
"""

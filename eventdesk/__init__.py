"""
Application Modules.

- backend/: API, services, repositories, models, configuration, tasks
"""

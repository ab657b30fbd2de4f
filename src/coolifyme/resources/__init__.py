# ABOUTME: Resource facades package for coolifyme
# ABOUTME: One thin typed client per Platform resource kind

"""
coolifyme Resource Facades

Each module wraps one group of Platform endpoints:
    - applications.py: applications, lifecycle actions, env vars
    - services.py: services, lifecycle actions, env vars
    - databases.py: databases and per-engine creation
    - servers.py, projects.py, private_keys.py, teams.py
    - system.py: version, health, API enable/disable
    - catalog.py: tenant-wide resource listing
    - deployments.py: deploy trigger and deployment queries
    - models.py: dataclasses shared by the facades and tools
"""

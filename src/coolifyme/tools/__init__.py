# ABOUTME: Higher-level operations built on the resource facades
# ABOUTME: Deployment control, .env sync, bulk execution, search and monitoring

"""
coolifyme Tools

    - deploy.py: DeploymentController and the watch state machine
    - envsync.py: EnvSyncEngine (export / import / sync / cleanup)
    - bulk.py: bulk() executor with bounded concurrency
    - search.py: cross-resource search with text, status and tag filters
    - monitor.py: per-status overview and API health check
"""

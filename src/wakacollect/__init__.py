"""wakacollect - editor activity heartbeat collector.

Modules:
    - heartbeat: Cooldown gate and dispatch of heartbeat records
    - vcs: Branch resolution (git CLI or direct .git/HEAD parsing)
    - host: Editor event adapter (subscribe/unsubscribe, entity keys)
    - config: YAML settings with environment overrides
    - cli: Command line tools (branch lookup, event replay)
"""

__version__ = "0.1.0"

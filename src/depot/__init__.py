"""
Metadata depot - versioned document store and notification queue.

Packages:
- depot.core: errors, logging, settings, timestamps
- depot.domain: record types and validators
- depot.store: query builder, substrates, document engine, repositories, admin
- depot.notifications: pending queue, history, queue manager
- depot.cli: administration CLI
"""

__version__ = "0.4.0"

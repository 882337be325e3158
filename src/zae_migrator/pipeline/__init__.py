"""
Stages of the record-migration pipeline.

Records flow in one direction::

    scanner -> batching -> dispatcher -> migrator

Each stage is an async generator or a small class consuming one. Stages
are wired together by ``zae_migrator.runner.MigrationRunner``.
"""

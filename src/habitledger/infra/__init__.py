"""Persistence infrastructure (engine, sessions, migrations, repositories)."""

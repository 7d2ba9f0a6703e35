"""
db/ - Database Layer
====================
Owns the single database connection, runs parameterized statements,
keeps the connection-scoped query log and controls transactions.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""

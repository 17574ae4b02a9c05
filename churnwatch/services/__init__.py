"""Business logic services used by handlers.

Handlers build services lazily so that importing a handler never opens a
database connection or a boto3 session.
"""

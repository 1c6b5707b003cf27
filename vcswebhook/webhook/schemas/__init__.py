"""
Provider webhook payload schemas.

Each provider (and payload family) gets its own set of models; they are
only used as the decode step in front of the parsers.
"""

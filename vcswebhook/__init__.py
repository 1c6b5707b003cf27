"""
VCS webhook relay: authenticates provider webhooks and normalizes them into one event model.
"""

"""
Registry Poll CLI

Command-line front end for registry_poll.
"""

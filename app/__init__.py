"""FastAPI primer service and git-flow command helper.

The web app lives in ``main``; ``app.cli`` wraps ``git flow``.
"""

"""
State permission package.

This package decides whether a transition into an application state may
proceed and, when it may not, where the actor should be redirected:

- app.rules: Permission maps, redirect rules, composition and the engine.
- app.authorization: Transition-level facade producing redirect decisions.

Design notes:
- The role and permission stores belong to the host application; the
  engine only looks definitions up and asks them to validate.
- The transition context is passed explicitly to every call; there is no
  process-wide "current transition".
- Use the shared/ utilities for logging, metrics, configuration and errors.
"""
